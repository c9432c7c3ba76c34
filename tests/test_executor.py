"""Tests for running generated scripts."""
import json

import pytest

from conftest import FakeRunner
from wasconverge.errors import ExternalToolError, NotYetProvisionedError
from wasconverge.reconcile_engine.executor import ScriptExecutor
from wasconverge.reconcile_engine.schema import ChangeType, Script
from wasconverge.transport.base import RunResult

NOT_PROVISIONED_OUTPUT = (
    "WASX7017E: Exception received while running file \"/tmp/x.py\"; exception information: "
    "com.ibm.ws.scripting.ScriptingException: Invalid parameter value \"\" for parameter "
    "\"parent config id\" on command \"create\""
)


def script(**kwargs):
    values = dict(
        kind="keystore",
        name="AppKeyStore",
        change_type=ChangeType.MODIFY,
        body="AdminTask.modifyKeyStore(['-keyStorePassword', 's3cret'])",
        principal="webadmin",
        secrets=("s3cret",),
    )
    values.update(kwargs)
    return Script(**values)


class TestScriptExecutor:
    """Tests for ScriptExecutor."""

    def test_runs_as_principal(self):
        """The script body runs once as its principal."""
        runner = FakeRunner(results=[RunResult(0, "done")])
        outcome = ScriptExecutor(runner).execute(script())

        assert runner.scripts == [(script().body, "webadmin")]
        assert not outcome.dry_run
        assert outcome.output == "done"
        assert outcome.returncode == 0

    def test_dry_run_does_not_execute(self):
        """Dry runs never reach the transport."""
        runner = FakeRunner()
        outcome = ScriptExecutor(runner).execute(script(), dry_run=True)

        assert outcome.dry_run
        assert runner.scripts == []

    def test_failure(self):
        """A nonzero exit raises with the masked output."""
        runner = FakeRunner(results=[RunResult(105, "bad password s3cret")])

        with pytest.raises(ExternalToolError) as exc_info:
            ScriptExecutor(runner).execute(script())

        error = exc_info.value
        assert error.returncode == 105
        assert "exit 105" in str(error)
        assert error.output == "bad password ********"

    def test_not_yet_provisioned(self):
        """An empty parent config id is reported as not yet provisioned."""
        runner = FakeRunner(results=[RunResult(105, NOT_PROVISIONED_OUTPUT)])

        with pytest.raises(NotYetProvisionedError) as exc_info:
            ScriptExecutor(runner).execute(script(change_type=ChangeType.CREATE))
        assert "parent config id" in exc_info.value.output

    def test_not_yet_provisioned_with_zero_exit(self):
        """The output pattern is checked even when the tool exits 0."""
        runner = FakeRunner(results=[RunResult(0, NOT_PROVISIONED_OUTPUT)])
        with pytest.raises(NotYetProvisionedError):
            ScriptExecutor(runner).execute(script())


class TestAuditLog:
    """Tests for the JSON lines audit log."""

    def read(self, path):
        with open(path) as f:
            return [json.loads(line) for line in f]

    def test_success_entry(self, tmp_path):
        """Successful runs append one entry."""
        log = tmp_path / "audit" / "audit.jsonl"
        ScriptExecutor(FakeRunner(), str(log)).execute(script())

        [entry] = self.read(log)
        assert entry["resource"] == "keystore/AppKeyStore"
        assert entry["operation"] == "modify"
        assert entry["user"] == "webadmin"
        assert entry["success"] is True
        assert entry["dry_run"] is False
        assert entry["error"] is None

    def test_failure_entry(self, tmp_path):
        """Failures are logged with their error."""
        log = tmp_path / "audit.jsonl"
        runner = FakeRunner(results=[RunResult(1, "")])

        with pytest.raises(ExternalToolError):
            ScriptExecutor(runner, str(log)).execute(script())

        [entry] = self.read(log)
        assert entry["success"] is False
        assert "exit 1" in entry["error"]

    def test_dry_run_entry(self, tmp_path):
        """Dry runs are logged as such."""
        log = tmp_path / "audit.jsonl"
        executor = ScriptExecutor(FakeRunner(), str(log))

        executor.execute(script(), dry_run=True)
        executor.execute(script(name="Other"), dry_run=True)

        entries = self.read(log)
        assert len(entries) == 2
        assert all(e["dry_run"] for e in entries)
        assert entries[1]["resource"] == "keystore/Other"

    def test_no_audit_path(self, tmp_path):
        """Without a path nothing is written."""
        ScriptExecutor(FakeRunner()).execute(script())
        assert list(tmp_path.iterdir()) == []
