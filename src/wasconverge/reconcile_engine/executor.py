"""Executor for running generated scripts through a transport.

Runs each script once and classifies the tool's output. Nothing is
retried here; a resource that is not yet provisioned converges on a later
run.
"""
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..errors import ExternalToolError, NotYetProvisionedError
from ..transport.base import WsadminRunner
from .schema import AuditEntry, ExecutionOutcome, Script

logger = logging.getLogger(__name__)

# The parent object (usually a cluster member) is not realized on the
# deployment manager yet
NOT_YET_PROVISIONED_RE = re.compile(
    r'Invalid parameter value "" for parameter "parent config id" on command "create"'
)


class ScriptExecutor:
    """Execute scripts through a wsadmin transport."""

    def __init__(self, runner: WsadminRunner, audit_log_path: Optional[str] = None):
        """
        Initialize executor.

        Args:
            runner: Transport that runs wsadmin
            audit_log_path: Path to audit log file (optional)
        """
        self.runner = runner
        self.audit_log_path = audit_log_path

    def execute(self, script: Script, dry_run: bool = False) -> ExecutionOutcome:
        """
        Execute one script.

        Args:
            script: Script to run
            dry_run: If True, record the script without running it

        Returns:
            ExecutionOutcome with the tool output

        Raises:
            NotYetProvisionedError: If the output names an empty parent config id
            ExternalToolError: If the tool exits with failure
        """
        audit_entry = AuditEntry(
            timestamp=datetime.now(timezone.utc),
            resource=f"{script.kind}/{script.name}",
            operation=script.change_type.value,
            user=script.principal,
            dry_run=dry_run,
        )

        try:
            if dry_run:
                logger.info(f"[DRY-RUN] Would {script.change_type.value} {script.kind} '{script.name}'")
                logger.debug(f"[DRY-RUN] Script:\n{script.masked()}")
                audit_entry.success = True
                return ExecutionOutcome(dry_run=True)

            logger.info(f"Running {script.change_type.value} for {script.kind} '{script.name}' as {script.principal}")
            logger.debug(f"Script:\n{script.masked()}")

            result = self.runner.run_script(script.body, script.principal)
            output = self._mask(result.output, script)

            if NOT_YET_PROVISIONED_RE.search(result.output):
                raise NotYetProvisionedError(
                    f"Could not {script.change_type.value} {script.kind} '{script.name}': "
                    f"its parent object is not available on the deployment manager yet. "
                    f"If this is the first run, the cluster member may need to be "
                    f"created first; reconcile again once it exists.",
                    output=output,
                )

            if not result.success:
                raise ExternalToolError(
                    f"wsadmin failed to {script.change_type.value} {script.kind} "
                    f"'{script.name}' (exit {result.returncode})",
                    output=output,
                    returncode=result.returncode,
                )

            audit_entry.success = True
            audit_entry.changes = [f"{script.change_type.value} {script.kind} '{script.name}'"]
            return ExecutionOutcome(dry_run=False, output=output, returncode=result.returncode)

        except (NotYetProvisionedError, ExternalToolError) as e:
            audit_entry.error = str(e)
            raise

        finally:
            self._write_audit(audit_entry)

    @staticmethod
    def _mask(text: str, script: Script) -> str:
        for secret in script.secrets:
            if secret:
                text = text.replace(secret, "********")
        return text

    def _write_audit(self, entry: AuditEntry) -> None:
        """Write audit entry to log file."""
        if not self.audit_log_path:
            return

        try:
            log_path = Path(self.audit_log_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            with open(log_path, "a") as f:
                f.write(json.dumps({
                    "timestamp": entry.timestamp.isoformat(),
                    "resource": entry.resource,
                    "operation": entry.operation,
                    "user": entry.user,
                    "dry_run": entry.dry_run,
                    "success": entry.success,
                    "changes": entry.changes,
                    "error": entry.error,
                }) + "\n")

        except OSError as e:
            logger.warning(f"Failed to write audit log: {e}")
