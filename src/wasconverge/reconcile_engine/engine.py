"""Main reconcile engine - orchestrates the full apply_config workflow.

Provides a single entry point for:
1. Parsing the desired state document
2. Reading each resource's current state from the configuration documents
3. Planning the change (diff or anonymous instance match)
4. Generating one script per changed resource
5. Executing it, or only previewing it in dry-run mode

Resources are reconciled one at a time. A failure on one resource is
recorded in its result and the run continues with the next.
"""
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from .. import resources
from ..config.inventory import TopologyInventory
from ..errors import NotYetProvisionedError, ParseError, ReconcileError
from ..transport.base import WsadminRunner
from ..utils.logging_config import timed_section
from .diff import DiffEngine, summarize_changes
from .executor import ScriptExecutor
from .generator import ScriptGenerator
from .parser import ConfigParser
from .reader import ConfigStateReader
from .schema import (
    DesiredState,
    ResourceChange,
    ResourceDesiredState,
    ResourceResult,
    RunReport,
)
from .scope import ScopeResolver

if TYPE_CHECKING:
    from ..resources.base import ResourceHandler

logger = logging.getLogger(__name__)


@dataclass
class ProfileContext:
    """Collaborators bound to one deployment manager profile for a run."""
    profile_id: str
    resolver: ScopeResolver
    reader: ConfigStateReader
    runner: WsadminRunner
    executor: ScriptExecutor
    default_user: str


class ReconcileEngine:
    """
    Reconcile desired state documents against WebSphere configuration.

    Usage:
        engine = ReconcileEngine(inventory)
        report = engine.apply_config(config_dict, dry_run=True)
    """

    def __init__(
        self,
        inventory: TopologyInventory,
        audit_log_path: Optional[str] = None,
        debug_scripts: Optional[bool] = None,
    ):
        """
        Initialize the reconcile engine.

        Args:
            inventory: Topology inventory for looking up profiles
            audit_log_path: Path to audit log file (optional)
            debug_scripts: Force AdminUtilities debug notices on or off
        """
        self.inventory = inventory
        self.audit_log_path = audit_log_path
        self.parser = ConfigParser()
        self.diff_engine = DiffEngine()
        self.generator = ScriptGenerator(debug=debug_scripts)

    def apply_config(self, config: dict[str, Any], dry_run: bool = False) -> RunReport:
        """
        Apply a desired state document.

        Args:
            config: Desired state document (see ConfigParser)
            dry_run: If True, generate scripts without running them

        Returns:
            RunReport with one ResourceResult per resource
        """
        report = RunReport(dry_run=dry_run)

        # Step 1: Parse
        logger.info("Parsing desired state document")
        try:
            desired = self.parser.parse(config)
        except ParseError as e:
            report.error = f"Parse error: {e}"
            return report
        report.profile_id = desired.profile_id

        # Step 2: Bind the profile
        try:
            context = self.context(desired)
        except (KeyError, ValueError, ReconcileError) as e:
            report.error = f"Profile error: {e}"
            return report

        # Step 3: Reconcile each resource on its own
        logger.info(
            f"Reconciling {len(desired.resources)} resources on {desired.profile_id}"
            f"{' (dry run)' if dry_run else ''}"
        )
        for resource in desired.resources:
            report.results.append(self.reconcile(context, resource, dry_run))

        failed = report.failed
        if failed:
            logger.warning(f"{len(failed)} of {len(report.results)} resources did not converge")
        else:
            logger.info(f"All {len(report.results)} resources converged")
        return report

    def context(self, desired: DesiredState) -> ProfileContext:
        """Collaborators for the profile a document targets."""
        profile_id = desired.profile_id
        profile = self.inventory.get_profile(profile_id)
        resolver = self.inventory.get_resolver(profile_id)
        runner = self.inventory.get_runner(profile_id)

        return ProfileContext(
            profile_id=profile_id,
            resolver=resolver,
            reader=ConfigStateReader(resolver.config_root),
            runner=runner,
            executor=ScriptExecutor(runner, self.audit_log_path),
            default_user=profile.user,
        )

    def handler(self, context: ProfileContext, kind: str) -> "ResourceHandler":
        return resources.create_handler(
            kind,
            context.resolver,
            context.reader,
            runner=context.runner,
            diff_engine=self.diff_engine,
            default_user=context.default_user,
        )

    def plan(self, context: ProfileContext, resource: ResourceDesiredState) -> ResourceChange:
        """Read current state and plan the change for one resource."""
        handler = self.handler(context, resource.kind)
        state = handler.read(resource)
        return handler.plan(resource, state)

    def reconcile(
        self,
        context: ProfileContext,
        resource: ResourceDesiredState,
        dry_run: bool = False,
    ) -> ResourceResult:
        """
        Converge one resource.

        Typed failures are captured in the returned result; they never
        stop other resources.
        """
        handler = self.handler(context, resource.kind)
        label = handler.label(resource)
        result = ResourceResult(kind=resource.kind, name=label, dry_run=dry_run)

        try:
            with timed_section("reconcile", subject=f"{resource.kind}/{label}"):
                state = handler.read(resource)
                change = handler.plan(resource, state)
                result.change_type = change.change_type

                if change.no_change:
                    logger.info(f"{resource.kind} '{label}' is in sync")
                    result.success = True
                    return result

                script = self.generator.generate(handler, resource, change)
                result.script = script.masked()

                outcome = context.executor.execute(script, dry_run=dry_run)
                result.output = outcome.output or None
                prefix = "[PREVIEW] " if dry_run else ""
                result.changes_made = [f"{prefix}{change.describe()}"]
                result.success = True

        except ReconcileError as e:
            logger.error(f"{resource.kind} '{label}': {e}")
            result.error = str(e)
            result.error_type = type(e).__name__
            result.retryable = isinstance(e, NotYetProvisionedError)
            result.output = getattr(e, "output", None) or result.output

        return result

    def preview(self, config: dict[str, Any]) -> str:
        """
        Summarize pending changes without generating or running scripts.

        Args:
            config: Desired state document

        Returns:
            Human-readable summary
        """
        try:
            desired = self.parser.parse(config)
            context = self.context(desired)
        except (KeyError, ValueError, ReconcileError) as e:
            return f"Error: {e}"

        changes = []
        errors = []
        for resource in desired.resources:
            try:
                changes.append(self.plan(context, resource))
            except ReconcileError as e:
                errors.append(f"  ! {resource.kind} '{resource.name}': {e}")

        summary = summarize_changes(changes)
        if errors:
            summary += "\nResources that cannot be planned:\n" + "\n".join(errors)
        return summary
