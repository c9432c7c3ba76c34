"""Script generator - turns a pending change into one wsadmin Jython script.

Every script shares the same frame: a preamble that imports the script
library and sets debug notices, the handler's statements inside a single
try block, and a postamble that saves the configuration or fails with the
exception text. One change produces exactly one script.
"""
import logging
from typing import TYPE_CHECKING, Optional

from .jython import jython_str
from .schema import ChangeType, ResourceChange, ResourceDesiredState, Script

if TYPE_CHECKING:
    from ..resources.base import ResourceHandler

logger = logging.getLogger(__name__)

INDENT = "  "

PREAMBLE = """\
import sys
import AdminUtilities

# Enable debug notices ('true'/'false')
AdminUtilities.setDebugNotices({debug})

msgPrefix = {prefix}

try:"""

POSTAMBLE = """\
  AdminConfig.save()
except:
  typ, val, tb = sys.exc_info()
  if (typ == SystemExit):
    raise
  #endIf
  AdminUtilities.fail(msgPrefix + AdminUtilities.getExceptionText(typ, val, tb), AdminUtilities._TRUE_)
#endTry
"""


class ScriptGenerator:
    """Generate wsadmin scripts from resource changes."""

    def __init__(self, debug: Optional[bool] = None):
        """
        Args:
            debug: Emit AdminUtilities debug notices; follows this
                module's log level when None
        """
        self.debug = debug

    def generate(
        self,
        handler: "ResourceHandler",
        desired: ResourceDesiredState,
        change: ResourceChange,
    ) -> Script:
        """
        Generate the script for one change.

        Args:
            handler: Handler of the resource kind
            desired: Desired state of the resource
            change: Planned change (create, modify or delete)

        Returns:
            Script ready for the executor

        Raises:
            ValueError: If the change needs no script
        """
        if change.change_type == ChangeType.CREATE:
            statements = handler.create_script(desired, change)
        elif change.change_type == ChangeType.MODIFY:
            statements = handler.modify_script(desired, change)
        elif change.change_type == ChangeType.DELETE:
            statements = handler.destroy_script(desired, change)
        else:
            raise ValueError(f"No script for change type: {change.change_type.value}")

        return Script(
            kind=change.kind,
            name=change.name,
            change_type=change.change_type,
            body=self.render(f"{change.kind} {change.change_type.value}:", statements),
            principal=handler.principal(desired),
            secrets=handler.secrets(desired, change),
        )

    def render(self, prefix: str, statements: list[str]) -> str:
        """Frame statements with the shared preamble and postamble."""
        debug = self.debug
        if debug is None:
            debug = logger.isEnabledFor(logging.DEBUG)

        lines = [PREAMBLE.format(debug=jython_str(debug), prefix=jython_str(prefix))]
        lines += [INDENT + statement for statement in statements]
        lines.append(POSTAMBLE)
        return "\n".join(lines)
