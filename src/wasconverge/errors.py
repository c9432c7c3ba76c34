"""Typed errors raised while reconciling WebSphere configuration.

Every failure the reconciliation core can report is a subclass of
ReconcileError. The engine converts these into per-resource failures;
anything else is a programming error and propagates.
"""
from typing import Optional


class ReconcileError(Exception):
    """Base class for all reconciliation failures."""
    pass


class InvalidScopeError(ReconcileError):
    """Scope kind is unknown or required identifiers are missing."""
    pass


class ParseError(ReconcileError):
    """Error parsing a desired state document."""
    pass


class DocumentError(ReconcileError):
    """A configuration document exists but cannot be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read configuration document {path}: {reason}")


class MalformedSecretError(ReconcileError):
    """A stored secret lacks the {xor} marker or does not decode to text."""
    pass


class RefusedOperationError(ReconcileError):
    """The requested change is never performed (e.g. removing global trust association)."""
    pass


class ImmutablePropertyError(ReconcileError):
    """A desired change targets an attribute that cannot be changed in place.

    The resource must be destroyed and recreated instead.
    """

    def __init__(
        self,
        attribute: str,
        current: Optional[str] = None,
        desired: Optional[str] = None,
        resource: Optional[str] = None,
    ):
        self.attribute = attribute
        self.current = current
        self.desired = desired
        self.resource = resource

        subject = f"{resource}: " if resource else ""
        super().__init__(
            f"{subject}'{attribute}' cannot be changed after creation "
            f"(current={current!r}, desired={desired!r}); "
            f"destroy and recreate the resource instead"
        )


class ExternalToolError(ReconcileError):
    """The administrative tool exited with failure."""

    def __init__(
        self,
        message: str,
        output: str = "",
        returncode: Optional[int] = None,
    ):
        self.output = output
        self.returncode = returncode
        super().__init__(message)


class NotYetProvisionedError(ReconcileError):
    """A required parent object does not exist yet.

    Raised when the tool reports an empty "parent config id". Retrying the
    same resource after its parent is provisioned is expected to succeed.
    """

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)
