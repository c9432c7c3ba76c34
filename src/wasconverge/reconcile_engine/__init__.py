"""Reconcile engine - declarative WebSphere configuration management.

The engine converges WebSphere cell configuration on a desired state:
- Reads current state straight from the cell's XML documents
- Compares only the attributes the caller cares about
- Emits one wsadmin script per resource that needs to change
- Reports typed failures per resource without stopping the run

Usage:
    from wasconverge.reconcile_engine import ReconcileEngine

    engine = ReconcileEngine(inventory)
    report = engine.apply_config({
        "profile": "dmgr01",
        "resources": [
            {
                "kind": "keystore",
                "name": "AppKeyStore",
                "description": "Application key store",
                "readonly": False,
            }
        ]
    }, dry_run=True)
"""

from .engine import ReconcileEngine
from .schema import (
    ScopeKind,
    Ensure,
    ChangeType,
    ClassLoaderMode,
    ManagementScope,
    ConfigEntity,
    ClassLoaderInstance,
    EntitySnapshot,
    ScopeSpec,
    ResolvedScope,
    ResourceDesiredState,
    DesiredState,
    PendingChangeSet,
    ResourceChange,
    Script,
    ResourceResult,
    RunReport,
)
from .scope import ScopeResolver, ConfigDocument
from .reader import ConfigStateReader, DocumentIndex, ReferenceRule
from .credentials import CredentialCodec
from .diff import AttributeSpec, DiffEngine, summarize_changes
from .matcher import AnonymousInstanceMatcher, MatchResult
from .parser import ConfigParser
from .generator import ScriptGenerator
from .executor import ScriptExecutor

__all__ = [
    # Main engine
    "ReconcileEngine",
    # Schema classes
    "ScopeKind",
    "Ensure",
    "ChangeType",
    "ClassLoaderMode",
    "ManagementScope",
    "ConfigEntity",
    "ClassLoaderInstance",
    "EntitySnapshot",
    "ScopeSpec",
    "ResolvedScope",
    "ResourceDesiredState",
    "DesiredState",
    "PendingChangeSet",
    "ResourceChange",
    "Script",
    "ResourceResult",
    "RunReport",
    # Components
    "ScopeResolver",
    "ConfigDocument",
    "ConfigStateReader",
    "DocumentIndex",
    "ReferenceRule",
    "CredentialCodec",
    "AttributeSpec",
    "DiffEngine",
    "summarize_changes",
    "AnonymousInstanceMatcher",
    "MatchResult",
    "ConfigParser",
    "ScriptGenerator",
    "ScriptExecutor",
]
