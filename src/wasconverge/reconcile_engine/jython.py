"""Render Python values as Jython source literals for wsadmin scripts."""
from typing import Any, Iterable, Mapping

from .diff import normalize


def jython_str(value: Any) -> str:
    """Single-quoted Jython string literal."""
    text = normalize(value)
    escaped = (
        text.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def jython_list(values: Iterable[Any]) -> str:
    """Jython list of string literals, e.g. AdminTask argument lists."""
    return "[" + ", ".join(jython_str(v) for v in values) + "]"


def jython_pairs(mapping: Mapping[str, Any]) -> str:
    """Jython list of [name, value] pairs, as AdminConfig.modify takes them. None values are skipped."""
    return "[" + ", ".join(
        f"[{jython_str(k)}, {jython_str(v)}]" for k, v in mapping.items() if v is not None
    ) + "]"


def task_args(pairs: Iterable[tuple[str, Any]]) -> str:
    """AdminTask argument list from (option, value) pairs, skipping None values.

    A mapping value becomes a nested list of [name, value] pairs.
    """
    rendered = []
    for option, value in pairs:
        if value is None:
            continue
        rendered.append(jython_str(f"-{option}"))
        rendered.append(jython_pairs(value) if isinstance(value, Mapping) else jython_str(value))
    return "[" + ", ".join(rendered) + "]"
