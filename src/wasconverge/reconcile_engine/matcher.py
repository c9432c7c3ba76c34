"""Match desired class loader libraries against anonymous class loaders.

Class loaders have no name. A server may carry several of them in each
mode, and the libraries a caller declares may already be split across
them. The matcher picks the instance that needs the fewest additions as
the one to manage, and decides whether the mode holds any of the desired
libraries at all.

The choice is greedy and per instance: a split of the desired set across
several instances that would minimize additions overall is not looked
for.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..errors import RefusedOperationError
from .schema import ClassLoaderInstance, ClassLoaderMode

logger = logging.getLogger(__name__)


def _ordered_unique(values: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def _difference(left: Iterable[str], right: Iterable[str]) -> list[str]:
    exclude = set(right)
    return [v for v in _ordered_unique(left) if v not in exclude]


@dataclass
class MatchResult:
    """Outcome of matching one mode's instances against the desired libraries."""
    mode: ClassLoaderMode
    exists: bool
    target_id: Optional[str] = None
    add: list[str] = field(default_factory=list)
    remove: list[str] = field(default_factory=list)
    combined: list[str] = field(default_factory=list)
    combined_diff: list[str] = field(default_factory=list)
    scores: dict[str, int] = field(default_factory=dict)

    @property
    def in_sync(self) -> bool:
        """Target already holds every desired library and nothing else."""
        return self.exists and not self.add and not self.remove


class AnonymousInstanceMatcher:
    """Greedy minimum-addition assignment of a library set to a class loader."""

    def match(
        self,
        instances: Iterable[ClassLoaderInstance],
        mode: ClassLoaderMode,
        desired: Iterable[str],
    ) -> MatchResult:
        """
        Pick the class loader of ``mode`` to manage.

        Args:
            instances: Every class loader of the server, in document order
            mode: Mode the desired libraries belong to
            desired: Desired shared library names

        Returns:
            MatchResult. exists=False when the mode has no instances or
            none of its instances holds any desired library.
        """
        mode = ClassLoaderMode(mode)
        wanted = _ordered_unique(desired)
        result = MatchResult(mode=mode, exists=False)

        best_score: Optional[int] = None
        combined: list[str] = []
        seen_any = False

        for instance in instances:
            if instance.mode != mode:
                continue
            seen_any = True

            add = _difference(wanted, instance.libraries)
            remove = _difference(instance.libraries, wanted)
            combined = _ordered_unique(combined + list(instance.libraries))

            score = len(add)
            result.scores[instance.id] = score
            # Ties keep the earlier instance
            if best_score is None or score < best_score:
                best_score = score
                result.target_id = instance.id
                result.add = add
                result.remove = remove

        result.combined = combined
        result.combined_diff = _difference(wanted, combined)

        if not seen_any or len(result.combined_diff) == len(wanted):
            result.exists = False
        else:
            result.exists = True

        logger.debug(
            f"{mode.value}: target={result.target_id} add={result.add} "
            f"remove={result.remove} missing={result.combined_diff} exists={result.exists}"
        )
        return result

    def require_creatable(self, desired: Iterable[str]) -> list[str]:
        """
        Libraries for a new class loader.

        Raises:
            RefusedOperationError: If no library is desired
        """
        libraries = _ordered_unique(desired)
        if not libraries:
            raise RefusedOperationError(
                "Refusing to create a class loader without shared libraries"
            )
        return libraries
