"""Conflict resolution strategies for the sync coordinator.

A pull asks the resolver before it overwrites anything the link table does
not account for:

- ``LINKED_ELSEWHERE``: the target path is already linked to another
  blueprint.
- ``LOCAL_MODIFIED``: the target file has local edits (a diff preview is
  attached).

Provided strategies:

- ``SkipResolver``: Always declines (non-interactive default).
- ``OverwriteResolver``: Always proceeds (``--yes``).
- ``InteractiveResolver``: Declines and accumulates the conflicts for the
  caller to present (no I/O).
- ``CallbackResolver``: Delegates to an injected decision function.

The ``create_resolver()`` factory maps config strategy strings to resolver
instances.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from blueprint_sync.sync.models import ConflictContext, Decision

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ConflictResolver(Protocol):
    """Protocol that all conflict resolvers must satisfy."""

    def resolve(self, conflict: ConflictContext) -> Decision:
        """Decide whether the pull may overwrite the target.

        Args:
            conflict: What the pull would overwrite and why.

        Returns:
            ``Decision.PROCEED`` or ``Decision.SKIP``.
        """
        ...  # pragma: no cover


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------


class SkipResolver:
    """Never overwrite; every conflict is skipped."""

    def resolve(self, conflict: ConflictContext) -> Decision:
        logger.info(
            "Skipping %s (%s)", conflict.local_path, conflict.kind.value
        )
        return Decision.SKIP


class OverwriteResolver:
    """Always overwrite in favour of the remote blueprint."""

    def resolve(self, conflict: ConflictContext) -> Decision:
        logger.info(
            "Overwriting %s (%s)", conflict.local_path, conflict.kind.value
        )
        return Decision.PROCEED


class InteractiveResolver:
    """Collect conflicts for human review.

    Every conflict is declined and appended to ``pending_conflicts`` so
    the caller can show the diffs and re-run the pull with an explicit
    decision.  The resolver itself does no I/O.
    """

    def __init__(self) -> None:
        self.pending_conflicts: list[ConflictContext] = []

    def resolve(self, conflict: ConflictContext) -> Decision:
        logger.info(
            "Conflict on %s (%s) -- pending human review",
            conflict.local_path,
            conflict.kind.value,
        )
        self.pending_conflicts.append(conflict)
        return Decision.SKIP


class CallbackResolver:
    """Delegate the decision to *decide*.

    Args:
        decide: Called with each conflict; a truthy return (or
            ``Decision.PROCEED``) allows the overwrite.
    """

    def __init__(
        self, decide: Callable[[ConflictContext], Decision | bool]
    ) -> None:
        self._decide = decide

    def resolve(self, conflict: ConflictContext) -> Decision:
        answer = self._decide(conflict)
        if isinstance(answer, Decision):
            return answer
        return Decision.PROCEED if answer else Decision.SKIP


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_STRATEGY_MAP: dict[str, type] = {
    "skip": SkipResolver,
    "overwrite": OverwriteResolver,
    "interactive": InteractiveResolver,
}


def create_resolver(strategy: str) -> ConflictResolver:
    """Create a conflict resolver for the given strategy string.

    Args:
        strategy: One of ``"skip"``, ``"overwrite"``, ``"interactive"``.

    Returns:
        A ``ConflictResolver`` implementation instance.

    Raises:
        ValueError: If the strategy string is not recognised.
    """
    cls = _STRATEGY_MAP.get(strategy)
    if cls is None:
        raise ValueError(
            f"Unknown conflict strategy: '{strategy}'. Valid strategies: {sorted(_STRATEGY_MAP.keys())}"
        )
    return cls()  # type: ignore[return-value]
