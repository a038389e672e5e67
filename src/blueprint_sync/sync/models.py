"""Pydantic models for the sync coordinator.

Defines the data contracts shared by the transport client, link tracker,
coordinator and reporters:

- ``RemoteBlueprint`` / ``RemoteHierarchy``: catalog values fetched per call.
- ``UpdateOutcome``: answer to an optimistic-lock update.
- ``TrackedLink``: persisted local-path <-> blueprint binding.
- ``ConflictContext``: what the resolver is asked to decide on.
- ``PullResult``, ``PushResult``, ``StatusResult``, ``DiffPreview``,
  ``HierarchyPullReport``: coordinator results.

All models are frozen (immutable) for safety.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel

from blueprint_sync.errors import ErrorClass

CHECKSUM_LENGTH = 16


def content_checksum(content: str) -> str:
    """Return the catalog fingerprint of *content*.

    SHA-256 over the UTF-8 bytes, hex encoded and truncated to 16
    characters.  No normalisation is applied: any byte change is a change.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:CHECKSUM_LENGTH]


class BlueprintType(str, Enum):
    AGENTS_MD = "AGENTS_MD"
    CLAUDE_MD = "CLAUDE_MD"
    CURSOR_RULES = "CURSOR_RULES"
    COPILOT_INSTRUCTIONS = "COPILOT_INSTRUCTIONS"
    WINDSURF_RULES = "WINDSURF_RULES"
    ZED_INSTRUCTIONS = "ZED_INSTRUCTIONS"
    GENERIC = "GENERIC"


# Default local file name for a pulled blueprint without a repository path
TYPE_TO_FILENAME = MappingProxyType(
    {
        BlueprintType.AGENTS_MD: "AGENTS.md",
        BlueprintType.CLAUDE_MD: "CLAUDE.md",
        BlueprintType.CURSOR_RULES: ".cursorrules",
        BlueprintType.COPILOT_INSTRUCTIONS: ".github/copilot-instructions.md",
        BlueprintType.WINDSURF_RULES: ".windsurfrules",
        BlueprintType.ZED_INSTRUCTIONS: ".zed/instructions.md",
        BlueprintType.GENERIC: "ai-config.md",
    }
)


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    TEAM = "TEAM"
    PRIVATE = "PRIVATE"


class BlueprintSource(str, Enum):
    """Where a tracked blueprint came from."""

    MARKETPLACE = "marketplace"
    TEAM = "team"
    PRIVATE = "private"


_VISIBILITY_TO_SOURCE = {
    Visibility.PUBLIC: BlueprintSource.MARKETPLACE,
    Visibility.TEAM: BlueprintSource.TEAM,
    Visibility.PRIVATE: BlueprintSource.PRIVATE,
}


class SyncStatus(str, Enum):
    """State of a local path relative to its blueprint."""

    UNLINKED = "unlinked"
    LINKED = "linked"
    IN_SYNC = "in_sync"
    LOCAL_AHEAD = "local_ahead"
    REMOTE_AHEAD = "remote_ahead"
    CONFLICTING = "conflicting"


class ConflictKind(str, Enum):
    LINKED_ELSEWHERE = "linked_elsewhere"
    LOCAL_MODIFIED = "local_modified"


class Decision(str, Enum):
    PROCEED = "proceed"
    SKIP = "skip"


# ---------------------------------------------------------------------------
# Catalog values
# ---------------------------------------------------------------------------


class RemoteBlueprint(BaseModel):
    """A blueprint as returned by the catalog.

    Optional fields carry explicit fallbacks: ``effective_checksum`` hashes
    ``content`` when the catalog did not publish a checksum,
    ``blueprint_type`` falls back to ``GENERIC`` and ``visibility_or_default``
    to ``PRIVATE``.

    Attributes:
        id: Blueprint identifier (``bp_...``).
        name: Display name.
        content: Full text; hierarchy listings may omit it.
        content_checksum: Catalog-published fingerprint of ``content``.
        type: Blueprint type name, free-form on the wire.
        visibility: ``PUBLIC``, ``TEAM`` or ``PRIVATE``.
        hierarchy_id: Hierarchy the blueprint belongs to.
        parent_id: Parent blueprint inside the hierarchy.
        repository_path: Path of the file relative to the repository root.
    """

    id: str
    name: str = ""
    content: str | None = None
    content_checksum: str | None = None
    type: str | None = None
    visibility: Visibility | None = None
    hierarchy_id: str | None = None
    parent_id: str | None = None
    repository_path: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def has_content(self) -> bool:
        return self.content is not None

    @property
    def effective_checksum(self) -> str:
        if self.content_checksum:
            return self.content_checksum
        return content_checksum(self.content or "")

    @property
    def blueprint_type(self) -> BlueprintType:
        try:
            return BlueprintType((self.type or "").upper())
        except ValueError:
            return BlueprintType.GENERIC

    @property
    def visibility_or_default(self) -> Visibility:
        return self.visibility or Visibility.PRIVATE

    @property
    def source(self) -> BlueprintSource:
        return _VISIBILITY_TO_SOURCE[self.visibility_or_default]

    @property
    def default_filename(self) -> str:
        return TYPE_TO_FILENAME[self.blueprint_type]


class RemoteNode(BaseModel):
    """Remote counterpart of ``HierarchyNode``."""

    root: RemoteBlueprint
    children: list[RemoteBlueprint] = []

    model_config = {"frozen": True}


class RemoteHierarchy(BaseModel):
    """A hierarchy and its flat blueprint list.

    ``build_tree()`` groups the list into ``RemoteNode`` values: every
    blueprint without a parent in the list is a root, and its children are
    all of its descendants in list order.
    """

    id: str
    name: str = ""
    repository_root: str = ""
    blueprints: list[RemoteBlueprint] = []

    model_config = {"frozen": True}

    def build_tree(self) -> list[RemoteNode]:
        by_id = {bp.id: bp for bp in self.blueprints}

        def top(bp: RemoteBlueprint) -> RemoteBlueprint:
            seen = {bp.id}
            while bp.parent_id in by_id and bp.parent_id not in seen:
                bp = by_id[bp.parent_id]
                seen.add(bp.id)
            return bp

        roots = [bp for bp in self.blueprints if bp.parent_id not in by_id]
        children: dict[str, list[RemoteBlueprint]] = {r.id: [] for r in roots}
        for bp in self.blueprints:
            if bp.parent_id not in by_id:
                continue
            anchor = top(bp)
            if anchor.id in children:
                children[anchor.id].append(bp)
        return [RemoteNode(root=r, children=children[r.id]) for r in roots]


class UpdateOutcome(BaseModel):
    """Result of ``update_blueprint``.

    ``conflict`` is set when the catalog rejected the update because its
    checksum no longer matched ``expected_checksum``; ``checksum`` is then
    the catalog's current value.
    """

    conflict: bool = False
    checksum: str | None = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return not self.conflict


# ---------------------------------------------------------------------------
# Local state
# ---------------------------------------------------------------------------


class TrackedLink(BaseModel):
    """Persisted binding of a local file to a blueprint.

    Attributes:
        blueprint_id: Catalog identifier.
        name: Blueprint name at link time.
        local_path: POSIX path relative to the working directory.
        checksum: Last-known remote content checksum.
        source: Where the blueprint came from.
        hierarchy_id: Owning hierarchy, if pulled as part of one.
        hierarchy_name: Display name of that hierarchy.
        repository_path: Path inside the hierarchy's repository.
        synced_at: ISO 8601 timestamp of the last successful sync.
        editable: False for marketplace blueprints.
    """

    blueprint_id: str
    name: str = ""
    local_path: str
    checksum: str
    source: BlueprintSource = BlueprintSource.PRIVATE
    hierarchy_id: str | None = None
    hierarchy_name: str | None = None
    repository_path: str | None = None
    synced_at: str | None = None
    editable: bool = True

    model_config = {"frozen": True}


class ConflictContext(BaseModel):
    """What a resolver is asked to decide on before a pull writes."""

    kind: ConflictKind
    local_path: str
    blueprint_id: str
    existing_blueprint_id: str | None = None
    diff: str | None = None

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class DiffPreview(BaseModel):
    """Rendered diff plus counts; ``text`` is None when the diff was too large."""

    text: str | None = None
    added: int = 0
    removed: int = 0
    too_large: bool = False
    error: str | None = None

    model_config = {"frozen": True}


class PullResult(BaseModel):
    """Outcome of pulling one blueprint.

    Attributes:
        blueprint_id: Blueprint requested.
        local_path: Target path, if it was resolved.
        status: State after the pull.
        written: True if the local file was written.
        skipped: True if the resolver declined.
        error: Failure message.
        error_class: Transport failure classification.
    """

    blueprint_id: str
    local_path: str | None = None
    status: SyncStatus | None = None
    written: bool = False
    skipped: bool = False
    error: str | None = None
    error_class: ErrorClass | None = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.error is None and not self.skipped


class PushResult(BaseModel):
    """Outcome of pushing one local file.

    On ``CONFLICTING`` both checksums and a remote -> local diff preview
    are included so the caller can decide what to do.
    """

    local_path: str
    blueprint_id: str | None = None
    status: SyncStatus | None = None
    local_checksum: str | None = None
    remote_checksum: str | None = None
    link_checksum: str | None = None
    diff: DiffPreview | None = None
    error: str | None = None
    error_class: ErrorClass | None = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.error is None and self.status is SyncStatus.IN_SYNC


class StatusResult(BaseModel):
    local_path: str
    status: SyncStatus | None = None
    blueprint_id: str | None = None
    local_checksum: str | None = None
    remote_checksum: str | None = None
    link_checksum: str | None = None
    error: str | None = None

    model_config = {"frozen": True}


class HierarchyPullReport(BaseModel):
    """Aggregate result of ``pull_hierarchy``."""

    hierarchy_id: str
    hierarchy_name: str = ""
    results: list[PullResult] = []
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def downloaded(self) -> list[PullResult]:
        """Results where the pull succeeded (written or already in sync)."""
        return [r for r in self.results if r.success]

    @property
    def skipped(self) -> list[PullResult]:
        return [r for r in self.results if r.skipped]

    @property
    def failed(self) -> list[PullResult]:
        return [r for r in self.results if r.error is not None]

    def summary(self) -> str:
        """Format a human-readable summary of the hierarchy pull."""
        title = self.hierarchy_name or self.hierarchy_id
        lines = [
            f"Hierarchy pull '{title}'",
            f"  Downloaded: {len(self.downloaded)}",
            f"  Skipped:    {len(self.skipped)}",
            f"  Failed:     {len(self.failed)}",
            f"  Total:      {len(self.results)}",
        ]
        if self.error:
            lines.append(f"  Error:      {self.error}")
        return "\n".join(lines)
