"""Compare a scanned hierarchy with the catalog's view of it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath

from blueprint_sync.hierarchy.builder import HierarchyNode
from blueprint_sync.sync.models import RemoteHierarchy


@dataclass
class ParentMismatch:
    path: str
    local_parent: str | None
    remote_parent: str | None


@dataclass
class HierarchyComparison:
    """Differences between the local tree and the remote root/children tree.

    Paths are repository-relative POSIX paths.
    """

    matched: list[str] = field(default_factory=list)
    local_only: list[str] = field(default_factory=list)
    remote_only: list[str] = field(default_factory=list)
    parent_mismatches: list[ParentMismatch] = field(default_factory=list)

    @property
    def identical(self) -> bool:
        return not (self.local_only or self.remote_only or self.parent_mismatches)


def _normalize(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).as_posix().removeprefix("./")


def compare_with_remote(
    nodes: list[HierarchyNode], remote: RemoteHierarchy
) -> HierarchyComparison:
    """Compare local *nodes* against *remote*.

    The remote list is grouped with ``RemoteHierarchy.build_tree()`` so a
    file's parent is its top-level root on both sides.  Blueprints without
    a ``repository_path`` cannot be placed in the repository and are
    ignored.
    """
    local_parents: dict[str, str | None] = {}
    for node in nodes:
        for config in node.files:
            local_parents[config.relative_path] = config.parent_path

    # Both sides attach every descendant to its top-level root
    remote_parents: dict[str, str | None] = {}
    for node in remote.build_tree():
        root_path = (
            _normalize(node.root.repository_path)
            if node.root.repository_path
            else None
        )
        if root_path is not None:
            remote_parents[root_path] = None
        for child in node.children:
            if child.repository_path:
                remote_parents[_normalize(child.repository_path)] = root_path

    result = HierarchyComparison(
        matched=sorted(local_parents.keys() & remote_parents.keys()),
        local_only=sorted(local_parents.keys() - remote_parents.keys()),
        remote_only=sorted(remote_parents.keys() - local_parents.keys()),
    )
    for path in result.matched:
        if local_parents[path] != remote_parents[path]:
            result.parent_mismatches.append(
                ParentMismatch(path, local_parents[path], remote_parents[path])
            )
    return result
