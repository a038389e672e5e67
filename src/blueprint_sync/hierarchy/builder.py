"""Discovery of configuration files and reconstruction of their hierarchy.

A monorepo typically carries one configuration file at its root and one
per package.  ``HierarchyBuilder.scan()`` finds them, and
``build_hierarchy()`` groups them into ``HierarchyNode`` values:

* candidate roots are the files at depth 0 or 1, shallowest first;
* a candidate claims every unclaimed file nested under its directory with
  a greater depth;
* a candidate already claimed by a shallower root is not a root itself;
* everything left over becomes a singleton node.

The resulting shape mirrors the remote catalog's ``parent_id`` tree so the
two can be compared with ``hierarchy.compare``.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath

from blueprint_sync.config_schema import DEFAULT_FILE_PATTERNS, DEFAULT_SKIP_DIRS
from blueprint_sync.converters.sections import Section, parse_sections
from blueprint_sync.file_handler import FileTree, LocalFileTree, to_relative_posix

logger = logging.getLogger(__name__)

MAX_ROOT_DEPTH = 1
MAX_NAME_LENGTH = 100
UNNAMED = "Unnamed"

_NAME_PATTERNS = (
    re.compile(r"^#\s+(.+?)(?:\s*-|$)", re.MULTILINE),
    re.compile(r"Project(?:\s+Overview)?[:\s]*(.+?)(?:\n|$)", re.IGNORECASE),
    re.compile(r"Name[:\s]*(.+?)(?:\n|$)", re.IGNORECASE),
)
_NAME_NOISE = re.compile(r"[#*`]")


@dataclass(frozen=True)
class ScanOptions:
    max_depth: int = 10
    file_patterns: tuple[str, ...] = tuple(DEFAULT_FILE_PATTERNS)
    recursive: bool = True
    skip_dirs: frozenset[str] = frozenset(DEFAULT_SKIP_DIRS)


@dataclass
class ConfigFile:
    """A configuration file found during a scan.

    Attributes:
        path: Path as reported by the file tree.
        relative_path: POSIX path relative to the scan root.
        depth: Directory depth below the scan root (0 = in the root).
        name: Project name extracted from the content.
        content: Raw file content.
        sections: Parsed sections in document order.
        parent_path: ``relative_path`` of the root that claimed this file.
    """

    path: PurePath
    relative_path: str
    depth: int
    name: str
    content: str
    sections: list[Section] = field(default_factory=list)
    parent_path: str | None = None

    @property
    def directory(self) -> PurePath:
        return self.path.parent


@dataclass
class HierarchyNode:
    """A root file and the files nested below it."""

    root_directory: PurePath
    root: ConfigFile | None
    children: list[ConfigFile] = field(default_factory=list)

    @property
    def files(self) -> list[ConfigFile]:
        head = [self.root] if self.root is not None else []
        return head + self.children


@dataclass
class ScanResult:
    """Files found by a scan, their hierarchy, and per-path errors."""

    root: PurePath
    files: list[ConfigFile] = field(default_factory=list)
    hierarchy: list[HierarchyNode] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def total_found(self) -> int:
        return len(self.files)


def extract_project_name(content: str, directory: PurePath) -> str:
    """Guess a project name from *content*, else from *directory*.

    Tried in order: the first top-level heading (up to a `` - ``
    separator), a ``Project:`` / ``Project Overview`` line, a ``Name:``
    line.  A candidate is accepted if it is non-empty and shorter than
    100 characters after markup is removed.
    """
    for pattern in _NAME_PATTERNS:
        match = pattern.search(content)
        if match and match.group(1):
            name = _NAME_NOISE.sub("", match.group(1).strip()).strip()
            if name and len(name) < MAX_NAME_LENGTH:
                return name
    return directory.name or UNNAMED


def _is_nested(path: PurePath, directory: PurePath) -> bool:
    return directory in path.parents


def build_hierarchy(files: list[ConfigFile]) -> list[HierarchyNode]:
    """Group *files* into hierarchy nodes.

    Sets ``parent_path`` on every claimed child.  Each file appears in
    exactly one node, either as its root or as one of its children.
    """
    ordered = sorted(files, key=lambda f: f.depth)
    candidates = [f for f in ordered if f.depth <= MAX_ROOT_DEPTH]

    if not candidates:
        return [HierarchyNode(f.directory, f, []) for f in files]

    nodes: list[HierarchyNode] = []
    claimed: set[str] = set()

    for root in candidates:
        if root.relative_path in claimed:
            continue
        claimed.add(root.relative_path)
        children = [
            f
            for f in files
            if f.relative_path not in claimed
            and f.depth > root.depth
            and _is_nested(f.path, root.directory)
        ]
        for child in children:
            child.parent_path = root.relative_path
            claimed.add(child.relative_path)
        nodes.append(HierarchyNode(root.directory, root, children))

    for orphan in files:
        if orphan.relative_path not in claimed:
            nodes.append(HierarchyNode(orphan.directory, orphan, []))

    return nodes


class HierarchyBuilder:
    """Walk a ``FileTree`` and collect configuration files.

    Args:
        tree: File-tree capability; defaults to the local file system.
        options: Scan limits and patterns.
    """

    def __init__(
        self,
        tree: FileTree | None = None,
        options: ScanOptions | None = None,
    ) -> None:
        self._tree = tree if tree is not None else LocalFileTree()
        self._options = options or ScanOptions()

    def scan(self, root: PurePath) -> list[ConfigFile]:
        """Return every matching file under *root*, depth first."""
        return self._walk(root, [])

    def build(self, root: PurePath) -> ScanResult:
        """Scan *root* and build its hierarchy in one pass."""
        errors: list[str] = []
        files = self._walk(root, errors)
        nodes = build_hierarchy(files)
        logger.info(
            "Scanned %s: %d file(s), %d node(s), %d error(s)",
            root,
            len(files),
            len(nodes),
            len(errors),
        )
        return ScanResult(root=root, files=files, hierarchy=nodes, errors=errors)

    def _matches(self, name: str) -> bool:
        return any(
            fnmatch.fnmatchcase(name, pattern)
            for pattern in self._options.file_patterns
        )

    def _walk(self, root: PurePath, errors: list[str]) -> list[ConfigFile]:
        files: list[ConfigFile] = []

        def visit(directory: PurePath, depth: int) -> None:
            if depth > self._options.max_depth:
                return
            try:
                entries = sorted(
                    self._tree.list_children(directory), key=lambda e: e.name
                )
            except OSError as exc:
                logger.warning("Cannot list %s: %s", directory, exc)
                errors.append(f"{directory}: {exc}")
                return

            for entry in entries:
                if entry.is_directory:
                    if entry.name in self._options.skip_dirs:
                        continue
                    if self._options.recursive:
                        visit(entry.path, depth + 1)
                elif self._matches(entry.name):
                    config = self._read(entry.path, root, depth, errors)
                    if config is not None:
                        files.append(config)

        visit(root, 0)
        return files

    def _read(
        self,
        path: PurePath,
        root: PurePath,
        depth: int,
        errors: list[str],
    ) -> ConfigFile | None:
        try:
            content = self._tree.read_text(path)
        except OSError as exc:
            logger.warning("Cannot read %s: %s", path, exc)
            errors.append(f"{path}: {exc}")
            return None
        logger.debug("Found %s at depth %d", path, depth)
        return ConfigFile(
            path=path,
            relative_path=to_relative_posix(path, root),
            depth=depth,
            name=extract_project_name(content, path.parent),
            content=content,
            sections=parse_sections(content),
        )
