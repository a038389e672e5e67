"""Repository scanning and configuration-file hierarchy reconstruction.

Modules:

- ``builder``  -- ``HierarchyBuilder``: walks a file tree and groups the
  configuration files it finds into root/children nodes.
- ``snapshot`` -- save/load the scanned hierarchy as ``hierarchy.json``.
- ``compare``  -- diff the local hierarchy against a remote one.
"""

from .builder import (
    ConfigFile,
    HierarchyBuilder,
    HierarchyNode,
    ScanOptions,
    ScanResult,
    build_hierarchy,
    extract_project_name,
)
from .compare import HierarchyComparison, compare_with_remote
from .snapshot import load_hierarchy_snapshot, save_hierarchy_snapshot

__all__ = [
    "ConfigFile",
    "HierarchyBuilder",
    "HierarchyComparison",
    "HierarchyNode",
    "ScanOptions",
    "ScanResult",
    "build_hierarchy",
    "compare_with_remote",
    "extract_project_name",
    "load_hierarchy_snapshot",
    "save_hierarchy_snapshot",
]
