"""Hierarchy snapshot persistence.

A scan can be saved to ``<state_dir>/hierarchy.json`` so other tooling can
reuse the repository structure without rescanning.  The snapshot holds
paths, names and section titles only, never file content.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path, PurePath

from blueprint_sync.hierarchy.builder import ConfigFile, HierarchyNode

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "hierarchy.json"


def _file_entry(config: ConfigFile) -> dict:
    return {
        "path": config.relative_path,
        "name": config.name,
        "sections": [s.title for s in config.sections if not s.is_preamble],
    }


def snapshot_dict(nodes: list[HierarchyNode], root: PurePath) -> dict:
    """Build the JSON-serialisable snapshot of *nodes*."""
    total = sum(len(node.files) for node in nodes)
    hierarchy = []
    for node in nodes:
        hierarchy.append(
            {
                "root_path": node.root_directory.as_posix(),
                "root_file": node.root.relative_path if node.root else None,
                "root_name": node.root.name if node.root else None,
                "root_sections": (
                    _file_entry(node.root)["sections"] if node.root else []
                ),
                "children": [_file_entry(c) for c in node.children],
            }
        )
    return {
        "version": 1,
        "scanned_at": datetime.now(timezone.utc).isoformat(),
        "root_path": root.as_posix(),
        "total_files": total,
        "hierarchy": hierarchy,
    }


def save_hierarchy_snapshot(
    nodes: list[HierarchyNode], root: PurePath, state_dir: Path
) -> Path:
    """Write the snapshot of *nodes* atomically and return its path."""
    state_dir.mkdir(parents=True, exist_ok=True)
    target = state_dir / SNAPSHOT_FILENAME
    fd, tmp_path = tempfile.mkstemp(dir=str(state_dir), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(snapshot_dict(nodes, root), fh, indent=2)
        os.replace(tmp_path, target)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.info("Hierarchy snapshot saved to %s", target)
    return target


def load_hierarchy_snapshot(state_dir: Path) -> dict | None:
    """Return the saved snapshot, or ``None`` if there is none."""
    path = state_dir / SNAPSHOT_FILENAME
    if not path.exists():
        return None
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)
