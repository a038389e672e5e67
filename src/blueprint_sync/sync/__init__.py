"""Synchronisation of local configuration files with catalog blueprints.

Modules:

- ``engine``   -- ``SyncCoordinator``: pull, push, hierarchy pull, link,
  status and remote diff.
- ``state``    -- ``LinkTracker``: the per-working-directory link table.
- ``differ``   -- LCS line diff, rendering and stats.
- ``models``   -- catalog values, links and result contracts.
- ``resolver`` -- conflict resolution strategies (skip, overwrite,
  interactive, callback).
- ``reporter`` -- human-readable and JSON result formatting.

Usage example
-------------
::

    from pathlib import Path
    from blueprint_sync.config import load_config
    from blueprint_sync.core.client import BlueprintClient
    from blueprint_sync.sync import SyncCoordinator, format_hierarchy_report

    coordinator = SyncCoordinator(
        api=BlueprintClient(load_config()),
        working_dir=Path.cwd(),
    )

    result = coordinator.pull("bp_abc123")
    report = coordinator.pull_hierarchy("ha_xyz789")
    print(format_hierarchy_report(report))
"""

from .differ import DiffEntry, DiffKind, compute_diff, diff_stats, render_diff
from .engine import SyncCoordinator
from .models import (
    HierarchyPullReport,
    PullResult,
    PushResult,
    RemoteBlueprint,
    RemoteHierarchy,
    StatusResult,
    SyncStatus,
    TrackedLink,
)
from .reporter import (
    format_hierarchy_report,
    format_pull_result,
    format_push_result,
    report_to_json,
)
from .state import LinkTracker

__all__ = [
    "DiffEntry",
    "DiffKind",
    "HierarchyPullReport",
    "LinkTracker",
    "PullResult",
    "PushResult",
    "RemoteBlueprint",
    "RemoteHierarchy",
    "StatusResult",
    "SyncCoordinator",
    "SyncStatus",
    "TrackedLink",
    "compute_diff",
    "diff_stats",
    "format_hierarchy_report",
    "format_pull_result",
    "format_push_result",
    "render_diff",
    "report_to_json",
]
