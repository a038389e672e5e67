"""Result formatting functions.

Provides human-readable and machine-readable output for coordinator and
scan results:

- ``format_pull_result`` / ``format_push_result`` / ``format_status`` --
  one line (plus an optional diff) per item.
- ``format_hierarchy_report`` -- hierarchy pull summary with per-item
  sections.
- ``format_scan_result`` -- scanned hierarchy as an indented tree.
- ``report_to_json`` -- structured dict for ``--json`` output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import PullResult, SyncStatus

if TYPE_CHECKING:
    from ..hierarchy.builder import ScanResult
    from .models import HierarchyPullReport, PushResult, StatusResult

_STATUS_LABELS = {
    SyncStatus.UNLINKED: "not linked",
    SyncStatus.LINKED: "linked, file missing",
    SyncStatus.IN_SYNC: "in sync",
    SyncStatus.LOCAL_AHEAD: "local changes",
    SyncStatus.REMOTE_AHEAD: "remote changes",
    SyncStatus.CONFLICTING: "conflict",
}


# ------------------------------------------------------------------
# Single results
# ------------------------------------------------------------------


def format_pull_result(result: PullResult) -> str:
    """Format one pull outcome as a single line."""
    target = result.local_path or "?"
    if result.error:
        return f"FAILED  {result.blueprint_id} -> {target}: {result.error}"
    if result.skipped:
        return f"SKIPPED {result.blueprint_id} -> {target}"
    if result.written:
        return f"PULLED  {result.blueprint_id} -> {target}"
    return f"OK      {result.blueprint_id} -> {target} (already up to date)"


def format_push_result(result: PushResult) -> str:
    """Format one push outcome, including the diff preview on conflict."""
    target = result.blueprint_id or "?"
    if result.status is SyncStatus.CONFLICTING:
        lines = [
            f"CONFLICT {result.local_path} -> {target}: remote changed since last sync",
            f"  local:  {result.local_checksum}",
            f"  remote: {result.remote_checksum}",
            f"  linked: {result.link_checksum}",
        ]
        if result.diff is not None and result.diff.text:
            lines.append("")
            lines.append(result.diff.text)
        elif result.diff is not None and result.diff.too_large:
            lines.append("  (diff too large to display)")
        return "\n".join(lines)
    if result.error:
        return f"FAILED   {result.local_path} -> {target}: {result.error}"
    return f"PUSHED   {result.local_path} -> {target}"


def format_status(result: StatusResult) -> str:
    """Format one status line."""
    if result.error:
        return f"{result.local_path}: error: {result.error}"
    label = _STATUS_LABELS.get(result.status, "unknown")
    if result.blueprint_id:
        return f"{result.local_path}: {label} ({result.blueprint_id})"
    return f"{result.local_path}: {label}"


# ------------------------------------------------------------------
# Hierarchy pull
# ------------------------------------------------------------------


def format_hierarchy_report(report: HierarchyPullReport) -> str:
    """Format a hierarchy pull as human-readable text.

    Sections are only included when they contain at least one result.
    """
    lines = [report.summary(), ""]

    if report.downloaded:
        lines.append("Downloaded:")
        for r in report.downloaded:
            lines.append(f"  {r.blueprint_id} -> {r.local_path}")
        lines.append("")

    if report.skipped:
        lines.append("Skipped:")
        for r in report.skipped:
            lines.append(f"  {r.blueprint_id} -> {r.local_path}")
        lines.append("")

    if report.failed:
        lines.append("Failed:")
        for r in report.failed:
            lines.append(f"  {r.blueprint_id}: {r.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Scan
# ------------------------------------------------------------------


def format_scan_result(result: ScanResult) -> str:
    """Format a scan as an indented tree of roots and children."""
    lines = [f"Found {result.total_found} configuration file(s) in {result.root}", ""]
    for node in result.hierarchy:
        if node.root is not None:
            lines.append(f"{node.root.relative_path}  [{node.root.name}]")
        for child in node.children:
            lines.append(f"  +- {child.relative_path}  [{child.name}]")
    if result.errors:
        lines.append("")
        lines.append("Errors:")
        for error in result.errors:
            lines.append(f"  {error}")
    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def _pull_entry(r: PullResult) -> dict:
    entry: dict = {
        "blueprint_id": r.blueprint_id,
        "local_path": r.local_path,
        "status": r.status.value if r.status else None,
        "written": r.written,
        "skipped": r.skipped,
        "success": r.success,
    }
    if r.error:
        entry["error"] = r.error
    if r.error_class:
        entry["error_class"] = r.error_class.value
    return entry


def report_to_json(report: HierarchyPullReport) -> dict:
    """Convert a hierarchy pull report to a structured dict.

    Args:
        report: The hierarchy pull report.

    Returns:
        Dict with hierarchy info, counts, and per-result details.
    """
    data = {
        "hierarchy_id": report.hierarchy_id,
        "hierarchy_name": report.hierarchy_name,
        "counts": {
            "total": len(report.results),
            "downloaded": len(report.downloaded),
            "skipped": len(report.skipped),
            "failed": len(report.failed),
        },
        "results": [_pull_entry(r) for r in report.results],
    }
    if report.error:
        data["error"] = report.error
    return data
