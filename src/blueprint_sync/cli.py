"""bpsync command line.

Offline commands (``scan``, ``convert``, ``diff`` with two files, ``init``)
need no catalog credentials.  Remote commands load the connection settings
with ``load_config()`` (CLI > env / .env > YAML) and run through a
``SyncCoordinator``.

Exit codes: 0 on success (including skipped items), 1 on any failure or
conflict, 2 on usage errors (argparse).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from . import __version__
from .config import load_config
from .config_loader import ensure_config, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .converters import FormatConverter, detect_dialect, parse_config
from .core.client import BlueprintClient
from .errors import BlueprintSyncError
from .file_handler import read_file_with_encoding, write_file
from .hierarchy import (
    HierarchyBuilder,
    compare_with_remote,
    save_hierarchy_snapshot,
)
from .logger import setup_logging
from .sync.differ import compute_diff, render_diff
from .sync.engine import SyncCoordinator
from .sync.reporter import (
    format_hierarchy_report,
    format_pull_result,
    format_push_result,
    format_scan_result,
    format_status,
    report_to_json,
)
from .sync.resolver import InteractiveResolver, create_resolver

logger = logging.getLogger(__name__)


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bpsync",
        description="Keep AI-assistant configuration files in sync with a blueprint catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the configuration-file hierarchy of a monorepo
  bpsync scan .

  # Convert AGENTS.md to Cursor rules
  bpsync convert AGENTS.md --to cursor --write

  # Download a blueprint and push local edits back
  bpsync pull bp_abc123
  bpsync push AGENTS.md

  # Download a whole hierarchy, overwriting local edits
  bpsync pull-hierarchy ha_xyz789 --yes
        """,
    )
    parser.add_argument(
        "--api-url",
        help="Catalog URL (takes precedence over BPSYNC_API_URL and config files)",
    )
    parser.add_argument(
        "--token",
        help="API token (visible in process list -- prefer BPSYNC_TOKEN)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--cwd",
        type=Path,
        default=None,
        help="Working directory that local paths are relative to (default: current directory)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write log records to this file")
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"bpsync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Write a starter .bpsync/config.yml")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("scan", help="Find configuration files and show their hierarchy")
    p.add_argument("path", nargs="?", default=".", help="Directory to scan")
    p.add_argument("--max-depth", type=int, help="Maximum directory depth")
    p.add_argument("--no-recursive", action="store_true", help="Scan the top directory only")
    p.add_argument("--save", action="store_true", help="Save .bpsync/hierarchy.json")
    p.add_argument("--compare", metavar="HIERARCHY_ID", help="Compare with a remote hierarchy")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_scan)

    p = sub.add_parser("convert", help="Convert a configuration file to another dialect")
    p.add_argument("source", help="Source configuration file")
    p.add_argument("--to", required=True, dest="target", help="Target dialect")
    p.add_argument("--write", action="store_true", help="Write to the dialect's file instead of stdout")
    p.set_defaults(func=cmd_convert)

    p = sub.add_parser(
        "diff",
        help="Diff two local files, or a linked file against its blueprint",
    )
    p.add_argument("paths", nargs="+", metavar="PATH", help="One linked file, or OLD NEW")
    p.add_argument("--blueprint", help="Diff against this blueprint instead of the linked one")
    p.add_argument("--context", type=int, help="Context lines around changes")
    p.set_defaults(func=cmd_diff)

    p = sub.add_parser("pull", help="Download a blueprint")
    p.add_argument("blueprint_id")
    p.add_argument("path", nargs="?", help="Target file (default: derived from blueprint type)")
    p.add_argument("--yes", "-y", action="store_true", help="Overwrite local changes without asking")
    p.set_defaults(func=cmd_pull)

    p = sub.add_parser("push", help="Upload a linked file")
    p.add_argument("path")
    p.add_argument("--force", action="store_true", help="Overwrite remote changes")
    p.set_defaults(func=cmd_push)

    p = sub.add_parser("pull-hierarchy", help="Download every blueprint of a hierarchy")
    p.add_argument("hierarchy_id")
    p.add_argument("--yes", "-y", action="store_true", help="Overwrite local changes without asking")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_pull_hierarchy)

    p = sub.add_parser("link", help="Link an existing file to a blueprint")
    p.add_argument("path")
    p.add_argument("blueprint_id")
    p.set_defaults(func=cmd_link)

    p = sub.add_parser("status", help="Show the sync state of linked files")
    p.add_argument("paths", nargs="*", metavar="PATH", help="Files to check (default: all linked)")
    p.set_defaults(func=cmd_status)

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _coordinator(
    args: argparse.Namespace, settings: UnifiedConfig, overwrite: bool = False
) -> SyncCoordinator:
    config = load_config(
        url=args.api_url,
        token=args.token,
        insecure=args.insecure,
        debug=args.debug,
        yaml_fallbacks=settings.api.model_dump(exclude_none=True),
    )
    strategy = "overwrite" if overwrite else settings.sync.conflict_strategy
    return SyncCoordinator(
        api=BlueprintClient(config),
        working_dir=args.cwd,
        config=settings.sync,
        resolver=create_resolver(strategy),
    )


def _report_pending(coordinator: SyncCoordinator) -> None:
    resolver = coordinator.resolver
    if not isinstance(resolver, InteractiveResolver):
        return
    for conflict in resolver.pending_conflicts:
        _err(f"\nNeeds review: {conflict.local_path} ({conflict.kind.value})")
        if conflict.diff:
            _err(conflict.diff)
    if resolver.pending_conflicts:
        _err("\nRe-run with --yes to overwrite.")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_init(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    path = ensure_config(args.cwd)
    print(path)
    return 0


def cmd_scan(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    options = settings.scan.model_copy(
        update={
            k: v
            for k, v in {
                "max_depth": args.max_depth,
                "recursive": False if args.no_recursive else None,
            }.items()
            if v is not None
        }
    ).to_scan_options()
    root = (args.cwd / args.path).resolve()
    result = HierarchyBuilder(options=options).build(root)

    if args.save:
        save_hierarchy_snapshot(
            result.hierarchy, root, args.cwd / settings.sync.state_dir
        )

    comparison = None
    if args.compare:
        remote = _coordinator(args, settings).api.get_hierarchy(args.compare)
        comparison = compare_with_remote(result.hierarchy, remote)

    if args.json:
        data = {
            "root": root.as_posix(),
            "total_found": result.total_found,
            "files": [
                {
                    "path": f.relative_path,
                    "depth": f.depth,
                    "name": f.name,
                    "parent": f.parent_path,
                    "sections": [s.title for s in f.sections],
                }
                for f in result.files
            ],
            "errors": result.errors,
        }
        if comparison is not None:
            data["comparison"] = {
                "matched": comparison.matched,
                "local_only": comparison.local_only,
                "remote_only": comparison.remote_only,
                "parent_mismatches": [vars(m) for m in comparison.parent_mismatches],
            }
        print(json.dumps(data, indent=2))
    else:
        print(format_scan_result(result))
        if comparison is not None:
            print()
            print("Matches remote hierarchy" if comparison.identical else "Differs from remote hierarchy:")
            for path in comparison.local_only:
                print(f"  local only:  {path}")
            for path in comparison.remote_only:
                print(f"  remote only: {path}")
            for m in comparison.parent_mismatches:
                print(f"  parent of {m.path}: local {m.local_parent}, remote {m.remote_parent}")
    return 0


def cmd_convert(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    converter = FormatConverter(key_value_max_items=settings.sync.key_value_max_items)
    source = args.cwd / args.source
    content, _ = read_file_with_encoding(source)
    if detect_dialect(args.source) is None:
        logger.info("%s is not a known configuration file, converting anyway", args.source)

    result = converter.convert_with_warnings(parse_config(content), args.target)
    for warning in result.warnings:
        _err(f"warning: {warning}")

    if args.write:
        target = args.cwd / converter.target_filename(args.target, args.source)
        write_file(target, result.text)
        print(f"Wrote {target}")
    else:
        sys.stdout.write(result.text)
        if not result.text.endswith("\n"):
            sys.stdout.write("\n")
    return 0


def cmd_diff(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    context = args.context if args.context is not None else settings.sync.diff_context_lines
    if len(args.paths) == 2:
        old, _ = read_file_with_encoding(args.cwd / args.paths[0])
        new, _ = read_file_with_encoding(args.cwd / args.paths[1])
        entries = compute_diff(old, new, max_lines=settings.sync.max_diff_lines)
        print(render_diff(entries, context))
        return 0
    if len(args.paths) != 1:
        _err("diff takes one linked file or two files")
        return 1

    preview = _coordinator(args, settings).diff_remote(args.paths[0], args.blueprint)
    if preview.error:
        _err(preview.error)
        return 1
    if preview.too_large:
        _err("Diff too large to display")
        return 1
    print(preview.text)
    print(f"\n{preview.added} added, {preview.removed} removed")
    return 0


def cmd_pull(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    coordinator = _coordinator(args, settings, overwrite=args.yes)
    result = coordinator.pull(args.blueprint_id, args.path)
    print(format_pull_result(result))
    _report_pending(coordinator)
    return 1 if result.error else 0


def cmd_push(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    result = _coordinator(args, settings).push(args.path, force=args.force)
    print(format_push_result(result))
    return 0 if result.success else 1


def cmd_pull_hierarchy(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    coordinator = _coordinator(args, settings, overwrite=args.yes)
    report = coordinator.pull_hierarchy(args.hierarchy_id)
    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    else:
        print(format_hierarchy_report(report))
    _report_pending(coordinator)
    return 1 if report.error or report.failed else 0


def cmd_link(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    result = _coordinator(args, settings).link(args.path, args.blueprint_id)
    print(format_status(result))
    return 1 if result.error else 0


def cmd_status(args: argparse.Namespace, settings: UnifiedConfig) -> int:
    coordinator = _coordinator(args, settings)
    if args.paths:
        results = [coordinator.status(p) for p in args.paths]
    else:
        results = coordinator.status_all()
        if not results:
            print("No linked files.")
    for result in results:
        print(format_status(result))
    return 1 if any(r.error for r in results) else 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``bpsync`` console script."""
    args = build_parser().parse_args(argv)
    args.cwd = (args.cwd or Path.cwd()).resolve()

    load_dotenv(args.cwd / ".env")
    try:
        settings = build_config(load_hierarchical_config(args.cwd))
    except (ValidationError, yaml.YAMLError, OSError) as exc:
        _err(f"Invalid configuration:\n{exc}")
        return 1

    setup_logging(
        debug=args.debug,
        log_file=args.log_file or settings.logging.file,
        debug_format=args.log_format,
        level=settings.logging.level,
    )

    try:
        return args.func(args, settings)
    except (BlueprintSyncError, ValueError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        _err(f"Error: {exc}")
        return 1
    except KeyboardInterrupt:
        _err("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
