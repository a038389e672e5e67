"""
Config file discovery and loading for bpsync.

A working directory may carry ``.bpsync/config.yml``; a user-wide file
lives under ``~/.config/bpsync/``.  Both are YAML with two extensions:
``!include other.yml`` splices another file in place, and ``${VAR}`` /
``${VAR:-fallback}`` in any string value is filled from the environment
once everything has been merged.

Usage:
    from blueprint_sync.config_loader import load_hierarchical_config

    raw = load_hierarchical_config(Path("."))
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".bpsync"
GLOBAL_CONFIG = Path(".config") / "bpsync" / "config.yml"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


# ---------------------------------------------------------------------------
# Environment placeholders
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Fill ``${VAR}`` and ``${VAR:-fallback}`` placeholders in *value*.

    An unset or empty variable yields the fallback, or ``""`` without one.
    An unterminated ``${`` stays as written.
    """

    def _replace(match: re.Match) -> str:
        name, fallback = match.group(1), match.group(2)
        return os.environ.get(name) or fallback or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {key: _interpolate_recursive(val) for key, val in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# !include
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include``.

    ``_include_stack`` holds the resolved files currently being loaded, outer
    first.
    """

    _include_stack: list[Path]


def _include_constructor(loader: ConfigLoader, node: yaml.ScalarNode) -> Any:
    """Load the file named by an ``!include`` scalar."""
    including_file = Path(loader.name).resolve()
    target = Path(loader.construct_scalar(node))
    if not target.is_absolute():
        target = including_file.parent / target
    target = target.resolve()

    stack = loader._include_stack
    if target in stack:
        chain = " -> ".join(str(p) for p in [*stack, target])
        raise ValueError(f"Circular include detected: {chain}")
    if not target.exists():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {including_file})"
        )
    return _load_yaml_with_includes(target, _include_stack=[*stack, target])


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path,
    *,
    _include_stack: list[Path] | None = None,
) -> Any:
    """Parse *path* with ``ConfigLoader``."""
    path = path.resolve()
    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack or [path]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_config_files(cwd: Path | None = None) -> list[Path]:
    """Return the config files that exist, highest precedence first.

    Candidates are ``$BPSYNC_CONFIG``, then ``.bpsync/config.yml`` and
    ``.bpsync/config.yaml`` under *cwd*, then ``~/.config/bpsync/config.yml``.
    """
    base = cwd or Path.cwd()
    candidates = [
        base / PROJECT_DIR_NAME / "config.yml",
        base / PROJECT_DIR_NAME / "config.yaml",
        Path.home() / GLOBAL_CONFIG,
    ]
    explicit = os.environ.get("BPSYNC_CONFIG")
    if explicit:
        candidates.insert(0, Path(explicit).expanduser().resolve())
    return [p for p in candidates if p.exists()]


_STARTER_CONFIG = """\
# bpsync configuration
#
# Catalog connection settings can also be set via environment variables:
#   BPSYNC_API_URL, BPSYNC_TOKEN, BPSYNC_INSECURE, BPSYNC_TIMEOUT
#
# api:
#   url: https://catalog.example.com
#   token: ${BPSYNC_TOKEN}
#   timeout: 30
#
# scan:
#   max_depth: 10
#   recursive: true
#   file_patterns: [AGENTS.md, CLAUDE.md, .cursorrules, .windsurfrules]
#
# sync:
#   state_dir: .bpsync
#   conflict_strategy: skip      # skip | overwrite | interactive
#   diff_context_lines: 3
#   max_diff_lines: 5000
#   key_value_max_items: 20
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config(cwd: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter if none exists.

    The starter goes to ``<cwd>/.bpsync/config.yml``.
    """
    existing = discover_config_files(cwd)
    if existing:
        logger.debug("Using existing config %s", existing[0])
        return existing[0]

    config_path = (cwd or Path.cwd()) / PROJECT_DIR_NAME / "config.yml"
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)
    return config_path


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


def load_hierarchical_config(cwd: Path | None = None) -> dict[str, Any]:
    """Merge every discovered config file into one dict.

    Files are applied from the global one up to ``$BPSYNC_CONFIG``; a later
    file replaces whole top-level sections (``api``, ``sync``, ...) of an
    earlier one.  Placeholders are filled after the merge.  No files gives
    ``{}``.
    """
    paths = discover_config_files(cwd)
    if not paths:
        logger.debug("No config files found, using defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            data = _load_yaml_with_includes(path)
        except (OSError, ValueError, yaml.YAMLError):
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Ignoring %s: top level is %s, not a mapping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
