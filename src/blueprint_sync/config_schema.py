"""Unified configuration schema for blueprint_sync.

Defines Pydantic models for the config file with dedicated sections for
the catalog API, repository scanning, synchronisation and logging.

Usage:
    from blueprint_sync.config_schema import build_config
    from blueprint_sync.config_loader import load_hierarchical_config

    unified = build_config(load_hierarchical_config())
    options = unified.scan.to_scan_options()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .hierarchy.builder import ScanOptions

logger = logging.getLogger(__name__)

DEFAULT_FILE_PATTERNS: tuple[str, ...] = (
    "AGENTS.md",
    "CLAUDE.md",
    ".cursorrules",  # Legacy
    ".windsurfrules",
)

DEFAULT_SKIP_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    ".next",
    "dist",
    "build",
    "out",
    "coverage",
    ".cache",
    "__pycache__",
    "venv",
    ".venv",
    "target",
    "vendor",
    ".idea",
    ".vscode",
)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ApiConfig(BaseModel):
    """Blueprint catalog connection settings.

    All fields are optional: env vars and CLI args can supply them at
    runtime, and offline commands (scan, diff, convert) never need them.
    """

    url: str | None = Field(
        default=None, description="Blueprint catalog base URL"
    )
    token: str | None = Field(default=None, description="API token")
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Per-request timeout in seconds",
    )

    model_config = {"frozen": True}


class ScanConfig(BaseModel):
    """Repository scan settings used by the hierarchy builder."""

    max_depth: int = Field(default=10, ge=0, le=100)
    recursive: bool = True
    file_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FILE_PATTERNS),
        min_length=1,
    )
    skip_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_DIRS)
    )

    model_config = {"frozen": True}

    def to_scan_options(self) -> ScanOptions:
        """Build the immutable ``ScanOptions`` the builder consumes."""
        from .hierarchy.builder import ScanOptions

        return ScanOptions(
            max_depth=self.max_depth,
            file_patterns=tuple(self.file_patterns),
            recursive=self.recursive,
            skip_dirs=frozenset(self.skip_dirs),
        )


class SyncConfig(BaseModel):
    """Synchronisation behaviour.

    Attributes:
        state_dir: Directory (relative to the working directory) holding
            the link table and hierarchy snapshot.
        conflict_strategy: Resolver used when a pull would overwrite
            something; see ``blueprint_sync.sync.resolver``.
        diff_context_lines: Context lines shown around changes.
        max_diff_lines: Per-side line limit for the O(m*n) diff.
        key_value_max_items: Item cap for the structured key-value dialect.
    """

    state_dir: str = ".bpsync"
    conflict_strategy: Literal["skip", "overwrite", "interactive"] = "skip"
    diff_context_lines: int = Field(default=3, ge=0, le=100)
    max_diff_lines: int = Field(default=5000, ge=1, le=100000)
    key_value_max_items: int = Field(default=20, ge=1, le=1000)

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()`` (zero-config)
    is always valid.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.
    Unknown top-level sections are ignored with a warning.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    known = set(UnifiedConfig.model_fields)
    unknown = sorted(set(raw_data) - known)
    if unknown:
        logger.warning("Ignoring unknown config sections: %s", unknown)

    return UnifiedConfig(
        **{k: v for k, v in raw_data.items() if k in known}
    )
