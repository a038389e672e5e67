"""Common types and source-detection tables for dialect conversion."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType

# =============================================================================
# Source detection
# =============================================================================
#
# A configuration file's dialect is decided by where it lives:
# - files inside a tool's command directory are that tool's command dialect
# - otherwise the file name (or a known suffix path) decides
# =============================================================================

# Lower-cased path suffix -> dialect name.  Longer suffixes are checked first.
SOURCE_FILES: MappingProxyType = MappingProxyType(
    {
        "agents.md": "agents",
        "claude.md": "claude",
        ".cursorrules": "cursor_legacy",
        ".cursor/rules/project.mdc": "cursor",
        "project.mdc": "cursor",
        ".github/copilot-instructions.md": "copilot",
        "copilot-instructions.md": "copilot",
        ".windsurfrules": "windsurf",
        ".clinerules": "cline",
        ".aider.conf.yml": "aider",
        ".goose/rules.txt": "goose",
        "codex.md": "codex",
        "supermaven.md": "supermaven",
    }
)

# Command directory -> command dialect
COMMAND_DIRS: MappingProxyType = MappingProxyType(
    {
        ".cursor/commands": "cursor-command",
        ".claude/commands": "claude-command",
        ".windsurf/workflows": "windsurf-workflow",
        ".copilot/prompts": "copilot-prompt",
        ".continue/prompts": "continue-prompt",
        ".opencode/commands": "opencode-command",
    }
)


def detect_dialect(path: str) -> str | None:
    """Return the dialect of the configuration file at *path*.

    Args:
        path: File path, absolute or relative, with either slash style.

    Returns:
        Dialect name, or ``None`` if the file is not a known config file.

    Examples:
        >>> detect_dialect(".claude/commands/deploy.md")
        'claude-command'
        >>> detect_dialect("packages/core/AGENTS.md")
        'agents'
    """
    normalized = path.replace("\\", "/").lower()

    for directory, dialect in COMMAND_DIRS.items():
        if f"/{directory}/" in f"/{normalized}":
            return dialect

    posix = PurePosixPath(normalized)
    for suffix in sorted(SOURCE_FILES, key=len, reverse=True):
        if normalized == suffix or normalized.endswith(f"/{suffix}"):
            return SOURCE_FILES[suffix]
    return SOURCE_FILES.get(posix.name)


@dataclass
class ConversionResult:
    """Result of dialect conversion with metadata and warnings.

    Attributes:
        text: Converted text output
        target_dialect: Canonical name of the dialect produced
        converted: True if the text was rewritten, False for pass-through
        warnings: Notes about content that did not survive the conversion
    """

    text: str
    target_dialect: str = "unknown"
    converted: bool = False
    warnings: list[str] = field(default_factory=list)
