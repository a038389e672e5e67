"""Conversion of a parsed configuration into platform dialects.

Every dialect is a pure rewrite of the raw Markdown text.  Dialects are
grouped into families:

- ``PASS_THROUGH`` -- Markdown-compatible targets, text returned unchanged.
- ``COMMAND`` -- executable prompt snippets, always passed through because
  the host tool invokes them verbatim.
- ``FRONT_MATTER`` -- fixed metadata block, first top-level heading
  replaced by a fixed title.
- ``FLAT_TEXT`` -- heading markers rewritten to plain-text markers.
- ``KEY_VALUE`` -- fixed preamble plus a bounded bullet list of lines.
- ``HEADER`` -- fixed title line prepended to the unchanged text.

The dialect table is immutable and injected into ``FormatConverter``; the
module-level ``convert()`` uses the default table.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping

from blueprint_sync.converters.common import ConversionResult
from blueprint_sync.converters.sections import ParsedConfig, parse_config
from blueprint_sync.errors import UnknownDialectError

logger = logging.getLogger(__name__)

DEFAULT_KEY_VALUE_MAX_ITEMS = 20

FRONT_MATTER_BLOCK = (
    "---\n"
    'description: "AI coding rules"\n'
    'globs: ["**/*"]\n'
    "alwaysApply: true\n"
    "---\n"
)
FRONT_MATTER_TITLE = "# AI Assistant Configuration"

KEY_VALUE_PREAMBLE = (
    "# Aider configuration\n"
    "# Converted from AI IDE configuration\n"
    "\n"
    "lint-cmd: []\n"
    "auto-test: false\n"
    "read: []\n"
    "# AI rules converted below as conventions\n"
    "conventions:\n"
)

_FIRST_TOP_HEADING = re.compile(r"^#[ \t]+.*$", re.MULTILINE)
_TOP_HEADING = re.compile(r"^#[ \t]+", re.MULTILINE)
_SECOND_HEADING = re.compile(r"^##[ \t]+", re.MULTILINE)
_MINOR_HEADING = re.compile(r"^#{3,6}[ \t]+", re.MULTILINE)

_BOLD = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
_ITALIC_STAR = re.compile(r"(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?![\w*])")
_ITALIC_UNDERSCORE = re.compile(r"(?<![\w_])_(?=\S)(.+?)(?<=\S)_(?![\w_])")


class DialectFamily(str, Enum):
    """How a dialect rewrites the raw text."""

    PASS_THROUGH = "pass_through"
    COMMAND = "command"
    FRONT_MATTER = "front_matter"
    FLAT_TEXT = "flat_text"
    KEY_VALUE = "key_value"
    HEADER = "header"


@dataclass(frozen=True)
class DialectSpec:
    """One entry of the dialect table.

    Attributes:
        name: Canonical dialect name.
        display_name: Human-readable platform name.
        filename: Output path relative to the project root.
        family: Rewrite family.
        top_marker: FLAT_TEXT replacement for ``# `` headings.
        second_marker: FLAT_TEXT replacement for ``## `` headings.
        strip_emphasis: FLAT_TEXT removes bold/italic markup when set.
        header: HEADER line prepended to the text.
    """

    name: str
    display_name: str
    filename: str
    family: DialectFamily
    top_marker: str = ""
    second_marker: str = ""
    strip_emphasis: bool = False
    header: str = ""

    @property
    def is_command(self) -> bool:
        return self.family is DialectFamily.COMMAND


def _spec(name: str, display: str, filename: str, family: DialectFamily, **kw) -> tuple[str, DialectSpec]:
    return name, DialectSpec(name, display, filename, family, **kw)


DEFAULT_DIALECTS: Mapping[str, DialectSpec] = MappingProxyType(
    dict(
        [
            _spec("agents", "AGENTS.md (Universal)", "AGENTS.md", DialectFamily.PASS_THROUGH),
            _spec("claude", "CLAUDE.md", "CLAUDE.md", DialectFamily.PASS_THROUGH),
            _spec("codex", "Codex", "codex.md", DialectFamily.PASS_THROUGH),
            _spec("supermaven", "Supermaven", "supermaven.md", DialectFamily.PASS_THROUGH),
            _spec("cursor", "Cursor Rules (.mdc)", ".cursor/rules/project.mdc", DialectFamily.FRONT_MATTER),
            _spec(
                "cursor_legacy",
                "Cursor Rules (legacy)",
                ".cursorrules",
                DialectFamily.FLAT_TEXT,
                top_marker="",
                second_marker="\n",
            ),
            _spec(
                "windsurf",
                "Windsurf Rules",
                ".windsurfrules",
                DialectFamily.FLAT_TEXT,
                top_marker="=== ",
                second_marker="--- ",
                strip_emphasis=True,
            ),
            _spec(
                "cline",
                "Cline Rules",
                ".clinerules",
                DialectFamily.FLAT_TEXT,
                top_marker="=== ",
                second_marker="--- ",
                strip_emphasis=True,
            ),
            _spec(
                "goose",
                "Goose Rules",
                ".goose/rules.txt",
                DialectFamily.FLAT_TEXT,
                top_marker="=== ",
                second_marker="--- ",
                strip_emphasis=True,
            ),
            _spec("aider", "Aider Config", ".aider.conf.yml", DialectFamily.KEY_VALUE),
            _spec(
                "copilot",
                "GitHub Copilot",
                ".github/copilot-instructions.md",
                DialectFamily.HEADER,
                header="# GitHub Copilot Instructions",
            ),
            _spec("cursor-command", "Cursor Command", ".cursor/commands/command.md", DialectFamily.COMMAND),
            _spec("claude-command", "Claude Code Command", ".claude/commands/command.md", DialectFamily.COMMAND),
            _spec("windsurf-workflow", "Windsurf Workflow", ".windsurf/workflows/workflow.md", DialectFamily.COMMAND),
            _spec("copilot-prompt", "Copilot Prompt", ".copilot/prompts/prompt.md", DialectFamily.COMMAND),
            _spec("continue-prompt", "Continue Prompt", ".continue/prompts/prompt.md", DialectFamily.COMMAND),
            _spec("opencode-command", "OpenCode Command", ".opencode/commands/command.md", DialectFamily.COMMAND),
        ]
    )
)


def strip_emphasis(text: str) -> str:
    """Remove bold and italic markup, keeping the emphasised text.

    List bullets (``* item``) and identifiers such as ``snake_case`` are
    left alone.
    """
    text = _BOLD.sub(r"\2", text)
    text = _ITALIC_STAR.sub(r"\1", text)
    text = _ITALIC_UNDERSCORE.sub(r"\1", text)
    return text.replace("**", "")


class FormatConverter:
    """Convert parsed configurations using an injected dialect table.

    Args:
        dialects: Mapping of canonical dialect name to ``DialectSpec``.
        key_value_max_items: Item cap for ``KEY_VALUE`` dialects.
    """

    def __init__(
        self,
        dialects: Mapping[str, DialectSpec] = DEFAULT_DIALECTS,
        key_value_max_items: int = DEFAULT_KEY_VALUE_MAX_ITEMS,
    ) -> None:
        self._dialects = MappingProxyType(dict(dialects))
        self._max_items = key_value_max_items

    @property
    def dialects(self) -> Mapping[str, DialectSpec]:
        return self._dialects

    def resolve(self, target: str) -> DialectSpec:
        """Look up *target*, case-insensitively and with ``-``/``_`` interchangeable.

        Raises:
            UnknownDialectError: If no dialect matches.
        """
        key = target.strip().lower()
        for candidate in (key, key.replace("-", "_"), key.replace("_", "-")):
            if candidate in self._dialects:
                return self._dialects[candidate]
        raise UnknownDialectError(target, sorted(self._dialects))

    def convert(self, config: ParsedConfig | str, target: str) -> str:
        """Return *config* rendered in the *target* dialect."""
        return self.convert_with_warnings(config, target).text

    def convert_with_warnings(
        self, config: ParsedConfig | str, target: str
    ) -> ConversionResult:
        """Convert and report content that the dialect could not carry.

        Raises:
            UnknownDialectError: Before any conversion if *target* is unknown.
        """
        spec = self.resolve(target)
        if isinstance(config, str):
            config = parse_config(config)
        raw = config.raw
        warnings: list[str] = []

        match spec.family:
            case DialectFamily.PASS_THROUGH | DialectFamily.COMMAND:
                return ConversionResult(
                    text=raw, target_dialect=spec.name, converted=False
                )
            case DialectFamily.FRONT_MATTER:
                text = self._front_matter(raw)
            case DialectFamily.FLAT_TEXT:
                text = self._flat_text(raw, spec)
            case DialectFamily.KEY_VALUE:
                text, dropped = self._key_value(raw)
                if dropped:
                    warnings.append(
                        f"{dropped} line(s) dropped: {spec.name} keeps at most "
                        f"{self._max_items} conventions"
                    )
                    logger.warning(
                        "Truncated %d line(s) converting to %s",
                        dropped,
                        spec.name,
                    )
            case DialectFamily.HEADER:
                text = f"{spec.header}\n\n{raw}\n"

        return ConversionResult(
            text=text,
            target_dialect=spec.name,
            converted=True,
            warnings=warnings,
        )

    def target_filename(
        self, target: str, source_path: str | None = None
    ) -> str:
        """Return the output path for *target*.

        Command dialects keep the source file name and only change
        directory.
        """
        spec = self.resolve(target)
        if spec.is_command and source_path:
            directory = PurePosixPath(spec.filename).parent
            name = PurePosixPath(source_path.replace("\\", "/")).name
            return str(directory / name)
        return spec.filename

    # ------------------------------------------------------------------
    # Family rewrites
    # ------------------------------------------------------------------

    @staticmethod
    def _front_matter(raw: str) -> str:
        body = _FIRST_TOP_HEADING.sub(
            lambda _m: FRONT_MATTER_TITLE, raw, count=1
        )
        return f"{FRONT_MATTER_BLOCK}\n{body}\n"

    @staticmethod
    def _flat_text(raw: str, spec: DialectSpec) -> str:
        text = _TOP_HEADING.sub(lambda _m: spec.top_marker, raw)
        text = _SECOND_HEADING.sub(lambda _m: spec.second_marker, text)
        text = _MINOR_HEADING.sub("", text)
        if spec.strip_emphasis:
            text = strip_emphasis(text)
        return text.strip()

    def _key_value(self, raw: str) -> tuple[str, int]:
        lines = [
            line
            for line in raw.split("\n")
            if line.strip() and not line.startswith("#")
        ]
        kept = lines[: self._max_items]
        items = "\n".join(
            f"  - {json.dumps(line.strip(), ensure_ascii=False)}"
            for line in kept
        )
        return f"{KEY_VALUE_PREAMBLE}{items}\n", len(lines) - len(kept)


_default_converter = FormatConverter()


def convert(config: ParsedConfig | str, target: str) -> str:
    """Convert with the default dialect table."""
    return _default_converter.convert(config, target)


def convert_with_warnings(
    config: ParsedConfig | str, target: str
) -> ConversionResult:
    """Convert with the default dialect table, returning warnings."""
    return _default_converter.convert_with_warnings(config, target)
