"""Markdown section parsing.

Splits a configuration file into an ordered list of titled sections.  The
parser is line based: one to six ``#`` followed by whitespace starts a
heading, also inside code fences.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")

PREAMBLE_LEVEL = 0


@dataclass(frozen=True)
class Section:
    """A heading and the text below it.

    ``level`` is the number of ``#`` characters; the untitled preamble that
    precedes the first heading uses ``PREAMBLE_LEVEL``.
    """

    title: str
    body: str
    level: int

    @property
    def is_preamble(self) -> bool:
        return self.level == PREAMBLE_LEVEL

    def heading(self) -> str:
        """Return the heading line, or ``""`` for the preamble."""
        if self.is_preamble:
            return ""
        return f"{'#' * self.level} {self.title}"


@dataclass(frozen=True)
class ParsedConfig:
    """Raw configuration text plus its sections, input to the converters."""

    raw: str
    sections: list[Section] = field(default_factory=list)

    def section_titles(self) -> list[str]:
        return [s.title for s in self.sections if not s.is_preamble]


def parse_sections(text: str) -> list[Section]:
    """Split *text* into sections in document order.

    A preamble before the first heading is kept as an untitled section
    unless it is blank.
    """
    sections: list[Section] = []
    title = ""
    level = PREAMBLE_LEVEL
    body_lines: list[str] = []

    def flush() -> None:
        body = "\n".join(body_lines).strip()
        if level == PREAMBLE_LEVEL and not body:
            return
        sections.append(Section(title=title, body=body, level=level))

    for line in text.split("\n"):
        match = _HEADING.match(line.rstrip("\r"))
        if match:
            flush()
            level = len(match.group(1))
            title = match.group(2).strip()
            body_lines = []
        else:
            body_lines.append(line)

    flush()
    return sections


def render_sections(sections: list[Section]) -> str:
    """Reassemble *sections* into Markdown, one blank line between blocks."""
    blocks: list[str] = []
    for section in sections:
        parts = [p for p in (section.heading(), section.body) if p]
        blocks.append("\n\n".join(parts) if parts else "")
    return "\n\n".join(blocks)


def parse_config(text: str) -> ParsedConfig:
    """Parse *text* into a ``ParsedConfig`` for dialect conversion."""
    return ParsedConfig(raw=text, sections=parse_sections(text))
