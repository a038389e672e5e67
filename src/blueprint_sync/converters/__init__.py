"""Section parsing and conversion between assistant-config dialects."""

from .common import ConversionResult, detect_dialect
from .dialects import (
    DEFAULT_DIALECTS,
    DialectFamily,
    DialectSpec,
    FormatConverter,
    convert,
    convert_with_warnings,
)
from .sections import ParsedConfig, Section, parse_config, parse_sections, render_sections

__all__ = [
    "ConversionResult",
    "DEFAULT_DIALECTS",
    "DialectFamily",
    "DialectSpec",
    "FormatConverter",
    "ParsedConfig",
    "Section",
    "convert",
    "convert_with_warnings",
    "detect_dialect",
    "parse_config",
    "parse_sections",
    "render_sections",
]
