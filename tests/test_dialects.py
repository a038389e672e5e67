"""Tests for dialect conversion and source detection."""

import pytest

from blueprint_sync.converters import (
    DEFAULT_DIALECTS,
    DialectFamily,
    DialectSpec,
    FormatConverter,
    convert,
    convert_with_warnings,
    detect_dialect,
    parse_config,
)
from blueprint_sync.converters.dialects import (
    FRONT_MATTER_BLOCK,
    FRONT_MATTER_TITLE,
    KEY_VALUE_PREAMBLE,
    strip_emphasis,
)
from blueprint_sync.errors import UnknownDialectError

SAMPLE = "# My Project\n\nIntro **bold** text.\n\n## Setup\nRun *it*.\n\n### Details\nmore"


class TestPassThrough:
    @pytest.mark.parametrize("target", ["agents", "claude", "codex", "supermaven"])
    def test_markdown_targets_unchanged(self, target):
        assert convert(SAMPLE, target) == SAMPLE

    @pytest.mark.parametrize(
        "target",
        [name for name, spec in DEFAULT_DIALECTS.items() if spec.is_command],
    )
    def test_command_targets_unchanged(self, target):
        result = convert_with_warnings(SAMPLE, target)
        assert result.text == SAMPLE
        assert result.converted is False

    def test_accepts_parsed_config(self):
        assert convert(parse_config(SAMPLE), "claude") == SAMPLE


class TestFrontMatter:
    def test_block_and_title(self):
        out = convert("# Title\nbody", "cursor")
        assert out == f"{FRONT_MATTER_BLOCK}\n{FRONT_MATTER_TITLE}\nbody\n"

    def test_only_first_top_heading_replaced(self):
        out = convert("# One\na\n# Two\nb", "cursor")
        assert out.count(FRONT_MATTER_TITLE) == 1
        assert "# Two" in out
        assert "# One" not in out

    def test_second_level_heading_untouched(self):
        out = convert("## Sub\nbody", "cursor")
        assert "## Sub" in out
        assert FRONT_MATTER_TITLE not in out


class TestFlatText:
    def test_windsurf_markers_and_emphasis(self):
        out = convert(SAMPLE, "windsurf")
        assert out.splitlines() == [
            "=== My Project",
            "",
            "Intro bold text.",
            "",
            "--- Setup",
            "Run it.",
            "",
            "Details",
            "more",
        ]

    @pytest.mark.parametrize("target", ["cline", "goose"])
    def test_same_family_same_output(self, target):
        assert convert(SAMPLE, target) == convert(SAMPLE, "windsurf")

    def test_legacy_cursor_keeps_emphasis(self):
        out = convert("# Top\n## Sub\n**keep**", "cursor_legacy")
        assert out == "Top\n\nSub\n**keep**"

    def test_output_is_trimmed(self):
        assert convert("\n\n# Top\n\n", "windsurf") == "=== Top"


class TestStripEmphasis:
    def test_bold_and_italic(self):
        assert strip_emphasis("**a** __b__ *c* _d_") == "a b c d"

    def test_list_bullets_and_identifiers_survive(self):
        text = "* item one\n* item two\nuse snake_case_names"
        assert strip_emphasis(text) == text


class TestKeyValue:
    def test_preamble_and_items(self):
        out = convert('# Title\nline one\n\n## Sub\nline "two"', "aider")
        assert out == (
            KEY_VALUE_PREAMBLE
            + '  - "line one"\n'
            + '  - "line \\"two\\""\n'
        )

    def test_truncation_warns(self):
        text = "\n".join(f"rule {i}" for i in range(25))
        result = convert_with_warnings(text, "aider")
        assert result.text.count("  - ") == 20
        assert '"rule 19"' in result.text
        assert '"rule 20"' not in result.text
        assert len(result.warnings) == 1
        assert "5 line(s) dropped" in result.warnings[0]

    def test_custom_item_cap(self):
        converter = FormatConverter(key_value_max_items=2)
        result = converter.convert_with_warnings("a\nb\nc", "aider")
        assert result.text.count("  - ") == 2
        assert result.warnings

    def test_no_warning_within_cap(self):
        assert convert_with_warnings("a\nb", "aider").warnings == []


class TestHeader:
    def test_copilot_header_prepended(self):
        out = convert("body", "copilot")
        assert out == "# GitHub Copilot Instructions\n\nbody\n"


class TestResolve:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("CLAUDE", "claude"),
            ("Cursor-Legacy", "cursor_legacy"),
            ("claude_command", "claude-command"),
            ("  windsurf  ", "windsurf"),
        ],
    )
    def test_lookup_variants(self, name, expected):
        assert FormatConverter().resolve(name).name == expected

    def test_unknown_dialect(self):
        with pytest.raises(UnknownDialectError) as exc_info:
            convert(SAMPLE, "emacs")
        assert exc_info.value.target == "emacs"
        assert "claude" in exc_info.value.known
        assert isinstance(exc_info.value, ValueError)

    def test_injected_table(self):
        table = {
            "shout": DialectSpec(
                "shout", "Shout", "SHOUT.txt", DialectFamily.HEADER, header="HEY"
            )
        }
        converter = FormatConverter(table)
        assert converter.convert("x", "shout") == "HEY\n\nx\n"
        with pytest.raises(UnknownDialectError):
            converter.convert("x", "claude")


class TestTargetFilename:
    def test_fixed_filename(self):
        assert FormatConverter().target_filename("windsurf") == ".windsurfrules"

    def test_command_keeps_source_name(self):
        converter = FormatConverter()
        path = converter.target_filename(
            "claude-command", "app/.cursor/commands/deploy.md"
        )
        assert path == ".claude/commands/deploy.md"

    def test_command_windows_source(self):
        path = FormatConverter().target_filename(
            "opencode-command", "C:\\repo\\.cursor\\commands\\review.md"
        )
        assert path == ".opencode/commands/review.md"

    def test_command_without_source(self):
        assert (
            FormatConverter().target_filename("cursor-command")
            == ".cursor/commands/command.md"
        )


class TestDetectDialect:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("AGENTS.md", "agents"),
            ("packages/core/CLAUDE.md", "claude"),
            (".claude/commands/deploy.md", "claude-command"),
            ("repo\\.github\\copilot-instructions.md", "copilot"),
            ("sub/.cursor/rules/project.mdc", "cursor"),
            (".windsurf/workflows/release.md", "windsurf-workflow"),
            (".goose/rules.txt", "goose"),
        ],
    )
    def test_known_paths(self, path, expected):
        assert detect_dialect(path) == expected

    def test_unknown_file(self):
        assert detect_dialect("docs/README.md") is None
