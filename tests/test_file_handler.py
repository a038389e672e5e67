"""Tests for file_handler: local file tree and encoding-aware I/O."""

from pathlib import Path, PurePosixPath

import pytest

from blueprint_sync.file_handler import (
    LocalFileTree,
    TreeEntry,
    read_file_with_encoding,
    to_relative_posix,
    write_file,
)


class TestReadWrite:
    def test_empty_file_is_utf8(self, tmp_path):
        path = tmp_path / "empty.md"
        path.write_bytes(b"")
        assert read_file_with_encoding(path) == ("", "utf-8")

    def test_ascii_reported_as_utf8(self, tmp_path):
        path = tmp_path / "AGENTS.md"
        path.write_bytes(b"# Rules\n\nUse tabs for indentation in every file.\n")
        content, encoding = read_file_with_encoding(path)
        assert content.startswith("# Rules")
        assert encoding == "utf-8"

    def test_utf8_content(self, tmp_path):
        path = tmp_path / "CLAUDE.md"
        text = "# Régles\n\nÉcrire des tests. Ne jamais casser la compilation.\n"
        path.write_bytes(text.encode("utf-8"))
        content, _ = read_file_with_encoding(path)
        assert content == text

    def test_write_creates_parents(self, tmp_path):
        target = tmp_path / ".cursor" / "rules" / "project.mdc"
        count = write_file(target, "héllo")
        assert target.read_text(encoding="utf-8") == "héllo"
        assert count == len("héllo".encode("utf-8"))


class TestLocalFileTree:
    def test_lists_files_and_directories(self, tmp_path):
        (tmp_path / "pkg").mkdir()
        (tmp_path / "AGENTS.md").write_text("x")

        entries = sorted(LocalFileTree().list_children(tmp_path), key=lambda e: e.name)
        assert entries == [
            TreeEntry("AGENTS.md", tmp_path / "AGENTS.md", False),
            TreeEntry("pkg", tmp_path / "pkg", True),
        ]

    def test_read_text(self, tmp_path):
        (tmp_path / "AGENTS.md").write_text("# Root rules\n")
        assert LocalFileTree().read_text(tmp_path / "AGENTS.md") == "# Root rules\n"

    def test_missing_directory_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            LocalFileTree().list_children(tmp_path / "missing")


def test_to_relative_posix():
    assert (
        to_relative_posix(PurePosixPath("/repo/a/b.md"), PurePosixPath("/repo"))
        == "a/b.md"
    )
    assert to_relative_posix(Path("/repo/x.md"), Path("/repo")) == "x.md"
