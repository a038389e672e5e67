"""File handler module: file-tree capability and encoding-aware read/write.

The hierarchy builder walks a ``FileTree`` rather than the file system
directly, so the walk can run against ``LocalFileTree`` in production and
an in-memory tree in tests.
"""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Protocol

from charset_normalizer import from_bytes

# =============================================================================
# File-tree capability
# =============================================================================


@dataclass(frozen=True)
class TreeEntry:
    """One child of a directory in a ``FileTree``."""

    name: str
    path: PurePath
    is_directory: bool


class FileTree(Protocol):
    """Read-only view of a directory tree."""

    def list_children(self, path: PurePath) -> list[TreeEntry]:
        """Return the entries of directory *path*.

        Raises:
            OSError: If the directory cannot be listed.
        """
        ...  # pragma: no cover

    def read_text(self, path: PurePath) -> str:
        """Return the decoded content of file *path*.

        Raises:
            OSError: If the file cannot be read.
        """
        ...  # pragma: no cover


class LocalFileTree:
    """``FileTree`` backed by the local file system.

    Symlinks are followed.  Entries that are neither regular files nor
    directories are omitted.
    """

    def list_children(self, path: PurePath) -> list[TreeEntry]:
        entries: list[TreeEntry] = []
        for child in Path(path).iterdir():
            if child.is_dir():
                entries.append(TreeEntry(child.name, child, True))
            elif child.is_file():
                entries.append(TreeEntry(child.name, child, False))
        return entries

    def read_text(self, path: PurePath) -> str:
        content, _ = read_file_with_encoding(Path(path))
        return content


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def to_relative_posix(path: PurePath, root: PurePath) -> str:
    """Return *path* relative to *root* with forward slashes."""
    return path.relative_to(root).as_posix()
