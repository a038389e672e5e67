"""Line-level diff between two versions of a configuration file.

The diff is computed from a longest-common-subsequence table.  On a tie
the backtrack steps back on the old side, which keeps the earlier old line
as the common one.  Between two common lines removals are listed before
additions; a swapped pair shows the moved line added before the kept line
and removed after it.

``compute_diff`` returns entries that replay both inputs exactly:
``remove`` + ``same`` lines rebuild the old text and ``add`` + ``same``
lines rebuild the new text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from blueprint_sync.errors import DiffTooLargeError

DEFAULT_CONTEXT_LINES = 3


class DiffKind(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    SAME = "same"


@dataclass(frozen=True)
class DiffEntry:
    kind: DiffKind
    line: str

    @property
    def is_change(self) -> bool:
        return self.kind is not DiffKind.SAME


@dataclass(frozen=True)
class DiffStats:
    added: int
    removed: int
    unchanged: int

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


def longest_common_subsequence(old: list[str], new: list[str]) -> list[str]:
    """Return the LCS of two line lists.

    On a tie during backtracking the old index is decremented first.
    """
    m, n = len(old), len(new)
    dp = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if old[i - 1] == new[j - 1]:
                dp[i][j] = dp[i - 1][j - 1] + 1
            else:
                dp[i][j] = max(dp[i - 1][j], dp[i][j - 1])

    lcs: list[str] = []
    i, j = m, n
    while i > 0 and j > 0:
        if old[i - 1] == new[j - 1]:
            lcs.append(old[i - 1])
            i -= 1
            j -= 1
        elif dp[i - 1][j] >= dp[i][j - 1]:
            i -= 1
        else:
            j -= 1
    lcs.reverse()
    return lcs


def compute_diff(
    old: str, new: str, max_lines: int | None = None
) -> list[DiffEntry]:
    """Compute the line diff from *old* to *new*.

    Args:
        old: Previous text.
        new: Current text.
        max_lines: If given, refuse inputs where either side has more lines.

    Returns:
        Ordered diff entries.

    Raises:
        DiffTooLargeError: If either side exceeds *max_lines*.
    """
    old_lines = old.split("\n")
    new_lines = new.split("\n")
    if max_lines is not None:
        longest = max(len(old_lines), len(new_lines))
        if longest > max_lines:
            raise DiffTooLargeError(longest, max_lines)

    lcs = longest_common_subsequence(old_lines, new_lines)
    entries: list[DiffEntry] = []
    oi = ni = li = 0

    while oi < len(old_lines) or ni < len(new_lines):
        head = lcs[li] if li < len(lcs) else None
        if oi < len(old_lines) and (head is None or old_lines[oi] != head):
            entries.append(DiffEntry(DiffKind.REMOVE, old_lines[oi]))
            oi += 1
        elif ni < len(new_lines) and (head is None or new_lines[ni] != head):
            entries.append(DiffEntry(DiffKind.ADD, new_lines[ni]))
            ni += 1
        else:
            # both sides sit on the LCS head
            entries.append(DiffEntry(DiffKind.SAME, head))
            oi += 1
            ni += 1
            li += 1

    return entries


def render_diff(
    entries: list[DiffEntry], context_lines: int = DEFAULT_CONTEXT_LINES
) -> str:
    """Render *entries* with *context_lines* of unchanged context per change.

    Changed lines are prefixed ``+ `` / ``- ``, context lines with two
    spaces.  A ``  ...`` line marks every gap between printed lines.
    """
    changes = [i for i, e in enumerate(entries) if e.is_change]
    if not changes:
        return "  (no changes)"

    shown: set[int] = set()
    for index in changes:
        low = max(0, index - context_lines)
        high = min(len(entries) - 1, index + context_lines)
        shown.update(range(low, high + 1))

    prefix = {DiffKind.ADD: "+ ", DiffKind.REMOVE: "- ", DiffKind.SAME: "  "}
    out: list[str] = []
    last = -1
    for index in sorted(shown):
        if last >= 0 and index - last > 1:
            out.append("  ...")
        entry = entries[index]
        out.append(f"{prefix[entry.kind]}{entry.line}")
        last = index
    return "\n".join(out)


def diff_stats(entries: list[DiffEntry]) -> DiffStats:
    """Count added, removed and unchanged lines."""
    added = sum(1 for e in entries if e.kind is DiffKind.ADD)
    removed = sum(1 for e in entries if e.kind is DiffKind.REMOVE)
    return DiffStats(
        added=added, removed=removed, unchanged=len(entries) - added - removed
    )


def old_text(entries: list[DiffEntry]) -> str:
    """Rebuild the old text from *entries*."""
    return "\n".join(e.line for e in entries if e.kind is not DiffKind.ADD)


def new_text(entries: list[DiffEntry]) -> str:
    """Rebuild the new text from *entries*."""
    return "\n".join(e.line for e in entries if e.kind is not DiffKind.REMOVE)
