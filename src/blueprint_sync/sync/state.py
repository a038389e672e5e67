"""Link table persistence.

Manages ``<working_dir>/.bpsync/links.json``, which binds local file paths
to catalog blueprints together with the last-known remote checksum.

Key design choices:

* **One link per path** -- links are keyed by their POSIX path relative to
  the working directory; recording a link for a path replaces the old one.
* **Atomic writes** -- every mutation is a read-modify-write of the whole
  file, finished by ``os.replace()`` so readers never see partial data.
* **Validated records** -- links are loaded through ``TrackedLink`` so a
  hand-edited file with a missing field fails loudly instead of later.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from blueprint_sync.sync.models import TrackedLink, content_checksum

logger = logging.getLogger(__name__)

LINKS_FILENAME = "links.json"
STATE_VERSION = 1


def normalize_path(path: str) -> str:
    """Return *path* as the POSIX key used in the link table."""
    return PurePosixPath(path.replace("\\", "/")).as_posix()


class LinkTracker:
    """Load, save, and query the link table of one working directory.

    Args:
        state_dir: Directory holding ``links.json`` (typically
            ``<working_dir>/.bpsync``).
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def path(self) -> Path:
        return self._state_dir / LINKS_FILENAME

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> dict:
        """Return the raw state dict, or an empty one if there is no file."""
        if not self.path.exists():
            return {"version": STATE_VERSION, "updated_at": None, "links": {}}
        with open(self.path, encoding="utf-8") as fh:
            return json.load(fh)

    def save(self, state: dict) -> None:
        """Persist *state* atomically, stamping ``updated_at``."""
        self._state_dir.mkdir(parents=True, exist_ok=True)
        state["updated_at"] = datetime.now(timezone.utc).isoformat()

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            # Clean up temp file on any failure.
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    # ------------------------------------------------------------------
    # Link operations
    # ------------------------------------------------------------------

    def record_link(self, link: TrackedLink) -> TrackedLink:
        """Insert or replace the link for ``link.local_path``.

        ``synced_at`` is stamped with the current time.
        """
        key = normalize_path(link.local_path)
        stored = link.model_copy(
            update={
                "local_path": key,
                "synced_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        state = self.load()
        previous = state.setdefault("links", {}).get(key)
        if previous and previous.get("blueprint_id") != link.blueprint_id:
            logger.info(
                "Relinking %s from %s to %s",
                key,
                previous.get("blueprint_id"),
                link.blueprint_id,
            )
        state["links"][key] = stored.model_dump(mode="json")
        self.save(state)
        return stored

    def find_link_by_file(self, local_path: str) -> TrackedLink | None:
        """Return the link for *local_path*, or ``None``."""
        raw = self.load().get("links", {}).get(normalize_path(local_path))
        return TrackedLink.model_validate(raw) if raw else None

    def find_link_by_id(self, blueprint_id: str) -> TrackedLink | None:
        """Return the first link bound to *blueprint_id*, or ``None``."""
        for link in self.all_links():
            if link.blueprint_id == blueprint_id:
                return link
        return None

    def all_links(self) -> list[TrackedLink]:
        """Return every link, ordered by local path."""
        links = self.load().get("links", {})
        return [TrackedLink.model_validate(links[k]) for k in sorted(links)]

    def update_checksum(self, local_path: str, checksum: str) -> TrackedLink | None:
        """Refresh the checksum of an existing link.

        Returns:
            The updated link, or ``None`` if *local_path* is not linked.
        """
        key = normalize_path(local_path)
        state = self.load()
        raw = state.get("links", {}).get(key)
        if raw is None:
            return None
        updated = TrackedLink.model_validate(raw).model_copy(
            update={
                "checksum": checksum,
                "synced_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        state["links"][key] = updated.model_dump(mode="json")
        self.save(state)
        return updated

    # ------------------------------------------------------------------
    # Content hashing
    # ------------------------------------------------------------------

    @staticmethod
    def content_checksum(content: str) -> str:
        """Return the catalog fingerprint of *content*."""
        return content_checksum(content)
