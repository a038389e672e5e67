"""Sync coordinator: pull, push and status between local files and the catalog.

The ``SyncCoordinator`` ties together the transport, link tracker, diff
engine and resolver.  For each operation it:

1. Validates the identifiers and the local path (which must stay inside
   the working directory).
2. Fetches the remote blueprint.
3. Compares local content, remote checksum and the link's last-known
   checksum to decide what may happen.
4. Asks the resolver before a pull overwrites anything the link table does
   not account for.
5. Writes the file and persists the link immediately, so an interrupted
   hierarchy pull can be re-run safely.

Error handling is per item: input errors, transport errors, link-table
failures and conflicts are returned as result values and never abort a
hierarchy pull.  Paths inside the state directory are never sync targets.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from pydantic import ValidationError

from blueprint_sync.config_schema import SyncConfig
from blueprint_sync.errors import DiffTooLargeError, InputError, TransportError
from blueprint_sync.file_handler import read_file_with_encoding, write_file
from blueprint_sync.sync.differ import compute_diff, diff_stats, render_diff
from blueprint_sync.sync.models import (
    BlueprintSource,
    ConflictContext,
    ConflictKind,
    Decision,
    DiffPreview,
    HierarchyPullReport,
    PullResult,
    PushResult,
    RemoteBlueprint,
    RemoteHierarchy,
    StatusResult,
    SyncStatus,
    TrackedLink,
    content_checksum,
)
from blueprint_sync.sync.resolver import ConflictResolver, create_resolver
from blueprint_sync.sync.state import LinkTracker, normalize_path
from blueprint_sync.validators import (
    validate_blueprint_id,
    validate_hierarchy_id,
    validate_relative_path,
)

if TYPE_CHECKING:
    from blueprint_sync.core.client import BlueprintApi

logger = logging.getLogger(__name__)

# Failures reading or writing the link table
_STATE_ERRORS = (OSError, ValueError, ValidationError)


def classify(
    local_checksum: str | None, remote_checksum: str, link_checksum: str
) -> SyncStatus:
    """Derive the sync state of a linked path from its three checksums.

    ``local_checksum`` is ``None`` when the local file does not exist.
    """
    if local_checksum is None:
        return SyncStatus.LINKED
    local_changed = local_checksum != link_checksum
    remote_changed = remote_checksum != link_checksum
    if not local_changed and not remote_changed:
        return SyncStatus.IN_SYNC
    if local_changed and not remote_changed:
        return SyncStatus.LOCAL_AHEAD
    if remote_changed and not local_changed:
        return SyncStatus.REMOTE_AHEAD
    if local_checksum == remote_checksum:
        return SyncStatus.IN_SYNC
    return SyncStatus.CONFLICTING


class SyncCoordinator:
    """Synchronise files in *working_dir* with blueprints in the catalog.

    Args:
        api: Catalog transport.
        working_dir: Root that every local path is relative to.
        config: Sync settings; defaults apply when omitted.
        resolver: Conflict resolver; defaults to ``config.conflict_strategy``.
        tracker: Link table; defaults to ``<working_dir>/<config.state_dir>``.
    """

    def __init__(
        self,
        api: BlueprintApi,
        working_dir: Path,
        config: SyncConfig | None = None,
        resolver: ConflictResolver | None = None,
        tracker: LinkTracker | None = None,
    ) -> None:
        self.api = api
        self.working_dir = working_dir
        self.config = config or SyncConfig()
        self.resolver = resolver or create_resolver(
            self.config.conflict_strategy
        )
        self.tracker = tracker or LinkTracker(
            working_dir / self.config.state_dir
        )
        try:
            self._state_key: PurePosixPath | None = PurePosixPath(
                self.tracker.path.parent.relative_to(working_dir).as_posix()
            )
        except ValueError:
            self._state_key = None

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    def pull(
        self, blueprint_id: str, local_path: str | None = None
    ) -> PullResult:
        """Download *blueprint_id* to *local_path* (or its type default)."""
        valid, message = validate_blueprint_id(blueprint_id)
        if not valid:
            return PullResult(
                blueprint_id=blueprint_id, local_path=local_path, error=message
            )
        try:
            remote = self.api.get_blueprint(blueprint_id)
        except TransportError as exc:
            logger.error("Failed to fetch %s: %s", blueprint_id, exc)
            return PullResult(
                blueprint_id=blueprint_id,
                local_path=local_path,
                error=str(exc),
                error_class=exc.error_class,
            )
        return self._apply_pull(remote, local_path)

    def pull_hierarchy(self, hierarchy_id: str) -> HierarchyPullReport:
        """Download every blueprint of a hierarchy, one at a time.

        A failure on one blueprint is recorded and the batch continues.
        """
        valid, message = validate_hierarchy_id(hierarchy_id)
        if not valid:
            return HierarchyPullReport(hierarchy_id=hierarchy_id, error=message)
        try:
            hierarchy = self.api.get_hierarchy(hierarchy_id)
        except TransportError as exc:
            logger.error("Failed to fetch hierarchy %s: %s", hierarchy_id, exc)
            return HierarchyPullReport(hierarchy_id=hierarchy_id, error=str(exc))

        results: list[PullResult] = []
        for listed in hierarchy.blueprints:
            target = listed.repository_path
            if listed.has_content:
                remote = listed
            else:
                try:
                    remote = self.api.get_blueprint(listed.id)
                except TransportError as exc:
                    logger.error("Failed to fetch %s: %s", listed.id, exc)
                    results.append(
                        PullResult(
                            blueprint_id=listed.id,
                            local_path=target,
                            error=str(exc),
                            error_class=exc.error_class,
                        )
                    )
                    continue
            result = self._apply_pull(
                remote, target or remote.repository_path, hierarchy
            )
            results.append(result)

        report = HierarchyPullReport(
            hierarchy_id=hierarchy.id,
            hierarchy_name=hierarchy.name,
            results=results,
        )
        logger.info(
            "Hierarchy %s: %d downloaded, %d skipped, %d failed",
            hierarchy.id,
            len(report.downloaded),
            len(report.skipped),
            len(report.failed),
        )
        return report

    def _apply_pull(
        self,
        remote: RemoteBlueprint,
        local_path: str | None,
        hierarchy: RemoteHierarchy | None = None,
    ) -> PullResult:
        target = local_path or remote.default_filename
        try:
            key, abs_path = self._resolve_path(target)
            local = self._read_local(abs_path)
        except InputError as exc:
            logger.error("Cannot pull %s to %s: %s", remote.id, target, exc)
            return PullResult(
                blueprint_id=remote.id, local_path=target, error=str(exc)
            )

        remote_content = remote.content or ""
        try:
            link = self.tracker.find_link_by_file(key)
        except _STATE_ERRORS as exc:
            logger.error("Cannot read link table: %s", exc)
            return PullResult(
                blueprint_id=remote.id,
                local_path=key,
                error=f"Cannot read link table: {exc}",
            )
        asked = False

        if link is not None and link.blueprint_id != remote.id:
            decision = self.resolver.resolve(
                ConflictContext(
                    kind=ConflictKind.LINKED_ELSEWHERE,
                    local_path=key,
                    blueprint_id=remote.id,
                    existing_blueprint_id=link.blueprint_id,
                )
            )
            if decision is Decision.SKIP:
                return PullResult(
                    blueprint_id=remote.id, local_path=key, skipped=True
                )
            asked = True

        if local == remote_content:
            if link is None or (
                link.blueprint_id != remote.id
                or link.checksum != remote.effective_checksum
            ):
                error = self._try_record(remote, key, hierarchy)
                if error is not None:
                    return PullResult(
                        blueprint_id=remote.id,
                        local_path=key,
                        status=SyncStatus.IN_SYNC,
                        error=error,
                    )
            logger.info("%s already up to date", key)
            return PullResult(
                blueprint_id=remote.id, local_path=key, status=SyncStatus.IN_SYNC
            )

        if local is not None and not asked and self._has_unknown_edits(link, local):
            decision = self.resolver.resolve(
                ConflictContext(
                    kind=ConflictKind.LOCAL_MODIFIED,
                    local_path=key,
                    blueprint_id=remote.id,
                    existing_blueprint_id=link.blueprint_id if link else None,
                    diff=self._preview(local, remote_content).text,
                )
            )
            if decision is Decision.SKIP:
                return PullResult(
                    blueprint_id=remote.id, local_path=key, skipped=True
                )

        try:
            write_file(abs_path, remote_content)
        except OSError as exc:
            logger.error("Cannot write %s: %s", abs_path, exc)
            return PullResult(
                blueprint_id=remote.id, local_path=key, error=str(exc)
            )
        error = self._try_record(remote, key, hierarchy)
        if error is None:
            logger.info("Pulled %s -> %s", remote.id, key)
        return PullResult(
            blueprint_id=remote.id,
            local_path=key,
            status=SyncStatus.IN_SYNC,
            written=True,
            error=error,
        )

    @staticmethod
    def _has_unknown_edits(link: TrackedLink | None, local: str) -> bool:
        # Local content matching the link's checksum was written by a sync
        return link is None or content_checksum(local) != link.checksum

    def _try_record(
        self,
        remote: RemoteBlueprint,
        key: str,
        hierarchy: RemoteHierarchy | None,
    ) -> str | None:
        """Record the link, returning an error message instead of raising."""
        try:
            self._record(remote, key, hierarchy)
        except _STATE_ERRORS as exc:
            logger.error("Cannot save link for %s: %s", key, exc)
            return f"link not saved: {exc}"
        return None

    def _record(
        self,
        remote: RemoteBlueprint,
        key: str,
        hierarchy: RemoteHierarchy | None,
    ) -> TrackedLink:
        return self.tracker.record_link(
            TrackedLink(
                blueprint_id=remote.id,
                name=remote.name,
                local_path=key,
                checksum=remote.effective_checksum,
                source=remote.source,
                hierarchy_id=hierarchy.id if hierarchy else remote.hierarchy_id,
                hierarchy_name=hierarchy.name if hierarchy else None,
                repository_path=remote.repository_path,
                editable=remote.source is not BlueprintSource.MARKETPLACE,
            )
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def push(self, local_path: str, force: bool = False) -> PushResult:
        """Upload a linked local file under optimistic locking.

        If the remote changed since the last sync the push is refused with
        ``CONFLICTING`` and the remote is left untouched, unless *force* is
        set, in which case the remote's current checksum is sent as the
        expected value.  A remote that already equals the local content only
        refreshes the link.
        """
        try:
            key, abs_path = self._resolve_path(local_path)
            local = self._read_local(abs_path)
        except InputError as exc:
            return PushResult(local_path=local_path, error=str(exc))

        try:
            link = self.tracker.find_link_by_file(key)
        except _STATE_ERRORS as exc:
            logger.error("Cannot read link table: %s", exc)
            return PushResult(
                local_path=key, error=f"Cannot read link table: {exc}"
            )
        if link is None:
            return PushResult(
                local_path=key,
                status=SyncStatus.UNLINKED,
                error=f"{key} is not linked to a blueprint",
            )
        if local is None:
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                status=SyncStatus.LINKED,
                error=f"{key} does not exist",
            )
        if not link.editable:
            logger.warning(
                "%s is linked to %s blueprint %s",
                key,
                link.source.value,
                link.blueprint_id,
            )

        local_checksum = content_checksum(local)
        try:
            remote = self.api.get_blueprint(link.blueprint_id)
        except TransportError as exc:
            logger.error("Failed to fetch %s: %s", link.blueprint_id, exc)
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                local_checksum=local_checksum,
                link_checksum=link.checksum,
                error=str(exc),
                error_class=exc.error_class,
            )
        remote_checksum = remote.effective_checksum

        if remote_checksum != link.checksum and remote_checksum == local_checksum:
            # Remote already holds the local content; only the link is stale
            logger.info("%s already matches %s", key, remote.id)
            return self._refresh_link(
                key, link, local_checksum, remote_checksum
            )

        if remote_checksum != link.checksum and not force:
            logger.warning(
                "Remote %s changed since last sync of %s", remote.id, key
            )
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                status=SyncStatus.CONFLICTING,
                local_checksum=local_checksum,
                remote_checksum=remote_checksum,
                link_checksum=link.checksum,
                diff=self._preview(remote.content or "", local),
            )

        expected = remote_checksum if force else link.checksum
        try:
            outcome = self.api.update_blueprint(
                link.blueprint_id, local, expected
            )
        except TransportError as exc:
            logger.error("Failed to update %s: %s", link.blueprint_id, exc)
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                local_checksum=local_checksum,
                remote_checksum=remote_checksum,
                link_checksum=link.checksum,
                error=str(exc),
                error_class=exc.error_class,
            )

        if outcome.conflict:
            logger.warning("Catalog rejected update of %s: conflict", remote.id)
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                status=SyncStatus.CONFLICTING,
                local_checksum=local_checksum,
                remote_checksum=outcome.checksum or remote_checksum,
                link_checksum=link.checksum,
            )

        new_checksum = outcome.checksum or local_checksum
        logger.info("Pushed %s -> %s", key, link.blueprint_id)
        return self._refresh_link(key, link, local_checksum, new_checksum)

    def _refresh_link(
        self,
        key: str,
        link: TrackedLink,
        local_checksum: str,
        remote_checksum: str,
    ) -> PushResult:
        """Store *remote_checksum* on the link of *key* after the remote matched."""
        try:
            self.tracker.update_checksum(key, remote_checksum)
        except _STATE_ERRORS as exc:
            logger.error(
                "Remote %s updated but link not saved: %s",
                link.blueprint_id,
                exc,
            )
            return PushResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                status=SyncStatus.IN_SYNC,
                local_checksum=local_checksum,
                remote_checksum=remote_checksum,
                link_checksum=link.checksum,
                error=f"remote updated; link not saved: {exc}",
            )
        return PushResult(
            local_path=key,
            blueprint_id=link.blueprint_id,
            status=SyncStatus.IN_SYNC,
            local_checksum=local_checksum,
            remote_checksum=remote_checksum,
            link_checksum=remote_checksum,
        )

    # ------------------------------------------------------------------
    # Link, status and diff
    # ------------------------------------------------------------------

    def link(self, local_path: str, blueprint_id: str) -> StatusResult:
        """Bind an existing local file to *blueprint_id* without writing it."""
        valid, message = validate_blueprint_id(blueprint_id)
        if not valid:
            return StatusResult(local_path=local_path, error=message)
        try:
            key, abs_path = self._resolve_path(local_path)
            local = self._read_local(abs_path)
        except InputError as exc:
            return StatusResult(local_path=local_path, error=str(exc))
        if local is None:
            return StatusResult(
                local_path=key, error=f"{key} does not exist"
            )
        try:
            remote = self.api.get_blueprint(blueprint_id)
        except TransportError as exc:
            logger.error("Failed to fetch %s: %s", blueprint_id, exc)
            return StatusResult(
                local_path=key, blueprint_id=blueprint_id, error=str(exc)
            )

        try:
            link = self._record(remote, key, None)
        except _STATE_ERRORS as exc:
            logger.error("Cannot save link for %s: %s", key, exc)
            return StatusResult(
                local_path=key,
                blueprint_id=blueprint_id,
                error=f"link not saved: {exc}",
            )
        logger.info("Linked %s to %s", key, remote.id)
        return self._status_result(key, link, local, remote)

    def status(self, local_path: str) -> StatusResult:
        """Compute the sync state of *local_path*."""
        try:
            key, abs_path = self._resolve_path(local_path)
            local = self._read_local(abs_path)
        except InputError as exc:
            return StatusResult(local_path=local_path, error=str(exc))

        try:
            link = self.tracker.find_link_by_file(key)
        except _STATE_ERRORS as exc:
            return StatusResult(
                local_path=key, error=f"Cannot read link table: {exc}"
            )
        if link is None:
            return StatusResult(
                local_path=key,
                status=SyncStatus.UNLINKED,
                local_checksum=content_checksum(local) if local is not None else None,
            )
        try:
            remote = self.api.get_blueprint(link.blueprint_id)
        except TransportError as exc:
            return StatusResult(
                local_path=key,
                blueprint_id=link.blueprint_id,
                link_checksum=link.checksum,
                error=str(exc),
            )
        return self._status_result(key, link, local, remote)

    def status_all(self) -> list[StatusResult]:
        """Compute the sync state of every linked path."""
        try:
            links = self.tracker.all_links()
        except _STATE_ERRORS as exc:
            logger.error("Cannot read link table: %s", exc)
            return [
                StatusResult(
                    local_path=str(self.tracker.path),
                    error=f"Cannot read link table: {exc}",
                )
            ]
        return [self.status(link.local_path) for link in links]

    def diff_remote(
        self, local_path: str, blueprint_id: str | None = None
    ) -> DiffPreview:
        """Preview the changes between the remote blueprint and the local file.

        Uses the linked blueprint unless *blueprint_id* is given.  A missing
        local file diffs as empty.
        """
        try:
            key, abs_path = self._resolve_path(local_path)
            local = self._read_local(abs_path)
        except InputError as exc:
            return DiffPreview(error=str(exc))

        if blueprint_id is None:
            try:
                link = self.tracker.find_link_by_file(key)
            except _STATE_ERRORS as exc:
                return DiffPreview(error=f"Cannot read link table: {exc}")
            if link is None:
                return DiffPreview(error=f"{key} is not linked to a blueprint")
            blueprint_id = link.blueprint_id
        try:
            remote = self.api.get_blueprint(blueprint_id)
        except TransportError as exc:
            return DiffPreview(error=str(exc))
        return self._preview(remote.content or "", local or "")

    def _status_result(
        self,
        key: str,
        link: TrackedLink,
        local: str | None,
        remote: RemoteBlueprint,
    ) -> StatusResult:
        local_checksum = content_checksum(local) if local is not None else None
        return StatusResult(
            local_path=key,
            status=classify(local_checksum, remote.effective_checksum, link.checksum),
            blueprint_id=link.blueprint_id,
            local_checksum=local_checksum,
            remote_checksum=remote.effective_checksum,
            link_checksum=link.checksum,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_path(self, local_path: str) -> tuple[str, Path]:
        """Return the link-table key and absolute path for *local_path*.

        Raises:
            InputError: If the path escapes the working directory or points
                into the state directory.
        """
        candidate = Path(local_path)
        if candidate.is_absolute():
            try:
                local_path = candidate.relative_to(self.working_dir).as_posix()
            except ValueError:
                raise InputError(
                    f"Path is outside the working directory: {local_path}"
                ) from None
        valid, message = validate_relative_path(local_path)
        if not valid:
            raise InputError(message)
        key = normalize_path(local_path)
        if self._is_state_path(key):
            raise InputError(f"Path is inside the state directory: {key}")
        return key, self.working_dir / PurePosixPath(key)

    def _is_state_path(self, key: str) -> bool:
        state_parts = self._state_key.parts if self._state_key else ()
        if not state_parts:
            return False
        return PurePosixPath(key).parts[: len(state_parts)] == state_parts

    @staticmethod
    def _read_local(path: Path) -> str | None:
        """Return the content of *path*, or ``None`` if it does not exist."""
        if not path.exists():
            return None
        try:
            content, _ = read_file_with_encoding(path)
        except OSError as exc:
            raise InputError(f"Cannot read {path}: {exc}") from exc
        return content

    def _preview(self, old: str, new: str) -> DiffPreview:
        try:
            entries = compute_diff(
                old, new, max_lines=self.config.max_diff_lines
            )
        except DiffTooLargeError as exc:
            logger.warning("Diff preview skipped: %s", exc)
            return DiffPreview(too_large=True)
        stats = diff_stats(entries)
        return DiffPreview(
            text=render_diff(entries, self.config.diff_context_lines),
            added=stats.added,
            removed=stats.removed,
        )
