"""Shared pytest fixtures for blueprint-sync tests."""

from __future__ import annotations

from pathlib import PurePath, PurePosixPath

import pytest

from blueprint_sync.config import Config
from blueprint_sync.errors import TransportError
from blueprint_sync.file_handler import TreeEntry
from blueprint_sync.sync.engine import SyncCoordinator
from blueprint_sync.sync.models import (
    RemoteBlueprint,
    RemoteHierarchy,
    UpdateOutcome,
    content_checksum,
)
from blueprint_sync.sync.resolver import SkipResolver
from blueprint_sync.sync.state import LinkTracker


class FakeFileTree:
    """In-memory ``FileTree``; directories are implied by file paths."""

    def __init__(
        self,
        files: dict[str, str],
        unreadable: tuple[str, ...] = (),
        unlistable: tuple[str, ...] = (),
    ) -> None:
        self.files = {PurePosixPath(p): c for p, c in files.items()}
        self.unreadable = {PurePosixPath(p) for p in unreadable}
        self.unlistable = {PurePosixPath(p) for p in unlistable}

    def list_children(self, path: PurePath) -> list[TreeEntry]:
        path = PurePosixPath(path)
        if path in self.unlistable:
            raise PermissionError(f"Permission denied: '{path}'")
        children: dict[str, TreeEntry] = {}
        for file_path in self.files:
            if path not in file_path.parents:
                continue
            parts = file_path.relative_to(path).parts
            name = parts[0]
            children[name] = TreeEntry(name, path / name, len(parts) > 1)
        return list(children.values())

    def read_text(self, path: PurePath) -> str:
        path = PurePosixPath(path)
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: '{path}'")
        return self.files[path]


class FakeBlueprintApi:
    """Minimal catalog replacement backed by dicts.

    ``update_blueprint`` honours optimistic locking the way the catalog
    does: a stale ``expected_checksum`` yields a conflict outcome.
    """

    def __init__(self) -> None:
        self.blueprints: dict[str, RemoteBlueprint] = {}
        self.hierarchies: dict[str, RemoteHierarchy] = {}
        self.failures: dict[str, TransportError] = {}
        self.get_calls: list[str] = []
        self.update_calls: list[tuple[str, str, str | None]] = []

    def add(self, blueprint_id: str, content: str, **fields) -> RemoteBlueprint:
        fields.setdefault("name", blueprint_id)
        fields.setdefault("content_checksum", content_checksum(content))
        bp = RemoteBlueprint(id=blueprint_id, content=content, **fields)
        self.blueprints[blueprint_id] = bp
        return bp

    def edit_remote(self, blueprint_id: str, content: str) -> None:
        """Simulate someone else editing the blueprint in the catalog."""
        self.blueprints[blueprint_id] = self.blueprints[blueprint_id].model_copy(
            update={"content": content, "content_checksum": content_checksum(content)}
        )

    def get_blueprint(self, blueprint_id: str) -> RemoteBlueprint:
        self.get_calls.append(blueprint_id)
        if blueprint_id in self.failures:
            raise self.failures[blueprint_id]
        if blueprint_id not in self.blueprints:
            raise TransportError("Blueprint not found", status_code=404)
        return self.blueprints[blueprint_id]

    def get_hierarchy(self, hierarchy_id: str) -> RemoteHierarchy:
        if hierarchy_id in self.failures:
            raise self.failures[hierarchy_id]
        if hierarchy_id not in self.hierarchies:
            raise TransportError("Hierarchy not found", status_code=404)
        return self.hierarchies[hierarchy_id]

    def update_blueprint(
        self, blueprint_id: str, content: str, expected_checksum: str | None
    ) -> UpdateOutcome:
        self.update_calls.append((blueprint_id, content, expected_checksum))
        current = self.blueprints[blueprint_id]
        if (
            expected_checksum is not None
            and expected_checksum != current.effective_checksum
        ):
            return UpdateOutcome(conflict=True, checksum=current.effective_checksum)
        self.edit_remote(blueprint_id, content)
        return UpdateOutcome(
            checksum=self.blueprints[blueprint_id].content_checksum
        )


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        api_url="https://catalog.example.com",
        token="test-token",
        insecure=False,
    )


@pytest.fixture
def make_tree():
    """Factory fixture for in-memory file trees."""
    return FakeFileTree


@pytest.fixture
def fake_api():
    return FakeBlueprintApi()


@pytest.fixture
def working_dir(tmp_path):
    path = tmp_path / "project"
    path.mkdir()
    return path


@pytest.fixture
def tracker(working_dir):
    return LinkTracker(working_dir / ".bpsync")


@pytest.fixture
def coordinator(fake_api, working_dir, tracker):
    """Coordinator with the non-interactive default resolver."""
    return SyncCoordinator(
        api=fake_api,
        working_dir=working_dir,
        resolver=SkipResolver(),
        tracker=tracker,
    )
