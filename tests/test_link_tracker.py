"""Tests for the link table."""

import json

import pytest

from blueprint_sync.sync.models import BlueprintSource, TrackedLink, content_checksum
from blueprint_sync.sync.state import LinkTracker, normalize_path


def _link(path="AGENTS.md", blueprint_id="bp_1", checksum="abc", **kw):
    return TrackedLink(
        blueprint_id=blueprint_id, local_path=path, checksum=checksum, **kw
    )


class TestLoadSave:
    def test_missing_file_gives_empty_state(self, tracker):
        state = tracker.load()
        assert state["links"] == {}
        assert state["version"] == 1

    def test_save_creates_directory(self, tmp_path):
        tracker = LinkTracker(tmp_path / "nested" / ".bpsync")
        tracker.save({"version": 1, "links": {}})
        assert tracker.path.exists()
        assert json.loads(tracker.path.read_text())["updated_at"]

    def test_no_temp_files_left(self, tracker):
        tracker.record_link(_link())
        assert [p.name for p in tracker.path.parent.iterdir()] == ["links.json"]


class TestLinks:
    def test_record_and_find(self, tracker):
        stored = tracker.record_link(_link(name="Root rules"))
        assert stored.synced_at is not None

        found = tracker.find_link_by_file("AGENTS.md")
        assert found == stored
        assert tracker.find_link_by_id("bp_1") == stored

    def test_unknown_lookups(self, tracker):
        assert tracker.find_link_by_file("nope.md") is None
        assert tracker.find_link_by_id("bp_nope") is None

    def test_one_link_per_path(self, tracker):
        tracker.record_link(_link(blueprint_id="bp_1"))
        tracker.record_link(_link(blueprint_id="bp_2"))
        assert [link.blueprint_id for link in tracker.all_links()] == ["bp_2"]

    def test_windows_paths_normalized(self, tracker):
        tracker.record_link(_link(path="packages\\a\\AGENTS.md"))
        assert tracker.find_link_by_file("packages/a/AGENTS.md") is not None
        assert tracker.all_links()[0].local_path == "packages/a/AGENTS.md"

    def test_all_links_sorted(self, tracker):
        tracker.record_link(_link(path="b/AGENTS.md", blueprint_id="bp_b"))
        tracker.record_link(_link(path="a/AGENTS.md", blueprint_id="bp_a"))
        assert [link.local_path for link in tracker.all_links()] == [
            "a/AGENTS.md",
            "b/AGENTS.md",
        ]

    def test_fields_survive_reload(self, tracker, working_dir):
        tracker.record_link(
            _link(
                source=BlueprintSource.MARKETPLACE,
                editable=False,
                hierarchy_id="ha_1",
                hierarchy_name="Mono",
                repository_path="AGENTS.md",
            )
        )
        reloaded = LinkTracker(working_dir / ".bpsync").find_link_by_file("AGENTS.md")
        assert reloaded.source is BlueprintSource.MARKETPLACE
        assert reloaded.editable is False
        assert reloaded.hierarchy_name == "Mono"

    def test_update_checksum(self, tracker):
        tracker.record_link(_link(checksum="old"))
        updated = tracker.update_checksum("AGENTS.md", "new")
        assert updated.checksum == "new"
        assert tracker.find_link_by_file("AGENTS.md").checksum == "new"

    def test_update_checksum_unlinked(self, tracker):
        assert tracker.update_checksum("AGENTS.md", "new") is None

    def test_corrupt_record_fails_loudly(self, tracker):
        tracker.save({"version": 1, "links": {"AGENTS.md": {"checksum": "x"}}})
        with pytest.raises(ValueError):
            tracker.find_link_by_file("AGENTS.md")


class TestChecksum:
    def test_length_and_determinism(self):
        value = LinkTracker.content_checksum("hello")
        assert len(value) == 16
        assert value == content_checksum("hello")
        assert value == "2cf24dba5fb0a30e"

    def test_any_byte_change_detected(self):
        assert content_checksum("a\n") != content_checksum("a\r\n")


def test_normalize_path():
    assert normalize_path("a\\b\\c.md") == "a/b/c.md"
    assert normalize_path("./a/b.md") == "a/b.md"
