import pytest

from blueprint_sync.validators import (
    format_validation_error,
    validate_blueprint_id,
    validate_hierarchy_id,
    validate_relative_path,
)


def test_format_validation_error():
    assert format_validation_error("Path", "cannot be empty") == "Path cannot be empty"


@pytest.mark.parametrize("value", ["bp_abc123", "usr_x", "abc-DEF_9"])
def test_valid_blueprint_ids(value):
    assert validate_blueprint_id(value) == (True, "")


@pytest.mark.parametrize(
    "value,reason",
    [
        ("", "cannot be empty"),
        ("   ", "cannot be empty"),
        ("bp 1", "may only contain"),
        ("_leading", "may only contain"),
        ("bp/../x", "may only contain"),
    ],
)
def test_invalid_blueprint_ids(value, reason):
    valid, message = validate_blueprint_id(value)
    assert not valid
    assert message.startswith("Blueprint ID")
    assert reason in message


def test_hierarchy_id_message():
    assert validate_hierarchy_id("") == (False, "Hierarchy ID cannot be empty")
    assert validate_hierarchy_id("ha_1")[0]


@pytest.mark.parametrize(
    "path", ["AGENTS.md", "packages/a/CLAUDE.md", "packages\\b\\AGENTS.md", "./x.md"]
)
def test_valid_relative_paths(path):
    assert validate_relative_path(path) == (True, "")


@pytest.mark.parametrize(
    "path,reason",
    [
        ("", "cannot be empty"),
        ("/etc/passwd", "must be relative"),
        ("../outside.md", "cannot contain '..'"),
        ("a\\..\\..\\b.md", "cannot contain '..'"),
    ],
)
def test_invalid_relative_paths(path, reason):
    valid, message = validate_relative_path(path)
    assert not valid
    assert reason in message
