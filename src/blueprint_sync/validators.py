"""
Input validation for identifiers and working-directory paths.

Every validator returns ``(is_valid, error_message)`` so callers can turn
a failure into a result value instead of an exception.
"""

import re
from pathlib import Path, PurePosixPath

_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_\-]*$")


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Blueprint ID")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def _validate_identifier(value: str, field_name: str) -> tuple[bool, str]:
    if not value or not value.strip():
        return (False, format_validation_error(field_name, "cannot be empty"))
    if not _ID_PATTERN.match(value):
        return (
            False,
            format_validation_error(
                field_name,
                "may only contain letters, digits, '_' and '-'",
            ),
        )
    return (True, "")


def validate_blueprint_id(blueprint_id: str) -> tuple[bool, str]:
    """Validate a blueprint identifier such as ``bp_abc123``."""
    return _validate_identifier(blueprint_id, "Blueprint ID")


def validate_hierarchy_id(hierarchy_id: str) -> tuple[bool, str]:
    """Validate a hierarchy identifier such as ``ha_xyz789``."""
    return _validate_identifier(hierarchy_id, "Hierarchy ID")


def validate_relative_path(path: str) -> tuple[bool, str]:
    """
    Validate a path that must stay inside the working directory.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot be absolute
        - Cannot contain '..' segments
    """
    if not path or not path.strip():
        return (False, format_validation_error("Path", "cannot be empty"))

    posix = PurePosixPath(path.replace("\\", "/"))
    if posix.is_absolute() or Path(path).is_absolute():
        return (
            False,
            format_validation_error("Path", f"must be relative: {path}"),
        )

    if ".." in posix.parts:
        return (
            False,
            format_validation_error("Path", f"cannot contain '..': {path}"),
        )

    return (True, "")
