"""Exception hierarchy for blueprint_sync.

The sync coordinator converts every one of these into a result value, so
they only escape to callers that use the lower-level modules directly.
"""

from __future__ import annotations

from enum import Enum


class BlueprintSyncError(Exception):
    """Base class for all blueprint_sync errors."""


class InputError(BlueprintSyncError):
    """A local path could not be read or written, or failed validation."""


class UnknownDialectError(BlueprintSyncError, ValueError):
    """The requested target dialect is not in the dialect table."""

    def __init__(self, target: str, known: list[str]) -> None:
        self.target = target
        self.known = known
        super().__init__(
            f"Unknown target dialect: '{target}'. Valid dialects: {known}"
        )


class DiffTooLargeError(BlueprintSyncError, ValueError):
    """One side of a diff exceeds the configured line limit."""

    def __init__(self, lines: int, max_lines: int) -> None:
        self.lines = lines
        self.max_lines = max_lines
        super().__init__(
            f"Diff input has {lines} lines, limit is {max_lines}"
        )


class ErrorClass(str, Enum):
    """Classification of transport failures."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


def classify_status(status_code: int | None) -> ErrorClass:
    """Map an HTTP status code to an ``ErrorClass``."""
    match status_code:
        case 401:
            return ErrorClass.UNAUTHORIZED
        case 403:
            return ErrorClass.FORBIDDEN
        case 404:
            return ErrorClass.NOT_FOUND
        case 429:
            return ErrorClass.RATE_LIMITED
        case _:
            return ErrorClass.OTHER


class TransportError(BlueprintSyncError):
    """A request to the blueprint catalog failed.

    Attributes:
        error_class: Classified failure category.
        status_code: HTTP status code, or ``None`` for network-level
            failures such as timeouts.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_class: ErrorClass | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_class = error_class or classify_status(status_code)

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (HTTP {self.status_code}, {self.error_class.value})"
        return f"{base} ({self.error_class.value})"
