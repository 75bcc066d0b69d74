"""Error taxonomy for song operations.

Every error carries a machine-readable ``code``, a client-facing ``message``
and the HTTP status it maps to. The handlers registered in ``app.main`` turn
these into ``{"error": message}`` JSON bodies.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationIssue:
    """A single field-level validation failure."""

    field: str
    message: str


class SongServiceError(Exception):
    """Base class for errors that map onto a structured HTTP response."""

    status_code: int = 500

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


class ClientInputError(SongServiceError):
    """Missing or malformed input: bad field, bad id, wrong type or size."""

    status_code = 400

    def __init__(
        self,
        code: str,
        message: str,
        issues: list[ValidationIssue] | None = None,
    ) -> None:
        super().__init__(code, message)
        self.issues = issues or []

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ClientInputError:
        return cls("VALIDATION_ERROR", "; ".join(i.message for i in issues), issues)


class NotFoundError(SongServiceError):
    status_code = 404


class UpstreamError(SongServiceError):
    """Object storage or database operation failed.

    ``detail`` holds the underlying error text. It is logged, and only
    returned to clients outside production.
    """

    status_code = 500

    def __init__(self, message: str = "Server error", detail: str | None = None) -> None:
        super().__init__("UPSTREAM_ERROR", message)
        self.detail = detail


def invalid_song_id() -> ClientInputError:
    return ClientInputError("INVALID_ID", "Invalid song ID")


def song_not_found() -> NotFoundError:
    return NotFoundError("NOT_FOUND", "Song not found")
