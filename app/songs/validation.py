"""Field rules for Song records.

Each check returns a list of :class:`ValidationIssue` instead of raising, so
callers can report every problem at once and decide how to fail.
"""

from __future__ import annotations

import re
import uuid

from app.errors import ValidationIssue
from app.models.song import ARTIST_MAX_LENGTH, DEFAULT_ARTIST, TITLE_MAX_LENGTH

_URL_PATTERN = re.compile(r"^https?://.+", re.IGNORECASE)


def normalize_title(title: object) -> str | None:
    """Return the trimmed title, or None when it is missing or not a string."""
    if not isinstance(title, str):
        return None
    return title.strip()


def normalize_artist(artist: object) -> str:
    """Trim the artist; blank or missing falls back to ``"Unknown"``."""
    if not isinstance(artist, str):
        return DEFAULT_ARTIST
    return artist.strip() or DEFAULT_ARTIST


def validate_title(title: str | None) -> list[ValidationIssue]:
    if not title:
        return [ValidationIssue("title", "Title is required")]
    if len(title) > TITLE_MAX_LENGTH:
        return [ValidationIssue("title", f"Title cannot exceed {TITLE_MAX_LENGTH} characters")]
    return []


def validate_artist(artist: str | None) -> list[ValidationIssue]:
    if artist is not None and not isinstance(artist, str):
        return [ValidationIssue("artist", "Artist must be a string")]
    if artist and len(artist) > ARTIST_MAX_LENGTH:
        message = f"Artist cannot exceed {ARTIST_MAX_LENGTH} characters"
        return [ValidationIssue("artist", message)]
    return []


def validate_song_fields(
    *,
    title: str | None,
    artist: str | None,
    public_id: str | None,
    file_url: str | None,
    play_count: int = 0,
    duration: int | None = None,
) -> list[ValidationIssue]:
    """Check a complete set of Song fields before it is written."""
    issues = validate_title(title)
    issues.extend(validate_artist(artist))

    if not public_id:
        issues.append(ValidationIssue("publicId", "Public ID is required"))

    if not file_url:
        issues.append(ValidationIssue("fileUrl", "File URL is required"))
    elif not _URL_PATTERN.match(file_url):
        issues.append(ValidationIssue("fileUrl", "Invalid URL format"))

    if play_count < 0:
        issues.append(ValidationIssue("playCount", "Play count cannot be negative"))

    if duration is not None and duration < 0:
        issues.append(ValidationIssue("duration", "Duration cannot be negative"))

    return issues


def parse_song_id(raw: str) -> uuid.UUID | None:
    """Parse a song identifier; None when it is not a well-formed UUID."""
    try:
        return uuid.UUID(raw)
    except (ValueError, AttributeError, TypeError):
        return None
