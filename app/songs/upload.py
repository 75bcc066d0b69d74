"""Upload pipeline: validate, store the blob remotely, then persist the Song.

The metadata record is written only after object storage has accepted the
blob, so a Song never points at a file that does not exist. The reverse gap
(blob stored, database write failed) leaves an orphan; it is logged with the
blob's public id and not reconciled.
"""

import logging
import math
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from app.audio.storage import ObjectStorage, StorageError, new_storage_key
from app.errors import ClientInputError, UpstreamError
from app.models.song import Song
from app.settings import settings
from app.songs.repository import SongRepository
from app.songs.validation import (
    normalize_artist,
    normalize_title,
    validate_artist,
    validate_song_fields,
    validate_title,
)

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES: frozenset[str] = frozenset(
    {
        "audio/mpeg",
        "audio/wav",
        "audio/mp3",
        "audio/aac",
    }
)

MULTIPART_CONTENT_TYPE = "multipart/form-data"

# Format hint sent to object storage for every upload.
STORAGE_FORMAT = "mp3"

# Allowance for multipart boundaries and the text fields around the file part.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


@dataclass(frozen=True)
class UploadConstraints:
    """Limits applied to an uploaded file before it leaves the process."""

    max_bytes: int = field(default_factory=lambda: settings.max_upload_bytes)
    allowed_mime_types: frozenset[str] = ALLOWED_MIME_TYPES

    @property
    def max_megabytes(self) -> int:
        return self.max_bytes // (1024 * 1024)


def validate_upload_request(content_type: str | None, title: object) -> None:
    """Cheap request-level checks, run before the file body is read.

    Raises:
        ClientInputError: wrong request encoding or missing title.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != MULTIPART_CONTENT_TYPE:
        raise ClientInputError(
            "INVALID_CONTENT_TYPE", "Invalid content type. Use multipart/form-data"
        )

    if not isinstance(title, str) or not title.strip():
        raise ClientInputError("TITLE_REQUIRED", "Title is required and must be a string")


def check_file(
    size: int,
    content_type: str | None,
    constraints: UploadConstraints,
) -> None:
    """Reject disallowed types and oversized files before any remote call."""
    if (content_type or "").lower() not in constraints.allowed_mime_types:
        raise ClientInputError(
            "UNSUPPORTED_FORMAT", "Invalid file type. Only audio files are allowed."
        )

    if size > constraints.max_bytes:
        raise _file_too_large(constraints)


def check_declared_length(content_length: str | None, constraints: UploadConstraints) -> None:
    """Reject a multipart request whose declared body cannot fit under the cap.

    Runs on the request headers, before the body is received. A missing or
    malformed ``Content-Length`` is left to the per-file check.
    """
    if not content_length or not content_length.strip().isdigit():
        return
    if int(content_length) > constraints.max_bytes + MULTIPART_OVERHEAD_BYTES:
        raise _file_too_large(constraints)


def _file_too_large(constraints: UploadConstraints) -> ClientInputError:
    return ClientInputError(
        "FILE_TOO_LARGE",
        f"File too large. Maximum upload size is {constraints.max_megabytes} MB.",
    )


async def upload_song(
    data: bytes,
    content_type: str | None,
    title: object,
    artist: object,
    *,
    storage: ObjectStorage,
    repository: SongRepository,
    constraints: UploadConstraints | None = None,
) -> Song:
    """Store one audio file and create its Song record.

    Steps:
    1. Check MIME type and size
    2. Check title and artist
    3. Upload to object storage under a fresh ``songs/<hex>`` key
    4. Build the Song from the storage response and validate it
    5. Insert the record

    Raises:
        ClientInputError: type, size or field validation failed. No remote
            call has been made.
        UpstreamError: object storage or the database failed.
    """
    constraints = constraints or UploadConstraints()

    # Step 1: File checks
    check_file(len(data), content_type, constraints)

    # Step 2: Title and artist
    clean_title = normalize_title(title)
    clean_artist = normalize_artist(artist)
    field_issues = validate_title(clean_title) + validate_artist(clean_artist)
    if field_issues:
        raise ClientInputError.from_issues(field_issues)

    # Step 3: Remote upload
    storage_key = new_storage_key()
    try:
        stored = await storage.upload(
            data,
            public_id=storage_key,
            resource_type="auto",
            format=STORAGE_FORMAT,
            overwrite=True,
        )
    except StorageError as exc:
        logger.error("Upload error for %s: %s", storage_key, exc)
        raise UpstreamError(detail=str(exc)) from exc

    # Step 4: Build and validate the record
    duration = math.floor(stored.duration) if stored.duration is not None else None
    issues = validate_song_fields(
        title=clean_title,
        artist=clean_artist,
        public_id=stored.public_id,
        file_url=stored.secure_url,
        duration=duration,
    )
    if issues:
        detail = "; ".join(i.message for i in issues)
        logger.error(
            "Storage response for %s failed validation; blob is orphaned: %s",
            stored.public_id,
            detail,
        )
        raise UpstreamError(detail=detail)

    song = Song(
        title=clean_title,
        artist=clean_artist,
        public_id=stored.public_id,
        file_url=stored.secure_url,
        play_count=0,
        duration=duration,
    )

    # Step 5: Persist
    try:
        song = await repository.create(song)
    except SQLAlchemyError as exc:
        logger.error(
            "Database write failed after upload; blob %s is orphaned: %s",
            stored.public_id,
            exc,
        )
        raise UpstreamError(detail=str(exc)) from exc

    logger.info("Stored song %s -> %s (%d bytes)", song.id, stored.public_id, len(data))
    return song
