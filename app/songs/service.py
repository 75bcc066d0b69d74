"""Song CRUD operations.

Identifiers are checked before the store is queried, so a malformed id is a
400 and a well-formed but unknown id is a 404. Database failures are wrapped
in :class:`UpstreamError` at this boundary.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from app.audio.storage import ObjectStorage, StorageError
from app.errors import ClientInputError, UpstreamError, invalid_song_id, song_not_found
from app.models.song import Song
from app.songs.repository import SongRepository, SongSort
from app.songs.validation import (
    normalize_artist,
    normalize_title,
    parse_song_id,
    validate_artist,
    validate_song_fields,
    validate_title,
)

logger = logging.getLogger(__name__)


def _require_id(raw_id: str) -> uuid.UUID:
    song_id = parse_song_id(raw_id)
    if song_id is None:
        raise invalid_song_id()
    return song_id


class SongService:
    def __init__(self, repository: SongRepository, storage: ObjectStorage) -> None:
        self.repository = repository
        self.storage = storage

    async def list_songs(
        self, search: str | None = None, sort: str | None = None
    ) -> Sequence[Song]:
        term = search.strip() if search else None
        try:
            return await self.repository.find(search=term or None, sort=SongSort.parse(sort))
        except SQLAlchemyError as exc:
            logger.exception("Failed to list songs")
            raise UpstreamError(detail=str(exc)) from exc

    async def get_song(self, raw_id: str) -> Song:
        song_id = _require_id(raw_id)
        try:
            song = await self.repository.find_by_id(song_id)
        except SQLAlchemyError as exc:
            logger.exception("Error fetching song %s", song_id)
            raise UpstreamError(detail=str(exc)) from exc

        if song is None:
            raise song_not_found()
        return song

    async def update_song(self, raw_id: str, title: object, artist: object = None) -> Song:
        song_id = _require_id(raw_id)

        clean_title = normalize_title(title)
        clean_artist = normalize_artist(artist)
        issues = validate_title(clean_title) + validate_artist(clean_artist)
        if issues:
            raise ClientInputError.from_issues(issues)

        try:
            existing = await self.repository.find_by_id(song_id)
            if existing is None:
                raise song_not_found()

            issues = validate_song_fields(
                title=clean_title,
                artist=clean_artist,
                public_id=existing.public_id,
                file_url=existing.file_url,
                play_count=existing.play_count,
                duration=existing.duration,
            )
            if issues:
                raise ClientInputError.from_issues(issues)

            song = await self.repository.update_fields(
                song_id, title=clean_title, artist=clean_artist
            )
        except SQLAlchemyError as exc:
            logger.exception("Update error for song %s", song_id)
            raise UpstreamError(detail=str(exc)) from exc

        if song is None:
            raise song_not_found()
        return song

    async def delete_song(self, raw_id: str) -> None:
        """Delete the blob (best effort), then always delete the record."""
        song_id = _require_id(raw_id)
        try:
            song = await self.repository.find_by_id(song_id)
        except SQLAlchemyError as exc:
            logger.exception("Delete error for song %s", song_id)
            raise UpstreamError(detail=str(exc)) from exc

        if song is None:
            raise song_not_found()

        if song.public_id:
            await self._delete_blob(song.public_id)

        try:
            await self.repository.delete_by_id(song_id)
        except SQLAlchemyError as exc:
            logger.exception("Delete error for song %s", song_id)
            raise UpstreamError(detail=str(exc)) from exc

        logger.info("Deleted song %s (%s)", song_id, song.public_id)

    async def _delete_blob(self, public_id: str) -> None:
        try:
            removed = await self.storage.delete(public_id)
        except StorageError as exc:
            logger.warning("Error deleting %s from object storage: %s", public_id, exc)
            return
        if not removed:
            logger.warning("Object storage did not remove %s", public_id)

    async def increment_play_count(self, raw_id: str) -> Song:
        song_id = _require_id(raw_id)
        try:
            song = await self.repository.increment_play_count(song_id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to record play for song %s", song_id)
            raise UpstreamError(detail=str(exc)) from exc

        if song is None:
            raise song_not_found()
        return song
