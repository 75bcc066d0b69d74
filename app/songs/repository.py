"""Narrow data-access layer for Song records."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from enum import StrEnum

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.song import Song

MAX_LIST_RESULTS = 100


class SongSort(StrEnum):
    """Ordering modes for song listings."""

    POPULAR = "popular"
    NEWEST = "newest"

    @classmethod
    def parse(cls, value: str | None) -> SongSort:
        """Anything other than ``popular`` means newest first."""
        return cls.POPULAR if value == cls.POPULAR.value else cls.NEWEST


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SongRepository:
    """Song persistence over a single request-scoped session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, song: Song) -> Song:
        self.session.add(song)
        await self.session.commit()
        return song

    async def find(
        self,
        search: str | None = None,
        sort: SongSort = SongSort.NEWEST,
        limit: int = MAX_LIST_RESULTS,
    ) -> Sequence[Song]:
        """Case-insensitive substring search over title and artist."""
        query = select(Song)

        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.where(
                or_(
                    Song.title.ilike(pattern, escape="\\"),
                    Song.artist.ilike(pattern, escape="\\"),
                )
            )

        if sort is SongSort.POPULAR:
            query = query.order_by(Song.play_count.desc(), Song.created_at.desc())
        else:
            query = query.order_by(Song.created_at.desc())

        result = await self.session.execute(query.limit(min(limit, MAX_LIST_RESULTS)))
        return result.scalars().all()

    async def find_by_id(self, song_id: uuid.UUID) -> Song | None:
        return await self.session.get(Song, song_id)

    async def update_fields(self, song_id: uuid.UUID, *, title: str, artist: str) -> Song | None:
        song = await self.session.get(Song, song_id)
        if song is None:
            return None
        song.title = title
        song.artist = artist
        await self.session.commit()
        return song

    async def delete_by_id(self, song_id: uuid.UUID) -> bool:
        result = await self.session.execute(delete(Song).where(Song.id == song_id))
        await self.session.commit()
        return result.rowcount > 0

    async def increment_play_count(self, song_id: uuid.UUID) -> Song | None:
        """Add one play in a single UPDATE so concurrent plays are never lost."""
        stmt = (
            update(Song)
            .where(Song.id == song_id)
            .values(play_count=Song.play_count + 1)
            .returning(Song)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        song = result.scalar_one_or_none()
        await self.session.commit()
        return song
