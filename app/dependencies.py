"""FastAPI dependencies wiring request-scoped services to shared handles.

The database connection and the object storage client are created once in
the application lifespan and kept on ``app.state``.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.audio.storage import ObjectStorage
from app.db.connection import DatabaseConnection
from app.db.session import get_db
from app.songs.repository import SongRepository
from app.songs.service import SongService


def get_storage(request: Request) -> ObjectStorage:
    return request.app.state.storage


def get_database_connection(request: Request) -> DatabaseConnection:
    return request.app.state.database


def get_song_repository(
    db: AsyncSession = Depends(get_db),  # noqa: B008
) -> SongRepository:
    return SongRepository(db)


def get_song_service(
    repository: SongRepository = Depends(get_song_repository),  # noqa: B008
    storage: ObjectStorage = Depends(get_storage),  # noqa: B008
) -> SongService:
    return SongService(repository, storage)
