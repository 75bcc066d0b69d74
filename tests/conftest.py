"""Shared fixtures: a file-backed SQLite database per test and a fake object store.

The full application from ``create_app()`` is used with the database and
storage dependencies swapped out, so no PostgreSQL or Cloudinary account is
needed. ASGITransport does not run the lifespan, so ``app.state`` is filled in
by hand.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from app.db.connection import DatabaseConnection
from app.db.session import create_schema, get_db
from app.models.song import Song
from tests.fakes import FakeStorage, make_song


@pytest.fixture
async def engine(tmp_path) -> AsyncEngine:
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'songs.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    await create_schema(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def songs_app(engine: AsyncEngine, session_factory: async_sessionmaker, storage: FakeStorage):
    from app.main import create_app

    application = create_app()

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = _override_get_db
    application.state.storage = storage
    application.state.database = DatabaseConnection(engine)
    return application


@pytest.fixture
async def client(songs_app: FastAPI) -> AsyncClient:
    transport = ASGITransport(app=songs_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seed_songs(session_factory: async_sessionmaker) -> list[Song]:
    """Insert five songs, oldest first, with varied play counts."""
    start = datetime(2026, 1, 1, tzinfo=UTC)
    songs = [
        make_song("Love Me Do", "The Beatles", 40, start),
        make_song("Bohemian Rhapsody", "Queen", 95, start + timedelta(days=1)),
        make_song("Crazy in Love", "Beyonce", 120, start + timedelta(days=2)),
        make_song("Midnight Train", "Lovebirds", 7, start + timedelta(days=3)),
        make_song("Yesterday", "The Beatles", 60, start + timedelta(days=4)),
    ]
    async with session_factory() as session:
        session.add_all(songs)
        await session.commit()
    return songs
