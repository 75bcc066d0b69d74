"""Session factory and the per-request ``get_db`` dependency."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.db.engine import engine
from app.models import Base

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; closed when the response is sent."""
    async with async_session_factory() as session:
        yield session


async def create_schema(bind: AsyncEngine = engine) -> None:
    """Create the songs table and its indexes if they do not exist."""
    import app.models.song  # noqa: F401  registers the table on Base.metadata

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
