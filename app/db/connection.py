"""Process-wide database connection handle.

The service starts listening even when the database is down. A background
task started from the application lifespan keeps trying to reach the
database at a fixed interval until it succeeds, and the health endpoint
reports the live connection state through :meth:`DatabaseConnection.ping`.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """Owns the async engine and tracks whether the database is reachable."""

    def __init__(
        self,
        engine: AsyncEngine,
        retry_seconds: float = 5.0,
        ping_timeout_seconds: float = 2.0,
    ) -> None:
        self.engine = engine
        self.retry_seconds = retry_seconds
        self.ping_timeout_seconds = ping_timeout_seconds
        self.connected = False
        self._retry_task: asyncio.Task[None] | None = None

    async def _select_one(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def ping(self) -> bool:
        """Run ``SELECT 1`` and record the outcome.

        Gives up after ``ping_timeout_seconds`` and reports the database as
        unreachable.
        """
        try:
            await asyncio.wait_for(self._select_one(), timeout=self.ping_timeout_seconds)
        except TimeoutError:
            if self.connected:
                logger.warning("Database ping timed out after %.1fs", self.ping_timeout_seconds)
            self.connected = False
            return False
        except Exception as exc:
            if self.connected:
                logger.warning("Database connection lost: %s", exc)
            self.connected = False
            return False
        self.connected = True
        return True

    async def connect_with_retry(self) -> None:
        """Block until the database answers, retrying every ``retry_seconds``."""
        while True:
            try:
                await self._select_one()
            except Exception as exc:
                self.connected = False
                logger.error("Database connection error: %s", exc)
                logger.info("Retrying connection in %s seconds...", self.retry_seconds)
                await asyncio.sleep(self.retry_seconds)
                continue
            self.connected = True
            logger.info("Database connected successfully")
            return

    def start(self) -> asyncio.Task[None]:
        """Schedule :meth:`connect_with_retry` in the background."""
        self._retry_task = asyncio.create_task(self.connect_with_retry())
        return self._retry_task

    async def close(self) -> None:
        """Stop any pending retry loop and release pooled connections."""
        if self._retry_task is not None and not self._retry_task.done():
            self._retry_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._retry_task
        self._retry_task = None
        await self.engine.dispose()
        self.connected = False
        logger.info("Database connection closed")
