"""Command line entry point.

Usage:
    python -m app [serve]      run the HTTP service
    python -m app init-db      create the songs table and indexes
"""

import argparse
import asyncio
import logging

import uvicorn

from app.settings import settings


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def serve() -> None:
    """Run uvicorn; on SIGTERM/SIGINT it stops accepting, drains, then runs shutdown."""
    logging.getLogger(__name__).info(
        "Server running on %s:%d", settings.service_host, settings.service_port
    )
    uvicorn.run(
        "app.main:app",
        host=settings.service_host,
        port=settings.service_port,
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )


async def _init_db() -> None:
    from app.db.engine import engine
    from app.db.session import create_schema

    try:
        await create_schema(engine)
    finally:
        await engine.dispose()
    logging.getLogger(__name__).info("Database schema created")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="song-vault", description=settings.app_name)
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "init-db"],
        help="serve the API (default) or create database tables",
    )
    args = parser.parse_args(argv)

    _configure_logging()

    if args.command == "init-db":
        asyncio.run(_init_db())
    else:
        serve()


if __name__ == "__main__":
    main()
