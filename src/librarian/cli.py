#!/usr/bin/env python3
"""
Main CLI entry point for the Librarian backend server.
"""

import asyncio
import os
import sys

import click
import uvicorn

from librarian import __version__
from librarian.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="librarian")
def cli() -> None:
    """Librarian CLI - run the API server and manage its database."""
    pass


@cli.command()
@click.option(
    "--host",
    default="0.0.0.0",
    help="Host to bind to (default: 0.0.0.0)",
)
@click.option(
    "--port",
    default=4000,
    type=int,
    help="Port to bind to (default: 4000)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
@click.option(
    "--workers",
    default=1,
    type=int,
    help="Number of worker processes (default: 1)",
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(
    host: str,
    port: int,
    reload: bool,
    workers: int,
    log_level: str,
) -> None:
    """Start the Librarian API server."""
    configure_logging(debug=(log_level == "debug"), level=log_level)

    logger.info(
        "Starting Librarian API server",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )

    # Settings are read when the app module is imported, possibly in a fresh process
    if log_level == "debug":
        os.environ["LIBRARIAN_DEBUG"] = "true"
        os.environ["LIBRARIAN_LOG_LEVEL"] = "debug"
    else:
        os.environ.setdefault("LIBRARIAN_DEBUG", "false")
        os.environ.setdefault("LIBRARIAN_LOG_LEVEL", log_level)

    if workers > 1 and os.environ.get("LIBRARIAN_EVENT_BUS_BACKEND", "memory") == "memory":
        logger.warning(
            "Running several workers with the in-memory event bus",
            note="Subscribers only see books added through their own worker",
        )

    try:
        if reload or workers > 1:
            uvicorn.run(
                "librarian.api.app:app",
                host=host,
                port=port,
                reload=reload,
                workers=(workers if not reload else 1),
                log_level=log_level,
                access_log=True,
            )
        else:
            from librarian.api.app import app

            uvicorn.run(
                app,
                host=host,
                port=port,
                log_level=log_level,
                access_log=True,
            )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command("init-db")
@click.option(
    "--database-url",
    default=None,
    help="Database URL (default: LIBRARIAN_DATABASE_URL or settings)",
)
def init_db(database_url: str | None) -> None:
    """Create the catalog tables."""
    from librarian.database.connection import create_tables, dispose_database, init_database

    configure_logging()

    async def do_init():
        init_database(database_url, force_reinit=True)
        try:
            await create_tables()
        finally:
            await dispose_database()

    try:
        asyncio.run(do_init())
    except Exception as e:
        logger.error("Failed to create tables", error=str(e))
        click.echo(f"✗ Error creating tables: {e}", err=True)
        sys.exit(1)

    click.echo("✓ Catalog tables ready")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
