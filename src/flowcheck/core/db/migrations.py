"""Reusable migration runner for both production and tests."""

import asyncio

from alembic.config import Config

from alembic import command


def run_migrations_sync(revision: str = "head", database_url: str | None = None) -> None:
    """Run Alembic migrations synchronously.

    Args:
        revision: Target revision.
        database_url: Database to migrate. Defaults to DATABASE_URL from settings.
    """
    alembic_cfg = Config("alembic.ini")
    if database_url:
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_cfg, revision)


async def run_migrations_async(revision: str = "head", database_url: str | None = None) -> None:
    """Run Alembic migrations from async context.

    Alembic's env.py drives its own sync engine, so it runs in a worker thread.
    """
    await asyncio.to_thread(run_migrations_sync, revision, database_url)
