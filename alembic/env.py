"""Alembic environment for the club-shares schema.

Migrations are hand-written SQL (op.execute); there is no ORM metadata to
autogenerate against. The target database comes from settings unless given
on the command line: ``alembic -x db_url=postgresql+asyncpg://... upgrade head``.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from config.settings import settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

VERSION_TABLE = "cs_alembic_version"


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("db_url", settings.DATABASE_URL)


def _configure(**kwargs: object) -> None:
    context.configure(
        target_metadata=None,
        version_table=VERSION_TABLE,
        # Each revision commits on its own so a failed CHECK leaves earlier tables in place.
        transaction_per_migration=True,
        **kwargs,
    )


if context.is_offline_mode():
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:

    def _migrate(connection: Connection) -> None:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()

    async def _migrate_async() -> None:
        engine = create_async_engine(_database_url(), poolclass=NullPool)
        try:
            async with engine.connect() as connection:
                await connection.run_sync(_migrate)
        finally:
            await engine.dispose()

    asyncio.run(_migrate_async())
