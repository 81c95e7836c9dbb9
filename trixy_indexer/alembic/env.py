import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from trixy_indexer.app.infrastructure.db.db_base import BaseDB
from trixy_indexer.app.infrastructure.db.engine import create_app_async_engine
from trixy_indexer.app.config import get_settings

# Registers every table on BaseDB.metadata
import trixy_indexer.app.infrastructure.db.models.trixy  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = BaseDB.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=get_settings().database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    engine = create_app_async_engine()
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
