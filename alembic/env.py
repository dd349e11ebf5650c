"""
Alembic migration environment for QGO Fleet Dispatch.

Migrations run through the same async driver as the service. The URL is
taken, in order, from ``-x db_url=...``, ``sqlalchemy.url`` in alembic.ini,
DATABASE_URL (when it is an async SQL URL) and finally DATABASE_URL_SYNC.
"""
import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from qgo_dispatch.core.config import get_settings  # noqa: E402
from qgo_dispatch.db.database import Base  # noqa: E402
import qgo_dispatch.models  # noqa: E402, F401

target_metadata = Base.metadata

# Sync driver name -> async driver used at runtime
ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def resolve_url() -> str:
    cmd_line_url = context.get_x_argument(as_dictionary=True).get("db_url")
    if cmd_line_url:
        return cmd_line_url
    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return ini_url

    settings = get_settings()
    if settings.store_configured and "://" in settings.database_url and not settings.database_url.startswith("memory"):
        return settings.database_url
    return settings.database_url_sync


def as_async_url(url: str) -> str:
    parsed = make_url(url)
    driver = ASYNC_DRIVERS.get(parsed.drivername)
    if driver is None:
        return url
    return parsed.set(drivername=driver).render_as_string(hide_password=False)


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    context.configure(
        url=resolve_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = as_async_url(resolve_url())

    connectable = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
