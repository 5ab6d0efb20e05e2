"""Async PostgreSQL engine, schema bootstrap and session factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import URL, text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from runsheet.constants import DB_SCHEMA
from runsheet.store.models import Base

if TYPE_CHECKING:
    from runsheet.config.settings import DatabaseSettings

logger = structlog.get_logger()


def database_url(settings: DatabaseSettings, *, driver: str = "asyncpg") -> URL:
    """Connection URL for the configured database. Credentials are escaped."""
    return URL.create(
        f"postgresql+{driver}",
        username=settings.user,
        password=settings.password or None,
        host=settings.host,
        port=settings.port,
        database=settings.name,
    )


async def create_db_engine(settings: DatabaseSettings) -> AsyncEngine:
    engine = create_async_engine(
        database_url(settings),
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        # Unqualified names resolve to the runsheet schema first.
        connect_args={"server_settings": {"search_path": f"{settings.schema_}, public"}},
    )
    logger.info(
        "db_engine_created", host=settings.host, port=settings.port, database=settings.name
    )
    return engine


async def ensure_schema(engine: AsyncEngine, schema: str = DB_SCHEMA) -> None:
    """Create the schema and any missing tables. Existing tables are left as-is;
    column changes go through alembic."""
    async with engine.begin() as conn:
        await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_schema_ensured", schema=schema, tables=sorted(Base.metadata.tables))


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
