"""Shared pytest fixtures for Runsheet tests.

Unit tests run against InMemoryCueStore with a fixed clock.

Integration tests (marked `integration`) share one PostgreSQL database per
session: an external one described by TEST_DATABASE_* vars, or a throwaway
testcontainers instance. Every table is truncated after each test.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Iterator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from pydantic_settings import SettingsConfigDict
from sqlalchemy import URL, make_url, text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from runsheet.config.settings import DatabaseSettings
from runsheet.constants import DB_SCHEMA
from runsheet.cues.clock import ScheduleClock
from runsheet.cues.controller import RunController
from runsheet.cues.models import CueInput
from runsheet.store.database import database_url, ensure_schema, make_session_factory
from runsheet.store.memory import InMemoryCueStore
from runsheet.store.models import Base

# Fixed "now" for unit tests: 09:05 run-local.
FIXED_NOW = datetime(2026, 3, 14, 9, 5, tzinfo=UTC)


def make_input(
    title: str = "Opening Audio Check",
    scheduled_time: str = "09:00",
    duration_minutes: int = 15,
    **kwargs,
) -> CueInput:
    return CueInput.build(
        scheduled_time=scheduled_time,
        duration_minutes=duration_minutes,
        title=title,
        **kwargs,
    )


@pytest.fixture
def store() -> InMemoryCueStore:
    return InMemoryCueStore()


@pytest.fixture
def clock() -> ScheduleClock:
    return ScheduleClock(lambda: FIXED_NOW)


@pytest.fixture
def controller(store: InMemoryCueStore, clock: ScheduleClock) -> RunController:
    return RunController("ws-1", store, clock=clock, store_timeout_s=1.0)


# ---------------------------------------------------------------------------
# PostgreSQL (integration)
# ---------------------------------------------------------------------------


class _TestDatabaseSettings(DatabaseSettings):
    """DatabaseSettings read from TEST_DATABASE_* instead of DATABASE_*."""

    model_config = SettingsConfigDict(env_prefix="TEST_DATABASE_")

    name: str = "runsheet_test"


def _require_test_database(url: URL) -> None:
    # Tables are truncated after every test.
    if "_test" not in (url.database or "").lower():
        raise RuntimeError(
            f"Refusing to run integration tests against '{url.database}'; "
            "the database name must contain '_test'."
        )


@pytest.fixture(scope="session")
def pg_url() -> Iterator[URL]:
    """Async URL of a disposable PostgreSQL database.

    Uses TEST_DATABASE_HOST (and friends) when set, otherwise starts a
    postgres:16 container via testcontainers for the whole session.
    """
    if os.getenv("TEST_DATABASE_HOST"):
        url = database_url(_TestDatabaseSettings())
        _require_test_database(url)
        yield url
        return

    from testcontainers.postgres import PostgresContainer

    with PostgresContainer("postgres:16", dbname="runsheet_test", driver="asyncpg") as pg:
        url = make_url(pg.get_connection_url())
        _require_test_database(url)
        yield url


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def db_engine(pg_url: URL) -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(pg_url)
    await ensure_schema(engine)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.execute(text(f"DROP SCHEMA IF EXISTS {DB_SCHEMA} CASCADE"))
        await engine.dispose()


@pytest_asyncio.fixture(loop_scope="session")
async def db_session_factory(db_engine: AsyncEngine) -> AsyncIterator[async_sessionmaker]:
    factory = make_session_factory(db_engine)
    yield factory
    async with db_engine.begin() as conn:
        tables = ", ".join(f"{DB_SCHEMA}.{t.name}" for t in Base.metadata.sorted_tables)
        await conn.execute(text(f"TRUNCATE {tables}"))
