"""Alembic migration environment for the runsheet schema.

Connection settings come from DatabaseSettings (DATABASE_* env vars / .env),
so migrations and the gateway always agree on the target database.
"""

from logging.config import fileConfig

from sqlalchemy import URL, create_engine, pool, text

from alembic import context
from runsheet.config.settings import DatabaseSettings
from runsheet.constants import DB_SCHEMA
from runsheet.store.database import database_url
from runsheet.store.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> URL:
    # Alembic runs synchronously, so psycopg stands in for asyncpg.
    return database_url(DatabaseSettings(), driver="psycopg")


def include_name(name, type_, parent_names):
    """Autogenerate only looks at the runsheet schema."""
    if type_ == "schema":
        return name == DB_SCHEMA
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        version_table_schema=DB_SCHEMA,
        include_schemas=True,
        include_name=include_name,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a live connection."""
    _configure(
        url=_database_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)

    with engine.connect() as connection:
        # The version table lives inside the schema, so it must exist first.
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {DB_SCHEMA}"))
        connection.commit()

        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()

    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
