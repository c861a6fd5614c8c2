"""
Migration environment.

Migrations run on psycopg2 against the same ``DATABASE_URL`` the app uses;
the asyncpg driver name is swapped out here.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import tenderalert.models  # noqa: F401  registers every table on Base.metadata
from tenderalert.core.config import get_settings
from tenderalert.db.base import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def sync_database_url() -> str:
    url = get_settings().database_url
    for async_prefix in ("postgresql+asyncpg://", "postgresql://"):
        if url.startswith(async_prefix):
            return "postgresql+psycopg2://" + url[len(async_prefix):]
    return url


def run_migrations_offline() -> None:
    """Emit SQL to stdout (``alembic upgrade head --sql``)."""
    context.configure(
        url=sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(sync_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
