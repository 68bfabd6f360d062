"""Alembic environment for the blocker tables.

The URL comes from DATABASE_URL (or settings), never from alembic.ini, so
the app and its migrations always target the same database.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from blocker_workflow.db import audit_models, models  # noqa: F401  registers the tables
from blocker_workflow.db.base import Base, get_database_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def run_offline(url: str) -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=Base.metadata, **COMPARE_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(get_database_url())
else:
    run_online(get_database_url())
