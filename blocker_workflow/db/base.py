"""
Engine, session and declarative base for the blocker tables.

The ORM and alembic both run synchronously, so async driver names that
leak in through DATABASE_URL are swapped for their blocking equivalents.
"""

import os
from typing import Dict, Generator, Optional

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings

logger = structlog.get_logger()

# async driver name -> sync driver name
_SYNC_DRIVERS: Dict[str, str] = {
    "postgresql+asyncpg": "postgresql+psycopg",
    "postgresql+aiopg": "postgresql+psycopg",
    "postgresql+psycopg_async": "postgresql+psycopg",
    "sqlite+aiosqlite": "sqlite",
}


class Base(DeclarativeBase):
    pass


def get_database_url(raw_url: Optional[str] = None) -> str:
    """Resolve the database URL: argument, then DATABASE_URL, then settings."""
    url = make_url(raw_url or os.getenv("DATABASE_URL") or get_settings().database_url)
    sync_driver = _SYNC_DRIVERS.get(url.drivername)
    if sync_driver:
        url = url.set(drivername=sync_driver)
    # str(url) masks the password
    return url.render_as_string(hide_password=False)


def create_db_engine(database_url: str) -> Engine:
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True, pool_size=10, max_overflow=20)


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_engine() -> Engine:
    """Process-wide engine, built on first use so tests can set DATABASE_URL."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(get_database_url())
        logger.info("database_engine_created", backend=_engine.url.get_backend_name())
    return _engine


def _sessions() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False)
    return _session_factory


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding one session per request."""
    with _sessions()() as db:
        yield db


def init_database(engine: Optional[Engine] = None) -> None:
    """Create any missing tables. Migrations remain the way to change them."""
    from . import audit_models, models  # noqa: F401  registers the tables

    target = engine or get_engine()
    Base.metadata.create_all(bind=target)
    logger.info("database_initialized", tables=sorted(Base.metadata.tables))
