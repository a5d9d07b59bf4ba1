import logging
import os
from typing import Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Engines and sessionmakers are created lazily, one per database URL, so tests
# can point the app at a fresh database before anything connects.
_engines: Dict[str, Engine] = {}
_sessionmakers: Dict[str, sessionmaker] = {}


def _resolve_url(database_url: Optional[str]) -> str:
    return database_url or os.getenv("DATABASE_URL", "sqlite:///./clinic.db")


def get_engine(database_url: Optional[str] = None) -> Engine:
    """Return a cached SQLAlchemy engine for the given (or env) database URL."""
    url_str = _resolve_url(database_url)
    engine = _engines.get(url_str)
    if engine is not None:
        return engine

    url = make_url(url_str)
    if url.drivername.startswith("postgres"):
        engine = create_engine(
            url_str,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Detects and refreshes stale connections
            pool_recycle=3600,
            connect_args={
                "application_name": "clinic_api",  # Visible in pg_stat_activity
                "connect_timeout": 10,
            },
        )
    elif url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
        # Single shared in-memory database so DDL persists across sessions
        engine = create_engine(
            url_str,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    elif url.drivername.startswith("sqlite"):
        engine = create_engine(url_str, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(url_str)

    logger.info(
        "Database engine created",
        extra={
            "context": {
                "dialect": engine.dialect.name,
                "url": url.render_as_string(hide_password=True),
            }
        },
    )
    _engines[url_str] = engine
    return engine


def get_sessionmaker(database_url: Optional[str] = None) -> sessionmaker:
    """Return a cached sessionmaker bound to the lazy engine."""
    url_str = _resolve_url(database_url)
    factory = _sessionmakers.get(url_str)
    if factory is None:
        factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(url_str),
        )
        _sessionmakers[url_str] = factory
    return factory


def SessionLocal(database_url: Optional[str] = None) -> Session:
    """Return a new Session bound to the engine for `database_url`."""
    return get_sessionmaker(database_url)()


def create_tables(database_url: Optional[str] = None) -> None:
    """Create all tables in the database using the lazy engine."""
    from clinic.db import base  # noqa: F401  (populates Base.metadata)

    Base.metadata.create_all(bind=get_engine(database_url))


def drop_tables(database_url: Optional[str] = None) -> None:
    from clinic.db import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine(database_url))


def dispose_engines() -> None:
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()
    _sessionmakers.clear()
