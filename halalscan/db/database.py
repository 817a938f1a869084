"""
==============================================================================
Registry Database Module
==============================================================================

Engine and session wiring for the product registry.

The registry holds a single table and serves short request-scoped
sessions, so there is one lazily built engine per process and one
sessionmaker bound to it. SQLite (the default) is opened with
check_same_thread disabled because FastAPI may hand a request to a
worker thread.

==============================================================================
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from halalscan.config import get_settings


# Module logger
logger = logging.getLogger(__name__)

Base = declarative_base()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Build the registry engine from settings on first use."""
    settings = get_settings()
    url = settings.database_url

    connect_args = {}
    if url.startswith("sqlite"):
        settings.ensure_directories()
        connect_args["check_same_thread"] = False

    engine = create_engine(url, connect_args=connect_args, echo=settings.debug)
    logger.info(f"🗄️ Registry database: {engine.url.render_as_string(hide_password=True)}")
    return engine


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def ping(session: Session) -> bool:
    """True if the database answers a trivial query."""
    try:
        session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"❌ Registry database unreachable: {e}")
        return False
    return True


def init_db() -> None:
    """Create the products table if it does not exist."""
    Base.metadata.create_all(bind=get_engine())
    logger.info("Registry tables created/verified")


def dispose_engine() -> None:
    """Release pooled connections on shutdown."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
        logger.info("Registry database connections closed")
