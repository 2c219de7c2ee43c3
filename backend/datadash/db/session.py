from __future__ import annotations

import os
from functools import lru_cache
from typing import Generator, Optional

import structlog
from fastapi import Depends
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from datadash.config import get_settings
from datadash.errors import NotConfiguredError

logger = structlog.get_logger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "DATABASE_URL is not configured. Set DATABASE_URL in the environment to enable writes."
)
UNREACHABLE_MESSAGE = "Database is unreachable. Writes are disabled until it is back."


def _select_database_url() -> Optional[str]:
    settings = get_settings()
    env_name = (settings.ENV or "dev").lower()

    if env_name == "test" or os.getenv("PYTEST_CURRENT_TEST"):
        test_url = settings.TEST_DATABASE_URL or os.getenv("TEST_DATABASE_URL")
        if test_url:
            return test_url

    return settings.DATABASE_URL or os.getenv("DATABASE_URL") or None


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:") or url.endswith(":memory:?cache=shared"):
            return create_engine(
                url,
                connect_args=connect_args,
                poolclass=StaticPool,
                future=True,
            )
        return create_engine(url, connect_args=connect_args, future=True)

    return create_engine(url, pool_pre_ping=True, future=True)


def database_configured() -> bool:
    return _select_database_url() is not None


@lru_cache
def get_engine() -> Engine:
    """Process-wide engine, built on first use. Raises NotConfiguredError when no URL is set."""
    url = _select_database_url()
    if url is None:
        raise NotConfiguredError(NOT_CONFIGURED_MESSAGE)
    engine = _build_engine(url)
    logger.info("db.engine_created", dialect=engine.dialect.name)
    return engine


@lru_cache
def get_sessionmaker() -> sessionmaker[Session]:
    return sessionmaker(
        bind=get_engine(),
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        future=True,
    )


def get_db() -> Generator[Optional[Session], None, None]:
    """Yield a session, or None when storage is not configured (read paths fall back to sample data)."""
    if not database_configured():
        yield None
        return
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


def reachable(db: Optional[Session]) -> bool:
    """Round-trip a trivial query; a configured but unreachable database counts as absent."""
    if db is None:
        return False
    try:
        db.execute(text("SELECT 1"))
    except DBAPIError as exc:
        db.rollback()
        logger.warning("db.unreachable", error=str(exc.orig or exc))
        return False
    return True


def require_db(db: Optional[Session] = Depends(get_db)) -> Session:
    if db is None:
        raise NotConfiguredError(NOT_CONFIGURED_MESSAGE)
    if not reachable(db):
        raise NotConfiguredError(UNREACHABLE_MESSAGE)
    return db


def init_db() -> None:
    # Lazy import to avoid circular dependency at module import time
    from datadash.db.base import Base  # pylint: disable=import-outside-toplevel

    Base.metadata.create_all(bind=get_engine())
