"""Database engine, session factory and declarative base."""

import logging
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from gitextractor.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by every domain table."""


def build_engine(database_url: str, echo: bool = False, pool_size: int | None = None) -> Engine:
    """Create an engine for the given URL.

    SQLite does not accept pool sizing arguments, so they are only passed
    for server databases.
    """
    kwargs: dict = {"echo": echo, "pool_pre_ping": True}
    if pool_size and not database_url.startswith("sqlite"):
        kwargs["pool_size"] = pool_size
    return create_engine(database_url, **kwargs)


@lru_cache
def get_engine() -> Engine:
    """Get the cached engine configured from settings."""
    settings = get_settings()
    engine = build_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
    )
    logger.info(f"Database engine created for dialect {engine.dialect.name}")
    return engine


def get_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Create a session factory bound to ``engine`` (settings engine by default)."""
    return sessionmaker(
        bind=engine or get_engine(),
        expire_on_commit=False,
    )


def init_db(engine: Engine | None = None) -> None:
    """Create all domain tables that do not exist yet."""
    # Import models so they register on Base.metadata
    import gitextractor.models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.info(f"Initialized {len(Base.metadata.tables)} tables")
