"""
Database configuration and session management.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app import config

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str = config.DATABASE_URL, echo: bool = config.DATABASE_ECHO) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across sessions."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=echo)


engine = make_engine()

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


def init_database(bind: Engine = engine) -> None:
    """Create all tables that don't exist yet."""
    # Importing the models registers them on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created", extra={"url": bind.url.render_as_string(hide_password=True)})


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Iterator[Session]:
    """Provide a session that commits on success and rolls back on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
