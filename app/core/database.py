"""Engine and per-request sessions backing the users repository."""

from collections.abc import Generator
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings


def make_engine(url: str, **kwargs: Any) -> Engine:
    """
    Build an engine for the users database.

    SQLite connections are handed between the worker threads FastAPI runs sync routes on,
    so the same-thread check is turned off for them. Extra kwargs go to create_engine.
    """
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, **kwargs)


engine = make_engine(settings.DATABASE_URL, pool_pre_ping=True, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    One session per request, shared by UserService and the auth dependencies.
    UserService commits its own writes; anything left uncommitted is discarded on close.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Health check for the users database."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
