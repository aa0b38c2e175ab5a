"""
Database connection and session management.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException
from pocketpal.core.config import settings


def build_engine(url: str, echo: bool = False):
    """Create an engine, adjusting pool options for SQLite URLs."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # Single shared connection so every session sees the same in-memory DB
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        url,
        echo=echo,            # Log SQL queries in debug mode
        pool_pre_ping=True,   # Verify connections before using
    )


# Create database engine
engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def get_db():
    """
    Dependency that provides a database session.
    Usage in FastAPI routes:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_rollback(db) -> None:
    """
    Commit the current unit of work.
    On a database error, roll back and report it as a 400 with the driver message;
    nothing was applied, so there is nothing to undo client-side.
    """
    try:
        db.commit()
    except SQLAlchemyError as e:
        _rollback_and_raise(db, e)


def flush_or_rollback(db) -> None:
    """
    Flush pending rows so later queries in the same unit of work see them.
    A database error is handled the same way as in commit_or_rollback.
    """
    try:
        db.flush()
    except SQLAlchemyError as e:
        _rollback_and_raise(db, e)


def _rollback_and_raise(db, error: SQLAlchemyError) -> None:
    db.rollback()
    raise HTTPException(status_code=400, detail=str(getattr(error, "orig", None) or error))
