"""
Database helpers for the sync worker.

Provides synchronous session management for services and Celery tasks and a
single namespace exposing every ORM model.
"""

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .logging import logger
from .models.base import Base
from .models.sports import (
    Game,
    GameStatus,
    Player,
    PlayerCareerStats,
    PlayerGameStats,
    PlayerPosition,
    PlayerSeasonStats,
    SeasonType,
    Team,
)

db_models = SimpleNamespace(
    # Enums
    GameStatus=GameStatus,
    SeasonType=SeasonType,
    PlayerPosition=PlayerPosition,
    # Entities
    Team=Team,
    Player=Player,
    Game=Game,
    # Stats
    PlayerGameStats=PlayerGameStats,
    PlayerSeasonStats=PlayerSeasonStats,
    PlayerCareerStats=PlayerCareerStats,
)


engine = create_engine(
    settings.database_url,
    future=True,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    class_=Session,
)


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional database session context manager.

    Commits on clean exit, rolls back and re-raises on error, always closes.

    Usage:
        with get_session() as session:
            session.add(obj)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.exception("db_session_rollback", error=str(exc))
        raise
    finally:
        session.close()


__all__ = ["Base", "SessionLocal", "db_models", "engine", "get_session"]
