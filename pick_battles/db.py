"""
Database helpers for the battle worker.

Provides synchronous session management for Celery tasks and a single
namespace exposing the ORM models.
"""

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .logging import logger
from .orm import (
    BattleMatchup,
    BattleSide,
    BattleStatus,
    Game,
    GameStatus,
    Pick,
    PickStatus,
)

db_models = SimpleNamespace(
    # Enums
    BattleStatus=BattleStatus,
    BattleSide=BattleSide,
    GameStatus=GameStatus,
    PickStatus=PickStatus,
    # Models
    Game=Game,
    Pick=Pick,
    BattleMatchup=BattleMatchup,
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

    Commits on clean exit, rolls back and re-raises on error.

    Usage:
        with get_session() as session:
            session.add(object)
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


__all__ = ["get_session", "db_models", "engine"]
