"""Implementation of GameStateStore using SQLAlchemy"""

import logging
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError, StoreUnavailableError
from src.core.models import GameState
from src.db.listeners import ListenerRegistry, ListenerSubscription
from src.db.repository import Listener
from src.db.schema import DBGameState
from src.db.serialization import from_record, to_record

logger = logging.getLogger(__name__)

COLUMNS = (
    "home_score",
    "away_score",
    "period",
    "clock_duration_seconds",
    "is_running",
    "clock_anchor",
    "penalties",
    "last_updated",
)


class SQLGameStateStore:
    """
    Data stored using SQL / methods implemented using SQLAlchemy.

    Every call opens its own short-lived session, so the store can be used from worker threads.
    Subscribers are notified by this store instance only (no database-level change feed).
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory
        self._listeners = ListenerRegistry()

    def get(self, game_id: str) -> GameState | None:
        """Get game state by ID, if record exists."""
        with self._session() as db:
            row = self._fetch(db, game_id)
            if row is None:
                return None
            return self._to_state(row)

    def create(self, game_id: str, initial: GameState) -> GameState:
        """Store a new record and return the stored data."""
        with self._session() as db:
            if self._fetch(db, game_id) is not None:
                raise RepositoryError(f"Game with {game_id=} already exists.")
            row = DBGameState(id=game_id, **to_record(initial))
            db.add(row)
            db.commit()
            db.refresh(row)
            stored = self._to_state(row)
        logger.info("Created game %s", game_id)
        self._listeners.notify(game_id, stored)
        return stored

    def update(self, game_id: str, state: GameState) -> GameState | None:
        """Overwrite every column of an existing record."""
        with self._session() as db:
            row = self._fetch(db, game_id)
            if row is None:
                return None
            for column, value in to_record(state).items():
                setattr(row, column, value)
            db.commit()
            db.refresh(row)
            stored = self._to_state(row)
        self._listeners.notify(game_id, stored)
        return stored

    def delete(self, game_id: str) -> GameState | None:
        """Remove a game's record."""
        with self._session() as db:
            row = self._fetch(db, game_id)
            if row is None:
                return None
            state = self._to_state(row)
            db.delete(row)
            db.commit()
            return state

    def subscribe(self, game_id: str, on_change: Listener) -> ListenerSubscription:
        return self._listeners.add(game_id, on_change)

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        """Short-lived session. Backend failures surface as StoreUnavailableError."""
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"Database error: {e}") from e
        finally:
            db.close()

    def _fetch(self, db: Session, game_id: str) -> DBGameState | None:
        query = select(DBGameState).where(DBGameState.id == game_id)
        return db.scalar(query)

    def _to_state(self, row: DBGameState) -> GameState:
        """Convert SQLAlchemy row to the boundary model (validated)."""
        record: dict[str, Any] = {column: getattr(row, column) for column in COLUMNS}
        return from_record(record)
