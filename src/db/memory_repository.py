"""In-process store (demo mode when no database is configured)."""

import logging
import threading
from typing import Any

from src.core.exceptions import RepositoryError
from src.core.models import GameState
from src.db.listeners import ListenerRegistry, ListenerSubscription
from src.db.repository import Listener
from src.db.serialization import from_record, to_record

logger = logging.getLogger(__name__)


class InMemoryGameStateStore:
    """Keeps wire records in a dict, so reads go through the same validation as any other backend."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, dict[str, Any]] = {}
        self._listeners = ListenerRegistry()

    def get(self, game_id: str) -> GameState | None:
        with self._lock:
            record = self._records.get(game_id)
        if record is None:
            return None
        return from_record(record)

    def create(self, game_id: str, initial: GameState) -> GameState:
        record = to_record(initial)
        with self._lock:
            if game_id in self._records:
                raise RepositoryError(f"Game with {game_id=} already exists.")
            self._records[game_id] = record
        stored = from_record(record)
        logger.debug("Created game %s", game_id)
        self._listeners.notify(game_id, stored)
        return stored

    def update(self, game_id: str, state: GameState) -> GameState | None:
        record = to_record(state)
        with self._lock:
            if game_id not in self._records:
                return None
            self._records[game_id] = record
        stored = from_record(record)
        self._listeners.notify(game_id, stored)
        return stored

    def delete(self, game_id: str) -> GameState | None:
        with self._lock:
            record = self._records.pop(game_id, None)
        if record is None:
            return None
        return from_record(record)

    def subscribe(self, game_id: str, on_change: Listener) -> ListenerSubscription:
        return self._listeners.add(game_id, on_change)

    def subscriber_count(self, game_id: str) -> int:
        return self._listeners.count(game_id)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
