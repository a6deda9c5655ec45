"""Per-game listener registry used by the stores to fan out changes to subscribers."""

import logging
import threading
from collections import defaultdict

from src.core.models import GameState
from src.db.repository import Listener

logger = logging.getLogger(__name__)


class ListenerSubscription:
    """Handle returned by `subscribe`."""

    def __init__(self, registry: "ListenerRegistry", game_id: str, listener: Listener) -> None:
        self._registry = registry
        self._game_id = game_id
        self._listener = listener
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self._registry.remove(self._game_id, self._listener)


class ListenerRegistry:
    """Thread-safe: stores may be called from worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def add(self, game_id: str, listener: Listener) -> ListenerSubscription:
        with self._lock:
            self._listeners[game_id].append(listener)
        return ListenerSubscription(self, game_id, listener)

    def remove(self, game_id: str, listener: Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(game_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(game_id, None)

    def count(self, game_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(game_id, []))

    def notify(self, game_id: str, state: GameState) -> None:
        """Deliver to every listener. One failing listener does not stop the others."""
        with self._lock:
            listeners = list(self._listeners.get(game_id, []))
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Listener for game %s failed.", game_id)
