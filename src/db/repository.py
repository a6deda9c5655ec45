"""Protocol for the game state store (in-memory demo store, SQL store, or any hosted backend)."""

from typing import Callable, Protocol

from src.core.models import GameState

Listener = Callable[[GameState], None]


class Subscription(Protocol):
    def cancel(self) -> None:
        """Stop receiving notifications. Calling it twice is harmless."""
        ...


class GameStateStore(Protocol):
    """Persists and broadcasts the canonical record of each game."""

    def get(self, game_id: str) -> GameState | None:
        """Get game state by ID, if record exists."""
        ...

    def create(self, game_id: str, initial: GameState) -> GameState:
        """Store a new record and return what was stored."""
        ...

    def update(self, game_id: str, state: GameState) -> GameState | None:
        """Replace an existing record as a whole (last write wins). None if there is no such record."""
        ...

    def delete(self, game_id: str) -> GameState | None:
        """Remove a game's record."""
        ...

    def subscribe(self, game_id: str, on_change: Listener) -> Subscription:
        """Get called with the stored state after every create/update of this game."""
        ...
