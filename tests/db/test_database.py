"""Unit tests for src/db/database.py"""

from src.core.config import Settings
from src.db.database import build_store
from src.db.memory_repository import InMemoryGameStateStore
from src.db.sql_repository import SQLGameStateStore
from tests.factories import make_state


def test_demo_mode_without_database_url() -> None:
    assert isinstance(build_store(Settings()), InMemoryGameStateStore)


def test_sql_store_with_database_url() -> None:
    store = build_store(Settings(database_url="sqlite:///:memory:"))
    assert isinstance(store, SQLGameStateStore)
    # tables were created on the fly
    assert store.get("demo-game-1") is None
    store.create("demo-game-1", make_state())
    assert store.get("demo-game-1") == make_state()
