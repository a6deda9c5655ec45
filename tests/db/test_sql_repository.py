"""Unit tests for src/db/sql_repository.py"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.exceptions import RepositoryError, StoreUnavailableError
from src.core.models import GameState, Penalty
from src.core.shared_types import Team
from src.db.sql_repository import SQLGameStateStore
from tests.factories import T0, make_state


def _with_penalties(**overrides) -> GameState:
    return make_state(
        penalties={
            "Home-7-1": Penalty("Home-7-1", Team.HOME, "7", 120, T0),
            "Away-4-2": Penalty("Away-4-2", Team.AWAY, "4", 60, T0 + 500),
        },
        **overrides,
    )


def test_create_game(session_factory: sessionmaker[Session]) -> None:
    """Conversion from a GameState to a row for a new entry to the database."""
    state = _with_penalties(is_running=True, clock_anchor=T0)
    repo = SQLGameStateStore(session_factory)
    stored = repo.create("demo-game-1", state)
    assert isinstance(stored, GameState)
    assert stored == state


def test_get_game_by_id(session_factory: sessionmaker[Session]) -> None:
    """Create a game, then fetch it from db."""
    repo = SQLGameStateStore(session_factory)
    expected = repo.create("g1", _with_penalties())
    assert repo.get("g1") == expected


def test_get_unknown_game(session_factory: sessionmaker[Session]) -> None:
    """
    Should return None if ID does not match anything in database.

    NOTE with an empty database, any id is a valid test case.
    """
    repo = SQLGameStateStore(session_factory)
    assert repo.get("unknown") is None

    # Now do it with creating a game, but retrieving from the wrong ID
    repo.create("g1", make_state())
    assert repo.get("g2") is None


def test_create_existing_game_fails(session_factory: sessionmaker[Session]) -> None:
    repo = SQLGameStateStore(session_factory)
    repo.create("g1", make_state())
    with pytest.raises(RepositoryError):
        repo.create("g1", make_state(home_score=7))
    assert repo.get("g1") == make_state()


def test_consecutive_game_updates(session_factory: sessionmaker[Session]) -> None:
    """Tests that we can successfully make multiple updates to the same game."""
    repo = SQLGameStateStore(session_factory)
    repo.create("g1", make_state())

    # make some updates "loosely simulate real scenario"
    first = make_state(is_running=True, clock_anchor=T0 + 1000, last_updated=T0 + 1000)
    second = _with_penalties(is_running=True, clock_anchor=T0 + 1000, last_updated=T0 + 2000)
    third = make_state(home_score=1, clock_duration_seconds=880, last_updated=T0 + 21_000)

    assert repo.update("g1", first) == first
    assert repo.update("g1", second) == second
    assert repo.update("g1", third) == third

    after_all_updates = repo.get("g1")
    assert after_all_updates == third
    assert after_all_updates.penalties == {}


def test_attempt_updating_unknown_game(session_factory: sessionmaker[Session]) -> None:
    """The update() method should break early and return None"""
    repo = SQLGameStateStore(session_factory)
    assert repo.update("unknown", make_state()) is None


def test_delete_game(session_factory: sessionmaker[Session]) -> None:
    """Record of the game should no longer exist after deletion"""
    repo = SQLGameStateStore(session_factory)
    created = repo.create("g1", _with_penalties())
    assert repo.delete("g1") == created
    assert repo.get("g1") is None
    assert repo.delete("g1") is None


def test_subscribers_are_notified(session_factory: sessionmaker[Session]) -> None:
    repo = SQLGameStateStore(session_factory)
    seen: list[GameState] = []
    subscription = repo.subscribe("g1", seen.append)

    repo.create("g1", make_state())
    repo.update("g1", make_state(away_score=1, last_updated=T0 + 1))
    subscription.cancel()
    repo.update("g1", make_state(away_score=2, last_updated=T0 + 2))

    assert [s.away_score for s in seen] == [0, 1]


def test_database_failure_is_reported_as_unavailable() -> None:
    """A backend that cannot be reached surfaces as StoreUnavailableError, not a raw SQLAlchemy error."""
    # Tables never created -> every query fails
    broken_factory = sessionmaker(bind=create_engine("sqlite:///:memory:"))
    repo = SQLGameStateStore(broken_factory)
    with pytest.raises(StoreUnavailableError):
        repo.get("g1")
