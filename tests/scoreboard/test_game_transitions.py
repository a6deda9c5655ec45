"""Unit tests for src/scoreboard/game.py"""

import pytest

from src.core.exceptions import ValidationError
from src.core.models import Penalty
from src.core.shared_types import Team
from src.scoreboard.clock import start
from src.scoreboard.game import (
    adjust_period,
    adjust_score,
    maintain,
    new_game,
    reset_game,
    set_period,
    set_score,
)
from tests.factories import T0, make_state


def test_new_game_defaults() -> None:
    state = new_game(900, T0)
    assert (state.home_score, state.away_score) == (0, 0)
    assert state.period == 1
    assert state.clock_duration_seconds == 900
    assert not state.is_running
    assert state.clock_anchor is None
    assert state.penalties == {}
    assert state.last_updated == T0


# --- SCORE ---
def test_increment_and_decrement_score() -> None:
    state = adjust_score(make_state(), Team.HOME, 1, T0 + 1)
    state = adjust_score(state, Team.HOME, 1, T0 + 2)
    state = adjust_score(state, Team.AWAY, 1, T0 + 3)
    state = adjust_score(state, Team.HOME, -1, T0 + 4)
    assert (state.home_score, state.away_score) == (1, 1)
    assert state.last_updated == T0 + 4


def test_score_cannot_go_negative() -> None:
    state = make_state()
    with pytest.raises(ValidationError):
        adjust_score(state, Team.AWAY, -1, T0 + 1)
    assert state.away_score == 0


@pytest.mark.parametrize("score", [-1, 1000])
def test_set_score_out_of_range(score: int) -> None:
    with pytest.raises(ValidationError):
        set_score(make_state(), Team.HOME, score, T0)


@pytest.mark.parametrize("score", [1.5, 2.0, "3", False])
def test_set_score_requires_whole_number(score) -> None:
    with pytest.raises(ValidationError):
        set_score(make_state(), Team.HOME, score, T0)


def test_fractional_score_change_is_rejected() -> None:
    with pytest.raises(ValidationError):
        adjust_score(make_state(home_score=2), Team.HOME, 0.5, T0)


def test_set_score() -> None:
    state = set_score(make_state(), Team.AWAY, 999, T0 + 1)
    assert state.away_score == 999
    assert state.home_score == 0


# --- PERIOD ---
def test_period_up_and_down() -> None:
    state = adjust_period(make_state(), 1, T0 + 1)
    assert state.period == 2
    state = adjust_period(state, -1, T0 + 2)
    assert state.period == 1


@pytest.mark.parametrize("period", [0, 11])
def test_period_out_of_range(period: int) -> None:
    with pytest.raises(ValidationError):
        set_period(make_state(), period, T0)


@pytest.mark.parametrize("period", [2.5, "2", True])
def test_period_requires_whole_number(period) -> None:
    with pytest.raises(ValidationError):
        set_period(make_state(), period, T0)


def test_period_cannot_go_below_one() -> None:
    with pytest.raises(ValidationError):
        adjust_period(make_state(period=1), -1, T0)


# --- RESET GAME ---
def test_reset_game_reinitializes_everything() -> None:
    busy = make_state(
        home_score=4,
        away_score=2,
        period=3,
        is_running=True,
        clock_anchor=T0,
        penalties={"p": Penalty("p", Team.HOME, "7", 120, T0)},
    )
    fresh = reset_game(busy, 600, T0 + 10)
    assert fresh == new_game(600, T0 + 10)


def test_reset_game_timestamp_never_moves_backwards() -> None:
    state = make_state(last_updated=T0 + 5000)
    assert reset_game(state, 900, T0).last_updated == T0 + 5000


# --- MAINTENANCE ---
def test_maintain_without_changes_returns_same_object() -> None:
    state = start(make_state(clock_duration_seconds=60), T0)
    assert maintain(state, T0 + 10_000) is state


def test_maintain_stops_clock_and_sweeps_penalties_together() -> None:
    state = make_state(
        clock_duration_seconds=3,
        is_running=True,
        clock_anchor=T0,
        penalties={
            "gone": Penalty("gone", Team.AWAY, "3", 2, T0),
            "stays": Penalty("stays", Team.HOME, "8", 120, T0),
        },
    )
    after = maintain(state, T0 + 5000)
    assert not after.is_running
    assert after.clock_duration_seconds == 0
    assert set(after.penalties) == {"stays"}
    assert maintain(after, T0 + 5000) is after
