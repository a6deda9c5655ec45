"""
Entry point into the domain layer for the service layer.

Score and period transitions, creation/reset of the whole record, and the periodic maintenance step that
combines the clock auto-stop with penalty expiry. Everything here is a pure function: state in, new state out.
"""

from dataclasses import replace

from src.core.exceptions import ValidationError
from src.core.models import GameState, Millis
from src.core.shared_types import Team
from src.scoreboard import clock, penalties

MAX_SCORE = 999
MIN_PERIOD = 1
MAX_PERIOD = 10


def new_game(default_seconds: int, now: Millis) -> GameState:
    """Default record used on first access to a game identifier."""
    return GameState(
        home_score=0,
        away_score=0,
        period=MIN_PERIOD,
        clock_duration_seconds=default_seconds,
        is_running=False,
        clock_anchor=None,
        penalties={},
        last_updated=now,
    )


def reset_game(state: GameState, default_seconds: int, now: Millis) -> GameState:
    """Reinitialize in place. Only the timestamp carries over, and it moves forward."""
    return new_game(default_seconds, max(now, state.last_updated))


def validate_score(score: int) -> int:
    clock.require_whole_number(score, "Score")
    if not 0 <= score <= MAX_SCORE:
        raise ValidationError(f"Score must be between 0 and {MAX_SCORE}, got {score}.")
    return score


def validate_period(period: int) -> int:
    clock.require_whole_number(period, "Period")
    if not MIN_PERIOD <= period <= MAX_PERIOD:
        raise ValidationError(
            f"Period must be between {MIN_PERIOD} and {MAX_PERIOD}, got {period}."
        )
    return period


def set_score(state: GameState, team: Team, score: int, now: Millis) -> GameState:
    validate_score(score)
    if team == Team.HOME:
        return replace(state, home_score=score, last_updated=now)
    return replace(state, away_score=score, last_updated=now)


def adjust_score(state: GameState, team: Team, delta: int, now: Millis) -> GameState:
    """+1 / -1 buttons. Going below zero is rejected rather than silently clamped."""
    clock.require_whole_number(delta, "Score change")
    return set_score(state, team, state.score_of(team) + delta, now)


def set_period(state: GameState, period: int, now: Millis) -> GameState:
    return replace(state, period=validate_period(period), last_updated=now)


def adjust_period(state: GameState, delta: int, now: Millis) -> GameState:
    clock.require_whole_number(delta, "Period change")
    return set_period(state, state.period + delta, now)


def maintain(state: GameState, now: Millis) -> GameState:
    """
    Periodic maintenance: auto-stop the clock at zero, then drop expired penalties.

    Idempotent. Returns the same object when there was nothing to do.
    """
    return penalties.sweep_expired(clock.tick_check(state, now), now)
