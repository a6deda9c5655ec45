"""
Game clock derived from an anchor.

The persisted truth is `clock_duration_seconds` + `clock_anchor`. The ticking value shown on a scoreboard is
recomputed from those two fields on every read, so any number of readers can derive it without ever writing
a decrement back.
"""

import logging
from dataclasses import replace

from src.core.exceptions import ValidationError
from src.core.models import GameState, Millis

logger = logging.getLogger(__name__)

MAX_MINUTES = 99
MAX_SECONDS = 59


def elapsed_seconds(anchor: Millis, now: Millis) -> int:
    """Whole seconds elapsed since `anchor`. A `now` before the anchor counts as no time elapsed."""
    return max(0, (now - anchor) // 1000)


def derive_remaining(state: GameState, now: Millis) -> int:
    """Remaining clock time in seconds as seen at `now`."""
    if not state.is_running:
        return state.clock_duration_seconds
    assert state.clock_anchor is not None, "running clock without an anchor"
    return max(0, state.clock_duration_seconds - elapsed_seconds(state.clock_anchor, now))


def start(state: GameState, now: Millis) -> GameState:
    """Start (or resume) the clock. Rejected when there is no time left."""
    remaining = derive_remaining(state, now)
    if remaining == 0:
        raise ValidationError("Cannot start the clock: no time remaining.")
    return replace(
        state,
        clock_duration_seconds=remaining,
        is_running=True,
        clock_anchor=now,
        last_updated=now,
    )


def pause(state: GameState, now: Millis) -> GameState:
    """Freeze the derived remaining time into the stored duration."""
    return replace(
        state,
        clock_duration_seconds=derive_remaining(state, now),
        is_running=False,
        clock_anchor=None,
        last_updated=now,
    )


def require_whole_number(value: int, name: str) -> int:
    """Reject anything that is not a plain int (floats, bools, numeric strings)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be a whole number, got {value!r}.")
    return value


def validate_time(minutes: int, seconds: int) -> int:
    """Check a minutes/seconds pair entered by the user and return the total in seconds."""
    require_whole_number(minutes, "Minutes")
    require_whole_number(seconds, "Seconds")
    if not 0 <= minutes <= MAX_MINUTES:
        raise ValidationError(f"Minutes must be between 0 and {MAX_MINUTES}, got {minutes}.")
    if not 0 <= seconds <= MAX_SECONDS:
        raise ValidationError(f"Seconds must be between 0 and {MAX_SECONDS}, got {seconds}.")
    return minutes * 60 + seconds


def set_absolute(state: GameState, minutes: int, seconds: int, now: Millis) -> GameState:
    """Overwrite the clock with a custom time. The clock is stopped."""
    total = validate_time(minutes, seconds)
    return replace(
        state,
        clock_duration_seconds=total,
        is_running=False,
        clock_anchor=None,
        last_updated=now,
    )


def reset(state: GameState, default_seconds: int, now: Millis) -> GameState:
    """Back to the configured default duration, stopped."""
    return replace(
        state,
        clock_duration_seconds=default_seconds,
        is_running=False,
        clock_anchor=None,
        last_updated=now,
    )


def tick_check(state: GameState, now: Millis) -> GameState:
    """
    Auto-stop at zero.

    Returns the very same object when nothing has to change, so repeated calls after the stop are no-ops and
    the caller can detect a transition by identity.
    """
    if not state.is_running or derive_remaining(state, now) > 0:
        return state
    logger.info("Clock reached zero, stopping.")
    return replace(
        state,
        clock_duration_seconds=0,
        is_running=False,
        clock_anchor=None,
        last_updated=now,
    )


def format_clock(seconds: int) -> str:
    """MM:SS as displayed on the scoreboard."""
    seconds = max(0, seconds)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
