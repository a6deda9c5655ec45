"""
Timed penalties. Each one counts down independently from its own anchor and disappears once it reaches zero.
"""

import logging
from dataclasses import replace
from typing import Mapping

from src.core.exceptions import ValidationError
from src.core.models import GameState, Millis, Penalty, PenaltyId
from src.core.shared_types import Team
from src.scoreboard.clock import elapsed_seconds, validate_time

logger = logging.getLogger(__name__)

MAX_PLAYER_NUMBER_LENGTH = 3


def derive_remaining(penalty: Penalty, now: Millis) -> int:
    return max(0, penalty.duration_seconds - elapsed_seconds(penalty.anchor, now))


def validate_player_number(player_number: str) -> str:
    """Return the trimmed player number, or raise if it is empty or too long."""
    cleaned = player_number.strip()
    if not cleaned:
        raise ValidationError("Player number is required.")
    if len(cleaned) > MAX_PLAYER_NUMBER_LENGTH:
        raise ValidationError(
            f"Player number can have at most {MAX_PLAYER_NUMBER_LENGTH} characters, got {cleaned!r}."
        )
    return cleaned


def new_penalty_id(
    team: Team, player_number: str, now: Millis, taken: Mapping[PenaltyId, Penalty]
) -> PenaltyId:
    """
    `<team>-<player>-<millis>`. Two penalties for the same player within one millisecond get a numeric suffix.
    """
    base = f"{team.value}-{player_number}-{now}"
    candidate = base
    n = 1
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    return candidate


def add(
    state: GameState,
    team: Team,
    player_number: str,
    minutes: int,
    seconds: int,
    now: Millis,
) -> GameState:
    """Create a penalty that starts counting down at `now`."""
    team = Team(team)
    number = validate_player_number(player_number)
    duration = validate_time(minutes, seconds)
    if duration <= 0:
        raise ValidationError("Penalty duration must be greater than zero.")

    penalty_id = new_penalty_id(team, number, now, state.penalties)
    penalty = Penalty(
        id=penalty_id,
        team=team,
        player_number=number,
        duration_seconds=duration,
        anchor=now,
    )
    return replace(
        state, penalties={**state.penalties, penalty_id: penalty}, last_updated=now
    )


def remove(state: GameState, penalty_id: PenaltyId, now: Millis) -> GameState:
    """Delete a penalty. Removing an unknown id returns the state untouched."""
    if penalty_id not in state.penalties:
        return state
    remaining = {pid: p for pid, p in state.penalties.items() if pid != penalty_id}
    return replace(state, penalties=remaining, last_updated=now)


def sweep_expired(state: GameState, now: Millis) -> GameState:
    """Drop every penalty that has run out. Same object back if none did."""
    active = {
        pid: p for pid, p in state.penalties.items() if derive_remaining(p, now) > 0
    }
    if len(active) == len(state.penalties):
        return state
    logger.debug(
        "Penalties expired: %s",
        ", ".join(sorted(set(state.penalties) - set(active))),
    )
    return replace(state, penalties=active, last_updated=now)
