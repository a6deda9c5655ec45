"""Display-ready projection of a GameState. Computed on every refresh by any role, never persisted."""

import logging
from typing import Callable

from src.api.models import PenaltyView, ScoreboardView
from src.core.models import GameState, Millis
from src.scoreboard import clock, penalties
from src.scoreboard.game import maintain

logger = logging.getLogger(__name__)


def safe_remaining(derive: Callable[[], int], debug: bool) -> int:
    """
    Run a derivation. Should it blow up (broken invariant), re-raise in debug mode, otherwise show zero so the
    scoreboard keeps rendering.
    """
    try:
        return derive()
    except Exception:
        if debug:
            raise
        logger.exception("Failed to derive remaining time, displaying zero.")
        return 0


def build_view(state: GameState, now: Millis, debug: bool = False) -> ScoreboardView:
    """
    Derived values as of `now`.

    The auto-stop and penalty expiry are applied to a local copy only, so a spectator shows a stopped clock and
    no expired penalties without ever writing to the store.
    """
    try:
        current = maintain(state, now)
    except Exception:
        if debug:
            raise
        logger.exception("Maintenance step failed while building the view.")
        current = state

    remaining = safe_remaining(lambda: clock.derive_remaining(current, now), debug)
    penalty_views = []
    for p in current.penalties.values():
        left = safe_remaining(lambda p=p: penalties.derive_remaining(p, now), debug)
        if left <= 0:
            continue
        penalty_views.append(
            PenaltyView(
                id=p.id,
                team=p.team,
                player_number=p.player_number,
                remaining_seconds=left,
                display=clock.format_clock(left),
            )
        )
    penalty_views.sort(key=lambda v: (v.remaining_seconds, v.id))

    return ScoreboardView(
        home_score=current.home_score,
        away_score=current.away_score,
        period=current.period,
        clock_seconds=remaining,
        clock_display=clock.format_clock(remaining),
        is_running=current.is_running and remaining > 0,
        penalties=penalty_views,
        last_updated=current.last_updated,
    )
