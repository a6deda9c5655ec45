"""Builders shared by the test modules."""

from src.core.models import GameState

# A fixed instant (ms since epoch) most tests start from
T0 = 1_700_000_000_000


class ManualTimeSource:
    """Fake wall clock. Only moves when told to."""

    def __init__(self, start: int = T0) -> None:
        self.current = start

    def now(self) -> int:
        return self.current

    def advance(self, ms: int) -> None:
        self.current += ms


def make_state(**overrides) -> GameState:
    """Default stopped 15:00 clock at 0-0, overridable field by field."""
    values = dict(
        home_score=0,
        away_score=0,
        period=1,
        clock_duration_seconds=900,
        is_running=False,
        clock_anchor=None,
        penalties={},
        last_updated=T0,
    )
    values.update(overrides)
    return GameState(**values)
