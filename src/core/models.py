"""
Boundary layer data model(s).

These objects are passed between the domain functions, the session (service) and the stores.
They are immutable: every transition returns a new GameState, the previous snapshot is never touched.
Timestamps are integer milliseconds since the Unix epoch.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from src.core.shared_types import Team

# Type aliases to make GameState easier to read
PenaltyId = str
Millis = int


@dataclass(frozen=True)
class Penalty:
    """A single timed penalty. The remaining time is derived from `anchor`, never stored."""

    id: PenaltyId
    team: Team
    player_number: str
    duration_seconds: int
    anchor: Millis


@dataclass(frozen=True)
class GameState:
    """Canonical record for one game."""

    home_score: int
    away_score: int
    period: int
    clock_duration_seconds: int  # remaining as of clock_anchor (or absolute when not running)
    is_running: bool
    clock_anchor: Optional[Millis]
    penalties: Mapping[PenaltyId, Penalty] = field(default_factory=dict)
    last_updated: Millis = 0

    def __post_init__(self) -> None:
        # Freeze the penalty mapping so a snapshot cannot be mutated behind the session's back
        if not isinstance(self.penalties, MappingProxyType):
            object.__setattr__(self, "penalties", MappingProxyType(dict(self.penalties)))

    def score_of(self, team: Team) -> int:
        return self.home_score if team == Team.HOME else self.away_score
