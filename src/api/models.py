"""Response models handed to the presentation layer (scorekeeper and spectator views)."""

from pydantic import BaseModel, ConfigDict, Field

from src.core.shared_types import Team


class PenaltyView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    team: Team
    player_number: str
    remaining_seconds: int = Field(ge=0)
    display: str


class ScoreboardView(BaseModel):
    """Everything a scoreboard renders, already derived for one instant."""

    model_config = ConfigDict(frozen=True)

    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    period: int = Field(ge=1)
    clock_seconds: int = Field(ge=0)
    clock_display: str
    is_running: bool
    penalties: list[PenaltyView]
    last_updated: int
    stale: bool = False
