"""
Store wire format.

Persistence uses snake_case field names and integer milliseconds. Penalties are stored as a JSON object keyed by
penalty id. Records are validated with pydantic on the way in: a malformed record is rejected, never patched up
with defaults.
"""

import json
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from src.core.exceptions import RecordFormatError
from src.core.models import GameState, Penalty
from src.core.shared_types import Team


class PenaltyRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    team: Team
    player_number: str = Field(min_length=1, max_length=3)
    duration_seconds: int = Field(gt=0)
    anchor: int = Field(ge=0)


class GameStateRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    period: int = Field(ge=1)
    clock_duration_seconds: int = Field(ge=0)
    is_running: bool
    clock_anchor: Optional[int] = Field(default=None, ge=0)
    penalties: dict[str, PenaltyRecord]
    last_updated: int = Field(ge=0)

    @field_validator("penalties", mode="before")
    @classmethod
    def parse_penalties(cls, value: Any) -> Any:
        # Older rows kept the collection as a JSON string
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"penalties is not valid JSON: {e}") from e
        return value

    @model_validator(mode="after")
    def check_consistency(self) -> "GameStateRecord":
        if self.is_running and self.clock_anchor is None:
            raise ValueError("a running clock needs a clock_anchor")
        if not self.is_running and self.clock_anchor is not None:
            raise ValueError("a stopped clock cannot have a clock_anchor")
        for key, penalty in self.penalties.items():
            if key != penalty.id:
                raise ValueError(f"penalty key {key!r} does not match its id {penalty.id!r}")
        return self


def to_record(state: GameState) -> dict[str, Any]:
    """GameState -> plain dict with snake_case keys, ready for JSON or a table row."""
    return {
        "home_score": state.home_score,
        "away_score": state.away_score,
        "period": state.period,
        "clock_duration_seconds": state.clock_duration_seconds,
        "is_running": state.is_running,
        "clock_anchor": state.clock_anchor,
        "penalties": {
            pid: {
                "id": p.id,
                "team": p.team.value,
                "player_number": p.player_number,
                "duration_seconds": p.duration_seconds,
                "anchor": p.anchor,
            }
            for pid, p in state.penalties.items()
        },
        "last_updated": state.last_updated,
    }


def from_record(data: dict[str, Any]) -> GameState:
    """Validate a stored record and build the GameState it describes."""
    try:
        record = GameStateRecord.model_validate(data)
    except PydanticValidationError as e:
        raise RecordFormatError(f"Malformed game state record: {e}") from e

    return GameState(
        home_score=record.home_score,
        away_score=record.away_score,
        period=record.period,
        clock_duration_seconds=record.clock_duration_seconds,
        is_running=record.is_running,
        clock_anchor=record.clock_anchor,
        penalties={
            pid: Penalty(
                id=p.id,
                team=p.team,
                player_number=p.player_number,
                duration_seconds=p.duration_seconds,
                anchor=p.anchor,
            )
            for pid, p in record.penalties.items()
        },
        last_updated=record.last_updated,
    )
