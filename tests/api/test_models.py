"""Unit tests for src/api/models.py"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.api.models import PenaltyView, ScoreboardView
from src.core.shared_types import Team


def _view(**overrides) -> ScoreboardView:
    values = dict(
        home_score=1,
        away_score=0,
        period=1,
        clock_seconds=600,
        clock_display="10:00",
        is_running=True,
        penalties=[],
        last_updated=0,
    )
    values.update(overrides)
    return ScoreboardView(**values)


def test_view_serializes_for_the_presentation_layer() -> None:
    view = _view(
        penalties=[
            PenaltyView(id="Home-7-1", team=Team.HOME, player_number="7", remaining_seconds=90, display="01:30")
        ]
    )
    data = view.model_dump(mode="json")
    assert data["penalties"][0]["team"] == "Home"
    assert data["clock_display"] == "10:00"
    assert data["stale"] is False


@pytest.mark.parametrize(
    "field, value",
    [("home_score", -1), ("period", 0), ("clock_seconds", -5)],
)
def test_view_rejects_impossible_values(field: str, value: int) -> None:
    with pytest.raises(PydanticValidationError):
        _view(**{field: value})


def test_view_is_immutable() -> None:
    view = _view()
    with pytest.raises(PydanticValidationError):
        view.home_score = 5
    assert view.model_copy(update={"stale": True}).stale
