"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameState(Base):
    __tablename__ = "game_states"
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    home_score: Mapped[int]
    away_score: Mapped[int]
    period: Mapped[int]
    clock_duration_seconds: Mapped[int]
    is_running: Mapped[bool]
    clock_anchor: Mapped[Optional[int]] = mapped_column(BigInteger)
    penalties: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    last_updated: Mapped[int] = mapped_column(BigInteger)
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
