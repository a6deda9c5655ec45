"""
Client-visible configuration, read once at startup from the hosting environment.

None of these values are part of the synchronized game state.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Self

from src.core.exceptions import ConfigError
from src.core.shared_types import Role, resolve_role

ENV_PREFIX = "CLOCKSYNK_"
DEFAULT_CLOCK_SECONDS = 15 * 60
DEFAULT_GAME_ID = "demo-game-1"
MAX_CLOCK_SECONDS = 99 * 60 + 59


@dataclass(frozen=True)
class Settings:
    default_clock_seconds: int = DEFAULT_CLOCK_SECONDS
    default_game_id: str = DEFAULT_GAME_ID
    role: Role = Role.SCOREKEEPER
    database_url: Optional[str] = None  # None -> in-memory (demo) store
    tick_seconds: float = 1.0
    pull_seconds: float = 1.5
    store_timeout_seconds: float = 5.0
    debug: bool = False
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 0 <= self.default_clock_seconds <= MAX_CLOCK_SECONDS:
            raise ConfigError(
                f"Default clock must be between 0 and {MAX_CLOCK_SECONDS} seconds, got {self.default_clock_seconds}."
            )
        if not self.default_game_id.strip():
            raise ConfigError("Default game id cannot be empty.")
        for name in ("tick_seconds", "pull_seconds", "store_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}.")
        if self.log_level.upper() not in logging.getLevelNamesMapping():
            raise ConfigError(f"Unknown log level: {self.log_level!r}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """Build settings from CLOCKSYNK_* variables. Missing variables keep their defaults."""
        env = os.environ if environ is None else environ

        def _get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        kwargs: dict[str, object] = {}
        if (raw := _get("DEFAULT_CLOCK_SECONDS")) is not None:
            kwargs["default_clock_seconds"] = _parse_number(raw, int, "DEFAULT_CLOCK_SECONDS")
        if (raw := _get("DEFAULT_GAME_ID")) is not None:
            kwargs["default_game_id"] = raw
        if (raw := _get("ROLE")) is not None:
            kwargs["role"] = resolve_role(raw)
        if (raw := _get("DATABASE_URL")) is not None:
            kwargs["database_url"] = raw
        for key in ("TICK_SECONDS", "PULL_SECONDS", "STORE_TIMEOUT_SECONDS"):
            if (raw := _get(key)) is not None:
                kwargs[key.lower()] = _parse_number(raw, float, key)
        if (raw := _get("DEBUG")) is not None:
            kwargs["debug"] = raw.lower() in ("1", "true", "yes", "on")
        if (raw := _get("LOG_LEVEL")) is not None:
            kwargs["log_level"] = raw.upper()
        return cls(**kwargs)  # type: ignore[arg-type]


def _parse_number(raw: str, kind: type, name: str) -> int | float:
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREFIX}{name} is not a valid {kind.__name__}: {raw!r}") from e


def setup_logging(settings: Settings) -> None:
    """Configure the root logger once for the hosting process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # basicConfig is a no-op when the host already installed handlers
    logging.getLogger().setLevel(settings.log_level.upper())
