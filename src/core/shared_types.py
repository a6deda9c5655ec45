"""
Type definitions used across layers
"""

from enum import StrEnum


class Team(StrEnum):
    HOME = "Home"
    AWAY = "Away"


class Role(StrEnum):
    SCOREKEEPER = "scorekeeper"
    SPECTATOR = "spectator"


class SyncStatus(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    SYNCED = "synced"
    ERROR = "error"


def resolve_role(value: str | None) -> Role:
    """Only an explicit 'spectator' selects the read-only view. Anything else (or nothing) is the scorekeeper."""
    if value is not None and value.strip().lower() == Role.SPECTATOR:
        return Role.SPECTATOR
    return Role.SCOREKEEPER
