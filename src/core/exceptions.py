"""Custom exceptions shared across layers."""


class ScoreboardError(Exception):
    """Top-level exception for anything raised on purpose by this package."""


class ValidationError(ScoreboardError):
    """Malformed user input. The requested operation is rejected and state stays unchanged."""


class ReadOnlyRoleError(ScoreboardError):
    """A mutation was requested from a session that is not allowed to write (spectator)."""


class ConfigError(ScoreboardError):
    """Invalid value in the hosting environment."""


class RepositoryError(ScoreboardError):
    """Something went wrong at the persistence boundary."""


class RecordFormatError(RepositoryError):
    """A stored record does not match the expected schema."""


class StoreUnavailableError(ScoreboardError):
    """Backend could not be reached, timed out or failed on read/write."""
