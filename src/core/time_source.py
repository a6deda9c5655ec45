"""Wall-clock abstraction. Domain code receives `now` as an argument; only the session reads the clock."""

import time
from typing import Protocol


class TimeSource(Protocol):
    def now(self) -> int:
        """Current wall-clock instant in milliseconds since the Unix epoch."""
        ...


class SystemTimeSource:
    """Production clock backed by time.time()."""

    def now(self) -> int:
        return int(time.time() * 1000)
