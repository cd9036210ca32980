"""
Transaction deadlines.

A deadline is stored on the wire as milliseconds since the network epoch
(the "adjusted value"). The network epoch is ``epoch_adjustment`` seconds
after the Unix epoch.
"""

from __future__ import annotations
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

MS_PER_HOUR = 3_600_000


def now_seconds() -> float:
    """Current Unix time in seconds. Patched in tests."""
    return time.time()


def to_adjusted_ms(unix_seconds: float, epoch_adjustment: int) -> int:
    """Convert Unix seconds to milliseconds since the network epoch."""
    return int(round((unix_seconds - epoch_adjustment) * 1000))


@dataclass(frozen=True, order=True)
class Deadline:
    """Deadline as an adjusted value (ms since network epoch)."""

    adjusted_value: int

    @classmethod
    def create(cls, epoch_adjustment: int, hours: float = 2,
               now: Optional[float] = None) -> Deadline:
        """
        Deadline ``hours`` after ``now``.

        Args:
            epoch_adjustment: Network epoch in Unix seconds
            hours: Offset from ``now`` (may be fractional)
            now: Unix seconds, defaults to the current time
        """
        if now is None:
            now = now_seconds()
        return cls(to_adjusted_ms(now, epoch_adjustment) + int(round(hours * MS_PER_HOUR)))

    @classmethod
    def create_from_adjusted_value(cls, value: int) -> Deadline:
        return cls(int(value))

    def to_unix_seconds(self, epoch_adjustment: int) -> float:
        return self.adjusted_value / 1000 + epoch_adjustment

    def to_datetime(self, epoch_adjustment: int) -> datetime:
        return datetime.fromtimestamp(self.to_unix_seconds(epoch_adjustment), tz=timezone.utc)
