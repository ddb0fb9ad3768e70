"""Calendar-aware duration triple (months, days, microseconds).

Durations are stored the way PostgreSQL intervals are: three independent
components. Conversions to seconds count a month as 30 days.
"""
import math
from dataclasses import dataclass
from typing import Optional

MICROSECONDS_PER_SECOND = 1_000_000
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30

# Largest value whose microsecond count fits a signed 64-bit column
MAX_SECONDS = (2**63 - 1) // MICROSECONDS_PER_SECOND


@dataclass(frozen=True)
class DurationTriple:
    """Interval split into months, days and microseconds."""
    months: int = 0
    days: int = 0
    microseconds: int = 0

    @classmethod
    def from_seconds(cls, seconds: float) -> "DurationTriple":
        """Build a triple holding the whole value in microseconds."""
        if seconds < 0:
            raise ValueError("Duration cannot be negative")
        if not math.isfinite(seconds) or seconds > MAX_SECONDS:
            raise ValueError(f"Duration must be at most {MAX_SECONDS} seconds")
        return cls(0, 0, int(round(seconds * MICROSECONDS_PER_SECOND)))

    @classmethod
    def from_columns(
        cls,
        months: Optional[int],
        days: Optional[int],
        microseconds: Optional[int],
    ) -> Optional["DurationTriple"]:
        """Rebuild from nullable storage columns. All None means unset."""
        if months is None and days is None and microseconds is None:
            return None
        return cls(months or 0, days or 0, microseconds or 0)

    def total_seconds(self) -> float:
        return (
            self.months * DAYS_PER_MONTH * SECONDS_PER_DAY
            + self.days * SECONDS_PER_DAY
            + self.microseconds / MICROSECONDS_PER_SECOND
        )

    def total_minutes(self) -> float:
        return self.total_seconds() / 60.0

    def as_dict(self) -> dict:
        return {
            "months": self.months,
            "days": self.days,
            "microseconds": self.microseconds,
        }
