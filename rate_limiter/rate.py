"""
Rate and LimitRecord value objects.
"""

import math
import time
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError


@dataclass(frozen=True)
class Rate:
    """The allowance an identifier is limited to.

    Attributes:
        limit: Max number of requests per window.
        period: Window length in seconds.
    """

    limit: int
    period: float

    def __post_init__(self):
        if isinstance(self.limit, bool) or not isinstance(self.limit, int):
            raise ConfigurationError(f"limit must be an integer, got {self.limit!r}")
        if self.limit < 1:
            raise ConfigurationError("limit must be >= 1")
        if isinstance(self.period, bool) or not isinstance(self.period, (int, float)):
            raise ConfigurationError(f"period must be a number of seconds, got {self.period!r}")
        if not self.period > 0:
            raise ConfigurationError("period must be > 0")

    @property
    def period_ms(self) -> int:
        """Window length in whole milliseconds (at least 1), as Redis PX expects."""
        return max(1, int(round(self.period * 1000)))


@dataclass(frozen=True)
class LimitRecord:
    """Outcome of a limiter decision for one identifier.

    Attributes:
        limit: Max requests per window.
        remaining: Requests left in the current window (0 once reached).
        reset: UNIX epoch seconds at which the window resets.
        limit_reached: Whether the identifier has exceeded its allowance.
    """

    limit: int
    remaining: int
    reset: float
    limit_reached: bool

    def seconds_remaining(self, now: Optional[float] = None) -> int:
        """Whole seconds until the window resets, never negative."""
        if now is None:
            now = time.time()
        return max(0, int(math.ceil(self.reset - now)))


def new_limit_record(rate: Rate, expiration: float, observed_count: int) -> LimitRecord:
    """
    Build the LimitRecord for a count observed in a window ending at `expiration`.

    Reaching the limit exactly is still allowed; only a count above it is
    flagged as limit_reached.
    """
    if observed_count <= rate.limit:
        remaining = rate.limit - observed_count
        limit_reached = False
    else:
        remaining = 0
        limit_reached = True

    return LimitRecord(
        limit=rate.limit,
        remaining=remaining,
        reset=expiration,
        limit_reached=limit_reached,
    )
