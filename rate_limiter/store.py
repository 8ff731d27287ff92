"""
Store contract.

The Limiter depends on this abstraction, not on Redis directly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .rate import LimitRecord, Rate


@dataclass(frozen=True)
class StoreOptions:
    """Options shared by store implementations.

    Attributes:
        prefix: Namespace prepended to every key ("<prefix>:<key>").
        retry_limit: Max optimistic transaction attempts per call.
        retry_backoff: Upper bound in seconds of the jittered sleep between attempts.
    """

    prefix: str = 'ratelimit'
    retry_limit: int = 3
    retry_backoff: float = 0.0

    def __post_init__(self):
        if self.retry_limit < 1:
            raise ConfigurationError("retry_limit must be >= 1")
        if self.retry_backoff < 0:
            raise ConfigurationError("retry_backoff must be >= 0")


class Store(ABC):
    """Interface for limiter stores."""

    @abstractmethod
    def record_request(self, key: str, rate: Rate, *, timeout: Optional[float] = None) -> LimitRecord:
        """
        Increment the request count for `key` and return the LimitRecord
        reflecting the new count.
        """
        raise NotImplementedError

    @abstractmethod
    def check_limit(self, key: str, rate: Rate, *, timeout: Optional[float] = None) -> LimitRecord:
        """Return the LimitRecord for `key` without increasing the request count."""
        raise NotImplementedError
