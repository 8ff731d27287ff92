"""
Rate limiter exception types.

Every failure raised by a store derives from RateLimiterError so callers can
choose their own policy (fail open, fail closed) with a single except clause.
"""

from typing import Optional


class RateLimiterError(Exception):
    """Base error for rate limiter failures.

    Attributes:
        message: Human-readable error message.
        key: The store key involved, when there is one.
        code: Stable, machine-readable error code.
        retryable: Whether the caller may reasonably retry the call.
    """

    code = 'rate_limiter_error'
    retryable = False

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.key = key


class ConfigurationError(RateLimiterError, ValueError):
    """Raised when a Rate or store option is invalid."""

    code = 'configuration_error'


class StoreError(RateLimiterError):
    """Raised when a store operation cannot produce a LimitRecord."""

    code = 'store_error'


class TransactionConflictExhausted(StoreError):
    """The key kept changing under the watch until the retry limit ran out."""

    code = 'transaction_conflict_exhausted'


class KeyVanished(StoreError):
    """The counter disappeared between the increment and the TTL repair."""

    code = 'key_vanished'


class BackingStoreUnavailable(StoreError):
    """Transport or I/O failure while talking to Redis."""

    code = 'backing_store_unavailable'


class ExpirySetFailed(StoreError):
    """Redis refused to set the TTL on a counter that had none."""

    code = 'expiry_set_failed'


class OperationTimeout(StoreError):
    """The caller's deadline passed before the operation completed.

    A commit may still have landed on the server side; see RedisStore.
    """

    code = 'operation_timeout'
    retryable = True
