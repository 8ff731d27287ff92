"""
Limiter facade and factory.
"""

from typing import Optional

import redis

from .config import (
    RATE_LIMIT_LIMIT,
    RATE_LIMIT_PERIOD,
    RATE_LIMIT_PREFIX,
    RATE_LIMIT_RETRY_BACKOFF,
    RATE_LIMIT_RETRY_LIMIT,
    REDIS_DB,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
    REDIS_SOCKET_TIMEOUT,
    REDIS_SSL,
)
from .rate import LimitRecord, Rate
from .redis_store import RedisStore
from .store import Store, StoreOptions


class Limiter:
    """Binds a Rate to a Store so callers only pass the identifier."""

    def __init__(self, store: Store, rate: Rate):
        self.store = store
        self.rate = rate

    def record_request(self, key: str, *, timeout: Optional[float] = None) -> LimitRecord:
        """
        Count one request for `key`.

        Store errors propagate unchanged; deciding whether to allow or block
        on failure is up to the caller.
        """
        return self.store.record_request(key, self.rate, timeout=timeout)

    def check_limit(self, key: str, *, timeout: Optional[float] = None) -> LimitRecord:
        """Peek at the limit for `key` without counting a request."""
        return self.store.check_limit(key, self.rate, timeout=timeout)


def create_limiter(
    limit: Optional[int] = None,
    period: Optional[float] = None,
    *,
    client: Optional[redis.Redis] = None,
    options: Optional[StoreOptions] = None,
) -> Limiter:
    """
    Build a Redis-backed Limiter, falling back to the configured defaults.

    Args:
        limit: Max requests per window (default RATE_LIMIT_LIMIT).
        period: Window length in seconds (default RATE_LIMIT_PERIOD).
        client: Redis client to use; one is built from REDIS_* settings if omitted.
        options: Store options; built from RATE_LIMIT_* settings if omitted.
    """
    rate = Rate(
        limit=RATE_LIMIT_LIMIT if limit is None else limit,
        period=RATE_LIMIT_PERIOD if period is None else period,
    )
    if options is None:
        options = StoreOptions(
            prefix=RATE_LIMIT_PREFIX,
            retry_limit=RATE_LIMIT_RETRY_LIMIT,
            retry_backoff=RATE_LIMIT_RETRY_BACKOFF,
        )
    if client is None:
        client = _get_redis_client()
    return Limiter(RedisStore(client, options), rate)


def _get_redis_client() -> redis.Redis:
    """
    Helper function to get Redis client.
    """
    return redis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        ssl=REDIS_SSL,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
        decode_responses=False,
    )
