"""
Redis-backed store for the fixed window counter.

Each identifier maps to one Redis key, "<prefix>:<identifier>", holding the
request count for the current window. The key's TTL is the window: it is set
once when the key is created and never refreshed, so every caller observing
the key during its lifetime sees the same reset instant.

Concurrent callers are coordinated with WATCH/MULTI/EXEC only. There are no
locks and no in-process copies of the counts.
"""

import logging
import random
import time
from typing import Callable, Optional

import redis

from .errors import (
    BackingStoreUnavailable,
    ExpirySetFailed,
    KeyVanished,
    OperationTimeout,
    StoreError,
    TransactionConflictExhausted,
)
from .rate import LimitRecord, Rate, new_limit_record
from .store import Store, StoreOptions

logger = logging.getLogger(__name__)

# PTTL sentinels
TTL_KEY_MISSING = -2
TTL_NO_EXPIRY = -1


class RedisStore(Store):
    """
    Fixed window counter store using Redis optimistic transactions.

    A call that conflicts with a concurrent writer is retried from scratch up
    to `options.retry_limit` times, then fails with
    TransactionConflictExhausted.

    Calls are not idempotent across timeouts: if EXEC commits on the server
    after the client gave up (socket timeout or deadline), the increment
    stands even though the caller saw OperationTimeout.

    A counter found without a TTL is repaired with a plain PEXPIRE outside the
    watch. Two callers repairing the same key at once may each set the TTL,
    moving the reset instant by the milliseconds between their calls.
    PEXPIRE NX would avoid that but needs Redis 7.
    """

    def __init__(
        self,
        client: redis.Redis,
        options: Optional[StoreOptions] = None,
        *,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            client: Redis client (anything exposing pipeline() and pexpire()).
            options: Key prefix and retry policy.
            clock: Time source returning UNIX time in seconds.
        """
        self.client = client
        self.options = options or StoreOptions()
        self._clock = clock

    def store_key(self, key: str) -> str:
        return f"{self.options.prefix}:{key}"

    def record_request(self, key: str, rate: Rate, *, timeout: Optional[float] = None) -> LimitRecord:
        """
        Increment the counter for `key` and return the resulting LimitRecord.

        Args:
            key: Identifier (IP address, API key, ...), without prefix.
            rate: Allowance to evaluate the count against.
            timeout: Seconds the caller is willing to wait, across all attempts.

        Raises:
            TransactionConflictExhausted: Retry limit reached under contention.
            KeyVanished: The counter disappeared mid-operation.
            ExpirySetFailed: A counter without TTL could not be repaired.
            BackingStoreUnavailable: Redis could not be reached.
            OperationTimeout: The deadline passed.
        """
        store_key = self.store_key(key)
        return self._with_retries(
            store_key,
            lambda pipe: self._record_once(pipe, store_key, rate),
            timeout,
        )

    def check_limit(self, key: str, rate: Rate, *, timeout: Optional[float] = None) -> LimitRecord:
        """
        Return the LimitRecord for `key` without changing the count.

        A missing key reads as a count of 0. The result may be stale if a
        concurrent record_request commits right after it.
        """
        store_key = self.store_key(key)
        return self._with_retries(
            store_key,
            lambda pipe: self._check_once(pipe, store_key, rate),
            timeout,
        )

    def _with_retries(self, store_key, attempt, timeout):
        deadline = None if timeout is None else time.monotonic() + max(0.0, timeout)
        retry_limit = self.options.retry_limit

        for attempt_number in range(1, retry_limit + 1):
            if deadline is not None and time.monotonic() >= deadline:
                raise OperationTimeout(f"deadline exceeded for {store_key}", key=store_key)
            try:
                with self.client.pipeline() as pipe:
                    return attempt(pipe)
            except redis.WatchError:
                logger.debug(
                    "rate_limit.watch_conflict",
                    extra={'store_key': store_key, 'attempt': attempt_number},
                )
                if attempt_number < retry_limit:
                    self._backoff()
            except redis.TimeoutError as e:
                raise OperationTimeout(f"redis timed out for {store_key}: {e}", key=store_key) from e
            except redis.ResponseError as e:
                # WRONGTYPE or a non-integer counter
                raise StoreError(f"redis rejected command for {store_key}: {e}", key=store_key) from e
            except redis.RedisError as e:
                raise BackingStoreUnavailable(f"cannot reach redis for {store_key}: {e}", key=store_key) from e

        logger.warning(
            "rate_limit.retry_exhausted",
            extra={'store_key': store_key, 'retry_limit': retry_limit},
        )
        raise TransactionConflictExhausted(
            f"retry limit ({retry_limit}) exceeded for {store_key}", key=store_key
        )

    def _backoff(self):
        if self.options.retry_backoff > 0:
            time.sleep(random.uniform(0, self.options.retry_backoff))

    def _record_once(self, pipe, store_key: str, rate: Rate) -> LimitRecord:
        pipe.watch(store_key)

        # First request of the window: the key is created with its TTL in one step.
        if pipe.set(store_key, 1, nx=True, px=rate.period_ms):
            return new_limit_record(rate, self._clock() + rate.period, 1)

        pipe.multi()
        pipe.incr(store_key)
        pipe.pttl(store_key)
        count, ttl_ms = pipe.execute()

        now = self._clock()
        if ttl_ms >= 0:
            expiration = now + ttl_ms / 1000.0
        elif ttl_ms == TTL_KEY_MISSING:
            logger.error("rate_limit.key_vanished", extra={'store_key': store_key})
            raise KeyVanished(f"{store_key} disappeared after increment", key=store_key)
        else:
            expiration = now + rate.period
            self._repair_expiry(store_key, rate)

        return new_limit_record(rate, expiration, int(count))

    def _repair_expiry(self, store_key: str, rate: Rate):
        # A counter without TTL would lock the identifier at its limit forever.
        logger.warning("rate_limit.ttl_repair", extra={'store_key': store_key})
        try:
            applied = self.client.pexpire(store_key, rate.period_ms)
        except redis.ResponseError as e:
            logger.error("rate_limit.ttl_repair_failed", extra={'store_key': store_key})
            raise ExpirySetFailed(f"cannot set timeout for {store_key}: {e}", key=store_key) from e

        # PEXPIRE only replies 0 when the key no longer exists.
        if not applied:
            logger.error("rate_limit.key_vanished", extra={'store_key': store_key})
            raise KeyVanished(f"{store_key} disappeared before its TTL was repaired", key=store_key)

    def _check_once(self, pipe, store_key: str, rate: Rate) -> LimitRecord:
        pipe.watch(store_key)
        pipe.multi()
        pipe.get(store_key)
        pipe.pttl(store_key)
        value, ttl_ms = pipe.execute()

        try:
            count = int(value) if value is not None else 0
        except ValueError as e:
            raise StoreError(f"counter for {store_key} is not an integer: {value!r}", key=store_key) from e

        now = self._clock()
        if ttl_ms >= 0:
            expiration = now + ttl_ms / 1000.0
        else:
            expiration = now + rate.period

        return new_limit_record(rate, expiration, count)
