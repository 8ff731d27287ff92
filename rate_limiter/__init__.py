"""
Rate Limiter Module

A distributed rate limiter using Redis and the Fixed Window Counter algorithm.
"""

from .errors import (
    BackingStoreUnavailable,
    ConfigurationError,
    ExpirySetFailed,
    KeyVanished,
    OperationTimeout,
    RateLimiterError,
    StoreError,
    TransactionConflictExhausted,
)
from .limiter import Limiter, create_limiter
from .middleware import RateLimitMiddleware, client_identifier
from .rate import LimitRecord, Rate, new_limit_record
from .redis_store import RedisStore
from .store import Store, StoreOptions

__all__ = [
    'BackingStoreUnavailable',
    'ConfigurationError',
    'ExpirySetFailed',
    'KeyVanished',
    'LimitRecord',
    'Limiter',
    'OperationTimeout',
    'Rate',
    'RateLimitMiddleware',
    'RateLimiterError',
    'RedisStore',
    'Store',
    'StoreError',
    'StoreOptions',
    'TransactionConflictExhausted',
    'client_identifier',
    'create_limiter',
    'new_limit_record',
]
