"""
Rate Limiter Configuration

Redis connection settings, store options and the default rates.
Values come from the environment (or a .env file).
"""

import os
from dotenv import load_dotenv
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Rate limits: {endpoint: (max_requests, window_seconds)}
RATE_LIMITS = {
    '/login': (5, 60),
    '/search': (20, 60),
    '/read': (100, 60),
}

# Failure behavior: {endpoint: 'fail-open' | 'fail-closed'}
FAILURE_BEHAVIOR = {
    '/login': 'fail-closed',   # Block on Redis failure
    '/search': 'fail-open',    # Allow on Redis failure
    '/read': 'fail-open',      # Allow on Redis failure
}

REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
REDIS_PORT = int(os.getenv('REDIS_PORT', '6379'))
REDIS_DB = int(os.getenv('REDIS_DB', '0'))
REDIS_PASSWORD = os.getenv('REDIS_PASSWORD') or None
REDIS_SSL = _as_bool(os.getenv('REDIS_SSL', 'false'))
REDIS_SOCKET_TIMEOUT = float(os.getenv('REDIS_SOCKET_TIMEOUT', '1.0'))

RATE_LIMIT_PREFIX = os.getenv('RATE_LIMIT_PREFIX', 'ratelimit')
RATE_LIMIT_RETRY_LIMIT = int(os.getenv('RATE_LIMIT_RETRY_LIMIT', '3'))
RATE_LIMIT_RETRY_BACKOFF = float(os.getenv('RATE_LIMIT_RETRY_BACKOFF', '0'))

# Default rate used by create_limiter(): RATE_LIMIT_LIMIT requests per RATE_LIMIT_PERIOD seconds
RATE_LIMIT_LIMIT = int(os.getenv('RATE_LIMIT_LIMIT', '60'))
RATE_LIMIT_PERIOD = float(os.getenv('RATE_LIMIT_PERIOD', '60'))

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
