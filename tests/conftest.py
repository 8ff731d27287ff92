"""
Shared fixtures.

Tests marked with the `redis_client` fixture talk to a real Redis at
REDIS_HOST:REDIS_PORT and are skipped when it cannot be reached.
"""

import uuid
from unittest.mock import MagicMock, Mock

import pytest
import redis

from rate_limiter.config import REDIS_DB, REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, REDIS_SSL


@pytest.fixture
def pipe():
    """A pipeline double usable as a context manager."""
    pipeline = MagicMock()
    pipeline.__enter__.return_value = pipeline
    pipeline.__exit__.return_value = False
    return pipeline


@pytest.fixture
def client(pipe):
    """A Redis client double whose pipeline() returns `pipe`."""
    redis_client = Mock()
    redis_client.pipeline.return_value = pipe
    redis_client.pexpire.return_value = True
    return redis_client


@pytest.fixture
def redis_client():
    client = redis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        ssl=REDIS_SSL,
        socket_timeout=2,
        socket_connect_timeout=1,
    )
    try:
        client.ping()
    except redis.RedisError:
        pytest.skip("Redis is not reachable")
    yield client
    client.close()


@pytest.fixture
def prefix(redis_client):
    """A unique key prefix, cleaned up after the test."""
    value = f"test-{uuid.uuid4().hex}"
    yield value
    for key in redis_client.scan_iter(match=f"{value}:*"):
        redis_client.delete(key)
