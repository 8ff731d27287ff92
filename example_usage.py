"""
Example Usage of Rate Limiter

Shows how the limiter is used in a backend service: per-endpoint limiters
called from handlers, and the WSGI middleware wrapping an app.

Run with a local Redis:  python example_usage.py
"""

import logging
from wsgiref.simple_server import make_server

from rate_limiter import RateLimiterError, RateLimitMiddleware, create_limiter
from rate_limiter.config import FAILURE_BEHAVIOR, LOG_LEVEL, RATE_LIMITS
from rate_limiter.limiter import _get_redis_client

logging.basicConfig(level=LOG_LEVEL)

_client = _get_redis_client()

# One limiter per endpoint, all sharing the same Redis connection pool
LIMITERS = {
    endpoint: create_limiter(limit, period, client=_client)
    for endpoint, (limit, period) in RATE_LIMITS.items()
}


def handle_login_request(user_id: str, ip: str):
    """
    Example: How a login endpoint would use the rate limiter
    """
    identifier = f"user:{user_id}" if user_id else f"ip:{ip}"
    try:
        record = LIMITERS['/login'].record_request(f"{identifier}:/login")
    except RateLimiterError:
        # /login fails closed
        return {'error': 'Rate limiter unavailable', 'status_code': 500}

    if record.limit_reached:
        return {
            'error': 'Too many requests. Please try again later.',
            'status_code': 429,
            'retry_after': record.seconds_remaining(),
        }

    # ... your actual login code here ...
    return {'success': True, 'remaining': record.remaining}


def hello_app(environ, start_response):
    start_response('200 OK', [('Content-Type', 'text/plain')])
    return [b'hello\n']


def build_app():
    """Wrap a WSGI app with the /search limiter, honoring its failure behavior."""
    return RateLimitMiddleware(
        hello_app,
        LIMITERS['/search'],
        fail_open=FAILURE_BEHAVIOR.get('/search') == 'fail-open',
    )


if __name__ == '__main__':
    print(handle_login_request(user_id='alice', ip='127.0.0.1'))

    with make_server('127.0.0.1', 8000, build_app()) as server:
        print("Serving on http://127.0.0.1:8000 (curl -i it a few times)")
        server.serve_forever()
