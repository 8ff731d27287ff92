"""
WSGI middleware that enforces a Limiter on every request.

Responses carry X-RateLimit-Limit, X-RateLimit-Remaining and X-RateLimit-Reset
(seconds until the window resets). Requests over the limit get a 429; store
failures get a 500 unless the middleware is configured to fail open.
"""

import logging

from .errors import RateLimiterError

logger = logging.getLogger(__name__)


def client_identifier(environ) -> str:
    """
    Identify the caller: the authenticated user if any, otherwise the client IP.

    Raises:
        ValueError: If neither a user nor an address is available.
    """
    user = environ.get('REMOTE_USER')
    if user:
        return f"user:{user}"

    forwarded = environ.get('HTTP_X_FORWARDED_FOR', '')
    ip = forwarded.split(',')[0].strip() or environ.get('REMOTE_ADDR')
    if not ip:
        raise ValueError("request has no client address")
    return f"ip:{ip}"


def _plain_response(start_response, status, body, headers=None):
    payload = body.encode('utf-8')
    response_headers = [
        ('Content-Type', 'text/plain; charset=utf-8'),
        ('Content-Length', str(len(payload))),
    ]
    response_headers.extend(headers or [])
    start_response(status, response_headers)
    return [payload]


def bad_request(environ, start_response, error):
    return _plain_response(start_response, '400 Bad Request', 'Cannot identify client.')


def too_many_requests(environ, start_response, headers):
    return _plain_response(
        start_response,
        '429 Too Many Requests',
        'Rate limit exceeded. Try again later.',
        headers,
    )


def rate_limit_headers(record):
    return [
        ('X-RateLimit-Limit', str(record.limit)),
        ('X-RateLimit-Remaining', str(record.remaining)),
        ('X-RateLimit-Reset', str(record.seconds_remaining())),
    ]


class RateLimitMiddleware:
    """
    Wrap a WSGI app with a Limiter.

    Args:
        app: The wrapped WSGI application.
        limiter: Limiter used to count requests.
        get_id: Callable deriving the identifier from the WSGI environ.
        on_id_error: WSGI-style handler (environ, start_response, error) used
            when get_id raises.
        on_limit_reached: Handler (environ, start_response, headers) used when
            the limit is exceeded.
        fail_open: Let requests through when the store fails instead of
            answering 500.
    """

    def __init__(self, app, limiter, get_id=client_identifier, on_id_error=None,
                 on_limit_reached=None, fail_open=False):
        self.app = app
        self.limiter = limiter
        self.get_id = get_id
        self.on_id_error = on_id_error or bad_request
        self.on_limit_reached = on_limit_reached or too_many_requests
        self.fail_open = fail_open

    def __call__(self, environ, start_response):
        try:
            key = self.get_id(environ)
        except Exception as e:
            logger.warning("rate_limit.id_error", extra={'error': str(e)})
            return self.on_id_error(environ, start_response, e)

        try:
            record = self.limiter.record_request(key)
        except RateLimiterError as e:
            logger.error(
                "rate_limit.store_error",
                extra={'error_code': e.code, 'error': e.message, 'fail_open': self.fail_open},
            )
            if self.fail_open:
                return self.app(environ, start_response)
            return _plain_response(start_response, '500 Internal Server Error', 'Rate limiter unavailable.')

        headers = rate_limit_headers(record)

        if record.limit_reached:
            retry_after = headers[-1][1]
            logger.warning(
                "rate_limit.exceeded",
                extra={'limit': record.limit, 'retry_after_s': retry_after},
            )
            return self.on_limit_reached(environ, start_response, headers + [('Retry-After', retry_after)])

        def _start_response(status, response_headers, exc_info=None):
            return start_response(status, list(response_headers) + headers, exc_info)

        return self.app(environ, _start_response)
