"""
HTTP middleware: rate limiting, catch-all error boundary and no-store headers.
"""
from typing import Callable
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chatroom.core.config import settings
from chatroom.core.exceptions import TooFast, UnhandledException
from chatroom.core.responses import NO_STORE_HEADERS, error_response
from chatroom.ratelimit import identity_from_headers

logger = logging.getLogger(__name__)

RATE_LIMIT_EXEMPT_PATHS = {"/health"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rejects a request before routing when its identity was admitted less than one window ago."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in RATE_LIMIT_EXEMPT_PATHS:
            return await call_next(request)

        identity = identity_from_headers(request.headers, settings.RATE_LIMIT_IDENTITY_HEADERS)
        limiter = request.app.state.rate_limiter
        if not limiter.admit(identity):
            logger.debug("Rate limited: %s %s", identity, request.url.path)
            return error_response(TooFast())
        return await call_next(request)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Turns any uncaught fault into a 500 JSON body carrying only the fault's message."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
            return error_response(UnhandledException(str(e) or e.__class__.__name__))


class NoStoreMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response: Response = await call_next(request)
        for name, value in NO_STORE_HEADERS.items():
            response.headers[name] = value
        return response
