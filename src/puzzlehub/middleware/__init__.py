"""Middleware registration."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from puzzlehub.config import Settings
from puzzlehub.middleware.error_handler import setup_error_handlers
from puzzlehub.middleware.logging import setup_logging
from puzzlehub.middleware.rate_limit import LIMIT_HEADER, REMAINING_HEADER, RateLimitMiddleware
from puzzlehub.middleware.request_id import REQUEST_ID_HEADER, RequestIdMiddleware

# Methods used by the auth and puzzle routers
CORS_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]
CORS_REQUEST_HEADERS = ["Authorization", "Content-Type", REQUEST_ID_HEADER]
# Headers the web client reads: request correlation and rate-limit backoff
CORS_EXPOSED_HEADERS = [REQUEST_ID_HEADER, REMAINING_HEADER, LIMIT_HEADER, "Retry-After"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register all middleware in the correct order.

    Starlette executes middleware in reverse-add order (last added = outermost).
    CORS is added last so it also wraps 429 responses from the rate limiter.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_REQUEST_HEADERS,
        expose_headers=CORS_EXPOSED_HEADERS,
    )
