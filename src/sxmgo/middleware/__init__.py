"""HTTP middleware stack for the gamification API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sxmgo.config import Settings
from sxmgo.middleware.error_handler import setup_error_handlers
from sxmgo.middleware.logging import setup_logging
from sxmgo.middleware.rate_limit import RateLimitMiddleware
from sxmgo.middleware.request_id import RequestIdMiddleware

# Headers sent by the mobile client's auth SDK on every call.
CLIENT_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS (added last) wraps
    everything and its headers also land on 429 and error responses.
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
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CLIENT_HEADERS,
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
