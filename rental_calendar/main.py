"""
FastAPI application: middleware, error mapping and routers.
"""

import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from . import __version__
from .config import settings
from .database import create_tables
from .exceptions import InvalidRangeError, ListingNotFoundError, StoreUnavailableError
from .routers import availability, health, listings
from .utils.logging_config import clear_request_context, get_logger, set_request_context, setup_logging
from .utils.rate_limiter import limiter

setup_logging(settings.log_level, json_format=settings.log_json or settings.is_production)
logger = get_logger("rental_calendar")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting rental-calendar {__version__} ({settings.environment})")
    if not settings.is_production:
        create_tables()
    yield
    logger.info("Shutting down rental-calendar")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Request id propagation plus one access-log line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        set_request_context(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            set_request_context(request_id, getattr(request.state, "owner_id", None))
            logger.api_request(request.method, request.url.path, response.status_code, elapsed_ms)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"detail": "Too many requests, try again later"})


async def invalid_range_handler(request: Request, exc: InvalidRangeError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def listing_not_found_handler(request: Request, exc: ListingNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable: {exc}", exc_info=exc.__cause__ or exc)
    return JSONResponse(status_code=503, content={"detail": "Service temporarily unavailable"})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Rental Calendar API",
        description="Listing availability calendars, nightly pricing and proximity search",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.state.started_at = datetime.now(timezone.utc)

    # Added last-to-first: CORS ends up outermost
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(InvalidRangeError, invalid_range_handler)
    app.add_exception_handler(ListingNotFoundError, listing_not_found_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)

    app.include_router(health.router)
    app.include_router(listings.router)
    app.include_router(availability.router)

    @app.get("/")
    async def root():
        return {"message": "Rental Calendar API", "version": __version__, "docs": "/docs"}

    return app


app = create_app()
