"""
Aurora personalization service: profile rebuilds, feed ranking and
notification scoring over caller-supplied snapshots.

Entrypoint: uvicorn services.personalization.main:app --host 0.0.0.0 --port 8000
"""

import logging
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from redis.exceptions import RedisError
from starlette.responses import JSONResponse

from services.personalization.config import settings
from services.personalization.middleware.cors import setup_cors
from services.personalization.middleware.rate_limit import RateLimitMiddleware
from services.personalization.middleware.sentry import setup_sentry
from services.personalization.routers import feed, health, notifications, profile

logger = logging.getLogger(__name__)


async def _connect_redis(url: str) -> aioredis.Redis | None:
    """Client for the rate limiter, or None when Redis is not reachable."""
    if not url:
        return None
    client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=5)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning("Redis unavailable at startup, rate limiting disabled: %s", e)
        await client.aclose()
        return None
    return client


@asynccontextmanager
async def lifespan(app: FastAPI):
    if setup_sentry():
        logger.info("Sentry enabled for environment=%s", settings.environment)

    app.state.settings = settings
    app.state.redis = await _connect_redis(settings.redis_url)
    logger.info(
        "%s %s started (rate limiting %s)",
        settings.app_name,
        settings.app_version,
        "on" if app.state.redis is not None else "off",
    )

    yield

    if app.state.redis is not None:
        await app.state.redis.aclose()


app = FastAPI(
    title="Aurora Personalization API",
    version=settings.app_version,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url=None,
    lifespan=lifespan,
)

for module in (health, profile, feed, notifications):
    app.include_router(module.router)


# Starlette runs the last-added middleware outermost:
# CORS -> request id -> rate limit -> routers


class AppStateRateLimitMiddleware(RateLimitMiddleware):
    """Uses whatever Redis client the lifespan put on app.state."""

    def __init__(self, app):
        super().__init__(app, redis_client=None)

    async def dispatch(self, request, call_next):
        self.redis = getattr(request.app.state, "redis", None)
        return await super().dispatch(request, call_next)


app.add_middleware(AppStateRateLimitMiddleware)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next) -> Response:
    request.state.request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


setup_cors(app)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

def _error(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {"code": code, "message": message},
            "requestId": request_id,
        },
    )


def _first_error_message(errors: list[dict]) -> str:
    if not errors:
        return "Validation error."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


@app.exception_handler(404)
async def not_found_handler(request: Request, exc) -> JSONResponse:
    return _error(request, 404, "NOT_FOUND", "Resource not found.")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(request, 422, "VALIDATION_ERROR", _first_error_message(list(exc.errors())))


@app.exception_handler(422)
async def unprocessable_handler(request: Request, exc) -> JSONResponse:
    return _error(request, 422, "VALIDATION_ERROR", str(getattr(exc, "detail", "Validation error.")))


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")
