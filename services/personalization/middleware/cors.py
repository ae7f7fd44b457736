"""
CORS for the browser clients that call the ranking endpoints directly.

Only the origins in settings.cors_origins are allowed. The service is
read-and-score only, so preflight admits GET/POST alone, and the rate limit
headers are exposed so clients can back off before hitting a 429.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.personalization.config import Settings, settings

RATE_LIMIT_HEADERS = ["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"]


def setup_cors(app: FastAPI, config: Settings = settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", *RATE_LIMIT_HEADERS],
        max_age=600,
    )
