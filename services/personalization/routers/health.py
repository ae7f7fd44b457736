"""GET /health: liveness plus the tunables the scorers are running with."""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    state = request.app.state
    cfg = state.settings
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "service": cfg.app_name,
            "version": cfg.app_version,
            "environment": cfg.environment,
            "rateLimiting": getattr(state, "redis", None) is not None,
            "limits": {
                "maxFeedCandidates": cfg.max_feed_candidates,
                "notificationDailyCap": cfg.notification_daily_cap,
            },
        },
        "requestId": request.state.request_id,
    }
