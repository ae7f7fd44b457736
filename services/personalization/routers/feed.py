"""
Feed ranking endpoints.

    POST /feed/rank           six-factor ranking + diversity re-rank
    POST /feed/trending       velocity ranking inside a recent window
    POST /feed/routes         safety-filtered route recommendations
    POST /feed/opportunities  dimension/career-matched opportunities

Every call is stateless: the caller supplies the profile snapshot and the
candidate pool, and gets back the scored list. Nothing is persisted.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from services.personalization.config import settings
from services.personalization.profile.segments import classify_segment
from services.personalization.ranking.recommendations import (
    TRENDING_LIMIT,
    TRENDING_WINDOW_HOURS,
    get_trending_content,
    recommend_opportunities,
    recommend_routes,
)
from services.personalization.ranking.scorer import RankingConfig, rank_feed
from services.personalization.routers._payloads import (
    CandidateBatch,
    UserProfilePayload,
    to_items,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feed", tags=["feed"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class FeedRankRequest(BaseModel):
    profile: UserProfilePayload
    candidates: CandidateBatch
    recentlyViewedIds: list[str] = Field(default_factory=list)


class TrendingRequest(BaseModel):
    candidates: CandidateBatch
    windowHours: float = Field(default=TRENDING_WINDOW_HOURS, gt=0.0, le=24 * 30)
    limit: int = Field(default=TRENDING_LIMIT, ge=1, le=100)


class RouteRecommendRequest(BaseModel):
    profile: UserProfilePayload
    routes: CandidateBatch


class OpportunityRecommendRequest(BaseModel):
    profile: UserProfilePayload
    opportunities: CandidateBatch


def _envelope(request: Request, data: dict) -> dict:
    return {"success": True, "data": data, "requestId": request.state.request_id}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/rank")
async def rank(body: FeedRankRequest, request: Request) -> dict:
    """Rank candidates for one user in final (post-diversity) order."""
    profile = body.profile.to_profile()
    segment = classify_segment(profile)

    ranked = rank_feed(
        to_items(body.candidates),
        profile,
        body.recentlyViewedIds,
        segment=segment,
        config=RankingConfig.from_settings(settings),
    )

    logger.info(
        "Feed ranked user=%s segment=%s candidates=%d returned=%d",
        profile.user_id,
        segment.value,
        len(body.candidates),
        len(ranked),
    )
    return _envelope(
        request,
        {"segment": segment.value, "items": [entry.to_dict() for entry in ranked]},
    )


@router.post("/trending")
async def trending(body: TrendingRequest, request: Request) -> dict:
    ranked = get_trending_content(
        to_items(body.candidates),
        window_hours=body.windowHours,
        limit=body.limit,
    )
    return _envelope(request, {"items": [entry.to_dict() for entry in ranked]})


@router.post("/routes")
async def routes(body: RouteRecommendRequest, request: Request) -> dict:
    ranked = recommend_routes(to_items(body.routes), body.profile.to_profile())
    return _envelope(request, {"items": [entry.to_dict() for entry in ranked]})


@router.post("/opportunities")
async def opportunities(body: OpportunityRecommendRequest, request: Request) -> dict:
    ranked = recommend_opportunities(to_items(body.opportunities), body.profile.to_profile())
    return _envelope(request, {"items": [entry.to_dict() for entry in ranked]})
