"""
POST /profile/{userId}/rebuild — build a UserProfile snapshot from raw activity.

The body carries the user's base record fields next to the raw activity
arrays exported by the activity store. The response is the full profile
document plus the segment it classifies into; persisting it is the caller's
job.

Rate limit: uses the rebuild bucket (settings.rate_limit_rebuild_per_min).
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from fastapi import APIRouter, Path, Request
from pydantic import BaseModel, Field

from services.personalization.config import settings
from services.personalization.profile.builder import build_profile
from services.personalization.profile.segments import classify_segment

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])

# Per-list cap on raw activity records in one rebuild request
MAX_ACTIVITY_RECORDS = 10_000


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class _ActivityRecord(BaseModel):
    # Exported records carry more fields than the builder reads; keep them.
    model_config = {"extra": "allow"}


class PostRecord(_ActivityRecord):
    lifeDimension: str | None = None
    type: str | None = None
    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)


class RouteRecord(_ActivityRecord):
    distance: float = Field(default=0.0, ge=0.0)
    duration: float = Field(default=0.0, ge=0.0)
    tags: list[str] = Field(default_factory=list)
    status: str | None = None
    isPublic: bool = False
    safetyRating: float | None = Field(default=None, ge=0.0, le=5.0)


class CommentRecord(_ActivityRecord):
    targetAuthorId: str | None = None


class VoteRecord(_ActivityRecord):
    value: int = Field(..., ge=-1, le=1)
    targetAuthorId: str | None = None


class TransactionRecord(_ActivityRecord):
    type: Literal["earn", "spend"]
    amount: float = Field(..., ge=0.0)
    category: str | None = None


class MessageRecord(_ActivityRecord):
    senderId: str
    receiverId: str


class RebuildRequest(BaseModel):
    # Base user record
    location: str | None = None
    industry: str | None = None
    careerGoals: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    followersCount: int = Field(default=0, ge=0)
    followingCount: int = Field(default=0, ge=0)

    # Raw activity
    posts: list[PostRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    routes: list[RouteRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    comments: list[CommentRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    votes: list[VoteRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    transactions: list[TransactionRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    messages: list[MessageRecord] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    opportunities: list[dict[str, Any]] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    shares: list[dict[str, Any]] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)
    verifications: list[dict[str, Any]] = Field(default_factory=list, max_length=MAX_ACTIVITY_RECORDS)


_USER_FIELDS = ("location", "industry", "careerGoals", "interests", "followersCount", "followingCount")


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("/{userId}/rebuild")
async def rebuild_profile(
    body: RebuildRequest,
    request: Request,
    userId: str = Path(..., min_length=1, max_length=128),
) -> dict:
    """Rebuild the profile for ``userId`` and classify it."""
    raw = body.model_dump(mode="json")
    user_record = {key: raw.pop(key) for key in _USER_FIELDS}

    profile = build_profile(
        userId,
        user_record,
        raw,
        peak_hours=settings.default_peak_hours,
    )
    segment = classify_segment(profile)

    logger.info(
        "Profile rebuilt user=%s segment=%s posts=%d routes=%d",
        userId,
        segment.value,
        len(body.posts),
        len(body.routes),
    )

    return {
        "success": True,
        "data": {"profile": profile.to_dict(), "segment": segment.value},
        "requestId": request.state.request_id,
    }
