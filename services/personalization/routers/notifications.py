"""
Notification endpoints.

    POST /notifications/score        score candidates, decide send / when
    POST /notifications/personalize  fill placeholders for one template

Callers act only on entries with ``shouldSend = true``, scheduled at
``optimalSendTime``. Send history (``recentActivity``) is supplied per call;
the service keeps no per-user counters.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, model_validator

from services.personalization.config import settings
from services.personalization.notifications.preferences import NotificationPreferences
from services.personalization.notifications.scorer import (
    NotificationConfig,
    score_notifications,
)
from services.personalization.notifications.templates import personalize_template
from services.personalization.notifications.types import NotificationContext
from services.personalization.profile.segments import UserSegment, classify_segment
from services.personalization.routers._payloads import (
    NotificationPreferencesPayload,
    NotificationTemplatePayload,
    RecentActivityPayload,
    UserProfilePayload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

MAX_NOTIFICATION_CANDIDATES = 100


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class NotificationContextPayload(BaseModel):
    recentActivity: RecentActivityPayload = Field(default_factory=RecentActivityPayload)
    timezone: str | None = Field(default=None, max_length=64, description="IANA zone name")


class NotificationScoreRequest(BaseModel):
    profile: UserProfilePayload
    candidates: list[NotificationTemplatePayload] = Field(max_length=MAX_NOTIFICATION_CANDIDATES)
    context: NotificationContextPayload = Field(default_factory=NotificationContextPayload)
    preferences: NotificationPreferencesPayload | None = None


class PersonalizeContextPayload(BaseModel):
    userName: str | None = Field(default=None, max_length=100)
    stats: dict[str, str | int | float] = Field(default_factory=dict)


class PersonalizeRequest(BaseModel):
    template: NotificationTemplatePayload
    segment: UserSegment | None = None
    profile: UserProfilePayload | None = None
    context: PersonalizeContextPayload = Field(default_factory=PersonalizeContextPayload)

    @model_validator(mode="after")
    def segment_or_profile(self) -> "PersonalizeRequest":
        if self.segment is None and self.profile is None:
            raise ValueError("Either segment or profile is required")
        return self


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/score")
async def score(body: NotificationScoreRequest, request: Request) -> dict:
    profile = body.profile.to_profile()
    segment = classify_segment(profile)
    context = NotificationContext(
        profile=profile,
        recent_activity=body.context.recentActivity.to_activity(),
        timezone=body.context.timezone,
    )
    preferences = (
        NotificationPreferences.from_dict(body.preferences.model_dump(mode="json"))
        if body.preferences is not None
        else None
    )

    scored = score_notifications(
        [c.to_template() for c in body.candidates],
        context,
        segment=segment,
        config=NotificationConfig.from_settings(settings),
        preferences=preferences,
    )

    logger.info(
        "Notifications scored user=%s segment=%s candidates=%d send=%d",
        profile.user_id,
        segment.value,
        len(body.candidates),
        sum(1 for n in scored if n.should_send),
    )
    return {
        "success": True,
        "data": {
            "segment": segment.value,
            "notifications": [n.to_dict() for n in scored],
        },
        "requestId": request.state.request_id,
    }


@router.post("/personalize")
async def personalize(body: PersonalizeRequest, request: Request) -> dict:
    segment = body.segment
    if segment is None:
        segment = classify_segment(body.profile.to_profile())

    template = personalize_template(
        body.template.to_template(),
        segment,
        body.context.model_dump(),
    )
    return {
        "success": True,
        "data": {"segment": segment.value, "notification": template.to_dict()},
        "requestId": request.state.request_id,
    }
