"""
Request payload models shared across the personalization routers.

Field names mirror the camelCase JSON documents the core types serialise
to, so ``payload.model_dump(mode="json")`` feeds straight into the matching
``from_dict()``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from services.personalization.config import settings
from services.personalization.notifications.preferences import FrequencyMode
from services.personalization.notifications.types import (
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
    RecentActivity,
)
from services.personalization.profile.types import (
    DEFAULT_PEAK_HOURS,
    DEFAULT_PREFERRED_DISTANCE,
    DEFAULT_PREFERRED_DURATION,
    DEFAULT_SAFETY_SCORE,
    DEFAULT_SAFETY_THRESHOLD,
    ContentLengthPreference,
    LifeDimension,
    UserProfile,
)
from services.personalization.ranking.content import ContentItem, ContentType

Hour = Annotated[int, Field(ge=0, le=23)]
UnitScore = Annotated[float, Field(ge=0.0, le=1.0)]
Count = Annotated[int, Field(ge=0)]


# ---------------------------------------------------------------------------
# UserProfile
# ---------------------------------------------------------------------------

class ContentConsumptionPayload(BaseModel):
    lifeDimensions: dict[LifeDimension, Count] = Field(default_factory=dict)
    postTypes: dict[str, Count] = Field(default_factory=dict)
    avgSessionDuration: float = Field(default=0.0, ge=0.0)
    peakActivityHours: list[Hour] = Field(default_factory=lambda: list(DEFAULT_PEAK_HOURS))
    preferredContentLength: ContentLengthPreference = ContentLengthPreference.MEDIUM


class EngagementPayload(BaseModel):
    likesGiven: Count = 0
    commentsGiven: Count = 0
    sharesGiven: Count = 0
    verificationsGiven: Count = 0
    avgEngagementRate: UnitScore = 0.0
    topEngagedCreators: list[str] = Field(default_factory=list, max_length=50)


class RoutePreferencesPayload(BaseModel):
    preferredDistance: float = Field(default=DEFAULT_PREFERRED_DISTANCE, ge=0.0)
    preferredDuration: float = Field(default=DEFAULT_PREFERRED_DURATION, ge=0.0)
    preferredTags: list[str] = Field(default_factory=list)
    safetyThreshold: float = Field(default=DEFAULT_SAFETY_THRESHOLD, ge=0.0, le=5.0)
    completedRoutes: Count = 0
    sharedRoutes: Count = 0


class CreditBehaviorPayload(BaseModel):
    totalEarned: float = Field(default=0.0, ge=0.0)
    totalSpent: float = Field(default=0.0, ge=0.0)
    avgMonthlyEarnings: float = Field(default=0.0, ge=0.0)
    spendingCategories: dict[str, float] = Field(default_factory=dict)
    savingsRate: float = Field(default=0.0, le=1.0)


class SocialGraphPayload(BaseModel):
    followersCount: Count = 0
    followingCount: Count = 0
    mutualConnections: Count = 0
    messagesSent: Count = 0
    messagesReceived: Count = 0
    responseRate: UnitScore = 0.0


class ContentCreationPayload(BaseModel):
    postsCreated: Count = 0
    routesShared: Count = 0
    opportunitiesCreated: Count = 0
    avgPostQuality: float = 0.0
    viralContentCount: Count = 0


class PersonalizationScoresPayload(BaseModel):
    explorationScore: UnitScore = 0.0
    engagementScore: UnitScore = 0.0
    creatorScore: UnitScore = 0.0
    communityScore: UnitScore = 0.0
    safetyScore: UnitScore = DEFAULT_SAFETY_SCORE


class MLFeaturesPayload(BaseModel):
    contentAffinityScores: dict[LifeDimension, UnitScore] = Field(default_factory=dict)
    similarUsers: list[str] = Field(default_factory=list)
    userEmbedding: list[float] | None = None


class UserProfilePayload(BaseModel):
    """A UserProfile snapshot as served by POST /profile/{userId}/rebuild."""

    userId: str = Field(..., min_length=1)
    location: str | None = None
    industry: str | None = None
    careerGoals: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    contentConsumption: ContentConsumptionPayload = Field(default_factory=ContentConsumptionPayload)
    engagement: EngagementPayload = Field(default_factory=EngagementPayload)
    routePreferences: RoutePreferencesPayload = Field(default_factory=RoutePreferencesPayload)
    creditBehavior: CreditBehaviorPayload = Field(default_factory=CreditBehaviorPayload)
    socialGraph: SocialGraphPayload = Field(default_factory=SocialGraphPayload)
    contentCreation: ContentCreationPayload = Field(default_factory=ContentCreationPayload)
    personalizationScores: PersonalizationScoresPayload = Field(
        default_factory=PersonalizationScoresPayload
    )
    mlFeatures: MLFeaturesPayload = Field(default_factory=MLFeaturesPayload)
    lastUpdated: datetime | None = None

    def to_profile(self) -> UserProfile:
        return UserProfile.from_dict(self.model_dump(mode="json"))


# ---------------------------------------------------------------------------
# Feed candidates
# ---------------------------------------------------------------------------

class ContentItemPayload(BaseModel):
    id: str = Field(..., min_length=1)
    type: ContentType
    authorId: str = Field(..., min_length=1)
    createdAt: datetime
    lifeDimension: LifeDimension | None = None
    tags: list[str] = Field(default_factory=list)
    upvotes: Count = 0
    downvotes: Count = 0
    comments: Count = 0
    shares: Count = 0
    views: Count = 0
    authorTrustScore: float = Field(default=0.0, ge=0.0, le=100.0)
    verificationCount: Count | None = None
    isVerified: bool | None = None
    hasMedia: bool = False
    textLength: Count = 0
    safetyRating: float | None = Field(default=None, ge=0.0, le=5.0)

    def to_item(self) -> ContentItem:
        return ContentItem.from_dict(self.model_dump(mode="json"))


CandidateBatch = Annotated[
    list[ContentItemPayload], Field(max_length=settings.max_feed_candidates)
]


def to_items(payloads: list[ContentItemPayload]) -> list[ContentItem]:
    return [p.to_item() for p in payloads]


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class NotificationTemplatePayload(BaseModel):
    id: str = Field(..., min_length=1)
    type: NotificationType
    title: str = Field(default="", max_length=200)
    body: str = Field(default="", max_length=2000)
    priority: NotificationPriority = NotificationPriority.MEDIUM
    actionUrl: str | None = None

    def to_template(self) -> NotificationTemplate:
        return NotificationTemplate.from_dict(self.model_dump(mode="json"))


class RecentActivityPayload(BaseModel):
    lastActive: datetime | None = None
    lastNotificationSent: datetime | None = None
    notificationsSentToday: Count = 0
    notificationsClickedToday: Count = 0

    @field_validator("notificationsClickedToday")
    @classmethod
    def clicks_within_sends(cls, v: int, info: ValidationInfo) -> int:
        sent = info.data.get("notificationsSentToday")
        if sent is not None and v > sent:
            raise ValueError("notificationsClickedToday cannot exceed notificationsSentToday")
        return v

    def to_activity(self) -> RecentActivity:
        return RecentActivity.from_dict(self.model_dump(mode="json"))


class QuietHoursPayload(BaseModel):
    enabled: bool = True
    start: Hour = 22
    end: Hour = 8


class NotificationPreferencesPayload(BaseModel):
    enabled: bool = True
    types: dict[NotificationType, bool] = Field(default_factory=dict)
    channels: dict[str, bool] = Field(default_factory=dict)
    quietHours: QuietHoursPayload = Field(default_factory=QuietHoursPayload)
    frequency: FrequencyMode = FrequencyMode.ALL
