"""
UserProfile and its component dataclasses.

These are the canonical types for all profile reads in the service.
ContentRanker, SegmentClassifier and NotificationScorer consume UserProfile
exclusively; they never look at raw activity records.

Serialization: ``to_dict()`` emits the camelCase JSON document served by
``POST /profile/{userId}/rebuild``; ``from_dict()`` accepts the same document
and fills any missing section with its documented default, so a stale or
partial snapshot is always usable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from services.personalization.util import parse_timestamp, utcnow

# Placeholder peak hours until session timestamps are analysed.
DEFAULT_PEAK_HOURS: tuple[int, ...] = (9, 12, 18, 21)

# Route defaults for users with no recorded routes
DEFAULT_PREFERRED_DISTANCE = 5000.0  # metres
DEFAULT_PREFERRED_DURATION = 1800.0  # seconds
DEFAULT_SAFETY_THRESHOLD = 3.5

# Neutral safety score when the user has no routes
DEFAULT_SAFETY_SCORE = 0.5

# Not yet computed from message threads.
PLACEHOLDER_RESPONSE_RATE = 0.8


class LifeDimension(str, Enum):
    """Content category used to bucket posts and measure topical affinity."""

    PROFESSIONAL = "professional"
    SOCIAL = "social"
    DAILY = "daily"
    TRAVEL = "travel"
    FINANCIAL = "financial"

    @classmethod
    def parse(cls, raw: Any) -> "LifeDimension | None":
        """Return the matching member, or None for missing/unknown labels."""
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


class ContentLengthPreference(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


def _dimension_map(raw: dict[str, Any] | None, cast=int) -> dict[LifeDimension, Any]:
    out: dict[LifeDimension, Any] = {}
    for key, value in (raw or {}).items():
        dim = LifeDimension.parse(key)
        if dim is not None:
            out[dim] = cast(value)
    return out


def _plain_map(raw: dict[LifeDimension, Any]) -> dict[str, Any]:
    return {dim.value: value for dim, value in raw.items()}


# ---------------------------------------------------------------------------
# Profile sections
# ---------------------------------------------------------------------------

@dataclass
class ContentConsumption:
    life_dimensions: dict[LifeDimension, int] = field(default_factory=dict)
    """dimension -> view count"""

    content_types: dict[str, int] = field(default_factory=dict)
    """post record type -> interaction count (open vocabulary: 'standard', 'poll', ...)"""

    avg_session_duration: float = 0.0
    peak_activity_hours: list[int] = field(default_factory=lambda: list(DEFAULT_PEAK_HOURS))
    preferred_content_length: ContentLengthPreference = ContentLengthPreference.MEDIUM

    @property
    def total_dimension_views(self) -> int:
        return sum(self.life_dimensions.values())

    @property
    def total_type_views(self) -> int:
        return sum(self.content_types.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "lifeDimensions": _plain_map(self.life_dimensions),
            "postTypes": dict(self.content_types),
            "avgSessionDuration": self.avg_session_duration,
            "peakActivityHours": list(self.peak_activity_hours),
            "preferredContentLength": self.preferred_content_length.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "ContentConsumption":
        if not d:
            return cls()
        peak = d.get("peakActivityHours")
        return cls(
            life_dimensions=_dimension_map(d.get("lifeDimensions")),
            content_types={str(k): int(v) for k, v in (d.get("postTypes") or {}).items()},
            avg_session_duration=float(d.get("avgSessionDuration", 0.0)),
            peak_activity_hours=[int(h) for h in peak] if peak is not None else list(DEFAULT_PEAK_HOURS),
            preferred_content_length=ContentLengthPreference(
                d.get("preferredContentLength", ContentLengthPreference.MEDIUM.value)
            ),
        )


@dataclass
class EngagementStats:
    likes_given: int = 0
    comments_given: int = 0
    shares_given: int = 0
    verifications_given: int = 0
    avg_engagement_rate: float = 0.0
    top_engaged_creators: list[str] = field(default_factory=list)
    """At most 10 creator ids, most-engaged first."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "likesGiven": self.likes_given,
            "commentsGiven": self.comments_given,
            "sharesGiven": self.shares_given,
            "verificationsGiven": self.verifications_given,
            "avgEngagementRate": self.avg_engagement_rate,
            "topEngagedCreators": list(self.top_engaged_creators),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "EngagementStats":
        if not d:
            return cls()
        return cls(
            likes_given=int(d.get("likesGiven", 0)),
            comments_given=int(d.get("commentsGiven", 0)),
            shares_given=int(d.get("sharesGiven", 0)),
            verifications_given=int(d.get("verificationsGiven", 0)),
            avg_engagement_rate=float(d.get("avgEngagementRate", 0.0)),
            top_engaged_creators=[str(c) for c in d.get("topEngagedCreators") or []],
        )


@dataclass
class RoutePreferences:
    preferred_distance: float = DEFAULT_PREFERRED_DISTANCE
    preferred_duration: float = DEFAULT_PREFERRED_DURATION
    preferred_tags: list[str] = field(default_factory=list)
    safety_threshold: float = DEFAULT_SAFETY_THRESHOLD
    completed_routes: int = 0
    shared_routes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "preferredDistance": self.preferred_distance,
            "preferredDuration": self.preferred_duration,
            "preferredTags": list(self.preferred_tags),
            "safetyThreshold": self.safety_threshold,
            "completedRoutes": self.completed_routes,
            "sharedRoutes": self.shared_routes,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RoutePreferences":
        if not d:
            return cls()
        return cls(
            preferred_distance=float(d.get("preferredDistance", DEFAULT_PREFERRED_DISTANCE)),
            preferred_duration=float(d.get("preferredDuration", DEFAULT_PREFERRED_DURATION)),
            preferred_tags=[str(t) for t in d.get("preferredTags") or []],
            safety_threshold=float(d.get("safetyThreshold", DEFAULT_SAFETY_THRESHOLD)),
            completed_routes=int(d.get("completedRoutes", 0)),
            shared_routes=int(d.get("sharedRoutes", 0)),
        )


@dataclass
class CreditBehavior:
    total_earned: float = 0.0
    total_spent: float = 0.0
    avg_monthly_earnings: float = 0.0
    spending_categories: dict[str, float] = field(default_factory=dict)
    savings_rate: float = 0.0
    """(earned - spent) / earned; negative when spending exceeds earnings."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEarned": self.total_earned,
            "totalSpent": self.total_spent,
            "avgMonthlyEarnings": self.avg_monthly_earnings,
            "spendingCategories": dict(self.spending_categories),
            "savingsRate": self.savings_rate,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "CreditBehavior":
        if not d:
            return cls()
        return cls(
            total_earned=float(d.get("totalEarned", 0.0)),
            total_spent=float(d.get("totalSpent", 0.0)),
            avg_monthly_earnings=float(d.get("avgMonthlyEarnings", 0.0)),
            spending_categories={
                str(k): float(v) for k, v in (d.get("spendingCategories") or {}).items()
            },
            savings_rate=float(d.get("savingsRate", 0.0)),
        )


@dataclass
class SocialGraph:
    followers_count: int = 0
    following_count: int = 0
    mutual_connections: int = 0
    messages_sent: int = 0
    messages_received: int = 0
    response_rate: float = PLACEHOLDER_RESPONSE_RATE

    def to_dict(self) -> dict[str, Any]:
        return {
            "followersCount": self.followers_count,
            "followingCount": self.following_count,
            "mutualConnections": self.mutual_connections,
            "messagesSent": self.messages_sent,
            "messagesReceived": self.messages_received,
            "responseRate": self.response_rate,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "SocialGraph":
        if not d:
            return cls()
        return cls(
            followers_count=int(d.get("followersCount", 0)),
            following_count=int(d.get("followingCount", 0)),
            mutual_connections=int(d.get("mutualConnections", 0)),
            messages_sent=int(d.get("messagesSent", 0)),
            messages_received=int(d.get("messagesReceived", 0)),
            response_rate=float(d.get("responseRate", PLACEHOLDER_RESPONSE_RATE)),
        )


@dataclass
class ContentCreation:
    posts_created: int = 0
    routes_shared: int = 0
    opportunities_created: int = 0
    avg_post_quality: float = 0.0
    """Mean net votes (upvotes - downvotes) per post."""
    viral_content_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "postsCreated": self.posts_created,
            "routesShared": self.routes_shared,
            "opportunitiesCreated": self.opportunities_created,
            "avgPostQuality": self.avg_post_quality,
            "viralContentCount": self.viral_content_count,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "ContentCreation":
        if not d:
            return cls()
        return cls(
            posts_created=int(d.get("postsCreated", 0)),
            routes_shared=int(d.get("routesShared", 0)),
            opportunities_created=int(d.get("opportunitiesCreated", 0)),
            avg_post_quality=float(d.get("avgPostQuality", 0.0)),
            viral_content_count=int(d.get("viralContentCount", 0)),
        )


@dataclass
class PersonalizationScores:
    """Five derived behaviour scores, each in [0, 1]."""

    exploration_score: float = 0.0
    engagement_score: float = 0.0
    creator_score: float = 0.0
    community_score: float = 0.0
    safety_score: float = DEFAULT_SAFETY_SCORE

    def to_dict(self) -> dict[str, Any]:
        return {
            "explorationScore": self.exploration_score,
            "engagementScore": self.engagement_score,
            "creatorScore": self.creator_score,
            "communityScore": self.community_score,
            "safetyScore": self.safety_score,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "PersonalizationScores":
        if not d:
            return cls()
        return cls(
            exploration_score=float(d.get("explorationScore", 0.0)),
            engagement_score=float(d.get("engagementScore", 0.0)),
            creator_score=float(d.get("creatorScore", 0.0)),
            community_score=float(d.get("communityScore", 0.0)),
            safety_score=float(d.get("safetyScore", DEFAULT_SAFETY_SCORE)),
        )


@dataclass
class MLFeatures:
    content_affinity_scores: dict[LifeDimension, float] = field(default_factory=dict)
    """dimension -> affinity weight; sums to 1 across observed dimensions."""

    similar_users: list[str] = field(default_factory=list)
    user_embedding: list[float] | None = None
    """Reserved for a learned user vector. Not read by any scorer."""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "contentAffinityScores": _plain_map(self.content_affinity_scores),
            "similarUsers": list(self.similar_users),
        }
        if self.user_embedding is not None:
            out["userEmbedding"] = list(self.user_embedding)
        return out

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "MLFeatures":
        if not d:
            return cls()
        embedding = d.get("userEmbedding")
        return cls(
            content_affinity_scores=_dimension_map(d.get("contentAffinityScores"), cast=float),
            similar_users=[str(u) for u in d.get("similarUsers") or []],
            user_embedding=[float(x) for x in embedding] if embedding is not None else None,
        )


# ---------------------------------------------------------------------------
# UserProfile
# ---------------------------------------------------------------------------

@dataclass
class UserProfile:
    """
    Per-user derived state, rebuilt periodically from activity records.

    Built by build_profile() and consumed by the segment classifier,
    the content ranker and the notification scorer.
    """

    user_id: str
    location: str | None = None
    industry: str | None = None
    career_goals: list[str] = field(default_factory=list)
    interests: list[str] = field(default_factory=list)

    content_consumption: ContentConsumption = field(default_factory=ContentConsumption)
    engagement: EngagementStats = field(default_factory=EngagementStats)
    route_preferences: RoutePreferences = field(default_factory=RoutePreferences)
    credit_behavior: CreditBehavior = field(default_factory=CreditBehavior)
    social_graph: SocialGraph = field(default_factory=SocialGraph)
    content_creation: ContentCreation = field(default_factory=ContentCreation)
    personalization_scores: PersonalizationScores = field(default_factory=PersonalizationScores)
    ml_features: MLFeatures = field(default_factory=MLFeatures)

    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "location": self.location,
            "industry": self.industry,
            "careerGoals": list(self.career_goals),
            "interests": list(self.interests),
            "contentConsumption": self.content_consumption.to_dict(),
            "engagement": self.engagement.to_dict(),
            "routePreferences": self.route_preferences.to_dict(),
            "creditBehavior": self.credit_behavior.to_dict(),
            "socialGraph": self.social_graph.to_dict(),
            "contentCreation": self.content_creation.to_dict(),
            "personalizationScores": self.personalization_scores.to_dict(),
            "mlFeatures": self.ml_features.to_dict(),
            "lastUpdated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "UserProfile":
        return cls(
            user_id=str(d["userId"]),
            location=d.get("location"),
            industry=d.get("industry"),
            career_goals=list(d.get("careerGoals") or []),
            interests=list(d.get("interests") or []),
            content_consumption=ContentConsumption.from_dict(d.get("contentConsumption")),
            engagement=EngagementStats.from_dict(d.get("engagement")),
            route_preferences=RoutePreferences.from_dict(d.get("routePreferences")),
            credit_behavior=CreditBehavior.from_dict(d.get("creditBehavior")),
            social_graph=SocialGraph.from_dict(d.get("socialGraph")),
            content_creation=ContentCreation.from_dict(d.get("contentCreation")),
            personalization_scores=PersonalizationScores.from_dict(d.get("personalizationScores")),
            ml_features=MLFeatures.from_dict(d.get("mlFeatures")),
            last_updated=parse_timestamp(d.get("lastUpdated")) or utcnow(),
        )


def default_profile(user_id: str) -> UserProfile:
    """Profile for a user with no snapshot yet. Classifies as new_user."""
    return UserProfile(user_id=user_id)
