"""
ProfileBuilder — turns raw per-user activity records into a UserProfile.

Input
-----
    user_record: base user fields (``_id``/``id``, location, industry,
                 careerGoals, interests, followersCount, followingCount)
    activity:    dict of activity lists, all optional:
                   posts, routes, comments, votes, transactions, messages,
                   opportunities, shares, verifications

Each activity record is a plain dict as exported by the activity store.
Fields read per list:
    posts         lifeDimension, type, upvotes, downvotes
    routes        distance, duration, tags, status, isPublic, safetyRating
    comments      targetAuthorId
    votes         value (1 = like), targetAuthorId
    transactions  type ('earn' | 'spend'), amount, category
    messages      senderId, receiverId

Design notes
------------
- Pure and total: no I/O, never raises on well-formed dicts. A missing or
  empty list yields the documented defaults.
- Every ratio guards its denominator with max(1, x); every rate/score is
  clamped into its valid range.
- Peak hours, content-length preference, response rate and months since
  signup are placeholders until session and signup data are wired in.
"""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from datetime import datetime
from typing import Any, Iterable

from services.personalization.profile.types import (
    DEFAULT_PEAK_HOURS,
    DEFAULT_SAFETY_SCORE,
    PLACEHOLDER_RESPONSE_RATE,
    ContentConsumption,
    ContentCreation,
    ContentLengthPreference,
    CreditBehavior,
    EngagementStats,
    LifeDimension,
    MLFeatures,
    PersonalizationScores,
    RoutePreferences,
    SocialGraph,
    UserProfile,
)
from services.personalization.util import clamp, utcnow

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

TOP_CREATORS_LIMIT = 10
PREFERRED_TAGS_LIMIT = 5

# Posts with more net upvotes than this count as viral
VIRAL_UPVOTE_THRESHOLD = 50

# Exploration is measured against the full span of life dimensions
EXPLORATION_DIMENSION_SPAN = 7

# Social interactions (messages + comments) that saturate the community score
COMMUNITY_SATURATION = 50

# Rating assumed for a route without one (1-5 scale)
DEFAULT_ROUTE_SAFETY_RATING = 3.0
MAX_SAFETY_RATING = 5.0

# Not yet computed from the signup date.
PLACEHOLDER_MONTHS_SINCE_SIGNUP = 1

ACTIVITY_KEYS = (
    "posts",
    "routes",
    "comments",
    "votes",
    "transactions",
    "messages",
    "opportunities",
    "shares",
    "verifications",
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_profile(
    user_id: str,
    user_record: dict[str, Any] | None,
    activity: dict[str, list[dict[str, Any]] | None] | None,
    *,
    now_utc: datetime | None = None,
    peak_hours: Iterable[int] | None = None,
) -> UserProfile:
    """
    Build a full UserProfile snapshot from raw activity.

    Args:
        user_id:     Opaque id of the user being profiled.
        user_record: Base user fields. May be empty.
        activity:    Activity lists keyed by ACTIVITY_KEYS. Missing keys
                     and None values are treated as empty lists.
        now_utc:     Override for ``lastUpdated`` (for testing).
        peak_hours:  Placeholder peak-activity hours. Defaults to
                     DEFAULT_PEAK_HOURS.

    Returns:
        A new UserProfile. Never raises for well-formed dict input.
    """
    user = user_record or {}
    records = _normalise_activity(activity)

    profile = UserProfile(
        user_id=user_id,
        location=user.get("location"),
        industry=user.get("industry"),
        career_goals=list(user.get("careerGoals") or []),
        interests=list(user.get("interests") or []),
        content_consumption=analyze_content_consumption(records, peak_hours),
        engagement=analyze_engagement(records),
        route_preferences=analyze_route_preferences(records),
        credit_behavior=analyze_credit_behavior(records),
        social_graph=analyze_social_graph(user, records, user_id),
        content_creation=analyze_content_creation(records),
        personalization_scores=calculate_personalization_scores(records),
        ml_features=extract_ml_features(records),
        last_updated=now_utc or utcnow(),
    )

    logger.debug(
        "profile built user=%s posts=%d routes=%d votes=%d comments=%d",
        user_id,
        len(records["posts"]),
        len(records["routes"]),
        len(records["votes"]),
        len(records["comments"]),
    )
    return profile


# ---------------------------------------------------------------------------
# Section analysers
# ---------------------------------------------------------------------------

def analyze_content_consumption(
    records: dict[str, list[dict[str, Any]]],
    peak_hours: Iterable[int] | None = None,
) -> ContentConsumption:
    """Histogram posts by life dimension and by post type."""
    dimensions: Counter[LifeDimension] = Counter()
    types: Counter[str] = Counter()

    for post in records["posts"]:
        dim = LifeDimension.parse(post.get("lifeDimension"))
        if dim is not None:
            dimensions[dim] += 1
        types[post.get("type") or "standard"] += 1

    return ContentConsumption(
        life_dimensions=dict(dimensions),
        content_types=dict(types),
        avg_session_duration=0.0,
        peak_activity_hours=sorted(set(peak_hours if peak_hours is not None else DEFAULT_PEAK_HOURS)),
        preferred_content_length=ContentLengthPreference.MEDIUM,
    )


def analyze_engagement(records: dict[str, list[dict[str, Any]]]) -> EngagementStats:
    votes = records["votes"]
    comments = records["comments"]

    return EngagementStats(
        likes_given=sum(1 for v in votes if v.get("value") == 1),
        comments_given=len(comments),
        shares_given=len(records["shares"]),
        verifications_given=len(records["verifications"]),
        avg_engagement_rate=_engagement_rate(records),
        top_engaged_creators=top_engaged_creators(votes, comments),
    )


def analyze_route_preferences(records: dict[str, list[dict[str, Any]]]) -> RoutePreferences:
    routes = records["routes"]
    if not routes:
        return RoutePreferences()

    distances = [float(r.get("distance") or 0) for r in routes]
    durations = [float(r.get("duration") or 0) for r in routes]

    tag_counts: Counter[str] = Counter(
        tag for r in routes for tag in (r.get("tags") or [])
    )

    return RoutePreferences(
        preferred_distance=statistics.median(distances),
        preferred_duration=statistics.median(durations),
        preferred_tags=[tag for tag, _ in tag_counts.most_common(PREFERRED_TAGS_LIMIT)],
        completed_routes=sum(1 for r in routes if r.get("status") == "completed"),
        shared_routes=sum(1 for r in routes if r.get("isPublic")),
    )


def analyze_credit_behavior(records: dict[str, list[dict[str, Any]]]) -> CreditBehavior:
    transactions = records["transactions"]
    earned = [t for t in transactions if t.get("type") == "earn"]
    spent = [t for t in transactions if t.get("type") == "spend"]

    total_earned = sum(float(t.get("amount") or 0) for t in earned)
    total_spent = sum(float(t.get("amount") or 0) for t in spent)

    categories: dict[str, float] = {}
    for t in spent:
        category = t.get("category") or "other"
        categories[category] = categories.get(category, 0.0) + float(t.get("amount") or 0)

    savings_rate = (total_earned - total_spent) / total_earned if total_earned > 0 else 0.0

    return CreditBehavior(
        total_earned=total_earned,
        total_spent=total_spent,
        avg_monthly_earnings=total_earned / max(1, PLACEHOLDER_MONTHS_SINCE_SIGNUP),
        spending_categories=categories,
        savings_rate=min(1.0, savings_rate),
    )


def analyze_social_graph(
    user: dict[str, Any],
    records: dict[str, list[dict[str, Any]]],
    user_id: str,
) -> SocialGraph:
    messages = records["messages"]
    own_id = user.get("_id") or user.get("id") or user_id

    return SocialGraph(
        followers_count=int(user.get("followersCount") or 0),
        following_count=int(user.get("followingCount") or 0),
        mutual_connections=0,
        messages_sent=sum(1 for m in messages if m.get("senderId") == own_id),
        messages_received=sum(1 for m in messages if m.get("receiverId") == own_id),
        response_rate=PLACEHOLDER_RESPONSE_RATE,
    )


def analyze_content_creation(records: dict[str, list[dict[str, Any]]]) -> ContentCreation:
    posts = records["posts"]

    return ContentCreation(
        posts_created=len(posts),
        routes_shared=sum(1 for r in records["routes"] if r.get("isPublic")),
        opportunities_created=len(records["opportunities"]),
        avg_post_quality=_avg_post_quality(posts),
        viral_content_count=sum(
            1 for p in posts if (p.get("upvotes") or 0) > VIRAL_UPVOTE_THRESHOLD
        ),
    )


def calculate_personalization_scores(
    records: dict[str, list[dict[str, Any]]],
) -> PersonalizationScores:
    return PersonalizationScores(
        exploration_score=exploration_score(records),
        engagement_score=engagement_score(records),
        creator_score=creator_score(records),
        community_score=community_score(records),
        safety_score=safety_score(records),
    )


def extract_ml_features(records: dict[str, list[dict[str, Any]]]) -> MLFeatures:
    """Per-dimension post counts normalised to sum to 1."""
    counts: Counter[LifeDimension] = Counter()
    for post in records["posts"]:
        dim = LifeDimension.parse(post.get("lifeDimension"))
        if dim is not None:
            counts[dim] += 1

    total = sum(counts.values())
    affinity = {dim: count / max(1, total) for dim, count in counts.items()}

    # similar_users stays empty until collaborative filtering feeds it
    return MLFeatures(content_affinity_scores=affinity, similar_users=[])


# ---------------------------------------------------------------------------
# Score helpers
# ---------------------------------------------------------------------------

def top_engaged_creators(
    votes: list[dict[str, Any]],
    comments: list[dict[str, Any]],
    limit: int = TOP_CREATORS_LIMIT,
) -> list[str]:
    """
    Creator ids ranked by interaction count (votes + comments), descending.

    Ties keep first-encounter order (votes are walked before comments).
    """
    tally: Counter[str] = Counter()
    for item in (*votes, *comments):
        author = item.get("targetAuthorId")
        if author:
            tally[str(author)] += 1
    return [author for author, _ in tally.most_common(limit)]


def exploration_score(records: dict[str, list[dict[str, Any]]]) -> float:
    touched = {
        dim
        for dim in (LifeDimension.parse(p.get("lifeDimension")) for p in records["posts"])
        if dim is not None
    }
    return min(1.0, len(touched) / EXPLORATION_DIMENSION_SPAN)


def engagement_score(records: dict[str, list[dict[str, Any]]]) -> float:
    interactions = len(records["votes"]) + len(records["comments"])
    return min(1.0, interactions / max(1, len(records["posts"]) * 2))


def creator_score(records: dict[str, list[dict[str, Any]]]) -> float:
    created = len(records["posts"]) + len(records["routes"])
    consumed = len(records["votes"]) + len(records["comments"])
    return clamp(created / max(1, created + consumed))


def community_score(records: dict[str, list[dict[str, Any]]]) -> float:
    social = len(records["messages"]) + len(records["comments"])
    return min(1.0, social / COMMUNITY_SATURATION)


def safety_score(records: dict[str, list[dict[str, Any]]]) -> float:
    routes = records["routes"]
    if not routes:
        return DEFAULT_SAFETY_SCORE
    ratings = [
        float(r["safetyRating"]) if r.get("safetyRating") is not None else DEFAULT_ROUTE_SAFETY_RATING
        for r in routes
    ]
    return clamp(statistics.fmean(ratings) / MAX_SAFETY_RATING)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _normalise_activity(
    activity: dict[str, list[dict[str, Any]] | None] | None,
) -> dict[str, list[dict[str, Any]]]:
    raw = activity or {}
    return {key: list(raw.get(key) or []) for key in ACTIVITY_KEYS}


def _engagement_rate(records: dict[str, list[dict[str, Any]]]) -> float:
    posts = len(records["posts"])
    if posts == 0:
        return 0.0
    interactions = len(records["votes"]) + len(records["comments"])
    return clamp(interactions / posts)


def _avg_post_quality(posts: list[dict[str, Any]]) -> float:
    if not posts:
        return 0.0
    net = sum((p.get("upvotes") or 0) - (p.get("downvotes") or 0) for p in posts)
    return net / len(posts)
