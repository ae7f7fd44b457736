"""
Vertical recommenders that sit beside the main feed ranker.

    get_trending_content     velocity-over-age ranking inside a time window
    recommend_routes         safety-filtered, tag-matched route suggestions
    recommend_opportunities  dimension- and career-goal-matched opportunities

All three reuse quality_score() from the feed ranker and return RankedItem
lists sorted by score descending.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable

from services.personalization.profile.types import UserProfile
from services.personalization.ranking.content import ContentItem, RankedItem
from services.personalization.ranking.scorer import quality_score
from services.personalization.util import hours_between, utcnow

logger = logging.getLogger(__name__)

TRENDING_WINDOW_HOURS = 24
TRENDING_LIMIT = 20
# Age penalty for trending: exp(-age/12)
TRENDING_DECAY_HOURS = 12.0

MAX_SAFETY_RATING = 5.0


# ---------------------------------------------------------------------------
# Trending
# ---------------------------------------------------------------------------

def trending_score(item: ContentItem, now_utc: datetime) -> float:
    """Weighted interactions per hour, damped by age."""
    age_hours = max(0.0, hours_between(item.created_at, now_utc))
    velocity = (item.upvotes + item.comments * 2 + item.shares * 3) / max(1.0, age_hours)
    return velocity * math.exp(-age_hours / TRENDING_DECAY_HOURS)


def get_trending_content(
    content: Iterable[ContentItem],
    window_hours: float = TRENDING_WINDOW_HOURS,
    limit: int = TRENDING_LIMIT,
    *,
    now_utc: datetime | None = None,
) -> list[RankedItem]:
    """Top ``limit`` items created within the last ``window_hours``."""
    now = now_utc or utcnow()
    cutoff = now - timedelta(hours=window_hours)

    ranked = [
        RankedItem(item=item, score=trending_score(item, now))
        for item in content
        if item.created_at >= cutoff
    ]
    ranked.sort(key=lambda r: r.score, reverse=True)
    return ranked[:limit]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def route_score(route: ContentItem, profile: UserProfile) -> float:
    score = 0.0

    if route.tags:
        preferred = set(profile.route_preferences.preferred_tags)
        matching = sum(1 for tag in route.tags if tag in preferred)
        score += (matching / max(1, len(route.tags))) * 0.4

    if route.safety_rating:
        score += (route.safety_rating / MAX_SAFETY_RATING) * 0.3

    score += quality_score(route) * 0.3
    return score


def recommend_routes(routes: Iterable[ContentItem], profile: UserProfile) -> list[RankedItem]:
    """Drop routes rated below the user's safety threshold, then rank the rest."""
    threshold = profile.route_preferences.safety_threshold
    kept: list[RankedItem] = []
    dropped = 0

    for route in routes:
        if route.safety_rating and route.safety_rating < threshold:
            dropped += 1
            continue
        kept.append(RankedItem(item=route, score=route_score(route, profile)))

    kept.sort(key=lambda r: r.score, reverse=True)

    if dropped:
        logger.debug(
            "recommend_routes: dropped %d route(s) below safety threshold %.1f for user=%s",
            dropped,
            threshold,
            profile.user_id,
        )
    return kept


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------

def opportunity_score(opportunity: ContentItem, profile: UserProfile) -> float:
    score = 0.0

    if opportunity.life_dimension is not None:
        affinity = profile.ml_features.content_affinity_scores.get(opportunity.life_dimension, 0.0)
        score += affinity * 0.5

    if profile.career_goals and opportunity.tags:
        goals = [goal.lower() for goal in profile.career_goals]
        matching = sum(
            1 for tag in opportunity.tags if any(tag.lower() in goal for goal in goals)
        )
        score += (matching / max(1, len(opportunity.tags))) * 0.3

    score += quality_score(opportunity) * 0.2
    return score


def recommend_opportunities(
    opportunities: Iterable[ContentItem],
    profile: UserProfile,
) -> list[RankedItem]:
    ranked = [
        RankedItem(item=opp, score=opportunity_score(opp, profile)) for opp in opportunities
    ]
    ranked.sort(key=lambda r: r.score, reverse=True)
    return ranked
