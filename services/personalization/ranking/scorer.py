"""
ContentRanker — six-factor, segment-weighted scoring of feed candidates.

Sub-scores (each clamped to [0, 1])
-----------------------------------
    relevance   0.4 * dimension affinity
              + 0.3 * content-type view share
              + 0.2 * fraction of item tags in the user's preferred tags
              + 0.1 * (author is a top-engaged creator)
    quality     min(0.3, 3 * engagement rate)
              + 0.3 * max(0, net vote ratio)
              + 0.2 * author trust / 100
              + 0.1 * (verified or >= 5 verifications)
              + 0.05 * has media + 0.05 * (text length > 100)
    freshness   exp(-age_hours / 24)
    diversity   1 - share of the user's views in the item's dimension
    engagement  sigmoid((interactions / age_days) / 10)
    social      1.0 top-engaged creator, 0.7 similar user, else 0

Total score = weighted sum with the segment's row from SEGMENT_WEIGHTS.

Design notes
------------
- Pure functions with no I/O or instance state.
- Recently viewed candidates are excluded before scoring, not penalised.
- Sorting is stable, so equal scores keep candidate order and identical
  inputs always give identical output.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from services.personalization.profile.segments import UserSegment, classify_segment
from services.personalization.profile.types import UserProfile
from services.personalization.ranking.content import ContentItem, ScoreBreakdown, ScoredContent
from services.personalization.ranking.diversity import apply_diversity_boost
from services.personalization.ranking.weights import (
    DEFAULT_WEIGHTS,
    SEGMENT_WEIGHTS,
    ScoreWeights,
    weights_for_segment,
)
from services.personalization.util import clamp, hours_between, utcnow

logger = logging.getLogger(__name__)

# Freshness decay constant. Placeholder, not fit to session data.
DEFAULT_FRESHNESS_DECAY_HOURS = 24.0

# Sigmoid temperature for interactions-per-day
ENGAGEMENT_VELOCITY_SCALE = 10.0

# Verification count that counts as "verified"
VERIFIED_MIN_COUNT = 5

# Text longer than this earns the completeness bonus
LONG_TEXT_THRESHOLD = 100

SIMILAR_USER_SOCIAL_SCORE = 0.7


@dataclass(frozen=True)
class RankingConfig:
    """Tunable ranking parameters. Defaults reproduce the documented behaviour."""

    freshness_decay_hours: float = DEFAULT_FRESHNESS_DECAY_HOURS
    segment_weights: Mapping[UserSegment, ScoreWeights] = field(
        default_factory=lambda: SEGMENT_WEIGHTS
    )
    default_weights: ScoreWeights = DEFAULT_WEIGHTS

    @classmethod
    def from_settings(cls, settings: Any) -> "RankingConfig":
        return cls(freshness_decay_hours=settings.freshness_decay_hours)

    def weights_for(self, segment: UserSegment | None) -> ScoreWeights:
        return weights_for_segment(segment, self.segment_weights, self.default_weights)


DEFAULT_RANKING_CONFIG = RankingConfig()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def rank_content(
    candidates: Iterable[ContentItem],
    profile: UserProfile,
    recently_viewed_ids: Iterable[str] = (),
    *,
    segment: UserSegment | None = None,
    now_utc: datetime | None = None,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[ScoredContent]:
    """
    Score and sort candidates for ``profile``, best first.

    Args:
        candidates:          Feed candidates. Not mutated.
        profile:             Most recent completed profile snapshot.
        recently_viewed_ids: Candidate ids to drop before scoring.
        segment:             Pre-computed segment; classified from
                             ``profile`` when omitted.
        now_utc:             Override current time (for testing).
        config:              Ranking parameters.

    Returns:
        ScoredContent list sorted by score descending.
    """
    now = now_utc or utcnow()
    seg = segment if segment is not None else classify_segment(profile)
    weights = config.weights_for(seg)
    viewed = set(recently_viewed_ids)

    scored: list[ScoredContent] = []
    skipped = 0
    for item in candidates:
        if item.id in viewed:
            skipped += 1
            continue
        breakdown = score_breakdown(item, profile, now, config)
        scored.append(
            ScoredContent(item=item, score=weighted_score(breakdown, weights), breakdown=breakdown)
        )

    scored.sort(key=lambda s: s.score, reverse=True)

    logger.debug(
        "ranked %d candidates for user=%s segment=%s (skipped %d recently viewed)",
        len(scored),
        profile.user_id,
        seg.value,
        skipped,
    )
    return scored


def rank_feed(
    candidates: Iterable[ContentItem],
    profile: UserProfile,
    recently_viewed_ids: Iterable[str] = (),
    *,
    segment: UserSegment | None = None,
    now_utc: datetime | None = None,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> list[ScoredContent]:
    """Final feed order: rank_content followed by the diversity re-rank."""
    ranked = rank_content(
        candidates,
        profile,
        recently_viewed_ids,
        segment=segment,
        now_utc=now_utc,
        config=config,
    )
    return apply_diversity_boost(ranked, profile.personalization_scores.exploration_score)


def score_breakdown(
    item: ContentItem,
    profile: UserProfile,
    now_utc: datetime,
    config: RankingConfig = DEFAULT_RANKING_CONFIG,
) -> ScoreBreakdown:
    """Compute the six independent sub-scores for one candidate."""
    return ScoreBreakdown(
        relevance=relevance_score(item, profile),
        quality=quality_score(item),
        freshness=freshness_score(item, now_utc, config.freshness_decay_hours),
        diversity=diversity_score(item, profile),
        engagement=engagement_score(item, now_utc),
        social=social_score(item, profile),
    )


def weighted_score(breakdown: ScoreBreakdown, weights: ScoreWeights) -> float:
    return (
        breakdown.relevance * weights.relevance
        + breakdown.quality * weights.quality
        + breakdown.freshness * weights.freshness
        + breakdown.diversity * weights.diversity
        + breakdown.engagement * weights.engagement
        + breakdown.social * weights.social
    )


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

def relevance_score(item: ContentItem, profile: UserProfile) -> float:
    score = 0.0

    if item.life_dimension is not None:
        score += profile.ml_features.content_affinity_scores.get(item.life_dimension, 0.0) * 0.4

    consumption = profile.content_consumption
    total_type_views = consumption.total_type_views
    if total_type_views > 0:
        score += (consumption.content_types.get(item.type.value, 0) / total_type_views) * 0.3

    if item.tags:
        preferred = set(profile.route_preferences.preferred_tags)
        matching = sum(1 for tag in item.tags if tag in preferred)
        score += (matching / len(item.tags)) * 0.2

    if item.author_id in profile.engagement.top_engaged_creators:
        score += 0.1

    return clamp(score)


def quality_score(item: ContentItem) -> float:
    score = 0.0

    interactions = item.upvotes + item.comments + item.shares
    engagement_rate = interactions / item.views if item.views > 0 else 0.0
    score += min(0.3, engagement_rate * 3)

    total_votes = item.upvotes + item.downvotes
    vote_ratio = (item.upvotes - item.downvotes) / total_votes if total_votes > 0 else 0.0
    score += max(0.0, vote_ratio) * 0.3

    score += clamp(item.author_trust_score / 100) * 0.2

    if item.is_verified or (item.verification_count or 0) >= VERIFIED_MIN_COUNT:
        score += 0.1

    if item.has_media:
        score += 0.05
    if item.text_length > LONG_TEXT_THRESHOLD:
        score += 0.05

    return clamp(score)


def freshness_score(
    item: ContentItem,
    now_utc: datetime,
    decay_hours: float = DEFAULT_FRESHNESS_DECAY_HOURS,
) -> float:
    """exp(-age/decay): 1.0 at age 0, ~0.368 after one decay period."""
    age_hours = hours_between(item.created_at, now_utc)
    return clamp(math.exp(-age_hours / max(decay_hours, 1e-9)))


def diversity_score(item: ContentItem, profile: UserProfile) -> float:
    """Reward dimensions the user has seen little of."""
    consumption = profile.content_consumption
    total_views = consumption.total_dimension_views
    if total_views == 0:
        return 1.0
    dimension_views = (
        consumption.life_dimensions.get(item.life_dimension, 0) if item.life_dimension else 0
    )
    return clamp(1 - dimension_views / total_views)


def engagement_score(item: ContentItem, now_utc: datetime) -> float:
    """Sigmoid of interactions per day since creation."""
    interactions = item.upvotes + item.comments + item.shares
    age_days = hours_between(item.created_at, now_utc) / 24
    velocity = interactions / age_days if age_days > 0 else float(interactions)
    return clamp(1 / (1 + math.exp(-velocity / ENGAGEMENT_VELOCITY_SCALE)))


def social_score(item: ContentItem, profile: UserProfile) -> float:
    if item.author_id in profile.engagement.top_engaged_creators:
        return 1.0
    if item.author_id in profile.ml_features.similar_users:
        return SIMILAR_USER_SOCIAL_SCORE
    return 0.0


