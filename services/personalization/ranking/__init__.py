"""
services.personalization.ranking — feed ranking.

Modules
-------
content          ContentItem / ScoredContent / RankedItem types
weights          Segment -> ScoreWeights lookup table
scorer           Six-factor ContentRanker (rank_content, rank_feed)
diversity        Single-pass DiversityReranker
recommendations  Trending, route and opportunity recommenders
"""

from __future__ import annotations

from services.personalization.ranking.content import (
    ContentItem,
    ContentType,
    RankedItem,
    ScoreBreakdown,
    ScoredContent,
)
from services.personalization.ranking.diversity import apply_diversity_boost
from services.personalization.ranking.scorer import RankingConfig, rank_content, rank_feed
from services.personalization.ranking.weights import SEGMENT_WEIGHTS, ScoreWeights

__all__ = [
    "apply_diversity_boost",
    "ContentItem",
    "ContentType",
    "rank_content",
    "rank_feed",
    "RankedItem",
    "RankingConfig",
    "ScoreBreakdown",
    "ScoredContent",
    "ScoreWeights",
    "SEGMENT_WEIGHTS",
]
