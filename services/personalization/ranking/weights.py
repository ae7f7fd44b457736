"""
Segment-conditioned weight tables for the six ranking sub-scores.

Each row sums to 1.0. The table is built once at import time and looked up
by segment; tune a row here rather than branching in the scorer.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from services.personalization.profile.segments import UserSegment


@dataclass(frozen=True)
class ScoreWeights:
    relevance: float
    quality: float
    freshness: float
    diversity: float
    engagement: float
    social: float

    def total(self) -> float:
        return (
            self.relevance
            + self.quality
            + self.freshness
            + self.diversity
            + self.engagement
            + self.social
        )


# Fallback when a segment has no row of its own
DEFAULT_WEIGHTS = ScoreWeights(
    relevance=0.30, quality=0.25, freshness=0.15, diversity=0.10, engagement=0.15, social=0.05,
)

# Creators get diverse, high-quality content for inspiration
_CREATOR_WEIGHTS = ScoreWeights(
    relevance=0.25, quality=0.30, freshness=0.15, diversity=0.20, engagement=0.10, social=0.00,
)

SEGMENT_WEIGHTS: Mapping[UserSegment, ScoreWeights] = MappingProxyType({
    # New users: quality and freshness first, no social signal yet
    UserSegment.NEW_USER: ScoreWeights(
        relevance=0.20, quality=0.35, freshness=0.25, diversity=0.15, engagement=0.05, social=0.00,
    ),
    UserSegment.CASUAL_CONSUMER: DEFAULT_WEIGHTS,
    UserSegment.ACTIVE_CONSUMER: ScoreWeights(
        relevance=0.35, quality=0.20, freshness=0.10, diversity=0.10, engagement=0.20, social=0.05,
    ),
    UserSegment.CASUAL_CREATOR: _CREATOR_WEIGHTS,
    UserSegment.ACTIVE_CREATOR: _CREATOR_WEIGHTS,
    UserSegment.POWER_USER: ScoreWeights(
        relevance=0.30, quality=0.25, freshness=0.15, diversity=0.10, engagement=0.10, social=0.10,
    ),
    UserSegment.COMMUNITY_LEADER: ScoreWeights(
        relevance=0.25, quality=0.20, freshness=0.10, diversity=0.10, engagement=0.20, social=0.15,
    ),
    UserSegment.SAFETY_ADVOCATE: ScoreWeights(
        relevance=0.40, quality=0.30, freshness=0.10, diversity=0.05, engagement=0.10, social=0.05,
    ),
})


def weights_for_segment(
    segment: UserSegment | None,
    table: Mapping[UserSegment, ScoreWeights] = SEGMENT_WEIGHTS,
    default: ScoreWeights = DEFAULT_WEIGHTS,
) -> ScoreWeights:
    """Row for ``segment``, or ``default`` when absent."""
    if segment is None:
        return default
    return table.get(segment, default)
