"""
Feed candidate types: ContentItem in, ScoredContent / RankedItem out.

Candidates are supplied fresh per ranking call and never mutated by the
engine. Scored outputs are ephemeral; persisting them is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from services.personalization.profile.types import LifeDimension
from services.personalization.util import parse_timestamp, utcnow


class ContentType(str, Enum):
    POST = "post"
    ROUTE = "route"
    OPPORTUNITY = "opportunity"
    POLL = "poll"
    REEL = "reel"
    AI_CHAT = "ai_chat"


@dataclass
class ContentItem:
    id: str
    type: ContentType
    author_id: str
    created_at: datetime
    life_dimension: LifeDimension | None = None
    tags: list[str] = field(default_factory=list)

    # Engagement counters
    upvotes: int = 0
    downvotes: int = 0
    comments: int = 0
    shares: int = 0
    views: int = 0

    # Quality signals
    author_trust_score: float = 0.0
    """External reputation, 0-100."""
    verification_count: int | None = None
    is_verified: bool | None = None

    # Content shape
    has_media: bool = False
    text_length: int = 0
    safety_rating: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "authorId": self.author_id,
            "lifeDimension": self.life_dimension.value if self.life_dimension else None,
            "tags": list(self.tags),
            "createdAt": self.created_at.isoformat(),
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "comments": self.comments,
            "shares": self.shares,
            "views": self.views,
            "authorTrustScore": self.author_trust_score,
            "verificationCount": self.verification_count,
            "isVerified": self.is_verified,
            "hasMedia": self.has_media,
            "textLength": self.text_length,
            "safetyRating": self.safety_rating,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ContentItem":
        return cls(
            id=str(d["id"]),
            type=ContentType(d["type"]),
            author_id=str(d["authorId"]),
            created_at=parse_timestamp(d.get("createdAt")) or utcnow(),
            life_dimension=LifeDimension.parse(d.get("lifeDimension")),
            tags=[str(t) for t in d.get("tags") or []],
            upvotes=int(d.get("upvotes") or 0),
            downvotes=int(d.get("downvotes") or 0),
            comments=int(d.get("comments") or 0),
            shares=int(d.get("shares") or 0),
            views=int(d.get("views") or 0),
            author_trust_score=float(d.get("authorTrustScore") or 0.0),
            verification_count=d.get("verificationCount"),
            is_verified=d.get("isVerified"),
            has_media=bool(d.get("hasMedia", False)),
            text_length=int(d.get("textLength") or 0),
            safety_rating=d.get("safetyRating"),
        )


@dataclass(frozen=True)
class ScoreBreakdown:
    """The six ranking sub-scores, each in [0, 1]."""

    relevance: float
    quality: float
    freshness: float
    diversity: float
    engagement: float
    social: float

    def to_dict(self) -> dict[str, float]:
        return {
            "relevance": self.relevance,
            "quality": self.quality,
            "freshness": self.freshness,
            "diversity": self.diversity,
            "engagement": self.engagement,
            "social": self.social,
        }


@dataclass
class ScoredContent:
    item: ContentItem
    score: float
    breakdown: ScoreBreakdown

    def to_dict(self) -> dict[str, Any]:
        out = self.item.to_dict()
        out["score"] = self.score
        out["scoreBreakdown"] = self.breakdown.to_dict()
        return out


@dataclass
class RankedItem:
    """A candidate with a single recommendation score (routes, opportunities, trending)."""

    item: ContentItem
    score: float

    def to_dict(self) -> dict[str, Any]:
        out = self.item.to_dict()
        out["score"] = self.score
        return out
