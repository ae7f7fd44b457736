"""
Tests for ranking/diversity.py — single-pass DiversityReranker.

Covers:
  - First item of each dimension boosted by 1 + exploration * 0.2
  - Repeat authors penalised by 0.9; first appearance is not penalised
  - Exploration 0 disables the dimension boost but not the author penalty
  - Boosted scores clamp at 1.0 but order follows the unclamped score
  - Pre-seeded dimensions/authors honoured and not mutated
  - Input list and entries not mutated; breakdowns carried over
  - Re-sorted descending after adjustment
"""

from __future__ import annotations

import pytest

from services.personalization.profile.types import LifeDimension
from services.personalization.ranking.content import ScoreBreakdown, ScoredContent
from services.personalization.ranking.diversity import apply_diversity_boost
from services.personalization.tests.helpers.factories import make_item

_BREAKDOWN = ScoreBreakdown(
    relevance=0.1, quality=0.2, freshness=0.3, diversity=0.4, engagement=0.5, social=0.0,
)


def scored(cid: str, score: float, author: str, dimension: LifeDimension | None) -> ScoredContent:
    return ScoredContent(
        item=make_item(cid, author_id=author, life_dimension=dimension),
        score=score,
        breakdown=_BREAKDOWN,
    )


def ids(entries: list[ScoredContent]) -> list[str]:
    return [e.item.id for e in entries]


class TestDiversityBoost:
    def test_boost_penalty_and_resort(self):
        entries = [
            scored("a", 0.50, "x", LifeDimension.PROFESSIONAL),
            scored("b", 0.45, "x", LifeDimension.PROFESSIONAL),
            scored("c", 0.40, "y", LifeDimension.SOCIAL),
        ]
        result = apply_diversity_boost(entries, exploration_score=1.0)

        assert ids(result) == ["a", "c", "b"]
        by_id = {e.item.id: e.score for e in result}
        assert by_id["a"] == pytest.approx(0.60)
        assert by_id["c"] == pytest.approx(0.48)
        assert by_id["b"] == pytest.approx(0.405)

    def test_zero_exploration_only_penalises_authors(self):
        entries = [
            scored("a", 0.5, "x", LifeDimension.TRAVEL),
            scored("b", 0.4, "x", LifeDimension.DAILY),
        ]
        result = apply_diversity_boost(entries, exploration_score=0.0)
        assert [e.score for e in result] == pytest.approx([0.5, 0.36])

    def test_first_appearance_of_author_not_penalised(self):
        entries = [scored("a", 0.5, "x", None), scored("b", 0.4, "y", None)]
        result = apply_diversity_boost(entries, exploration_score=0.5)
        assert [e.score for e in result] == pytest.approx([0.5, 0.4])

    def test_every_repeat_is_penalised(self):
        entries = [scored(c, 0.5, "x", None) for c in ("a", "b", "c")]
        result = apply_diversity_boost(entries, exploration_score=0.0)
        assert [e.score for e in result] == pytest.approx([0.5, 0.45, 0.45])

    def test_untagged_items_never_boosted(self):
        result = apply_diversity_boost([scored("a", 0.5, "x", None)], exploration_score=1.0)
        assert result[0].score == pytest.approx(0.5)

    def test_boost_clamped_to_one(self):
        result = apply_diversity_boost(
            [scored("a", 0.95, "x", LifeDimension.FINANCIAL)], exploration_score=1.0
        )
        assert result[0].score == 1.0

    def test_saturated_scores_still_ordered_by_penalty(self):
        result = apply_diversity_boost(
            [
                scored("lead", 0.97, "x", LifeDimension.SOCIAL),
                scored("repeat", 0.95, "x", LifeDimension.TRAVEL),
                scored("fresh", 0.94, "y", LifeDimension.DAILY),
            ],
            exploration_score=1.0,
        )
        # lead 1.164, fresh 1.128, repeat 1.026 before clamping
        assert ids(result) == ["lead", "fresh", "repeat"]
        assert [e.score for e in result] == [1.0, 1.0, 1.0]

    def test_seeded_state_respected_and_not_mutated(self):
        seen_dims = {LifeDimension.SOCIAL}
        seen_authors = {"x"}
        result = apply_diversity_boost(
            [scored("a", 0.5, "x", LifeDimension.SOCIAL)],
            exploration_score=1.0,
            seen_dimensions=seen_dims,
            seen_authors=seen_authors,
        )
        assert result[0].score == pytest.approx(0.45)
        assert seen_dims == {LifeDimension.SOCIAL}
        assert seen_authors == {"x"}

    def test_input_not_mutated(self):
        entries = [
            scored("a", 0.5, "x", LifeDimension.TRAVEL),
            scored("b", 0.4, "x", LifeDimension.TRAVEL),
        ]
        apply_diversity_boost(entries, exploration_score=1.0)
        assert [e.score for e in entries] == [0.5, 0.4]
        assert ids(entries) == ["a", "b"]

    def test_breakdown_carried_over(self):
        result = apply_diversity_boost([scored("a", 0.5, "x", LifeDimension.TRAVEL)], 1.0)
        assert result[0].breakdown is _BREAKDOWN

    def test_empty(self):
        assert apply_diversity_boost([], exploration_score=1.0) == []
