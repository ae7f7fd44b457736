"""
DiversityReranker — single-pass boost/penalty over a ranked feed.

Walks the ranked list left to right, tracking which life dimensions and
authors have already appeared:

  - first item of a dimension:   score *= 1 + exploration_score * 0.2
  - author seen earlier in list: score *= 0.9

then re-sorts by the unclamped adjusted score; reported scores are clamped to
[0, 1]. This is one deterministic pass, not an optimisation search: once an
item claims a dimension, later items of that dimension are never revisited.

The input list and its items are not mutated.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from services.personalization.profile.types import LifeDimension
from services.personalization.ranking.content import ScoredContent
from services.personalization.util import clamp

logger = logging.getLogger(__name__)

# Max relative boost for a first-seen dimension (scaled by exploration score)
NEW_DIMENSION_BOOST = 0.2

# Multiplier for every repeat appearance of an author
REPEAT_AUTHOR_PENALTY = 0.9


def apply_diversity_boost(
    scored: list[ScoredContent],
    exploration_score: float,
    seen_dimensions: Iterable[LifeDimension] | None = None,
    seen_authors: Iterable[str] | None = None,
) -> list[ScoredContent]:
    """
    Re-rank ``scored`` (already sorted best first) for dimension/author variety.

    Args:
        scored:            Output of rank_content().
        exploration_score: The user's exploration score in [0, 1].
        seen_dimensions:   Dimensions to treat as already shown. Not mutated.
        seen_authors:      Authors to treat as already shown. Not mutated.

    Returns:
        A new list of ScoredContent with adjusted scores, sorted descending.
        Score breakdowns are carried over unchanged.
    """
    dims: set[LifeDimension] = set(seen_dimensions or ())
    authors: set[str] = set(seen_authors or ())
    boost = 1 + clamp(exploration_score) * NEW_DIMENSION_BOOST

    adjusted: list[tuple[float, ScoredContent]] = []
    boosted = penalised = 0

    for entry in scored:
        score = entry.score
        dimension = entry.item.life_dimension

        if dimension is not None and dimension not in dims:
            score *= boost
            dims.add(dimension)
            boosted += 1

        if entry.item.author_id in authors:
            score *= REPEAT_AUTHOR_PENALTY
            penalised += 1
        else:
            authors.add(entry.item.author_id)

        adjusted.append((score, replace(entry, score=clamp(score))))

    # Sort key is the unclamped score; only the reported score is clamped
    adjusted.sort(key=lambda pair: pair[0], reverse=True)
    result = [entry for _, entry in adjusted]

    logger.debug(
        "diversity pass: %d items, %d dimension boosts, %d repeat-author penalties",
        len(result),
        boosted,
        penalised,
    )
    return result
