"""
Tests for ranking/weights.py.

Covers:
  - Every segment has a row
  - Every row sums to 1.0
  - Creator segments share one row; new users get no social weight
  - Unknown / missing segment falls back to the default row
"""

from __future__ import annotations

import pytest

from services.personalization.profile.segments import UserSegment
from services.personalization.ranking.weights import (
    DEFAULT_WEIGHTS,
    SEGMENT_WEIGHTS,
    weights_for_segment,
)


class TestWeightTable:
    def test_every_segment_has_a_row(self):
        assert set(SEGMENT_WEIGHTS) == set(UserSegment)

    @pytest.mark.parametrize("segment", list(UserSegment))
    def test_rows_sum_to_one(self, segment):
        assert SEGMENT_WEIGHTS[segment].total() == pytest.approx(1.0)

    def test_default_sums_to_one(self):
        assert DEFAULT_WEIGHTS.total() == pytest.approx(1.0)

    def test_creator_rows_shared(self):
        assert SEGMENT_WEIGHTS[UserSegment.CASUAL_CREATOR] == SEGMENT_WEIGHTS[UserSegment.ACTIVE_CREATOR]

    def test_new_users_have_no_social_weight(self):
        assert SEGMENT_WEIGHTS[UserSegment.NEW_USER].social == 0.0

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            SEGMENT_WEIGHTS[UserSegment.NEW_USER] = DEFAULT_WEIGHTS  # type: ignore[index]


class TestWeightsForSegment:
    def test_lookup(self):
        assert weights_for_segment(UserSegment.POWER_USER) == SEGMENT_WEIGHTS[UserSegment.POWER_USER]

    def test_none_falls_back(self):
        assert weights_for_segment(None) == DEFAULT_WEIGHTS

    def test_missing_row_falls_back(self):
        assert weights_for_segment(UserSegment.POWER_USER, table={}) == DEFAULT_WEIGHTS

    def test_custom_default(self):
        custom = SEGMENT_WEIGHTS[UserSegment.NEW_USER]
        assert weights_for_segment(None, default=custom) is custom
        assert weights_for_segment(UserSegment.POWER_USER, table={}, default=custom) is custom
