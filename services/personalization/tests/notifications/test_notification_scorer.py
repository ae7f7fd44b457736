"""
Tests for notifications/scorer.py — NotificationScorer.

Covers:
  - Relevance table per type x segment, community-score override for social,
    urgent x1.3 capped at 1, low x0.7
  - Timing: peak vs off-peak, quiet-hours and recent-send multipliers, urgent floor
  - Frequency: CTR, default 0.5, utilisation damping above 70%, urgent floor
  - Total = 0.5 relevance + 0.3 timing + 0.2 frequency
  - Send decision: urgent always; cap and min interval block; 0.5 / 0.6 thresholds
  - Optimal send time: next peak hour, rollover to tomorrow, timezone-aware, None without peaks
  - Preferences filter candidates and replace quiet hours
  - Output sorted by total descending
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.personalization.notifications.preferences import (
    FrequencyMode,
    NotificationPreferences,
    QuietHours,
)
from services.personalization.notifications.scorer import (
    NotificationConfig,
    frequency_score,
    relevance_score,
    resolve_timezone,
    score_notifications,
)
from services.personalization.notifications.types import (
    NotificationPriority,
    NotificationType,
)
from services.personalization.profile.segments import UserSegment
from services.personalization.tests.helpers.factories import (
    established_views,
    make_context,
    make_profile,
    make_template,
)


def at(hour: int, minute: int = 0) -> datetime:
    """2024-06-12 at the given UTC time."""
    return datetime(2024, 6, 12, hour, minute, tzinfo=timezone.utc)


PEAK = at(12)      # default peak hours are 9, 12, 18, 21
OFF_PEAK = at(10)
QUIET = at(23, 30)


def score_one(template, context=None, *, now=PEAK, segment=UserSegment.CASUAL_CONSUMER, **kwargs):
    [result] = score_notifications(
        [template], context or make_context(), segment=segment, now_utc=now, **kwargs
    )
    return result


# ---------------------------------------------------------------------------
# Relevance
# ---------------------------------------------------------------------------

class TestRelevance:
    @pytest.mark.parametrize("ntype, segment, expected", [
        (NotificationType.ENGAGEMENT, UserSegment.ACTIVE_CONSUMER, 0.8),
        (NotificationType.ENGAGEMENT, UserSegment.POWER_USER, 0.8),
        (NotificationType.ENGAGEMENT, UserSegment.CASUAL_CONSUMER, 0.4),
        (NotificationType.CONTENT, UserSegment.NEW_USER, 0.7),
        (NotificationType.SOCIAL, UserSegment.COMMUNITY_LEADER, 0.9),
        (NotificationType.SOCIAL, UserSegment.CASUAL_CONSUMER, 0.5),
        (NotificationType.ACHIEVEMENT, UserSegment.ACTIVE_CREATOR, 0.8),
        (NotificationType.ACHIEVEMENT, UserSegment.CASUAL_CREATOR, 0.6),
        (NotificationType.SAFETY, UserSegment.SAFETY_ADVOCATE, 1.0),
        (NotificationType.SAFETY, UserSegment.POWER_USER, 0.7),
        (NotificationType.CREDIT, UserSegment.CASUAL_CONSUMER, 0.8),
    ])
    def test_table(self, ntype, segment, expected):
        score = relevance_score(make_template(type=ntype), make_context(), segment)
        assert score == pytest.approx(expected)

    def test_social_boost_from_community_score(self):
        context = make_context(make_profile(community_score=0.7))
        score = relevance_score(
            make_template(type=NotificationType.SOCIAL), context, UserSegment.CASUAL_CONSUMER
        )
        assert score == pytest.approx(0.9)

    def test_urgent_multiplier_capped(self):
        template = make_template(type=NotificationType.SAFETY, priority=NotificationPriority.URGENT)
        assert relevance_score(template, make_context(), UserSegment.SAFETY_ADVOCATE) == 1.0
        assert relevance_score(template, make_context(), UserSegment.POWER_USER) == pytest.approx(0.91)

    def test_low_priority_damped(self):
        template = make_template(priority=NotificationPriority.LOW)
        assert relevance_score(template, make_context(), UserSegment.CASUAL_CONSUMER) == pytest.approx(0.49)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

class TestTiming:
    def test_peak_hour(self):
        assert score_one(make_template(), now=PEAK).timing_score == pytest.approx(0.8)

    def test_off_peak(self):
        assert score_one(make_template(), now=OFF_PEAK).timing_score == pytest.approx(0.4)

    def test_quiet_hours(self):
        assert score_one(make_template(), now=QUIET).timing_score == pytest.approx(0.12)

    def test_quiet_window_wraps_midnight(self):
        assert score_one(make_template(), now=at(6)).timing_score == pytest.approx(0.12)
        assert score_one(make_template(), now=at(7)).timing_score == pytest.approx(0.4)

    def test_recent_send_penalty(self):
        context = make_context(last_sent=PEAK - timedelta(hours=1))
        assert score_one(make_template(), context).timing_score == pytest.approx(0.16)

    def test_urgent_floor(self):
        template = make_template(priority=NotificationPriority.URGENT)
        context = make_context(last_sent=QUIET - timedelta(minutes=5))
        assert score_one(template, context, now=QUIET).timing_score == pytest.approx(0.9)

    def test_profile_peak_hours_used(self):
        context = make_context(make_profile(peak_hours=[10]))
        assert score_one(make_template(), context, now=OFF_PEAK).timing_score == pytest.approx(0.8)


# ---------------------------------------------------------------------------
# Frequency
# ---------------------------------------------------------------------------

class TestFrequency:
    def test_no_history_is_half(self):
        assert frequency_score(make_template(), make_context()) == pytest.approx(0.5)

    def test_click_through_rate(self):
        context = make_context(sent_today=4, clicked_today=3)
        assert frequency_score(make_template(), context) == pytest.approx(0.75)

    def test_utilisation_damping(self):
        context = make_context(sent_today=8, clicked_today=4)
        assert frequency_score(make_template(), context) == pytest.approx(0.5 * (1 - 0.8))

    def test_at_threshold_not_damped(self):
        context = make_context(sent_today=7, clicked_today=7)
        assert frequency_score(make_template(), context) == pytest.approx(1.0)

    def test_at_cap_is_zero(self):
        context = make_context(sent_today=10, clicked_today=10)
        assert frequency_score(make_template(), context) == 0.0

    def test_urgent_floor(self):
        template = make_template(priority=NotificationPriority.URGENT)
        context = make_context(sent_today=10, clicked_today=0)
        assert frequency_score(template, context) == pytest.approx(0.9)


# ---------------------------------------------------------------------------
# Total & send decision
# ---------------------------------------------------------------------------

class TestTotalAndDecision:
    def test_total_weights(self):
        result = score_one(make_template())
        expected = 0.5 * result.relevance_score + 0.3 * result.timing_score + 0.2 * result.frequency_score
        assert result.total_score == pytest.approx(expected)

    def test_medium_content_at_peak_sends(self):
        result = score_one(make_template(), now=PEAK)
        assert result.total_score == pytest.approx(0.69)
        assert result.should_send is True

    def test_medium_content_off_peak_held(self):
        result = score_one(make_template(), now=OFF_PEAK)
        assert result.total_score == pytest.approx(0.57)
        assert result.should_send is False

    def test_high_priority_lower_threshold(self):
        result = score_one(make_template(priority=NotificationPriority.HIGH), now=OFF_PEAK)
        assert result.total_score == pytest.approx(0.57)
        assert result.should_send is True

    def test_daily_cap_blocks(self):
        context = make_context(sent_today=10, clicked_today=10)
        assert score_one(make_template(priority=NotificationPriority.HIGH), context).should_send is False

    def test_min_interval_blocks(self):
        context = make_context(last_sent=PEAK - timedelta(minutes=90))
        assert score_one(make_template(priority=NotificationPriority.HIGH), context).should_send is False

    def test_interval_elapsed_allows(self):
        context = make_context(last_sent=PEAK - timedelta(hours=3))
        assert score_one(make_template(), context).should_send is True

    def test_urgent_always_sends(self):
        template = make_template(type=NotificationType.SAFETY, priority=NotificationPriority.URGENT)
        context = make_context(sent_today=25, last_sent=QUIET - timedelta(minutes=1))
        assert score_one(template, context, now=QUIET).should_send is True

    def test_config_overrides(self):
        config = NotificationConfig(daily_cap=2)
        context = make_context(sent_today=2, clicked_today=2)
        assert score_one(make_template(), context, config=config).should_send is False

    def test_last_active_does_not_change_scores(self):
        context = make_context()
        context.recent_activity.last_active = PEAK - timedelta(minutes=5)
        active = score_one(make_template(), context)
        baseline = score_one(make_template())
        assert active.to_dict() == baseline.to_dict()


# ---------------------------------------------------------------------------
# Optimal send time
# ---------------------------------------------------------------------------

class TestOptimalSendTime:
    def test_next_peak_today(self):
        assert score_one(make_template(), now=OFF_PEAK).optimal_send_time == at(12)

    def test_current_peak_hour_is_skipped(self):
        assert score_one(make_template(), now=at(12, 30)).optimal_send_time == at(18)

    def test_rolls_over_to_tomorrow(self):
        result = score_one(make_template(), now=at(22))
        assert result.optimal_send_time == at(9) + timedelta(days=1)

    def test_urgent_is_now(self):
        template = make_template(priority=NotificationPriority.URGENT)
        assert score_one(template, now=OFF_PEAK).optimal_send_time == OFF_PEAK

    def test_no_peak_hours(self):
        context = make_context(make_profile(peak_hours=[]))
        assert score_one(make_template(), context).optimal_send_time is None

    def test_timezone_aware(self):
        # 10:00 UTC is 06:00 in New York (EDT, UTC-4); next peak is 09:00 local
        context = make_context(timezone_name="America/New_York")
        result = score_one(make_template(), context, now=OFF_PEAK)
        assert result.optimal_send_time == at(13)
        # 06:00 local falls inside the 23:00-07:00 quiet window
        assert result.timing_score == pytest.approx(0.12)

    def test_invalid_timezone_falls_back_to_utc(self):
        context = make_context(timezone_name="Mars/Olympus_Mons")
        assert score_one(make_template(), context, now=OFF_PEAK).optimal_send_time == at(12)

    def test_resolve_timezone_default(self):
        assert resolve_timezone(None).utcoffset(OFF_PEAK) == timedelta(0)


# ---------------------------------------------------------------------------
# Preferences & ordering
# ---------------------------------------------------------------------------

class TestPreferences:
    def test_disabled_type_dropped(self):
        prefs = NotificationPreferences()
        prefs.types[NotificationType.CREDIT] = False
        candidates = [make_template("a"), make_template("b", type=NotificationType.CREDIT)]
        result = score_notifications(
            candidates, make_context(), segment=UserSegment.CASUAL_CONSUMER,
            now_utc=PEAK, preferences=prefs,
        )
        assert [r.template.id for r in result] == ["a"]

    def test_urgent_bypasses_preferences(self):
        prefs = NotificationPreferences(enabled=False, frequency=FrequencyMode.URGENT_ONLY)
        candidates = [
            make_template("medium"),
            make_template("urgent", type=NotificationType.SAFETY, priority=NotificationPriority.URGENT),
        ]
        result = score_notifications(candidates, make_context(), now_utc=PEAK, preferences=prefs)
        assert [r.template.id for r in result] == ["urgent"]

    def test_preference_quiet_hours_replace_config(self):
        prefs = NotificationPreferences(quiet_hours=QuietHours(start=9, end=11))
        result = score_one(make_template(), now=OFF_PEAK, preferences=prefs)
        assert result.timing_score == pytest.approx(0.12)

        # Config quiet window (23-7) no longer applies
        result = score_one(make_template(), now=QUIET, preferences=prefs)
        assert result.timing_score == pytest.approx(0.4)


class TestOrdering:
    def test_sorted_by_total_descending(self):
        candidates = [
            make_template("low", priority=NotificationPriority.LOW),
            make_template("credit", type=NotificationType.CREDIT),
            make_template("safety", type=NotificationType.SAFETY, priority=NotificationPriority.URGENT),
        ]
        result = score_notifications(
            candidates, make_context(), segment=UserSegment.CASUAL_CONSUMER, now_utc=PEAK
        )
        assert [r.template.id for r in result] == ["safety", "credit", "low"]
        totals = [r.total_score for r in result]
        assert totals == sorted(totals, reverse=True)

    def test_segment_classified_when_omitted(self):
        context = make_context(make_profile(life_dimensions=established_views(), engagement_score=0.6, likes_given=30))
        [result] = score_notifications(
            [make_template(type=NotificationType.ENGAGEMENT)], context, now_utc=PEAK
        )
        assert result.relevance_score == pytest.approx(0.8)

    def test_empty_candidates(self):
        assert score_notifications([], make_context(), now_utc=PEAK) == []

    def test_to_dict_shape(self):
        payload = score_one(make_template()).to_dict()
        assert payload["shouldSend"] is True
        assert payload["optimalSendTime"] == at(18).isoformat()
        assert {"relevanceScore", "timingScore", "frequencyScore", "totalScore"} <= set(payload)
