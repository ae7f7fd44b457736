"""
NotificationScorer — decides which notifications to send, and when.

For each candidate:

    relevance = type x segment table, x1.3 (capped at 1) for urgent, x0.7 for low
    timing    = 0.8 in a peak hour else 0.4
                x0.3 inside quiet hours
                x0.2 if the last send was under the minimum interval ago
                urgent floor 0.9
    frequency = today's click-through rate (0.5 with no history)
                x(1 - utilisation) once sends/cap exceeds 0.7
                urgent floor 0.9
    total     = 0.5 * relevance + 0.3 * timing + 0.2 * frequency

Send decision: urgent always sends. Otherwise nothing is sent at or over the
daily cap or inside the minimum interval, and the total must reach 0.5 for
high priority or 0.6 for anything else.

Optimal send time: now for urgent; otherwise the next peak hour strictly after
the current hour today, or the first peak hour tomorrow.

All hours are evaluated in the context's timezone.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Any, Iterable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from services.personalization.notifications.preferences import (
    NotificationPreferences,
    filter_by_preferences,
    hour_in_window,
)
from services.personalization.notifications.types import (
    NotificationContext,
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
    ScoredNotification,
)
from services.personalization.profile.segments import UserSegment, classify_segment
from services.personalization.util import clamp, ensure_utc, hours_between, utcnow

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Relevance table
# ---------------------------------------------------------------------------

# type -> (boosted score, segments that get it, default score)
_RELEVANCE_TABLE: dict[NotificationType, tuple[float, frozenset[UserSegment], float]] = {
    NotificationType.ENGAGEMENT: (
        0.8, frozenset({UserSegment.ACTIVE_CONSUMER, UserSegment.POWER_USER}), 0.4,
    ),
    NotificationType.CONTENT: (0.7, frozenset(), 0.7),
    NotificationType.SOCIAL: (0.9, frozenset({UserSegment.COMMUNITY_LEADER}), 0.5),
    NotificationType.ACHIEVEMENT: (
        0.8, frozenset({UserSegment.ACTIVE_CREATOR, UserSegment.POWER_USER}), 0.6,
    ),
    NotificationType.SAFETY: (1.0, frozenset({UserSegment.SAFETY_ADVOCATE}), 0.7),
    NotificationType.CREDIT: (0.8, frozenset(), 0.8),
}

# Social notifications also matter to users with a strong community score
SOCIAL_COMMUNITY_THRESHOLD = 0.6

URGENT_RELEVANCE_MULTIPLIER = 1.3
LOW_RELEVANCE_MULTIPLIER = 0.7

PEAK_HOUR_TIMING = 0.8
OFF_PEAK_TIMING = 0.4

TOTAL_WEIGHTS = (0.5, 0.3, 0.2)  # relevance, timing, frequency


@dataclass(frozen=True)
class NotificationConfig:
    """Throttling and threshold parameters for the notification scorer."""

    daily_cap: int = 10
    min_interval_hours: float = 2.0
    quiet_hours_start: int = 23
    quiet_hours_end: int = 7
    quiet_hours_multiplier: float = 0.3
    recent_send_multiplier: float = 0.2
    utilization_threshold: float = 0.7
    urgent_floor: float = 0.9
    high_priority_threshold: float = 0.5
    default_threshold: float = 0.6
    default_click_through_rate: float = 0.5

    @classmethod
    def from_settings(cls, settings: Any) -> "NotificationConfig":
        return cls(
            daily_cap=settings.notification_daily_cap,
            min_interval_hours=settings.notification_min_interval_hours,
            quiet_hours_start=settings.quiet_hours_start,
            quiet_hours_end=settings.quiet_hours_end,
        )


DEFAULT_NOTIFICATION_CONFIG = NotificationConfig()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def score_notifications(
    candidates: Iterable[NotificationTemplate],
    context: NotificationContext,
    *,
    segment: UserSegment | None = None,
    now_utc: datetime | None = None,
    config: NotificationConfig = DEFAULT_NOTIFICATION_CONFIG,
    preferences: NotificationPreferences | None = None,
) -> list[ScoredNotification]:
    """
    Score candidates for one user, best first.

    Args:
        candidates:  Notification templates. Not mutated.
        context:     Profile, send history and timezone.
        segment:     Pre-computed segment; classified when omitted.
        now_utc:     Override current time (for testing).
        config:      Throttling parameters.
        preferences: Optional user preferences. Disallowed candidates are
                     dropped, and their quiet hours replace the config's.

    Returns:
        ScoredNotification list sorted by total score descending.
    """
    now = ensure_utc(now_utc or utcnow())
    seg = segment if segment is not None else classify_segment(context.profile)
    local_now = now.astimezone(resolve_timezone(context.timezone))
    allowed = filter_by_preferences(candidates, preferences)

    scored: list[ScoredNotification] = []
    for template in allowed:
        relevance = relevance_score(template, context, seg)
        timing = timing_score(template, context, local_now, config, preferences)
        frequency = frequency_score(template, context, config)
        w_rel, w_tim, w_freq = TOTAL_WEIGHTS
        total = relevance * w_rel + timing * w_tim + frequency * w_freq

        scored.append(
            ScoredNotification(
                template=template,
                relevance_score=relevance,
                timing_score=timing,
                frequency_score=frequency,
                total_score=total,
                should_send=should_send(template, context, total, now, config),
                optimal_send_time=optimal_send_time(template, context, local_now),
            )
        )

    scored.sort(key=lambda n: n.total_score, reverse=True)

    logger.debug(
        "scored %d notification(s) for user=%s segment=%s: %d to send",
        len(scored),
        context.user_id,
        seg.value,
        sum(1 for n in scored if n.should_send),
    )
    return scored


# ---------------------------------------------------------------------------
# Sub-scores
# ---------------------------------------------------------------------------

def relevance_score(
    template: NotificationTemplate,
    context: NotificationContext,
    segment: UserSegment,
) -> float:
    boosted, boosted_segments, default = _RELEVANCE_TABLE[template.type]
    score = boosted if segment in boosted_segments else default

    if (
        template.type is NotificationType.SOCIAL
        and context.profile.personalization_scores.community_score > SOCIAL_COMMUNITY_THRESHOLD
    ):
        score = boosted

    if template.priority is NotificationPriority.URGENT:
        score *= URGENT_RELEVANCE_MULTIPLIER
    elif template.priority is NotificationPriority.LOW:
        score *= LOW_RELEVANCE_MULTIPLIER

    return clamp(score)


def timing_score(
    template: NotificationTemplate,
    context: NotificationContext,
    local_now: datetime,
    config: NotificationConfig = DEFAULT_NOTIFICATION_CONFIG,
    preferences: NotificationPreferences | None = None,
) -> float:
    hour = local_now.hour
    peak_hours = context.profile.content_consumption.peak_activity_hours

    score = PEAK_HOUR_TIMING if hour in peak_hours else OFF_PEAK_TIMING

    if _in_quiet_hours(hour, config, preferences):
        score *= config.quiet_hours_multiplier

    if _hours_since_last_send(context, local_now) < config.min_interval_hours:
        score *= config.recent_send_multiplier

    if template.is_urgent:
        score = max(score, config.urgent_floor)

    return clamp(score)


def frequency_score(
    template: NotificationTemplate,
    context: NotificationContext,
    config: NotificationConfig = DEFAULT_NOTIFICATION_CONFIG,
) -> float:
    activity = context.recent_activity
    sent = activity.notifications_sent_today

    ctr = (
        activity.notifications_clicked_today / sent
        if sent > 0
        else config.default_click_through_rate
    )
    score = ctr

    utilization = sent / max(1, config.daily_cap)
    if utilization > config.utilization_threshold:
        score *= 1 - utilization

    if template.is_urgent:
        score = max(score, config.urgent_floor)

    return clamp(score)


def should_send(
    template: NotificationTemplate,
    context: NotificationContext,
    total_score: float,
    now_utc: datetime,
    config: NotificationConfig = DEFAULT_NOTIFICATION_CONFIG,
) -> bool:
    if template.is_urgent:
        return True

    if context.recent_activity.notifications_sent_today >= config.daily_cap:
        return False

    if _hours_since_last_send(context, now_utc) < config.min_interval_hours:
        return False

    threshold = (
        config.high_priority_threshold
        if template.priority is NotificationPriority.HIGH
        else config.default_threshold
    )
    return total_score >= threshold


def optimal_send_time(
    template: NotificationTemplate,
    context: NotificationContext,
    local_now: datetime,
) -> datetime | None:
    """
    Next peak hour after the current one (UTC), or ``now`` for urgent.

    Returns None when the profile has no peak hours to aim for.
    """
    if template.is_urgent:
        return ensure_utc(local_now)

    peak_hours = sorted(set(context.profile.content_consumption.peak_activity_hours))
    if not peak_hours:
        return None

    tz = local_now.tzinfo
    later_today = [h for h in peak_hours if h > local_now.hour]
    if later_today:
        target_day, target_hour = local_now.date(), later_today[0]
    else:
        target_day, target_hour = local_now.date() + timedelta(days=1), peak_hours[0]

    return ensure_utc(datetime.combine(target_day, time(hour=target_hour), tzinfo=tz))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def resolve_timezone(name: str | None) -> tzinfo:
    if not name:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Invalid timezone %r, defaulting to UTC", name)
        return ZoneInfo("UTC")


def _in_quiet_hours(
    hour: int,
    config: NotificationConfig,
    preferences: NotificationPreferences | None,
) -> bool:
    if preferences is not None:
        return preferences.quiet_hours.contains(hour)
    return hour_in_window(hour, config.quiet_hours_start, config.quiet_hours_end)


def _hours_since_last_send(context: NotificationContext, now: datetime) -> float:
    last_sent = context.recent_activity.last_notification_sent
    if last_sent is None:
        return math.inf
    return hours_between(last_sent, now)
