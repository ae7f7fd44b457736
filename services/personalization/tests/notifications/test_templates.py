"""
Tests for notifications/templates.py.

Covers:
  - Constructor titles, bodies, priorities and time-stamped ids
  - Invalid engagement types / social actions rejected
  - personalize_template: userName, segment greeting, stats placeholders,
    unknown placeholders left alone, original template untouched
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from services.personalization.notifications.templates import (
    create_achievement_notification,
    create_content_notification,
    create_credit_notification,
    create_engagement_notification,
    create_safety_notification,
    create_social_notification,
    personalize_template,
)
from services.personalization.notifications.types import (
    NotificationPriority,
    NotificationType,
)
from services.personalization.profile.segments import UserSegment
from services.personalization.tests.helpers.factories import NOW, make_template

STAMP = int(NOW.timestamp() * 1000)


class TestConstructors:
    def test_engagement(self):
        n = create_engagement_notification("like", "Ana", "post", now_utc=NOW)
        assert n.id == f"engagement_like_{STAMP}"
        assert n.type is NotificationType.ENGAGEMENT
        assert n.body == "Ana liked your post"
        assert n.priority is NotificationPriority.MEDIUM

    def test_engagement_rejects_unknown_type(self):
        with pytest.raises(ValueError, match="Invalid engagement type"):
            create_engagement_notification("poke", "Ana", "post", now_utc=NOW)

    def test_content_with_dimension(self):
        n = create_content_notification("route", "Bo", "travel", now_utc=NOW)
        assert n.body == "Bo shared a new route in travel"
        assert n.priority is NotificationPriority.LOW

    def test_content_without_dimension(self):
        assert create_content_notification("poll", "Bo", now_utc=NOW).body == "Bo shared a new poll"

    def test_achievement_reward(self):
        n = create_achievement_notification("First Post", "10 credits", now_utc=NOW)
        assert n.body == "You earned: First Post. Reward: 10 credits"
        assert n.id == f"achievement_{STAMP}"

    def test_safety_urgency(self):
        urgent = create_safety_notification("Road closed", is_urgent=True, now_utc=NOW)
        routine = create_safety_notification("New lighting installed", now_utc=NOW)
        assert urgent.priority is NotificationPriority.URGENT
        assert urgent.is_urgent
        assert "Safety Alert" in urgent.title
        assert routine.priority is NotificationPriority.HIGH
        assert routine.title == "Safety Update"

    def test_credit(self):
        n = create_credit_notification(25.0, "referral", now_utc=NOW)
        assert n.body == "You earned 25 credits from referral"
        assert n.type is NotificationType.CREDIT

    def test_social_message_is_high_priority(self):
        message = create_social_notification("Cy", "message", now_utc=NOW)
        follow = create_social_notification("Cy", "follow", now_utc=NOW)
        assert message.priority is NotificationPriority.HIGH
        assert follow.priority is NotificationPriority.MEDIUM
        assert follow.body == "Cy started following you"

    def test_social_rejects_unknown_action(self):
        with pytest.raises(ValueError, match="Invalid social action"):
            create_social_notification("Cy", "wave", now_utc=NOW)

    def test_ids_differ_over_time(self):
        first = create_credit_notification(1, "x", now_utc=NOW)
        second = create_credit_notification(1, "x", now_utc=NOW + timedelta(milliseconds=1))
        assert first.id != second.id


class TestPersonalizeTemplate:
    @pytest.mark.parametrize("segment, greeting", [
        (UserSegment.NEW_USER, "Welcome to Aurora!"),
        (UserSegment.POWER_USER, "Hey superstar!"),
        (UserSegment.CASUAL_CONSUMER, "Hi there!"),
    ])
    def test_greeting_by_segment(self, segment, greeting):
        template = make_template(body="{greeting} Check this out.")
        assert personalize_template(template, segment).body == f"{greeting} Check this out."

    def test_user_name_in_title_and_body(self):
        template = make_template(title="{userName}, new post", body="Hey {userName}")
        result = personalize_template(template, UserSegment.CASUAL_CONSUMER, {"userName": "Dee"})
        assert result.title == "Dee, new post"
        assert result.body == "Hey Dee"

    def test_stats_placeholders(self):
        template = make_template(body="You have {streak} day streak and {credits} credits")
        result = personalize_template(
            template, UserSegment.CASUAL_CONSUMER, {"stats": {"streak": 7, "credits": 120}}
        )
        assert result.body == "You have 7 day streak and 120 credits"

    def test_unknown_placeholders_left_alone(self):
        template = make_template(body="Hello {userName}, {mystery}")
        result = personalize_template(template, UserSegment.CASUAL_CONSUMER)
        assert result.body == "Hello {userName}, {mystery}"

    def test_original_untouched(self):
        template = make_template(body="{greeting}")
        result = personalize_template(template, UserSegment.NEW_USER)
        assert template.body == "{greeting}"
        assert result.id == template.id
        assert result.priority is template.priority
