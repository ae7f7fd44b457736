"""
Notification template constructors and text personalization.

Constructors are plain functions returning NotificationTemplate; ids embed the
creation time in epoch milliseconds so repeated events produce distinct ids.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from services.personalization.notifications.types import (
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
)
from services.personalization.profile.segments import UserSegment
from services.personalization.util import utcnow

_ENGAGEMENT_ACTIONS = {
    "like": "liked",
    "comment": "commented on",
    "share": "shared",
    "verify": "verified",
}

_SOCIAL_ACTIONS = {
    "follow": "started following you",
    "message": "sent you a message",
    "mention": "mentioned you",
}

_GREETINGS = {
    UserSegment.NEW_USER: "Welcome to Aurora!",
    UserSegment.POWER_USER: "Hey superstar!",
}
DEFAULT_GREETING = "Hi there!"


def _stamp(now_utc: datetime | None) -> int:
    return int((now_utc or utcnow()).timestamp() * 1000)


def create_engagement_notification(
    engagement_type: str,
    actor_name: str,
    content_type: str,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    if engagement_type not in _ENGAGEMENT_ACTIONS:
        raise ValueError(
            f"Invalid engagement type {engagement_type!r}. "
            f"Must be one of {sorted(_ENGAGEMENT_ACTIONS)}."
        )
    return NotificationTemplate(
        id=f"engagement_{engagement_type}_{_stamp(now_utc)}",
        type=NotificationType.ENGAGEMENT,
        title="New engagement!",
        body=f"{actor_name} {_ENGAGEMENT_ACTIONS[engagement_type]} your {content_type}",
        priority=NotificationPriority.MEDIUM,
    )


def create_content_notification(
    content_type: str,
    creator_name: str,
    life_dimension: str | None = None,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    suffix = f" in {life_dimension}" if life_dimension else ""
    return NotificationTemplate(
        id=f"content_{content_type}_{_stamp(now_utc)}",
        type=NotificationType.CONTENT,
        title="New content you might like",
        body=f"{creator_name} shared a new {content_type}{suffix}",
        priority=NotificationPriority.LOW,
    )


def create_achievement_notification(
    achievement: str,
    reward: str | None = None,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    suffix = f". Reward: {reward}" if reward else ""
    return NotificationTemplate(
        id=f"achievement_{_stamp(now_utc)}",
        type=NotificationType.ACHIEVEMENT,
        title="Achievement unlocked! 🎉",
        body=f"You earned: {achievement}{suffix}",
        priority=NotificationPriority.MEDIUM,
    )


def create_safety_notification(
    message: str,
    is_urgent: bool = False,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    return NotificationTemplate(
        id=f"safety_{_stamp(now_utc)}",
        type=NotificationType.SAFETY,
        title="⚠️ Safety Alert" if is_urgent else "Safety Update",
        body=message,
        priority=NotificationPriority.URGENT if is_urgent else NotificationPriority.HIGH,
    )


def create_credit_notification(
    amount: float,
    source: str,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    return NotificationTemplate(
        id=f"credit_{_stamp(now_utc)}",
        type=NotificationType.CREDIT,
        title="Credits earned! 💰",
        body=f"You earned {amount:g} credits from {source}",
        priority=NotificationPriority.MEDIUM,
    )


def create_social_notification(
    actor_name: str,
    action: str,
    *,
    now_utc: datetime | None = None,
) -> NotificationTemplate:
    if action not in _SOCIAL_ACTIONS:
        raise ValueError(
            f"Invalid social action {action!r}. Must be one of {sorted(_SOCIAL_ACTIONS)}."
        )
    return NotificationTemplate(
        id=f"social_{action}_{_stamp(now_utc)}",
        type=NotificationType.SOCIAL,
        title="New social activity",
        body=f"{actor_name} {_SOCIAL_ACTIONS[action]}",
        priority=NotificationPriority.HIGH if action == "message" else NotificationPriority.MEDIUM,
    )


def personalize_template(
    template: NotificationTemplate,
    segment: UserSegment,
    context: dict[str, Any] | None = None,
) -> NotificationTemplate:
    """
    Fill ``{userName}``, ``{greeting}`` and ``{<statKey>}`` placeholders.

    ``context`` may carry ``userName`` and a ``stats`` mapping. Unknown
    placeholders are left as-is. Returns a new template.
    """
    ctx = context or {}
    title, body = template.title, template.body

    user_name = ctx.get("userName")
    if user_name:
        title = title.replace("{userName}", str(user_name))
        body = body.replace("{userName}", str(user_name))

    body = body.replace("{greeting}", _GREETINGS.get(segment, DEFAULT_GREETING))

    for key, value in (ctx.get("stats") or {}).items():
        placeholder = "{" + str(key) + "}"
        title = title.replace(placeholder, str(value))
        body = body.replace(placeholder, str(value))

    return NotificationTemplate(
        id=template.id,
        type=template.type,
        title=title,
        body=body,
        priority=template.priority,
        action_url=template.action_url,
    )
