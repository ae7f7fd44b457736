"""
Notification candidate and output types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from services.personalization.profile.types import UserProfile
from services.personalization.util import parse_timestamp


class NotificationType(str, Enum):
    ENGAGEMENT = "engagement"
    CONTENT = "content"
    SOCIAL = "social"
    ACHIEVEMENT = "achievement"
    SAFETY = "safety"
    CREDIT = "credit"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class NotificationTemplate:
    id: str
    type: NotificationType
    title: str
    body: str
    priority: NotificationPriority
    action_url: str | None = None

    @property
    def is_urgent(self) -> bool:
        return self.priority is NotificationPriority.URGENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "body": self.body,
            "actionUrl": self.action_url,
            "priority": self.priority.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "NotificationTemplate":
        return cls(
            id=str(d["id"]),
            type=NotificationType(d["type"]),
            title=str(d.get("title") or ""),
            body=str(d.get("body") or ""),
            priority=NotificationPriority(d.get("priority") or NotificationPriority.MEDIUM.value),
            action_url=d.get("actionUrl"),
        )


@dataclass
class RecentActivity:
    """Per-user send history, supplied by the caller on every scoring call."""

    last_active: datetime | None = None
    """Accepted for callers that send it; no sub-score reads it."""
    last_notification_sent: datetime | None = None
    """None means nothing has been sent yet."""
    notifications_sent_today: int = 0
    notifications_clicked_today: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RecentActivity":
        if not d:
            return cls()
        return cls(
            last_active=parse_timestamp(d.get("lastActive")),
            last_notification_sent=parse_timestamp(d.get("lastNotificationSent")),
            notifications_sent_today=int(d.get("notificationsSentToday") or 0),
            notifications_clicked_today=int(d.get("notificationsClickedToday") or 0),
        )


@dataclass
class NotificationContext:
    profile: UserProfile
    recent_activity: RecentActivity = field(default_factory=RecentActivity)
    timezone: str | None = None
    """IANA zone for hour-of-day checks. UTC when absent or invalid."""

    @property
    def user_id(self) -> str:
        return self.profile.user_id


@dataclass
class ScoredNotification:
    template: NotificationTemplate
    relevance_score: float
    timing_score: float
    frequency_score: float
    total_score: float
    should_send: bool
    optimal_send_time: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        out = self.template.to_dict()
        out.update({
            "relevanceScore": self.relevance_score,
            "timingScore": self.timing_score,
            "frequencyScore": self.frequency_score,
            "totalScore": self.total_score,
            "shouldSend": self.should_send,
            "optimalSendTime": (
                self.optimal_send_time.isoformat() if self.optimal_send_time else None
            ),
        })
        return out
