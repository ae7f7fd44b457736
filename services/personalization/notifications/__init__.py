"""
services.personalization.notifications — notification scoring.

Modules
-------
types        NotificationTemplate, NotificationContext, ScoredNotification
scorer       NotificationScorer (score_notifications) and NotificationConfig
preferences  Per-user NotificationPreferences and candidate filtering
templates    Template constructors and placeholder personalization
"""

from __future__ import annotations

from services.personalization.notifications.preferences import (
    FrequencyMode,
    NotificationPreferences,
    QuietHours,
)
from services.personalization.notifications.scorer import (
    NotificationConfig,
    score_notifications,
)
from services.personalization.notifications.templates import personalize_template
from services.personalization.notifications.types import (
    NotificationContext,
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
    RecentActivity,
    ScoredNotification,
)

__all__ = [
    "FrequencyMode",
    "NotificationConfig",
    "NotificationContext",
    "NotificationPreferences",
    "NotificationPriority",
    "NotificationTemplate",
    "NotificationType",
    "personalize_template",
    "QuietHours",
    "RecentActivity",
    "score_notifications",
    "ScoredNotification",
]
