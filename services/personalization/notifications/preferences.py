"""
User-level notification preferences.

Preferences filter candidates before scoring and, when quiet hours are
configured, replace the service-wide quiet window used by the timing score.
Urgent notifications bypass every preference: safety alerts always reach the
user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from services.personalization.notifications.types import (
    NotificationPriority,
    NotificationTemplate,
    NotificationType,
)


class FrequencyMode(str, Enum):
    ALL = "all"
    IMPORTANT = "important"
    URGENT_ONLY = "urgent_only"


# Priorities admitted by each frequency mode
_ALLOWED_PRIORITIES: dict[FrequencyMode, frozenset[NotificationPriority]] = {
    FrequencyMode.ALL: frozenset(NotificationPriority),
    FrequencyMode.IMPORTANT: frozenset({NotificationPriority.HIGH, NotificationPriority.URGENT}),
    FrequencyMode.URGENT_ONLY: frozenset({NotificationPriority.URGENT}),
}


@dataclass
class QuietHours:
    enabled: bool = True
    start: int = 22
    end: int = 8

    def contains(self, hour: int) -> bool:
        return self.enabled and hour_in_window(hour, self.start, self.end)


@dataclass
class NotificationPreferences:
    enabled: bool = True
    types: dict[NotificationType, bool] = field(
        default_factory=lambda: {t: True for t in NotificationType}
    )
    channels: dict[str, bool] = field(
        default_factory=lambda: {"push": True, "email": False, "inApp": True}
    )
    quiet_hours: QuietHours = field(default_factory=QuietHours)
    frequency: FrequencyMode = FrequencyMode.ALL

    def allows(self, template: NotificationTemplate) -> bool:
        if template.is_urgent:
            return True
        if not self.enabled:
            return False
        if not self.types.get(template.type, True):
            return False
        return template.priority in _ALLOWED_PRIORITIES[self.frequency]

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "types": {t.value: on for t, on in self.types.items()},
            "channels": dict(self.channels),
            "quietHours": {
                "enabled": self.quiet_hours.enabled,
                "start": self.quiet_hours.start,
                "end": self.quiet_hours.end,
            },
            "frequency": self.frequency.value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "NotificationPreferences":
        if not d:
            return cls()
        defaults = cls()
        types = dict(defaults.types)
        for key, on in (d.get("types") or {}).items():
            types[NotificationType(key)] = bool(on)
        quiet = d.get("quietHours") or {}
        return cls(
            enabled=bool(d.get("enabled", True)),
            types=types,
            channels={**defaults.channels, **(d.get("channels") or {})},
            quiet_hours=QuietHours(
                enabled=bool(quiet.get("enabled", defaults.quiet_hours.enabled)),
                start=int(quiet.get("start", defaults.quiet_hours.start)),
                end=int(quiet.get("end", defaults.quiet_hours.end)),
            ),
            frequency=FrequencyMode(d.get("frequency", FrequencyMode.ALL.value)),
        )


def hour_in_window(hour: int, start: int, end: int) -> bool:
    """True if ``hour`` is in [start, end), wrapping past midnight when start > end."""
    if start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def filter_by_preferences(
    candidates: Iterable[NotificationTemplate],
    preferences: NotificationPreferences | None,
) -> list[NotificationTemplate]:
    if preferences is None:
        return list(candidates)
    return [c for c in candidates if preferences.allows(c)]
