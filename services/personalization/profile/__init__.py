"""
services.personalization.profile — user profile layer.

All scorers read a UserProfile; none of them touch raw activity records.

Usage:
    from services.personalization.profile import build_profile, classify_segment

    profile = build_profile(user_id, user_record, activity)
    segment = classify_segment(profile)
"""

from __future__ import annotations

from services.personalization.profile.builder import build_profile
from services.personalization.profile.segments import UserSegment, classify_segment
from services.personalization.profile.types import (
    LifeDimension,
    UserProfile,
    default_profile,
)

__all__ = [
    "build_profile",
    "classify_segment",
    "default_profile",
    "LifeDimension",
    "UserProfile",
    "UserSegment",
]
