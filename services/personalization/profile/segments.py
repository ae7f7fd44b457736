"""
SegmentClassifier — maps a UserProfile to exactly one UserSegment.

Rules are evaluated in order and the first match wins; the ordering is the
tie-break policy (a user who is both a power user and a community leader is a
power user).

    1. total dimension views < 5                                 -> new_user
    2. engagement > 0.7 and creator > 0.5 and community > 0.7    -> power_user
    3. community > 0.8                                           -> community_leader
    4. safety > 0.8 and sharedRoutes > 5                         -> safety_advocate
    5. creator > 0.6 and postsCreated > 10                       -> active_creator
    6. creator > 0.3 and postsCreated > 3                        -> casual_creator
    7. engagement > 0.5 and likesGiven > 20                      -> active_consumer
    8. otherwise                                                 -> casual_consumer
"""

from __future__ import annotations

from enum import Enum

from services.personalization.profile.types import UserProfile

NEW_USER_VIEW_THRESHOLD = 5


class UserSegment(str, Enum):
    NEW_USER = "new_user"
    CASUAL_CONSUMER = "casual_consumer"
    ACTIVE_CONSUMER = "active_consumer"
    CASUAL_CREATOR = "casual_creator"
    ACTIVE_CREATOR = "active_creator"
    POWER_USER = "power_user"
    COMMUNITY_LEADER = "community_leader"
    SAFETY_ADVOCATE = "safety_advocate"


def classify_segment(profile: UserProfile) -> UserSegment:
    """Pure, deterministic segment assignment for ``profile``."""
    scores = profile.personalization_scores

    if profile.content_consumption.total_dimension_views < NEW_USER_VIEW_THRESHOLD:
        return UserSegment.NEW_USER

    if (
        scores.engagement_score > 0.7
        and scores.creator_score > 0.5
        and scores.community_score > 0.7
    ):
        return UserSegment.POWER_USER

    if scores.community_score > 0.8:
        return UserSegment.COMMUNITY_LEADER

    if scores.safety_score > 0.8 and profile.route_preferences.shared_routes > 5:
        return UserSegment.SAFETY_ADVOCATE

    if scores.creator_score > 0.6 and profile.content_creation.posts_created > 10:
        return UserSegment.ACTIVE_CREATOR

    if scores.creator_score > 0.3 and profile.content_creation.posts_created > 3:
        return UserSegment.CASUAL_CREATOR

    if scores.engagement_score > 0.5 and profile.engagement.likes_given > 20:
        return UserSegment.ACTIVE_CONSUMER

    return UserSegment.CASUAL_CONSUMER
