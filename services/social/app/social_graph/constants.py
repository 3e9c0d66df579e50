"""
Social graph domain — follow lifecycle states.
"""
from __future__ import annotations

import enum


class FollowState(str, enum.Enum):
    """Derived state of the (follower, followed) pair.

    NONE → PENDING → APPROVED, plus PENDING → NONE (reject / unfollow) and
    APPROVED → NONE (unfollow). Nothing leads from APPROVED back to PENDING.
    """

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
