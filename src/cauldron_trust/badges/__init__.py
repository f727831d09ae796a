"""Badge catalog and unlock evaluation."""
from __future__ import annotations

from cauldron_trust.badges.awarder import BadgeAwarder
from cauldron_trust.badges.catalog import (
    DEFAULT_BADGES,
    Badge,
    BadgeCategory,
    BadgeTier,
    RequirementType,
)

__all__ = [
    "DEFAULT_BADGES",
    "Badge",
    "BadgeAwarder",
    "BadgeCategory",
    "BadgeTier",
    "RequirementType",
]
