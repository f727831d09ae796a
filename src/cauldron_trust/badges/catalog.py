"""Badge definitions, unlock predicates, and the default badge catalog.

Each badge carries a requirement type and a numeric threshold. The unlock
predicate compares one counter of a :class:`TrustSnapshot` against the
threshold. SPECIAL badges are never unlocked automatically; they can only
be granted by an explicit award.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cauldron_trust.scoring.snapshot import TrustSnapshot


class BadgeTier(str, Enum):
    """Rarity tier of a badge."""

    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
    SPECIAL = "SPECIAL"


class BadgeCategory(str, Enum):
    """Thematic grouping of a badge."""

    PERFORMANCE = "PERFORMANCE"
    FEEDBACK = "FEEDBACK"
    ACCURACY = "ACCURACY"
    RELIABILITY = "RELIABILITY"
    EFFICIENCY = "EFFICIENCY"
    LEARNING = "LEARNING"
    COLLABORATION = "COLLABORATION"
    SECURITY = "SECURITY"
    INNOVATION = "INNOVATION"
    SPECIAL = "SPECIAL"


class RequirementType(str, Enum):
    """The snapshot counter a badge threshold is compared against."""

    XP = "XP"
    LEVEL = "LEVEL"
    TASKS = "TASKS"
    SUCCESSFUL_TASKS = "SUCCESSFUL_TASKS"
    FEEDBACK = "FEEDBACK"
    POSITIVE_FEEDBACK = "POSITIVE_FEEDBACK"
    APPROVALS = "APPROVALS"
    ACCURACY = "ACCURACY"
    SPECIAL = "SPECIAL"


def _requirement_metric(requirement: RequirementType, snapshot: TrustSnapshot) -> float | None:
    """Return the snapshot value a requirement is measured on, or None for SPECIAL."""
    if requirement is RequirementType.XP:
        return snapshot.experience_points
    if requirement is RequirementType.LEVEL:
        return snapshot.level
    if requirement is RequirementType.TASKS:
        return snapshot.total_tasks
    if requirement is RequirementType.SUCCESSFUL_TASKS:
        return snapshot.successful_tasks
    if requirement is RequirementType.FEEDBACK:
        return snapshot.feedback_count
    if requirement is RequirementType.POSITIVE_FEEDBACK:
        return snapshot.positive_ratings
    if requirement is RequirementType.APPROVALS:
        return snapshot.approval_rate
    if requirement is RequirementType.ACCURACY:
        return snapshot.response_accuracy
    return None


@dataclass(frozen=True)
class Badge:
    """A catalog badge.

    Parameters
    ----------
    badge_id:
        Stable slug identifier (e.g. ``"first-steps"``).
    name:
        Display name.
    description:
        What the badge recognises.
    category:
        Thematic :class:`BadgeCategory`.
    tier:
        Rarity :class:`BadgeTier`.
    requirement_type:
        Counter compared against ``requirement_value``.
    requirement_value:
        Inclusive threshold that unlocks the badge.
    is_active:
        Inactive badges are skipped by the awarder.
    """

    badge_id: str
    name: str
    description: str
    category: BadgeCategory
    tier: BadgeTier
    requirement_type: RequirementType
    requirement_value: float
    is_active: bool = True

    def is_unlocked_by(self, snapshot: TrustSnapshot) -> bool:
        """Return True if *snapshot* satisfies this badge's unlock predicate."""
        metric = _requirement_metric(self.requirement_type, snapshot)
        if metric is None:
            return False
        return metric >= self.requirement_value

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "badge_id": self.badge_id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "tier": self.tier.value,
            "requirement_type": self.requirement_type.value,
            "requirement_value": self.requirement_value,
            "is_active": self.is_active,
        }


def _badge(
    badge_id: str,
    name: str,
    description: str,
    category: BadgeCategory,
    tier: BadgeTier,
    requirement_type: RequirementType,
    requirement_value: float,
) -> Badge:
    return Badge(
        badge_id=badge_id,
        name=name,
        description=description,
        category=category,
        tier=tier,
        requirement_type=requirement_type,
        requirement_value=requirement_value,
    )


_P = BadgeCategory.PERFORMANCE
_F = BadgeCategory.FEEDBACK
_L = BadgeCategory.LEARNING

DEFAULT_BADGES: tuple[Badge, ...] = (
    # Performance
    _badge("first-steps", "First Steps", "Completed first successful task",
           _P, BadgeTier.BRONZE, RequirementType.SUCCESSFUL_TASKS, 1),
    _badge("task-master", "Task Master", "Completed 10 successful tasks",
           _P, BadgeTier.SILVER, RequirementType.SUCCESSFUL_TASKS, 10),
    _badge("productivity-champion", "Productivity Champion", "Completed 50 successful tasks",
           _P, BadgeTier.GOLD, RequirementType.SUCCESSFUL_TASKS, 50),
    _badge("efficiency-expert", "Efficiency Expert", "Completed 100 successful tasks",
           _P, BadgeTier.PLATINUM, RequirementType.SUCCESSFUL_TASKS, 100),
    _badge("legendary-performer", "Legendary Performer", "Completed 500 successful tasks",
           _P, BadgeTier.DIAMOND, RequirementType.SUCCESSFUL_TASKS, 500),
    _badge("persistent", "Persistent", "Attempted 25 tasks, successful or not",
           BadgeCategory.RELIABILITY, BadgeTier.BRONZE, RequirementType.TASKS, 25),
    # Feedback
    _badge("first-feedback", "First Feedback", "Received first piece of feedback",
           _F, BadgeTier.BRONZE, RequirementType.FEEDBACK, 1),
    _badge("feedback-collector", "Feedback Collector", "Received 10 pieces of feedback",
           _F, BadgeTier.SILVER, RequirementType.FEEDBACK, 10),
    _badge("feedback-maven", "Feedback Maven", "Received 50 pieces of feedback",
           _F, BadgeTier.GOLD, RequirementType.FEEDBACK, 50),
    _badge("positive-reinforcement", "Positive Reinforcement", "Received 10 positive ratings",
           _F, BadgeTier.SILVER, RequirementType.POSITIVE_FEEDBACK, 10),
    _badge("highly-rated", "Highly Rated", "Received 50 positive ratings",
           _F, BadgeTier.GOLD, RequirementType.POSITIVE_FEEDBACK, 50),
    # Levels
    _badge("level-5", "Level 5", "Reached level 5", _L, BadgeTier.BRONZE, RequirementType.LEVEL, 5),
    _badge("level-10", "Level 10", "Reached level 10", _L, BadgeTier.SILVER, RequirementType.LEVEL, 10),
    _badge("level-20", "Level 20", "Reached level 20", _L, BadgeTier.GOLD, RequirementType.LEVEL, 20),
    _badge("level-30", "Level 30", "Reached level 30", _L, BadgeTier.PLATINUM, RequirementType.LEVEL, 30),
    _badge("level-50", "Level 50", "Reached level 50", _L, BadgeTier.DIAMOND, RequirementType.LEVEL, 50),
    # XP
    _badge("xp-starter", "XP Starter", "Earned 100 XP", _L, BadgeTier.BRONZE, RequirementType.XP, 100),
    _badge("xp-collector", "XP Collector", "Earned 500 XP", _L, BadgeTier.SILVER, RequirementType.XP, 500),
    _badge("xp-hoarder", "XP Hoarder", "Earned 1,000 XP", _L, BadgeTier.GOLD, RequirementType.XP, 1000),
    _badge("xp-master", "XP Master", "Earned 5,000 XP", _L, BadgeTier.PLATINUM, RequirementType.XP, 5000),
    _badge("xp-legend", "XP Legend", "Earned 10,000 XP", _L, BadgeTier.DIAMOND, RequirementType.XP, 10000),
    # Special (manual award only)
    _badge("early-adopter", "Early Adopter", "One of the first agents to join the platform",
           BadgeCategory.SPECIAL, BadgeTier.SPECIAL, RequirementType.SPECIAL, 1),
    _badge("innovator", "Innovator", "Recognized for innovative solutions",
           BadgeCategory.INNOVATION, BadgeTier.SPECIAL, RequirementType.SPECIAL, 1),
    _badge("security-champion", "Security Champion", "Demonstrated exceptional security practices",
           BadgeCategory.SECURITY, BadgeTier.SPECIAL, RequirementType.SPECIAL, 1),
)


__all__ = [
    "DEFAULT_BADGES",
    "Badge",
    "BadgeCategory",
    "BadgeTier",
    "RequirementType",
]
