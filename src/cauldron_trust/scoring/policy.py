"""ScoringPolicy — configurable XP rewards, composite weights, and rating bands.

Policies allow operators to tune trust dynamics for their deployment.
Sensible defaults are provided for all parameters.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from cauldron_trust.scoring.actions import XpActionType


def _default_action_xp() -> dict[XpActionType, int]:
    return {
        XpActionType.TASK_COMPLETION: 10,
        XpActionType.POSITIVE_FEEDBACK: 15,
        XpActionType.BADGE_EARNED: 25,
        XpActionType.SUGGESTION_APPROVED: 20,
        XpActionType.CORRECT_RESPONSE: 5,
        XpActionType.LEARNING_FROM_FEEDBACK: 10,
        XpActionType.SPECIAL_ACHIEVEMENT: 50,
    }


class ScoringPolicy(BaseModel):
    """Configurable trust scoring policy.

    Parameters
    ----------
    task_completion_xp:
        XP awarded for each successful task.
    positive_feedback_xp:
        XP awarded for each positive rating.
    badge_bonus_xp:
        XP awarded whenever a badge is earned.
    level_points_per_level:
        Composite points contributed by each level.
    max_level_points:
        Cap on the level contribution to the composite score.
    success_rate_points:
        Composite points contributed by a 100% success rate.
    feedback_points:
        Composite points contributed when all feedback is positive.
    positive_rating_threshold:
        Ratings at or above this value count as positive.
    negative_rating_threshold:
        Ratings at or below this value count as negative. Ratings in
        between are neutral.
    action_xp:
        Default XP for an action type when a caller awards XP without an
        explicit amount.
    """

    task_completion_xp: int = Field(default=10, ge=0)
    positive_feedback_xp: int = Field(default=15, ge=0)
    badge_bonus_xp: int = Field(default=25, ge=0)

    level_points_per_level: float = Field(default=1.5, ge=0.0)
    max_level_points: float = Field(default=50.0, ge=0.0)
    success_rate_points: float = Field(default=30.0, ge=0.0)
    feedback_points: float = Field(default=20.0, ge=0.0)

    positive_rating_threshold: int = Field(default=4, ge=1, le=5)
    negative_rating_threshold: int = Field(default=2, ge=1, le=5)

    action_xp: dict[XpActionType, int] = Field(default_factory=_default_action_xp)

    def default_xp_for(self, action_type: XpActionType) -> int:
        """Return the default XP for *action_type*, or 0 when none is configured."""
        return self.action_xp.get(XpActionType(action_type), 0)

    def validate_weights(self) -> None:
        """Raise ValueError if the composite caps do not sum to 100."""
        total = self.max_level_points + self.success_rate_points + self.feedback_points
        if abs(total - 100.0) > 1e-6:
            raise ValueError(
                f"Composite score caps must sum to 100, got {total:.6f}"
            )
        if self.negative_rating_threshold >= self.positive_rating_threshold:
            raise ValueError(
                "negative_rating_threshold must be below positive_rating_threshold"
            )
