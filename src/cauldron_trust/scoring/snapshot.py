"""TrustSnapshot — an immutable view of an agent's counters at one moment.

Badge predicates and composite scoring read snapshots rather than ORM rows,
so eligibility is decided against a consistent, read-only copy.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TrustSnapshot:
    """Counters and derived scores for one agent.

    Parameters
    ----------
    agent_id:
        The agent the counters belong to.
    experience_points:
        Cumulative XP.
    level:
        Stored level (>= 1).
    successful_tasks, failed_tasks:
        Task completion counters.
    positive_ratings, negative_ratings, neutral_ratings, feedback_count:
        Feedback counters.
    approval_rate, response_accuracy:
        Derived percentages in [0, 100].
    """

    agent_id: str
    experience_points: int = 0
    level: int = 1
    successful_tasks: int = 0
    failed_tasks: int = 0
    positive_ratings: int = 0
    negative_ratings: int = 0
    neutral_ratings: int = 0
    feedback_count: int = 0
    approval_rate: float = 0.0
    response_accuracy: float = 0.0

    @property
    def total_tasks(self) -> int:
        return self.successful_tasks + self.failed_tasks

    @classmethod
    def from_record(cls, record: object) -> TrustSnapshot:
        """Copy the counter fields from any object exposing them as attributes."""
        return cls(
            agent_id=record.agent_id,  # type: ignore[attr-defined]
            experience_points=record.experience_points,  # type: ignore[attr-defined]
            level=record.level,  # type: ignore[attr-defined]
            successful_tasks=record.successful_tasks,  # type: ignore[attr-defined]
            failed_tasks=record.failed_tasks,  # type: ignore[attr-defined]
            positive_ratings=record.positive_ratings,  # type: ignore[attr-defined]
            negative_ratings=record.negative_ratings,  # type: ignore[attr-defined]
            neutral_ratings=record.neutral_ratings,  # type: ignore[attr-defined]
            feedback_count=record.feedback_count,  # type: ignore[attr-defined]
            approval_rate=record.approval_rate,  # type: ignore[attr-defined]
            response_accuracy=record.response_accuracy,  # type: ignore[attr-defined]
        )
