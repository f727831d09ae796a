"""Composite trust score and feedback-derived percentages.

The composite combines three contributions, each capped by the policy:

- level:        ``level * level_points_per_level`` (max 50 by default)
- success rate: ``success_rate / 100 * success_rate_points`` (max 30)
- feedback:     ``positive / feedback_count * feedback_points`` (max 20)
"""
from __future__ import annotations

from cauldron_trust.scoring.level import success_rate
from cauldron_trust.scoring.policy import ScoringPolicy
from cauldron_trust.scoring.snapshot import TrustSnapshot


def approval_rate(positive_ratings: int, feedback_count: int) -> float:
    """Percentage of feedback that was positive, or 0.0 with no feedback."""
    if feedback_count <= 0:
        return 0.0
    return min(100.0, positive_ratings / feedback_count * 100.0)


def response_accuracy(
    positive_ratings: int,
    neutral_ratings: int,
    negative_ratings: int,
) -> float:
    """Weighted feedback score: positive counts 100, neutral 50, negative 0."""
    total = positive_ratings + neutral_ratings + negative_ratings
    if total == 0:
        return 0.0
    return (positive_ratings * 100.0 + neutral_ratings * 50.0) / total


def compute_trust_score(
    snapshot: TrustSnapshot,
    policy: ScoringPolicy | None = None,
) -> float:
    """Compute the 0 – 100 composite trust score for *snapshot*.

    Parameters
    ----------
    snapshot:
        Counters to score.
    policy:
        Scoring policy supplying the weights. Defaults to ``ScoringPolicy()``.

    Returns
    -------
    float
        Composite score clamped to [0, 100].
    """
    policy = policy if policy is not None else ScoringPolicy()

    level_score = min(policy.max_level_points, snapshot.level * policy.level_points_per_level)
    rate = success_rate(snapshot.successful_tasks, snapshot.failed_tasks) / 100.0
    success_score = min(policy.success_rate_points, rate * policy.success_rate_points)
    positive_ratio = approval_rate(snapshot.positive_ratings, snapshot.feedback_count) / 100.0
    feedback_score = min(policy.feedback_points, positive_ratio * policy.feedback_points)

    total = level_score + success_score + feedback_score
    return max(0.0, min(100.0, total))


def recompute_derived(record: object, policy: ScoringPolicy | None = None) -> None:
    """Set ``approval_rate``, ``response_accuracy`` and ``trust_score`` on *record* in place.

    *record* is any object exposing the trust counters as writable attributes,
    typically a :class:`~cauldron_trust.storage.models.TrustScoreRecord`.
    """
    record.approval_rate = approval_rate(  # type: ignore[attr-defined]
        record.positive_ratings, record.feedback_count  # type: ignore[attr-defined]
    )
    record.response_accuracy = response_accuracy(  # type: ignore[attr-defined]
        record.positive_ratings,  # type: ignore[attr-defined]
        record.neutral_ratings,  # type: ignore[attr-defined]
        record.negative_ratings,  # type: ignore[attr-defined]
    )
    record.trust_score = compute_trust_score(  # type: ignore[attr-defined]
        TrustSnapshot.from_record(record), policy
    )


__all__ = [
    "approval_rate",
    "compute_trust_score",
    "recompute_derived",
    "response_accuracy",
]
