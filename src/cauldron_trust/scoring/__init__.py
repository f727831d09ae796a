"""XP leveling and composite trust scoring for AI agents.

Experience points drive a polynomial level curve; levels map to one of
seven trust tiers (NOVICE through LEGENDARY). A composite 0 – 100 score
blends level, task success rate, and feedback.
"""
from __future__ import annotations

from cauldron_trust.scoring.actions import XpActionType
from cauldron_trust.scoring.composite import (
    approval_rate,
    compute_trust_score,
    recompute_derived,
    response_accuracy,
)
from cauldron_trust.scoring.level import (
    TrustTier,
    advance_level,
    level_for_xp,
    level_progress,
    progress_to_next_level,
    success_rate,
    trust_tier,
    xp_required_for_level,
)
from cauldron_trust.scoring.policy import ScoringPolicy
from cauldron_trust.scoring.snapshot import TrustSnapshot

__all__ = [
    "ScoringPolicy",
    "TrustSnapshot",
    "TrustTier",
    "XpActionType",
    "advance_level",
    "approval_rate",
    "compute_trust_score",
    "level_for_xp",
    "level_progress",
    "progress_to_next_level",
    "recompute_derived",
    "response_accuracy",
    "success_rate",
    "trust_tier",
    "xp_required_for_level",
]
