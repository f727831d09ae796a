"""XP thresholds, level advancement, and trust tier derivation.

Levels follow a polynomial curve: reaching level ``L`` requires
``round(100 * L ** 1.5)`` experience points. An agent's stored level is a
cached value that is only ever advanced forward from where it was, one
threshold at a time, so a single large XP award can cross several levels.
"""
from __future__ import annotations

from enum import Enum

XP_BASE: int = 100
XP_EXPONENT: float = 1.5


class TrustTier(str, Enum):
    """Human-readable trust tier derived from an agent's level.

    NOVICE (1 – 5), APPRENTICE (6 – 10), ADEPT (11 – 15), EXPERT (16 – 20),
    MASTER (21 – 25), GRANDMASTER (26 – 30), LEGENDARY (31+).
    """

    NOVICE = "NOVICE"
    APPRENTICE = "APPRENTICE"
    ADEPT = "ADEPT"
    EXPERT = "EXPERT"
    MASTER = "MASTER"
    GRANDMASTER = "GRANDMASTER"
    LEGENDARY = "LEGENDARY"


# Minimum level required to reach each tier (inclusive lower bounds).
TIER_THRESHOLDS: dict[TrustTier, int] = {
    TrustTier.NOVICE: 1,
    TrustTier.APPRENTICE: 6,
    TrustTier.ADEPT: 11,
    TrustTier.EXPERT: 16,
    TrustTier.MASTER: 21,
    TrustTier.GRANDMASTER: 26,
    TrustTier.LEGENDARY: 31,
}


def xp_required_for_level(level: int) -> int:
    """Return the total XP needed to reach *level*.

    ``xp_required_for_level(0)`` is 0, which serves as the floor of the
    level-1 progress band.

    Parameters
    ----------
    level:
        Non-negative level number.

    Returns
    -------
    int
        ``round(100 * level ** 1.5)``.
    """
    if level <= 0:
        return 0
    return round(XP_BASE * level**XP_EXPONENT)


def advance_level(total_xp: int, current_level: int) -> int:
    """Advance *current_level* forward while *total_xp* meets the next threshold.

    The stored level is never recomputed from scratch and never decreases.

    Parameters
    ----------
    total_xp:
        The agent's cumulative experience points.
    current_level:
        The level currently stored for the agent (>= 1).

    Returns
    -------
    int
        The new level, which is ``>= current_level``.
    """
    level = max(1, current_level)
    while total_xp >= xp_required_for_level(level + 1):
        level += 1
    return level


def level_for_xp(total_xp: int) -> int:
    """Return the level a fresh agent would reach with *total_xp* experience.

    This is the largest ``L >= 1`` with ``xp_required_for_level(L) <= total_xp``,
    or 1 when no threshold has been met yet.
    """
    return advance_level(total_xp, 1)


def level_progress(total_xp: int, current_level: int) -> float:
    """Percentage of the way from the previous threshold to *current_level*'s.

    Parameters
    ----------
    total_xp:
        The agent's cumulative experience points.
    current_level:
        Level whose threshold is the target (>= 1).

    Returns
    -------
    float
        Progress clamped to the range [0, 100].
    """
    xp_for_current = xp_required_for_level(current_level - 1)
    xp_for_next = xp_required_for_level(current_level)
    span = xp_for_next - xp_for_current
    if span <= 0:
        return 100.0
    progress = (total_xp - xp_for_current) / span * 100.0
    return max(0.0, min(100.0, progress))


def progress_to_next_level(total_xp: int, level: int) -> float:
    """Progress through the XP band an agent at *level* currently occupies.

    An agent at level ``L`` holds between ``xp_required_for_level(L)`` and
    ``xp_required_for_level(L + 1)`` XP; level 1 starts from zero. This is
    :func:`level_progress` evaluated against the next level's threshold.
    """
    if level <= 1:
        ceiling = xp_required_for_level(2)
        return max(0.0, min(100.0, total_xp / ceiling * 100.0))
    return level_progress(total_xp, level + 1)


def trust_tier(level: int) -> TrustTier:
    """Map a numeric level to its :class:`TrustTier`.

    The highest tier whose threshold does not exceed *level* is returned.
    """
    tier = TrustTier.NOVICE
    for candidate, threshold in sorted(TIER_THRESHOLDS.items(), key=lambda kv: kv[1]):
        if level >= threshold:
            tier = candidate
    return tier


def success_rate(successful_tasks: int, failed_tasks: int) -> float:
    """Return the task success percentage, or 0.0 when no tasks were recorded."""
    total = successful_tasks + failed_tasks
    if total == 0:
        return 0.0
    return successful_tasks / total * 100.0


__all__ = [
    "TIER_THRESHOLDS",
    "TrustTier",
    "advance_level",
    "level_for_xp",
    "level_progress",
    "progress_to_next_level",
    "success_rate",
    "trust_tier",
    "xp_required_for_level",
]
