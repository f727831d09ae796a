"""BadgeAwarder — decides which catalog badges a snapshot has newly unlocked.

Evaluation is a single read-only pass: the awarder never touches storage.
The engine applies its result inside the same transaction as the event
that triggered it.
"""
from __future__ import annotations

from collections.abc import Iterable

from cauldron_trust.badges.catalog import Badge
from cauldron_trust.scoring.snapshot import TrustSnapshot


class BadgeAwarder:
    """Evaluates unlock predicates for every active, unearned badge.

    Parameters
    ----------
    include_inactive:
        If True, inactive catalog badges are evaluated too. Defaults to False.
    """

    def __init__(self, include_inactive: bool = False) -> None:
        self._include_inactive = include_inactive

    def evaluate(
        self,
        snapshot: TrustSnapshot,
        catalog: Iterable[Badge],
        earned_badge_ids: Iterable[str] = (),
    ) -> list[Badge]:
        """Return the badges *snapshot* unlocks that have not been earned yet.

        Parameters
        ----------
        snapshot:
            Read-only copy of the agent's counters.
        catalog:
            The badge catalog to evaluate.
        earned_badge_ids:
            IDs already earned by the agent; these are skipped.

        Returns
        -------
        list[Badge]
            Newly unlocked badges in catalog order. May be empty.
        """
        earned = set(earned_badge_ids)
        unlocked: list[Badge] = []
        for badge in catalog:
            if badge.badge_id in earned:
                continue
            if not badge.is_active and not self._include_inactive:
                continue
            if badge.is_unlocked_by(snapshot):
                unlocked.append(badge)
                earned.add(badge.badge_id)
        return unlocked
