"""TrustScoreRepository — typed access to the trust store within one session.

The repository never commits; the caller owns the transaction boundary
(see :meth:`cauldron_trust.storage.database.Database.transaction`).
"""
from __future__ import annotations

import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cauldron_trust.badges.catalog import Badge, BadgeCategory, BadgeTier, RequirementType
from cauldron_trust.scoring.actions import XpActionType
from cauldron_trust.storage.models import (
    BadgeRecord,
    EarnedBadgeRecord,
    TrustScoreRecord,
    XpHistoryRecord,
)

# Columns update_trust_score() is allowed to write.
_MUTABLE_FIELDS = frozenset(
    {
        "experience_points",
        "level",
        "trust_score",
        "successful_tasks",
        "failed_tasks",
        "positive_ratings",
        "negative_ratings",
        "neutral_ratings",
        "feedback_count",
        "approval_rate",
        "response_accuracy",
        "last_level_up_at",
    }
)


def badge_from_record(record: BadgeRecord) -> Badge:
    """Convert a catalog row into a :class:`Badge`."""
    return Badge(
        badge_id=record.id,
        name=record.name,
        description=record.description or "",
        category=BadgeCategory(record.category),
        tier=BadgeTier(record.tier),
        requirement_type=RequirementType(record.requirement_type),
        requirement_value=record.requirement_value,
        is_active=bool(record.is_active),
    )


def badge_to_record(badge: Badge) -> BadgeRecord:
    """Build a new catalog row for *badge*."""
    return BadgeRecord(
        id=badge.badge_id,
        name=badge.name,
        description=badge.description,
        category=badge.category.value,
        tier=badge.tier.value,
        requirement_type=badge.requirement_type.value,
        requirement_value=float(badge.requirement_value),
        is_active=badge.is_active,
    )


class TrustScoreRepository:
    """Repository over the trust score tables for a single session.

    Parameters
    ----------
    session:
        An open SQLAlchemy session inside an active transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Trust scores
    # ------------------------------------------------------------------

    def get_trust_score(self, agent_id: str, for_update: bool = False) -> TrustScoreRecord | None:
        """Return the trust row for *agent_id*, or None.

        Parameters
        ----------
        agent_id:
            The agent to look up.
        for_update:
            If True, the row is read with ``SELECT ... FOR UPDATE`` on
            databases that support row locks.
        """
        stmt = select(TrustScoreRecord).where(TrustScoreRecord.agent_id == agent_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.scalars(stmt).first()

    def create_trust_score(self, agent_id: str) -> TrustScoreRecord:
        """Insert a zero-state trust row (level 1, zero XP) for *agent_id*.

        If another transaction inserted the row first, that row is returned.
        """
        record = TrustScoreRecord(
            agent_id=agent_id,
            experience_points=0,
            level=1,
            trust_score=0.0,
            successful_tasks=0,
            failed_tasks=0,
            positive_ratings=0,
            negative_ratings=0,
            neutral_ratings=0,
            feedback_count=0,
            approval_rate=0.0,
            response_accuracy=0.0,
        )
        try:
            with self._session.begin_nested():
                self._session.add(record)
        except IntegrityError:
            existing = self.get_trust_score(agent_id, for_update=True)
            if existing is None:
                raise
            return existing
        return record

    def update_trust_score(self, record: TrustScoreRecord, **fields: object) -> TrustScoreRecord:
        """Assign *fields* on *record* and flush.

        Raises
        ------
        ValueError
            If a field name is not a mutable trust score column.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update trust score fields: {sorted(unknown)}")
        for name, value in fields.items():
            setattr(record, name, value)
        self._session.flush()
        return record

    # ------------------------------------------------------------------
    # XP ledger
    # ------------------------------------------------------------------

    def append_xp_history(
        self,
        agent_id: str,
        xp: int,
        action_type: XpActionType,
        description: str | None = None,
    ) -> XpHistoryRecord:
        """Append one entry to the XP ledger."""
        entry = XpHistoryRecord(
            agent_id=agent_id,
            xp=xp,
            action_type=XpActionType(action_type).value,
            description=description,
            created_at=datetime.datetime.now(datetime.timezone.utc),
        )
        self._session.add(entry)
        self._session.flush()
        return entry

    def xp_history(self, agent_id: str, limit: int | None = None) -> list[XpHistoryRecord]:
        """Return ledger entries for *agent_id*, newest first."""
        stmt = (
            select(XpHistoryRecord)
            .where(XpHistoryRecord.agent_id == agent_id)
            .order_by(XpHistoryRecord.created_at.desc(), XpHistoryRecord.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.scalars(stmt).all())

    def xp_total(self, agent_id: str) -> int:
        """Return the sum of every ledger delta for *agent_id*."""
        stmt = select(func.coalesce(func.sum(XpHistoryRecord.xp), 0)).where(
            XpHistoryRecord.agent_id == agent_id
        )
        return int(self._session.scalar(stmt) or 0)

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------

    def list_badges(self, active_only: bool = False) -> list[Badge]:
        """Return the badge catalog ordered by category, tier, and id."""
        stmt = select(BadgeRecord).order_by(BadgeRecord.category, BadgeRecord.tier, BadgeRecord.id)
        if active_only:
            stmt = stmt.where(BadgeRecord.is_active.is_(True))
        return [badge_from_record(r) for r in self._session.scalars(stmt).all()]

    def get_badge(self, badge_id: str) -> Badge | None:
        """Return the catalog badge with *badge_id*, or None."""
        record = self._session.get(BadgeRecord, badge_id)
        return badge_from_record(record) if record is not None else None

    def create_badge(self, badge: Badge) -> BadgeRecord | None:
        """Insert a catalog badge. Returns None if the badge_id is already taken."""
        record = badge_to_record(badge)
        try:
            with self._session.begin_nested():
                self._session.add(record)
        except IntegrityError:
            return None
        return record

    def update_badge(self, badge: Badge) -> BadgeRecord | None:
        """Overwrite the catalog row for ``badge.badge_id`` with *badge*'s fields.

        Returns None if no such row exists.
        """
        record = self._session.get(BadgeRecord, badge.badge_id)
        if record is None:
            return None
        record.name = badge.name
        record.description = badge.description
        record.category = badge.category.value
        record.tier = badge.tier.value
        record.requirement_type = badge.requirement_type.value
        record.requirement_value = float(badge.requirement_value)
        record.is_active = badge.is_active
        self._session.flush()
        return record

    def earned_badge_ids(self, record: TrustScoreRecord) -> set[str]:
        """Return the IDs of every badge already earned for *record*."""
        stmt = select(EarnedBadgeRecord.badge_id).where(
            EarnedBadgeRecord.trust_score_id == record.id
        )
        return set(self._session.scalars(stmt).all())

    def list_earned_badges(self, record: TrustScoreRecord) -> list[EarnedBadgeRecord]:
        """Return earned badges for *record* in award order."""
        stmt = (
            select(EarnedBadgeRecord)
            .where(EarnedBadgeRecord.trust_score_id == record.id)
            .order_by(EarnedBadgeRecord.earned_at, EarnedBadgeRecord.id)
        )
        return list(self._session.scalars(stmt).unique().all())

    def create_earned_badge(
        self,
        record: TrustScoreRecord,
        badge_id: str,
    ) -> EarnedBadgeRecord | None:
        """Insert an earned badge for *record*.

        The insert runs in a SAVEPOINT; if the (trust score, badge) pair
        already exists the savepoint is rolled back and None is returned.
        """
        earned = EarnedBadgeRecord(
            trust_score_id=record.id,
            badge_id=badge_id,
            earned_at=datetime.datetime.now(datetime.timezone.utc),
        )
        try:
            with self._session.begin_nested():
                self._session.add(earned)
        except IntegrityError:
            return None
        return earned
