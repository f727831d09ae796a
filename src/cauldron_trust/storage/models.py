"""Database models for the trust score store."""
from __future__ import annotations

import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class UtcDateTime(TypeDecorator):
    """Timezone-aware datetime stored as UTC.

    SQLite keeps no offset, so values are converted to UTC on the way in
    and stamped with UTC on the way out. Naive inputs are taken as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)

    def process_result_value(self, value, dialect):  # type: ignore[no-untyped-def]
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)


class TrustScoreRecord(Base):
    """One row per agent: cumulative XP, level, counters, and derived scores."""

    __tablename__ = "trust_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_id = Column(String(255), unique=True, index=True, nullable=False)
    experience_points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    trust_score = Column(Float, nullable=False, default=0.0)
    successful_tasks = Column(Integer, nullable=False, default=0)
    failed_tasks = Column(Integer, nullable=False, default=0)
    positive_ratings = Column(Integer, nullable=False, default=0)
    negative_ratings = Column(Integer, nullable=False, default=0)
    neutral_ratings = Column(Integer, nullable=False, default=0)
    feedback_count = Column(Integer, nullable=False, default=0)
    approval_rate = Column(Float, nullable=False, default=0.0)
    response_accuracy = Column(Float, nullable=False, default=0.0)
    last_level_up_at = Column(UtcDateTime(), nullable=True)
    created_at = Column(UtcDateTime(), nullable=False, default=_utcnow)
    updated_at = Column(UtcDateTime(), nullable=False, default=_utcnow, onupdate=_utcnow)

    earned_badges = relationship(
        "EarnedBadgeRecord",
        back_populates="trust_score",
        order_by="EarnedBadgeRecord.id",
        cascade="all, delete-orphan",
    )


class BadgeRecord(Base):
    """Badge catalog entry. Read-only from the engine's point of view."""

    __tablename__ = "trust_badges"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(50), nullable=False)
    tier = Column(String(50), nullable=False)
    requirement_type = Column(String(50), nullable=False)
    requirement_value = Column(Float, nullable=False, default=1.0)
    is_active = Column(Boolean, nullable=False, default=True)


class EarnedBadgeRecord(Base):
    """A badge earned by an agent. Each (trust score, badge) pair exists at most once."""

    __tablename__ = "earned_badges"
    __table_args__ = (
        UniqueConstraint("trust_score_id", "badge_id", name="uq_earned_badge_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    trust_score_id = Column(Integer, ForeignKey("trust_scores.id"), nullable=False, index=True)
    badge_id = Column(String(100), ForeignKey("trust_badges.id"), nullable=False)
    earned_at = Column(UtcDateTime(), nullable=False, default=_utcnow)

    trust_score = relationship("TrustScoreRecord", back_populates="earned_badges")
    badge = relationship("BadgeRecord", lazy="joined")


class XpHistoryRecord(Base):
    """Append-only XP ledger entry."""

    __tablename__ = "xp_history"
    __table_args__ = (
        Index("ix_xp_history_agent_created", "agent_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    agent_id = Column(String(255), nullable=False)
    xp = Column(Integer, nullable=False)
    action_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(UtcDateTime(), nullable=False, default=_utcnow)
