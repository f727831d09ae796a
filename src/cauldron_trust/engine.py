"""TrustEngine — the single mutating entry point for agent trust records.

Every public operation:

1. validates its arguments before touching storage,
2. confirms the agent exists in the directory (when one is configured),
3. takes the agent's lock and opens one database transaction,
4. fetches or lazily creates the agent's trust row (``SELECT ... FOR UPDATE``),
5. applies counters, XP ledger entries, level advancement, derived scores,
   and badge awards,
6. commits, and only then emits audit events and log lines.

Any failure inside step 3 – 5 rolls the whole event back.
"""
from __future__ import annotations

import datetime
import logging
import threading
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from cauldron_trust.badges.awarder import BadgeAwarder
from cauldron_trust.badges.catalog import Badge
from cauldron_trust.config import Settings
from cauldron_trust.errors import BadgeNotFoundError, InvalidRequestError
from cauldron_trust.middleware.audit import TrustAuditLogger
from cauldron_trust.registry.agent_directory import AgentDirectory
from cauldron_trust.scoring.actions import XpActionType
from cauldron_trust.scoring.composite import recompute_derived
from cauldron_trust.scoring.level import (
    TrustTier,
    advance_level,
    progress_to_next_level,
    success_rate,
    trust_tier,
    xp_required_for_level,
)
from cauldron_trust.scoring.policy import ScoringPolicy
from cauldron_trust.scoring.snapshot import TrustSnapshot
from cauldron_trust.storage.database import Database
from cauldron_trust.storage.models import TrustScoreRecord
from cauldron_trust.storage.repository import TrustScoreRepository, badge_from_record

logger = logging.getLogger(__name__)

# Same-agent mutations share a stripe; distinct agents usually do not.
LOCK_STRIPES = 64


# ------------------------------------------------------------------
# Result types
# ------------------------------------------------------------------


@dataclass(frozen=True)
class EarnedBadge:
    """A badge held by an agent and when it was earned."""

    badge: Badge
    earned_at: datetime.datetime

    def to_dict(self) -> dict[str, object]:
        data = self.badge.to_dict()
        data["earned_at"] = self.earned_at.isoformat()
        return data


@dataclass(frozen=True)
class XpHistoryEntry:
    """One entry of an agent's XP ledger."""

    entry_id: int
    agent_id: str
    xp: int
    action_type: XpActionType
    description: str | None
    created_at: datetime.datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.entry_id,
            "agent_id": self.agent_id,
            "xp": self.xp,
            "action_type": self.action_type.value,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class TrustScoreView:
    """Raw trust record fields plus derived, read-only statistics.

    ``new_badges`` lists the badges awarded by the operation that produced
    this view; it is empty for plain reads.
    """

    agent_id: str
    experience_points: int
    level: int
    trust_score: float
    successful_tasks: int
    failed_tasks: int
    positive_ratings: int
    negative_ratings: int
    neutral_ratings: int
    feedback_count: int
    approval_rate: float
    response_accuracy: float
    last_level_up_at: datetime.datetime | None
    trust_level: TrustTier
    xp_for_next_level: int
    level_progress: float
    success_rate: float
    total_tasks: int
    earned_badges: tuple[EarnedBadge, ...] = ()
    badges_by_category: dict[str, int] = field(default_factory=dict)
    badges_by_tier: dict[str, int] = field(default_factory=dict)
    new_badges: tuple[Badge, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "agent_id": self.agent_id,
            "experience_points": self.experience_points,
            "level": self.level,
            "trust_score": self.trust_score,
            "successful_tasks": self.successful_tasks,
            "failed_tasks": self.failed_tasks,
            "positive_ratings": self.positive_ratings,
            "negative_ratings": self.negative_ratings,
            "neutral_ratings": self.neutral_ratings,
            "feedback_count": self.feedback_count,
            "approval_rate": self.approval_rate,
            "response_accuracy": self.response_accuracy,
            "last_level_up_at": (
                self.last_level_up_at.isoformat() if self.last_level_up_at else None
            ),
            "trust_level": self.trust_level.value,
            "xp_for_next_level": self.xp_for_next_level,
            "level_progress": self.level_progress,
            "success_rate": self.success_rate,
            "total_tasks": self.total_tasks,
            "earned_badges": [eb.to_dict() for eb in self.earned_badges],
            "badges_by_category": dict(self.badges_by_category),
            "badges_by_tier": dict(self.badges_by_tier),
            "new_badges": [b.badge_id for b in self.new_badges],
        }


@dataclass(frozen=True)
class AwardResult:
    """Outcome of a manual badge award."""

    success: bool
    message: str
    badge: Badge | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "success": self.success,
            "message": self.message,
            "badge_id": self.badge.badge_id if self.badge else None,
        }


# ------------------------------------------------------------------
# Unit of work
# ------------------------------------------------------------------


class _Mutation:
    """State carried through one transactional event for one agent."""

    def __init__(self, repo: TrustScoreRepository, record: TrustScoreRecord, actor_id: str) -> None:
        self.repo = repo
        self.record = record
        self.actor_id = actor_id
        self.new_badges: list[Badge] = []
        self.events: list[tuple[str, dict[str, object]]] = []

    def emit(self, event_type: str, **details: object) -> None:
        self.events.append((event_type, details))


class TrustEngine:
    """Agent trust scoring, XP leveling, and badge awarding over a relational store.

    Parameters
    ----------
    database:
        The trust store.
    directory:
        Optional agent directory. When set, unknown agent IDs raise
        :class:`~cauldron_trust.errors.AgentNotFoundError` before any read.
    policy:
        XP rewards and composite weights. Defaults to ``ScoringPolicy()``.
    awarder:
        Badge evaluator. Defaults to ``BadgeAwarder()``.
    audit_logger:
        Sink for committed trust events. Defaults to an in-memory logger.

    Example
    -------
    ::

        db = Database("sqlite://")
        db.create_all()
        db.seed_badges()
        engine = TrustEngine(db)
        view = engine.record_task("agent-001", success=True)
        print(view.experience_points, view.trust_level.value)
    """

    def __init__(
        self,
        database: Database,
        directory: AgentDirectory | None = None,
        policy: ScoringPolicy | None = None,
        awarder: BadgeAwarder | None = None,
        audit_logger: TrustAuditLogger | None = None,
    ) -> None:
        self._database = database
        self._directory = directory
        self._policy = policy if policy is not None else ScoringPolicy()
        self._policy.validate_weights()
        self._awarder = awarder if awarder is not None else BadgeAwarder()
        self._audit = audit_logger if audit_logger is not None else TrustAuditLogger()

        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    @property
    def database(self) -> Database:
        return self._database

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    @property
    def audit_logger(self) -> TrustAuditLogger:
        return self._audit

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_agent_trust_score(self, agent_id: str) -> TrustScoreView:
        """Return the agent's trust view, creating a zero-state record if needed."""
        with self._mutation(agent_id, actor_id="system") as unit:
            return self._build_view(unit)

    def list_badges(self, active_only: bool = False) -> list[Badge]:
        """Return the badge catalog."""
        with self._database.transaction() as session:
            return TrustScoreRepository(session).list_badges(active_only=active_only)

    def xp_history(self, agent_id: str, limit: int | None = None) -> list[XpHistoryEntry]:
        """Return the agent's XP ledger, newest first.

        Raises
        ------
        InvalidRequestError
            If *agent_id* is blank or *limit* is not positive.
        """
        _validate_agent_id(agent_id)
        if limit is not None and limit <= 0:
            raise InvalidRequestError("limit must be a positive integer")
        self._ensure_agent(agent_id)
        with self._database.transaction() as session:
            rows = TrustScoreRepository(session).xp_history(agent_id, limit=limit)
            return [
                XpHistoryEntry(
                    entry_id=row.id,
                    agent_id=row.agent_id,
                    xp=row.xp,
                    action_type=XpActionType(row.action_type),
                    description=row.description,
                    created_at=row.created_at,
                )
                for row in rows
            ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def award_xp(
        self,
        agent_id: str,
        amount: int | None,
        action_type: XpActionType | str,
        description: str | None = None,
        actor_id: str = "system",
    ) -> TrustScoreView:
        """Add *amount* XP to the agent, advance its level, and check badges.

        When *amount* is None the policy's default XP for *action_type* is used.

        Raises
        ------
        InvalidRequestError
            If *amount* is negative or *action_type* is unknown.
        """
        action = _parse_action_type(action_type)
        if amount is None:
            amount = self._policy.default_xp_for(action)
        _validate_amount(amount)
        with self._mutation(agent_id, actor_id) as unit:
            self._apply_xp(unit, amount, action, description)
            self._recompute_derived(unit)
            self._award_unlocked_badges(unit)
            return self._build_view(unit)

    def record_task(
        self,
        agent_id: str,
        success: bool,
        task_type: str | None = None,
        details: str | None = None,
        actor_id: str = "system",
    ) -> TrustScoreView:
        """Record one task completion event.

        Increments exactly one of the task counters, awards the task
        completion XP on success, and evaluates badges either way.
        """
        with self._mutation(agent_id, actor_id) as unit:
            record = unit.record
            if success:
                unit.repo.update_trust_score(record, successful_tasks=record.successful_tasks + 1)
            else:
                unit.repo.update_trust_score(record, failed_tasks=record.failed_tasks + 1)
            unit.emit("task_recorded", success=success, task_type=task_type, details=details)

            if success:
                description = "Successful task completion"
                if task_type:
                    description += f" ({task_type})"
                self._apply_xp(
                    unit,
                    self._policy.task_completion_xp,
                    XpActionType.TASK_COMPLETION,
                    description,
                )
            self._recompute_derived(unit)
            self._award_unlocked_badges(unit)
            return self._build_view(unit)

    def record_feedback(
        self,
        agent_id: str,
        rating: int,
        actor_id: str = "system",
    ) -> TrustScoreView:
        """Record a 1 – 5 rating for the agent.

        Ratings at or above the policy's positive threshold count as positive
        and earn XP; ratings at or below the negative threshold count as
        negative; anything in between is neutral.

        Raises
        ------
        InvalidRequestError
            If *rating* is not an integer between 1 and 5.
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise InvalidRequestError(f"rating must be an integer from 1 to 5, got {rating!r}")

        policy = self._policy
        with self._mutation(agent_id, actor_id) as unit:
            record = unit.repo.update_trust_score(
                unit.record, feedback_count=unit.record.feedback_count + 1
            )
            if rating >= policy.positive_rating_threshold:
                unit.repo.update_trust_score(record, positive_ratings=record.positive_ratings + 1)
            elif rating <= policy.negative_rating_threshold:
                unit.repo.update_trust_score(record, negative_ratings=record.negative_ratings + 1)
            else:
                unit.repo.update_trust_score(record, neutral_ratings=record.neutral_ratings + 1)
            unit.emit("feedback_recorded", rating=rating)

            if rating >= policy.positive_rating_threshold:
                self._apply_xp(
                    unit,
                    policy.positive_feedback_xp,
                    XpActionType.POSITIVE_FEEDBACK,
                    "Positive feedback received",
                )
            self._recompute_derived(unit)
            self._award_unlocked_badges(unit)
            return self._build_view(unit)

    def award_badge(
        self,
        agent_id: str,
        badge_id: str,
        actor_id: str = "system",
    ) -> AwardResult:
        """Grant a catalog badge manually.

        Idempotent: a badge the agent already holds yields
        ``AwardResult(success=False, message="Badge already earned")``.

        Raises
        ------
        BadgeNotFoundError
            If *badge_id* is not in the catalog.
        """
        if not isinstance(badge_id, str) or not badge_id.strip():
            raise InvalidRequestError("badge_id must be a non-empty string")

        with self._mutation(agent_id, actor_id) as unit:
            badge = unit.repo.get_badge(badge_id)
            if badge is None:
                raise BadgeNotFoundError(badge_id)

            if badge_id in unit.repo.earned_badge_ids(unit.record):
                return AwardResult(success=False, message="Badge already earned", badge=badge)
            if not self._grant_badge(unit, badge, manual=True):
                return AwardResult(success=False, message="Badge already earned", badge=badge)

            self._recompute_derived(unit)
            self._award_unlocked_badges(unit)
            return AwardResult(success=True, message=f"Badge {badge.name!r} awarded", badge=badge)

    def check_for_badges(self, agent_id: str, actor_id: str = "system") -> list[Badge]:
        """Re-evaluate every unearned badge for the agent and award those unlocked.

        Safe to call redundantly; already-earned badges are never re-awarded.
        """
        with self._mutation(agent_id, actor_id) as unit:
            self._award_unlocked_badges(unit)
            return list(unit.new_badges)

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _mutation(self, agent_id: str, actor_id: str) -> Iterator[_Mutation]:
        """Serialize on the agent, open a transaction, and load the trust row."""
        _validate_agent_id(agent_id)
        self._ensure_agent(agent_id)

        with self._lock_for(agent_id):
            with self._database.transaction() as session:
                repo = TrustScoreRepository(session)
                record = repo.get_trust_score(agent_id, for_update=True)
                if record is None:
                    record = repo.create_trust_score(agent_id)
                    logger.debug("Created zero-state trust record for agent %s", agent_id)
                unit = _Mutation(repo, record, actor_id)
                yield unit

        self._publish(agent_id, unit)

    def _lock_for(self, agent_id: str) -> threading.Lock:
        """Return the lock stripe *agent_id* hashes to."""
        return self._locks[zlib.crc32(agent_id.encode("utf-8")) % LOCK_STRIPES]

    def _ensure_agent(self, agent_id: str) -> None:
        if self._directory is not None:
            self._directory.get(agent_id)

    def _publish(self, agent_id: str, unit: _Mutation) -> None:
        """Emit the committed event's audit records and log lines."""
        audit = self._audit
        actor_id = unit.actor_id
        for event_type, details in unit.events:
            if event_type == "xp_awarded":
                audit.log_xp_awarded(agent_id, actor_id=actor_id, **details)  # type: ignore[arg-type]
            elif event_type == "level_up":
                audit.log_level_up(agent_id, actor_id=actor_id, **details)  # type: ignore[arg-type]
                logger.info(
                    "Agent %s leveled up %s -> %s (%s)",
                    agent_id,
                    details["old_level"],
                    details["new_level"],
                    details["trust_tier"],
                )
            elif event_type == "badge_earned":
                audit.log_badge_earned(agent_id, actor_id=actor_id, **details)  # type: ignore[arg-type]
                logger.info("Agent %s earned badge %s", agent_id, details["badge_id"])
            else:
                audit.log_event(event_type, agent_id=agent_id, actor_id=actor_id, **details)

    # ------------------------------------------------------------------
    # Event steps (run inside the transaction)
    # ------------------------------------------------------------------

    def _apply_xp(
        self,
        unit: _Mutation,
        amount: int,
        action_type: XpActionType,
        description: str | None,
    ) -> None:
        """Append a ledger entry and advance XP and level together."""
        record = unit.record
        unit.repo.append_xp_history(record.agent_id, amount, action_type, description)

        old_level = record.level
        new_total = record.experience_points + amount
        new_level = advance_level(new_total, old_level)

        fields: dict[str, object] = {"experience_points": new_total, "level": new_level}
        if new_level > old_level:
            fields["last_level_up_at"] = datetime.datetime.now(datetime.timezone.utc)
        unit.repo.update_trust_score(record, **fields)

        unit.emit("xp_awarded", xp=amount, action_type=action_type.value, total_xp=new_total)
        if new_level > old_level:
            unit.emit(
                "level_up",
                old_level=old_level,
                new_level=new_level,
                trust_tier=trust_tier(new_level).value,
            )

    def _recompute_derived(self, unit: _Mutation) -> None:
        recompute_derived(unit.record, self._policy)
        unit.repo.update_trust_score(unit.record)

    def _grant_badge(self, unit: _Mutation, badge: Badge, manual: bool = False) -> bool:
        """Insert the earned badge and pay its XP bonus. False if already held."""
        earned = unit.repo.create_earned_badge(unit.record, badge.badge_id)
        if earned is None:
            return False
        unit.new_badges.append(badge)
        unit.emit("badge_earned", badge_id=badge.badge_id, badge_name=badge.name, manual=manual)
        self._apply_xp(
            unit,
            self._policy.badge_bonus_xp,
            XpActionType.BADGE_EARNED,
            f"Earned badge: {badge.name}",
        )
        return True

    def _award_unlocked_badges(self, unit: _Mutation) -> None:
        """Award every badge the current snapshot unlocks.

        A badge bonus can push XP or level over another badge's threshold,
        so evaluation repeats until a pass awards nothing. Each badge is
        attempted at most once, which bounds the loop by the catalog size.
        """
        catalog = unit.repo.list_badges()
        attempted: set[str] = set()
        while True:
            earned = unit.repo.earned_badge_ids(unit.record) | attempted
            snapshot = TrustSnapshot.from_record(unit.record)
            unlocked = self._awarder.evaluate(snapshot, catalog, earned)
            if not unlocked:
                break
            for badge in unlocked:
                attempted.add(badge.badge_id)
                self._grant_badge(unit, badge)
            self._recompute_derived(unit)

    def _build_view(self, unit: _Mutation) -> TrustScoreView:
        record = unit.record
        earned = tuple(
            EarnedBadge(badge=badge_from_record(row.badge), earned_at=row.earned_at)
            for row in unit.repo.list_earned_badges(record)
        )
        by_category: dict[str, int] = {}
        by_tier: dict[str, int] = {}
        for eb in earned:
            by_category[eb.badge.category.value] = by_category.get(eb.badge.category.value, 0) + 1
            by_tier[eb.badge.tier.value] = by_tier.get(eb.badge.tier.value, 0) + 1

        return TrustScoreView(
            agent_id=record.agent_id,
            experience_points=record.experience_points,
            level=record.level,
            trust_score=record.trust_score,
            successful_tasks=record.successful_tasks,
            failed_tasks=record.failed_tasks,
            positive_ratings=record.positive_ratings,
            negative_ratings=record.negative_ratings,
            neutral_ratings=record.neutral_ratings,
            feedback_count=record.feedback_count,
            approval_rate=record.approval_rate,
            response_accuracy=record.response_accuracy,
            last_level_up_at=record.last_level_up_at,
            trust_level=trust_tier(record.level),
            xp_for_next_level=xp_required_for_level(record.level + 1),
            level_progress=progress_to_next_level(record.experience_points, record.level),
            success_rate=success_rate(record.successful_tasks, record.failed_tasks),
            total_tasks=record.successful_tasks + record.failed_tasks,
            earned_badges=earned,
            badges_by_category=by_category,
            badges_by_tier=by_tier,
            new_badges=tuple(unit.new_badges),
        )


def build_engine(settings: Settings, directory: AgentDirectory | None = None) -> TrustEngine:
    """Create a :class:`TrustEngine` over the store described by *settings*.

    The schema is created and the default badge catalog seeded if missing.
    """
    database = Database(settings.database_url, echo=settings.echo_sql)
    database.create_all()
    database.seed_badges()
    return TrustEngine(
        database,
        directory=directory,
        policy=settings.scoring,
        audit_logger=TrustAuditLogger(settings.audit_log_path),
    )


# ------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------


def _validate_agent_id(agent_id: object) -> None:
    if not isinstance(agent_id, str) or not agent_id.strip():
        raise InvalidRequestError("agent_id must be a non-empty string")


def _validate_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidRequestError(f"XP amount must be an integer, got {amount!r}")
    if amount < 0:
        raise InvalidRequestError(f"XP amount must not be negative, got {amount}")


def _parse_action_type(action_type: XpActionType | str) -> XpActionType:
    try:
        return XpActionType(action_type)
    except ValueError:
        raise InvalidRequestError(f"Unknown XP action type {action_type!r}") from None


__all__ = [
    "AwardResult",
    "EarnedBadge",
    "TrustEngine",
    "TrustScoreView",
    "XpHistoryEntry",
    "build_engine",
]
