"""cauldron-trust — Agent trust scoring, XP leveling, and badge awards.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import cauldron_trust
>>> cauldron_trust.__version__
'0.1.0'

Quick start
-----------
::

    from cauldron_trust import Database, TrustEngine

    db = Database("sqlite:///trust.db")
    db.create_all()
    db.seed_badges()

    engine = TrustEngine(db)
    engine.record_task("agent-001", success=True, task_type="code_review")
    engine.record_feedback("agent-001", rating=5)
    view = engine.get_agent_trust_score("agent-001")
    print(view.level, view.trust_level.value, view.trust_score)
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ------------------------------------------------------------------
# Scoring
# ------------------------------------------------------------------
from cauldron_trust.scoring import (
    ScoringPolicy,
    TrustSnapshot,
    TrustTier,
    XpActionType,
    compute_trust_score,
    level_for_xp,
    level_progress,
    trust_tier,
    xp_required_for_level,
)

# ------------------------------------------------------------------
# Badges
# ------------------------------------------------------------------
from cauldron_trust.badges import (
    DEFAULT_BADGES,
    Badge,
    BadgeAwarder,
    BadgeCategory,
    BadgeTier,
    RequirementType,
)
from cauldron_trust.badges.manager import BadgeCatalogManager

# ------------------------------------------------------------------
# Storage and engine
# ------------------------------------------------------------------
from cauldron_trust.storage import Database, TrustScoreRepository
from cauldron_trust.engine import (
    AwardResult,
    EarnedBadge,
    TrustEngine,
    TrustScoreView,
    XpHistoryEntry,
    build_engine,
)

# ------------------------------------------------------------------
# Collaborators
# ------------------------------------------------------------------
from cauldron_trust.config import Settings, load_settings
from cauldron_trust.errors import (
    AgentNotFoundError,
    AuthorizationError,
    BadgeAlreadyExistsError,
    BadgeNotFoundError,
    InvalidRequestError,
    PersistenceError,
    TrustEngineError,
)
from cauldron_trust.middleware import AuditEvent, RBACMiddleware, Role, TrustAuditLogger
from cauldron_trust.registry import AgentAlreadyRegisteredError, AgentDirectory, AgentRecord

__all__ = [
    "__version__",
    # Scoring
    "ScoringPolicy",
    "TrustSnapshot",
    "TrustTier",
    "XpActionType",
    "compute_trust_score",
    "level_for_xp",
    "level_progress",
    "trust_tier",
    "xp_required_for_level",
    # Badges
    "DEFAULT_BADGES",
    "Badge",
    "BadgeAwarder",
    "BadgeCatalogManager",
    "BadgeCategory",
    "BadgeTier",
    "RequirementType",
    # Storage and engine
    "AwardResult",
    "Database",
    "EarnedBadge",
    "TrustEngine",
    "TrustScoreRepository",
    "TrustScoreView",
    "XpHistoryEntry",
    "build_engine",
    # Collaborators
    "AgentAlreadyRegisteredError",
    "AgentDirectory",
    "AgentNotFoundError",
    "AgentRecord",
    "AuditEvent",
    "AuthorizationError",
    "BadgeAlreadyExistsError",
    "BadgeNotFoundError",
    "InvalidRequestError",
    "PersistenceError",
    "RBACMiddleware",
    "Role",
    "Settings",
    "TrustAuditLogger",
    "TrustEngineError",
    "load_settings",
]
