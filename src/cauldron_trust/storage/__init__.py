"""Relational trust store: ORM models, transactions, and the repository."""
from __future__ import annotations

from cauldron_trust.storage.database import Database
from cauldron_trust.storage.models import (
    Base,
    BadgeRecord,
    EarnedBadgeRecord,
    TrustScoreRecord,
    XpHistoryRecord,
)
from cauldron_trust.storage.repository import (
    TrustScoreRepository,
    badge_from_record,
    badge_to_record,
)

__all__ = [
    "Base",
    "BadgeRecord",
    "Database",
    "EarnedBadgeRecord",
    "TrustScoreRecord",
    "TrustScoreRepository",
    "XpHistoryRecord",
    "badge_from_record",
    "badge_to_record",
]
