"""BadgeCatalogManager — administrative changes to the badge catalog.

The trust engine only reads the catalog. Creating badges, editing their
thresholds, and switching them on or off goes through this class, each
change in its own transaction. Deactivating a badge stops automatic awards
but keeps every badge already earned; lowering a threshold takes effect at
the agent's next event or :meth:`TrustEngine.check_for_badges` call.
"""
from __future__ import annotations

import dataclasses
import logging
import math
import re

from cauldron_trust.badges.catalog import Badge, BadgeCategory, BadgeTier, RequirementType
from cauldron_trust.errors import BadgeAlreadyExistsError, BadgeNotFoundError, InvalidRequestError
from cauldron_trust.storage.database import Database
from cauldron_trust.storage.repository import TrustScoreRepository

logger = logging.getLogger(__name__)

BADGE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,99}$")

_EDITABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "category",
        "tier",
        "requirement_type",
        "requirement_value",
        "is_active",
    }
)


class BadgeCatalogManager:
    """Creates and edits catalog badges.

    Parameters
    ----------
    database:
        The trust store whose catalog is managed.

    Example
    -------
    ::

        manager = BadgeCatalogManager(db)
        manager.create_badge(
            Badge("reviewer", "Reviewer", "Reviewed 5 tasks", BadgeCategory.COLLABORATION,
                  BadgeTier.BRONZE, RequirementType.TASKS, 5)
        )
        manager.update_badge("reviewer", is_active=False)
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def create_badge(self, badge: Badge, actor_id: str = "system") -> Badge:
        """Add *badge* to the catalog.

        Raises
        ------
        InvalidRequestError
            If the badge id, name, or threshold is malformed.
        BadgeAlreadyExistsError
            If a badge with the same id exists.
        """
        _validate_badge(badge)
        with self._database.transaction() as session:
            if TrustScoreRepository(session).create_badge(badge) is None:
                raise BadgeAlreadyExistsError(badge.badge_id)
        logger.info("Badge %s created by %s", badge.badge_id, actor_id)
        return badge

    def update_badge(self, badge_id: str, actor_id: str = "system", **changes: object) -> Badge:
        """Change selected fields of a catalog badge.

        Fields passed as None are left unchanged. Enum fields accept either
        the enum member or its string value.

        Raises
        ------
        InvalidRequestError
            If a field is unknown or a value is malformed.
        BadgeNotFoundError
            If *badge_id* is not in the catalog.
        """
        if not isinstance(badge_id, str) or not badge_id.strip():
            raise InvalidRequestError("badge_id must be a non-empty string")
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise InvalidRequestError(f"Cannot update badge fields: {sorted(unknown)}")
        updates = _coerce({k: v for k, v in changes.items() if v is not None})

        with self._database.transaction() as session:
            repo = TrustScoreRepository(session)
            existing = repo.get_badge(badge_id)
            if existing is None:
                raise BadgeNotFoundError(badge_id)
            updated = dataclasses.replace(existing, **updates)
            _validate_badge(updated)
            repo.update_badge(updated)

        logger.info("Badge %s updated by %s: %s", badge_id, actor_id, sorted(updates))
        return updated


# ------------------------------------------------------------------
# Validation helpers
# ------------------------------------------------------------------


def _coerce(updates: dict[str, object]) -> dict[str, object]:
    converters = {
        "category": BadgeCategory,
        "tier": BadgeTier,
        "requirement_type": RequirementType,
    }
    coerced: dict[str, object] = {}
    for name, value in updates.items():
        try:
            if name in converters:
                value = converters[name](value)
            elif name == "requirement_value":
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"requirement_value must be a number, got {value!r}")
                value = float(value)
            elif name == "is_active" and not isinstance(value, bool):
                raise ValueError(f"is_active must be a boolean, got {value!r}")
            elif name in ("name", "description") and not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {value!r}")
        except ValueError as exc:
            raise InvalidRequestError(str(exc)) from None
        coerced[name] = value
    return coerced


def _validate_badge(badge: Badge) -> None:
    if not isinstance(badge.badge_id, str) or not BADGE_ID_PATTERN.match(badge.badge_id):
        raise InvalidRequestError(
            f"badge_id must be 1-100 letters, digits, '.', '_' or '-', got {badge.badge_id!r}"
        )
    if not isinstance(badge.name, str) or not badge.name.strip():
        raise InvalidRequestError("Badge name must not be blank")
    for name, enum_type in (
        ("category", BadgeCategory),
        ("tier", BadgeTier),
        ("requirement_type", RequirementType),
    ):
        if not isinstance(getattr(badge, name), enum_type):
            raise InvalidRequestError(f"{name} must be a {enum_type.__name__}")
    value = badge.requirement_value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidRequestError(f"requirement_value must be a number, got {value!r}")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidRequestError(
            f"requirement_value must be a finite non-negative number, got {badge.requirement_value!r}"
        )


__all__ = ["BADGE_ID_PATTERN", "BadgeCatalogManager"]
