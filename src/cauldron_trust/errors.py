"""Exception taxonomy for the trust engine.

Validation errors are raised before any storage read. Storage failures are
wrapped in :class:`PersistenceError` after the enclosing transaction has
been rolled back, so callers never observe a partially applied event.
"""
from __future__ import annotations


class TrustEngineError(Exception):
    """Base class for all errors raised by cauldron-trust."""


class InvalidRequestError(TrustEngineError, ValueError):
    """Raised when an operation receives malformed input (blank ids, negative XP)."""


class AgentNotFoundError(TrustEngineError, KeyError):
    """Raised when an agent_id is not known to the agent directory."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id!r} not found.")
        self.agent_id = agent_id

    def __str__(self) -> str:
        return str(self.args[0])


class BadgeNotFoundError(TrustEngineError, KeyError):
    """Raised when a badge_id is not present in the badge catalog."""

    def __init__(self, badge_id: str) -> None:
        super().__init__(f"Badge {badge_id!r} not found.")
        self.badge_id = badge_id

    def __str__(self) -> str:
        return str(self.args[0])


class BadgeAlreadyExistsError(TrustEngineError, ValueError):
    """Raised when creating a catalog badge whose badge_id is already taken."""

    def __init__(self, badge_id: str) -> None:
        super().__init__(f"Badge {badge_id!r} already exists.")
        self.badge_id = badge_id


class PersistenceError(TrustEngineError, RuntimeError):
    """Raised when the underlying store fails; the whole event was rolled back."""


class AuthorizationError(TrustEngineError, PermissionError):
    """Raised by the RBAC collaborator when a caller may not act on an agent."""


__all__ = [
    "AgentNotFoundError",
    "AuthorizationError",
    "BadgeAlreadyExistsError",
    "BadgeNotFoundError",
    "InvalidRequestError",
    "PersistenceError",
    "TrustEngineError",
]
