"""Trust middleware — authorization and audit logging.

Provides two independent components:

- :class:`RBACMiddleware` — role-based permission and ownership checks
- :class:`TrustAuditLogger` — append-only JSONL trail of committed trust events

Quick start
-----------
::

    from cauldron_trust.middleware import RBACMiddleware, TrustAuditLogger

    rbac = RBACMiddleware()
    rbac.assign_role("user-42", "operator")
    rbac.require("user-42", "xp:grant", owner_id="user-42")

    audit = TrustAuditLogger()
    audit.log_badge_earned("agent-001", "first-steps", "First Steps")
"""
from __future__ import annotations

from cauldron_trust.middleware.audit import AuditEvent, TrustAuditLogger
from cauldron_trust.middleware.rbac import BUILTIN_ROLES, PrivilegeLevel, RBACMiddleware, Role

__all__ = [
    "AuditEvent",
    "BUILTIN_ROLES",
    "PrivilegeLevel",
    "RBACMiddleware",
    "Role",
    "TrustAuditLogger",
]
