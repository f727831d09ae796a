"""RBACMiddleware — Role-Based Access Control for trust operations.

Defines a Role hierarchy with built-in roles (viewer, member, operator,
admin) and a permission-checking interface. Roles carry an ordered privilege
level so that higher roles subsume lower-role permissions.

Agent-scoped checks also require ownership: a user may act on an agent only
if the user owns it or holds the ``agents:any`` override.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum

from cauldron_trust.errors import AuthorizationError

AGENTS_READ = "agents:read"
AGENTS_UPDATE = "agents:update"
BADGES_READ = "badges:read"
BADGES_AWARD = "badges:award"
BADGES_MANAGE = "badges:manage"
XP_GRANT = "xp:grant"
ADMIN_OVERRIDE = "agents:any"


class PrivilegeLevel(IntEnum):
    """Ordered privilege levels corresponding to built-in roles.

    Higher values represent more privilege. Custom roles may use any integer.
    """

    VIEWER = 0
    MEMBER = 1
    OPERATOR = 2
    ADMIN = 3


@dataclass
class Role:
    """A named role with an associated privilege level and permission set.

    Parameters
    ----------
    name:
        Unique name for this role (e.g. "admin", "operator").
    privilege_level:
        Integer privilege level. Higher means more access.
    permissions:
        Explicit set of permission strings granted to this role.
    description:
        Human-readable description of the role.
    """

    name: str
    privilege_level: int
    permissions: set[str] = field(default_factory=set)
    description: str = ""

    def has_permission(self, permission: str) -> bool:
        """Return True if this role explicitly grants *permission*."""
        return permission in self.permissions


# ------------------------------------------------------------------
# Built-in roles
# ------------------------------------------------------------------

BUILTIN_ROLES: dict[str, Role] = {
    "viewer": Role(
        name="viewer",
        privilege_level=PrivilegeLevel.VIEWER,
        permissions={AGENTS_READ, BADGES_READ},
        description="Read-only access to trust scores and the badge catalog.",
    ),
    "member": Role(
        name="member",
        privilege_level=PrivilegeLevel.MEMBER,
        permissions={AGENTS_READ, AGENTS_UPDATE, BADGES_READ},
        description="Records tasks and feedback for the agents the user owns.",
    ),
    "operator": Role(
        name="operator",
        privilege_level=PrivilegeLevel.OPERATOR,
        permissions={AGENTS_READ, AGENTS_UPDATE, BADGES_READ, BADGES_AWARD, XP_GRANT},
        description="Grants XP and badges to the agents the user owns.",
    ),
    "admin": Role(
        name="admin",
        privilege_level=PrivilegeLevel.ADMIN,
        permissions={
            AGENTS_READ,
            AGENTS_UPDATE,
            BADGES_READ,
            BADGES_AWARD,
            BADGES_MANAGE,
            XP_GRANT,
            ADMIN_OVERRIDE,
        },
        description="Full access to every agent's trust record and the badge catalog.",
    ),
}


class RBACMiddleware:
    """Role-Based Access Control middleware.

    Manages role assignments for users and enforces permission checks.
    Built-in roles are available by default. Custom roles may be added via
    :meth:`add_role`.

    Parameters
    ----------
    allow_privilege_escalation:
        If True, a user with a role at privilege_level N is also considered
        to have all permissions held by any lower-privilege role.
        Defaults to True (i.e., admin can do everything operator can).
    """

    def __init__(self, allow_privilege_escalation: bool = True) -> None:
        self._roles: dict[str, Role] = {
            name: Role(r.name, r.privilege_level, set(r.permissions), r.description)
            for name, r in BUILTIN_ROLES.items()
        }
        self._assignments: dict[str, set[str]] = {}
        self._lock = threading.Lock()
        self._allow_escalation = allow_privilege_escalation

    # ------------------------------------------------------------------
    # Role management
    # ------------------------------------------------------------------

    def add_role(self, role: Role) -> None:
        """Register a custom role.

        Raises
        ------
        ValueError
            If a role with this name already exists.
        """
        with self._lock:
            if role.name in self._roles:
                raise ValueError(f"Role {role.name!r} already exists.")
            self._roles[role.name] = role

    def get_role(self, role_name: str) -> Role:
        """Return the Role object for *role_name*.

        Raises
        ------
        KeyError
            If the role does not exist.
        """
        with self._lock:
            if role_name not in self._roles:
                raise KeyError(f"Role {role_name!r} is not defined.")
            return self._roles[role_name]

    def list_roles(self) -> list[str]:
        """Return sorted list of all role names."""
        with self._lock:
            return sorted(self._roles.keys())

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_role(self, user_id: str, role_name: str) -> None:
        """Assign a role to a user.

        Raises
        ------
        KeyError
            If the role does not exist.
        """
        with self._lock:
            if role_name not in self._roles:
                raise KeyError(f"Role {role_name!r} is not defined.")
            self._assignments.setdefault(user_id, set()).add(role_name)

    def revoke_role(self, user_id: str, role_name: str) -> None:
        """Remove a role from a user. No-op if not assigned."""
        with self._lock:
            if user_id in self._assignments:
                self._assignments[user_id].discard(role_name)

    def get_user_roles(self, user_id: str) -> list[str]:
        """Return sorted list of role names assigned to a user."""
        with self._lock:
            return sorted(self._assignments.get(user_id, set()))

    # ------------------------------------------------------------------
    # Permission checking
    # ------------------------------------------------------------------

    def check_permission(self, user_id: str, permission: str) -> bool:
        """Return True if a user holds the given permission through any role.

        If ``allow_privilege_escalation`` is True, permissions from
        lower-privilege roles are also considered.
        """
        with self._lock:
            role_names = set(self._assignments.get(user_id, set()))
            roles = [self._roles[n] for n in role_names if n in self._roles]
            all_roles = list(self._roles.values())

        for role in roles:
            if role.has_permission(permission):
                return True
            if self._allow_escalation:
                for other in all_roles:
                    if other.privilege_level <= role.privilege_level and other.has_permission(
                        permission
                    ):
                        return True
        return False

    def authorize(self, user_id: str, permission: str, owner_id: str | None = None) -> bool:
        """Return True if *user_id* may exercise *permission* on an agent.

        Parameters
        ----------
        user_id:
            The calling user.
        permission:
            The permission string required (e.g. ``"xp:grant"``).
        owner_id:
            Owner of the target agent. When None the check is not agent-scoped
            and only the permission is required.
        """
        if not user_id or not self.check_permission(user_id, permission):
            return False
        if owner_id is None or owner_id == user_id:
            return True
        return self.check_permission(user_id, ADMIN_OVERRIDE)

    def require(self, user_id: str, permission: str, owner_id: str | None = None) -> None:
        """Raise AuthorizationError unless :meth:`authorize` grants the request.

        Raises
        ------
        AuthorizationError
            If the user lacks the permission or does not own the agent.
        """
        if not self.authorize(user_id, permission, owner_id):
            raise AuthorizationError(
                f"User {user_id!r} does not have permission {permission!r} for this agent."
            )


__all__ = [
    "ADMIN_OVERRIDE",
    "AGENTS_READ",
    "AGENTS_UPDATE",
    "BADGES_AWARD",
    "BADGES_MANAGE",
    "BADGES_READ",
    "BUILTIN_ROLES",
    "PrivilegeLevel",
    "RBACMiddleware",
    "Role",
    "XP_GRANT",
]
