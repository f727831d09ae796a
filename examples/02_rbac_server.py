#!/usr/bin/env python3
"""Example: RBAC-guarded route handlers

Demonstrates wiring an agent directory and role assignments into the
HTTP route handlers, then calling them directly as the server would.

Usage:
    python examples/02_rbac_server.py

Requirements:
    pip install cauldron-trust
"""
from __future__ import annotations

from cauldron_trust import AgentDirectory, Database, RBACMiddleware, TrustEngine
from cauldron_trust.server import routes


def main() -> None:
    # Step 1: Register agents and their owners
    directory = AgentDirectory()
    directory.register("agent-alpha", owner_id="alice")
    directory.register("agent-beta", owner_id="bob")

    # Step 2: Assign roles
    rbac = RBACMiddleware()
    rbac.assign_role("alice", "operator")
    rbac.assign_role("bob", "member")
    rbac.assign_role("root", "admin")

    db = Database("sqlite://")
    db.create_all()
    db.seed_badges()
    routes.reset_state(engine=TrustEngine(db, directory=directory), rbac=rbac, directory=directory)

    # Step 3: Exercise the handlers
    calls = [
        ("alice grants XP to her agent", routes.handle_award_xp,
         "agent-alpha", {"xp": 120, "action_type": "SPECIAL_ACHIEVEMENT"}, "alice"),
        ("bob grants XP (member role)", routes.handle_award_xp,
         "agent-beta", {"xp": 120, "action_type": "SPECIAL_ACHIEVEMENT"}, "bob"),
        ("alice records a task for bob's agent", routes.handle_record_task,
         "agent-beta", {"success": True}, "alice"),
        ("root awards a badge to bob's agent", routes.handle_award_badge,
         "agent-beta", {"badge_id": "innovator"}, "root"),
    ]
    for label, handler, agent_id, body, user_id in calls:
        status, data = handler(agent_id, body, user_id)
        print(f"{label}: HTTP {status} {data.get('error') or ''}")

    status, data = routes.handle_get_trust("agent-alpha", "alice")
    print(f"agent-alpha: level {data['level']} with {data['experience_points']} XP")


if __name__ == "__main__":
    main()
