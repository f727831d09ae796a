#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal setup for cauldron-trust: an in-memory trust
store, a few task and feedback events, and the resulting trust view.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install cauldron-trust
"""
from __future__ import annotations

import cauldron_trust
from cauldron_trust import Database, TrustEngine


def main() -> None:
    print(f"cauldron-trust version: {cauldron_trust.__version__}")

    # Step 1: Create the store and seed the badge catalog
    db = Database("sqlite://")
    db.create_all()
    print(f"Badges seeded: {db.seed_badges()}")

    # Step 2: Record some activity
    engine = TrustEngine(db)
    for _ in range(3):
        engine.record_task("quickstart-agent", success=True, task_type="code_review")
    engine.record_task("quickstart-agent", success=False)
    view = engine.record_feedback("quickstart-agent", rating=5)

    # Step 3: Inspect the trust view
    print(f"Level {view.level} ({view.trust_level.value}), {view.experience_points} XP")
    print(f"Trust score: {view.trust_score:.2f}")
    print(f"Progress to next level: {view.level_progress:.1f}%")
    print(f"Badges: {', '.join(eb.badge.name for eb in view.earned_badges)}")

    # Step 4: Audit the XP ledger
    for entry in engine.xp_history("quickstart-agent", limit=3):
        print(f"  +{entry.xp:<3} {entry.action_type.value:<20} {entry.description or ''}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
