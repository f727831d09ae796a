"""Shared fixtures: in-memory trust stores, an agent directory, and engines."""
from __future__ import annotations

from collections.abc import Iterator

import pytest

from cauldron_trust.engine import TrustEngine
from cauldron_trust.middleware.audit import TrustAuditLogger
from cauldron_trust.registry.agent_directory import AgentDirectory
from cauldron_trust.storage.database import Database


@pytest.fixture()
def database() -> Iterator[Database]:
    """In-memory store with the schema and the default badge catalog."""
    db = Database("sqlite://")
    db.create_all()
    db.seed_badges()
    yield db
    db.dispose()


@pytest.fixture()
def empty_database() -> Iterator[Database]:
    """In-memory store with the schema but no badges."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def audit_logger() -> TrustAuditLogger:
    return TrustAuditLogger()


@pytest.fixture()
def engine(database: Database, audit_logger: TrustAuditLogger) -> TrustEngine:
    return TrustEngine(database, audit_logger=audit_logger)


@pytest.fixture()
def bare_engine(empty_database: Database) -> TrustEngine:
    """Engine whose catalog is empty, so no badge bonuses are paid."""
    return TrustEngine(empty_database)


@pytest.fixture()
def directory() -> AgentDirectory:
    directory = AgentDirectory()
    directory.register("agent-001", owner_id="user-1", display_name="Alpha")
    directory.register("agent-002", owner_id="user-2", display_name="Beta")
    return directory
