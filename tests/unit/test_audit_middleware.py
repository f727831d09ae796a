"""Tests for cauldron_trust.middleware.audit — TrustAuditLogger."""
from __future__ import annotations

import datetime
import json
from pathlib import Path

import pytest

from cauldron_trust.middleware.audit import AuditEvent, TrustAuditLogger


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger_in_memory() -> TrustAuditLogger:
    return TrustAuditLogger(log_path=None)


@pytest.fixture()
def log_file(tmp_path: Path) -> Path:
    return tmp_path / "logs" / "trust-audit.jsonl"


@pytest.fixture()
def logger_on_disk(log_file: Path) -> TrustAuditLogger:
    return TrustAuditLogger(log_path=log_file)


# ---------------------------------------------------------------------------
# AuditEvent
# ---------------------------------------------------------------------------


class TestAuditEvent:
    def test_to_dict_contains_required_fields(self) -> None:
        d = AuditEvent(event_type="badge_earned", agent_id="agent-001").to_dict()
        assert d["event_type"] == "badge_earned"
        assert d["agent_id"] == "agent-001"
        assert d["actor_id"] == "system"
        assert "timestamp" in d
        assert d["details"] == {}

    def test_timestamp_defaults_to_utc_now(self) -> None:
        before = datetime.datetime.now(datetime.timezone.utc)
        event = AuditEvent(event_type="x", agent_id="y")
        after = datetime.datetime.now(datetime.timezone.utc)
        ts = datetime.datetime.fromisoformat(event.to_dict()["timestamp"])  # type: ignore[arg-type]
        assert before <= ts <= after


# ---------------------------------------------------------------------------
# In-memory mode
# ---------------------------------------------------------------------------


class TestInMemoryLogger:
    def test_events_buffered_in_order(self, logger_in_memory: TrustAuditLogger) -> None:
        for i in range(3):
            logger_in_memory.log(AuditEvent(event_type=f"event_{i}", agent_id="agent-001"))
        buffer = logger_in_memory.drain_buffer()
        assert [json.loads(line)["event_type"] for line in buffer] == [
            "event_0",
            "event_1",
            "event_2",
        ]

    def test_drain_buffer_clears_buffer(self, logger_in_memory: TrustAuditLogger) -> None:
        logger_in_memory.log_event("e", agent_id="a")
        logger_in_memory.drain_buffer()
        assert logger_in_memory.drain_buffer() == []

    def test_read_log_uses_buffer(self, logger_in_memory: TrustAuditLogger) -> None:
        logger_in_memory.log_event("task_recorded", agent_id="agent-001", success=True)
        [event] = logger_in_memory.read_log()
        assert event["details"] == {"success": True}


# ---------------------------------------------------------------------------
# Disk mode
# ---------------------------------------------------------------------------


class TestDiskLogger:
    def test_parent_directories_created(self, logger_on_disk: TrustAuditLogger, log_file: Path) -> None:
        assert log_file.parent.is_dir()

    def test_log_appends_jsonl(self, logger_on_disk: TrustAuditLogger, log_file: Path) -> None:
        logger_on_disk.log_event("event_1", agent_id="a")
        logger_on_disk.log_event("event_2", agent_id="a")
        lines = [l for l in log_file.read_text(encoding="utf-8").splitlines() if l.strip()]
        assert len(lines) == 2

    def test_read_log_tail(self, logger_on_disk: TrustAuditLogger) -> None:
        for i in range(5):
            logger_on_disk.log_event(f"event_{i}", agent_id="a")
        tail = logger_on_disk.read_log(tail=2)
        assert [e["event_type"] for e in tail] == ["event_3", "event_4"]

    def test_read_log_skips_corrupt_lines(
        self, logger_on_disk: TrustAuditLogger, log_file: Path
    ) -> None:
        logger_on_disk.log_event("good", agent_id="a")
        with log_file.open("a", encoding="utf-8") as fh:
            fh.write("{not json\n")
        assert [e["event_type"] for e in logger_on_disk.read_log()] == ["good"]


# ---------------------------------------------------------------------------
# Convenience loggers
# ---------------------------------------------------------------------------


class TestConvenienceLoggers:
    def test_log_xp_awarded(self, logger_in_memory: TrustAuditLogger) -> None:
        logger_in_memory.log_xp_awarded("agent-001", 10, "TASK_COMPLETION", total_xp=35)
        [event] = logger_in_memory.read_log()
        assert event["event_type"] == "xp_awarded"
        assert event["details"] == {"xp": 10, "action_type": "TASK_COMPLETION", "total_xp": 35}

    def test_log_level_up(self, logger_in_memory: TrustAuditLogger) -> None:
        logger_in_memory.log_level_up("agent-001", 5, 6, "APPRENTICE", actor_id="user-1")
        [event] = logger_in_memory.read_log()
        assert event["actor_id"] == "user-1"
        assert event["details"]["trust_tier"] == "APPRENTICE"

    def test_log_badge_earned(self, logger_in_memory: TrustAuditLogger) -> None:
        logger_in_memory.log_badge_earned("agent-001", "innovator", "Innovator", manual=True)
        [event] = logger_in_memory.read_log()
        assert event["details"] == {
            "badge_id": "innovator",
            "badge_name": "Innovator",
            "manual": True,
        }
