"""Tests for cauldron_trust.cli.main — CLI commands via Click test runner."""
from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from cauldron_trust.cli.main import cli
from cauldron_trust.engine import TrustEngine
from cauldron_trust.storage.database import Database
from cauldron_trust.storage.repository import TrustScoreRepository


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'trust.db'}"


def _invoke(runner: CliRunner, database_url: str, *args: str):  # type: ignore[no-untyped-def]
    return runner.invoke(cli, ["--database-url", database_url, *args])


def _engine(database_url: str) -> TrustEngine:
    return TrustEngine(Database(database_url))


# ---------------------------------------------------------------------------
# Root CLI
# ---------------------------------------------------------------------------


class TestRootCLI:
    def test_help_exits_zero(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0

    def test_version_command(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "version")
        assert result.exit_code == 0
        assert "cauldron-trust" in result.output.lower()

    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_log_level(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--log-level", "LOUD", "version"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# db / badges
# ---------------------------------------------------------------------------


class TestDbInit:
    def test_init_seeds_catalog(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "db", "init")
        assert result.exit_code == 0
        assert "Trust store ready" in result.output
        assert "Badges seeded: 24" in result.output

    def test_init_is_idempotent(self, runner: CliRunner, database_url: str) -> None:
        _invoke(runner, database_url, "db", "init")
        result = _invoke(runner, database_url, "db", "init")
        assert result.exit_code == 0
        assert "Badges seeded: 0" in result.output


class TestBadgesList:
    def test_lists_catalog(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "badges", "list")
        assert result.exit_code == 0
        assert "Badge Catalog" in result.output
        assert "Total: 24 badge(s)" in result.output

    def test_active_only(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "badges", "list", "--active-only")
        assert result.exit_code == 0
        assert "Total:" in result.output


class TestBadgesCreate:
    def test_create_badge(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url,
            "badges", "create", "ten-xp",
            "--name", "Ten XP",
            "--category", "learning",
            "--tier", "BRONZE",
            "--requirement-type", "XP",
            "--requirement-value", "10",
        )
        assert result.exit_code == 0
        assert "Created badge" in result.output
        listed = _invoke(runner, database_url, "badges", "list")
        assert "Total: 25 badge(s)" in listed.output

    def test_create_inactive(self, runner: CliRunner, database_url: str) -> None:
        _invoke(
            runner, database_url,
            "badges", "create", "ten-xp",
            "--name", "Ten XP",
            "--category", "LEARNING",
            "--tier", "BRONZE",
            "--requirement-type", "XP",
            "--inactive",
        )
        result = _invoke(runner, database_url, "badges", "list", "--active-only")
        assert "Total: 24 badge(s)" in result.output

    def test_duplicate_fails(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url,
            "badges", "create", "first-steps",
            "--name", "Again",
            "--category", "PERFORMANCE",
            "--tier", "BRONZE",
            "--requirement-type", "TASKS",
        )
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_malformed_id_fails(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url,
            "badges", "create", "has space",
            "--name", "Spaced",
            "--category", "LEARNING",
            "--tier", "BRONZE",
            "--requirement-type", "XP",
        )
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_tier_is_usage_error(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url,
            "badges", "create", "ten-xp",
            "--name", "Ten XP",
            "--category", "LEARNING",
            "--tier", "MYTHRIL",
            "--requirement-type", "XP",
        )
        assert result.exit_code == 2


class TestBadgesUpdate:
    def test_deactivate(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "badges", "update", "first-steps", "--inactive")
        assert result.exit_code == 0
        assert "inactive" in result.output
        listed = _invoke(runner, database_url, "badges", "list", "--active-only")
        assert "Total: 23 badge(s)" in listed.output

    def test_deactivated_badge_not_awarded(self, runner: CliRunner, database_url: str) -> None:
        _invoke(runner, database_url, "badges", "update", "first-steps", "--inactive")
        result = _invoke(runner, database_url, "trust", "record-task", "agent-001")
        assert result.exit_code == 0
        assert "New badge" not in result.output

    def test_change_threshold(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url, "badges", "update", "task-master", "--requirement-value", "2"
        )
        assert result.exit_code == 0
        database = Database(database_url)
        with database.transaction() as session:
            badge = TrustScoreRepository(session).get_badge("task-master")
        database.dispose()
        assert badge is not None
        assert badge.requirement_value == 2.0
        assert badge.is_active is True

    def test_unknown_badge_fails(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "badges", "update", "no-such-badge", "--active")
        assert result.exit_code == 1
        assert "not found" in result.output


class TestUnopenableStore:
    @pytest.fixture()
    def missing_dir_url(self, tmp_path: Path) -> str:
        return f"sqlite:///{tmp_path / 'missing-dir' / 'trust.db'}"

    def test_trust_show_reports_error(self, runner: CliRunner, missing_dir_url: str) -> None:
        result = _invoke(runner, missing_dir_url, "trust", "show", "agent-001")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_db_init_reports_error(self, runner: CliRunner, missing_dir_url: str) -> None:
        result = _invoke(runner, missing_dir_url, "db", "init")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_unknown_dialect_reports_error(self, runner: CliRunner) -> None:
        result = _invoke(runner, "nosuchdialect://host/trust", "badges", "list")
        assert result.exit_code == 1
        assert "Error:" in result.output


# ---------------------------------------------------------------------------
# trust commands
# ---------------------------------------------------------------------------


class TestTrustShow:
    def test_show_fresh_agent(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "show", "agent-001")
        assert result.exit_code == 0
        assert "Trust score" in result.output
        assert "NOVICE" in result.output

    def test_blank_agent_id_fails(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "show", "  ")
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestRecordTask:
    def test_successful_task(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(
            runner, database_url, "trust", "record-task", "agent-001", "--task-type", "review"
        )
        assert result.exit_code == 0
        assert "New badge:" in result.output
        view = _engine(database_url).get_agent_trust_score("agent-001")
        assert view.successful_tasks == 1
        assert view.experience_points == 35

    def test_failed_task(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "record-task", "agent-001", "--failed")
        assert result.exit_code == 0
        view = _engine(database_url).get_agent_trust_score("agent-001")
        assert view.failed_tasks == 1
        assert view.experience_points == 0


class TestFeedback:
    def test_records_rating(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "feedback", "agent-001", "4")
        assert result.exit_code == 0
        assert _engine(database_url).get_agent_trust_score("agent-001").positive_ratings == 1

    def test_out_of_range_rating_is_usage_error(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "feedback", "agent-001", "6")
        assert result.exit_code == 2


class TestAwardXp:
    def test_award_crosses_levels(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "award-xp", "agent-001", "590")
        assert result.exit_code == 0
        assert _engine(database_url).get_agent_trust_score("agent-001").level >= 3

    def test_action_type_is_recorded(self, runner: CliRunner, database_url: str) -> None:
        _invoke(
            runner,
            database_url,
            "trust",
            "award-xp",
            "agent-001",
            "5",
            "--action-type",
            "correct_response",
            "-d",
            "spot check",
        )
        history = _engine(database_url).xp_history("agent-001")
        assert history[0].action_type.value == "CORRECT_RESPONSE"
        assert history[0].description == "spot check"

    def test_negative_xp_is_usage_error(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "award-xp", "agent-001", "--", "-5")
        assert result.exit_code == 2


class TestAwardBadge:
    def test_manual_award(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "award-badge", "agent-001", "innovator")
        assert result.exit_code == 0
        assert "awarded" in result.output
        view = _engine(database_url).get_agent_trust_score("agent-001")
        assert "innovator" in {eb.badge.badge_id for eb in view.earned_badges}

    def test_duplicate_award_reports_message(self, runner: CliRunner, database_url: str) -> None:
        _invoke(runner, database_url, "trust", "award-badge", "agent-001", "innovator")
        result = _invoke(runner, database_url, "trust", "award-badge", "agent-001", "innovator")
        assert result.exit_code == 0
        assert "Badge already earned" in result.output

    def test_unknown_badge_fails(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "award-badge", "agent-001", "nope")
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestHistory:
    def test_empty_history(self, runner: CliRunner, database_url: str) -> None:
        result = _invoke(runner, database_url, "trust", "history", "agent-001")
        assert result.exit_code == 0
        assert "No XP history" in result.output

    def test_history_table(self, runner: CliRunner, database_url: str) -> None:
        _invoke(runner, database_url, "trust", "record-task", "agent-001")
        result = _invoke(runner, database_url, "trust", "history", "agent-001", "--limit", "1")
        assert result.exit_code == 0
        assert "XP History" in result.output
