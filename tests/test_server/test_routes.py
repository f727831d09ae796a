"""Tests for cauldron_trust.server.routes."""
from __future__ import annotations

import pytest

from cauldron_trust.engine import TrustEngine
from cauldron_trust.middleware.rbac import RBACMiddleware
from cauldron_trust.registry.agent_directory import AgentDirectory
from cauldron_trust.server import routes
from cauldron_trust.storage.database import Database


@pytest.fixture()
def rbac() -> RBACMiddleware:
    rbac = RBACMiddleware()
    rbac.assign_role("user-1", "member")
    rbac.assign_role("viewer-1", "viewer")
    rbac.assign_role("operator-1", "operator")
    rbac.assign_role("operator-2", "operator")
    rbac.assign_role("admin-1", "admin")
    return rbac


@pytest.fixture(autouse=True)
def reset_server_state(
    database: Database, directory: AgentDirectory, rbac: RBACMiddleware
) -> None:
    """Install a fresh engine, directory, and role table before each test."""
    directory.register("agent-ops", owner_id="operator-1")
    directory.register("agent-viewer", owner_id="viewer-1")
    engine = TrustEngine(database, directory=directory)
    routes.reset_state(engine=engine, rbac=rbac, directory=directory)


class TestHandleHealth:
    def test_health_returns_ok(self) -> None:
        status, data = routes.handle_health()
        assert status == 200
        assert data["status"] == "ok"
        assert data["service"] == "cauldron-trust"

    def test_health_reports_agent_count(self) -> None:
        _, data = routes.handle_health()
        assert data["agent_count"] == 4

    def test_default_state_has_no_agents(self) -> None:
        routes.reset_state()
        _, data = routes.handle_health()
        assert data["agent_count"] == 0


class TestHandleListBadges:
    def test_lists_catalog(self) -> None:
        status, data = routes.handle_list_badges("viewer-1")
        assert status == 200
        ids = {b["badge_id"] for b in data["badges"]}  # type: ignore[union-attr]
        assert {"first-steps", "xp-starter", "innovator"} <= ids

    def test_missing_user_is_401(self) -> None:
        status, data = routes.handle_list_badges(None)
        assert status == 401
        assert data["error"] == "Unauthorized"

    def test_user_without_roles_is_403(self) -> None:
        status, _ = routes.handle_list_badges("stranger")
        assert status == 403

    def test_lazily_built_engine_has_seeded_catalog(self) -> None:
        rbac = RBACMiddleware()
        rbac.assign_role("viewer-1", "viewer")
        routes.reset_state(rbac=rbac)
        status, data = routes.handle_list_badges("viewer-1")
        assert status == 200
        assert len(data["badges"]) > 0  # type: ignore[arg-type]


class TestHandleGetTrust:
    def test_owner_reads_zero_state(self) -> None:
        status, data = routes.handle_get_trust("agent-001", "user-1")
        assert status == 200
        assert data["agent_id"] == "agent-001"
        assert data["level"] == 1
        assert data["trust_score"] == 0.0
        assert data["trust_level"] == "NOVICE"
        assert data["xp_for_next_level"] == 283

    def test_unknown_agent_is_404(self) -> None:
        status, data = routes.handle_get_trust("agent-404", "admin-1")
        assert status == 404
        assert "agent-404" in str(data["detail"])

    def test_missing_user_is_401(self) -> None:
        status, _ = routes.handle_get_trust("agent-001", None)
        assert status == 401

    def test_non_owner_is_403(self) -> None:
        status, data = routes.handle_get_trust("agent-002", "user-1")
        assert status == 403
        assert data["error"] == "Forbidden"

    def test_admin_reads_any_agent(self) -> None:
        status, _ = routes.handle_get_trust("agent-002", "admin-1")
        assert status == 200


class TestHandleRecordTask:
    def test_successful_task(self) -> None:
        status, data = routes.handle_record_task("agent-001", {"success": True}, "user-1")
        assert status == 200
        assert data["successful_tasks"] == 1
        assert data["experience_points"] == 35
        assert data["new_badges"] == ["first-steps"]

    def test_failed_task(self) -> None:
        status, data = routes.handle_record_task(
            "agent-001", {"success": False, "task_type": "deploy"}, "user-1"
        )
        assert status == 200
        assert data["failed_tasks"] == 1
        assert data["experience_points"] == 0

    def test_viewer_cannot_record(self) -> None:
        status, _ = routes.handle_record_task("agent-viewer", {"success": True}, "viewer-1")
        assert status == 403

    def test_missing_success_is_422(self) -> None:
        status, data = routes.handle_record_task("agent-001", {}, "user-1")
        assert status == 422
        assert data["error"] == "Validation error"

    def test_non_boolean_success_is_422(self) -> None:
        status, _ = routes.handle_record_task("agent-001", {"success": "yes"}, "user-1")
        assert status == 422

    def test_unknown_field_is_422(self) -> None:
        status, _ = routes.handle_record_task(
            "agent-001", {"success": True, "xp": 1000}, "user-1"
        )
        assert status == 422

    def test_authorization_checked_before_validation(self) -> None:
        status, _ = routes.handle_record_task("agent-002", {}, "user-1")
        assert status == 403


class TestHandleFeedback:
    def test_positive_rating(self) -> None:
        status, data = routes.handle_feedback("agent-001", {"rating": 5}, "user-1")
        assert status == 200
        assert data["positive_ratings"] == 1
        assert data["approval_rate"] == 100.0

    @pytest.mark.parametrize("rating", [0, 6, "5", 4.0, True])
    def test_invalid_rating_is_422(self, rating: object) -> None:
        status, _ = routes.handle_feedback("agent-001", {"rating": rating}, "user-1")
        assert status == 422


class TestHandleAwardXp:
    def test_operator_grants_own_agent(self) -> None:
        status, data = routes.handle_award_xp(
            "agent-ops", {"xp": 590, "action_type": "SPECIAL_ACHIEVEMENT"}, "operator-1"
        )
        assert status == 200
        assert data["level"] >= 3

    def test_default_amount_for_action_type(self) -> None:
        status, data = routes.handle_award_xp(
            "agent-ops", {"action_type": "CORRECT_RESPONSE"}, "operator-1"
        )
        assert status == 200
        assert data["experience_points"] == 5

    def test_operator_cannot_grant_foreign_agent(self) -> None:
        status, _ = routes.handle_award_xp(
            "agent-ops", {"xp": 10, "action_type": "SPECIAL_ACHIEVEMENT"}, "operator-2"
        )
        assert status == 403

    def test_member_cannot_grant(self) -> None:
        status, _ = routes.handle_award_xp(
            "agent-001", {"xp": 10, "action_type": "SPECIAL_ACHIEVEMENT"}, "user-1"
        )
        assert status == 403

    def test_admin_grants_any_agent(self) -> None:
        status, _ = routes.handle_award_xp(
            "agent-001", {"xp": 10, "action_type": "SPECIAL_ACHIEVEMENT"}, "admin-1"
        )
        assert status == 200

    def test_negative_xp_is_422(self) -> None:
        status, _ = routes.handle_award_xp(
            "agent-ops", {"xp": -5, "action_type": "SPECIAL_ACHIEVEMENT"}, "operator-1"
        )
        assert status == 422

    def test_unknown_action_type_is_422(self) -> None:
        status, _ = routes.handle_award_xp(
            "agent-ops", {"xp": 5, "action_type": "BRIBE"}, "operator-1"
        )
        assert status == 422


class TestHandleAwardBadge:
    def test_manual_award(self) -> None:
        status, data = routes.handle_award_badge(
            "agent-ops", {"badge_id": "innovator"}, "operator-1"
        )
        assert status == 200
        assert data["success"] is True
        assert data["badge_id"] == "innovator"

    def test_duplicate_award_is_not_an_error(self) -> None:
        routes.handle_award_badge("agent-ops", {"badge_id": "innovator"}, "operator-1")
        status, data = routes.handle_award_badge(
            "agent-ops", {"badge_id": "innovator"}, "operator-1"
        )
        assert status == 200
        assert data["success"] is False
        assert data["message"] == "Badge already earned"

    def test_unknown_badge_is_404(self) -> None:
        status, _ = routes.handle_award_badge(
            "agent-ops", {"badge_id": "no-such-badge"}, "operator-1"
        )
        assert status == 404

    def test_blank_badge_id_is_422(self) -> None:
        status, _ = routes.handle_award_badge("agent-ops", {"badge_id": ""}, "operator-1")
        assert status == 422


class TestHandleXpHistory:
    def test_history_newest_first(self) -> None:
        routes.handle_award_xp(
            "agent-ops", {"xp": 1, "action_type": "CORRECT_RESPONSE"}, "operator-1"
        )
        routes.handle_award_xp(
            "agent-ops", {"xp": 2, "action_type": "SUGGESTION_APPROVED"}, "operator-1"
        )
        status, data = routes.handle_xp_history("agent-ops", "operator-1")
        assert status == 200
        entries = data["entries"]
        assert entries[0]["action_type"] == "SUGGESTION_APPROVED"  # type: ignore[index]

    def test_limit(self) -> None:
        for _ in range(3):
            routes.handle_award_xp(
                "agent-ops", {"xp": 1, "action_type": "CORRECT_RESPONSE"}, "operator-1"
            )
        _, data = routes.handle_xp_history("agent-ops", "operator-1", limit="2")
        assert len(data["entries"]) == 2  # type: ignore[arg-type]

    @pytest.mark.parametrize("limit", ["abc", "0", "-1"])
    def test_bad_limit_is_422(self, limit: str) -> None:
        status, _ = routes.handle_xp_history("agent-ops", "operator-1", limit=limit)
        assert status == 422


_NEW_BADGE = {
    "badge_id": "ten-xp",
    "name": "Ten XP",
    "description": "Earned the first ten experience points",
    "category": "LEARNING",
    "tier": "BRONZE",
    "requirement_type": "XP",
    "requirement_value": 10,
}


class TestHandleCreateBadge:
    def test_admin_creates_badge(self) -> None:
        status, data = routes.handle_create_badge(dict(_NEW_BADGE), "admin-1")
        assert status == 201
        assert data["badge_id"] == "ten-xp"
        assert data["requirement_value"] == 10.0
        assert data["is_active"] is True
        _, listed = routes.handle_list_badges("viewer-1")
        assert "ten-xp" in {b["badge_id"] for b in listed["badges"]}  # type: ignore[union-attr]

    def test_missing_user_is_401(self) -> None:
        status, _ = routes.handle_create_badge(dict(_NEW_BADGE), None)
        assert status == 401

    @pytest.mark.parametrize("user_id", ["viewer-1", "user-1", "operator-1"])
    def test_non_admin_is_403(self, user_id: str) -> None:
        status, data = routes.handle_create_badge(dict(_NEW_BADGE), user_id)
        assert status == 403
        assert data["error"] == "Forbidden"

    def test_duplicate_is_409(self) -> None:
        status, data = routes.handle_create_badge(
            dict(_NEW_BADGE, badge_id="first-steps"), "admin-1"
        )
        assert status == 409
        assert data["error"] == "Conflict"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"badge_id": "has space"},
            {"name": ""},
            {"tier": "MYTHRIL"},
            {"requirement_value": -1},
            {"is_active": "yes"},
            {"unexpected": 1},
        ],
    )
    def test_invalid_body_is_422(self, overrides: dict[str, object]) -> None:
        status, _ = routes.handle_create_badge(dict(_NEW_BADGE, **overrides), "admin-1")
        assert status == 422

    def test_created_badge_awarded_on_next_event(self) -> None:
        routes.handle_create_badge(dict(_NEW_BADGE), "admin-1")
        _, data = routes.handle_award_xp(
            "agent-ops", {"xp": 10, "action_type": "CORRECT_RESPONSE"}, "operator-1"
        )
        assert "ten-xp" in data["new_badges"]  # type: ignore[operator]


class TestHandleUpdateBadge:
    def test_admin_deactivates_badge(self) -> None:
        status, data = routes.handle_update_badge("first-steps", {"is_active": False}, "admin-1")
        assert status == 200
        assert data["is_active"] is False
        _, view = routes.handle_record_task("agent-001", {"success": True}, "user-1")
        assert view["new_badges"] == []

    def test_partial_update_keeps_other_fields(self) -> None:
        _, data = routes.handle_update_badge("first-steps", {"name": "Baby Steps"}, "admin-1")
        assert data["name"] == "Baby Steps"
        assert data["tier"] == "BRONZE"
        assert data["requirement_value"] == 1.0

    def test_unknown_badge_is_404(self) -> None:
        status, _ = routes.handle_update_badge("no-such-badge", {"is_active": False}, "admin-1")
        assert status == 404

    def test_operator_is_403(self) -> None:
        status, _ = routes.handle_update_badge("first-steps", {"is_active": False}, "operator-1")
        assert status == 403

    @pytest.mark.parametrize(
        "body",
        [{"badge_id": "renamed"}, {"requirement_value": -3}, {"is_active": 0}, {"category": "NOPE"}],
    )
    def test_invalid_body_is_422(self, body: dict[str, object]) -> None:
        status, _ = routes.handle_update_badge("first-steps", body, "admin-1")
        assert status == 422
