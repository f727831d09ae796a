"""Route handler functions for the trust HTTP server.

Each function accepts the caller's user ID plus parsed request data and
returns a tuple of (status_code, response_dict). The HTTP handler in app.py
calls these functions and serializes the results to JSON.

Every agent-scoped handler resolves the agent's owner from the directory
and checks the caller's permission before invoking the engine.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Optional

from pydantic import BaseModel, ValidationError

from cauldron_trust.badges.catalog import Badge
from cauldron_trust.badges.manager import BadgeCatalogManager
from cauldron_trust.engine import TrustEngine, TrustScoreView
from cauldron_trust.errors import (
    AgentNotFoundError,
    AuthorizationError,
    BadgeAlreadyExistsError,
    BadgeNotFoundError,
    InvalidRequestError,
    PersistenceError,
    TrustEngineError,
)
from cauldron_trust.middleware.rbac import (
    AGENTS_READ,
    AGENTS_UPDATE,
    BADGES_AWARD,
    BADGES_MANAGE,
    BADGES_READ,
    XP_GRANT,
    RBACMiddleware,
)
from cauldron_trust.registry.agent_directory import AgentDirectory
from cauldron_trust.server.models import (
    AwardBadgeRequest,
    AwardBadgeResponse,
    AwardXpRequest,
    BadgeListResponse,
    BadgeResponse,
    CreateBadgeRequest,
    ErrorResponse,
    FeedbackRequest,
    HealthResponse,
    RecordTaskRequest,
    TrustScoreResponse,
    UpdateBadgeRequest,
    XpHistoryEntryResponse,
    XpHistoryResponse,
)
from cauldron_trust.storage.database import Database

logger = logging.getLogger(__name__)

Response = tuple[int, dict[str, object]]


def _default_engine(directory: AgentDirectory) -> TrustEngine:
    database = Database("sqlite://")
    database.create_all()
    database.seed_badges()
    return TrustEngine(database, directory=directory)


# Module-level shared state
_directory: AgentDirectory = AgentDirectory()
_rbac: RBACMiddleware = RBACMiddleware()
_engine: Optional[TrustEngine] = None


def reset_state(
    engine: TrustEngine | None = None,
    rbac: RBACMiddleware | None = None,
    directory: AgentDirectory | None = None,
) -> None:
    """Reset all shared state — used in tests and by the server entry points.

    When *engine* is omitted an in-memory trust store seeded with the
    default badge catalog is created on first use.
    """
    global _engine, _rbac, _directory
    _directory = directory if directory is not None else AgentDirectory()
    _rbac = rbac if rbac is not None else RBACMiddleware()
    _engine = engine


def get_directory() -> AgentDirectory:
    return _directory


def get_rbac() -> RBACMiddleware:
    return _rbac


def get_engine() -> TrustEngine:
    global _engine
    if _engine is None:
        _engine = _default_engine(_directory)
    return _engine


def get_catalog() -> BadgeCatalogManager:
    """Return a catalog manager over the shared engine's trust store."""
    return BadgeCatalogManager(get_engine().database)


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _error(status: int, error: str, detail: str = "") -> Response:
    return status, ErrorResponse(error=error, detail=detail).model_dump()


def _error_from_exception(exc: TrustEngineError) -> Response:
    """Map an engine exception to an HTTP status and error body."""
    if isinstance(exc, (AgentNotFoundError, BadgeNotFoundError)):
        return _error(404, "Not found", str(exc))
    if isinstance(exc, BadgeAlreadyExistsError):
        return _error(409, "Conflict", str(exc))
    if isinstance(exc, AuthorizationError):
        return _error(403, "Forbidden", str(exc))
    if isinstance(exc, InvalidRequestError):
        return _error(422, "Validation error", str(exc))
    if isinstance(exc, PersistenceError):
        logger.error("Trust store failure: %s", exc)
        return _error(500, "Internal error", "The trust store could not complete the request.")
    return _error(500, "Internal error", str(exc))


def _authorize_agent(user_id: str | None, agent_id: str, permission: str) -> Response | None:
    """Return an error response if *user_id* may not use *permission* on *agent_id*."""
    if not user_id:
        return _error(401, "Unauthorized", "Missing X-User-Id header.")
    try:
        owner_id = _directory.get(agent_id).owner_id
    except AgentNotFoundError as exc:
        return _error(404, "Not found", str(exc))
    if not _rbac.authorize(user_id, permission, owner_id=owner_id):
        return _error(
            403,
            "Forbidden",
            f"User {user_id!r} may not perform {permission!r} on agent {agent_id!r}.",
        )
    return None


def _parse(model: type[BaseModel], body: dict[str, object]) -> BaseModel | Response:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        return _error(422, "Validation error", str(exc))


def _run(operation: Callable[[], Response]) -> Response:
    try:
        return operation()
    except TrustEngineError as exc:
        return _error_from_exception(exc)


def _view_to_response(view: TrustScoreView) -> dict[str, object]:
    return TrustScoreResponse.model_validate(view.to_dict()).model_dump()


# ------------------------------------------------------------------
# Handlers
# ------------------------------------------------------------------


def handle_health() -> Response:
    """Handle GET /health."""
    response = HealthResponse(agent_count=len(_directory))
    return 200, response.model_dump()


def handle_list_badges(user_id: str | None) -> Response:
    """Handle GET /badges."""
    if not user_id:
        return _error(401, "Unauthorized", "Missing X-User-Id header.")
    if not _rbac.authorize(user_id, BADGES_READ):
        return _error(403, "Forbidden", f"User {user_id!r} may not read badges.")

    def operation() -> Response:
        badges = get_engine().list_badges()
        response = BadgeListResponse(
            badges=[BadgeResponse.model_validate(b.to_dict()) for b in badges]
        )
        return 200, response.model_dump()

    return _run(operation)


def _authorize_catalog(user_id: str | None) -> Response | None:
    if not user_id:
        return _error(401, "Unauthorized", "Missing X-User-Id header.")
    if not _rbac.authorize(user_id, BADGES_MANAGE):
        return _error(403, "Forbidden", f"User {user_id!r} may not manage the badge catalog.")
    return None


def handle_create_badge(body: dict[str, object], user_id: str | None) -> Response:
    """Handle POST /badges.

    Returns 201 with the new badge, or 409 if the badge_id is taken.
    """
    denied = _authorize_catalog(user_id)
    if denied is not None:
        return denied
    request = _parse(CreateBadgeRequest, body)
    if not isinstance(request, CreateBadgeRequest):
        return request  # type: ignore[return-value]

    def operation() -> Response:
        badge = get_catalog().create_badge(
            Badge(**request.model_dump()), actor_id=user_id or "system"
        )
        return 201, BadgeResponse.model_validate(badge.to_dict()).model_dump()

    return _run(operation)


def handle_update_badge(badge_id: str, body: dict[str, object], user_id: str | None) -> Response:
    """Handle PATCH /badges/{id}."""
    denied = _authorize_catalog(user_id)
    if denied is not None:
        return denied
    request = _parse(UpdateBadgeRequest, body)
    if not isinstance(request, UpdateBadgeRequest):
        return request  # type: ignore[return-value]

    def operation() -> Response:
        badge = get_catalog().update_badge(
            badge_id, actor_id=user_id or "system", **request.model_dump(exclude_none=True)
        )
        return 200, BadgeResponse.model_validate(badge.to_dict()).model_dump()

    return _run(operation)
    return _run(operation)


def handle_get_trust(agent_id: str, user_id: str | None) -> Response:
    """Handle GET /agents/{id}/trust.

    Returns the agent's trust view, creating a zero-state record on first read.
    """
    denied = _authorize_agent(user_id, agent_id, AGENTS_READ)
    if denied is not None:
        return denied
    return _run(lambda: (200, _view_to_response(get_engine().get_agent_trust_score(agent_id))))


def handle_xp_history(
    agent_id: str,
    user_id: str | None,
    limit: str | None = None,
) -> Response:
    """Handle GET /agents/{id}/xp-history[?limit=N]."""
    denied = _authorize_agent(user_id, agent_id, AGENTS_READ)
    if denied is not None:
        return denied

    parsed_limit: int | None = None
    if limit is not None:
        try:
            parsed_limit = int(limit)
        except ValueError:
            return _error(422, "Validation error", f"limit must be an integer, got {limit!r}")

    def operation() -> Response:
        entries = get_engine().xp_history(agent_id, limit=parsed_limit)
        response = XpHistoryResponse(
            agent_id=agent_id,
            entries=[XpHistoryEntryResponse.model_validate(e.to_dict()) for e in entries],
        )
        return 200, response.model_dump()

    return _run(operation)


def handle_record_task(agent_id: str, body: dict[str, object], user_id: str | None) -> Response:
    """Handle POST /agents/{id}/tasks."""
    denied = _authorize_agent(user_id, agent_id, AGENTS_UPDATE)
    if denied is not None:
        return denied
    request = _parse(RecordTaskRequest, body)
    if not isinstance(request, RecordTaskRequest):
        return request  # type: ignore[return-value]

    return _run(
        lambda: (
            200,
            _view_to_response(
                get_engine().record_task(
                    agent_id,
                    success=request.success,
                    task_type=request.task_type,
                    details=request.details,
                    actor_id=user_id or "system",
                )
            ),
        )
    )


def handle_feedback(agent_id: str, body: dict[str, object], user_id: str | None) -> Response:
    """Handle POST /agents/{id}/feedback."""
    denied = _authorize_agent(user_id, agent_id, AGENTS_UPDATE)
    if denied is not None:
        return denied
    request = _parse(FeedbackRequest, body)
    if not isinstance(request, FeedbackRequest):
        return request  # type: ignore[return-value]

    return _run(
        lambda: (
            200,
            _view_to_response(
                get_engine().record_feedback(
                    agent_id, request.rating, actor_id=user_id or "system"
                )
            ),
        )
    )


def handle_award_xp(agent_id: str, body: dict[str, object], user_id: str | None) -> Response:
    """Handle POST /agents/{id}/xp."""
    denied = _authorize_agent(user_id, agent_id, XP_GRANT)
    if denied is not None:
        return denied
    request = _parse(AwardXpRequest, body)
    if not isinstance(request, AwardXpRequest):
        return request  # type: ignore[return-value]

    return _run(
        lambda: (
            200,
            _view_to_response(
                get_engine().award_xp(
                    agent_id,
                    request.xp,
                    request.action_type,
                    description=request.description,
                    actor_id=user_id or "system",
                )
            ),
        )
    )


def handle_award_badge(agent_id: str, body: dict[str, object], user_id: str | None) -> Response:
    """Handle POST /agents/{id}/badges.

    Awarding a badge the agent already holds is not an error: the response
    carries ``success: false`` and status 200.
    """
    denied = _authorize_agent(user_id, agent_id, BADGES_AWARD)
    if denied is not None:
        return denied
    request = _parse(AwardBadgeRequest, body)
    if not isinstance(request, AwardBadgeRequest):
        return request  # type: ignore[return-value]

    def operation() -> Response:
        result = get_engine().award_badge(
            agent_id, request.badge_id, actor_id=user_id or "system"
        )
        return 200, AwardBadgeResponse.model_validate(result.to_dict()).model_dump()

    return _run(operation)


__all__ = [
    "get_catalog",
    "get_directory",
    "get_engine",
    "get_rbac",
    "handle_award_badge",
    "handle_award_xp",
    "handle_create_badge",
    "handle_feedback",
    "handle_get_trust",
    "handle_health",
    "handle_list_badges",
    "handle_record_task",
    "handle_update_badge",
    "handle_xp_history",
    "reset_state",
]
