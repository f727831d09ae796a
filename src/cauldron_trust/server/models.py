"""Pydantic request/response models for the trust HTTP server."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt

from cauldron_trust.badges.catalog import BadgeCategory, BadgeTier, RequirementType
from cauldron_trust.scoring.actions import XpActionType


class RecordTaskRequest(BaseModel):
    """Request body for POST /agents/{id}/tasks."""

    model_config = ConfigDict(extra="forbid")

    success: StrictBool
    task_type: Optional[str] = None
    details: Optional[str] = None


class FeedbackRequest(BaseModel):
    """Request body for POST /agents/{id}/feedback."""

    model_config = ConfigDict(extra="forbid")

    rating: StrictInt = Field(ge=1, le=5)


class AwardXpRequest(BaseModel):
    """Request body for POST /agents/{id}/xp.

    ``xp`` may be omitted to use the default reward for ``action_type``.
    """

    model_config = ConfigDict(extra="forbid")

    xp: Optional[StrictInt] = Field(default=None, ge=0)
    action_type: XpActionType
    description: Optional[str] = None


class AwardBadgeRequest(BaseModel):
    """Request body for POST /agents/{id}/badges."""

    model_config = ConfigDict(extra="forbid")

    badge_id: str = Field(min_length=1)


class CreateBadgeRequest(BaseModel):
    """Request body for POST /badges."""

    model_config = ConfigDict(extra="forbid")

    badge_id: str = Field(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
    name: str = Field(min_length=1)
    description: str = ""
    category: BadgeCategory
    tier: BadgeTier
    requirement_type: RequirementType
    requirement_value: float = Field(default=1.0, ge=0, allow_inf_nan=False)
    is_active: StrictBool = True


class UpdateBadgeRequest(BaseModel):
    """Request body for PATCH /badges/{id}.

    Omitted fields keep their current value.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[BadgeCategory] = None
    tier: Optional[BadgeTier] = None
    requirement_type: Optional[RequirementType] = None
    requirement_value: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    is_active: Optional[StrictBool] = None


class EarnedBadgeResponse(BaseModel):
    """A badge held by an agent."""

    badge_id: str
    name: str
    description: str
    category: str
    tier: str
    requirement_type: str
    requirement_value: float
    earned_at: str


class TrustScoreResponse(BaseModel):
    """Response body for the trust endpoints."""

    agent_id: str
    experience_points: int
    level: int
    trust_score: float
    trust_level: str
    successful_tasks: int
    failed_tasks: int
    total_tasks: int
    success_rate: float
    positive_ratings: int
    negative_ratings: int
    neutral_ratings: int
    feedback_count: int
    approval_rate: float
    response_accuracy: float
    xp_for_next_level: int
    level_progress: float
    last_level_up_at: Optional[str] = None
    earned_badges: list[EarnedBadgeResponse] = Field(default_factory=list)
    badges_by_category: dict[str, int] = Field(default_factory=dict)
    badges_by_tier: dict[str, int] = Field(default_factory=dict)
    new_badges: list[str] = Field(default_factory=list)


class AwardBadgeResponse(BaseModel):
    """Response body for POST /agents/{id}/badges."""

    success: bool
    message: str
    badge_id: Optional[str] = None


class XpHistoryEntryResponse(BaseModel):
    """One XP ledger entry."""

    id: int
    agent_id: str
    xp: int
    action_type: str
    description: Optional[str] = None
    created_at: str


class XpHistoryResponse(BaseModel):
    """Response body for GET /agents/{id}/xp-history."""

    agent_id: str
    entries: list[XpHistoryEntryResponse] = Field(default_factory=list)


class BadgeResponse(BaseModel):
    """A catalog badge."""

    badge_id: str
    name: str
    description: str
    category: str
    tier: str
    requirement_type: str
    requirement_value: float
    is_active: bool


class BadgeListResponse(BaseModel):
    """Response body for GET /badges."""

    badges: list[BadgeResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    status: str = "ok"
    service: str = "cauldron-trust"
    version: str = "0.1.0"
    agent_count: int = 0


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str = ""


__all__ = [
    "AwardBadgeRequest",
    "AwardBadgeResponse",
    "AwardXpRequest",
    "BadgeListResponse",
    "BadgeResponse",
    "CreateBadgeRequest",
    "EarnedBadgeResponse",
    "ErrorResponse",
    "FeedbackRequest",
    "HealthResponse",
    "RecordTaskRequest",
    "TrustScoreResponse",
    "UpdateBadgeRequest",
    "XpHistoryEntryResponse",
    "XpHistoryResponse",
]
