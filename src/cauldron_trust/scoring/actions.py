"""XpActionType enum — the reasons an XP ledger entry can be written."""
from __future__ import annotations

from enum import Enum


class XpActionType(str, Enum):
    """Categories of XP-affecting events recorded in the XP ledger."""

    TASK_COMPLETION = "TASK_COMPLETION"
    POSITIVE_FEEDBACK = "POSITIVE_FEEDBACK"
    BADGE_EARNED = "BADGE_EARNED"
    MILESTONE_REACHED = "MILESTONE_REACHED"
    SPECIAL_ACHIEVEMENT = "SPECIAL_ACHIEVEMENT"
    SUGGESTION_APPROVED = "SUGGESTION_APPROVED"
    CORRECT_RESPONSE = "CORRECT_RESPONSE"
    LEARNING_FROM_FEEDBACK = "LEARNING_FROM_FEEDBACK"
