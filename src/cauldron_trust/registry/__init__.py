"""Agent directory consulted by the trust engine."""
from __future__ import annotations

from cauldron_trust.registry.agent_directory import (
    AgentAlreadyRegisteredError,
    AgentDirectory,
    AgentRecord,
)

__all__ = [
    "AgentAlreadyRegisteredError",
    "AgentDirectory",
    "AgentRecord",
]
