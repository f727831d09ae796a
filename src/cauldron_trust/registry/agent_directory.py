"""AgentDirectory — the set of agents the trust engine may score.

The directory stands in for the platform's agent service: it knows which
agents exist and which user owns each one. The engine consults it only to
reject unknown agent IDs; ownership is checked by the RBAC layer.
"""
from __future__ import annotations

import datetime
import threading
from dataclasses import dataclass, field

from cauldron_trust.errors import AgentNotFoundError, TrustEngineError


@dataclass
class AgentRecord:
    """Directory entry for one agent.

    Parameters
    ----------
    agent_id:
        Globally unique agent identifier.
    owner_id:
        The user that owns the agent.
    display_name:
        Human-readable name for the agent.
    organization:
        Owning organization or tenant.
    registered_at:
        UTC datetime of registration.
    active:
        Deregistered agents are kept but marked inactive.
    """

    agent_id: str
    owner_id: str
    display_name: str = ""
    organization: str = ""
    registered_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    active: bool = True

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary."""
        return {
            "agent_id": self.agent_id,
            "owner_id": self.owner_id,
            "display_name": self.display_name,
            "organization": self.organization,
            "registered_at": self.registered_at.isoformat(),
            "active": self.active,
        }


class AgentAlreadyRegisteredError(TrustEngineError, ValueError):
    """Raised when attempting to register an agent_id that already exists."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent {agent_id!r} is already registered.")


class AgentDirectory:
    """Thread-safe in-memory agent directory.

    Example
    -------
    ::

        directory = AgentDirectory()
        directory.register("agent-001", owner_id="user-42")
        assert directory.exists("agent-001")
    """

    def __init__(self) -> None:
        self._records: dict[str, AgentRecord] = {}
        self._lock = threading.Lock()

    def register(
        self,
        agent_id: str,
        owner_id: str,
        display_name: str = "",
        organization: str = "",
    ) -> AgentRecord:
        """Add an agent to the directory.

        Raises
        ------
        AgentAlreadyRegisteredError
            If an agent with this ID already exists.
        """
        with self._lock:
            if agent_id in self._records:
                raise AgentAlreadyRegisteredError(agent_id)
            record = AgentRecord(
                agent_id=agent_id,
                owner_id=owner_id,
                display_name=display_name or agent_id,
                organization=organization,
            )
            self._records[agent_id] = record
            return record

    def get(self, agent_id: str) -> AgentRecord:
        """Return the directory entry for *agent_id*.

        Raises
        ------
        AgentNotFoundError
            If the agent is unknown or deregistered.
        """
        with self._lock:
            record = self._records.get(agent_id)
        if record is None or not record.active:
            raise AgentNotFoundError(agent_id)
        return record

    def exists(self, agent_id: str) -> bool:
        """Return True if *agent_id* is registered and active."""
        with self._lock:
            record = self._records.get(agent_id)
        return record is not None and record.active

    def deregister(self, agent_id: str) -> None:
        """Mark an agent inactive.

        Raises
        ------
        AgentNotFoundError
            If the agent is not registered.
        """
        with self._lock:
            record = self._records.get(agent_id)
            if record is None:
                raise AgentNotFoundError(agent_id)
            record.active = False

    def list_all(self, include_inactive: bool = False) -> list[AgentRecord]:
        """Return directory entries sorted by agent_id."""
        with self._lock:
            records = list(self._records.values())
        if not include_inactive:
            records = [r for r in records if r.active]
        return sorted(records, key=lambda r: r.agent_id)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for r in self._records.values() if r.active)
