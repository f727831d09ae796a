"""TrustAuditLogger — JSONL audit and notification sink for trust events.

Every trust-relevant event (XP awarded, level up, badge earned, task or
feedback recorded) is appended as a single JSON line to the configured log
file. The engine only emits events after the enclosing transaction has
committed, so the log never describes state that was rolled back.

If no file path is configured the logger emits to an in-memory buffer
that can be drained via :meth:`drain_buffer`.
"""
from __future__ import annotations

import datetime
import json
import threading
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class AuditEvent:
    """A single auditable trust event.

    Parameters
    ----------
    event_type:
        Short snake_case string identifying the event (e.g. "badge_earned").
    agent_id:
        The agent whose trust record changed.
    actor_id:
        The user or system that triggered the event. Defaults to "system".
    details:
        Arbitrary key-value metadata about the event.
    timestamp:
        UTC datetime of the event. Defaults to now.
    """

    event_type: str
    agent_id: str
    actor_id: str = "system"
    details: dict[str, object] = field(default_factory=dict)
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dictionary suitable for JSON encoding."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "agent_id": self.agent_id,
            "actor_id": self.actor_id,
            "details": self.details,
        }


class TrustAuditLogger:
    """Append-only JSONL logger for trust events.

    Thread-safe. Each call to :meth:`log` appends one JSON line to the
    configured file path (or to the in-memory buffer if no path is set).

    Parameters
    ----------
    log_path:
        Path to the JSONL log file. Parent directories are created
        automatically. If None, events are buffered in memory only.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        self._log_path = log_path
        self._buffer: list[str] = []
        self._lock = threading.Lock()

        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Core logging
    # ------------------------------------------------------------------

    def log(self, event: AuditEvent) -> None:
        """Append an audit event to the log."""
        line = json.dumps(event.to_dict(), separators=(",", ":"), default=str)
        with self._lock:
            if self._log_path is not None:
                with self._log_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            else:
                self._buffer.append(line)

    def log_event(
        self,
        event_type: str,
        agent_id: str,
        actor_id: str = "system",
        **details: object,
    ) -> None:
        """Log a simple event without constructing an AuditEvent."""
        self.log(
            AuditEvent(
                event_type=event_type,
                agent_id=agent_id,
                actor_id=actor_id,
                details=dict(details),
            )
        )

    # ------------------------------------------------------------------
    # Convenience event loggers
    # ------------------------------------------------------------------

    def log_xp_awarded(
        self,
        agent_id: str,
        xp: int,
        action_type: str,
        total_xp: int,
        actor_id: str = "system",
    ) -> None:
        """Log an xp_awarded event."""
        self.log_event(
            "xp_awarded",
            agent_id=agent_id,
            actor_id=actor_id,
            xp=xp,
            action_type=action_type,
            total_xp=total_xp,
        )

    def log_level_up(
        self,
        agent_id: str,
        old_level: int,
        new_level: int,
        trust_tier: str,
        actor_id: str = "system",
    ) -> None:
        """Log a level_up event."""
        self.log_event(
            "level_up",
            agent_id=agent_id,
            actor_id=actor_id,
            old_level=old_level,
            new_level=new_level,
            trust_tier=trust_tier,
        )

    def log_badge_earned(
        self,
        agent_id: str,
        badge_id: str,
        badge_name: str,
        manual: bool = False,
        actor_id: str = "system",
    ) -> None:
        """Log a badge_earned event."""
        self.log_event(
            "badge_earned",
            agent_id=agent_id,
            actor_id=actor_id,
            badge_id=badge_id,
            badge_name=badge_name,
            manual=manual,
        )

    # ------------------------------------------------------------------
    # Buffer access
    # ------------------------------------------------------------------

    def drain_buffer(self) -> list[str]:
        """Return and clear the in-memory event buffer."""
        with self._lock:
            events = list(self._buffer)
            self._buffer.clear()
        return events

    def read_log(self, tail: int | None = None) -> list[dict[str, object]]:
        """Read events from the log file (or the buffer when no file is set).

        Parameters
        ----------
        tail:
            If provided, return only the last *tail* events.

        Returns
        -------
        list[dict[str, object]]
            Parsed event dictionaries in chronological order.
        """
        if self._log_path is None or not self._log_path.exists():
            with self._lock:
                lines = list(self._buffer)
        else:
            with self._lock:
                lines = self._log_path.read_text(encoding="utf-8").splitlines()

        parsed: list[dict[str, object]] = []
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            try:
                parsed.append(json.loads(stripped))
            except json.JSONDecodeError:
                continue

        if tail is not None:
            return parsed[-tail:]
        return parsed
