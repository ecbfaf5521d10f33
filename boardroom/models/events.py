"""Event and tracing data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any


@dataclass
class AgentEvent:
    """A lifecycle, task, decision or error notification.

    Agents emit plain types such as "task:completed"; the orchestrator
    re-emits them namespaced by role ("cfo:task:completed").
    """

    type: str
    role: str | None = None
    agent_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def namespaced(self, prefix: str) -> "AgentEvent":
        return replace(self, type=f"{prefix}:{self.type}")


@dataclass
class TraceEvent:
    """A persisted observability event."""

    id: str
    event_type: str
    actor: str  # "agent:<role>" or "orchestrator"
    data: dict  # full self-contained data for display
    timestamp: datetime
