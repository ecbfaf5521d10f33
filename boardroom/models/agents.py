"""Agent-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class AgentRole(str, Enum):
    """Closed set of roles an agent can be bound to."""

    CEO = "ceo"
    CTO = "cto"
    CMO = "cmo"
    CFO = "cfo"
    RESEARCHER = "researcher"
    ARCHITECT = "architect"
    CODER = "coder"
    REVIEWER = "reviewer"


class AgentStatus(str, Enum):
    """Lifecycle status of an agent."""

    OFFLINE = "offline"
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"
    ERROR = "error"


@dataclass
class AgentMetrics:
    """Rolling task counters for one agent."""

    tasks_completed: int = 0
    tasks_in_progress: int = 0
    tasks_failed: int = 0
    avg_response_time_ms: float = 0.0
    success_rate: float = 0.0

    @property
    def tasks_finished(self) -> int:
        return self.tasks_completed + self.tasks_failed

    def record_started(self) -> None:
        self.tasks_in_progress += 1

    def record_success(self, elapsed_ms: float) -> None:
        self.tasks_completed += 1
        self._record_finished(elapsed_ms)

    def record_failure(self, elapsed_ms: float) -> None:
        self.tasks_failed += 1
        self._record_finished(elapsed_ms)

    def record_abandoned(self) -> None:
        """A started task whose outcome could not be recorded."""
        self.tasks_in_progress = max(0, self.tasks_in_progress - 1)

    def _record_finished(self, elapsed_ms: float) -> None:
        self.tasks_in_progress = max(0, self.tasks_in_progress - 1)
        finished = self.tasks_finished
        # Running mean over every finished task
        self.avg_response_time_ms += (elapsed_ms - self.avg_response_time_ms) / finished
        self.success_rate = self.tasks_completed / finished

    def to_dict(self) -> dict:
        return {
            "tasks_completed": self.tasks_completed,
            "tasks_in_progress": self.tasks_in_progress,
            "tasks_failed": self.tasks_failed,
            "avg_response_time_ms": self.avg_response_time_ms,
            "success_rate": self.success_rate,
        }


@dataclass
class AgentRecord:
    """Persisted identity of an agent, provisioned by an operator."""

    id: str
    name: str
    role: AgentRole
    status: AgentStatus = AgentStatus.OFFLINE
    description: str = ""
    capabilities: list[str] = field(default_factory=list)
    metrics: AgentMetrics = field(default_factory=AgentMetrics)
    last_active_at: datetime | None = None
    created_at: datetime | None = None
