"""Role descriptors: everything that makes one agent different from another."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from ..config import (
    DEFAULT_HANDLER_TIMEOUT,
    DEFAULT_MAX_CONCURRENT_TASKS,
    DEFAULT_POLL_INTERVAL,
)
from ..models import AgentRole, AgentTask, DecisionType, Impact

if TYPE_CHECKING:
    from .agent import Agent


TaskHandler = Callable[["Agent", AgentTask], Awaitable[Any]]
AutoApprovePolicy = Callable[[DecisionType, float, Impact], bool]


def confidence_above(
    threshold: float, max_impact: Impact = Impact.HIGH
) -> AutoApprovePolicy:
    """Approve when confidence exceeds `threshold` and impact is at most `max_impact`."""

    def policy(decision_type: DecisionType, confidence: float, impact: Impact) -> bool:
        return confidence > threshold and Impact(impact).rank <= max_impact.rank

    return policy


def never_auto_approve(
    decision_type: DecisionType, confidence: float, impact: Impact
) -> bool:
    return False


@dataclass
class RoleDescriptor:
    """Configuration for a single parameterized Agent.

    Attributes:
        role: Role the agent is bound to; resolves its persisted identity.
        name: Display name.
        handlers: Task type -> async handler(agent, task).
        auto_approve: Policy applied when make_decision() is not told
            explicitly whether to auto-approve.
        poll_interval: Seconds between poll ticks.
        max_concurrent_tasks: Upper bound on tasks fetched per tick.
        handler_timeout: Default handler time budget in seconds (None = none).
        task_timeouts: Per task type overrides of handler_timeout.
        prioritized: Dequeue critical -> low instead of plain FIFO.
    """

    role: AgentRole
    name: str
    description: str = ""
    capabilities: list[str] = field(default_factory=list)
    handlers: dict[str, TaskHandler] = field(default_factory=dict)
    auto_approve: AutoApprovePolicy | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_concurrent_tasks: int = DEFAULT_MAX_CONCURRENT_TASKS
    handler_timeout: float | None = DEFAULT_HANDLER_TIMEOUT
    task_timeouts: dict[str, float | None] = field(default_factory=dict)
    prioritized: bool = False

    def __post_init__(self) -> None:
        self.role = AgentRole(self.role)
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.max_concurrent_tasks < 1:
            raise ValueError("max_concurrent_tasks must be at least 1")

    def timeout_for(self, task_type: str) -> float | None:
        if task_type in self.task_timeouts:
            return self.task_timeouts[task_type]
        return self.handler_timeout
