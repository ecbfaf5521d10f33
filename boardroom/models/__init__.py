"""Core data models for Boardroom."""

from .agents import AgentMetrics, AgentRecord, AgentRole, AgentStatus
from .decisions import AgentAlert, AgentDecision, DecisionType, Impact
from .events import AgentEvent, TraceEvent
from .tasks import AgentTask, TaskPriority, TaskStatus

__all__ = [
    # Agents
    "AgentRole",
    "AgentStatus",
    "AgentMetrics",
    "AgentRecord",
    # Tasks
    "AgentTask",
    "TaskPriority",
    "TaskStatus",
    # Decisions
    "AgentDecision",
    "AgentAlert",
    "DecisionType",
    "Impact",
    # Events
    "AgentEvent",
    "TraceEvent",
]
