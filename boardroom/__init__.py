"""Boardroom: role-bound agents coordinated through a shared store."""

from .agents import Agent, IAgent, RoleDescriptor, confidence_above, never_auto_approve
from .errors import BoardroomError
from .event_bus import EventBus, IEventBus
from .models import (
    AgentAlert,
    AgentDecision,
    AgentEvent,
    AgentMetrics,
    AgentRecord,
    AgentRole,
    AgentStatus,
    AgentTask,
    DecisionType,
    Impact,
    TaskPriority,
    TaskStatus,
    TraceEvent,
)
from .orchestrator import IOrchestrator, Orchestrator, OrchestratorStatus
from .roles import default_roles, provision_agents
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Orchestration
    "Orchestrator",
    "IOrchestrator",
    "OrchestratorStatus",
    "Agent",
    "IAgent",
    "RoleDescriptor",
    "confidence_above",
    "never_auto_approve",
    "default_roles",
    "provision_agents",
    # Models
    "AgentRecord",
    "AgentRole",
    "AgentStatus",
    "AgentMetrics",
    "AgentTask",
    "TaskStatus",
    "TaskPriority",
    "AgentDecision",
    "DecisionType",
    "Impact",
    "AgentAlert",
    "AgentEvent",
    "TraceEvent",
    # Components
    "IStorage",
    "Storage",
    "IEventBus",
    "EventBus",
    "ITracker",
    "Tracker",
    "BoardroomError",
]
