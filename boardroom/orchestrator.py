"""Orchestrator: owns the agents, sequences their lifecycle, brokers approvals."""

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Protocol

from .agents import Agent, RoleDescriptor
from .errors import AgentNotFoundError, InitializationError
from .event_bus import WILDCARD, EventBus
from .logging_config import get_logger
from .models import (
    AgentAlert,
    AgentDecision,
    AgentEvent,
    AgentMetrics,
    AgentRole,
    AgentStatus,
    AgentTask,
    TaskPriority,
    TaskStatus,
)
from .roles import default_roles
from .storage import IStorage
from .tracker import Tracker

logger = get_logger(__name__)

ORCHESTRATOR = "orchestrator"


@dataclass
class AgentInfo:
    """Live status of one agent merged with its persisted identity."""

    role: AgentRole
    name: str
    agent_id: str | None
    status: AgentStatus
    is_running: bool
    metrics: AgentMetrics
    last_active_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "name": self.name,
            "agent_id": self.agent_id,
            "status": self.status.value,
            "is_running": self.is_running,
            "metrics": self.metrics.to_dict(),
            "last_active_at": self.last_active_at.isoformat() if self.last_active_at else None,
        }


@dataclass
class StatusSummary:
    total_agents: int = 0
    active_agents: int = 0
    idle_agents: int = 0
    paused_agents: int = 0
    error_agents: int = 0
    total_tasks_completed: int = 0
    total_tasks_failed: int = 0
    total_tasks_pending: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class OrchestratorStatus:
    is_running: bool
    started_at: datetime | None
    agents: list[AgentInfo] = field(default_factory=list)
    summary: StatusSummary = field(default_factory=StatusSummary)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "agents": [agent.to_dict() for agent in self.agents],
            "summary": self.summary.to_dict(),
        }


class IOrchestrator(Protocol):
    """Lifecycle and control surface over a set of agents."""

    async def initialize(self) -> None:
        """Construct and initialize one agent per configured role."""
        ...

    async def start_all(self) -> None:
        """Start agents in declared order."""
        ...

    async def stop_all(self) -> None:
        """Stop agents in reverse order."""
        ...

    async def get_status(self) -> OrchestratorStatus:
        """Aggregate live agent status and store task counts."""
        ...


class Orchestrator:
    """Owns the configured agents and relays their events on one bus.

    Agent events are re-emitted as "<role>:<type>" (for example
    "cfo:task:failed"); the orchestrator's own events use the
    "orchestrator:" prefix. A Tracker, when given, persists everything that
    crosses the orchestrator bus.
    """

    def __init__(
        self,
        storage: IStorage,
        roles: Iterable[RoleDescriptor] | None = None,
        *,
        event_bus: EventBus | None = None,
        tracker: Tracker | None = None,
        auto_start: bool = False,
    ):
        self._storage = storage
        self._descriptors = list(roles) if roles is not None else default_roles()

        seen: set[AgentRole] = set()
        for descriptor in self._descriptors:
            if descriptor.role in seen:
                raise ValueError(f"Duplicate role configured: {descriptor.role.value}")
            seen.add(descriptor.role)

        self._events = event_bus or EventBus(name=ORCHESTRATOR)
        self._tracker = tracker
        if tracker is not None:
            tracker.attach(self._events)
        self._auto_start = auto_start

        # Insertion order is the start order.
        self._agents: dict[AgentRole, Agent] = {}
        self._initialized = False
        self._running = False
        self._started_at: datetime | None = None

    @property
    def storage(self) -> IStorage:
        return self._storage

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def roles(self) -> list[AgentRole]:
        return [d.role for d in self._descriptors]

    @property
    def agents(self) -> list[Agent]:
        return list(self._agents.values())

    # Lifecycle
    async def initialize(self) -> None:
        """Build and initialize every agent.

        All roles are attempted; if any fail, a single InitializationError
        naming every failed role is raised and no agent is kept.
        """
        if self._initialized:
            return

        agents: dict[AgentRole, Agent] = {}
        failures: list[InitializationError] = []
        for descriptor in self._descriptors:
            agent = Agent(descriptor, self._storage)
            agent.events.subscribe(WILDCARD, self._relay)
            try:
                await agent.initialize()
            except InitializationError as e:
                logger.error("Failed to initialize %s: %s", descriptor.role.value, e)
                failures.append(e)
            agents[descriptor.role] = agent

        if failures:
            for agent in agents.values():
                await agent.events.close()
            roles = [role for e in failures for role in e.roles]
            raise InitializationError(
                "Failed to initialize agents: " + "; ".join(e.message for e in failures),
                roles=roles,
            )

        self._agents = agents
        self._initialized = True
        logger.info("Orchestrator initialized %s agents", len(agents))
        self._emit("initialized", {"roles": [role.value for role in agents]})

        if self._auto_start:
            await self.start_all()

    async def start_all(self) -> None:
        """Start every agent, lead role first. No-op when already running."""
        if self._running:
            return
        if not self._initialized:
            await self.initialize()
            if self._running:
                return

        for agent in self._agents.values():
            await agent.start()

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        logger.info("Orchestrator started %s agents", len(self._agents))
        self._emit("started", {"roles": [role.value for role in self._agents]})

    async def stop_all(self) -> None:
        """Stop every agent in reverse start order. No-op when nothing runs."""
        running = [a for a in self._agents.values() if a.is_running]
        if not self._running and not running:
            return

        for agent in reversed(list(self._agents.values())):
            await agent.stop()

        self._running = False
        logger.info("Orchestrator stopped")
        self._emit("stopped", {})

    async def shutdown(self) -> None:
        """Stop everything, mark agents offline and drain the event buses."""
        await self.stop_all()
        for agent in reversed(list(self._agents.values())):
            await agent.deactivate()
            await agent.events.close()

        self._emit("shutdown", {})
        await self._events.close()
        logger.info("Orchestrator shut down")

    async def flush_events(self) -> None:
        """Wait until agent events are relayed and delivered."""
        for agent in self._agents.values():
            await agent.events.join()
        await self._events.join()

    # Single-agent control
    def get_agent(self, role: AgentRole | str) -> Agent:
        """Return the agent configured for `role`.

        Raises:
            AgentNotFoundError: The role is unknown or not configured.
        """
        try:
            resolved = AgentRole(role)
        except ValueError:
            raise AgentNotFoundError(
                f"Agent with role '{role}' not found", role=str(role)
            ) from None

        agent = self._agents.get(resolved)
        if agent is None:
            raise AgentNotFoundError(
                f"Agent with role '{resolved.value}' not found", role=resolved.value
            )
        return agent

    async def start_agent(self, role: AgentRole | str) -> None:
        await self.get_agent(role).start()

    async def stop_agent(self, role: AgentRole | str) -> None:
        await self.get_agent(role).stop()

    async def pause_agent(self, role: AgentRole | str) -> None:
        await self.get_agent(role).pause()

    async def resume_agent(self, role: AgentRole | str) -> None:
        await self.get_agent(role).resume()

    # Status
    async def get_agent_status(self, role: AgentRole | str) -> AgentInfo:
        agent = self.get_agent(role)
        record = await self._storage.get_agent_by_role(agent.role)
        return self._agent_info(agent, record.last_active_at if record else None)

    async def get_status(self) -> OrchestratorStatus:
        """Live agent status merged with persisted activity and task counts."""
        last_active = {
            record.role: record.last_active_at
            for record in await self._storage.get_all_agents()
        }
        agents = [
            self._agent_info(agent, last_active.get(role))
            for role, agent in self._agents.items()
        ]
        counts = await self._storage.count_tasks_by_status()

        by_status = [info.status for info in agents]
        summary = StatusSummary(
            total_agents=len(agents),
            active_agents=by_status.count(AgentStatus.ACTIVE),
            idle_agents=by_status.count(AgentStatus.IDLE),
            paused_agents=by_status.count(AgentStatus.PAUSED),
            error_agents=by_status.count(AgentStatus.ERROR),
            total_tasks_completed=counts[TaskStatus.COMPLETED],
            total_tasks_failed=counts[TaskStatus.FAILED],
            total_tasks_pending=counts[TaskStatus.PENDING],
        )
        return OrchestratorStatus(
            is_running=self._running,
            started_at=self._started_at,
            agents=agents,
            summary=summary,
        )

    @staticmethod
    def _agent_info(agent: Agent, last_active_at: datetime | None) -> AgentInfo:
        return AgentInfo(
            role=agent.role,
            name=agent.name,
            agent_id=agent.agent_id,
            status=agent.status,
            is_running=agent.is_running,
            metrics=agent.metrics,
            last_active_at=last_active_at,
        )

    async def get_command_center_summary(
        self, decision_limit: int = 10, alert_limit: int = 20
    ) -> dict[str, Any]:
        """Status plus recent decisions, active alerts and pending approvals."""
        status = await self.get_status()
        decisions = await self._storage.get_recent_decisions(decision_limit)
        alerts = await self._storage.get_active_alerts(alert_limit)
        approvals = await self._storage.get_pending_approvals()
        return {
            "status": status.to_dict(),
            "recent_decisions": [d.to_dict() for d in decisions],
            "active_alerts": [a.to_dict() for a in alerts],
            "pending_approvals": [d.to_dict() for d in approvals],
        }

    # Task injection
    async def send_task_to_agent(
        self,
        from_role: AgentRole | str | None,
        to_role: AgentRole | str,
        task_type: str,
        title: str,
        payload: dict[str, Any] | None = None,
        *,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: datetime | None = None,
    ) -> AgentTask:
        """Create a task for `to_role` on behalf of an agent or an outside caller."""
        target = self.get_agent(to_role)
        sender = self.get_agent(from_role) if from_role is not None else None

        task = await self._storage.create_task(
            AgentTask(
                id=str(uuid.uuid4()),
                from_agent_id=sender.agent_id if sender else None,
                to_agent_id=target.agent_id,
                task_type=task_type,
                title=title,
                description=description,
                payload=payload or {},
                priority=TaskPriority(priority),
                deadline=deadline,
            )
        )

        logger.info("Task '%s' sent to %s", title, target.role.value)
        self._emit("task:sent", {"task": task.to_dict(), "to_role": target.role.value})
        return task

    async def broadcast_task(
        self,
        task_type: str,
        title: str,
        payload: dict[str, Any] | None = None,
        *,
        priority: TaskPriority = TaskPriority.MEDIUM,
    ) -> list[AgentTask]:
        """Send an independent copy of the same task to every configured role."""
        return [
            await self.send_task_to_agent(
                None, role, task_type, title, dict(payload or {}), priority=priority
            )
            for role in self._agents
        ]

    # Approvals
    async def get_pending_decisions(self) -> list[AgentDecision]:
        return await self._storage.get_pending_approvals()

    async def approve_decision(self, decision_id: str, approved_by: str) -> AgentDecision:
        decision = await self._storage.approve_decision(decision_id, approved_by)
        logger.info("Decision %s approved by %s", decision_id, approved_by)
        self._emit(
            "decision:approved",
            {"decision": decision.to_dict(), "approved_by": approved_by},
        )
        return decision

    async def reject_decision(
        self, decision_id: str, rejected_by: str, reason: str = ""
    ) -> AgentDecision:
        decision = await self._storage.reject_decision(decision_id, rejected_by, reason)
        logger.info("Decision %s rejected by %s", decision_id, rejected_by)
        self._emit(
            "decision:rejected",
            {"decision": decision.to_dict(), "rejected_by": rejected_by, "reason": reason},
        )
        return decision

    async def resolve_alert(self, alert_id: str, resolved_by: str) -> AgentAlert:
        alert = await self._storage.resolve_alert(alert_id, resolved_by)
        self._emit("alert:resolved", {"alert": alert.to_dict(), "resolved_by": resolved_by})
        return alert

    # Events
    async def _relay(self, event: AgentEvent) -> None:
        self._events.emit(event.namespaced(event.role or ORCHESTRATOR))

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        self._events.emit(AgentEvent(type=f"{ORCHESTRATOR}:{event_type}", data=data))
