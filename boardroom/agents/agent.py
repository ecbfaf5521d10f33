"""Agent implementation: a role-bound worker with a polling loop."""

import asyncio
import time
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol

from ..errors import (
    AgentNotFoundError,
    BoardroomError,
    HandlerExecutionError,
    HandlerNotFoundError,
    HandlerTimeoutError,
    InitializationError,
    PersistenceError,
)
from ..event_bus import EventBus
from ..logging_config import get_agent_logger
from ..models import (
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
)
from ..storage import IStorage
from .descriptor import RoleDescriptor, TaskHandler


ESCALATION_REASONING = "Requires human approval due to impact or uncertainty"


class IAgent(Protocol):
    """A single role-bound agent."""

    @property
    def role(self) -> AgentRole:
        """Role this agent serves."""
        ...

    @property
    def status(self) -> AgentStatus:
        """Live in-memory status."""
        ...

    async def initialize(self) -> None:
        """Bind to the persisted identity and register handlers."""
        ...

    async def start(self) -> None:
        """Mark active and begin polling."""
        ...

    async def stop(self) -> None:
        """Stop polling; the in-flight tick is allowed to finish."""
        ...

    async def pause(self) -> None:
        """Halt polling without touching task state."""
        ...

    async def resume(self) -> None:
        """Restart polling if the agent is running."""
        ...


class Agent:
    """Executes tasks addressed to one role.

    Every `poll_interval` seconds the agent fetches up to
    `max_concurrent_tasks` pending tasks, claims each one, runs the handler
    registered for its task type and records the outcome. Failures are
    contained per task; the loop itself never dies on a task error.
    """

    def __init__(
        self,
        descriptor: RoleDescriptor,
        storage: IStorage,
        event_bus: EventBus | None = None,
    ):
        self._descriptor = descriptor
        self._storage = storage
        self._events = event_bus or EventBus(name=f"agent:{descriptor.role.value}")
        self._log = get_agent_logger(__name__, descriptor.role.value)

        self._record: AgentRecord | None = None
        self._handlers: dict[str, TaskHandler] = {}
        self._status = AgentStatus.OFFLINE
        self._metrics = AgentMetrics()

        self._running = False
        self._poll_task: asyncio.Task | None = None
        self._poll_stop: asyncio.Event | None = None

    # Properties
    @property
    def role(self) -> AgentRole:
        return self._descriptor.role

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def descriptor(self) -> RoleDescriptor:
        return self._descriptor

    @property
    def agent_id(self) -> str | None:
        return self._record.id if self._record else None

    @property
    def status(self) -> AgentStatus:
        return self._status

    @property
    def metrics(self) -> AgentMetrics:
        return replace(self._metrics)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def task_types(self) -> list[str]:
        return sorted(self._handlers)

    def register_handler(self, task_type: str, handler: TaskHandler) -> None:
        """Register (or replace) the handler for a task type."""
        self._handlers[task_type] = handler

    # Lifecycle
    async def initialize(self) -> None:
        """Resolve the persisted identity for this role and register handlers.

        Raises:
            InitializationError: No identity exists for the role, or the
                store could not be read.
        """
        role = self.role.value
        try:
            record = await self._storage.get_agent_by_role(self.role)
        except PersistenceError as e:
            raise InitializationError(
                f"Could not load agent with role '{role}': {e}", roles=[role]
            ) from e

        if record is None:
            raise InitializationError(
                f"Agent with role '{role}' not found in store", roles=[role]
            )

        self._record = record
        self._log.bind(agent_id=record.id)
        self._metrics = replace(record.metrics, tasks_in_progress=0)
        self._status = AgentStatus.IDLE
        for task_type, handler in self._descriptor.handlers.items():
            self.register_handler(task_type, handler)

        self._log.info(
            "Agent %s (%s) initialized with %s handlers",
            self.name,
            role,
            len(self._handlers),
        )
        self._emit("initialized", {"name": self.name, "task_types": self.task_types})

    async def start(self) -> None:
        """Mark the agent active and begin polling. No-op when running."""
        if self._record is None:
            await self.initialize()

        if self._running:
            self._log.debug("Agent %s already running", self.name)
            return

        self._running = True
        await self._set_status(AgentStatus.ACTIVE)
        self._start_polling()

        self._log.info("Agent %s started", self.name)
        self._emit("started", {"name": self.name})

    async def stop(self) -> None:
        """Stop polling and mark the agent idle.

        No further ticks are scheduled. A tick already in progress is not
        cancelled: stop() waits for its batch to finish.
        """
        if not self._running:
            return

        self._running = False
        await self._stop_polling()
        await self._set_status(AgentStatus.IDLE)

        self._log.info("Agent %s stopped", self.name)
        self._emit("stopped", {"name": self.name})

    async def deactivate(self) -> None:
        """Stop and mark the agent offline."""
        await self.stop()
        if self._record is not None and self._status != AgentStatus.OFFLINE:
            await self._set_status(AgentStatus.OFFLINE)

    async def pause(self) -> None:
        """Set status paused and halt polling. Task state is untouched."""
        if self._record is None:
            return

        await self._stop_polling()
        await self._set_status(AgentStatus.PAUSED)

        self._log.info("Agent %s paused", self.name)
        self._emit("paused", {"name": self.name})

    async def resume(self) -> None:
        """Resume polling. Only applies while the agent is started."""
        if self._record is None or not self._running:
            self._log.debug("Agent %s not running, resume ignored", self.name)
            return

        await self._set_status(AgentStatus.ACTIVE)
        self._start_polling()

        self._log.info("Agent %s resumed", self.name)
        self._emit("resumed", {"name": self.name})

    # Polling
    def _start_polling(self) -> None:
        if self.is_polling:
            return
        self._poll_stop = asyncio.Event()
        self._poll_task = asyncio.create_task(
            self._poll_loop(self._poll_stop), name=f"poll:{self.role.value}"
        )

    async def _stop_polling(self) -> None:
        task, stop = self._poll_task, self._poll_stop
        self._poll_task = None
        self._poll_stop = None
        if stop is not None:
            stop.set()
        # Let the current tick run to completion; never wait on ourselves.
        if task is not None and task is not asyncio.current_task():
            await task

    async def _poll_loop(self, stop: asyncio.Event) -> None:
        interval = self._descriptor.poll_interval
        while not stop.is_set():
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._log.exception("Agent %s poll tick failed", self.name)
                self._poll_failed(e)
            if stop.is_set():
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def poll_once(self) -> int:
        """Run one tick: fetch a bounded batch of pending tasks and process it.

        Returns:
            Number of tasks this tick claimed and finished.
        """
        if self._record is None:
            return 0

        try:
            tasks = await self._storage.get_tasks_for_agent(
                self._record.id,
                TaskStatus.PENDING,
                limit=self._descriptor.max_concurrent_tasks,
                prioritized=self._descriptor.prioritized,
            )
        except PersistenceError as e:
            self._log.error("Agent %s failed to poll tasks: %s", self.name, e)
            self._poll_failed(e)
            return 0

        if self._status == AgentStatus.ERROR and self._running and self.is_polling:
            await self._set_status(AgentStatus.ACTIVE)

        processed = 0
        for task in tasks:
            try:
                if await self._process_task(task):
                    processed += 1
            except PersistenceError as e:
                self._log.error(
                    "Agent %s lost track of task %s: %s", self.name, task.id, e
                )
                self._emit(
                    "error", {"context": "task", "task_id": task.id, "error": str(e)}
                )
            except Exception as e:
                self._log.exception("Unexpected error processing task %s", task.id)
                self._emit(
                    "error", {"context": "task", "task_id": task.id, "error": str(e)}
                )
        return processed

    def _poll_failed(self, error: Exception) -> None:
        # The next tick retries; a successful fetch restores ACTIVE.
        self._status = AgentStatus.ERROR
        self._emit("error", {"context": "polling", "error": str(error)})

    async def _process_task(self, task: AgentTask) -> bool:
        claimed = await self._storage.claim_task(task.id)
        if claimed is None:
            self._log.debug("Task %s already claimed, skipping", task.id)
            return False

        self._metrics.record_started()
        finished = False
        try:
            await self._execute(claimed)
            finished = True
        finally:
            # A failed final write leaves the task in_progress in the store
            if not finished:
                self._metrics.record_abandoned()
            await self._persist_metrics()
        return True

    async def _execute(self, task: AgentTask) -> None:
        started = time.monotonic()
        self._emit("task:started", {"task": task.to_dict()})

        result: Any = None
        error: BoardroomError | None = None

        handler = self._handlers.get(task.task_type)
        if handler is None:
            error = HandlerNotFoundError(task.task_type)
            self._log.warning("Agent %s: %s", self.name, error)
        else:
            try:
                result = await self._run_handler(handler, task)
            except HandlerExecutionError as e:
                error = e

        elapsed_ms = (time.monotonic() - started) * 1000

        if error is None:
            try:
                task = await self._storage.update_task_status(
                    task.id, TaskStatus.COMPLETED, result=result
                )
            except (TypeError, ValueError) as e:
                error = HandlerExecutionError(
                    f"Handler result cannot be stored: {e}",
                    task_id=task.id,
                    task_type=task.task_type,
                )

        if error is None:
            self._metrics.record_success(elapsed_ms)
            self._log.info(
                "Agent %s completed task %s (%s)",
                self.name,
                task.id,
                task.task_type,
                extra={"context": {"task_id": task.id, "elapsed_ms": elapsed_ms}},
            )
            self._emit("task:completed", {"task": task.to_dict(), "result": result})
        else:
            task = await self._storage.update_task_status(
                task.id, TaskStatus.FAILED, error=error.message
            )
            self._metrics.record_failure(elapsed_ms)
            self._log.error(
                "Agent %s failed task %s (%s): %s",
                self.name,
                task.id,
                task.task_type,
                error.message,
            )
            self._emit("task:failed", {"task": task.to_dict(), "error": error.message})

    async def _run_handler(self, handler: TaskHandler, task: AgentTask) -> Any:
        timeout = self._descriptor.timeout_for(task.task_type)
        try:
            if timeout is None:
                return await handler(self, task)
            return await asyncio.wait_for(handler(self, task), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise HandlerTimeoutError(
                timeout, task_id=task.id, task_type=task.task_type
            ) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._log.debug("Handler for %s raised", task.task_type, exc_info=True)
            raise HandlerExecutionError.from_exception(
                e, task_id=task.id, task_type=task.task_type
            ) from e

    # Delegation
    async def delegate_task(
        self,
        to_role: AgentRole | str,
        task_type: str,
        title: str,
        payload: dict[str, Any] | None = None,
        *,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: datetime | None = None,
    ) -> AgentTask:
        """Create a task for the agent bound to `to_role`.

        Raises:
            AgentNotFoundError: No agent exists for the role; no task is created.
        """
        try:
            role = AgentRole(to_role)
        except ValueError:
            raise AgentNotFoundError(
                f"Target agent not found for role: {to_role}", role=str(to_role)
            ) from None

        target = await self._storage.get_agent_by_role(role)
        if target is None:
            raise AgentNotFoundError(
                f"Target agent not found for role: {role.value}", role=role.value
            )

        task = await self._storage.create_task(
            AgentTask(
                id=str(uuid.uuid4()),
                from_agent_id=self.agent_id,
                to_agent_id=target.id,
                task_type=task_type,
                title=title,
                description=description,
                payload=payload or {},
                priority=TaskPriority(priority),
                deadline=deadline,
            )
        )

        self._log.info("Agent %s delegated '%s' to %s", self.name, title, role.value)
        self._emit("task:delegated", {"task": task.to_dict(), "to_role": role.value})
        return task

    # Decisions
    async def make_decision(
        self,
        decision_type: DecisionType,
        title: str,
        description: str,
        *,
        reasoning: str = "",
        data: dict[str, Any] | None = None,
        confidence: float = 0.5,
        impact: Impact = Impact.MEDIUM,
        auto_approve: bool | None = None,
    ) -> AgentDecision:
        """Record an auditable decision.

        `auto_approve` wins when given; otherwise the role's policy decides.
        Escalations are never auto-approved.
        """
        if self._record is None:
            raise RuntimeError("Agent not initialized")
        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {confidence}")

        decision_type = DecisionType(decision_type)
        impact = Impact(impact)
        approved = self._should_auto_approve(decision_type, confidence, impact, auto_approve)

        decision = await self._storage.create_decision(
            AgentDecision(
                id=str(uuid.uuid4()),
                agent_id=self._record.id,
                agent_role=self.role,
                decision_type=decision_type,
                title=title,
                description=description,
                reasoning=reasoning,
                data=data or {},
                confidence=confidence,
                impact=impact,
                approved=approved,
                approved_by=self._record.id if approved else None,
                executed_at=datetime.now(timezone.utc) if approved else None,
            )
        )

        self._log.info(
            "Agent %s decision '%s' (%s, approved=%s)",
            self.name,
            title,
            decision_type.value,
            approved,
        )
        self._emit("decision:made", {"decision": decision.to_dict()})
        return decision

    def _should_auto_approve(
        self,
        decision_type: DecisionType,
        confidence: float,
        impact: Impact,
        auto_approve: bool | None,
    ) -> bool:
        if decision_type == DecisionType.ESCALATE_TO_HUMAN:
            return False
        if auto_approve is not None:
            return auto_approve
        policy = self._descriptor.auto_approve
        return bool(policy and policy(decision_type, confidence, impact))

    async def escalate_to_human(
        self,
        title: str,
        description: str,
        data: dict[str, Any] | None = None,
    ) -> AgentDecision:
        """Record a decision that always waits for external approval."""
        return await self.make_decision(
            DecisionType.ESCALATE_TO_HUMAN,
            title,
            description,
            reasoning=ESCALATION_REASONING,
            data=data,
            confidence=0.5,
            impact=Impact.HIGH,
            auto_approve=False,
        )

    # Alerts
    async def raise_alert(
        self,
        title: str,
        message: str,
        *,
        severity: Impact = Impact.MEDIUM,
        data: dict[str, Any] | None = None,
    ) -> AgentAlert:
        """Persist an operator-facing alert."""
        if self._record is None:
            raise RuntimeError("Agent not initialized")

        alert = await self._storage.create_alert(
            AgentAlert(
                id=str(uuid.uuid4()),
                agent_id=self._record.id,
                agent_role=self.role,
                title=title,
                message=message,
                severity=Impact(severity),
                data=data or {},
            )
        )

        self._log.warning("Agent %s raised alert: %s", self.name, title)
        self._emit("alert:raised", {"alert": alert.to_dict()})
        return alert

    # Helpers
    async def _set_status(self, status: AgentStatus) -> None:
        self._status = status
        if self._record is None:
            return
        try:
            await self._storage.update_agent_status(self._record.id, status)
        except PersistenceError as e:
            self._log.error("Agent %s failed to persist status %s: %s", self.name, status.value, e)
            self._emit("error", {"context": "status", "error": str(e)})

    async def _persist_metrics(self) -> None:
        if self._record is None:
            return
        try:
            await self._storage.update_agent_metrics(self._record.id, self._metrics)
        except PersistenceError as e:
            self._log.error("Agent %s failed to persist metrics: %s", self.name, e)
            self._emit("error", {"context": "metrics", "error": str(e)})

    def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        self._events.emit(
            AgentEvent(
                type=event_type,
                role=self.role.value,
                agent_id=self.agent_id,
                data=data,
            )
        )
