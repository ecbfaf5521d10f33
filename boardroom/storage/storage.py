"""SQLite storage implementation."""

import functools
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import (
    AlertNotFoundError,
    DecisionNotFoundError,
    DecisionStateError,
    InvalidTaskTransitionError,
    PersistenceError,
    TaskNotFoundError,
)
from ..logging_config import get_logger
from ..models import (
    AgentAlert,
    AgentDecision,
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

logger = get_logger(__name__)


class IStorage(Protocol):
    """Persistent storage for agents, tasks, decisions, alerts and traces."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Agents
    async def save_agent(self, agent: AgentRecord) -> AgentRecord:
        """Insert or replace an agent identity."""
        ...

    async def get_agent_by_role(self, role: AgentRole) -> AgentRecord | None:
        """Resolve the agent bound to a role."""
        ...

    async def get_agent_by_id(self, agent_id: str) -> AgentRecord | None:
        """Get an agent by ID."""
        ...

    async def get_all_agents(self) -> list[AgentRecord]:
        """List every provisioned agent."""
        ...

    async def update_agent_status(self, agent_id: str, status: AgentStatus) -> None:
        """Set agent status and stamp last activity."""
        ...

    async def update_agent_metrics(self, agent_id: str, metrics: AgentMetrics) -> None:
        """Persist agent task counters."""
        ...

    # Tasks
    async def create_task(self, task: AgentTask) -> AgentTask:
        """Persist a new pending task."""
        ...

    async def get_task(self, task_id: str) -> AgentTask | None:
        """Get a task by ID."""
        ...

    async def get_tasks_for_agent(
        self,
        agent_id: str,
        status: TaskStatus | None = None,
        limit: int | None = None,
        prioritized: bool = False,
    ) -> list[AgentTask]:
        """Get tasks addressed to an agent, oldest first."""
        ...

    async def update_task_status(
        self,
        task_id: str,
        status: TaskStatus,
        result: Any = None,
        error: str | None = None,
    ) -> AgentTask:
        """Move a task along its lifecycle."""
        ...

    async def claim_task(self, task_id: str) -> AgentTask | None:
        """Atomically move a pending task to in_progress."""
        ...

    async def count_pending_tasks(self) -> int:
        """Count pending tasks across all agents."""
        ...

    async def count_tasks_by_status(
        self, agent_id: str | None = None
    ) -> dict[TaskStatus, int]:
        """Count tasks per status."""
        ...

    # Decisions
    async def create_decision(self, decision: AgentDecision) -> AgentDecision:
        """Persist a new decision."""
        ...

    async def get_decision(self, decision_id: str) -> AgentDecision | None:
        """Get a decision by ID."""
        ...

    async def approve_decision(self, decision_id: str, approved_by: str) -> AgentDecision:
        """Approve a pending decision."""
        ...

    async def reject_decision(
        self, decision_id: str, rejected_by: str, reason: str
    ) -> AgentDecision:
        """Reject a pending decision."""
        ...

    async def get_recent_decisions(self, limit: int = 20) -> list[AgentDecision]:
        """Get decisions (newest first)."""
        ...

    async def get_pending_approvals(self) -> list[AgentDecision]:
        """Get decisions awaiting approval, most impactful first."""
        ...

    # Alerts
    async def create_alert(self, alert: AgentAlert) -> AgentAlert:
        """Persist a new alert."""
        ...

    async def get_active_alerts(self, limit: int = 50) -> list[AgentAlert]:
        """Get unresolved alerts, most severe first."""
        ...

    async def resolve_alert(self, alert_id: str, resolved_by: str) -> AgentAlert:
        """Mark an alert resolved."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_db_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _wrap_errors(func):
    """Re-raise database driver errors as PersistenceError."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except aiosqlite.Error as e:
            raise PersistenceError(
                f"{func.__name__} failed: {e}", operation=func.__name__
            ) from e

    return wrapper


def _row_mapper(kind: str):
    """Report rows that cannot be decoded as PersistenceError."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(row):
            try:
                return func(row)
            except (TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Malformed {kind} row '{row[0]}': {e}", operation=f"read_{kind}"
                ) from e

        return wrapper

    return decorator


def _check_json_value(value: Any, path: str) -> None:
    if value is None or isinstance(value, (str, int, float)):
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            _check_json_value(item, f"{path}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{path} has non-string key {key!r}")
            _check_json_value(item, f"{path}.{key}")
        return
    raise ValueError(
        f"{path} holds a {type(value).__name__}, which does not survive a JSON round trip"
    )


def _dump_json(value: Any, field: str) -> str:
    """Encode an opaque map so it reads back equal.

    Raises:
        ValueError: Non-string keys, tuples, sets or other non-JSON values.
    """
    _check_json_value(value, field)
    return json.dumps(value)


_RANK_ORDER_SQL = """
    CASE {column}
        WHEN 'critical' THEN 0
        WHEN 'high' THEN 1
        WHEN 'medium' THEN 2
        ELSE 3
    END
"""

_TASK_COLUMNS = """
    id, from_agent_id, to_agent_id, task_type, title, description, payload,
    priority, status, deadline, result, error, created_at, started_at,
    completed_at
"""

_DECISION_COLUMNS = """
    id, agent_id, agent_role, decision_type, title, description, reasoning,
    data, confidence, impact, approved, approved_by, executed_at, rejected,
    rejected_by, rejection_reason, created_at
"""

_AGENT_COLUMNS = """
    id, name, role, status, description, capabilities, tasks_completed,
    tasks_in_progress, tasks_failed, avg_response_time_ms, success_rate,
    last_active_at, created_at
"""

_ALERT_COLUMNS = """
    id, agent_id, agent_role, title, message, severity, data, resolved,
    resolved_by, resolved_at, created_at
"""


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    @_wrap_errors
    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Agents
    @_wrap_errors
    async def save_agent(self, agent: AgentRecord) -> AgentRecord:
        """Insert or replace an agent identity."""
        conn = self._require_conn()

        agent.id = agent.id or str(uuid.uuid4())
        agent.created_at = agent.created_at or _now()
        metrics = agent.metrics

        await conn.execute(
            f"""
            INSERT OR REPLACE INTO agents ({_AGENT_COLUMNS}, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                agent.id,
                agent.name,
                agent.role.value,
                agent.status.value,
                agent.description,
                json.dumps(agent.capabilities),
                metrics.tasks_completed,
                metrics.tasks_in_progress,
                metrics.tasks_failed,
                metrics.avg_response_time_ms,
                metrics.success_rate,
                _to_db_ts(agent.last_active_at),
                _to_db_ts(agent.created_at),
                _to_db_ts(_now()),
            ),
        )
        await conn.commit()
        return agent

    @_wrap_errors
    async def get_agent_by_role(self, role: AgentRole) -> AgentRecord | None:
        """Resolve the agent bound to a role."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_AGENT_COLUMNS} FROM agents WHERE role = ?",
            (AgentRole(role).value,),
        )
        row = await cursor.fetchone()
        return self._agent_from_row(row) if row else None

    @_wrap_errors
    async def get_agent_by_id(self, agent_id: str) -> AgentRecord | None:
        """Get an agent by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_AGENT_COLUMNS} FROM agents WHERE id = ?",
            (agent_id,),
        )
        row = await cursor.fetchone()
        return self._agent_from_row(row) if row else None

    @_wrap_errors
    async def get_all_agents(self) -> list[AgentRecord]:
        """List every provisioned agent in creation order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_AGENT_COLUMNS} FROM agents ORDER BY created_at ASC, rowid ASC"
        )
        rows = await cursor.fetchall()
        return [self._agent_from_row(row) for row in rows]

    @_wrap_errors
    async def update_agent_status(self, agent_id: str, status: AgentStatus) -> None:
        """Set agent status and stamp last activity."""
        conn = self._require_conn()

        now = _to_db_ts(_now())
        await conn.execute(
            """
            UPDATE agents
            SET status = ?, last_active_at = ?, updated_at = ?
            WHERE id = ?
            """,
            (AgentStatus(status).value, now, now, agent_id),
        )
        await conn.commit()

    @_wrap_errors
    async def update_agent_metrics(self, agent_id: str, metrics: AgentMetrics) -> None:
        """Persist agent task counters."""
        conn = self._require_conn()

        await conn.execute(
            """
            UPDATE agents
            SET tasks_completed = ?, tasks_in_progress = ?, tasks_failed = ?,
                avg_response_time_ms = ?, success_rate = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                metrics.tasks_completed,
                metrics.tasks_in_progress,
                metrics.tasks_failed,
                metrics.avg_response_time_ms,
                metrics.success_rate,
                _to_db_ts(_now()),
                agent_id,
            ),
        )
        await conn.commit()

    # Tasks
    @_wrap_errors
    async def create_task(self, task: AgentTask) -> AgentTask:
        """Persist a new pending task."""
        conn = self._require_conn()

        if task.status != TaskStatus.PENDING:
            raise ValueError("Tasks must be created in pending status")

        task.id = task.id or str(uuid.uuid4())
        task.created_at = task.created_at or _now()

        await conn.execute(
            f"""
            INSERT INTO agent_tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.from_agent_id,
                task.to_agent_id,
                task.task_type,
                task.title,
                task.description,
                _dump_json(task.payload, "payload"),
                TaskPriority(task.priority).value,
                task.status.value,
                _to_db_ts(task.deadline),
                None,
                None,
                _to_db_ts(task.created_at),
                None,
                None,
            ),
        )
        await conn.commit()
        return task

    @_wrap_errors
    async def get_task(self, task_id: str) -> AgentTask | None:
        """Get a task by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM agent_tasks WHERE id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return self._task_from_row(row) if row else None

    @_wrap_errors
    async def get_tasks_for_agent(
        self,
        agent_id: str,
        status: TaskStatus | None = None,
        limit: int | None = None,
        prioritized: bool = False,
    ) -> list[AgentTask]:
        """Get tasks addressed to an agent.

        Ordering is FIFO by creation; with `prioritized` tasks are ordered
        critical -> low first and FIFO within a priority.
        """
        conn = self._require_conn()

        conditions = ["to_agent_id = ?"]
        params: list[Any] = [agent_id]

        if status:
            conditions.append("status = ?")
            params.append(TaskStatus(status).value)

        order_by = "created_at ASC, rowid ASC"
        if prioritized:
            order_by = f"{_RANK_ORDER_SQL.format(column='priority')}, {order_by}"

        query = f"""
            SELECT {_TASK_COLUMNS}
            FROM agent_tasks
            WHERE {' AND '.join(conditions)}
            ORDER BY {order_by}
        """
        cursor = await conn.execute(query, params)

        # Malformed rows are skipped so they never starve the rows behind them
        tasks: list[AgentTask] = []
        async for row in cursor:
            try:
                tasks.append(self._task_from_row(row))
            except PersistenceError as e:
                logger.warning("Skipping task for agent %s: %s", agent_id, e)
                continue
            if limit is not None and len(tasks) >= limit:
                break
        await cursor.close()
        return tasks

    @_wrap_errors
    async def update_task_status(
        self,
        task_id: str,
        status: TaskStatus,
        result: Any = None,
        error: str | None = None,
    ) -> AgentTask:
        """Move a task along its lifecycle.

        The update is conditional on the task holding the only status that may
        precede `status`, so a terminal task can never be changed again.

        Raises:
            TaskNotFoundError: No such task.
            InvalidTaskTransitionError: The task is not in the expected status.
        """
        conn = self._require_conn()

        status = TaskStatus(status)
        expected = TaskStatus.predecessor_of(status)
        if expected is None:
            current = await self.get_task(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)
            raise InvalidTaskTransitionError(task_id, current.status.value, status.value)

        now = _to_db_ts(_now())
        updates = ["status = ?"]
        params: list[Any] = [status.value]

        if status == TaskStatus.IN_PROGRESS:
            updates.append("started_at = ?")
            params.append(now)
        if status.is_terminal:
            updates.append("completed_at = ?")
            params.append(now)
        if status == TaskStatus.COMPLETED:
            updates.append("result = ?")
            params.append(_dump_json(result, "result"))
        if status == TaskStatus.FAILED:
            updates.append("error = ?")
            params.append(error)

        params.extend([task_id, expected.value])
        cursor = await conn.execute(
            f"""
            UPDATE agent_tasks
            SET {', '.join(updates)}
            WHERE id = ? AND status = ?
            """,
            params,
        )
        await conn.commit()

        if cursor.rowcount == 0:
            current = await self.get_task(task_id)
            if current is None:
                raise TaskNotFoundError(task_id)
            raise InvalidTaskTransitionError(task_id, current.status.value, status.value)

        task = await self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def claim_task(self, task_id: str) -> AgentTask | None:
        """Atomically move a pending task to in_progress.

        Returns None when the task is no longer pending (claimed elsewhere).
        """
        try:
            return await self.update_task_status(task_id, TaskStatus.IN_PROGRESS)
        except InvalidTaskTransitionError:
            return None

    @_wrap_errors
    async def count_pending_tasks(self) -> int:
        """Count pending tasks across all agents."""
        counts = await self.count_tasks_by_status()
        return counts[TaskStatus.PENDING]

    @_wrap_errors
    async def count_tasks_by_status(
        self, agent_id: str | None = None
    ) -> dict[TaskStatus, int]:
        """Count tasks per status, optionally for a single agent."""
        conn = self._require_conn()

        if agent_id:
            cursor = await conn.execute(
                """
                SELECT status, COUNT(*) FROM agent_tasks
                WHERE to_agent_id = ?
                GROUP BY status
                """,
                (agent_id,),
            )
        else:
            cursor = await conn.execute(
                "SELECT status, COUNT(*) FROM agent_tasks GROUP BY status"
            )
        rows = await cursor.fetchall()

        counts = {status: 0 for status in TaskStatus}
        for row in rows:
            counts[TaskStatus(row[0])] = row[1]
        return counts

    # Decisions
    @_wrap_errors
    async def create_decision(self, decision: AgentDecision) -> AgentDecision:
        """Persist a new decision."""
        conn = self._require_conn()

        decision.id = decision.id or str(uuid.uuid4())
        decision.created_at = decision.created_at or _now()

        await conn.execute(
            f"""
            INSERT INTO agent_decisions ({_DECISION_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                decision.id,
                decision.agent_id,
                AgentRole(decision.agent_role).value,
                DecisionType(decision.decision_type).value,
                decision.title,
                decision.description,
                decision.reasoning,
                _dump_json(decision.data, "data"),
                decision.confidence,
                Impact(decision.impact).value,
                int(decision.approved),
                decision.approved_by,
                _to_db_ts(decision.executed_at),
                int(decision.rejected),
                decision.rejected_by,
                decision.rejection_reason,
                _to_db_ts(decision.created_at),
            ),
        )
        await conn.commit()
        return decision

    @_wrap_errors
    async def get_decision(self, decision_id: str) -> AgentDecision | None:
        """Get a decision by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_DECISION_COLUMNS} FROM agent_decisions WHERE id = ?",
            (decision_id,),
        )
        row = await cursor.fetchone()
        return self._decision_from_row(row) if row else None

    async def _get_pending_decision(self, decision_id: str) -> AgentDecision:
        decision = await self.get_decision(decision_id)
        if decision is None:
            raise DecisionNotFoundError(decision_id)
        if decision.approved:
            raise DecisionStateError(decision_id, "approved")
        if decision.rejected:
            raise DecisionStateError(decision_id, "rejected")
        return decision

    @_wrap_errors
    async def approve_decision(self, decision_id: str, approved_by: str) -> AgentDecision:
        """Approve a pending decision and stamp its execution time."""
        conn = self._require_conn()
        await self._get_pending_decision(decision_id)

        cursor = await conn.execute(
            """
            UPDATE agent_decisions
            SET approved = 1, approved_by = ?, executed_at = ?
            WHERE id = ? AND approved = 0 AND rejected = 0
            """,
            (approved_by, _to_db_ts(_now()), decision_id),
        )
        await conn.commit()
        if cursor.rowcount == 0:
            await self._get_pending_decision(decision_id)

        decision = await self.get_decision(decision_id)
        if decision is None:
            raise DecisionNotFoundError(decision_id)
        return decision

    @_wrap_errors
    async def reject_decision(
        self, decision_id: str, rejected_by: str, reason: str
    ) -> AgentDecision:
        """Reject a pending decision; it stays unapproved and leaves the queue."""
        conn = self._require_conn()
        await self._get_pending_decision(decision_id)

        cursor = await conn.execute(
            """
            UPDATE agent_decisions
            SET rejected = 1, rejected_by = ?, rejection_reason = ?
            WHERE id = ? AND approved = 0 AND rejected = 0
            """,
            (rejected_by, reason, decision_id),
        )
        await conn.commit()
        if cursor.rowcount == 0:
            await self._get_pending_decision(decision_id)

        decision = await self.get_decision(decision_id)
        if decision is None:
            raise DecisionNotFoundError(decision_id)
        return decision

    @_wrap_errors
    async def get_recent_decisions(self, limit: int = 20) -> list[AgentDecision]:
        """Get decisions (newest first)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"""
            SELECT {_DECISION_COLUMNS}
            FROM agent_decisions
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()
        return [self._decision_from_row(row) for row in rows]

    @_wrap_errors
    async def get_pending_decisions(self) -> list[AgentDecision]:
        """Get decisions awaiting approval, most impactful first, then oldest."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"""
            SELECT {_DECISION_COLUMNS}
            FROM agent_decisions
            WHERE approved = 0 AND rejected = 0
            ORDER BY {_RANK_ORDER_SQL.format(column='impact')}, created_at ASC, rowid ASC
            """
        )
        rows = await cursor.fetchall()
        return [self._decision_from_row(row) for row in rows]

    async def get_pending_approvals(self) -> list[AgentDecision]:
        """Get decisions awaiting approval."""
        return await self.get_pending_decisions()

    # Alerts
    @_wrap_errors
    async def create_alert(self, alert: AgentAlert) -> AgentAlert:
        """Persist a new alert."""
        conn = self._require_conn()

        alert.id = alert.id or str(uuid.uuid4())
        alert.created_at = alert.created_at or _now()

        await conn.execute(
            f"""
            INSERT INTO agent_alerts ({_ALERT_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                alert.id,
                alert.agent_id,
                AgentRole(alert.agent_role).value,
                alert.title,
                alert.message,
                Impact(alert.severity).value,
                _dump_json(alert.data, "data"),
                int(alert.resolved),
                alert.resolved_by,
                _to_db_ts(alert.resolved_at),
                _to_db_ts(alert.created_at),
            ),
        )
        await conn.commit()
        return alert

    @_wrap_errors
    async def get_alert(self, alert_id: str) -> AgentAlert | None:
        """Get an alert by ID."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"SELECT {_ALERT_COLUMNS} FROM agent_alerts WHERE id = ?",
            (alert_id,),
        )
        row = await cursor.fetchone()
        return self._alert_from_row(row) if row else None

    @_wrap_errors
    async def get_active_alerts(self, limit: int = 50) -> list[AgentAlert]:
        """Get unresolved alerts, most severe first, then newest."""
        conn = self._require_conn()

        cursor = await conn.execute(
            f"""
            SELECT {_ALERT_COLUMNS}
            FROM agent_alerts
            WHERE resolved = 0
            ORDER BY {_RANK_ORDER_SQL.format(column='severity')}, created_at DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()
        return [self._alert_from_row(row) for row in rows]

    @_wrap_errors
    async def resolve_alert(self, alert_id: str, resolved_by: str) -> AgentAlert:
        """Mark an alert resolved. Resolving twice keeps the first resolution."""
        conn = self._require_conn()

        alert = await self.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        if alert.resolved:
            return alert

        await conn.execute(
            """
            UPDATE agent_alerts
            SET resolved = 1, resolved_by = ?, resolved_at = ?
            WHERE id = ? AND resolved = 0
            """,
            (resolved_by, _to_db_ts(_now()), alert_id),
        )
        await conn.commit()

        alert = await self.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    # TraceEvents
    @_wrap_errors
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                _to_db_ts(event.timestamp),
            ),
        )
        await conn.commit()

    @_wrap_errors
    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters (newest first)."""
        conn = self._require_conn()

        # Build query dynamically
        conditions = []
        params: list[Any] = []

        if after:
            if after.tzinfo is None:
                after = after.replace(tzinfo=timezone.utc)
            conditions.append("timestamp > ?")
            params.append(_to_db_ts(after.astimezone(timezone.utc)))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [self._trace_from_row(row) for row in rows]

    # Lifecycle
    @_wrap_errors
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "agent_tasks",
            "agent_decisions",
            "agent_alerts",
            "trace_events",
            "agents",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()

    # Row mapping
    @staticmethod
    @_row_mapper("agent")
    def _agent_from_row(row) -> AgentRecord:
        return AgentRecord(
            id=row[0],
            name=row[1],
            role=AgentRole(row[2]),
            status=AgentStatus(row[3]),
            description=row[4],
            capabilities=json.loads(row[5]),
            metrics=AgentMetrics(
                tasks_completed=row[6],
                tasks_in_progress=row[7],
                tasks_failed=row[8],
                avg_response_time_ms=row[9],
                success_rate=row[10],
            ),
            last_active_at=_from_db_ts(row[11]),
            created_at=_from_db_ts(row[12]),
        )

    @staticmethod
    @_row_mapper("task")
    def _task_from_row(row) -> AgentTask:
        return AgentTask(
            id=row[0],
            from_agent_id=row[1],
            to_agent_id=row[2],
            task_type=row[3],
            title=row[4],
            description=row[5],
            payload=json.loads(row[6]),
            priority=TaskPriority(row[7]),
            status=TaskStatus(row[8]),
            deadline=_from_db_ts(row[9]),
            result=json.loads(row[10]) if row[10] is not None else None,
            error=row[11],
            created_at=_from_db_ts(row[12]),
            started_at=_from_db_ts(row[13]),
            completed_at=_from_db_ts(row[14]),
        )

    @staticmethod
    @_row_mapper("decision")
    def _decision_from_row(row) -> AgentDecision:
        return AgentDecision(
            id=row[0],
            agent_id=row[1],
            agent_role=AgentRole(row[2]),
            decision_type=DecisionType(row[3]),
            title=row[4],
            description=row[5],
            reasoning=row[6],
            data=json.loads(row[7]),
            confidence=row[8],
            impact=Impact(row[9]),
            approved=bool(row[10]),
            approved_by=row[11],
            executed_at=_from_db_ts(row[12]),
            rejected=bool(row[13]),
            rejected_by=row[14],
            rejection_reason=row[15],
            created_at=_from_db_ts(row[16]),
        )

    @staticmethod
    @_row_mapper("trace_event")
    def _trace_from_row(row) -> TraceEvent:
        return TraceEvent(
            id=row[0],
            event_type=row[1],
            actor=row[2],
            data=json.loads(row[3]),
            timestamp=_from_db_ts(row[4]),
        )

    @staticmethod
    @_row_mapper("alert")
    def _alert_from_row(row) -> AgentAlert:
        return AgentAlert(
            id=row[0],
            agent_id=row[1],
            agent_role=AgentRole(row[2]),
            title=row[3],
            message=row[4],
            severity=Impact(row[5]),
            data=json.loads(row[6]),
            resolved=bool(row[7]),
            resolved_by=row[8],
            resolved_at=_from_db_ts(row[9]),
            created_at=_from_db_ts(row[10]),
        )
