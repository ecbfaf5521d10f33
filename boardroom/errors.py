"""Error hierarchy for Boardroom.

Exception Hierarchy:
    BoardroomError (base)
    ├── InitializationError        - agent role has no persisted identity
    ├── AgentNotFoundError         - role unknown to the store or orchestrator
    ├── HandlerNotFoundError       - task type has no registered handler
    ├── HandlerExecutionError      - a handler raised
    │   └── HandlerTimeoutError    - a handler exceeded its time budget
    ├── PersistenceError           - store call failed
    ├── TaskNotFoundError
    ├── InvalidTaskTransitionError - illegal task status change
    ├── DecisionNotFoundError
    ├── DecisionStateError         - decision already approved or rejected
    └── AlertNotFoundError

Per-task errors are contained at the task boundary inside an agent's poll
loop. Only initialization errors propagate out of the orchestrator.
"""

from typing import Any


class BoardroomError(Exception):
    """Base exception for all Boardroom errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class InitializationError(BoardroomError):
    """An agent (or a set of agents) could not be bound to its identity."""

    def __init__(
        self,
        message: str,
        *,
        roles: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.roles = roles or []


class AgentNotFoundError(BoardroomError):
    """No agent is configured or persisted for a role."""

    def __init__(self, message: str, *, role: str | None = None) -> None:
        super().__init__(message, {"role": role} if role else None)
        self.role = role


class HandlerNotFoundError(BoardroomError):
    """A task references a task type with no registered handler."""

    def __init__(self, task_type: str) -> None:
        super().__init__(
            f"No handler registered for task type: {task_type}",
            {"task_type": task_type},
        )
        self.task_type = task_type


class HandlerExecutionError(BoardroomError):
    """A task handler raised while processing a task."""

    def __init__(
        self,
        message: str,
        *,
        task_id: str | None = None,
        task_type: str | None = None,
    ) -> None:
        super().__init__(message, {"task_id": task_id, "task_type": task_type})
        self.task_id = task_id
        self.task_type = task_type

    @classmethod
    def from_exception(
        cls, exc: BaseException, *, task_id: str | None = None, task_type: str | None = None
    ) -> "HandlerExecutionError":
        """Wrap an arbitrary handler exception, keeping its message."""
        message = str(exc) or exc.__class__.__name__
        return cls(message, task_id=task_id, task_type=task_type)


class HandlerTimeoutError(HandlerExecutionError):
    """A task handler did not finish within its timeout."""

    def __init__(
        self,
        timeout: float,
        *,
        task_id: str | None = None,
        task_type: str | None = None,
    ) -> None:
        super().__init__(
            f"Handler timed out after {timeout:g}s",
            task_id=task_id,
            task_type=task_type,
        )
        self.timeout = timeout


class PersistenceError(BoardroomError):
    """A store operation failed."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message, {"operation": operation} if operation else None)
        self.operation = operation


class TaskNotFoundError(BoardroomError):
    """No task exists with the given id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found", {"task_id": task_id})
        self.task_id = task_id


class InvalidTaskTransitionError(BoardroomError):
    """A task status change that the lifecycle does not allow."""

    def __init__(self, task_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Invalid task transition for '{task_id}': {current} -> {target}",
            {"task_id": task_id, "current": current, "target": target},
        )
        self.task_id = task_id
        self.current = current
        self.target = target


class DecisionNotFoundError(BoardroomError):
    """No decision exists with the given id."""

    def __init__(self, decision_id: str) -> None:
        super().__init__(f"Decision '{decision_id}' not found", {"decision_id": decision_id})
        self.decision_id = decision_id


class DecisionStateError(BoardroomError):
    """The decision was already approved or rejected."""

    def __init__(self, decision_id: str, state: str) -> None:
        super().__init__(
            f"Decision '{decision_id}' is already {state}",
            {"decision_id": decision_id, "state": state},
        )
        self.decision_id = decision_id
        self.state = state


class AlertNotFoundError(BoardroomError):
    """No alert exists with the given id."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert '{alert_id}' not found", {"alert_id": alert_id})
        self.alert_id = alert_id
