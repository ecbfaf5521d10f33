"""Task injection routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...models import TaskPriority
from ...orchestrator import Orchestrator
from ..errors import parse_role, to_http_exception


class SendTaskRequest(BaseModel):
    """Request model for sending a task to one agent."""

    to_role: str
    task_type: str
    title: str
    payload: dict[str, Any] = Field(default_factory=dict)
    from_role: str | None = None
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    deadline: datetime | None = None


class BroadcastRequest(BaseModel):
    """Request model for sending a task to every agent."""

    task_type: str
    title: str
    payload: dict[str, Any] = Field(default_factory=dict)
    priority: TaskPriority = TaskPriority.MEDIUM


def create_tasks_router(orchestrator: Orchestrator) -> APIRouter:
    """Create tasks router."""
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])

    @router.post("", status_code=201)
    async def send_task(request: SendTaskRequest) -> dict[str, Any]:
        """Create a task for a single agent."""
        to_role = parse_role(request.to_role)
        from_role = parse_role(request.from_role) if request.from_role else None
        try:
            task = await orchestrator.send_task_to_agent(
                from_role,
                to_role,
                request.task_type,
                request.title,
                request.payload,
                description=request.description,
                priority=request.priority,
                deadline=request.deadline,
            )
            return task.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/broadcast", status_code=201)
    async def broadcast_task(request: BroadcastRequest) -> list[dict[str, Any]]:
        """Fan the same task out to every configured agent."""
        try:
            tasks = await orchestrator.broadcast_task(
                request.task_type,
                request.title,
                request.payload,
                priority=request.priority,
            )
            return [task.to_dict() for task in tasks]
        except Exception as e:
            raise to_http_exception(e)

    return router
