"""Observability API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...orchestrator import Orchestrator
from ..errors import to_http_exception


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


def create_observability_router(orchestrator: Orchestrator) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/status")
    async def get_status() -> dict[str, Any]:
        """Live agent status and aggregate task counts."""
        try:
            status = await orchestrator.get_status()
            return status.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    @router.get("/summary")
    async def get_summary(
        decisions: int = Query(10, ge=1, le=100),
        alerts: int = Query(20, ge=1, le=200),
    ) -> dict[str, Any]:
        """Command center view: status, decisions, alerts and approvals."""
        try:
            return await orchestrator.get_command_center_summary(decisions, alerts)
        except Exception as e:
            raise to_http_exception(e)

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get trace events with optional filters."""
        after_dt = None
        if after:
            try:
                after_dt = datetime.fromisoformat(after)
            except ValueError:
                raise HTTPException(
                    status_code=400, detail="Invalid after timestamp format"
                )

        try:
            events = await orchestrator.storage.get_trace_events(
                after=after_dt,
                event_types=[event_type] if event_type else None,
                actor=actor,
                limit=limit,
            )
        except Exception as e:
            raise to_http_exception(e)

        return [
            {
                "id": e.id,
                "event_type": e.event_type,
                "actor": e.actor,
                "data": e.data,
                "timestamp": e.timestamp.isoformat(),
            }
            for e in events
        ]

    return router
