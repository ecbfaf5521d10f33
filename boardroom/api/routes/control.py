"""Agent control routes."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ...orchestrator import Orchestrator
from ..errors import parse_role, to_http_exception


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


AGENT_ACTIONS = ("start", "stop", "pause", "resume")


def create_control_router(orchestrator: Orchestrator) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/agents", tags=["control"])

    @router.post("/start-all", response_model=StatusResponse)
    async def start_all() -> dict:
        """Start every agent, lead role first."""
        try:
            await orchestrator.start_all()
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/stop-all", response_model=StatusResponse)
    async def stop_all() -> dict:
        """Stop every agent in reverse order."""
        try:
            await orchestrator.stop_all()
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/{role}/{action}")
    async def control_agent(role: str, action: str) -> dict[str, Any]:
        """Start, stop, pause or resume a single agent."""
        agent_role = parse_role(role)
        if action not in AGENT_ACTIONS:
            raise HTTPException(status_code=404, detail=f"Unknown action: {action}")

        try:
            await getattr(orchestrator, f"{action}_agent")(agent_role)
            info = await orchestrator.get_agent_status(agent_role)
            return info.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    return router
