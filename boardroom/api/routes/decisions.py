"""Approval routes for decisions and alerts."""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from ...orchestrator import Orchestrator
from ..errors import to_http_exception

HUMAN = "human"


class ApproveRequest(BaseModel):
    approved_by: str = HUMAN


class RejectRequest(BaseModel):
    rejected_by: str = HUMAN
    reason: str = ""


class ResolveRequest(BaseModel):
    resolved_by: str = HUMAN


def create_decisions_router(orchestrator: Orchestrator) -> APIRouter:
    """Create decisions router."""
    router = APIRouter(prefix="/api", tags=["decisions"])

    @router.get("/decisions/pending")
    async def get_pending_decisions() -> list[dict[str, Any]]:
        """Decisions waiting for a human, most impactful first."""
        try:
            decisions = await orchestrator.get_pending_decisions()
            return [d.to_dict() for d in decisions]
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/decisions/{decision_id}/approve")
    async def approve_decision(
        decision_id: str, request: ApproveRequest | None = None
    ) -> dict[str, Any]:
        request = request or ApproveRequest()
        try:
            decision = await orchestrator.approve_decision(decision_id, request.approved_by)
            return decision.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/decisions/{decision_id}/reject")
    async def reject_decision(
        decision_id: str, request: RejectRequest | None = None
    ) -> dict[str, Any]:
        request = request or RejectRequest()
        try:
            decision = await orchestrator.reject_decision(
                decision_id, request.rejected_by, request.reason
            )
            return decision.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/alerts/{alert_id}/resolve")
    async def resolve_alert(
        alert_id: str, request: ResolveRequest | None = None
    ) -> dict[str, Any]:
        request = request or ResolveRequest()
        try:
            alert = await orchestrator.resolve_alert(alert_id, request.resolved_by)
            return alert.to_dict()
        except Exception as e:
            raise to_http_exception(e)

    return router
