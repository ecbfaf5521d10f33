"""CFO role: budget validation, allocation and revenue reporting."""

from typing import TYPE_CHECKING, Any

from ..agents.descriptor import RoleDescriptor, confidence_above
from ..models import AgentRole, AgentTask, DecisionType, Impact

if TYPE_CHECKING:
    from ..agents import Agent

# Budgets up to this amount are approved without a human.
DEFAULT_BUDGET_LIMIT = 50.0


def _amount(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field} must be a number, got {value!r}")
    return float(value)


async def handle_validate_budget(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    amount = _amount(task.payload.get("amount"), "amount")
    limit = _amount(task.payload.get("limit", DEFAULT_BUDGET_LIMIT), "limit")
    subject = task.payload.get("subject", task.title)

    if amount > limit:
        decision = await agent.escalate_to_human(
            f"Budget over limit: {subject}",
            f"Requested {amount:g} exceeds the {limit:g} limit",
            {"subject": subject, "amount": amount, "limit": limit},
        )
        return {"approved": False, "escalated": True, "decision_id": decision.id}

    decision = await agent.make_decision(
        DecisionType.ADJUST_BUDGET,
        f"Budget approved: {subject}",
        f"Approved {amount:g} within the {limit:g} limit",
        data={"subject": subject, "amount": amount, "limit": limit},
        confidence=0.95,
        impact=Impact.LOW,
        auto_approve=True,
    )
    return {"approved": True, "escalated": False, "decision_id": decision.id}


async def handle_budget_allocation(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Split a total across weighted shares."""
    total = _amount(task.payload.get("total"), "total")
    shares = {k: _amount(v, f"share {k}") for k, v in task.payload.get("shares", {}).items()}
    weight = sum(shares.values())
    if weight <= 0:
        raise ValueError("shares must have a positive total weight")

    allocation = {k: round(total * v / weight, 2) for k, v in shares.items()}
    decision = await agent.make_decision(
        DecisionType.ADJUST_BUDGET,
        "Budget allocation",
        f"Allocated {total:g} across {len(allocation)} areas",
        data={"total": total, "allocation": allocation},
        confidence=0.85,
        impact=Impact.MEDIUM,
    )
    return {"allocation": allocation, "decision_id": decision.id}


async def handle_revenue_report(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    entries = task.payload.get("entries", [])
    total = sum(_amount(e.get("amount"), "amount") for e in entries)

    if total < 0:
        await agent.raise_alert(
            "Negative revenue",
            f"Reported revenue is {total:g}",
            severity=Impact.HIGH,
            data={"total": total, "entries": len(entries)},
        )
    return {"total": total, "count": len(entries)}


def cfo_role() -> RoleDescriptor:
    return RoleDescriptor(
        role=AgentRole.CFO,
        name="Apex",
        description="Chief Financial Officer - budgets and revenue",
        capabilities=["budget_validation", "budget_allocation", "revenue_reporting"],
        handlers={
            "validate_budget": handle_validate_budget,
            "budget_allocation": handle_budget_allocation,
            "revenue_report": handle_revenue_report,
        },
        auto_approve=confidence_above(0.8, max_impact=Impact.MEDIUM),
        poll_interval=15.0,
        max_concurrent_tasks=2,
    )
