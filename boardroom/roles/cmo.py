"""CMO role: market analysis and campaigns."""

from typing import TYPE_CHECKING, Any

from ..agents.descriptor import RoleDescriptor, confidence_above
from ..models import AgentRole, AgentTask, DecisionType, Impact

if TYPE_CHECKING:
    from ..agents import Agent


async def handle_market_analysis(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Rank the supplied signals by score and recommend the top ones."""
    topic = task.payload.get("topic", task.title)
    signals = sorted(
        task.payload.get("signals", []),
        key=lambda s: float(s.get("score", 0)),
        reverse=True,
    )
    top = signals[: int(task.payload.get("top", 3))]

    if not top:
        return {"topic": topic, "top": [], "decision_id": None}

    confidence = min(1.0, max(0.0, sum(float(s.get("score", 0)) for s in top) / len(top)))
    decision = await agent.make_decision(
        DecisionType.RECOMMEND_ACTION,
        f"Focus areas for {topic}",
        ", ".join(str(s.get("name")) for s in top),
        reasoning=f"Top {len(top)} of {len(signals)} signals by score",
        data={"topic": topic, "top": top},
        confidence=confidence,
        impact=Impact.MEDIUM,
    )
    return {"topic": topic, "top": top, "decision_id": decision.id}


async def handle_create_campaign(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Plan a campaign and hand its budget to the CFO for validation."""
    name = task.payload.get("name", task.title)
    budget = task.payload.get("budget", 0)

    budget_task = await agent.delegate_task(
        AgentRole.CFO,
        "validate_budget",
        f"Validate budget for {name}",
        {"subject": name, "amount": budget},
    )
    decision = await agent.make_decision(
        DecisionType.ASSIGN_WORK,
        f"Campaign planned: {name}",
        f"Budget of {budget} sent for validation",
        data={"campaign": name, "budget": budget, "budget_task_id": budget_task.id},
        confidence=0.75,
        impact=Impact.MEDIUM,
    )
    return {"campaign": name, "budget_task_id": budget_task.id, "decision_id": decision.id}


def cmo_role() -> RoleDescriptor:
    return RoleDescriptor(
        role=AgentRole.CMO,
        name="Pulse",
        description="Chief Marketing Officer - market analysis and campaigns",
        capabilities=["market_analysis", "campaign_planning"],
        handlers={
            "market_analysis": handle_market_analysis,
            "create_campaign": handle_create_campaign,
        },
        auto_approve=confidence_above(0.7, max_impact=Impact.MEDIUM),
        poll_interval=10.0,
        max_concurrent_tasks=3,
    )
