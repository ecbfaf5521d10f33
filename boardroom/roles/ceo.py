"""CEO role: lead agent that plans, delegates and routes approvals."""

from typing import TYPE_CHECKING, Any

from ..agents.descriptor import RoleDescriptor, confidence_above
from ..models import AgentRole, AgentTask, DecisionType, Impact, TaskPriority

if TYPE_CHECKING:
    from ..agents import Agent

# Requests below this confidence go to a human instead of being approved.
APPROVAL_CONFIDENCE_FLOOR = 0.6


async def handle_strategic_plan(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Delegate each plan step to its role and record the plan as a decision.

    Payload: {"goal": str, "steps": [{"role", "task_type", "title",
    "payload"?, "priority"?}], "confidence"?: float, "impact"?: str}
    """
    goal = task.payload.get("goal", task.title)
    steps = task.payload.get("steps", [])

    delegated = []
    for step in steps:
        sub_task = await agent.delegate_task(
            step["role"],
            step["task_type"],
            step.get("title", step["task_type"]),
            step.get("payload", {}),
            description=f"Part of plan: {goal}",
            priority=TaskPriority(step.get("priority", TaskPriority.MEDIUM)),
        )
        delegated.append(sub_task.id)

    decision = await agent.make_decision(
        DecisionType.APPROVE_PLAN,
        f"Strategic plan: {goal}",
        f"Created strategic plan with {len(delegated)} delegated tasks",
        reasoning=f'Decomposed goal "{goal}" into {len(delegated)} tasks',
        data={"goal": goal, "tasks": delegated},
        confidence=float(task.payload.get("confidence", 0.9 if delegated else 0.5)),
        impact=Impact(task.payload.get("impact", Impact.MEDIUM)),
    )

    return {
        "goal": goal,
        "delegated": delegated,
        "decision_id": decision.id,
        "approved": decision.approved,
    }


async def handle_approval_request(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Approve routine requests; escalate critical or uncertain ones."""
    impact = Impact(task.payload.get("impact", Impact.MEDIUM))
    confidence = float(task.payload.get("confidence", 0.5))
    title = task.payload.get("title", task.title)
    description = task.payload.get("description", task.description or title)
    data = {"request": task.payload, "requested_by": task.from_agent_id}

    if impact == Impact.CRITICAL or confidence < APPROVAL_CONFIDENCE_FLOOR:
        decision = await agent.escalate_to_human(title, description, data)
        return {"decision_id": decision.id, "escalated": True}

    decision = await agent.make_decision(
        DecisionType.APPROVE_PLAN,
        title,
        description,
        reasoning=f"Approved at confidence {confidence:.2f} with {impact.value} impact",
        data=data,
        confidence=confidence,
        impact=impact,
        auto_approve=True,
    )
    return {"decision_id": decision.id, "escalated": False}


async def handle_escalation(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Forward an escalation to a human and raise an alert for visibility."""
    title = task.payload.get("title", task.title)
    description = task.payload.get("description", task.description or title)

    decision = await agent.escalate_to_human(title, description, dict(task.payload))
    alert = await agent.raise_alert(
        f"Escalated: {title}",
        description,
        severity=Impact(task.payload.get("severity", Impact.HIGH)),
        data={"decision_id": decision.id, "task_id": task.id},
    )
    return {"decision_id": decision.id, "alert_id": alert.id}


def ceo_role() -> RoleDescriptor:
    return RoleDescriptor(
        role=AgentRole.CEO,
        name="Atlas",
        description="Chief Executive Officer - strategic supervisor and coordinator",
        capabilities=[
            "strategic_planning",
            "task_delegation",
            "decision_approval",
            "escalation",
        ],
        handlers={
            "strategic_plan": handle_strategic_plan,
            "approval_request": handle_approval_request,
            "escalation": handle_escalation,
        },
        auto_approve=confidence_above(0.8, max_impact=Impact.HIGH),
        poll_interval=3.0,
        max_concurrent_tasks=5,
        prioritized=True,
    )
