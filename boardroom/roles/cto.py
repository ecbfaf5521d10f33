"""CTO role: technical assessments, reviews and releases."""

from typing import TYPE_CHECKING, Any

from ..agents.descriptor import RoleDescriptor, confidence_above
from ..models import AgentRole, AgentTask, DecisionType, Impact, TaskPriority

if TYPE_CHECKING:
    from ..agents import Agent

PRODUCTION = "production"


async def handle_technical_assessment(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    subject = task.payload.get("subject", task.title)
    risks = list(task.payload.get("risks", []))

    # Each identified risk lowers confidence in the recommendation.
    confidence = max(0.3, 1.0 - 0.15 * len(risks))
    feasible = len(risks) < 3

    decision = await agent.make_decision(
        DecisionType.RECOMMEND_ACTION,
        f"Technical assessment: {subject}",
        "Feasible" if feasible else "Not feasible without mitigation",
        reasoning=f"{len(risks)} risks identified",
        data={"subject": subject, "risks": risks},
        confidence=confidence,
        impact=Impact.HIGH if not feasible else Impact.MEDIUM,
    )
    return {"feasible": feasible, "risks": len(risks), "decision_id": decision.id}


async def handle_code_review(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    change = task.payload.get("change", task.title)
    findings = list(task.payload.get("findings", []))
    blocking = [f for f in findings if f.get("severity") in ("high", "critical")]

    if blocking:
        await agent.make_decision(
            DecisionType.FLAG_RISK,
            f"Blocking review findings: {change}",
            f"{len(blocking)} blocking findings",
            reasoning="High or critical severity findings must be fixed first",
            data={"change": change, "findings": blocking},
            confidence=0.9,
            impact=Impact.HIGH,
            auto_approve=False,
        )
        if any(f.get("severity") == "critical" for f in blocking):
            await agent.raise_alert(
                f"Critical finding in {change}",
                blocking[0].get("message", "critical review finding"),
                severity=Impact.CRITICAL,
                data={"change": change},
            )

    return {"change": change, "approved": not blocking, "findings": len(findings)}


async def handle_deploy_release(agent: "Agent", task: AgentTask) -> dict[str, Any]:
    """Deploy to non-production directly; production needs the CEO's approval."""
    release = task.payload.get("release", task.title)
    environment = task.payload.get("environment", "staging")

    if environment == PRODUCTION:
        approval = await agent.delegate_task(
            AgentRole.CEO,
            "approval_request",
            f"Approve production release {release}",
            {
                "title": f"Production release {release}",
                "impact": Impact.HIGH.value,
                "confidence": float(task.payload.get("confidence", 0.7)),
                "release": release,
            },
            priority=TaskPriority.HIGH,
        )
        return {"status": "awaiting_approval", "approval_task_id": approval.id}

    decision = await agent.make_decision(
        DecisionType.RECOMMEND_ACTION,
        f"Deploy {release} to {environment}",
        f"Release {release} deployed to {environment}",
        data={"release": release, "environment": environment},
        confidence=0.95,
        impact=Impact.LOW,
        auto_approve=True,
    )
    return {"status": "deployed", "environment": environment, "decision_id": decision.id}


def cto_role() -> RoleDescriptor:
    return RoleDescriptor(
        role=AgentRole.CTO,
        name="Nova",
        description="Chief Technology Officer - architecture, reviews and releases",
        capabilities=["technical_assessment", "code_review", "deployment"],
        handlers={
            "technical_assessment": handle_technical_assessment,
            "code_review": handle_code_review,
            "deploy_release": handle_deploy_release,
        },
        auto_approve=confidence_above(0.85, max_impact=Impact.MEDIUM),
        poll_interval=5.0,
        max_concurrent_tasks=4,
    )
