"""Tests for the example roles and provisioning."""

import pytest

from boardroom.errors import AgentNotFoundError
from boardroom.models import AgentRole, AgentTask, Impact, TaskPriority, TaskStatus
from boardroom.roles import default_roles, provision_agents
from boardroom.roles.ceo import (
    handle_approval_request,
    handle_escalation,
    handle_strategic_plan,
)
from boardroom.roles.cfo import (
    handle_budget_allocation,
    handle_revenue_report,
    handle_validate_budget,
)
from boardroom.roles.cmo import handle_create_campaign, handle_market_analysis
from boardroom.roles.cto import (
    handle_code_review,
    handle_deploy_release,
    handle_technical_assessment,
)


def _task(task_type: str, payload: dict | None = None) -> AgentTask:
    return AgentTask(
        id=f"task-{task_type}",
        to_agent_id="unused",
        task_type=task_type,
        title=task_type.replace("_", " ").title(),
        payload=payload or {},
    )


async def _tasks_for(storage, orchestrator, role):
    agent = orchestrator.get_agent(role)
    return await storage.get_tasks_for_agent(agent.agent_id, TaskStatus.PENDING)


class TestDefaults:
    def test_default_roles_lead_first(self):
        roles = [d.role for d in default_roles()]
        assert roles == [AgentRole.CEO, AgentRole.CTO, AgentRole.CMO, AgentRole.CFO]

    def test_every_role_has_handlers(self):
        for descriptor in default_roles():
            assert descriptor.handlers
            assert descriptor.auto_approve is not None

    async def test_provision_is_idempotent(self, storage):
        first = await provision_agents(storage, default_roles())
        second = await provision_agents(storage, default_roles())

        assert [r.id for r in first] == [r.id for r in second]
        assert len(await storage.get_all_agents()) == 4


class TestCEO:
    async def test_strategic_plan_delegates_steps(self, storage, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)
        task = _task(
            "strategic_plan",
            {
                "goal": "Launch v2",
                "steps": [
                    {"role": "cto", "task_type": "technical_assessment", "title": "Assess", "payload": {"subject": "v2"}},
                    {"role": "cfo", "task_type": "budget_allocation", "title": "Fund", "priority": "high"},
                ],
            },
        )

        result = await handle_strategic_plan(ceo, task)

        assert len(result["delegated"]) == 2
        assert result["approved"] is True
        cto_tasks = await _tasks_for(storage, orchestrator, AgentRole.CTO)
        cfo_tasks = await _tasks_for(storage, orchestrator, AgentRole.CFO)
        assert cto_tasks[0].payload == {"subject": "v2"}
        assert cto_tasks[0].from_agent_id == ceo.agent_id
        assert cfo_tasks[0].priority == TaskPriority.HIGH

    async def test_empty_plan_waits_for_approval(self, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)

        result = await handle_strategic_plan(ceo, _task("strategic_plan", {"goal": "Think"}))

        assert result["delegated"] == []
        assert result["approved"] is False

    async def test_plan_with_unknown_role_fails(self, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)
        task = _task("strategic_plan", {"steps": [{"role": "janitor", "task_type": "mop"}]})

        with pytest.raises(AgentNotFoundError):
            await handle_strategic_plan(ceo, task)

    async def test_critical_request_is_escalated(self, storage, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)

        result = await handle_approval_request(
            ceo, _task("approval_request", {"impact": "critical", "confidence": 0.99})
        )

        assert result["escalated"] is True
        decision = await storage.get_decision(result["decision_id"])
        assert decision.approved is False

    async def test_routine_request_is_approved(self, storage, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)

        result = await handle_approval_request(
            ceo, _task("approval_request", {"impact": "medium", "confidence": 0.9})
        )

        assert result["escalated"] is False
        assert (await storage.get_decision(result["decision_id"])).approved is True

    async def test_escalation_raises_alert(self, storage, orchestrator):
        ceo = orchestrator.get_agent(AgentRole.CEO)

        result = await handle_escalation(ceo, _task("escalation", {"title": "Outage"}))

        alerts = await storage.get_active_alerts()
        assert [a.id for a in alerts] == [result["alert_id"]]
        assert alerts[0].severity == Impact.HIGH
        pending = await storage.get_pending_approvals()
        assert [d.id for d in pending] == [result["decision_id"]]


class TestCTO:
    async def test_assessment_without_risks(self, storage, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_technical_assessment(cto, _task("technical_assessment"))

        assert result["feasible"] is True
        assert (await storage.get_decision(result["decision_id"])).approved is True

    async def test_risky_assessment_needs_approval(self, storage, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_technical_assessment(
            cto, _task("technical_assessment", {"risks": ["a", "b", "c"]})
        )

        assert result["feasible"] is False
        decision = await storage.get_decision(result["decision_id"])
        assert decision.approved is False
        assert decision.impact == Impact.HIGH

    async def test_critical_review_finding(self, storage, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_code_review(
            cto,
            _task("code_review", {"change": "PR-1", "findings": [{"severity": "critical", "message": "SQL injection"}]}),
        )

        assert result["approved"] is False
        alerts = await storage.get_active_alerts()
        assert alerts[0].message == "SQL injection"
        assert len(await storage.get_pending_approvals()) == 1

    async def test_clean_review(self, storage, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_code_review(cto, _task("code_review", {"findings": [{"severity": "low"}]}))

        assert result == {"change": "Code Review", "approved": True, "findings": 1}

    async def test_production_release_asks_ceo(self, storage, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_deploy_release(
            cto, _task("deploy_release", {"release": "2.0", "environment": "production"})
        )

        assert result["status"] == "awaiting_approval"
        ceo_tasks = await _tasks_for(storage, orchestrator, AgentRole.CEO)
        assert ceo_tasks[0].task_type == "approval_request"
        assert ceo_tasks[0].priority == TaskPriority.HIGH

    async def test_staging_release_deploys(self, orchestrator):
        cto = orchestrator.get_agent(AgentRole.CTO)

        result = await handle_deploy_release(cto, _task("deploy_release", {"release": "2.0"}))

        assert result["status"] == "deployed"
        assert result["environment"] == "staging"


class TestCMO:
    async def test_campaign_sends_budget_to_cfo(self, storage, orchestrator):
        cmo = orchestrator.get_agent(AgentRole.CMO)

        result = await handle_create_campaign(cmo, _task("create_campaign", {"name": "Spring", "budget": 40}))

        cfo_tasks = await _tasks_for(storage, orchestrator, AgentRole.CFO)
        assert [t.id for t in cfo_tasks] == [result["budget_task_id"]]
        assert cfo_tasks[0].task_type == "validate_budget"
        assert cfo_tasks[0].payload == {"subject": "Spring", "amount": 40}

    async def test_market_analysis_ranks_signals(self, orchestrator):
        cmo = orchestrator.get_agent(AgentRole.CMO)
        signals = [{"name": "a", "score": 0.2}, {"name": "b", "score": 0.9}, {"name": "c", "score": 0.5}]

        result = await handle_market_analysis(cmo, _task("market_analysis", {"signals": signals, "top": 2}))

        assert [s["name"] for s in result["top"]] == ["b", "c"]
        assert result["decision_id"] is not None

    async def test_market_analysis_without_signals(self, orchestrator):
        cmo = orchestrator.get_agent(AgentRole.CMO)

        result = await handle_market_analysis(cmo, _task("market_analysis"))

        assert result["top"] == []
        assert result["decision_id"] is None


class TestCFO:
    async def test_budget_within_limit(self, storage, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        result = await handle_validate_budget(cfo, _task("validate_budget", {"amount": 20}))

        assert result["approved"] is True
        assert (await storage.get_decision(result["decision_id"])).approved is True

    async def test_budget_over_limit_escalates(self, storage, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        result = await handle_validate_budget(cfo, _task("validate_budget", {"amount": 500, "limit": 100}))

        assert result["escalated"] is True
        decision = await storage.get_decision(result["decision_id"])
        assert decision.approved is False
        assert decision.data["amount"] == 500

    async def test_budget_must_be_numeric(self, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        with pytest.raises(ValueError, match="amount must be a number"):
            await handle_validate_budget(cfo, _task("validate_budget", {"amount": "lots"}))

    async def test_allocation(self, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        result = await handle_budget_allocation(
            cfo, _task("budget_allocation", {"total": 100, "shares": {"eng": 3, "ops": 1}})
        )

        assert result["allocation"] == {"eng": 75.0, "ops": 25.0}

    async def test_allocation_needs_weights(self, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        with pytest.raises(ValueError):
            await handle_budget_allocation(cfo, _task("budget_allocation", {"total": 100}))

    async def test_negative_revenue_raises_alert(self, storage, orchestrator):
        cfo = orchestrator.get_agent(AgentRole.CFO)

        result = await handle_revenue_report(
            cfo, _task("revenue_report", {"entries": [{"amount": 10}, {"amount": -25}]})
        )

        assert result == {"total": -15.0, "count": 2}
        alerts = await storage.get_active_alerts()
        assert alerts[0].title == "Negative revenue"
