"""Tests for the HTTP control surface."""

import httpx
import pytest_asyncio

from boardroom.api import create_fastapi_app


@pytest_asyncio.fixture
async def client(orchestrator):
    app = create_fastapi_app(orchestrator, manage_lifecycle=False)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestStatusRoutes:
    async def test_status(self, client):
        response = await client.get("/api/status")

        assert response.status_code == 200
        body = response.json()
        assert body["summary"]["total_agents"] == 4
        assert [a["role"] for a in body["agents"]] == ["ceo", "cto", "cmo", "cfo"]

    async def test_summary(self, client):
        response = await client.get("/api/summary")

        assert response.status_code == 200
        assert set(response.json()) == {
            "status",
            "recent_decisions",
            "active_alerts",
            "pending_approvals",
        }


class TestControlRoutes:
    async def test_start_and_stop_all(self, client):
        response = await client.post("/api/agents/start-all")
        assert response.json() == {"status": "ok"}

        status = (await client.get("/api/status")).json()
        assert status["summary"]["active_agents"] == 4

        response = await client.post("/api/agents/stop-all")
        assert response.status_code == 200
        status = (await client.get("/api/status")).json()
        assert status["is_running"] is False

    async def test_single_agent(self, client):
        await client.post("/api/agents/start-all")

        response = await client.post("/api/agents/cto/pause")

        assert response.status_code == 200
        assert response.json()["status"] == "paused"

    async def test_invalid_role(self, client):
        response = await client.post("/api/agents/janitor/start")
        assert response.status_code == 422

    async def test_unconfigured_role(self, client):
        response = await client.post("/api/agents/coder/start")
        assert response.status_code == 404

    async def test_unknown_action(self, client):
        response = await client.post("/api/agents/cto/explode")
        assert response.status_code == 404


class TestTaskRoutes:
    async def test_send_task(self, client, orchestrator):
        response = await client.post(
            "/api/tasks",
            json={
                "to_role": "cfo",
                "from_role": "ceo",
                "task_type": "validate_budget",
                "title": "Check",
                "payload": {"amount": 10},
                "priority": "high",
            },
        )

        assert response.status_code == 201
        task = response.json()
        assert task["to_agent_id"] == orchestrator.get_agent("cfo").agent_id
        assert task["priority"] == "high"
        assert task["status"] == "pending"

    async def test_send_task_invalid_role(self, client):
        response = await client.post(
            "/api/tasks", json={"to_role": "janitor", "task_type": "mop", "title": "Mop"}
        )
        assert response.status_code == 422

    async def test_broadcast(self, client):
        response = await client.post(
            "/api/tasks/broadcast", json={"task_type": "status_report", "title": "Report"}
        )

        assert response.status_code == 201
        assert len(response.json()) == 4


class TestDecisionRoutes:
    async def test_approve_flow(self, client, orchestrator):
        decision = await orchestrator.get_agent("cfo").escalate_to_human("Spend", "Big spend")

        pending = (await client.get("/api/decisions/pending")).json()
        assert [d["id"] for d in pending] == [decision.id]

        response = await client.post(
            f"/api/decisions/{decision.id}/approve", json={"approved_by": "alice"}
        )
        assert response.status_code == 200
        assert response.json()["approved_by"] == "alice"

        again = await client.post(f"/api/decisions/{decision.id}/approve")
        assert again.status_code == 409

    async def test_reject(self, client, orchestrator):
        decision = await orchestrator.get_agent("cto").escalate_to_human("Rewrite", "Rewrite")

        response = await client.post(
            f"/api/decisions/{decision.id}/reject", json={"rejected_by": "bob", "reason": "No"}
        )

        assert response.status_code == 200
        assert response.json()["rejected"] is True
        assert (await client.get("/api/decisions/pending")).json() == []

    async def test_unknown_decision(self, client):
        response = await client.post("/api/decisions/missing/approve")
        assert response.status_code == 404

    async def test_resolve_alert(self, client, orchestrator):
        alert = await orchestrator.get_agent("cfo").raise_alert("Cash", "Low")

        response = await client.post(f"/api/alerts/{alert.id}/resolve", json={"resolved_by": "carol"})

        assert response.status_code == 200
        assert response.json()["resolved"] is True

    async def test_unknown_alert(self, client):
        response = await client.post("/api/alerts/missing/resolve")
        assert response.status_code == 404


class TestTraceEventRoutes:
    async def test_trace_events(self, client, orchestrator):
        await orchestrator.get_agent("cfo").make_decision("flag_risk", "Risk", "FX")
        await orchestrator.flush_events()

        response = await client.get("/api/trace-events", params={"event_type": "cfo:decision:made"})

        assert response.status_code == 200
        events = response.json()
        assert len(events) == 1
        assert events[0]["actor"] == "agent:cfo"

    async def test_invalid_after(self, client):
        response = await client.get("/api/trace-events", params={"after": "yesterday"})
        assert response.status_code == 400
