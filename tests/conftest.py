"""Pytest configuration and fixtures."""

import asyncio
import sys
import uuid
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from boardroom.agents import Agent, RoleDescriptor  # noqa: E402
from boardroom.models import AgentRole, AgentTask, TaskPriority, TaskStatus  # noqa: E402
from boardroom.orchestrator import Orchestrator  # noqa: E402
from boardroom.roles import default_roles, provision_agents  # noqa: E402
from boardroom.storage import Storage  # noqa: E402
from boardroom.tracker import Tracker  # noqa: E402


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def make_descriptor():
    """Factory for fast-polling role descriptors."""

    def factory(role=AgentRole.CTO, handlers=None, **overrides) -> RoleDescriptor:
        overrides.setdefault("poll_interval", 0.01)
        return RoleDescriptor(
            role=role,
            name=f"Test {AgentRole(role).value.upper()}",
            handlers=handlers or {},
            **overrides,
        )

    return factory


@pytest_asyncio.fixture
async def make_agent(storage, make_descriptor):
    """Factory for provisioned, initialized agents. Stops them afterwards."""
    agents = []

    async def factory(role=AgentRole.CTO, handlers=None, **overrides) -> Agent:
        descriptor = make_descriptor(role, handlers, **overrides)
        await provision_agents(storage, [descriptor])
        agent = Agent(descriptor, storage)
        await agent.initialize()
        await agent.events.join()
        agents.append(agent)
        return agent

    yield factory

    for agent in agents:
        await agent.stop()
        await agent.events.close()


@pytest.fixture
def make_task(storage):
    """Factory for pending tasks addressed to an agent id."""

    async def factory(
        to_agent_id: str,
        task_type: str = "noop",
        payload: dict | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        from_agent_id: str | None = None,
    ) -> AgentTask:
        return await storage.create_task(
            AgentTask(
                id=str(uuid.uuid4()),
                to_agent_id=to_agent_id,
                task_type=task_type,
                title=f"Test {task_type}",
                payload=payload or {},
                priority=priority,
                from_agent_id=from_agent_id,
            )
        )

    return factory


@pytest.fixture
def wait_for_task(storage):
    """Poll the store until a task reaches a status."""

    async def waiter(task_id: str, status: TaskStatus, timeout: float = 2.0) -> AgentTask:
        async def poll() -> AgentTask:
            while True:
                task = await storage.get_task(task_id)
                if task is not None and task.status == status:
                    return task
                await asyncio.sleep(0.01)

        return await asyncio.wait_for(poll(), timeout=timeout)

    return waiter


@pytest_asyncio.fixture
async def orchestrator(storage):
    """Initialized orchestrator over the default board, with tracing."""
    roles = default_roles()
    await provision_agents(storage, roles)

    orch = Orchestrator(storage, roles, tracker=Tracker(storage))
    await orch.initialize()
    await orch.flush_events()
    yield orch
    await orch.shutdown()
