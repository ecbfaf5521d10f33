"""Tests for EventBus."""

import asyncio

import pytest

from boardroom.event_bus import WILDCARD, EventBus
from boardroom.models import AgentEvent


@pytest.fixture
async def event_bus():
    eb = EventBus(name="test")
    yield eb
    await eb.close()


class TestEventBusSubscribe:
    """Tests for EventBus subscription matching."""

    async def test_exact_match(self, event_bus):
        calls = []

        async def handler(event: AgentEvent):
            calls.append(event.type)

        event_bus.subscribe("task:completed", handler)
        await event_bus.publish(AgentEvent(type="task:completed"))
        await event_bus.publish(AgentEvent(type="task:failed"))

        assert calls == ["task:completed"]

    async def test_wildcard_receives_everything(self, event_bus):
        calls = []

        async def handler(event: AgentEvent):
            calls.append(event.type)

        event_bus.subscribe(WILDCARD, handler)
        await event_bus.publish(AgentEvent(type="cfo:task:failed"))
        await event_bus.publish(AgentEvent(type="orchestrator:started"))

        assert calls == ["cfo:task:failed", "orchestrator:started"]

    async def test_glob_pattern(self, event_bus):
        calls = []

        async def handler(event: AgentEvent):
            calls.append(event.type)

        event_bus.subscribe("cfo:*", handler)
        await event_bus.publish(AgentEvent(type="cfo:decision:made"))
        await event_bus.publish(AgentEvent(type="cto:decision:made"))

        assert calls == ["cfo:decision:made"]

    async def test_unsubscribe(self, event_bus):
        calls = []

        async def handler(event: AgentEvent):
            calls.append(event)

        event_bus.subscribe("x", handler)
        event_bus.unsubscribe("x", handler)
        await event_bus.publish(AgentEvent(type="x"))

        assert calls == []


class TestEventBusDelivery:
    """Tests for queued delivery."""

    async def test_emit_does_not_wait_for_handlers(self, event_bus):
        """Test that emit returns before a slow subscriber finishes."""
        release = asyncio.Event()
        delivered = []

        async def slow(event: AgentEvent):
            await release.wait()
            delivered.append(event.type)

        event_bus.subscribe("slow", slow)
        event_bus.emit(AgentEvent(type="slow"))

        assert delivered == []
        release.set()
        await event_bus.join()
        assert delivered == ["slow"]

    async def test_emit_preserves_order(self, event_bus):
        received = []

        async def handler(event: AgentEvent):
            received.append(event.data["n"])

        event_bus.subscribe(WILDCARD, handler)
        for n in range(10):
            event_bus.emit(AgentEvent(type="tick", data={"n": n}))
        await event_bus.join()

        assert received == list(range(10))

    async def test_failing_handler_does_not_block_others(self, event_bus):
        """Test that one subscriber's error does not stop delivery."""
        received = []

        async def broken(event: AgentEvent):
            raise RuntimeError("subscriber bug")

        async def healthy(event: AgentEvent):
            received.append(event.type)

        event_bus.subscribe(WILDCARD, broken)
        event_bus.subscribe(WILDCARD, healthy)
        event_bus.emit(AgentEvent(type="first"))
        event_bus.emit(AgentEvent(type="second"))
        await event_bus.join()

        assert received == ["first", "second"]

    async def test_close_delivers_pending_events(self):
        bus = EventBus()
        received = []

        async def handler(event: AgentEvent):
            received.append(event.type)

        bus.subscribe(WILDCARD, handler)
        bus.emit(AgentEvent(type="last"))
        await bus.close()

        assert received == ["last"]

    async def test_join_without_events(self, event_bus):
        await event_bus.join()
