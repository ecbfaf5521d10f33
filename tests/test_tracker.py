"""Tests for Tracker."""

from datetime import datetime, timezone

import pytest

from boardroom.errors import PersistenceError
from boardroom.event_bus import EventBus
from boardroom.models import AgentEvent
from boardroom.tracker import Tracker


@pytest.fixture
def tracker(storage):
    return Tracker(storage)


class TestTrackerTrack:
    """Tests for Tracker.track() method."""

    async def test_track_creates_event(self, tracker, storage):
        """Test that track() creates a TraceEvent."""
        await tracker.track(
            event_type="test_event",
            actor="test_actor",
            data={"key": "value"},
        )

        events = await storage.get_trace_events()
        assert len(events) == 1
        assert events[0].event_type == "test_event"
        assert events[0].actor == "test_actor"
        assert events[0].data == {"key": "value"}
        assert events[0].id

    async def test_track_generates_timestamp(self, tracker, storage):
        """Test that track() generates timestamp if not provided."""
        before = datetime.now(timezone.utc)
        await tracker.track(event_type="test_event", actor="test_actor", data={})
        after = datetime.now(timezone.utc)

        events = await storage.get_trace_events()
        assert before <= events[0].timestamp <= after

    async def test_storage_failure_is_logged_not_raised(self, tracker, monkeypatch):
        async def failing(event):
            raise PersistenceError("disk full", operation="save_trace_event")

        monkeypatch.setattr(tracker._storage, "save_trace_event", failing)

        await tracker.track(event_type="test_event", actor="x", data={})


class TestTrackerAttach:
    """Tests for bus subscription."""

    async def test_agent_events_are_persisted(self, tracker, storage):
        bus = EventBus()
        tracker.attach(bus)

        bus.emit(AgentEvent(type="cfo:task:completed", role="cfo", agent_id="a1", data={"task": {"id": "t1"}}))
        await bus.close()

        events = await storage.get_trace_events()
        assert len(events) == 1
        assert events[0].event_type == "cfo:task:completed"
        assert events[0].actor == "agent:cfo"
        assert events[0].data == {"task": {"id": "t1"}, "agent_id": "a1"}

    async def test_orchestrator_events_use_orchestrator_actor(self, tracker, storage):
        bus = EventBus()
        tracker.attach(bus)

        bus.emit(AgentEvent(type="orchestrator:started", data={"roles": ["ceo"]}))
        await bus.close()

        events = await storage.get_trace_events()
        assert events[0].actor == "orchestrator"
        assert events[0].data == {"roles": ["ceo"]}
