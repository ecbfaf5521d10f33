"""Tracker implementation for persisting TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..event_bus import WILDCARD, IEventBus
from ..errors import PersistenceError
from ..logging_config import get_logger
from ..models import AgentEvent, TraceEvent
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Creating TraceEvents. Two channels: EventBus subscription + direct calls."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Persists every event seen on a bus as a TraceEvent."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    def attach(self, event_bus: IEventBus) -> None:
        """Subscribe to every event on the bus."""
        event_bus.subscribe(WILDCARD, self._handle_event)

    async def _handle_event(self, event: AgentEvent) -> None:
        """Handle incoming AgentEvent from EventBus."""
        actor = f"agent:{event.role}" if event.role else "orchestrator"
        data = dict(event.data)
        if event.agent_id:
            data.setdefault("agent_id", event.agent_id)

        await self.track(event.type, actor, data, timestamp=event.timestamp)

    async def track(
        self,
        event_type: str,
        actor: str,
        data: dict,
        timestamp: datetime | None = None,
    ) -> None:
        """Create TraceEvent and save to Storage. Storage failures are logged."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        try:
            await self._storage.save_trace_event(trace_event)
        except PersistenceError as e:
            logger.error("Failed to persist trace event %s: %s", event_type, e)
