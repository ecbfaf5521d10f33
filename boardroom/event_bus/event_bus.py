"""EventBus implementation for pub/sub notifications."""

import asyncio
import fnmatch
from typing import Awaitable, Callable, Protocol

from ..logging_config import get_logger
from ..models import AgentEvent

logger = get_logger(__name__)


EventHandler = Callable[[AgentEvent], Awaitable[None]]

WILDCARD = "*"


class IEventBus(Protocol):
    """In-process pub/sub for AgentEvents."""

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type or glob pattern."""
        ...

    def emit(self, event: AgentEvent) -> None:
        """Queue an event for delivery without waiting for subscribers."""
        ...

    async def publish(self, event: AgentEvent) -> None:
        """Deliver an event to matching subscribers right away."""
        ...


class EventBus:
    """In-memory pub/sub event bus.

    `emit()` only enqueues; a background dispatcher task delivers events in
    order, so the emitter never waits on its subscribers.
    """

    def __init__(self, name: str = "events"):
        self._name = name
        self._subscribers: list[tuple[str, EventHandler]] = []
        self._queue: asyncio.Queue[AgentEvent] | None = None
        self._dispatcher: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return self._name

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event type, a glob pattern, or "*"."""
        self._subscribers.append((pattern, handler))

    def unsubscribe(self, pattern: str, handler: EventHandler) -> None:
        """Remove a subscription; unknown subscriptions are ignored."""
        self._subscribers = [
            (p, h) for p, h in self._subscribers if not (p == pattern and h == handler)
        ]

    def _handlers_for(self, event_type: str) -> list[EventHandler]:
        return [
            handler
            for pattern, handler in self._subscribers
            if pattern == WILDCARD
            or pattern == event_type
            or fnmatch.fnmatchcase(event_type, pattern)
        ]

    def emit(self, event: AgentEvent) -> None:
        """Queue an event for delivery without waiting for subscribers."""
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._dispatcher is None or self._dispatcher.done():
            self._dispatcher = asyncio.get_running_loop().create_task(
                self._dispatch(), name=f"{self._name}-dispatcher"
            )
        self._queue.put_nowait(event)

    async def publish(self, event: AgentEvent) -> None:
        """Deliver an event to all matching subscribers concurrently."""
        handlers = self._handlers_for(event.type)
        if not handlers:
            return

        results = await asyncio.gather(
            *[handler(event) for handler in handlers],
            return_exceptions=True,
        )

        # Log any exceptions
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    "Error in %s handler %s for %s: %s",
                    self._name,
                    getattr(handler, "__qualname__", repr(handler)),
                    event.type,
                    result,
                )

    async def _dispatch(self) -> None:
        assert self._queue is not None
        while True:
            event = await self._queue.get()
            try:
                await self.publish(event)
            finally:
                self._queue.task_done()

    async def join(self) -> None:
        """Wait until every queued event has been delivered."""
        if self._queue is not None:
            await self._queue.join()

    async def close(self) -> None:
        """Deliver what is queued, then stop the dispatcher."""
        await self.join()
        if self._dispatcher is not None:
            self._dispatcher.cancel()
            try:
                await self._dispatcher
            except asyncio.CancelledError:
                pass
            self._dispatcher = None
