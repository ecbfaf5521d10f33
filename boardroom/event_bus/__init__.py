"""EventBus module."""

from .event_bus import WILDCARD, EventBus, EventHandler, IEventBus

__all__ = ["EventBus", "EventHandler", "IEventBus", "WILDCARD"]
