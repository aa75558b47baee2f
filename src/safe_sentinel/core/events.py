"""In-process async event bus for observability events."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Awaitable


logger = logging.getLogger("safe_sentinel.events")


@dataclass
class Event:
    name: str  # e.g. "reputation.refreshed", "batch.halted"
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


Callback = Callable[[Event], Awaitable[None]]


class EventBus:
    """Async pub/sub bus. Subscriber errors are logged, never raised to the publisher."""

    def __init__(self, history_size: int = 500):
        self._subscribers: dict[str, list[Callback]] = {}  # event name -> callbacks
        self._history: list[Event] = []
        self._history_size = history_size
        self._lock = asyncio.Lock()
        self._on_event: Callback | None = None  # global listener (websocket bridge)

    def set_global_listener(self, callback: Callback | None) -> None:
        self._on_event = callback

    def subscribe(self, name: str, callback: Callback) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(callback)

    async def publish(self, event: Event) -> None:
        async with self._lock:
            self._history.append(event)
            if len(self._history) > self._history_size:
                del self._history[: len(self._history) - self._history_size]

        if self._on_event:
            try:
                await self._on_event(event)
            except Exception as e:
                logger.error(f"Global event listener error: {e}")

        for callback in self._subscribers.get(event.name, []):
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"Subscriber callback error on '{event.name}': {e}")

    async def emit(self, name: str, **data: Any) -> None:
        await self.publish(Event(name=name, data=data))

    def get_history(self, limit: int = 50, name: str | None = None) -> list[Event]:
        # Return a copy to avoid mutation during iteration
        events = list(self._history)
        if name:
            events = [e for e in events if e.name == name]
        return events[-limit:]
