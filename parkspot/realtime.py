"""
Realtime booking events and shared connection management.

EventHub fans booking events out to subscribers of a room (``lot-<id>``
for availability changes, ``booking-<id>`` for status updates).

ConnectionManager owns process-wide, lazily created resources such as a
socket or gateway client. Initialization is single-flight per key: while
one creation is in flight, every other caller for the same key awaits the
same result. Failed creations are not cached. Resources are torn down
explicitly with ``close`` / ``close_all`` (e.g. on logout or shutdown).

Room feeds are the resources this package shares: ``room_feed`` returns
one queue-backed subscription per room, however many consumers ask.

Usage:
    feed = await room_feed("lot-lot-001")
    ...
    for event in feed.drain():
        ...
    await connections.close_all()
"""

import asyncio
import inspect
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

MAX_EVENT_HISTORY = 200

Subscriber = Callable[["RealtimeEvent"], None]


@dataclass
class RealtimeEvent:
    """A single event published to a room."""
    room: str
    name: str
    payload: dict[str, Any]
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class EventHub:
    """Room-based publish/subscribe for booking events."""

    def __init__(self) -> None:
        self._rooms: dict[str, list[Subscriber]] = defaultdict(list)
        self._history: deque[RealtimeEvent] = deque(maxlen=MAX_EVENT_HISTORY)

    def subscribe(self, room: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for a room. Returns a function that unsubscribes it."""
        self._rooms[room].append(callback)
        logger.debug("Subscriber added to room %s", room)

        def unsubscribe() -> None:
            if callback in self._rooms.get(room, []):
                self._rooms[room].remove(callback)

        return unsubscribe

    def publish(self, room: str, name: str, payload: dict[str, Any]) -> int:
        """Deliver an event to every subscriber of the room.

        A failing subscriber is logged and does not stop delivery to the
        others. Returns the number of successful deliveries.
        """
        event = RealtimeEvent(room=room, name=name, payload=payload)
        self._history.append(event)
        delivered = 0
        for callback in list(self._rooms.get(room, [])):
            try:
                callback(event)
                delivered += 1
            except Exception:
                logger.exception("Subscriber failed for %s in room %s", name, room)
        logger.debug("Published %s to %s (%d subscribers)", name, room, delivered)
        return delivered

    def recent_events(self, room: Optional[str] = None) -> list[RealtimeEvent]:
        """Return retained events, optionally filtered by room."""
        return [e for e in self._history if room is None or e.room == room]

    def reset(self) -> None:
        """Drop all subscribers and history. Used by test fixtures for isolation."""
        self._rooms.clear()
        self._history.clear()


class ConnectionManager:
    """Single-flight cache of shared resources keyed by configuration."""

    def __init__(self) -> None:
        self._resources: dict[Hashable, Any] = {}
        self._pending: dict[Hashable, asyncio.Task] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._resources

    async def get(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        """Return the resource for ``key``, creating it at most once concurrently."""
        if key in self._resources:
            return self._resources[key]

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._create(key, factory))
            self._pending[key] = task
        return await asyncio.shield(task)

    async def _create(self, key: Hashable, factory: Callable[[], Awaitable[Any]]) -> Any:
        try:
            resource = await factory()
        finally:
            self._pending.pop(key, None)
        self._resources[key] = resource
        logger.info("Connection opened: %s", key)
        return resource

    async def close(self, key: Hashable) -> bool:
        """Tear down the resource for ``key``. Returns False if none was open."""
        task = self._pending.pop(key, None)
        if task is not None:
            task.cancel()

        resource = self._resources.pop(key, None)
        if resource is None:
            return task is not None

        closer = getattr(resource, "close", None)
        if closer is not None:
            result = closer()
            if inspect.isawaitable(result):
                await result
        logger.info("Connection closed: %s", key)
        return True

    async def close_all(self) -> None:
        """Tear down every open or in-flight resource."""
        for key in list(self._pending) + list(self._resources):
            await self.close(key)

    def reset(self) -> None:
        """Forget every resource without closing it. Used by test fixtures for isolation."""
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        self._resources.clear()


class RoomFeed:
    """Queue-backed subscription to one room of an EventHub."""

    def __init__(self, event_hub: EventHub, room: str) -> None:
        self.room = room
        self.closed = False
        self._queue: asyncio.Queue[RealtimeEvent] = asyncio.Queue()
        self._unsubscribe = event_hub.subscribe(room, self._queue.put_nowait)

    async def next(self) -> RealtimeEvent:
        """Wait for the next event published to the room."""
        return await self._queue.get()

    def drain(self) -> list[RealtimeEvent]:
        """Return every queued event without waiting."""
        events = []
        while not self._queue.empty():
            events.append(self._queue.get_nowait())
        return events

    def close(self) -> None:
        self._unsubscribe()
        self.closed = True


async def open_room_feed(room: str, event_hub: Optional[EventHub] = None) -> RoomFeed:
    return RoomFeed(event_hub or hub, room)


async def room_feed(room: str) -> RoomFeed:
    """Shared feed for a room, opened on first use."""
    return await connections.get(("room", room), lambda: open_room_feed(room))


# Singleton instances
hub = EventHub()
connections = ConnectionManager()
