from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from loguru import logger

from jenifesto.models.events import SSEEvent

Listener = Callable[[SSEEvent], None]


class EventBroadcaster:
    """One-to-many push channel from the pipeline to presentation observers.

    Publishing never blocks: a subscriber whose queue is full loses its
    oldest pending event.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._queues: set[asyncio.Queue[SSEEvent]] = set()
        self._listeners: list[Listener] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._queues) + len(self._listeners)

    def publish(self, event: SSEEvent) -> int:
        delivered = 0
        for queue in list(self._queues):
            if queue.full():
                queue.get_nowait()
                logger.warning(f"Dropping oldest event for slow subscriber before {event.event.value}")
            queue.put_nowait(event)
            delivered += 1

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Event listener failed on {event.event.value}")
                continue
            delivered += 1
        return delivered

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[SSEEvent]]:
        queue: asyncio.Queue[SSEEvent] = asyncio.Queue(maxsize=self.max_queue_size)
        self._queues.add(queue)
        try:
            yield queue
        finally:
            self._queues.discard(queue)
