"""Transport abstraction for streamed events."""

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Event names of the external streaming protocol
START = "start"
TOKEN = "token"
USED_TOOLS = "usedTools"
SOURCE_DOCUMENTS = "sourceDocuments"


class EventSink(Protocol):
    """Delivers named events to a connected client."""

    async def emit(self, client_id: str, event: str, payload: Any) -> None: ...


class StreamChannel:
    """A sink bound to one client."""

    def __init__(self, sink: EventSink, client_id: str):
        self.sink = sink
        self.client_id = client_id

    async def push(self, event: str, payload: Any) -> None:
        await self.sink.emit(self.client_id, event, payload)


class QueueSink:
    """In-process sink with one asyncio queue per connected client.

    Events for clients that have no open queue are dropped.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue[tuple[str, Any]]] = {}

    def open(self, client_id: str) -> asyncio.Queue[tuple[str, Any]]:
        queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue()
        self._queues[client_id] = queue
        return queue

    def close(self, client_id: str) -> None:
        self._queues.pop(client_id, None)

    async def emit(self, client_id: str, event: str, payload: Any) -> None:
        queue = self._queues.get(client_id)
        if queue is None:
            logger.debug("Dropping %s event for disconnected client %s", event, client_id)
            return
        await queue.put((event, payload))
