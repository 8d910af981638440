"""Live viewer connections for workday updates."""

import asyncio
import logging

from fastapi import WebSocket

from workday_tracker.domain.workday import WorkdaySnapshot
from workday_tracker.services.workday import serialize_snapshot

logger = logging.getLogger(__name__)

WORKDAY_UPDATE_EVENT = "workdayUpdate"


def workday_event(snapshot: WorkdaySnapshot) -> dict[str, object]:
    """Build the message pushed to live viewers."""
    return {"event": WORKDAY_UPDATE_EVENT, "data": serialize_snapshot(snapshot)}


class WorkdayBroadcastHub:
    """Tracks connected viewers and fans snapshots out to all of them.

    Delivery is best effort: a viewer whose send fails is dropped, and viewers
    are expected to refetch the workday periodically anyway.
    """

    def __init__(self) -> None:
        self._connections: dict[int, WebSocket] = {}
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a viewer and start sending it updates."""
        await websocket.accept()
        async with self._lock:
            self._connections[id(websocket)] = websocket
        logger.info("Viewer connected (total: %s)", len(self._connections))

    async def disconnect(self, websocket: WebSocket) -> None:
        """Stop sending updates to a viewer."""
        async with self._lock:
            removed = self._connections.pop(id(websocket), None)
        if removed is not None:
            logger.info("Viewer disconnected (remaining: %s)", len(self._connections))

    async def publish(self, snapshot: WorkdaySnapshot) -> int:
        """Send a snapshot to every viewer and return how many received it."""
        async with self._lock:
            connections = list(self._connections.items())
        if not connections:
            return 0

        message = workday_event(snapshot)

        async def send(conn_id: int, websocket: WebSocket) -> bool:
            try:
                await websocket.send_json(message)
            except Exception as exc:
                logger.debug("Dropping viewer %s after failed send: %s", conn_id, exc)
                async with self._lock:
                    self._connections.pop(conn_id, None)
                return False
            return True

        results = await asyncio.gather(
            *(send(conn_id, websocket) for conn_id, websocket in connections)
        )
        delivered = sum(1 for result in results if result)
        logger.info("Broadcast workday update to %s/%s viewers", delivered, len(results))
        return delivered

    async def close(self) -> None:
        """Close every viewer connection."""
        async with self._lock:
            connections, self._connections = list(self._connections.values()), {}
        for websocket in connections:
            try:
                await websocket.close()
            except Exception as exc:
                logger.debug("Viewer close failed: %s", exc)
