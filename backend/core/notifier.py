"""
Change notification for open browser tabs (server-sent events).

Each open `/events` stream is a PushConnection registered with the
application's ChangeNotifier. After a mutation commits, handlers call
`broadcast()`; every registered connection gets one `inventory_update` event
and the browser re-fetches the item list. Delivery is best effort.
"""

import asyncio
import json
import logging
from typing import Dict, List, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

INVENTORY_UPDATE = "inventory_update"
KEEPALIVE = ": keep-alive\n\n"


def format_event(event: str, data: Optional[dict] = None) -> str:
    payload = json.dumps(data if data is not None else {"type": event})
    return f"event: {event}\ndata: {payload}\n\n"


class ConnectionClosed(Exception):
    pass


class PushConnection:
    """Outgoing side of one event stream. Writes never block the writer."""

    def __init__(self, max_pending: int = 100):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def write(self, chunk: str) -> None:
        if self.closed:
            raise ConnectionClosed("connection closed")
        try:
            self._queue.put_nowait(chunk)
        except asyncio.QueueFull:
            # Reader stopped draining; treat as dead so the stream ends and the client reconnects.
            self.closed = True
            raise ConnectionClosed("connection buffer full")

    async def read(self, timeout: Optional[float] = None) -> Optional[str]:
        """Next chunk, or None if nothing arrived within `timeout` seconds."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self.closed = True


class ChangeNotifier:
    def __init__(self, keepalive_interval: float = 20.0):
        self.keepalive_interval = keepalive_interval
        self._connections: List = []
        self._heartbeats: Dict[int, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection) -> bool:
        return any(c is connection for c in self._connections)

    def subscribe(self, connection):
        """Register a connection and start its keep-alive heartbeat.

        Must be called from the running event loop.
        """
        self._connections.append(connection)
        if id(connection) not in self._heartbeats:
            self._heartbeats[id(connection)] = asyncio.get_running_loop().create_task(self._heartbeat(connection))
        logger.debug("push subscriber added (%d open)", len(self._connections))
        return connection

    def unsubscribe(self, connection) -> None:
        task = self._heartbeats.pop(id(connection), None)
        if task is not None and task is not _current_task():
            task.cancel()
        before = len(self._connections)
        self._connections = [c for c in self._connections if c is not connection]
        if len(self._connections) != before:
            logger.debug("push subscriber removed (%d open)", len(self._connections))

    def broadcast(self, event: str = INVENTORY_UPDATE, data: Optional[dict] = None) -> int:
        """Write one event to every open connection; returns how many took it."""
        chunk = format_event(event, data)
        delivered = 0
        for connection in list(self._connections):
            try:
                connection.write(chunk)
                delivered += 1
            except Exception as e:
                logger.debug("dropping %s for dead push connection: %r", event, e)
        logger.debug("broadcast %s to %d/%d subscribers", event, delivered, len(self._connections))
        return delivered

    async def _heartbeat(self, connection) -> None:
        while True:
            await asyncio.sleep(self.keepalive_interval)
            try:
                connection.write(KEEPALIVE)
            except Exception:
                self.unsubscribe(connection)
                close = getattr(connection, "close", None)
                if close is not None:
                    close()
                return

    async def aclose(self) -> None:
        tasks = list(self._heartbeats.values())
        for connection in list(self._connections):
            self.unsubscribe(connection)
            close = getattr(connection, "close", None)
            if close is not None:
                close()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


def get_notifier(request: Request) -> ChangeNotifier:
    """FastAPI dependency: the application's notifier (created in the lifespan)."""
    return request.app.state.notifier
