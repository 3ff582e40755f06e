import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from core.notifier import ChangeNotifier, PushConnection, get_notifier

logger = logging.getLogger(__name__)

router = APIRouter()

# Browser EventSource reconnect delay, in ms.
RETRY_MS = 3000


async def event_stream(request: Request, notifier: ChangeNotifier, connection: PushConnection) -> AsyncIterator[str]:
    """
    Relay one connection's chunks to the client until it goes away.

    The disconnect check runs at least once per keep-alive interval, so a
    dropped client is unregistered within that window. A connection the
    notifier has closed ends the stream once its backlog is flushed; the
    browser then reconnects after `retry`.
    """
    notifier.subscribe(connection)
    try:
        yield f"retry: {RETRY_MS}\n\n"
        while True:
            if connection.closed and not connection.pending():
                break
            chunk = await connection.read(timeout=notifier.keepalive_interval)
            if await request.is_disconnected():
                break
            if chunk is not None:
                yield chunk
    finally:
        connection.close()
        notifier.unsubscribe(connection)
        logger.debug("event stream closed")


@router.get("/events")
async def stream_events(request: Request, notifier: ChangeNotifier = Depends(get_notifier)):
    return StreamingResponse(
        event_stream(request, notifier, PushConnection()),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
