from core.notifier import KEEPALIVE, ChangeNotifier, PushConnection, format_event
from routers.events import RETRY_MS, event_stream


class FakeRequest:
    def __init__(self):
        self.disconnected = False

    async def is_disconnected(self):
        return self.disconnected


async def test_stream_relays_broadcasts_then_cleans_up_on_disconnect():
    notifier = ChangeNotifier(keepalive_interval=0.01)
    request = FakeRequest()
    conn = PushConnection()
    stream = event_stream(request, notifier, conn)

    assert await stream.__anext__() == f"retry: {RETRY_MS}\n\n"
    assert conn in notifier

    notifier.broadcast()
    assert await stream.__anext__() == format_event("inventory_update")

    request.disconnected = True
    chunks = [chunk async for chunk in stream]

    assert chunks == []
    assert conn not in notifier
    assert conn.closed
    assert notifier.broadcast() == 0


async def test_stream_sends_keepalives_while_idle():
    notifier = ChangeNotifier(keepalive_interval=0.01)
    request = FakeRequest()
    conn = PushConnection()
    stream = event_stream(request, notifier, conn)

    await stream.__anext__()
    assert await stream.__anext__() == KEEPALIVE

    await stream.aclose()
    assert conn not in notifier


async def test_stream_ends_after_backlog_when_buffer_overflows():
    notifier = ChangeNotifier(keepalive_interval=60)
    request = FakeRequest()
    conn = PushConnection(max_pending=2)
    stream = event_stream(request, notifier, conn)

    await stream.__anext__()
    assert notifier.broadcast() == 1
    assert notifier.broadcast() == 1
    assert notifier.broadcast() == 0
    assert conn.closed

    chunks = [chunk async for chunk in stream]

    assert chunks == [format_event("inventory_update")] * 2
    assert conn not in notifier
    await notifier.aclose()
