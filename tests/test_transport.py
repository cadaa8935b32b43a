import asyncio

import pytest

from signaling.errors import UnknownTarget
from signaling.transport import Transport, WebSocketGateway


class SlowSocket:
    """Stands in for a WebSocket; the first writes take the longest."""

    def __init__(self):
        self.frames = []
        self.started = 0

    async def send_json(self, data):
        self.started += 1
        await asyncio.sleep(0.02 / self.started)
        self.frames.append(data)


def test_attach_assigns_distinct_ids():
    gateway = WebSocketGateway()
    ids = {gateway.attach(SlowSocket()) for _ in range(50)}
    assert len(ids) == 50


def test_send_to_detached_or_unknown_connection():
    gateway = WebSocketGateway()
    socket = SlowSocket()
    connection_id = gateway.attach(socket)

    async def scenario():
        await gateway.send(connection_id, "peers", {"peers": []})
        gateway.detach(connection_id)
        gateway.detach(connection_id)
        with pytest.raises(UnknownTarget):
            await gateway.send(connection_id, "peers", {"peers": []})
        with pytest.raises(UnknownTarget):
            await gateway.send("never-attached", "signal", {"from": "x", "data": {"type": "offer"}})

    asyncio.run(scenario())

    assert socket.frames == [{"event": "peers", "data": {"peers": []}}]


def test_concurrent_sends_keep_request_order():
    gateway = WebSocketGateway()
    socket = SlowSocket()
    connection_id = gateway.attach(socket)
    payloads = [{"from": "sender", "data": {"type": "ice-candidate", "n": n}} for n in range(6)]

    async def scenario():
        await asyncio.gather(*(gateway.send(connection_id, "signal", payload) for payload in payloads))

    asyncio.run(scenario())

    assert socket.frames == [{"event": "signal", "data": payload} for payload in payloads]


def test_transport_subclass_must_implement_send():
    class Silent(Transport):
        pass

    with pytest.raises(TypeError):
        Silent()
