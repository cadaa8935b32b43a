import asyncio

import pytest

from backend import InMemoryRoomDirectory
from signaling.coordinator import SignalingCoordinator
from signaling.errors import UnknownTarget
from signaling.transport import Transport


class RecordingTransport(Transport):
    """Collects every delivered event instead of writing to sockets."""

    def __init__(self):
        self.live = set()
        self.broken = set()
        self.sent = []
        self.delay = 0

    def open(self, connection_id):
        self.live.add(connection_id)

    def close(self, connection_id):
        self.live.discard(connection_id)

    async def send(self, connection_id, event, data):
        if connection_id not in self.live:
            raise UnknownTarget(connection_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if connection_id in self.broken:
            raise ConnectionError("socket closed")
        self.sent.append((connection_id, event, data))

    def events_for(self, connection_id, event=None):
        return [
            (sent_event, data)
            for target, sent_event, data in self.sent
            if target == connection_id and (event is None or sent_event == event)
        ]


@pytest.fixture
def directory():
    return InMemoryRoomDirectory()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def coordinator(directory, transport):
    return SignalingCoordinator(directory=directory, transport=transport)


@pytest.fixture
def room_id(directory):
    return asyncio.run(directory.create_room("R1", "first room"))["id"]


@pytest.fixture
def connect(coordinator, transport):
    def _connect(connection_id):
        transport.open(connection_id)
        coordinator.connect(connection_id)
        return connection_id
    return _connect
