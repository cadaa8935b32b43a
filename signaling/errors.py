from typing import Dict


class SignalingError(Exception):
    """Base class for coordinator errors."""


class RoomNotFound(SignalingError):
    def __init__(self, room_id: str):
        super().__init__("Room not found")
        self.room_id = room_id


class AlreadyJoined(SignalingError):
    def __init__(self, connection_id: str, room_id: str):
        super().__init__("Already joined a room")
        self.connection_id = connection_id
        self.room_id = room_id


class UnknownTarget(SignalingError):
    """Raised by a transport when the addressed connection is not live."""

    def __init__(self, connection_id: str):
        super().__init__(f"No live connection {connection_id}")
        self.connection_id = connection_id


class NotRegistered(SignalingError):
    """Operation against a connection with no registry entry.

    Means the registry and the membership table disagree, so it is always
    logged as an error.
    """

    def __init__(self, connection_id: str):
        super().__init__(f"Connection {connection_id} is not registered")
        self.connection_id = connection_id


class ConnectionNotFound(SignalingError):
    def __init__(self, connection_id: str):
        super().__init__(f"Connection {connection_id} not found")
        self.connection_id = connection_id


class DeliveryError(SignalingError):
    """One or more fan-out sends failed after the state change was applied."""

    def __init__(self, event: str, failures: Dict[str, Exception]):
        super().__init__(f"Failed to deliver {event} to {len(failures)} connection(s): {', '.join(failures)}")
        self.event = event
        self.failures = failures
