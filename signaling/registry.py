from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from signaling.errors import ConnectionNotFound, NotRegistered


@dataclass
class ConnectionInfo:
    connection_id: str
    room_id: Optional[str] = None
    display_name: Optional[str] = None
    connected_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class ConnectionRegistry:
    """Session metadata for every live connection, keyed by connection id."""

    def __init__(self):
        self._connections: Dict[str, ConnectionInfo] = {}

    def register(self, connection_id: str) -> ConnectionInfo:
        info = self._connections.get(connection_id)
        if info is None:
            info = ConnectionInfo(connection_id=connection_id)
            self._connections[connection_id] = info
        return info

    def set_join(self, connection_id: str, room_id: str, display_name: str) -> ConnectionInfo:
        info = self._connections.get(connection_id)
        if info is None:
            raise NotRegistered(connection_id)
        info.room_id = room_id
        info.display_name = display_name
        return info

    def get(self, connection_id: str) -> ConnectionInfo:
        info = self._connections.get(connection_id)
        if info is None:
            raise ConnectionNotFound(connection_id)
        return info

    def room_of(self, connection_id: str) -> Optional[str]:
        info = self._connections.get(connection_id)
        return info.room_id if info else None

    def remove(self, connection_id: str) -> Optional[str]:
        """Drop the entry and return the room it was joined to, if any."""
        info = self._connections.pop(connection_id, None)
        return info.room_id if info else None

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
