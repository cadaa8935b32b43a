from typing import Dict, List


class RoomMembershipTable:
    """Room id -> connection ids currently joined to it.

    Members are kept in a dict used as an ordered set, so peer lists come out
    in join order. Callers must not rely on that order.
    """

    def __init__(self):
        self._rooms: Dict[str, Dict[str, None]] = {}

    def add(self, room_id: str, connection_id: str):
        self._rooms.setdefault(room_id, {})[connection_id] = None

    def remove(self, room_id: str, connection_id: str):
        members = self._rooms.get(room_id)
        if members is None:
            return
        members.pop(connection_id, None)
        if not members:
            del self._rooms[room_id]

    def peers_excluding(self, room_id: str, connection_id: str) -> List[str]:
        return [member for member in self._rooms.get(room_id, {}) if member != connection_id]

    def members(self, room_id: str) -> List[str]:
        return list(self._rooms.get(room_id, {}))

    def rooms(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms
