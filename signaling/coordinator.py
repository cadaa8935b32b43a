import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from pydantic import ValidationError

from constants import DEFAULT_DISPLAY_NAME_PREFIX
from schemas.signaling import (
    ERROR,
    JOIN_ROOM,
    PEER_JOINED,
    PEER_LEFT,
    PEERS,
    SIGNAL,
    JoinRoomRequest,
    SignalRequest,
    negotiation_kind,
)
from signaling.errors import AlreadyJoined, DeliveryError, NotRegistered, RoomNotFound, UnknownTarget
from signaling.membership import RoomMembershipTable
from signaling.registry import ConnectionRegistry
from signaling.transport import Transport
from logging_config import get_logger

logger = get_logger(__name__)


def describe_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


class _RoomLock:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SignalingCoordinator:
    """Room membership, peer notifications and negotiation relay.

    Every membership change for a room, together with the peer-list read and
    the notification sends that follow it, runs inside that room's lock. The
    lock stays held while sends are awaited, so two joins to the same room
    never interleave.
    """

    def __init__(
        self,
        directory,
        transport: Transport,
        registry: Optional[ConnectionRegistry] = None,
        membership: Optional[RoomMembershipTable] = None,
    ):
        self.directory = directory
        self.transport = transport
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.membership = membership if membership is not None else RoomMembershipTable()
        self._room_locks: Dict[str, _RoomLock] = {}

    @asynccontextmanager
    async def _room_section(self, room_id: str):
        room_lock = self._room_locks.get(room_id)
        if room_lock is None:
            room_lock = self._room_locks[room_id] = _RoomLock()
        room_lock.users += 1
        try:
            async with room_lock.lock:
                yield
        finally:
            room_lock.users -= 1
            # Only forget the lock when nobody holds it or waits for it
            if room_lock.users == 0:
                del self._room_locks[room_id]

    def connect(self, connection_id: str):
        self.registry.register(connection_id)
        logger.debug(f"Registered connection {connection_id}")

    async def join(self, connection_id: str, room_id: str, display_name: Optional[str] = None) -> List[str]:
        """Join ``room_id`` and return the peers that were already in it."""
        current_room = self.registry.room_of(connection_id)
        if current_room is not None:
            raise AlreadyJoined(connection_id, current_room)

        if not await self.directory.exists(room_id):
            raise RoomNotFound(room_id)

        if display_name and display_name.strip():
            display_name = display_name.strip()
        else:
            display_name = f"{DEFAULT_DISPLAY_NAME_PREFIX}{connection_id[:8]}"

        async with self._room_section(room_id):
            try:
                self.registry.set_join(connection_id, room_id, display_name)
            except NotRegistered:
                logger.error(f"Join for room {room_id} from unregistered connection {connection_id}", exc_info=True)
                raise
            self.membership.add(room_id, connection_id)
            peers = self.membership.peers_excluding(room_id, connection_id)
            logger.info(f"Connection {connection_id} ({display_name}) joined room {room_id} with {len(peers)} peer(s)")

            await self.transport.send(connection_id, PEERS, {"peers": peers})
            failures = await self._fan_out(peers, PEER_JOINED, {"peerId": connection_id, "displayName": display_name})

        if failures:
            raise DeliveryError(PEER_JOINED, failures)
        return peers

    async def relay(self, sender_id: str, target_id: str, message: dict) -> bool:
        """Forward a negotiation message to one connection.

        Returns False when the target is not live; the message is dropped.
        """
        if target_id not in self.registry:
            logger.debug(f"Dropping signal from {sender_id}: target {target_id} is not registered")
            return False
        try:
            await self.transport.send(target_id, SIGNAL, {"from": sender_id, "data": message})
        except UnknownTarget:
            logger.debug(f"Dropping signal from {sender_id}: target {target_id} is not live")
            return False
        except Exception as e:
            raise DeliveryError(SIGNAL, {target_id: e}) from e
        logger.debug(f"Relayed {negotiation_kind(message)} signal {sender_id} -> {target_id}")
        return True

    async def disconnect(self, connection_id: str):
        room_id = self.registry.room_of(connection_id)
        if room_id is None:
            self.registry.remove(connection_id)
            logger.debug(f"Connection {connection_id} disconnected without joining a room")
            return

        async with self._room_section(room_id):
            # A concurrent disconnect for the same connection may have finished first
            if self.registry.room_of(connection_id) != room_id:
                return
            self.membership.remove(room_id, connection_id)
            self.registry.remove(connection_id)
            remaining = self.membership.members(room_id)
            logger.info(f"Connection {connection_id} left room {room_id}, {len(remaining)} member(s) remain")
            failures = await self._fan_out(remaining, PEER_LEFT, {"peerId": connection_id})

        if failures:
            raise DeliveryError(PEER_LEFT, failures)

    async def handle_event(self, connection_id: str, event: str, data: dict):
        """Dispatch one client event. Request errors go back to the sender only."""
        if event == JOIN_ROOM:
            await self._handle_join(connection_id, data)
        elif event == SIGNAL:
            await self._handle_signal(connection_id, data)
        else:
            logger.warning(f"Unknown event {event!r} from connection {connection_id}")
            await self.reject(connection_id, f"Unknown event: {event}")

    async def reject(self, connection_id: str, message: str):
        try:
            await self.transport.send(connection_id, ERROR, {"message": message})
        except UnknownTarget:
            logger.debug(f"Could not report error to {connection_id}: connection is gone")

    async def _handle_join(self, connection_id: str, data: dict):
        try:
            request = JoinRoomRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed join-room request from {connection_id}: {describe_validation_error(e)}")
            await self.reject(connection_id, f"Invalid join-room request: {describe_validation_error(e)}")
            return

        try:
            await self.join(connection_id, request.roomId, request.displayName)
        except RoomNotFound as e:
            logger.info(f"Join rejected for {connection_id}: room {e.room_id} not found")
            await self.reject(connection_id, str(e))
        except AlreadyJoined as e:
            logger.warning(f"Join rejected for {connection_id}: already in room {e.room_id}")
            await self.reject(connection_id, str(e))

    async def _handle_signal(self, connection_id: str, data: dict):
        try:
            request = SignalRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed signal request from {connection_id}: {describe_validation_error(e)}")
            await self.reject(connection_id, f"Invalid signal request: {describe_validation_error(e)}")
            return
        await self.relay(connection_id, request.to, request.data.model_dump(mode="json"))

    async def _fan_out(self, recipients: List[str], event: str, data: dict) -> Dict[str, Exception]:
        failures: Dict[str, Exception] = {}
        for recipient in recipients:
            try:
                await self.transport.send(recipient, event, data)
            except Exception as e:
                logger.warning(f"Failed to send {event} to {recipient}: {e}")
                failures[recipient] = e
        return failures
