import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Dict, Tuple

from fastapi import WebSocket

from schemas.signaling import server_frame
from signaling.errors import UnknownTarget
from logging_config import get_logger

logger = get_logger(__name__)


class Transport(ABC):
    """Delivery contract the coordinator is written against.

    ``send`` delivers one event to one connection and raises ``UnknownTarget``
    when the connection is not live. Any other exception is a transport
    failure and is left to the caller.
    """

    @abstractmethod
    async def send(self, connection_id: str, event: str, data: dict):
        ...


class WebSocketGateway(Transport):
    """Live WebSocket connections keyed by the connection id assigned here."""

    def __init__(self):
        # connection_id -> (websocket, per-connection write lock)
        self._connections: Dict[str, Tuple[WebSocket, asyncio.Lock]] = {}

    def attach(self, websocket: WebSocket) -> str:
        connection_id = str(uuid.uuid4())
        self._connections[connection_id] = (websocket, asyncio.Lock())
        logger.debug(f"Attached connection {connection_id} (live connections: {len(self._connections)})")
        return connection_id

    def detach(self, connection_id: str):
        if self._connections.pop(connection_id, None) is not None:
            logger.debug(f"Detached connection {connection_id} (live connections: {len(self._connections)})")

    async def send(self, connection_id: str, event: str, data: dict):
        entry = self._connections.get(connection_id)
        if entry is None:
            raise UnknownTarget(connection_id)
        websocket, write_lock = entry
        # Writes to one socket go out one at a time, in the order they were requested
        async with write_lock:
            await websocket.send_json(server_frame(event, data))
