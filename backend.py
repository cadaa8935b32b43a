import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import redis.asyncio as redis

from constants import Settings
from redis_keys import REDIS_META_KEY, REDIS_ROOMS_INDEX_KEY
from logging_config import get_logger

logger = get_logger(__name__)


def new_room_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_room_record(name: str, description: Optional[str] = None) -> dict:
    return {
        "id": new_room_id(),
        "name": name,
        "description": description or "",
        "createdAt": utc_now_iso(),
    }


class InMemoryRoomDirectory:
    """Room records kept in a plain dict for the lifetime of the process."""

    def __init__(self):
        self._rooms: Dict[str, dict] = {}

    async def create_room(self, name: str, description: Optional[str] = None) -> dict:
        record = build_room_record(name, description)
        self._rooms[record["id"]] = record
        logger.info(f"Created room {record['id']} ({name})")
        return dict(record)

    async def get_room(self, room_id: str) -> Optional[dict]:
        record = self._rooms.get(room_id)
        return dict(record) if record else None

    async def list_rooms(self) -> List[dict]:
        return [dict(record) for record in self._rooms.values()]

    async def delete_room(self, room_id: str) -> bool:
        deleted = self._rooms.pop(room_id, None) is not None
        if deleted:
            logger.info(f"Deleted room {room_id}")
        return deleted

    async def exists(self, room_id: str) -> bool:
        return room_id in self._rooms

    async def close(self):
        return None


class RedisRoomDirectory:
    """Room records stored as Redis hashes, with an index set for listing."""

    def __init__(self, redis_client):
        self.redis_client = redis_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisRoomDirectory":
        logger.info(f"Initializing RedisRoomDirectory with connection to {settings.redis_host}:{settings.redis_port}")
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            decode_responses=True,
        )
        return cls(client)

    async def create_room(self, name: str, description: Optional[str] = None) -> dict:
        record = build_room_record(name, description)
        room_id = record["id"]
        key = REDIS_META_KEY.format(slug=room_id)
        await self.redis_client.hset(key, mapping={
            "name": record["name"],
            "description": record["description"],
            "createdAt": record["createdAt"],
        })
        await self.redis_client.sadd(REDIS_ROOMS_INDEX_KEY, room_id)
        logger.info(f"Created room {room_id} ({name}) with key: {key}")
        return record

    async def get_room(self, room_id: str) -> Optional[dict]:
        logger.debug(f"Fetching room {room_id}")
        room_data = await self.redis_client.hgetall(REDIS_META_KEY.format(slug=room_id))
        if not room_data:
            logger.debug(f"Room {room_id} not found in Redis")
            return None
        return {
            "id": room_id,
            "name": room_data.get("name", ""),
            "description": room_data.get("description", ""),
            "createdAt": room_data.get("createdAt", ""),
        }

    async def list_rooms(self) -> List[dict]:
        room_ids = await self.redis_client.smembers(REDIS_ROOMS_INDEX_KEY)
        rooms = []
        for room_id in sorted(room_ids):
            room = await self.get_room(room_id)
            if room is None:
                # Index entry outlived its hash; drop it
                await self.redis_client.srem(REDIS_ROOMS_INDEX_KEY, room_id)
                continue
            rooms.append(room)
        return rooms

    async def delete_room(self, room_id: str) -> bool:
        deleted = await self.redis_client.delete(REDIS_META_KEY.format(slug=room_id))
        await self.redis_client.srem(REDIS_ROOMS_INDEX_KEY, room_id)
        logger.info(f"Deleted room {room_id}: meta_key={deleted}")
        return bool(deleted)

    async def exists(self, room_id: str) -> bool:
        return bool(await self.redis_client.exists(REDIS_META_KEY.format(slug=room_id)))

    async def close(self):
        await self.redis_client.aclose()


def create_room_directory(settings: Settings):
    if settings.room_store == "redis":
        return RedisRoomDirectory.from_settings(settings)
    if settings.room_store != "memory":
        raise ValueError(f"Unknown ROOM_STORE {settings.room_store!r}, expected 'memory' or 'redis'")
    logger.info("Using in-memory room directory")
    return InMemoryRoomDirectory()
