import asyncio
from unittest.mock import AsyncMock

import pytest

from backend import InMemoryRoomDirectory, RedisRoomDirectory, create_room_directory
from constants import Settings
from redis_keys import REDIS_ROOMS_INDEX_KEY


def test_in_memory_directory_crud():
    directory = InMemoryRoomDirectory()

    async def scenario():
        room = await directory.create_room("Standup", None)
        assert room["description"] == ""
        assert len(room["id"]) == 32
        assert await directory.exists(room["id"])
        assert await directory.get_room(room["id"]) == room
        assert await directory.list_rooms() == [room]
        assert await directory.delete_room(room["id"]) is True
        assert await directory.delete_room(room["id"]) is False
        assert not await directory.exists(room["id"])
        assert await directory.get_room(room["id"]) is None

    asyncio.run(scenario())


def test_in_memory_directory_returns_copies():
    directory = InMemoryRoomDirectory()

    async def scenario():
        room = await directory.create_room("Standup", "daily")
        room["name"] = "changed"
        return (await directory.get_room(room["id"]))["name"]

    assert asyncio.run(scenario()) == "Standup"


def test_redis_directory_create_room():
    client = AsyncMock()
    directory = RedisRoomDirectory(client)

    room = asyncio.run(directory.create_room("Standup", "daily"))

    key = f"room:meta:{room['id']}"
    client.hset.assert_awaited_once_with(key, mapping={
        "name": "Standup",
        "description": "daily",
        "createdAt": room["createdAt"],
    })
    client.sadd.assert_awaited_once_with(REDIS_ROOMS_INDEX_KEY, room["id"])


def test_redis_directory_get_and_exists():
    client = AsyncMock()
    client.hgetall.return_value = {"name": "Standup", "description": "", "createdAt": "2024-01-01T00:00:00+00:00"}
    client.exists.return_value = 1
    directory = RedisRoomDirectory(client)

    room = asyncio.run(directory.get_room("abc"))
    assert room == {"id": "abc", "name": "Standup", "description": "", "createdAt": "2024-01-01T00:00:00+00:00"}
    assert asyncio.run(directory.exists("abc")) is True
    client.exists.assert_awaited_with("room:meta:abc")

    client.hgetall.return_value = {}
    client.exists.return_value = 0
    assert asyncio.run(directory.get_room("abc")) is None
    assert asyncio.run(directory.exists("abc")) is False


def test_redis_directory_list_prunes_stale_index_entries():
    client = AsyncMock()
    client.smembers.return_value = {"live", "stale"}
    records = {"room:meta:live": {"name": "Live", "description": "", "createdAt": "t"}}
    client.hgetall.side_effect = lambda key: records.get(key, {})
    directory = RedisRoomDirectory(client)

    rooms = asyncio.run(directory.list_rooms())

    assert [room["id"] for room in rooms] == ["live"]
    client.srem.assert_awaited_once_with(REDIS_ROOMS_INDEX_KEY, "stale")


def test_redis_directory_delete():
    client = AsyncMock()
    client.delete.return_value = 1
    directory = RedisRoomDirectory(client)

    assert asyncio.run(directory.delete_room("abc")) is True
    client.delete.assert_awaited_once_with("room:meta:abc")
    client.srem.assert_awaited_once_with(REDIS_ROOMS_INDEX_KEY, "abc")

    client.delete.return_value = 0
    assert asyncio.run(directory.delete_room("abc")) is False


def test_create_room_directory_selects_backend():
    assert isinstance(create_room_directory(Settings(room_store="memory")), InMemoryRoomDirectory)
    assert isinstance(create_room_directory(Settings(room_store="redis")), RedisRoomDirectory)
    with pytest.raises(ValueError):
        create_room_directory(Settings(room_store="sqlite"))


def test_settings_origins():
    assert Settings(app_env="development", cors_origins=["https://a.example"]).allowed_origins == ["*"]
    production = Settings(app_env="production", cors_origins=["https://a.example"])
    assert production.allowed_origins == ["https://a.example"]
