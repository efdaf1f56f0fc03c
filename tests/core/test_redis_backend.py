from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import TimeoutError as RedisTimeoutError

from src.core.errors.exceptions import BackendError
from src.core.redis.backend.interface import NO_EXPIRY
from src.core.redis.backend.redis_backend import RedisBackend
from tests.fakes.redis import InMemoryRedis


@pytest.mark.asyncio
async def test_backend_get_set_delete(
    backend: RedisBackend, fake_redis: InMemoryRedis
) -> None:
    await backend.set("key", b"value", ttl=10)
    assert await backend.get("key") == b"value"
    assert await backend.ttl("key") == 10

    await backend.delete("key")
    assert await backend.get("key") is None
    await backend.delete("key")


@pytest.mark.asyncio
async def test_zero_ttl_means_no_expiry(
    backend: RedisBackend, fake_redis: InMemoryRedis
) -> None:
    await backend.set("key", b"value", ttl=0)
    fake_redis.advance(10_000)

    assert await backend.get("key") == b"value"
    assert await backend.ttl("key") == NO_EXPIRY


@pytest.mark.asyncio
async def test_ttl_of_missing_key_is_none(backend: RedisBackend) -> None:
    assert await backend.ttl("missing") is None


@pytest.mark.asyncio
async def test_negative_ttl_is_rejected(backend: RedisBackend) -> None:
    with pytest.raises(ValueError):
        await backend.set("key", b"value", ttl=-1)


@pytest.mark.asyncio
async def test_get_encodes_str_responses() -> None:
    redis_mock = AsyncMock()
    redis_mock.get.return_value = "decoded"

    backend = RedisBackend(redis_mock)

    assert await backend.get("key") == b"decoded"


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["get", "set", "delete", "ttl"])
async def test_redis_errors_become_backend_errors(command: str) -> None:
    redis_mock = AsyncMock()
    getattr(redis_mock, command).side_effect = RedisTimeoutError("timed out")
    backend = RedisBackend(redis_mock)

    with pytest.raises(BackendError) as exc_info:
        if command == "set":
            await backend.set("key", b"v", ttl=1)
        else:
            await getattr(backend, command)("key")

    assert (exc_info.value.additional_info or {})["key"] == "key"
    assert isinstance(exc_info.value.__cause__, RedisTimeoutError)


@pytest.mark.asyncio
async def test_close_closes_client(
    backend: RedisBackend, fake_redis: InMemoryRedis
) -> None:
    await backend.close()

    assert fake_redis.closed is True
