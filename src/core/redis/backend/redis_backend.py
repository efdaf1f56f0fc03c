from redis import asyncio as aioredis
from redis.exceptions import RedisError

from loggers import get_logger
from src.core.errors.exceptions import BackendError
from src.core.redis.backend.interface import NO_EXPIRY, KeyValueBackend

logger = get_logger(__name__)

# Redis TTL reply for a key that does not exist.
_TTL_MISSING = -2


class RedisBackend(KeyValueBackend):
    """KeyValueBackend over an async Redis client created with decode_responses=False."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self.redis = redis

    async def get(self, key: str) -> bytes | None:
        try:
            value = await self.redis.get(key)
        except RedisError as exc:
            raise BackendError("Redis GET failed", additional_info={"key": key}) from exc
        if isinstance(value, str):
            return value.encode()
        return value

    async def set(self, key: str, value: bytes | str, ttl: int) -> None:
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0, got {ttl}")
        try:
            await self.redis.set(key, value, ex=ttl or None)
        except RedisError as exc:
            raise BackendError(
                "Redis SET failed", additional_info={"key": key, "ttl": ttl}
            ) from exc

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as exc:
            raise BackendError("Redis DEL failed", additional_info={"key": key}) from exc

    async def ttl(self, key: str) -> int | None:
        try:
            remaining = int(await self.redis.ttl(key))
        except RedisError as exc:
            raise BackendError("Redis TTL failed", additional_info={"key": key}) from exc
        if remaining == _TTL_MISSING:
            return None
        if remaining < 0:
            return NO_EXPIRY
        return remaining

    async def close(self) -> None:
        logger.info("Closing Redis client...")
        await self.redis.aclose()
        logger.info("Redis client closed.")
