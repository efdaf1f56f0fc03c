import logging
from typing import cast

from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def create_redis_client(
    connection_url: str,
    *,
    decode_responses: bool = False,
    socket_timeout: float | None = None,
) -> Redis:
    """
    Create a Redis async client from URL. Keeping construction here simplifies
    monkeypatching in tests and centralizes defaults.

    Payloads are opaque bytes, so responses are not decoded by default.
    """
    try:
        client = Redis.from_url(
            connection_url,
            decode_responses=decode_responses,
            socket_timeout=socket_timeout,
        )
        return cast(Redis, client)
    except Exception as exc:  # pragma: no cover - log and re-raise
        logger.exception("Failed to create Redis client: %s", exc)
        raise
