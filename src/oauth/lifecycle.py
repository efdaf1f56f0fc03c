import logging

from fastapi import FastAPI

from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import Config
from src.oauth.storage import OAuthStorage

logger = logging.getLogger(__name__)


async def on_oauth_storage_startup(app: FastAPI, settings: Config) -> None:
    """
    Connect to Redis and attach an OAuthStorage to app.state for DI access.
    """
    redis_client = await on_redis_startup(
        app,
        settings.redis.dsn,
        socket_timeout=settings.redis.REDIS_SOCKET_TIMEOUT,
    )
    app.state.oauth_storage = OAuthStorage.from_redis(redis_client, settings.oauth)
    logger.info("OAuth storage attached to app state.")


async def on_oauth_storage_shutdown(app: FastAPI) -> None:
    # The storage shares app.state.redis_client, which on_redis_shutdown closes.
    app.state.oauth_storage = None
    logger.info("OAuth storage detached from app state.")
    await on_redis_shutdown(app)
