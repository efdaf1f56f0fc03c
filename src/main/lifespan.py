from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from src.main.config import get_settings
from src.oauth.lifecycle import on_oauth_storage_shutdown, on_oauth_storage_startup

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Lifespan for applications that host the authorization server."""
    await on_oauth_storage_startup(app, get_settings())

    yield

    await on_oauth_storage_shutdown(app)
