from collections.abc import Callable
import os

import pytest

from src.core.redis.backend.redis_backend import RedisBackend
from src.main.config import Config, get_settings
from src.oauth.schemas import Client
from src.oauth.storage import OAuthStorage
from tests.fakes.redis import InMemoryRedis

KEY_PREFIX = "test"


@pytest.fixture(scope="session")
def settings() -> Config:
    os.environ.setdefault("TESTING", "true")
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def backend(fake_redis: InMemoryRedis) -> RedisBackend:
    return RedisBackend(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def id_factory() -> Callable[[], str]:
    counter = iter(range(1, 1_000_000))
    return lambda: f"access-{next(counter)}"


@pytest.fixture
def storage(backend: RedisBackend, id_factory: Callable[[], str]) -> OAuthStorage:
    return OAuthStorage(backend, KEY_PREFIX, id_factory=id_factory)


@pytest.fixture
def client_a() -> Client:
    return Client(
        id="client-a",
        secret="s3cret",
        redirect_uri="https://a.example.com/cb",
        user_data={"tenant": "acme"},
    )
