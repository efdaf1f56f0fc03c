from __future__ import annotations

import pytest

from src.core.errors.exceptions import BackendError, RecordDecodeError
from src.core.redis.backend.redis_backend import RedisBackend
from src.core.redis.coder.json_coder import JsonCoder
from src.oauth.schemas import AuthorizationRecord, Client, oauth_record_registry
from src.oauth.storage import OAuthStorage
from tests.fakes.redis import InMemoryRedis


class ConfidentialClient(Client):
    allowed_scopes: list[str] = []


@pytest.mark.asyncio
async def test_create_then_get_round_trips(
    storage: OAuthStorage, fake_redis: InMemoryRedis, client_a: Client
) -> None:
    await storage.create_client(client_a)

    assert await storage.get_client("client-a") == client_a
    assert await fake_redis.ttl("test:client:client-a") == -1


@pytest.mark.asyncio
async def test_get_missing_client_returns_none(storage: OAuthStorage) -> None:
    assert await storage.get_client("nobody") is None


@pytest.mark.asyncio
async def test_get_empty_value_returns_none(
    storage: OAuthStorage, fake_redis: InMemoryRedis
) -> None:
    await fake_redis.set("test:client:empty", b"")

    assert await storage.get_client("empty") is None


@pytest.mark.asyncio
async def test_update_overwrites_without_merging(
    storage: OAuthStorage, client_a: Client
) -> None:
    await storage.create_client(client_a)

    replacement = Client(id="client-a", secret="new-secret")
    await storage.update_client(replacement)

    stored = await storage.get_client("client-a")
    assert stored == replacement
    assert stored is not None and stored.user_data is None
    assert stored.redirect_uri == ""


@pytest.mark.asyncio
async def test_delete_is_idempotent(storage: OAuthStorage, client_a: Client) -> None:
    await storage.create_client(client_a)

    await storage.delete_client(client_a)
    await storage.delete_client(client_a)

    assert await storage.get_client("client-a") is None


@pytest.mark.asyncio
async def test_corrupt_client_raises_decode_error(
    storage: OAuthStorage, fake_redis: InMemoryRedis
) -> None:
    await fake_redis.set("test:client:broken", b"{not json")

    with pytest.raises(RecordDecodeError, match="failed to decode Client"):
        await storage.get_client("broken")


@pytest.mark.asyncio
async def test_wrong_record_type_under_client_key_raises_decode_error(
    storage: OAuthStorage, fake_redis: InMemoryRedis
) -> None:
    record = AuthorizationRecord(code="c", expires_in=10)
    await fake_redis.set("test:client:odd", storage.coder.encode(record))

    with pytest.raises(RecordDecodeError, match="expected Client"):
        await storage.get_client("odd")


@pytest.mark.asyncio
async def test_backend_failure_is_wrapped(
    storage: OAuthStorage, fake_redis: InMemoryRedis, client_a: Client
) -> None:
    fake_redis.fail_on("SET", "test:client:client-a")

    with pytest.raises(BackendError, match="failed to update client") as exc_info:
        await storage.update_client(client_a)

    assert isinstance(exc_info.value.__cause__, BackendError)


@pytest.mark.asyncio
async def test_registered_client_variant_keeps_its_class(
    backend: RedisBackend,
) -> None:
    coder = JsonCoder(oauth_record_registry({"confidential": ConfidentialClient}))
    storage = OAuthStorage(backend, "test", coder=coder)
    client = ConfidentialClient(id="conf", secret="x", allowed_scopes=["read"])

    await storage.create_client(client)
    stored = await storage.get_client("conf")

    assert isinstance(stored, ConfidentialClient)
    assert stored.allowed_scopes == ["read"]


@pytest.mark.asyncio
async def test_client_with_tag_like_user_data_round_trips(
    storage: OAuthStorage,
) -> None:
    client = Client(id="c1", user_data={"_spec_type": "plan", "val": "pro"})

    await storage.create_client(client)

    assert await storage.get_client("c1") == client
