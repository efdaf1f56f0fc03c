import pytest

from src.core.redis.backend.redis_backend import RedisBackend
from src.oauth.enums import KeyCategory
from src.oauth.keys import KeyNamer
from src.oauth.storage import OAuthStorage


@pytest.mark.parametrize(
    ("category", "identifier", "expected"),
    [
        (KeyCategory.CLIENT, "abc", "osin:client:abc"),
        (KeyCategory.AUTHORIZE, "code", "osin:auth:code"),
        (KeyCategory.ACCESS, "1234-uuid", "osin:access:1234-uuid"),
        (KeyCategory.ACCESS_TOKEN, "tok", "osin:access_token:tok"),
        (KeyCategory.REFRESH_TOKEN, "tok", "osin:refresh_token:tok"),
    ],
)
def test_key_layout(category: KeyCategory, identifier: str, expected: str) -> None:
    assert KeyNamer("osin").make_key(category, identifier) == expected


def test_keys_are_distinct_across_categories_and_prefixes() -> None:
    keys = {
        KeyNamer(prefix).make_key(category, "same-id")
        for prefix in ("store-a", "store-b")
        for category in KeyCategory
    }

    assert len(keys) == 2 * len(KeyCategory)


def test_identifier_may_contain_separator() -> None:
    namer = KeyNamer("p")

    assert namer.make_key(KeyCategory.CLIENT, "a:b") != namer.make_key(
        KeyCategory.CLIENT, "a"
    )


def test_unknown_category_is_rejected() -> None:
    with pytest.raises(ValueError):
        KeyNamer("p").make_key("session", "x")  # type: ignore[arg-type]


@pytest.mark.parametrize("prefix", ["", "a:client"])
def test_invalid_prefix_is_rejected(prefix: str) -> None:
    with pytest.raises(ValueError):
        KeyNamer(prefix)


def test_storage_rejects_prefix_with_separator(backend: RedisBackend) -> None:
    with pytest.raises(ValueError):
        OAuthStorage(backend, "a:client")
