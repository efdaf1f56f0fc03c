from collections.abc import Callable

from redis.asyncio import Redis

from loggers import get_logger
from src.core.redis.backend.interface import KeyValueBackend
from src.core.redis.backend.redis_backend import RedisBackend
from src.core.redis.coder.interface import Coder
from src.core.redis.coder.json_coder import JsonCoder
from src.main.config import OAuthStorageConfig
from src.oauth.keys import KeyNamer
from src.oauth.repositories import (
    AccessRepository,
    AuthorizationRepository,
    ClientRepository,
    new_access_id,
)
from src.oauth.schemas import (
    AccessRecord,
    AuthorizationRecord,
    Client,
    oauth_record_registry,
)

logger = get_logger(__name__)


class OAuthStorage:
    """
    Storage used by the authorization server for clients, authorization
    codes and access/refresh tokens.

    Lookups return None on a miss. Backend failures raise BackendError
    (PartialCascadeError when a multi-key write or delete stopped halfway)
    and corrupt payloads raise RecordDecodeError.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key_prefix: str,
        *,
        coder: Coder | None = None,
        id_factory: Callable[[], str] = new_access_id,
        refresh_pointer_from_refresh_token: bool = False,
    ) -> None:
        self.backend = backend
        self.keys = KeyNamer(key_prefix)
        self.coder = coder or JsonCoder(oauth_record_registry())
        self.clients = ClientRepository(backend, self.keys, self.coder)
        self.authorizations = AuthorizationRepository(backend, self.keys, self.coder)
        self.access = AccessRepository(
            backend,
            self.keys,
            self.coder,
            self.clients,
            id_factory=id_factory,
            refresh_pointer_from_refresh_token=refresh_pointer_from_refresh_token,
        )

    @classmethod
    def from_redis(
        cls,
        redis: Redis,
        settings: OAuthStorageConfig,
        *,
        coder: Coder | None = None,
    ) -> "OAuthStorage":
        logger.info("OAuth storage initialized (prefix=%s).", settings.OAUTH_KEY_PREFIX)
        return cls(
            RedisBackend(redis),
            settings.OAUTH_KEY_PREFIX,
            coder=coder,
            refresh_pointer_from_refresh_token=settings.REFRESH_POINTER_FROM_REFRESH_TOKEN,
        )

    def clone(self) -> "OAuthStorage":
        """The storage holds no per-request state, so clones share it."""
        return self

    async def close(self) -> None:
        """
        Called after each clone is done with. The Redis connection is shared
        with the other clones and is closed by on_oauth_storage_shutdown.
        """

    # ----- Clients ----- #
    async def create_client(self, client: Client) -> None:
        await self.clients.create(client)

    async def get_client(self, client_id: str) -> Client | None:
        return await self.clients.get(client_id)

    async def update_client(self, client: Client) -> None:
        await self.clients.update(client)

    async def delete_client(self, client: Client) -> None:
        await self.clients.delete(client)

    # ----- Authorization codes ----- #
    async def save_authorize(self, data: AuthorizationRecord) -> None:
        await self.authorizations.save(data)

    async def load_authorize(self, code: str) -> AuthorizationRecord | None:
        return await self.authorizations.load(code)

    async def remove_authorize(self, code: str) -> None:
        await self.authorizations.remove(code)

    # ----- Access / refresh tokens ----- #
    async def save_access(self, data: AccessRecord) -> None:
        await self.access.save(data)

    async def load_access(self, token: str) -> AccessRecord | None:
        return await self.access.load_by_access_token(token)

    async def remove_access(self, token: str) -> None:
        await self.access.remove_by_access_token(token)

    async def load_refresh(self, token: str) -> AccessRecord | None:
        return await self.access.load_by_refresh_token(token)

    async def remove_refresh(self, token: str) -> None:
        await self.access.remove_by_refresh_token(token)
