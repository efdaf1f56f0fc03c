from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar
import uuid

from loggers import get_logger, mask_token
from src.core.errors.exceptions import (
    BackendError,
    PartialCascadeError,
    RecordDecodeError,
)
from src.core.redis.backend.interface import NO_EXPIRY, KeyValueBackend
from src.core.redis.coder.interface import Coder
from src.core.schemas import Base
from src.oauth.enums import KeyCategory
from src.oauth.keys import KeyNamer
from src.oauth.schemas import AccessRecord, AuthorizationRecord, Client

logger = get_logger(__name__)

T = TypeVar("T", bound=Base)


@contextmanager
def backend_step(message: str, **info: Any) -> Iterator[None]:
    """Re-raise backend failures of one step with that step's message."""
    try:
        yield
    except BackendError as exc:
        raise BackendError(
            message, additional_info={**info, "cause": exc.message}
        ) from exc


def new_access_id() -> str:
    return str(uuid.uuid4())


class KeyValueRepository(Generic[T]):
    """Base repository for records stored as single encoded values."""

    model: type[T]

    def __init__(self, backend: KeyValueBackend, keys: KeyNamer, coder: Coder) -> None:
        if not hasattr(self, "model"):
            raise NotImplementedError("Subclasses must define class variable 'model'")
        self.backend = backend
        self.keys = keys
        self.coder = coder

    def _decode(self, raw: bytes, **info: Any) -> T:
        name = self.model.__name__
        try:
            value = self.coder.decode(raw)
        except RecordDecodeError as exc:
            raise RecordDecodeError(
                f"failed to decode {name}", additional_info=info
            ) from exc
        if not isinstance(value, self.model):
            raise RecordDecodeError(
                f"expected {name}, got {type(value).__name__}", additional_info=info
            )
        return value


class ClientRepository(KeyValueRepository[Client]):

    model = Client

    async def create(self, client: Client) -> None:
        payload = self.coder.encode(client)
        key = self.keys.make_key(KeyCategory.CLIENT, client.get_id())
        with backend_step("failed to save client", client_id=client.get_id()):
            await self.backend.set(key, payload, ttl=0)
        logger.debug("Client %s saved.", client.get_id())

    async def get(self, client_id: str) -> Client | None:
        key = self.keys.make_key(KeyCategory.CLIENT, client_id)
        with backend_step("unable to GET client", client_id=client_id):
            raw = await self.backend.get(key)
        if not raw:
            logger.debug("Client %s not found.", client_id)
            return None
        return self._decode(raw, client_id=client_id)

    async def update(self, client: Client) -> None:
        with backend_step("failed to update client", client_id=client.get_id()):
            await self.create(client)

    async def delete(self, client: Client) -> None:
        key = self.keys.make_key(KeyCategory.CLIENT, client.get_id())
        with backend_step("failed to delete client", client_id=client.get_id()):
            await self.backend.delete(key)
        logger.debug("Client %s deleted.", client.get_id())


class AuthorizationRepository(KeyValueRepository[AuthorizationRecord]):
    """
    Authorization codes, stored under ``auth:<code>`` and expired by the
    backend after ``expires_in`` seconds.

    Loaded records carry the client snapshot taken when the code was saved;
    unlike access records, the client is not re-read from the client store.
    """

    model = AuthorizationRecord

    async def save(self, record: AuthorizationRecord) -> None:
        payload = self.coder.encode(record)
        key = self.keys.make_key(KeyCategory.AUTHORIZE, record.code)
        with backend_step("failed to save authorize data"):
            await self.backend.set(key, payload, ttl=record.expires_in)
        logger.debug(
            "Authorization code %s saved (expires_in=%s).",
            mask_token(record.code),
            record.expires_in,
        )

    async def load(self, code: str) -> AuthorizationRecord | None:
        key = self.keys.make_key(KeyCategory.AUTHORIZE, code)
        with backend_step("unable to GET auth"):
            raw = await self.backend.get(key)
        if not raw:
            return None
        return self._decode(raw, code=mask_token(code))

    async def remove(self, code: str) -> None:
        key = self.keys.make_key(KeyCategory.AUTHORIZE, code)
        with backend_step("failed to remove auth"):
            await self.backend.delete(key)


class AccessRepository(KeyValueRepository[AccessRecord]):
    """
    Access records and the token pointers that reach them.

    A record lives once under ``access:<opaque id>``. ``access_token:<token>``
    and ``refresh_token:<token>`` hold that id. The three keys share the
    record's lifetime but are written and deleted one by one, so an
    interrupted sequence can leave a pointer without a record (read as a
    miss) or a record reachable through one pointer only.

    By default the refresh pointer is keyed by the record's access token.
    With ``refresh_pointer_from_refresh_token`` it is keyed by the record's
    refresh token instead, and not written at all when that is empty.
    """

    model = AccessRecord

    def __init__(
        self,
        backend: KeyValueBackend,
        keys: KeyNamer,
        coder: Coder,
        clients: ClientRepository,
        *,
        id_factory: Callable[[], str] = new_access_id,
        refresh_pointer_from_refresh_token: bool = False,
    ) -> None:
        super().__init__(backend, keys, coder)
        self.clients = clients
        self.id_factory = id_factory
        self.refresh_pointer_from_refresh_token = refresh_pointer_from_refresh_token

    def _refresh_pointer_key(self, record: AccessRecord) -> str | None:
        if self.refresh_pointer_from_refresh_token:
            if not record.refresh_token:
                return None
            return self.keys.make_key(KeyCategory.REFRESH_TOKEN, record.refresh_token)
        return self.keys.make_key(KeyCategory.REFRESH_TOKEN, record.access_token)

    def _pointer_keys(self, record: AccessRecord) -> list[tuple[str, str]]:
        pointers = [
            (
                "access token",
                self.keys.make_key(KeyCategory.ACCESS_TOKEN, record.access_token),
            )
        ]
        refresh_key = self._refresh_pointer_key(record)
        if refresh_key is not None:
            pointers.append(("refresh token", refresh_key))
        return pointers

    async def save(self, record: AccessRecord) -> str:
        """Store the record and both pointers. Returns the opaque id."""
        payload = self.coder.encode(record)
        access_id = self.id_factory()
        access_key = self.keys.make_key(KeyCategory.ACCESS, access_id)
        ttl = record.expires_in

        with backend_step("failed to save access", access_id=access_id):
            await self.backend.set(access_key, payload, ttl=ttl)

        written = [access_key]
        pointers = self._pointer_keys(record)
        for index, (label, pointer_key) in enumerate(pointers):
            try:
                await self.backend.set(pointer_key, access_id, ttl=ttl)
            except BackendError as exc:
                pending = [key for _, key in pointers[index:]]
                logger.error(
                    "Access %s saved partially: failed to register %s.",
                    access_id,
                    label,
                )
                raise PartialCascadeError(
                    f"failed to register {label}",
                    additional_info={
                        "access_id": access_id,
                        "completed_keys": list(written),
                        "pending_keys": pending,
                        "cause": exc.message,
                    },
                ) from exc
            written.append(pointer_key)

        logger.debug(
            "Access %s saved for token %s (expires_in=%s).",
            access_id,
            mask_token(record.access_token),
            ttl,
        )
        return access_id

    async def load_by_access_token(self, token: str) -> AccessRecord | None:
        return await self.load_by_token(
            self.keys.make_key(KeyCategory.ACCESS_TOKEN, token)
        )

    async def load_by_refresh_token(self, token: str) -> AccessRecord | None:
        return await self.load_by_token(
            self.keys.make_key(KeyCategory.REFRESH_TOKEN, token)
        )

    async def remove_by_access_token(self, token: str) -> None:
        await self.remove_by_token(self.keys.make_key(KeyCategory.ACCESS_TOKEN, token))

    async def remove_by_refresh_token(self, token: str) -> None:
        await self.remove_by_token(
            self.keys.make_key(KeyCategory.REFRESH_TOKEN, token)
        )

    async def load_by_token(self, pointer_key: str) -> AccessRecord | None:
        loaded = await self._load(pointer_key)
        if loaded is None:
            return None
        return loaded[1]

    async def remove_by_token(self, pointer_key: str) -> None:
        loaded = await self._load(pointer_key)
        if loaded is None:
            logger.debug("Nothing to remove: pointer missing or access expired.")
            return
        access_id, record = loaded

        with backend_step("failed to delete access", access_id=access_id):
            await self.backend.delete(self.keys.make_key(KeyCategory.ACCESS, access_id))

        pointers = self._pointer_keys(record)
        for index, (label, key) in enumerate(pointers):
            try:
                await self.backend.delete(key)
            except BackendError as exc:
                logger.error(
                    "Access %s removed partially: failed to deregister %s.",
                    access_id,
                    label,
                )
                raise PartialCascadeError(
                    f"failed to deregister {label}",
                    additional_info={
                        "access_id": access_id,
                        "pending_keys": [key for _, key in pointers[index:]],
                        "cause": exc.message,
                    },
                ) from exc

        logger.debug("Access %s removed.", access_id)

    async def _load(self, pointer_key: str) -> tuple[str, AccessRecord] | None:
        with backend_step("unable to get access ID"):
            raw_id = await self.backend.get(pointer_key)
        if not raw_id:
            return None
        access_id = raw_id.decode()
        access_key = self.keys.make_key(KeyCategory.ACCESS, access_id)

        with backend_step("unable to get access payload", access_id=access_id):
            raw = await self.backend.get(access_key)
        if not raw:
            logger.warning("Access %s is gone but a pointer to it remains.", access_id)
            return None

        record = self._decode(raw, access_id=access_id)

        with backend_step("unable to get access TTL", access_id=access_id):
            remaining = await self.backend.ttl(access_key)
        if remaining is None or remaining == 0:
            # Expired (or about to) since the GET.
            return None
        record.expires_in = 0 if remaining == NO_EXPIRY else remaining

        if record.client is not None:
            with backend_step("unable to get client for access", access_id=access_id):
                record.client = await self.clients.get(record.client.get_id())

        if record.authorize_data is not None and record.authorize_data.client is not None:
            with backend_step(
                "unable to get client for access authorize data", access_id=access_id
            ):
                record.authorize_data.client = await self.clients.get(
                    record.authorize_data.client.get_id()
                )

        return access_id, record
