from abc import ABC, abstractmethod

# Value returned by ``ttl`` for a key that exists without an expiration.
NO_EXPIRY = -1


class KeyValueBackend(ABC):
    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the raw value stored under key, or None when it is absent."""
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: bytes | str, ttl: int) -> None:
        """Store a value; a ttl of 0 keeps the key until it is deleted."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        raise NotImplementedError

    @abstractmethod
    async def ttl(self, key: str) -> int | None:
        """
        Remaining lifetime of a key in seconds, NO_EXPIRY for a persistent key,
        None when the key does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""
        raise NotImplementedError
