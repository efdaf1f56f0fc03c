from abc import ABC, abstractmethod
from typing import Any


class Coder(ABC):
    @abstractmethod
    def encode(self, value: Any) -> bytes:
        """Encode a value into bytes for storage in the key-value backend."""
        raise NotImplementedError

    @abstractmethod
    def decode(self, value: bytes) -> Any:
        """Decode bytes read from the key-value backend back into a value."""
        raise NotImplementedError
