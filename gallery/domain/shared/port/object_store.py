from abc import abstractmethod
from typing import Protocol

from gallery.domain.shared.port import Port


class ObjectStore(Port, Protocol):
    """Durable blob storage for uploaded media."""

    @abstractmethod
    async def put(self, container: str, key: str, data: bytes) -> None:
        """Store an object and emit a creation notification for it."""
        ...

    @abstractmethod
    async def exists(self, container: str, key: str) -> bool: ...

    @abstractmethod
    async def delete(self, container: str, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""
        ...
