from abc import abstractmethod
from collections.abc import Mapping
from typing import Protocol

from gallery.domain.catalog.model.record import CatalogRecord, RecordField
from gallery.domain.shared.port import Port


class CatalogStore(Port, Protocol):
    """Key-value store holding one CatalogRecord per accepted object."""

    @abstractmethod
    async def get(self, record_id: str) -> CatalogRecord | None: ...

    @abstractmethod
    async def create(self, record: CatalogRecord) -> bool:
        """Insert the record unless one with the same id exists.

        Returns:
            True if the record was created, False if it already existed.
        """
        ...

    @abstractmethod
    async def update(
        self, record_id: str, changes: Mapping[RecordField, str | None]
    ) -> CatalogRecord | None:
        """Set the given fields on an existing record in one write.

        Returns:
            The updated record, or None if no record has that id.
        """
        ...
