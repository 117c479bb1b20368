"""In-memory CatalogStore for local runs and tests."""

import asyncio
from collections.abc import Mapping

from gallery.domain.catalog.model.record import CatalogRecord, RecordField
from gallery.domain.catalog.port.repository import CatalogStore


class InMemoryCatalogStore(CatalogStore):
    def __init__(self) -> None:
        self._records: dict[str, CatalogRecord] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def get(self, record_id: str) -> CatalogRecord | None:
        return self._records.get(record_id)

    async def create(self, record: CatalogRecord) -> bool:
        async with self._lock:
            if record.id in self._records:
                return False
            self._records[record.id] = record
            return True

    async def update(
        self, record_id: str, changes: Mapping[RecordField, str | None]
    ) -> CatalogRecord | None:
        async with self._lock:
            current = self._records.get(record_id)
            if current is None:
                return None
            updated = current.with_changes(changes)
            self._records[record_id] = updated
            return updated
