"""SQLAlchemy implementation of CatalogStore."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Table, insert, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gallery.domain.catalog.model.record import CatalogRecord, RecordField
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.shared.error import StorageUnavailableError

logger = logging.getLogger(__name__)


def record_to_row(record: CatalogRecord) -> dict[str, Any]:
    row = record.model_dump()
    row["status"] = record.status.value
    return row


def row_to_record(row: Mapping[str, Any]) -> CatalogRecord:
    return CatalogRecord.model_validate(dict(row))


class SqlCatalogStore(CatalogStore):
    """Catalog table access, one short transaction per operation.

    Operations touch a single row and need no cross-record transactions, so
    each call commits on its own instead of sharing a unit-of-work session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], table: Table) -> None:
        self._sessions = session_factory
        self._table = table

    async def get(self, record_id: str) -> CatalogRecord | None:
        stmt = select(self._table).where(self._table.c.id == record_id)
        try:
            async with self._sessions() as session:
                result = await session.execute(stmt)
                row = result.mappings().first()
        except OperationalError as e:
            raise StorageUnavailableError(f"Catalog read failed: {e}") from e
        return row_to_record(row) if row else None

    async def create(self, record: CatalogRecord) -> bool:
        stmt = insert(self._table).values(**record_to_row(record))
        try:
            async with self._sessions() as session, session.begin():
                await session.execute(stmt)
        except IntegrityError:
            logger.debug(f"Catalog record {record.id} already exists")
            return False
        except OperationalError as e:
            raise StorageUnavailableError(f"Catalog write failed: {e}") from e
        return True

    async def update(
        self, record_id: str, changes: Mapping[RecordField, str | None]
    ) -> CatalogRecord | None:
        if not changes:
            return await self.get(record_id)
        values = {str(f): None if v is None else str(v) for f, v in changes.items()}
        stmt = update(self._table).where(self._table.c.id == record_id).values(**values)
        select_stmt = select(self._table).where(self._table.c.id == record_id)
        try:
            async with self._sessions() as session, session.begin():
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    return None
                row = (await session.execute(select_stmt)).mappings().first()
        except OperationalError as e:
            raise StorageUnavailableError(f"Catalog write failed: {e}") from e
        return row_to_record(row) if row else None
