import logging
from typing import AsyncIterable

from dishka import provide
from sqlalchemy.exc import ArgumentError

from gallery.config import Config
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.shared.error import ConfigurationError
from gallery.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    create_tables,
)
from gallery.infrastructure.persistence.memory import InMemoryCatalogStore
from gallery.infrastructure.persistence.repository.catalog import SqlCatalogStore
from gallery.infrastructure.persistence.tables import catalog_table
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope

logger = logging.getLogger(__name__)


class PersistenceProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_catalog_store(self, config: Config) -> AsyncIterable[CatalogStore]:
        if not config.catalog.url:
            logger.info("Using in-memory catalog store")
            yield InMemoryCatalogStore()
            return

        table = catalog_table(config.catalog.table_name)
        try:
            engine = create_db_engine(config.catalog)
        except ArgumentError as e:
            raise ConfigurationError(f"Invalid catalog.url {config.catalog.url!r}: {e}") from e
        await create_tables(engine)
        logger.info(f"Using SQL catalog store (table '{table.name}')")
        try:
            yield SqlCatalogStore(create_session_factory(engine), table)
        finally:
            await engine.dispose()
