from gallery.infrastructure.persistence.di import PersistenceProvider
from gallery.infrastructure.persistence.memory import InMemoryCatalogStore
from gallery.infrastructure.persistence.repository.catalog import SqlCatalogStore

__all__ = ["InMemoryCatalogStore", "PersistenceProvider", "SqlCatalogStore"]
