from gallery.infrastructure.storage.di import StorageProvider
from gallery.infrastructure.storage.local import LocalObjectStore

__all__ = ["LocalObjectStore", "StorageProvider"]
