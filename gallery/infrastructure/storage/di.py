from dishka import provide

from gallery.config import Config
from gallery.domain.shared.port.object_store import ObjectStore
from gallery.domain.shared.port.publisher import Publisher
from gallery.infrastructure.storage.local import LocalObjectStore
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope


class StorageProvider(Provider):
    @provide(scope=Scope.APP)
    def get_object_store(self, config: Config, publisher: Publisher) -> ObjectStore:
        return LocalObjectStore(
            config.storage.root,
            publisher=publisher,
            notification_topic=config.topics.uploads,
        )
