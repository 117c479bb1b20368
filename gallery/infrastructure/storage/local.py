import logging
from pathlib import Path

from gallery.domain.ingestion.model.notification import CreationNotification
from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.port.object_store import ObjectStore
from gallery.domain.shared.port.publisher import Publisher

logger = logging.getLogger(__name__)

EVENT_NAME_ATTRIBUTE = "eventName"


class LocalObjectStore(ObjectStore):
    """Local filesystem implementation of ObjectStore.

    Layout: {root}/{container}/{key}. When a publisher is configured, every
    put emits a creation notification on the notification topic.
    """

    def __init__(
        self,
        root: str | Path,
        publisher: Publisher | None = None,
        notification_topic: str | None = None,
    ) -> None:
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)
        self._publisher = publisher
        self._notification_topic = notification_topic

    def _path(self, container: str, key: str) -> Path:
        base = (self.root / container).resolve()
        path = (base / key).resolve()
        if base != self.root.resolve() / container or not path.is_relative_to(base):
            raise ValueError(f"Object path escapes the store: {container}/{key}")
        return path

    async def put(self, container: str, key: str, data: bytes) -> None:
        path = self._path(container, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored {container}/{key} ({len(data)} bytes)")

        if self._publisher is not None and self._notification_topic:
            notification = CreationNotification.for_object(container, key, size=len(data))
            envelope = Envelope(
                payload=notification.dump(),
                attributes={EVENT_NAME_ATTRIBUTE: notification.records[0].event_name},
            )
            await self._publisher.publish(self._notification_topic, envelope)

    async def exists(self, container: str, key: str) -> bool:
        return self._path(container, key).is_file()

    async def delete(self, container: str, key: str) -> None:
        path = self._path(container, key)
        if not path.is_file():
            logger.debug(f"Nothing to delete at {container}/{key}")
            return
        path.unlink()
        logger.info(f"Deleted {container}/{key}")
