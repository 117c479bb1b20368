"""ValidateUpload - accepts or rejects newly created objects by file type."""

import logging
from typing import ClassVar

from gallery.domain.catalog.model.record import CatalogRecord
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.ingestion.model.notification import CreationNotification, ObjectLocation
from gallery.domain.shared.envelope import Envelope, open_envelope
from gallery.domain.shared.error import ValidationError
from gallery.domain.shared.event import MessageHandler, Outcome

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png"})

# The dead-letter reaper parses this wording back out of failure descriptions.
# Change both together (see gallery.domain.reaper.model.recovery).
REJECTION_TEMPLATE = (
    "Invalid file type detected: {key} - This file will be removed from bucket {container}"
)


def rejection_message(location: ObjectLocation) -> str:
    return REJECTION_TEMPLATE.format(key=location.key, container=location.container)


def has_allowed_extension(key: str, allowed: frozenset[str] = DEFAULT_EXTENSIONS) -> bool:
    """Case-insensitive suffix check against the extension allow-list."""
    lowered = key.lower()
    return any(lowered.endswith(ext.lower()) for ext in allowed)


class ValidateUpload(MessageHandler):
    """Records accepted uploads in the catalog and rejects everything else.

    Rejection raises ValidationError so the message is redelivered until the
    queue dead-letters it; the reaper then deletes the object.
    """

    __batch_size__: ClassVar[int] = 1

    catalog: CatalogStore
    allowed_extensions: frozenset[str] = DEFAULT_EXTENSIONS

    async def handle(self, envelope: Envelope) -> Outcome:
        notification = CreationNotification.parse(open_envelope(envelope).payload)
        if notification is None:
            logger.warning(f"Message {envelope.message_id} is not a creation notification")
            return Outcome.ignored("Not an object creation notification")

        rejected: list[ObjectLocation] = []
        for location in notification.locations:
            if not has_allowed_extension(location.key, self.allowed_extensions):
                rejected.append(location)
                continue
            created = await self.catalog.create(CatalogRecord(id=location.key))
            if created:
                logger.info(f"Logged image {location.key}")
            else:
                logger.info(f"Image {location.key} already logged")

        if rejected:
            location = rejected[0]
            message = rejection_message(location)
            logger.error(message)
            raise ValidationError(message, key=location.key, container=location.container)

        return Outcome.success()
