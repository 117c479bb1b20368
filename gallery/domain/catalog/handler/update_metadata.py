"""UpdateMetadata - sets one allow-listed metadata field on a catalog record."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator

from gallery.domain.catalog.model.record import MetadataField
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.shared.envelope import Envelope, open_envelope
from gallery.domain.shared.event import MessageHandler, Outcome
from gallery.domain.shared.model.value import WireModel

logger = logging.getLogger(__name__)

METADATA_TYPE_ATTRIBUTE = "metadata_type"


class MetadataUpdate(WireModel):
    id: str
    value: str

    @field_validator("value", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> Any:
        # JSON numbers are stored as their text.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


def parse_metadata_type(raw: str | None) -> MetadataField | None:
    """Map the attribute onto the allow-list, or None if it is not on it."""
    if raw is None:
        return None
    try:
        return MetadataField(raw)
    except ValueError:
        return None


class UpdateMetadata(MessageHandler):
    """Applies ``{id, value}`` to the field named by the ``metadata_type`` attribute.

    The attribute picks which record field is overwritten, so anything outside
    the allow-list is rejected before it gets near the store.
    """

    catalog: CatalogStore

    async def handle(self, envelope: Envelope) -> Outcome:
        opened = open_envelope(envelope)
        raw_type = opened.attribute(METADATA_TYPE_ATTRIBUTE)
        metadata_type = parse_metadata_type(raw_type)
        if metadata_type is None:
            logger.error(f"Invalid or missing metadata type: {raw_type!r}")
            return Outcome.rejected("Invalid metadata type", code="InvalidMetadataType")

        try:
            update = MetadataUpdate.model_validate_json(opened.payload)
        except PydanticValidationError as e:
            logger.error(f"Malformed metadata update {envelope.message_id}: {e}")
            return Outcome.rejected("Malformed metadata update", code="InvalidMessage")

        record = await self.catalog.update(update.id, {metadata_type.field: update.value})
        if record is None:
            logger.warning(f"Image not found for metadata update: {update.id}")
            return Outcome.not_found(f"Image not found: {update.id}")

        logger.info(f"Updated {metadata_type} for image {update.id}")
        return Outcome.success()
