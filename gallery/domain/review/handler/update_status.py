"""UpdateStatus - applies review decisions and announces them."""

import logging
from typing import Any

from gallery.domain.catalog.model.record import DECISIONS, RecordField, ReviewStatus
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.review.event.status_changed import StatusChanged
from gallery.domain.shared.envelope import Envelope, open_envelope
from gallery.domain.shared.error import InvalidStatus
from gallery.domain.shared.event import MessageHandler, Outcome
from gallery.domain.shared.model.value import ValueObject
from gallery.domain.shared.port.publisher import Publisher

logger = logging.getLogger(__name__)


class StatusUpdate(ValueObject):
    id: str
    date: str
    status: ReviewStatus
    reason: str | None = None


def _present(value: Any) -> bool:
    return value is not None and value != ""


def parse_status_update(data: Any) -> StatusUpdate | None:
    """Read a status update from a decoded payload.

    Returns None when the payload does not look like a status update at all
    (the topic also carries unrelated traffic).

    Raises:
        InvalidStatus: If it is addressed as a status update but the status is
            not a review decision.
    """
    if not isinstance(data, dict):
        return None
    update = data.get("update")
    if not (_present(data.get("id")) and _present(data.get("date")) and isinstance(update, dict)):
        return None
    raw_status = update.get("status")
    if not _present(raw_status):
        return None
    if not isinstance(raw_status, str) or raw_status not in {str(s) for s in DECISIONS}:
        raise InvalidStatus(raw_status)
    reason = update.get("reason")
    return StatusUpdate(
        id=str(data["id"]),
        date=str(data["date"]),
        status=ReviewStatus(raw_status),
        reason=None if reason is None else str(reason),
    )


class UpdateStatus(MessageHandler):
    """Sets status, review date, and reason, then publishes StatusChanged.

    Subscribed without a filter: the discriminator is the payload shape, since
    not every publisher sets a message type attribute.

    A publish failure propagates so the input is redelivered. The replay
    re-applies the same values (a no-op) and publishes again, so consumers of
    StatusChanged must tolerate duplicates.
    """

    catalog: CatalogStore
    publisher: Publisher
    status_topic: str

    async def handle(self, envelope: Envelope) -> Outcome:
        opened = open_envelope(envelope)
        try:
            data = opened.decode()
        except ValueError:
            logger.debug(f"Message {envelope.message_id} is not JSON, ignoring")
            return Outcome.ignored("Not a status update message")

        try:
            update = parse_status_update(data)
        except InvalidStatus as e:
            logger.error(f"{e.message} (image {data.get('id')})")
            return Outcome.rejected(e.message, code=e.code)

        if update is None:
            logger.debug(f"Message {envelope.message_id} is not a status update, ignoring")
            return Outcome.ignored("Not a status update message")

        logger.info(f"Processing status update: {update.id}, status: {update.status}")
        record = await self.catalog.update(
            update.id,
            {
                RecordField.STATUS: update.status,
                RecordField.REVIEW_DATE: update.date,
                RecordField.REASON: update.reason,
            },
        )
        if record is None:
            logger.warning(f"Image not found for status update: {update.id}")
            return Outcome.not_found(f"Image not found: {update.id}")

        event = StatusChanged(image_id=update.id, status=update.status, date=update.date)
        await self.publisher.publish(self.status_topic, event.to_envelope())
        logger.info(f"Published status change for image {update.id}")
        return Outcome.success()
