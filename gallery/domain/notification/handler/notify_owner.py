"""NotifyOwner - emails the photographer when a review decision lands."""

import logging

from pydantic import ValidationError as PydanticValidationError

from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.review.event.status_changed import StatusChanged
from gallery.domain.shared.envelope import Envelope, open_envelope
from gallery.domain.shared.error import DownstreamDispatchFailure
from gallery.domain.shared.event import MessageHandler, Outcome, OutcomeStatus
from gallery.domain.shared.port.mailer import Mailer, MailMessage

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "Photographer"


def compose(event: StatusChanged, display_name: str | None, to: str, sender: str) -> MailMessage:
    name = display_name or DEFAULT_DISPLAY_NAME
    return MailMessage(
        to=to,
        sender=sender,
        subject=f"Image Status Update: {event.status}",
        body=(
            f"Dear {name},\n\n"
            f"Your image {event.image_id} has been {event.status}.\n"
            f"Review date: {event.date}\n\n"
            "Thank you."
        ),
    )


class NotifyOwner(MessageHandler):
    """Sends a status mail for each StatusChanged event.

    Mail failures are logged and swallowed: the status change has already
    happened and redelivering the event would not undo it. Duplicate events
    (from redelivered status updates) produce duplicate mails.
    """

    catalog: CatalogStore
    mailer: Mailer
    recipient: str
    sender: str

    async def handle(self, envelope: Envelope) -> Outcome:
        try:
            event = StatusChanged.model_validate_json(open_envelope(envelope).payload)
        except PydanticValidationError as e:
            logger.error(f"Malformed status change {envelope.message_id}: {e}")
            return Outcome.rejected("Malformed status change", code="InvalidMessage")

        record = await self.catalog.get(event.image_id)
        if record is None:
            logger.error(f"Image not found: {event.image_id}")
            return Outcome.not_found(f"Image not found: {event.image_id}")

        message = compose(event, record.name, to=self.recipient, sender=self.sender)
        logger.info(f"Preparing to send email to {message.to} from {message.sender}")
        try:
            await self.mailer.send(message)
        except Exception as e:
            failure = DownstreamDispatchFailure(f"Mail for image {event.image_id} failed: {e}")
            logger.error(failure.message)
            return Outcome(status=OutcomeStatus.OK, detail=failure.message, code=failure.code)

        logger.info(f"Email sent to {message.to} for image: {event.image_id}")
        return Outcome.success()
