"""ReapDeadLetters - deletes objects whose ingestion exhausted its retries."""

import logging
from typing import ClassVar

from gallery.domain.reaper.model.recovery import recover_location
from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.error import DownstreamDispatchFailure, RecoveryFailure
from gallery.domain.shared.event import MessageHandler, Outcome
from gallery.domain.shared.port.object_store import ObjectStore

logger = logging.getLogger(__name__)


class ReapDeadLetters(MessageHandler):
    """Compensating cleanup for the ingestion dead-letter queue.

    Arriving here means the object was rejected or could not be processed, so
    a recovered object is deleted without re-validation. Every entry of a
    batch is handled on its own: unrecoverable entries and failed deletes are
    logged and never abort the rest, and nothing is raised back to the queue.
    """

    __batch_size__: ClassVar[int] = 10

    object_store: ObjectStore
    default_container: str | None = None

    async def handle(self, envelope: Envelope) -> Outcome:
        recovered = recover_location(envelope.payload, self.default_container)
        if recovered is None:
            failure = RecoveryFailure(
                f"Could not extract object location from dead letter {envelope.message_id}"
            )
            logger.error(failure.message)
            return Outcome.rejected(failure.message, code=failure.code)

        location = recovered.location
        logger.info(f"Deleting {location.key} from {location.container} ({recovered.strategy})")
        try:
            await self.object_store.delete(location.container, location.key)
        except Exception as e:
            failure = DownstreamDispatchFailure(f"Error deleting {location}: {e}")
            logger.error(failure.message)
            return Outcome.rejected(failure.message, code=failure.code)

        logger.info(f"Deleted {location}")
        return Outcome.success(f"Deleted {location}")

    async def handle_batch(self, envelopes: list[Envelope]) -> list[Outcome]:
        outcomes = []
        for envelope in envelopes:
            try:
                outcomes.append(await self.handle(envelope))
            except Exception as e:
                logger.exception(f"Error processing dead letter {envelope.message_id}: {e}")
                outcomes.append(Outcome.rejected(str(e), code=type(e).__name__))
        return outcomes
