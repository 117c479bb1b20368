"""Topic subscriptions: which consumer sees which messages."""

import logging

from dishka import AsyncContainer

from gallery.config import Config
from gallery.domain.catalog.handler import UpdateMetadata
from gallery.domain.catalog.handler.update_metadata import METADATA_TYPE_ATTRIBUTE
from gallery.domain.catalog.model.record import MetadataField
from gallery.domain.ingestion.handler import ValidateUpload
from gallery.domain.notification.handler import NotifyOwner
from gallery.domain.review.handler import UpdateStatus
from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.event import MessageHandler, Outcome
from gallery.infrastructure.messaging import FilterPolicy, MessageBus, Queues, Subscription
from gallery.infrastructure.messaging.bus import Endpoint
from gallery.infrastructure.storage.local import EVENT_NAME_ATTRIBUTE
from gallery.util.di.scope import Scope

logger = logging.getLogger(__name__)

OBJECT_CREATED = FilterPolicy.allow(EVENT_NAME_ATTRIBUTE, "ObjectCreated:*")
METADATA_TYPES = FilterPolicy.allow(METADATA_TYPE_ATTRIBUTE, *(f.value for f in MetadataField))


def handler_endpoint(container: AsyncContainer, handler_type: type[MessageHandler]) -> Endpoint:
    """Invoke a fresh handler per delivery, inside its own unit of work."""

    async def endpoint(envelope: Envelope) -> Outcome:
        async with container(scope=Scope.UOW) as scope:
            handler = await scope.get(handler_type)
            outcome = await handler.handle(envelope)
        if not outcome.ok:
            logger.info(
                f"{handler_type.__name__} {outcome.status} {envelope.message_id}: {outcome.detail}"
            )
        return outcome

    return endpoint


def wire_subscriptions(
    bus: MessageBus, queues: Queues, container: AsyncContainer, config: Config
) -> None:
    """Create the topics and attach every consumer.

    - uploads: creation notifications to the ingestion queue (queue mode) or
      straight to ValidateUpload with failures sent to the dead-letter queue
      (direct mode)
    - images: UpdateMetadata filtered on metadata_type, UpdateStatus unfiltered
    - status: NotifyOwner
    """
    topics = config.topics
    for topic in (topics.images, topics.uploads, topics.status):
        bus.create_topic(topic)

    attempts = config.queues.max_receive_count

    if config.ingestion.mode == "queue":
        bus.subscribe_queue(topics.uploads, queues.ingestion, OBJECT_CREATED)
    else:
        bus.subscribe(
            topics.uploads,
            Subscription(
                name=ValidateUpload.__name__,
                endpoint=handler_endpoint(container, ValidateUpload),
                filter_policy=OBJECT_CREATED,
                max_attempts=attempts,
                failure_destination=queues.dead_letter,
            ),
        )

    bus.subscribe(
        topics.images,
        Subscription(
            name=UpdateMetadata.__name__,
            endpoint=handler_endpoint(container, UpdateMetadata),
            filter_policy=METADATA_TYPES,
            max_attempts=attempts,
        ),
    )
    bus.subscribe(
        topics.images,
        Subscription(
            name=UpdateStatus.__name__,
            endpoint=handler_endpoint(container, UpdateStatus),
            max_attempts=attempts,
        ),
    )
    bus.subscribe(
        topics.status,
        Subscription(
            name=NotifyOwner.__name__,
            endpoint=handler_endpoint(container, NotifyOwner),
            max_attempts=attempts,
        ),
    )
    logger.info(f"Wired subscriptions ({config.ingestion.mode} ingestion)")
