"""Dependency injection provider for handlers and queue workers."""

import logging

from dishka import AsyncContainer, provide

from gallery.config import Config
from gallery.domain.catalog.handler import UpdateMetadata
from gallery.domain.catalog.port.repository import CatalogStore
from gallery.domain.ingestion.handler import ValidateUpload
from gallery.domain.notification.handler import NotifyOwner
from gallery.domain.reaper.handler import ReapDeadLetters
from gallery.domain.review.handler import UpdateStatus
from gallery.domain.shared.error import ConfigurationError
from gallery.domain.shared.port.mailer import Mailer
from gallery.domain.shared.port.object_store import ObjectStore
from gallery.domain.shared.port.publisher import Publisher
from gallery.infrastructure.event.worker import WorkerPool
from gallery.infrastructure.messaging.di import Queues
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope

logger = logging.getLogger(__name__)


class HandlerProvider(Provider):
    """Message handlers, fresh per unit of work."""

    @provide(scope=Scope.UOW)
    def get_validate_upload(self, catalog: CatalogStore, config: Config) -> ValidateUpload:
        if not config.ingestion.allowed_extensions:
            raise ConfigurationError("ingestion.allowed_extensions must not be empty")
        return ValidateUpload(
            catalog=catalog,
            allowed_extensions=frozenset(config.ingestion.allowed_extensions),
        )

    update_metadata = provide(UpdateMetadata, scope=Scope.UOW)

    @provide(scope=Scope.UOW)
    def get_update_status(
        self, catalog: CatalogStore, publisher: Publisher, config: Config
    ) -> UpdateStatus:
        return UpdateStatus(catalog=catalog, publisher=publisher, status_topic=config.topics.status)

    @provide(scope=Scope.UOW)
    def get_notify_owner(self, catalog: CatalogStore, mailer: Mailer, config: Config) -> NotifyOwner:
        return NotifyOwner(
            catalog=catalog,
            mailer=mailer,
            recipient=config.mail.recipient,
            sender=config.mail.sender,
        )

    @provide(scope=Scope.UOW)
    def get_reap_dead_letters(self, object_store: ObjectStore, config: Config) -> ReapDeadLetters:
        return ReapDeadLetters(
            object_store=object_store,
            default_container=config.storage.default_container,
        )


class EventProvider(Provider):
    """WorkerPool is an APP-scoped singleton with one worker per consumed queue."""

    @provide(scope=Scope.APP)
    def get_worker_pool(self, container: AsyncContainer, config: Config, queues: Queues) -> WorkerPool:
        pool = WorkerPool(container=container, poll_interval=config.worker.poll_interval)

        if config.ingestion.mode == "queue":
            pool.register(ValidateUpload, queues.ingestion)
        pool.register(ReapDeadLetters, queues.dead_letter, batch_size=config.queues.batch_size)

        logger.info(f"WorkerPool created with {len(pool.workers)} workers")
        return pool
