from dataclasses import dataclass

from dishka import alias, provide

from gallery.config import Config
from gallery.domain.shared.port.publisher import Publisher
from gallery.infrastructure.messaging.bus import MessageBus
from gallery.infrastructure.messaging.queue import MessageQueue
from gallery.util.di.base import Provider
from gallery.util.di.scope import Scope


@dataclass(frozen=True)
class Queues:
    ingestion: MessageQueue
    dead_letter: MessageQueue


class MessagingProvider(Provider):
    @provide(scope=Scope.APP)
    def get_bus(self) -> MessageBus:
        return MessageBus()

    publisher = alias(source=MessageBus, provides=Publisher)

    @provide(scope=Scope.APP)
    def get_queues(self, config: Config) -> Queues:
        dead_letter = MessageQueue(config.queues.dead_letter)
        ingestion = MessageQueue(
            config.queues.ingestion,
            max_receive_count=config.queues.max_receive_count,
            dead_letter=dead_letter,
        )
        return Queues(ingestion=ingestion, dead_letter=dead_letter)
