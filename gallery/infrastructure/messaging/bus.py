"""In-memory topic router: publish once, fan out by attribute filter."""

import asyncio
import json
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.error import ExternalServiceError, is_recoverable
from gallery.domain.shared.port.publisher import Publisher
from gallery.infrastructure.messaging.filter import FilterPolicy
from gallery.infrastructure.messaging.queue import MessageQueue

logger = logging.getLogger(__name__)

Endpoint = Callable[[Envelope], Awaitable[Any]]


@dataclass
class Subscription:
    """A subscriber on a topic.

    Attributes:
        name: Subscriber name (for logs).
        endpoint: Coroutine invoked with each matching envelope.
        filter_policy: Attribute allow-list; None receives every message.
        max_attempts: Invocations before the delivery is given up. Terminal
            errors give up immediately.
        failure_destination: Queue receiving an error description for
            deliveries that were given up.
    """

    name: str
    endpoint: Endpoint
    filter_policy: FilterPolicy | None = None
    max_attempts: int = 1
    failure_destination: MessageQueue | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def accepts(self, envelope: Envelope) -> bool:
        return self.filter_policy is None or self.filter_policy.matches(envelope.attributes)


class MessageBus(Publisher):
    """Topics with filtered fan-out to independent subscribers.

    Subscribers are invoked concurrently; order across subscribers is not
    defined, and one failing subscriber never affects delivery to the others.
    """

    def __init__(self) -> None:
        self._topics: dict[str, list[Subscription]] = defaultdict(list)

    def create_topic(self, topic: str) -> None:
        self._topics.setdefault(topic, [])

    @property
    def topics(self) -> list[str]:
        return list(self._topics)

    def subscriptions(self, topic: str) -> list[Subscription]:
        return list(self._topics.get(topic, []))

    def subscribe(self, topic: str, subscription: Subscription) -> Subscription:
        self._topics[topic].append(subscription)
        logger.debug(f"Subscribed '{subscription.name}' to topic '{topic}'")
        return subscription

    def subscribe_queue(
        self,
        topic: str,
        queue: MessageQueue,
        filter_policy: FilterPolicy | None = None,
    ) -> Subscription:
        """Subscribe a queue; matching envelopes are enqueued as bus deliveries."""

        async def enqueue(envelope: Envelope) -> None:
            await queue.deliver(envelope, topic)

        return self.subscribe(
            topic, Subscription(name=queue.name, endpoint=enqueue, filter_policy=filter_policy)
        )

    async def publish(self, topic: str, envelope: Envelope) -> None:
        if topic not in self._topics:
            raise ExternalServiceError(f"Topic '{topic}' does not exist")

        matched = [s for s in self._topics[topic] if s.accepts(envelope)]
        if not matched:
            logger.debug(f"No subscribers matched message {envelope.message_id} on '{topic}'")
            return

        logger.info(f"Publishing message {envelope.message_id} on '{topic}' to {len(matched)} subscribers")
        await asyncio.gather(*[self._deliver(s, envelope) for s in matched])

    async def _deliver(self, subscription: Subscription, envelope: Envelope) -> None:
        error: Exception | None = None
        for attempt in range(1, subscription.max_attempts + 1):
            try:
                await subscription.endpoint(envelope)
                return
            except Exception as e:
                error = e
                logger.warning(
                    f"Delivery of {envelope.message_id} to '{subscription.name}' failed "
                    f"(attempt {attempt}/{subscription.max_attempts}): {e}"
                )
                if not is_recoverable(e):
                    break

        if subscription.failure_destination is None:
            logger.error(f"Dropped message {envelope.message_id} for '{subscription.name}': {error}")
            return

        failure = {"errorMessage": str(error), "errorType": type(error).__name__}
        await subscription.failure_destination.send(json.dumps(failure))
        logger.error(
            f"Sent failure for {envelope.message_id} to '{subscription.failure_destination.name}'"
        )
