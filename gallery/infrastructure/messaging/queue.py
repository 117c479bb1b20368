"""In-memory message queue with receive counting and dead-letter routing."""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from uuid import uuid4

from gallery.domain.shared.envelope import BusDelivery, Envelope, QueueDelivery

logger = logging.getLogger(__name__)


@dataclass
class _Message:
    message_id: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)
    receive_count: int = 0


class MessageQueue:
    """At-least-once queue.

    Received messages stay in flight until acknowledged. A message that is
    not acknowledged (``nack``) becomes visible again, behind the messages
    already waiting. Once a message has been received ``max_receive_count``
    times, the next receive moves it to the dead-letter queue instead.

    Example:
        dlq = MessageQueue("ingestion-dlq")
        queue = MessageQueue("ingestion", max_receive_count=3, dead_letter=dlq)
        await queue.send(body)
        for message in await queue.receive(10):
            ...
            await queue.ack(message.message_id)
    """

    def __init__(
        self,
        name: str,
        max_receive_count: int | None = None,
        dead_letter: "MessageQueue | None" = None,
    ) -> None:
        if dead_letter is not None and (max_receive_count is None or max_receive_count < 1):
            raise ValueError("max_receive_count must be >= 1 when a dead-letter queue is set")
        self.name = name
        self.max_receive_count = max_receive_count
        self.dead_letter = dead_letter
        self._visible: OrderedDict[str, _Message] = OrderedDict()
        self._in_flight: dict[str, _Message] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        """Number of messages waiting or in flight."""
        return len(self._visible) + len(self._in_flight)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def send(self, body: str, attributes: dict[str, str] | None = None) -> str:
        message = _Message(message_id=str(uuid4()), body=body, attributes=dict(attributes or {}))
        async with self._lock:
            self._visible[message.message_id] = message
        logger.debug(f"Queue '{self.name}' received message {message.message_id}")
        return message.message_id

    async def deliver(self, envelope: Envelope, topic: str | None = None) -> None:
        """Topic endpoint: enqueue the envelope as a bus delivery."""
        await self.send(BusDelivery.wrap(envelope, topic).dump())

    async def receive(self, max_messages: int = 1) -> list[QueueDelivery]:
        received: list[QueueDelivery] = []
        redrive: list[_Message] = []
        async with self._lock:
            while self._visible and len(received) < max_messages:
                _, message = self._visible.popitem(last=False)
                if self._exhausted(message):
                    redrive.append(message)
                    continue
                message.receive_count += 1
                self._in_flight[message.message_id] = message
                received.append(
                    QueueDelivery(
                        message_id=message.message_id,
                        body=message.body,
                        attributes={"ApproximateReceiveCount": str(message.receive_count)},
                        message_attributes=dict(message.attributes),
                    )
                )

        if redrive:
            await self._redrive(redrive)
        return received

    async def _redrive(self, messages: list[_Message]) -> None:
        dead_letter = self.dead_letter
        if dead_letter is None:
            return
        for message in messages:
            logger.warning(
                f"Message {message.message_id} exceeded {self.max_receive_count} receives, "
                f"moving '{self.name}' -> '{dead_letter.name}'"
            )
            await dead_letter.send(message.body, message.attributes)

    async def ack(self, message_id: str) -> None:
        """Delete an in-flight message. Acknowledging twice is a no-op."""
        async with self._lock:
            self._in_flight.pop(message_id, None)

    async def nack(self, message_id: str) -> None:
        """Make an in-flight message visible again for redelivery."""
        async with self._lock:
            message = self._in_flight.pop(message_id, None)
            if message is not None:
                self._visible[message.message_id] = message

    def _exhausted(self, message: _Message) -> bool:
        return (
            self.dead_letter is not None
            and self.max_receive_count is not None
            and message.receive_count >= self.max_receive_count
        )
