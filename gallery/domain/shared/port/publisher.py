from abc import abstractmethod
from typing import Protocol

from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.port import Port


class Publisher(Port, Protocol):
    """Publishes envelopes onto named topics."""

    @abstractmethod
    async def publish(self, topic: str, envelope: Envelope) -> None:
        """Publish to a topic. Raises ExternalServiceError if the bus rejects it."""
        ...
