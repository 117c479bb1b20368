from abc import abstractmethod
from typing import Protocol

from gallery.domain.shared.model.value import ValueObject
from gallery.domain.shared.port import Port


class MailMessage(ValueObject):
    to: str
    sender: str
    subject: str
    body: str


class Mailer(Port, Protocol):
    @abstractmethod
    async def send(self, message: MailMessage) -> None:
        """Deliver a message. Raises ExternalServiceError on failure."""
        ...
