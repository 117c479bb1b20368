"""Domain events, message handlers, handler outcomes, and worker state."""

from abc import ABCMeta
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from typing import Any, ClassVar, dataclass_transform

from pydantic import ConfigDict

from gallery.domain.shared.envelope import Envelope
from gallery.domain.shared.model.value import ValueObject

# Attribute carrying the event type name on every published domain event.
MESSAGE_TYPE_ATTRIBUTE = "messageType"


class Event(ValueObject):
    """Base class for domain events published on the bus.

    Events serialise by alias so their payloads keep the wire field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_envelope(self, **attributes: str) -> Envelope:
        return Envelope(
            payload=self.model_dump_json(by_alias=True),
            attributes={MESSAGE_TYPE_ATTRIBUTE: type(self).__name__, **attributes},
        )


# --- Outcomes ---


class OutcomeStatus(StrEnum):
    OK = "ok"
    IGNORED = "ignored"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


_STATUS_CODES = {
    OutcomeStatus.OK: 200,
    OutcomeStatus.IGNORED: 200,
    OutcomeStatus.REJECTED: 400,
    OutcomeStatus.NOT_FOUND: 404,
}


class Outcome(ValueObject):
    """What a handler did with a message it did not raise on."""

    status: OutcomeStatus
    detail: str = ""
    code: str | None = None

    @property
    def status_code(self) -> int:
        """HTTP-equivalent status for the outcome."""
        return _STATUS_CODES[self.status]

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @classmethod
    def success(cls, detail: str = "Success") -> "Outcome":
        return cls(status=OutcomeStatus.OK, detail=detail)

    @classmethod
    def ignored(cls, detail: str) -> "Outcome":
        return cls(status=OutcomeStatus.IGNORED, detail=detail)

    @classmethod
    def rejected(cls, detail: str, code: str | None = None) -> "Outcome":
        return cls(status=OutcomeStatus.REJECTED, detail=detail, code=code)

    @classmethod
    def not_found(cls, detail: str) -> "Outcome":
        return cls(status=OutcomeStatus.NOT_FOUND, detail=detail, code="NotFoundError")


# --- MessageHandler ---


@dataclass_transform()
class _MessageHandlerMeta(ABCMeta):
    """Metaclass that applies @dataclass to concrete MessageHandler subclasses."""

    def __new__(mcs, name: str, bases: tuple[type, ...], namespace: dict[str, Any]) -> type:
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(b, mcs) for b in bases):
            cls = dataclass(cls)
        return cls


class MessageHandler(metaclass=_MessageHandlerMeta):
    """Base class for message consumers.

    Subclasses are automatically dataclasses whose fields are their injected
    dependencies (stores, publishers, config). Handlers hold no other state,
    so any number of invocations may run concurrently.

    Configuration is via class variables:
        __batch_size__: Max messages a worker hands over at once (default: 1)

    Example:
        class UpdateMetadata(MessageHandler):
            catalog: CatalogStore

            async def handle(self, envelope: Envelope) -> Outcome:
                ...
    """

    __batch_size__: ClassVar[int] = 1

    async def handle(self, envelope: Envelope) -> Outcome:
        """Handle a single message.

        Raises:
            NotImplementedError: If neither handle() nor handle_batch() is overridden.
        """
        raise NotImplementedError(
            f"{type(self).__name__} must implement handle() or handle_batch()"
        )

    async def handle_batch(self, envelopes: list[Envelope]) -> list[Outcome]:
        """Handle a batch of messages.

        Default implementation loops over handle(); the first raised error
        aborts the batch. Override when entries must be isolated.
        """
        return [await self.handle(envelope) for envelope in envelopes]


# --- Worker Infrastructure ---


class WorkerStatus(Enum):
    """Status of a running worker."""

    IDLE = "idle"
    RECEIVING = "receiving"
    PROCESSING = "processing"
    STOPPING = "stopping"


@dataclass
class WorkerState:
    """Runtime state for a running worker (not persisted).

    Attributes:
        name: Worker name.
        status: Current worker status.
        last_receive_at: When messages were last received.
        processed_count: Total messages acknowledged.
        failed_count: Total messages left for redelivery.
        error: Last error if any.
    """

    name: str
    status: WorkerStatus = WorkerStatus.IDLE
    last_receive_at: datetime | None = None
    processed_count: int = 0
    failed_count: int = 0
    error: Exception | None = field(default=None, repr=False)
