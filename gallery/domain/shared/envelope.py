"""Message envelope and the wire encodings it travels in.

An ``Envelope`` is the logical message unit: string attributes plus an opaque
payload. On the wire it shows up in one of three encodings:

- origin event: the producer's own JSON (e.g. an object-creation notification)
- bus delivery: a topic notification whose ``Message`` holds the origin JSON
  as a string, with attributes under ``MessageAttributes``
- queue delivery: a queue record whose ``body`` holds either of the above

``open_envelope`` peels queue and bus layers until the origin payload is left,
so consumers never care how their input was routed to them.
"""

import json
import logging
from typing import Any
from uuid import uuid4

from pydantic import Field, ValidationError as PydanticValidationError

from gallery.domain.shared.model.value import ValueObject, WireModel

logger = logging.getLogger(__name__)

# Queue-inside-bus-inside-queue is the deepest nesting any route produces.
MAX_NESTING = 4


def _new_message_id() -> str:
    return str(uuid4())


class Envelope(ValueObject):
    """Attributes plus an opaque payload."""

    payload: str
    attributes: dict[str, str] = Field(default_factory=dict)
    message_id: str = Field(default_factory=_new_message_id)

    @classmethod
    def of(cls, body: Any, **attributes: str) -> "Envelope":
        """Build an envelope from a JSON-serialisable body."""
        payload = body if isinstance(body, str) else json.dumps(body)
        return cls(payload=payload, attributes=attributes)

    def decode(self) -> Any:
        """Decode the payload as JSON. Raises ValueError on malformed input."""
        return json.loads(self.payload)

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)


# =============================================================================
# Wire encodings
# =============================================================================


class BusAttribute(WireModel):
    type: str = Field(default="String", alias="Type")
    value: str = Field(alias="Value")


class BusDelivery(WireModel):
    """A topic notification as delivered to a subscriber."""

    type: str = Field(default="Notification", alias="Type")
    message_id: str = Field(default_factory=_new_message_id, alias="MessageId")
    topic: str | None = Field(default=None, alias="TopicArn")
    message: str = Field(alias="Message")
    message_attributes: dict[str, BusAttribute] = Field(
        default_factory=dict, alias="MessageAttributes"
    )

    @classmethod
    def wrap(cls, envelope: Envelope, topic: str | None = None) -> "BusDelivery":
        return cls(
            message_id=envelope.message_id,
            topic=topic,
            message=envelope.payload,
            message_attributes={k: BusAttribute(value=v) for k, v in envelope.attributes.items()},
        )

    def attributes(self) -> dict[str, str]:
        return {name: attr.value for name, attr in self.message_attributes.items()}

    def dump(self) -> str:
        return self.model_dump_json(by_alias=True)


class QueueDelivery(WireModel):
    """A queue record as handed to a consumer."""

    message_id: str = Field(default_factory=_new_message_id, alias="messageId")
    body: str
    attributes: dict[str, str] = Field(default_factory=dict)
    message_attributes: dict[str, str] = Field(default_factory=dict, alias="messageAttributes")

    @property
    def receive_count(self) -> int:
        return int(self.attributes.get("ApproximateReceiveCount", "0"))

    def dump(self) -> str:
        return self.model_dump_json(by_alias=True)


def _parse_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def _peel(data: dict[str, Any]) -> tuple[str, dict[str, str]] | None:
    """Remove one queue or bus layer, returning the inner text and its attributes."""
    if "body" in data:
        try:
            queued = QueueDelivery.model_validate(data)
        except PydanticValidationError:
            return None
        return queued.body, queued.message_attributes
    if "Message" in data:
        try:
            delivered = BusDelivery.model_validate(data)
        except PydanticValidationError:
            return None
        return delivered.message, delivered.attributes()
    return None


def open_envelope(envelope: Envelope) -> Envelope:
    """Unwrap queue/bus layers down to the origin payload.

    Attributes of inner layers are merged over the outer ones, since the
    publisher's attributes live on the innermost bus delivery. Payloads that
    are not JSON objects are returned untouched.
    """
    payload = envelope.payload
    attributes = dict(envelope.attributes)
    for _ in range(MAX_NESTING):
        data = _parse_object(payload)
        if data is None:
            break
        peeled = _peel(data)
        if peeled is None:
            break
        payload, inner_attributes = peeled
        attributes.update(inner_attributes)
    if payload == envelope.payload:
        return envelope
    logger.debug(f"Opened envelope {envelope.message_id}")
    return Envelope(payload=payload, attributes=attributes, message_id=envelope.message_id)
