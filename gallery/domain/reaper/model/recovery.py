"""Recovering an object's location from a dead-letter entry.

Dead-letter bodies are whatever the failing path produced: a faithful bus
delivery, the raw origin event, or only an error description. Each shape has
its own typed parse attempt; attempts run in a fixed order and the first one
that yields a location wins.
"""

import logging
import re
from collections.abc import Callable
from enum import StrEnum

from pydantic import Field, ValidationError as PydanticValidationError

from gallery.domain.ingestion.model.notification import CreationNotification, ObjectLocation
from gallery.domain.shared.envelope import BusDelivery
from gallery.domain.shared.model.value import ValueObject, WireModel

logger = logging.getLogger(__name__)

# Mirrors gallery.domain.ingestion.handler.validate_upload.REJECTION_TEMPLATE.
KEY_PATTERN = re.compile(r"Invalid file type detected: (.+?)(?: - |$)")
CONTAINER_PATTERN = re.compile(r"from bucket (\S+)")
LOOSE_KEY_PATTERN = re.compile(r"file[:\s]+(\S+)", re.IGNORECASE)


class RecoveryStrategy(StrEnum):
    BUS_DELIVERY = "bus_delivery"
    ORIGIN_EVENT = "origin_event"
    ERROR_MESSAGE = "error_message"
    LOOSE_ERROR_MESSAGE = "loose_error_message"


class Recovered(ValueObject):
    """A recovered location, tagged with the strategy that found it."""

    location: ObjectLocation
    strategy: RecoveryStrategy


class FailureDescription(WireModel):
    """Error report left behind by a consumer that gave up on a message."""

    error_message: str = Field(alias="errorMessage")
    error_type: str | None = Field(default=None, alias="errorType")

    @classmethod
    def parse(cls, body: str) -> "FailureDescription | None":
        try:
            return cls.model_validate_json(body)
        except PydanticValidationError:
            return None


def _first_location(notification: CreationNotification | None) -> ObjectLocation | None:
    if notification is None:
        return None
    return notification.locations[0]


def from_bus_delivery(body: str, default_container: str | None) -> ObjectLocation | None:
    try:
        delivery = BusDelivery.model_validate_json(body)
    except PydanticValidationError:
        return None
    return _first_location(CreationNotification.parse(delivery.message))


def from_origin_event(body: str, default_container: str | None) -> ObjectLocation | None:
    return _first_location(CreationNotification.parse(body))


def from_error_message(body: str, default_container: str | None) -> ObjectLocation | None:
    failure = FailureDescription.parse(body)
    if failure is None:
        return None
    key_match = KEY_PATTERN.search(failure.error_message)
    if key_match is None:
        return None
    key = key_match.group(1).strip()
    container_match = CONTAINER_PATTERN.search(failure.error_message)
    container = container_match.group(1).strip() if container_match else default_container
    if not key or not container:
        return None
    return ObjectLocation(container=container, key=key)


def from_loose_error_message(body: str, default_container: str | None) -> ObjectLocation | None:
    if not default_container:
        return None
    failure = FailureDescription.parse(body)
    if failure is None:
        return None
    match = LOOSE_KEY_PATTERN.search(failure.error_message)
    if match is None:
        return None
    return ObjectLocation(container=default_container, key=match.group(1).strip())


Strategy = Callable[[str, str | None], ObjectLocation | None]

STRATEGIES: tuple[tuple[RecoveryStrategy, Strategy], ...] = (
    (RecoveryStrategy.BUS_DELIVERY, from_bus_delivery),
    (RecoveryStrategy.ORIGIN_EVENT, from_origin_event),
    (RecoveryStrategy.ERROR_MESSAGE, from_error_message),
    (RecoveryStrategy.LOOSE_ERROR_MESSAGE, from_loose_error_message),
)


def recover_location(body: str, default_container: str | None = None) -> Recovered | None:
    """Run the strategies in priority order.

    Args:
        body: Raw dead-letter body.
        default_container: Container to assume when an error description
            names only the key.

    Returns:
        The first recovered location, or None if no strategy matched.
    """
    for strategy, attempt in STRATEGIES:
        location = attempt(body, default_container)
        if location is not None:
            logger.debug(f"Recovered {location} via {strategy}")
            return Recovered(location=location, strategy=strategy)
    return None
