"""Global test fixtures."""

import os
from collections.abc import Callable

import pytest

from gallery.domain.ingestion.model.notification import CreationNotification
from gallery.domain.shared.envelope import Envelope
from gallery.infrastructure.persistence.memory import InMemoryCatalogStore

# A developer's YAML config must not leak into tests.
# This must happen at module load time, not in a fixture
os.environ.pop("GALLERY_CONFIG_FILE", None)


@pytest.fixture
def catalog() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def creation_envelope() -> Callable[..., Envelope]:
    """Factory for object-creation notifications as published on the upload topic."""

    def build(key: str, container: str = "uploads") -> Envelope:
        notification = CreationNotification.for_object(container, key)
        return Envelope(
            payload=notification.dump(),
            attributes={"eventName": notification.records[0].event_name},
        )

    return build
