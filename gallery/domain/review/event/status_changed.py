from pydantic import Field

from gallery.domain.catalog.model.record import ReviewStatus
from gallery.domain.shared.event import Event


class StatusChanged(Event):
    """Emitted after a review decision has been applied to a catalog record."""

    image_id: str = Field(alias="imageId")
    status: ReviewStatus
    date: str
