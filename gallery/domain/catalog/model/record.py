from enum import StrEnum

from pydantic import ConfigDict, Field

from gallery.domain.shared.model.value import ValueObject


class ReviewStatus(StrEnum):
    PENDING = "Pending"
    PASS = "Pass"
    REJECT = "Reject"


# Statuses a review decision may set.
DECISIONS = frozenset({ReviewStatus.PASS, ReviewStatus.REJECT})


class RecordField(StrEnum):
    """Mutable fields of a catalog record. Stores only accept these as selectors."""

    CAPTION = "caption"
    DATE = "date"
    NAME = "name"
    STATUS = "status"
    REVIEW_DATE = "review_date"
    REASON = "reason"


class MetadataField(StrEnum):
    """Allow-listed ``metadata_type`` attribute values, as publishers send them."""

    CAPTION = "Caption"
    DATE = "Date"
    NAME = "name"

    @property
    def field(self) -> RecordField:
        return RecordField[self.name]


class CatalogRecord(ValueObject):
    """Catalog entry for one accepted media object, keyed by its storage key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    caption: str | None = Field(default=None, alias="Caption")
    date: str | None = Field(default=None, alias="Date")
    name: str | None = None
    status: ReviewStatus = ReviewStatus.PENDING
    review_date: str | None = Field(default=None, alias="reviewDate")
    reason: str | None = None

    def with_changes(self, changes: dict[RecordField, str | None]) -> "CatalogRecord":
        updated = {**self.model_dump(), **{str(f): v for f, v in changes.items()}}
        return type(self).model_validate(updated)
