"""Object-store creation notifications (the origin event of the ingestion path)."""

from urllib.parse import quote_plus, unquote_plus

from pydantic import Field, ValidationError as PydanticValidationError

from gallery.domain.shared.model.value import ValueObject, WireModel


class ObjectLocation(ValueObject):
    """Where an object lives in the object store."""

    container: str
    key: str

    def __str__(self) -> str:
        return f"{self.container}/{self.key}"


class _Container(WireModel):
    name: str


class _Object(WireModel):
    key: str
    size: int | None = None


class _StorageEntity(WireModel):
    bucket: _Container
    object: _Object


class CreationRecord(WireModel):
    event_name: str = Field(default="ObjectCreated:Put", alias="eventName")
    s3: _StorageEntity

    @property
    def location(self) -> ObjectLocation:
        # Keys arrive form-encoded: "+" for space, %XX escapes.
        return ObjectLocation(
            container=self.s3.bucket.name,
            key=unquote_plus(self.s3.object.key),
        )


class CreationNotification(WireModel):
    records: list[CreationRecord] = Field(default_factory=list, alias="Records")

    @property
    def locations(self) -> list[ObjectLocation]:
        return [record.location for record in self.records]

    @classmethod
    def parse(cls, payload: str) -> "CreationNotification | None":
        """Parse a payload, or None if it is not a creation notification."""
        try:
            notification = cls.model_validate_json(payload)
        except PydanticValidationError:
            return None
        return notification if notification.records else None

    @classmethod
    def for_object(cls, container: str, key: str, size: int | None = None) -> "CreationNotification":
        return cls(
            records=[
                CreationRecord(
                    s3=_StorageEntity(
                        bucket=_Container(name=container),
                        object=_Object(key=quote_plus(key, safe="/"), size=size),
                    )
                )
            ]
        )

    def dump(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
