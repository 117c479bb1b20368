from pydantic import BaseModel, ConfigDict


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True)


class WireModel(BaseModel):
    """Model for externally produced JSON.

    Fields are addressed by their wire names (aliases) but can be populated by
    attribute name; unknown keys are ignored since producers add fields freely.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
