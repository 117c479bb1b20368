from collections.abc import Mapping

from pydantic import field_validator

from gallery.domain.shared.model.value import ValueObject


class FilterPolicy(ValueObject):
    """Allow-list over a single message attribute.

    A message matches when it carries the attribute and its value is in the
    allow-list. Entries ending in ``*`` match by prefix (``ObjectCreated:*``).
    """

    attribute: str
    allowed: frozenset[str]

    @field_validator("allowed")
    @classmethod
    def _not_empty(cls, allowed: frozenset[str]) -> frozenset[str]:
        if not allowed:
            raise ValueError("allowed must not be empty")
        return allowed

    @classmethod
    def allow(cls, attribute: str, *values: str) -> "FilterPolicy":
        return cls(attribute=attribute, allowed=frozenset(values))

    def matches(self, attributes: Mapping[str, str]) -> bool:
        value = attributes.get(self.attribute)
        if value is None:
            return False
        for entry in self.allowed:
            if entry.endswith("*"):
                if value.startswith(entry[:-1]):
                    return True
            elif value == entry:
                return True
        return False
