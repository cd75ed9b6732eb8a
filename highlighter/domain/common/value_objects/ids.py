from dataclasses import dataclass
from uuid import uuid4

from ..exceptions import ValidationError
from ..value_object import ValueObject


@dataclass(frozen=True)
class EventId(ValueObject):
    """Strongly-typed event document identifier."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError("EventId cannot be empty", field="id")

    def __str__(self) -> str:
        return self.value

    @classmethod
    def generate(cls) -> "EventId":
        """New globally unique id, also usable as a DOM id for the highlight."""
        return cls(str(uuid4()))


@dataclass(frozen=True)
class Revision(ValueObject):
    """Opaque revision token issued by the store (``<generation>-<hash>``)."""

    value: str

    def __post_init__(self) -> None:
        if not self.value:
            raise ValidationError("Revision cannot be empty", field="rev")

    def __str__(self) -> str:
        return self.value
