"""
Record types for plants, growth logs, care notes and plant images.

Records travel as camelCase JSON (remote API and local storage) and are
exposed to Python callers with snake_case attributes. Parsing is strict
about shape: a stored or received record that does not validate is rejected
by the caller (see parse_records), never trusted as-is.
"""

from __future__ import annotations
import datetime
import uuid
from typing import Any, ClassVar, Iterable, List, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from plantpal.utils.errors import RecordValidationError, log_warning

HealthStatus = Literal["excellent", "good", "fair", "poor"]
CareNoteType = Literal["watering", "fertilizing", "repotting", "pruning", "general"]
ImageSource = Literal["unsplash", "pexels", "user", "default"]

R = TypeVar("R", bound="Record")

_JSON_VALUES = TypeAdapter(Any)


def new_id() -> str:
    """Generate a record identifier. Uniqueness is not checked against existing data."""
    return str(uuid.uuid4())


class Record(BaseModel):
    """Base for every stored entity: an immutable string id plus camelCase wire names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str

    # Fields the creator never supplies (assigned on creation)
    generated_fields: ClassVar[tuple[str, ...]] = ("id",)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict using wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def wire_changes(cls, changes: Mapping[str, Any]) -> dict[str, Any]:
        """
        Normalize caller-supplied fields to wire names and JSON values.

        Accepts either attribute names (``watering_frequency``) or wire names
        (``wateringFrequency``). Unknown keys pass through untouched.
        """
        out: dict[str, Any] = {}
        for key, value in changes.items():
            field = cls.model_fields.get(key)
            wire_key = field.alias if field is not None and field.alias else key
            out[wire_key] = _JSON_VALUES.dump_python(value, mode="json")
        return out

    @classmethod
    def creation_payload(cls, data: Mapping[str, Any]) -> dict[str, Any]:
        """Wire payload for a create call, with generated fields stripped."""
        payload = cls.wire_changes(data)
        for name in cls.generated_fields:
            field = cls.model_fields[name]
            payload.pop(field.alias or name, None)
        return payload

    @classmethod
    def _validated(cls: Type[R], data: Mapping[str, Any]) -> R:
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
            raise RecordValidationError(
                f"Invalid {cls.__name__}: {', '.join(fields)}",
                details={"fields": fields},
            ) from e

    @classmethod
    def _field_for(cls, key: str):
        field = cls.model_fields.get(key)
        if field is not None:
            return field
        return next((f for f in cls.model_fields.values() if f.alias == key), None)

    @classmethod
    def create(cls: Type[R], data: Mapping[str, Any]) -> R:
        """
        Build a new record locally, assigning a fresh identifier.

        Raises:
            RecordValidationError: if ``data`` does not form a valid record
        """
        payload = cls.creation_payload(data)
        payload["id"] = new_id()
        return cls._validated(payload)

    @classmethod
    def check_changes(cls, changes: Mapping[str, Any]) -> None:
        """
        Validate each known field in ``changes`` against its declared type.

        Used before an update leaves the process, when the full current
        record is not at hand. Unknown keys and ``id`` are ignored.

        Raises:
            RecordValidationError: naming the first field that does not validate
        """
        for key, value in changes.items():
            field = cls._field_for(key)
            if field is None or key == "id":
                continue
            try:
                TypeAdapter(field.annotation).validate_python(value)
            except ValidationError as e:
                name = field.alias or key
                raise RecordValidationError(
                    f"Invalid {cls.__name__}: {name}",
                    details={"fields": [name]},
                ) from e

    def merged(self: R, changes: Mapping[str, Any]) -> R:
        """
        Shallow merge: each provided field overwrites, everything else is kept.

        Raises:
            RecordValidationError: if the merged record is not valid
        """
        data = self.to_wire()
        data.update(self.wire_changes(changes))
        data["id"] = self.id
        return type(self)._validated(data)


class PlantImage(Record):
    url: str
    thumbnail_url: str = Field(default="", alias="thumbnailUrl")
    alt: str = ""
    source: ImageSource = "user"
    photographer: Optional[str] = None
    photographer_url: Optional[str] = Field(default=None, alias="photographerUrl")
    is_primary: Optional[bool] = Field(default=None, alias="isPrimary")


class GrowthLog(Record):
    plant_id: str = Field(alias="plantId")
    date: datetime.date
    notes: str = ""
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    height: Optional[float] = None
    health_status: HealthStatus = Field(alias="healthStatus")

    @field_validator("height")
    @classmethod
    def _drop_non_positive_height(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            return None
        return value


class CareNote(Record):
    plant_id: str = Field(alias="plantId")
    date: datetime.date
    content: str = ""
    type: CareNoteType = "general"


class Plant(Record):
    name: str
    species: str = ""
    date_added: datetime.date = Field(alias="dateAdded")
    last_watered: datetime.date = Field(alias="lastWatered")
    watering_frequency: int = Field(alias="wateringFrequency")
    location: str = ""
    notes: str = ""
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    images: Optional[List[PlantImage]] = None
    growth_logs: List[GrowthLog] = Field(default_factory=list, alias="growthLogs")

    generated_fields: ClassVar[tuple[str, ...]] = ("id", "growth_logs")

    @classmethod
    def create(cls, data: Mapping[str, Any]) -> "Plant":
        payload = cls.creation_payload(data)
        payload["id"] = new_id()
        payload["growthLogs"] = []
        return cls._validated(payload)


def parse_record(model: Type[R], raw: Any) -> R:
    """Validate a single wire record (raises pydantic.ValidationError)."""
    return model.model_validate(raw)


def parse_records(model: Type[R], raw_items: Iterable[Any], source: str = "") -> list[R]:
    """
    Validate a list of wire records, dropping (and logging) any that fail.

    Args:
        model: Record type to validate against
        raw_items: Decoded JSON items
        source: Where the items came from, for log context

    Returns:
        The records that validated, in their original order
    """
    records: list[R] = []
    for raw in raw_items:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            log_warning(
                f"Dropping malformed {model.__name__} record",
                source=source or "unknown",
                errors=e.error_count(),
            )
    return records
