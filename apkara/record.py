"""Structured record built from a control command."""
from dataclasses import FrozenInstanceError, asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional

from apkara.errors import ExtractionIncomplete

REQUIRED_FIELDS = ("phone_num", "driver_name", "driver_license", "vehicle_num", "weight", "so_no")

FIELD_LABELS = {
    "phone_num": "Phone Number",
    "driver_name": "Driver Name",
    "driver_license": "Driver License",
    "vehicle_num": "Vehicle Number",
    "weight": "Weight",
    "so_no": "SO Number",
}

# Fields the extractor can recover from free text
EXTRACTED_FIELDS = ("vehicle_num", "destination", "weight", "so_no", "phone_num")


@dataclass
class StructuredRecord:
    """One transaction: vehicle, driver, weight, sales order, destination, product."""

    vehicle_num: Optional[str] = None
    destination: Optional[str] = None
    weight: Optional[str] = None
    so_no: Optional[str] = None
    phone_num: Optional[str] = None
    driver_license: Optional[str] = None
    driver_name: Optional[str] = None
    product_type: Optional[str] = None

    def __setattr__(self, name, value):
        if getattr(self, "_sealed", False):
            raise FrozenInstanceError(f"cannot assign to field {name!r} of a queued record")
        super().__setattr__(name, value)

    def sealed(self) -> "StructuredRecord":
        """Read-only copy, as stored on a queue item. `replace()` of it is writable again."""
        copy = replace(self)
        object.__setattr__(copy, "_sealed", True)
        return copy

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.field_names())

    def upper(self) -> "StructuredRecord":
        """Copy with every string field uppercased."""
        changes = {}
        for name in self.field_names():
            value = getattr(self, name)
            if isinstance(value, str):
                changes[name] = value.upper()
        return replace(self, **changes)

    def missing_fields(self) -> List[str]:
        """Required fields that are empty after trimming, in declared order."""
        missing = []
        for name in REQUIRED_FIELDS:
            value = getattr(self, name)
            if value is None or not str(value).strip():
                missing.append(name)
        return missing

    def to_dict(self) -> Dict[str, Any]:
        return {name: (value or None) for name, value in asdict(self).items()}


def format_field_name(field_name: str) -> str:
    """Human-readable label for a field name."""
    return FIELD_LABELS.get(field_name, field_name)


def validate(record: StructuredRecord) -> StructuredRecord:
    """Uppercase the record and check required fields.

    Returns the normalized record. Raises ExtractionIncomplete listing
    exactly the missing fields.
    """
    normalized = record.upper()
    missing = normalized.missing_fields()
    if missing:
        raise ExtractionIncomplete(missing)
    return normalized
