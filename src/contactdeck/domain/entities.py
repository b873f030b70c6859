"""Domain entities: Contact and the DisplayField preference."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class DisplayField(str, Enum):
    """Which attribute augments the name in caller-ID style displays."""

    NAME = "name"
    LOCATION = "location"
    PROFESSION = "profession"
    REFERENCE_CONTACT = "referenceContact"

    @classmethod
    def parse(cls, value: object) -> "DisplayField":
        """Return the matching member, or NAME for anything unrecognized."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip():
                    return member
        return cls.NAME


# Record key holding the value each qualifier display field refers to.
QUALIFIER_KEYS = {
    DisplayField.LOCATION: "location",
    DisplayField.PROFESSION: "profession",
    DisplayField.REFERENCE_CONTACT: "reference_contact",
}

RECORD_FIELDS = (
    "name",
    "phone_number",
    "email",
    "location",
    "profession",
    "reference_contact",
    "photo_uri",
)


def _text(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class Contact:
    """
    A stored contact as seen through the live feed.
    id is assigned by the store and absent on records not yet persisted.
    """

    id: str | None = None
    name: str = ""
    phone_number: str = ""
    email: str = ""
    location: str = ""
    profession: str = ""
    reference_contact: str = ""
    photo_uri: str = ""
    primary_display_field: DisplayField = DisplayField.NAME

    def __post_init__(self):
        object.__setattr__(
            self, "primary_display_field", DisplayField.parse(self.primary_display_field)
        )

    @classmethod
    def from_record(cls, contact_id: str | None, record: Mapping) -> "Contact":
        """Build a Contact from a stored record. Missing keys become empty strings."""
        values = {key: _text(record.get(key)) for key in RECORD_FIELDS}
        return cls(
            id=contact_id,
            primary_display_field=DisplayField.parse(record.get("primary_display_field")),
            **values,
        )

    def to_record(self) -> dict:
        record = {key: getattr(self, key) for key in RECORD_FIELDS}
        record["primary_display_field"] = self.primary_display_field.value
        return record

    def value_of(self, field: DisplayField) -> str:
        key = QUALIFIER_KEYS.get(field)
        return getattr(self, key) if key else self.name

    @property
    def initials(self) -> str:
        parts = self.name.split()
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0][0].upper()
        return (parts[0][0] + parts[-1][0]).upper()
