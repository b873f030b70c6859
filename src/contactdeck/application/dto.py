"""Input DTO, action results and user-facing notices."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from contactdeck.application.errors import ValidationFailure
from contactdeck.domain import Contact, DisplayField


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class ContactInput:
    """Contact form submission. Strings are stripped; name and phone are required."""

    name: str
    phone_number: str
    email: str = ""
    location: str = ""
    profession: str = ""
    reference_contact: str = ""
    photo_uri: str = ""
    primary_display_field: DisplayField = DisplayField.NAME

    def __post_init__(self):
        for f in fields(self):
            if f.name == "primary_display_field":
                continue
            object.__setattr__(self, f.name, _clean(getattr(self, f.name)))
        object.__setattr__(
            self, "primary_display_field", DisplayField.parse(self.primary_display_field)
        )
        missing = []
        if not self.name:
            missing.append("name")
        if not self.phone_number:
            missing.append("phone_number")
        if missing:
            raise ValidationFailure(missing)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ContactInput":
        """Build from form data, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.setdefault("name", "")
        values.setdefault("phone_number", "")
        return cls(**values)

    def to_record(self) -> dict:
        return Contact(**{f.name: getattr(self, f.name) for f in fields(self)}).to_record()


# --- notices ---


@dataclass(frozen=True)
class Notice:
    """User-visible message. Text comes from the message catalog by message_id."""

    level: str
    message_id: str
    params: dict[str, Any] = field(default_factory=dict)


# --- action results ---


@dataclass(frozen=True)
class ContactSaved:
    """Write accepted by the store. The list updates on the next push."""

    contact_id: str
    created: bool


@dataclass(frozen=True)
class ContactDeleted:
    contact_id: str


@dataclass(frozen=True)
class ValidationFailed:
    """Submission blocked before any store call."""

    missing: list[str]
    reason: str


@dataclass(frozen=True)
class ActionFailed:
    """The action did not happen. kind names the failure (e.g. write_failure)."""

    kind: str
    reason: str


@dataclass(frozen=True)
class CallStarted:
    contact_id: str | None
    name: str


@dataclass(frozen=True)
class CallEnded:
    name: str
    answered: bool
