"""Caller-ID display resolution for the contact list card and the call screen.

The primary label is the contact name, qualified with one extra attribute when
the contact asked for it and that attribute has a value. Secondary details are
the remaining attributes, never repeating the qualifier field.
"""

from dataclasses import dataclass

from contactdeck.domain.entities import Contact, DisplayField

DETAIL_SEPARATOR = " • "

_LIST_ORDER = (
    DisplayField.PROFESSION,
    DisplayField.LOCATION,
    DisplayField.REFERENCE_CONTACT,
)

_CALL_ORDER = (
    DisplayField.LOCATION,
    DisplayField.PROFESSION,
    DisplayField.REFERENCE_CONTACT,
)


@dataclass(frozen=True)
class ContactDisplay:
    """Resolved labels for one contact in one context."""

    primary_label: str
    secondary_details: tuple[str, ...]
    initials: str = ""

    @property
    def secondary_line(self) -> str:
        return join_details(self.secondary_details)


def qualifier_field(contact: Contact) -> DisplayField | None:
    """Return the field shown in parentheses after the name, or None."""
    field = contact.primary_display_field
    if field is DisplayField.NAME:
        return None
    if not contact.value_of(field):
        return None
    return field


def primary_label(contact: Contact) -> str:
    field = qualifier_field(contact)
    if field is None:
        return contact.name
    return f"{contact.name} ({contact.value_of(field)})"


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            out.append(value)
    return out


def _attribute_details(contact: Contact, order: tuple[DisplayField, ...]) -> list[str]:
    return [
        contact.value_of(field)
        for field in order
        if field is not contact.primary_display_field
    ]


def list_details(contact: Contact) -> list[str]:
    """Profession, location, reference; minus the display field; de-duplicated."""
    return _unique(_attribute_details(contact, _LIST_ORDER))


def call_details(contact: Contact) -> list[str]:
    """Location, profession, reference (minus the display field), then phone and email."""
    details = _attribute_details(contact, _CALL_ORDER)
    details.append(contact.phone_number)
    details.append(contact.email)
    return _unique(details)


def join_details(details) -> str:
    return DETAIL_SEPARATOR.join(details)


def resolve_list_display(contact: Contact) -> ContactDisplay:
    return ContactDisplay(
        primary_label=primary_label(contact),
        secondary_details=tuple(list_details(contact)),
        initials=contact.initials,
    )


def resolve_call_display(contact: Contact) -> ContactDisplay:
    return ContactDisplay(
        primary_label=primary_label(contact),
        secondary_details=tuple(call_details(contact)),
        initials=contact.initials,
    )
