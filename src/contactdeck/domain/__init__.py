"""Domain layer: entities and display rules. No dependencies on outer layers."""

from contactdeck.domain.display import (
    DETAIL_SEPARATOR,
    ContactDisplay,
    call_details,
    join_details,
    list_details,
    primary_label,
    qualifier_field,
    resolve_call_display,
    resolve_list_display,
)
from contactdeck.domain.entities import Contact, DisplayField

__all__ = [
    "DETAIL_SEPARATOR",
    "Contact",
    "ContactDisplay",
    "DisplayField",
    "call_details",
    "join_details",
    "list_details",
    "primary_label",
    "qualifier_field",
    "resolve_call_display",
    "resolve_list_display",
]
