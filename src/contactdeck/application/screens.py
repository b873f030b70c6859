"""Screen states and flow transitions.

A screen is one of ContactsList, ContactForm (optional contact being edited)
or CallScreen (the one contact calling). Which events move between screens is
defined by the YAML flow; transition() looks them up.
"""

from dataclasses import dataclass

from contactdeck.domain import Contact

CONTACTS_LIST = "ContactsList"
CONTACT_FORM = "ContactForm"
CALL_SCREEN = "CallScreen"

# Flow events
ADD = "ADD"
EDIT = "EDIT"
SAVE = "SAVE"
DELETE = "DELETE"
BACK = "BACK"
SIMULATE_CALL = "SIMULATE_CALL"
ANSWER = "ANSWER"
DECLINE = "DECLINE"


@dataclass(frozen=True)
class ContactsList:
    pass


@dataclass(frozen=True)
class ContactForm:
    """Form for a new contact (contact is None) or for editing one."""

    contact: Contact | None = None


@dataclass(frozen=True)
class CallScreen:
    contact: Contact


Screen = ContactsList | ContactForm | CallScreen


def screen_name(screen: Screen) -> str:
    if isinstance(screen, ContactsList):
        return CONTACTS_LIST
    if isinstance(screen, ContactForm):
        return CONTACT_FORM
    if isinstance(screen, CallScreen):
        return CALL_SCREEN
    raise TypeError(f"Unknown screen: {screen!r}")


def transition(flow: dict, current: str, event: str) -> str | None:
    """Return the next screen id for (current, event), or None if no edge matches."""
    for screen in flow.get("screens") or []:
        if not isinstance(screen, dict) or screen.get("id") != current:
            continue
        for edge in screen.get("edges") or []:
            if isinstance(edge, dict) and edge.get("event") == event:
                return edge.get("next")
        return None
    return None
