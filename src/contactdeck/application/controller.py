"""Application state: the live contact set, the current screen and the call slot.

Local actions never change the contact set. Saves and deletes go through the
repository; the set is replaced only when the live feed pushes a snapshot.
"""

import logging
from collections.abc import Mapping

from contactdeck.application.dto import (
    ActionFailed,
    CallEnded,
    CallStarted,
    ContactDeleted,
    ContactInput,
    ContactSaved,
    Notice,
    ValidationFailed,
)
from contactdeck.application.errors import (
    ContactNotFound,
    ContactsError,
    StoreUnavailable,
    ValidationFailure,
)
from contactdeck.application.flow_loader import get_flow
from contactdeck.application.ports import ContactStore, IdentityProvider, Unsubscribe
from contactdeck.application.repository import ContactRepository
from contactdeck.application.screens import (
    ADD,
    ANSWER,
    BACK,
    CALL_SCREEN,
    CONTACT_FORM,
    CONTACTS_LIST,
    DECLINE,
    DELETE,
    EDIT,
    SAVE,
    SIMULATE_CALL,
    CallScreen,
    ContactForm,
    ContactsList,
    Screen,
    screen_name,
    transition,
)
from contactdeck.application.search import PhoneNormalizer, filter_contacts
from contactdeck.application.session import SessionIdentity
from contactdeck.domain import Contact, ContactDisplay, resolve_call_display, resolve_list_display

logger = logging.getLogger(__name__)

LEVEL_SUCCESS = "success"
LEVEL_ERROR = "error"
LEVEL_INFO = "info"


class AppController:
    """Owns session state for one user session. Screens read it and call its actions."""

    def __init__(
        self,
        *,
        flow: dict | None = None,
        phone_normalizer: PhoneNormalizer | None = None,
    ) -> None:
        self._flow = flow if flow is not None else get_flow()
        self._phone_normalizer = phone_normalizer
        self._store: ContactStore | None = None
        self._repo: ContactRepository | None = None
        self._unsubscribe_contacts: Unsubscribe | None = None
        self._unsubscribe_identity: Unsubscribe | None = None
        # Bumped on every teardown; pushes tagged with an older value are dropped.
        self._feed_generation = 0
        self.screen: Screen = ContactsList()
        self.contacts: tuple[Contact, ...] = ()
        self.user_id: str | None = None
        self.is_auth_ready = False
        self.is_loading_contacts = True
        self.last_notice: Notice | None = None

    # --- readable state ---

    @property
    def flow(self) -> dict:
        return self._flow

    @property
    def current_screen(self) -> str:
        return screen_name(self.screen)

    @property
    def selected_contact_for_form(self) -> Contact | None:
        return self.screen.contact if isinstance(self.screen, ContactForm) else None

    @property
    def calling_contact(self) -> Contact | None:
        return self.screen.contact if isinstance(self.screen, CallScreen) else None

    def find_contact(self, contact_id: str) -> Contact | None:
        for contact in self.contacts:
            if contact.id == contact_id:
                return contact
        return None

    def search(self, query: str) -> list[Contact]:
        return filter_contacts(self.contacts, query, self._phone_normalizer)

    def list_view(self, query: str = "") -> list[tuple[Contact, ContactDisplay]]:
        return [(c, resolve_list_display(c)) for c in self.search(query)]

    def call_view(self) -> ContactDisplay | None:
        contact = self.calling_contact
        return resolve_call_display(contact) if contact is not None else None

    # --- lifecycle ---

    def attach_store(self, store: ContactStore) -> None:
        self._store = store

    def attach_identity_provider(self, provider: IdentityProvider) -> None:
        """Follow later sign-ins; a different user id replaces the live feed."""
        if self._unsubscribe_identity is not None:
            self._unsubscribe_identity()
        self._unsubscribe_identity = provider.on_identity_change(self.set_identity)

    def start(self, identity: SessionIdentity | str) -> None:
        user_id = identity.user_id if isinstance(identity, SessionIdentity) else identity
        self.set_identity(user_id)

    def set_identity(self, user_id: str | None) -> None:
        user_id = (user_id or "").strip()
        if not user_id or user_id == self.user_id:
            return
        self._stop_feed()
        self.user_id = user_id
        # Screens may hold contacts of the previous user.
        self.screen = ContactsList()
        self.is_auth_ready = True
        self.contacts = ()
        self.is_loading_contacts = True
        self._repo = ContactRepository(self._store, user_id)
        generation = self._feed_generation

        def on_contacts(contacts: list[Contact]) -> None:
            self._on_contacts(generation, contacts)

        self._unsubscribe_contacts = self._repo.subscribe(on_contacts)
        logger.info("Contacts feed started for user %s", user_id)

    def close(self) -> None:
        self._stop_feed()
        if self._unsubscribe_identity is not None:
            self._unsubscribe_identity()
            self._unsubscribe_identity = None

    def _stop_feed(self) -> None:
        self._feed_generation += 1
        if self._unsubscribe_contacts is not None:
            self._unsubscribe_contacts()
            self._unsubscribe_contacts = None

    def _on_contacts(self, generation: int, contacts: list[Contact]) -> None:
        if generation != self._feed_generation:
            logger.debug("Dropping push from a closed contacts feed")
            return
        self.contacts = tuple(contacts)
        self.is_loading_contacts = False

    def _repository(self) -> ContactRepository:
        return self._repo or ContactRepository(self._store, None)

    # --- actions ---

    def save_contact(
        self, data: ContactInput | Mapping, contact_id: str | None = None
    ) -> ContactSaved | ValidationFailed | ActionFailed:
        """Create (no contact_id) or merge-update a contact."""
        try:
            contact_input = data if isinstance(data, ContactInput) else ContactInput.from_mapping(data)
        except ValidationFailure as e:
            self._notify(LEVEL_ERROR, "validation_required", missing=", ".join(e.missing))
            return ValidationFailed(missing=e.missing, reason=str(e))

        repo = self._repository()
        created = not contact_id
        try:
            if created:
                contact_id = repo.create(contact_input)
            else:
                repo.update(contact_id, contact_input)
        except ContactsError as e:
            logger.error("Error saving contact: %s", e)
            result = self._failure(e, "save_failed")
        else:
            self._notify(LEVEL_SUCCESS, "contact_added" if created else "contact_updated")
            result = ContactSaved(contact_id=contact_id, created=created)
        self._leave_form(SAVE)
        return result

    def delete_contact(self, contact_id: str) -> ContactDeleted | ActionFailed:
        try:
            self._repository().delete(contact_id)
        except ContactsError as e:
            logger.error("Error deleting contact: %s", e)
            result = self._failure(e, "delete_failed")
        else:
            self._notify(LEVEL_SUCCESS, "contact_deleted")
            result = ContactDeleted(contact_id=contact_id)
        self._leave_form(DELETE)
        return result

    def simulate_call(self, contact: Contact) -> CallStarted | ActionFailed:
        if isinstance(self.screen, CallScreen):
            return ActionFailed(kind="call_in_progress", reason="Another call is in progress.")
        if not self._can(SIMULATE_CALL, CALL_SCREEN):
            return ActionFailed(
                kind="invalid_transition",
                reason=f"Cannot start a call from {self.current_screen}.",
            )
        self.screen = CallScreen(contact=contact)
        logger.info("Simulating call from %s", contact.name)
        return CallStarted(contact_id=contact.id, name=contact.name)

    def answer_call(self) -> CallEnded | ActionFailed:
        return self._end_call(ANSWER, answered=True)

    def decline_call(self) -> CallEnded | ActionFailed:
        return self._end_call(DECLINE, answered=False)

    def navigate(self, target: str, contact: Contact | None = None) -> bool:
        """Move to target screen if the flow allows it. Returns False when refused."""
        if target == CALL_SCREEN:
            if contact is None:
                logger.warning("Navigation to %s needs a contact", CALL_SCREEN)
                return False
            return isinstance(self.simulate_call(contact), CallStarted)
        if target == CONTACT_FORM:
            event = EDIT if contact is not None else ADD
        elif target == CONTACTS_LIST:
            event = BACK
        else:
            logger.warning("Unknown screen %r", target)
            return False
        if not self._can(event, target):
            logger.warning("Navigation %s -> %s refused", self.current_screen, target)
            return False
        self.screen = ContactForm(contact=contact) if target == CONTACT_FORM else ContactsList()
        return True

    # --- helpers ---

    def _can(self, event: str, target: str) -> bool:
        return transition(self._flow, self.current_screen, event) == target

    def _leave_form(self, event: str) -> None:
        if isinstance(self.screen, ContactForm) and self._can(event, CONTACTS_LIST):
            self.screen = ContactsList()

    def _end_call(self, event: str, *, answered: bool) -> CallEnded | ActionFailed:
        contact = self.calling_contact
        if contact is None or not self._can(event, CONTACTS_LIST):
            return ActionFailed(kind="no_call", reason="No call in progress.")
        self.screen = ContactsList()
        self._notify(LEVEL_INFO, "call_answered" if answered else "call_declined", name=contact.name)
        return CallEnded(name=contact.name, answered=answered)

    def _failure(self, error: ContactsError, message_id: str) -> ActionFailed:
        if isinstance(error, StoreUnavailable):
            self._notify(LEVEL_ERROR, "store_unavailable")
            return ActionFailed(kind="store_unavailable", reason=str(error))
        if isinstance(error, ContactNotFound):
            self._notify(LEVEL_ERROR, "contact_not_found")
            return ActionFailed(kind="not_found", reason=str(error))
        self._notify(LEVEL_ERROR, message_id)
        return ActionFailed(kind="write_failure", reason=str(error))

    def _notify(self, level: str, message_id: str, **params) -> None:
        self.last_notice = Notice(level=level, message_id=message_id, params=params)
