"""Application ports (interfaces). Implemented by infrastructure adapters."""

from collections.abc import Callable
from typing import Protocol

from contactdeck.domain import Contact

SnapshotCallback = Callable[[list[Contact]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


def collection_path(app_id: str, user_id: str) -> str:
    """Path of a user's contact collection: {app_id}/users/{user_id}/contacts."""
    return f"{app_id}/users/{user_id}/contacts"


class ContactStore(Protocol):
    """Keyed collection of contact records scoped by user id."""

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        """Push the full current set now and after every change. Returns the disposer."""
        ...

    def create(self, user_id: str, record: dict) -> str:
        """Store a new record. Returns the assigned id."""
        ...

    def merge_update(self, user_id: str, contact_id: str, record: dict) -> None:
        """Set the given keys; keys not present keep their stored values.

        Raises ContactNotFound when no record with contact_id exists for user_id.
        """
        ...

    def delete(self, user_id: str, contact_id: str) -> None:
        """Remove the record. Unknown ids are ignored."""
        ...


class IdentityProvider(Protocol):
    """Signs the session in and reports the resulting user id."""

    def sign_in_with_custom_token(self, token: str) -> str:
        """Return the user id bound to token. Raises IdentityUnavailable."""
        ...

    def sign_in_anonymously(self) -> str:
        """Return an anonymous user id. Raises IdentityUnavailable."""
        ...

    def on_identity_change(self, callback: Callable[[str], None]) -> Unsubscribe:
        """Call callback with the user id after each successful sign-in."""
        ...
