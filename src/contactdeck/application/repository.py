"""User-scoped contact repository over a ContactStore.

Store exceptions stop here: they are logged and re-raised as WriteFailure.
Inputs are expected to be validated already (ContactInput does that).
"""

import logging
from collections.abc import Mapping

from contactdeck.application.dto import ContactInput
from contactdeck.application.errors import ContactNotFound, StoreUnavailable, WriteFailure
from contactdeck.application.ports import ContactStore, SnapshotCallback, Unsubscribe

logger = logging.getLogger(__name__)


def _noop() -> None:
    return None


class ContactRepository:
    """Contacts of one user. Every call is scoped by the user id given at construction."""

    def __init__(self, store: ContactStore | None, user_id: str | None) -> None:
        self._store = store
        self._user_id = (user_id or "").strip() or None

    @property
    def user_id(self) -> str | None:
        return self._user_id

    def _require_store(self, operation: str) -> ContactStore:
        if self._store is None or self._user_id is None:
            logger.error("Store or user id not available for %s.", operation)
            raise StoreUnavailable(f"Store not initialized or user not signed in ({operation}).")
        return self._store

    def subscribe(self, on_change: SnapshotCallback) -> Unsubscribe:
        """Start the live feed. Never raises; returns a no-op disposer when unavailable."""
        if self._store is None or self._user_id is None:
            logger.error("Store or user id not available for subscription.")
            return _noop

        def on_error(exc: Exception) -> None:
            logger.error("Error in contacts subscription for user %s: %s", self._user_id, exc)

        try:
            return self._store.subscribe(self._user_id, on_change, on_error)
        except Exception as e:
            logger.error("Error subscribing to contacts for user %s: %s", self._user_id, e)
            return _noop

    def create(self, data: ContactInput) -> str:
        store = self._require_store("create")
        try:
            contact_id = store.create(self._user_id, data.to_record())
        except Exception as e:
            logger.error("Error adding contact for user %s: %s", self._user_id, e)
            raise WriteFailure("Failed to add contact.") from e
        logger.info("Contact %s added for user %s", contact_id, self._user_id)
        return contact_id

    def update(self, contact_id: str, data: ContactInput | Mapping) -> None:
        """Merge update. A mapping is written as a partial record."""
        store = self._require_store("update")
        record = data.to_record() if isinstance(data, ContactInput) else dict(data)
        try:
            store.merge_update(self._user_id, contact_id, record)
        except ContactNotFound:
            logger.warning("Contact %s not found for user %s", contact_id, self._user_id)
            raise
        except Exception as e:
            logger.error("Error updating contact %s for user %s: %s", contact_id, self._user_id, e)
            raise WriteFailure("Failed to update contact.") from e

    def delete(self, contact_id: str) -> None:
        store = self._require_store("delete")
        try:
            store.delete(self._user_id, contact_id)
        except Exception as e:
            logger.error("Error deleting contact %s for user %s: %s", contact_id, self._user_id, e)
            raise WriteFailure("Failed to delete contact.") from e
