"""MongoDB implementation of ContactStore.
One document per contact: {_id: contact_id, app_id, user_id, <contact fields>, created_at, updated_at}.
Documents are scoped by (app_id, user_id), mirroring the {app_id}/users/{user_id}/contacts path.
The live feed is driven by writes made through this adapter: after each
committed write, the user's listeners receive a fresh full snapshot. Last write wins.
"""

import logging
import uuid
from datetime import datetime, timezone

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from contactdeck.application.errors import ContactNotFound
from contactdeck.application.ports import (
    ErrorCallback,
    SnapshotCallback,
    Unsubscribe,
    collection_path,
)
from contactdeck.domain import Contact

logger = logging.getLogger(__name__)

DEFAULT_APP_ID = "default-app-id"

# Keys owned by the adapter; never taken from a caller's record.
_RESERVED_KEYS = {"_id", "app_id", "user_id", "created_at", "updated_at"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_record(record: dict) -> dict:
    return {k: v for k, v in record.items() if k not in _RESERVED_KEYS}


class MongoContactStore:
    """Stores contact records in a MongoDB collection, scoped by app_id and user_id."""

    def __init__(
        self,
        database,
        app_id: str = DEFAULT_APP_ID,
        collection_name: str = "contacts",
    ) -> None:
        self._collection = database[collection_name]
        self._app_id = app_id
        self._listeners: dict[str, dict[int, tuple[SnapshotCallback, ErrorCallback | None]]] = {}
        self._next_token = 0

    def ensure_indexes(self) -> None:
        """Create the (app_id, user_id) lookup index if missing."""
        self._collection.create_index([("app_id", ASCENDING), ("user_id", ASCENDING)])

    def _scope(self, user_id: str) -> dict:
        return {"app_id": self._app_id, "user_id": user_id}

    def _fetch(self, user_id: str) -> list[Contact]:
        cursor = self._collection.find(self._scope(user_id)).sort("created_at", ASCENDING)
        return [Contact.from_record(doc["_id"], doc) for doc in cursor]

    def _push(self, user_id: str, token: int) -> None:
        entry = self._listeners.get(user_id, {}).get(token)
        if entry is None:
            return
        on_snapshot, on_error = entry
        try:
            snapshot = self._fetch(user_id)
        except PyMongoError as e:
            if on_error is not None:
                on_error(e)
            else:
                logger.error("Error reading %s: %s", collection_path(self._app_id, user_id), e)
            return
        on_snapshot(snapshot)

    def _notify(self, user_id: str) -> None:
        for token in list(self._listeners.get(user_id, {})):
            self._push(user_id, token)

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._listeners.setdefault(user_id, {})[token] = (on_snapshot, on_error)
        self._push(user_id, token)

        def unsubscribe() -> None:
            self._listeners.get(user_id, {}).pop(token, None)

        return unsubscribe

    def create(self, user_id: str, record: dict) -> str:
        contact_id = uuid.uuid4().hex
        now = _now()
        document = {
            **_clean_record(record),
            "_id": contact_id,
            **self._scope(user_id),
            "created_at": now,
            "updated_at": now,
        }
        self._collection.insert_one(document)
        logger.debug("Inserted %s/%s", collection_path(self._app_id, user_id), contact_id)
        self._notify(user_id)
        return contact_id

    def merge_update(self, user_id: str, contact_id: str, record: dict) -> None:
        result = self._collection.update_one(
            {"_id": contact_id, **self._scope(user_id)},
            {"$set": {**_clean_record(record), "updated_at": _now()}},
        )
        if not result.matched_count:
            raise ContactNotFound(contact_id)
        self._notify(user_id)

    def delete(self, user_id: str, contact_id: str) -> None:
        result = self._collection.delete_one({"_id": contact_id, **self._scope(user_id)})
        if result.deleted_count:
            self._notify(user_id)
