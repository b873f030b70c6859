"""In-memory implementation of ContactStore (no DB). Order preserved by insertion."""

import uuid

from contactdeck.application.errors import ContactNotFound
from contactdeck.application.ports import ErrorCallback, SnapshotCallback, Unsubscribe
from contactdeck.domain import Contact


class InMemoryContactStore:
    """Stores records per user in memory and pushes full snapshots to listeners.

    With deliver_immediately=False, pushes are queued until flush(), which
    models the delay between a write and the live feed catching up.
    """

    def __init__(self, *, deliver_immediately: bool = True) -> None:
        self._records: dict[str, dict[str, dict]] = {}
        self._listeners: dict[str, dict[int, SnapshotCallback]] = {}
        self._next_token = 0
        self._queue: list[tuple[str, int, list[Contact]]] = []
        self.deliver_immediately = deliver_immediately

    def _snapshot(self, user_id: str) -> list[Contact]:
        records = self._records.get(user_id, {})
        return [Contact.from_record(cid, record) for cid, record in records.items()]

    def _push(self, user_id: str, token: int) -> None:
        listener = self._listeners.get(user_id, {}).get(token)
        if listener is None:
            return
        snapshot = self._snapshot(user_id)
        if self.deliver_immediately:
            listener(snapshot)
        else:
            self._queue.append((user_id, token, snapshot))

    def _notify(self, user_id: str) -> None:
        for token in list(self._listeners.get(user_id, {})):
            self._push(user_id, token)

    def flush(self) -> int:
        """Deliver queued pushes to listeners still subscribed. Returns how many were delivered."""
        queue, self._queue = self._queue, []
        delivered = 0
        for user_id, token, snapshot in queue:
            listener = self._listeners.get(user_id, {}).get(token)
            if listener is None:
                continue
            listener(snapshot)
            delivered += 1
        return delivered

    def subscribe(
        self,
        user_id: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._listeners.setdefault(user_id, {})[token] = on_snapshot
        self._push(user_id, token)

        def unsubscribe() -> None:
            self._listeners.get(user_id, {}).pop(token, None)

        return unsubscribe

    def create(self, user_id: str, record: dict) -> str:
        contact_id = uuid.uuid4().hex
        self._records.setdefault(user_id, {})[contact_id] = dict(record)
        self._notify(user_id)
        return contact_id

    def merge_update(self, user_id: str, contact_id: str, record: dict) -> None:
        stored = self._records.get(user_id, {}).get(contact_id)
        if stored is None:
            raise ContactNotFound(contact_id)
        stored.update(record)
        self._notify(user_id)

    def delete(self, user_id: str, contact_id: str) -> None:
        if self._records.get(user_id, {}).pop(contact_id, None) is None:
            return
        self._notify(user_id)

    def get(self, user_id: str, contact_id: str) -> dict | None:
        record = self._records.get(user_id, {}).get(contact_id)
        return dict(record) if record is not None else None

    def listener_count(self, user_id: str) -> int:
        return len(self._listeners.get(user_id, {}))
