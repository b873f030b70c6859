"""Tests for the in-memory ContactStore, including delayed delivery."""

import pytest

from contactdeck.application import ContactNotFound
from contactdeck.infrastructure import InMemoryContactStore


def test_subscribe_pushes_initial_snapshot():
    store = InMemoryContactStore()
    pushes = []
    store.subscribe("u1", pushes.append)
    assert pushes == [[]]


def test_snapshots_keep_insertion_order():
    store = InMemoryContactStore()
    first = store.create("u1", {"name": "Ana", "phone_number": "1"})
    second = store.create("u1", {"name": "Bo", "phone_number": "2"})
    pushes = []
    store.subscribe("u1", pushes.append)
    assert [c.id for c in pushes[-1]] == [first, second]


def test_queued_pushes_wait_for_flush():
    store = InMemoryContactStore(deliver_immediately=False)
    pushes = []
    store.subscribe("u1", pushes.append)
    store.create("u1", {"name": "Ana", "phone_number": "1"})
    assert pushes == []

    assert store.flush() == 2
    assert pushes[0] == []
    assert [c.name for c in pushes[1]] == ["Ana"]
    assert store.flush() == 0


def test_flush_skips_unsubscribed_listeners():
    store = InMemoryContactStore(deliver_immediately=False)
    pushes = []
    unsubscribe = store.subscribe("u1", pushes.append)
    store.create("u1", {"name": "Ana", "phone_number": "1"})
    unsubscribe()
    assert store.flush() == 0
    assert pushes == []
    assert store.listener_count("u1") == 0


def test_merge_update_rejects_unknown_id():
    store = InMemoryContactStore()
    with pytest.raises(ContactNotFound):
        store.merge_update("u1", "c9", {"name": "Ana"})
    assert store.get("u1", "c9") is None


def test_listener_unsubscribing_another_during_push():
    store = InMemoryContactStore()
    later = []
    holder = {}

    def first(contacts):
        if contacts:
            holder["unsubscribe"]()

    store.subscribe("u1", first)
    holder["unsubscribe"] = store.subscribe("u1", later.append)
    store.create("u1", {"name": "Ana", "phone_number": "1"})

    assert later == [[]]
    assert store.listener_count("u1") == 1


def test_delete_unknown_id_does_not_notify():
    store = InMemoryContactStore()
    pushes = []
    store.subscribe("u1", pushes.append)
    store.delete("u1", "missing")
    assert len(pushes) == 1


def test_get_returns_copy():
    store = InMemoryContactStore()
    contact_id = store.create("u1", {"name": "Ana", "phone_number": "1"})
    store.get("u1", contact_id)["name"] = "changed"
    assert store.get("u1", contact_id)["name"] == "Ana"
    assert store.get("u2", contact_id) is None
