"""API tests. The lifespan (MongoDB) is not run; an in-memory controller is installed instead."""

import pytest
from fastapi.testclient import TestClient

from api.main import app
from contactdeck.application import AppController
from contactdeck.infrastructure import InMemoryContactStore, phone_normalizer

ANA = {
    "name": "Ana",
    "phone_number": "+12025551234",
    "profession": "Doctor",
    "location": "Lisbon",
    "primary_display_field": "profession",
}


class RejectingStore(InMemoryContactStore):
    def create(self, user_id, record):
        raise RuntimeError("permission denied")


def _install(store) -> AppController:
    controller = AppController(phone_normalizer=phone_normalizer("US"))
    controller.attach_store(store)
    controller.start("user-1")
    app.state.controller = controller
    return controller


@pytest.fixture
def client():
    _install(InMemoryContactStore())
    yield TestClient(app)
    app.state.controller = None


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_not_ready_without_controller():
    app.state.controller = None
    r = TestClient(app).get("/state")
    assert r.status_code == 503


def test_initial_state(client):
    body = client.get("/state").json()
    assert body["current_screen"] == "ContactsList"
    assert body["is_auth_ready"] is True
    assert body["is_loading_contacts"] is False
    assert body["contacts"] == []
    assert body["calling_contact"] is None


def test_create_contact_and_list(client):
    r = client.post("/contacts", json=ANA)
    assert r.status_code == 201
    assert r.json()["notice"] == {"level": "success", "message": "Contact added successfully!"}

    cards = client.get("/contacts").json()
    assert len(cards) == 1
    assert cards[0]["id"] == r.json()["id"]
    assert cards[0]["primary_label"] == "Ana (Doctor)"
    assert cards[0]["secondary_details"] == ["Lisbon"]
    assert cards[0]["initials"] == "A"


def test_create_requires_name_and_phone(client):
    r = client.post("/contacts", json={"name": "Ana"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Name and Phone Number are required."
    assert client.get("/contacts").json() == []


def test_update_and_delete(client):
    contact_id = client.post("/contacts", json=ANA).json()["id"]

    r = client.put(f"/contacts/{contact_id}", json={**ANA, "location": "Porto"})
    assert r.status_code == 200
    assert r.json()["notice"]["message"] == "Contact updated successfully!"
    assert client.get("/contacts").json()[0]["secondary_details"] == ["Porto"]

    r = client.delete(f"/contacts/{contact_id}")
    assert r.status_code == 200
    assert client.get("/contacts").json() == []


def test_search_query(client):
    client.post("/contacts", json=ANA)
    client.post("/contacts", json={"name": "Bo", "phone_number": "555"})
    assert [c["name"] for c in client.get("/contacts", params={"q": "lis"}).json()] == ["Ana"]
    assert [c["name"] for c in client.get("/contacts", params={"q": "(202) 555-1234"}).json()] == [
        "Ana"
    ]


def test_write_failure_returns_notice():
    _install(RejectingStore())
    try:
        r = TestClient(app).post("/contacts", json=ANA)
        assert r.status_code == 502
        assert r.json()["detail"] == "Failed to save contact. Please try again."
    finally:
        app.state.controller = None


def test_navigate(client):
    contact_id = client.post("/contacts", json=ANA).json()["id"]
    r = client.post("/navigate", json={"screen": "ContactForm", "contact_id": contact_id})
    assert r.status_code == 200
    assert client.get("/state").json()["selected_contact_for_form"] == contact_id

    assert client.post("/navigate", json={"screen": "ContactsList"}).status_code == 200
    assert client.post("/navigate", json={"screen": "ContactsList"}).status_code == 409
    assert client.post("/navigate", json={"screen": "ContactForm", "contact_id": "nope"}).status_code == 404


def test_call_flow(client):
    contact_id = client.post("/contacts", json=ANA).json()["id"]
    assert client.get("/calls/current").status_code == 404

    r = client.post("/calls", json={"contact_id": contact_id})
    assert r.status_code == 200
    assert r.json()["current_screen"] == "CallScreen"
    assert r.json()["calling_contact"]["primary_label"] == "Ana (Doctor)"
    assert r.json()["calling_contact"]["secondary_details"] == ["Lisbon", "+12025551234"]

    assert client.post("/calls", json={"contact_id": contact_id}).status_code == 409
    assert client.get("/calls/current").json()["id"] == contact_id

    r = client.post("/calls/answer")
    assert r.status_code == 200
    assert r.json()["answered"] is True
    assert r.json()["notice"] == {"level": "info", "message": "Call from Ana answered!"}
    assert client.get("/state").json()["current_screen"] == "ContactsList"

    assert client.post("/calls/decline").status_code == 409


def test_update_unknown_id_is_404(client):
    r = client.put("/contacts/made-up", json={"name": "Eve", "phone_number": "1"})
    assert r.status_code == 404
    assert r.json()["detail"] == "This contact no longer exists."
    assert client.get("/contacts").json() == []


def test_controller_lock_released_after_errors(client):
    from api import main as api_main

    assert client.put("/contacts/made-up", json={"name": "Eve", "phone_number": "1"}).status_code == 404
    assert client.post("/calls/answer").status_code == 409
    assert not api_main._controller_lock.locked()
    assert client.get("/state").status_code == 200
