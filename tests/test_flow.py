"""Tests for the YAML screen flow loader, transitions and message catalog."""

import pytest

from contactdeck.application.flow_loader import format_message, get_flow_path, load_flow
from contactdeck.application.screens import (
    CallScreen,
    ContactForm,
    ContactsList,
    screen_name,
    transition,
)
from contactdeck.domain import Contact


def test_load_flow():
    path = get_flow_path()
    assert path.name == "screens.yaml"
    flow = load_flow(path)
    assert flow["start_screen"] == "ContactsList"
    screen_ids = [s["id"] for s in flow["screens"]]
    assert set(screen_ids) == {"ContactsList", "ContactForm", "CallScreen"}
    assert "contact_added" in flow["messages"]


def test_flow_path_env_override(tmp_path, monkeypatch):
    custom = tmp_path / "custom.yaml"
    monkeypatch.setenv("SCREEN_FLOW_PATH", str(custom))
    assert get_flow_path() == custom.resolve()


@pytest.mark.parametrize(
    "current,event,expected",
    [
        ("ContactsList", "ADD", "ContactForm"),
        ("ContactsList", "EDIT", "ContactForm"),
        ("ContactsList", "SIMULATE_CALL", "CallScreen"),
        ("ContactForm", "SAVE", "ContactsList"),
        ("ContactForm", "DELETE", "ContactsList"),
        ("ContactForm", "BACK", "ContactsList"),
        ("CallScreen", "ANSWER", "ContactsList"),
        ("CallScreen", "DECLINE", "ContactsList"),
        ("CallScreen", "BACK", None),
        ("ContactForm", "SIMULATE_CALL", None),
        ("Settings", "BACK", None),
    ],
)
def test_transition(current, event, expected):
    assert transition(load_flow(), current, event) == expected


def test_load_flow_invalid_start_screen(tmp_path):
    yaml_content = """
start_screen: missing
screens:
  - id: ContactsList
    edges: []
"""
    (tmp_path / "flow.yaml").write_text(yaml_content)
    with pytest.raises(ValueError, match="start_screen.*must be a screen id"):
        load_flow(tmp_path / "flow.yaml")


def test_load_flow_unknown_next_screen(tmp_path):
    yaml_content = """
start_screen: ContactsList
screens:
  - id: ContactsList
    edges:
      - event: ADD
        next: Nowhere
"""
    (tmp_path / "flow.yaml").write_text(yaml_content)
    with pytest.raises(ValueError, match="unknown screen 'Nowhere'"):
        load_flow(tmp_path / "flow.yaml")


def test_load_flow_duplicate_event(tmp_path):
    yaml_content = """
start_screen: ContactsList
screens:
  - id: ContactsList
    edges:
      - event: BACK
        next: ContactsList
      - event: BACK
        next: ContactsList
"""
    (tmp_path / "flow.yaml").write_text(yaml_content)
    with pytest.raises(ValueError, match="more than one edge"):
        load_flow(tmp_path / "flow.yaml")


def test_load_flow_without_messages_gets_empty_catalog(tmp_path):
    (tmp_path / "flow.yaml").write_text("start_screen: A\nscreens:\n  - id: A\n")
    flow = load_flow(tmp_path / "flow.yaml")
    assert flow["messages"] == {}


def test_format_message():
    flow = load_flow()
    assert format_message(flow, "call_answered", {"name": "Ana"}) == "Call from Ana answered!"
    assert format_message(flow, "validation_required") == "Name and Phone Number are required."
    assert format_message(flow, "no_such_message") == "no_such_message"


def test_screen_name():
    contact = Contact(id="c1", name="Ana", phone_number="1")
    assert screen_name(ContactsList()) == "ContactsList"
    assert screen_name(ContactForm()) == "ContactForm"
    assert screen_name(CallScreen(contact=contact)) == "CallScreen"
    with pytest.raises(TypeError):
        screen_name("ContactsList")
