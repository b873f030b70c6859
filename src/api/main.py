"""
FastAPI backend: exposes the contacts controller (state + actions) over REST.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

import threading
from contextlib import asynccontextmanager, contextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from contactdeck.application import (
    ActionFailed,
    AppController,
    Notice,
    ValidationFailed,
    resolve_session_identity,
)
from contactdeck.application.flow_loader import format_message
from contactdeck.domain import Contact, ContactDisplay
from contactdeck.infrastructure import (
    MongoContactStore,
    MongoIdentityProvider,
    ensure_channel_link_index,
    phone_normalizer,
)
from contactdeck.infrastructure.persistence.mongo_store import DEFAULT_APP_ID

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

# HTTP status per ActionFailed.kind
_FAILURE_STATUS = {
    "store_unavailable": 503,
    "not_found": 404,
    "write_failure": 502,
    "call_in_progress": 409,
    "invalid_transition": 409,
    "no_call": 409,
}


def _get_client() -> MongoClient:
    uri = os.environ.get("MONGO_URI", "mongodb://localhost:27017").strip()
    timeout_ms = int(os.environ.get("MONGO_TIMEOUT_MS", "5000").strip() or "5000")
    return MongoClient(
        uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
    )


def _build_controller(database) -> AppController:
    """Wire store, identity and controller for this process and start the contacts feed."""
    app_id = os.environ.get("CONTACTDECK_APP_ID", "").strip() or DEFAULT_APP_ID
    store = MongoContactStore(database, app_id=app_id)
    try:
        store.ensure_indexes()
        ensure_channel_link_index(database)
    except PyMongoError as e:
        logger.warning("Could not ensure indexes (store unavailable?): %s", e)
    region = os.environ.get("DEFAULT_PHONE_REGION", "").strip() or None
    controller = AppController(phone_normalizer=phone_normalizer(region))
    controller.attach_store(store)
    provider = MongoIdentityProvider(
        database, device_id=os.environ.get("CONTACTDECK_DEVICE_ID")
    )
    controller.attach_identity_provider(provider)
    identity = resolve_session_identity(provider, os.environ.get("INITIAL_AUTH_TOKEN"))
    controller.start(identity)
    return controller


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.controller = None
    client = _get_client()
    try:
        database = client[os.environ.get("MONGO_DB_NAME", "contactdeck").strip()]
        app.state.controller = _build_controller(database)
        yield
    finally:
        if getattr(app.state, "controller", None) is not None:
            app.state.controller.close()
        client.close()


app = FastAPI(title="ContactDeck API", lifespan=lifespan)


def _get_controller(request: Request) -> AppController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Contacts are not ready")
    return controller


# Sync endpoints run on the threadpool; the controller is single-threaded.
_controller_lock = threading.Lock()


@contextmanager
def _locked_controller(request: Request):
    controller = _get_controller(request)
    with _controller_lock:
        yield controller


def _render_notice(controller: AppController, notice: Notice | None) -> dict | None:
    if notice is None:
        return None
    return {
        "level": notice.level,
        "message": format_message(controller.flow, notice.message_id, notice.params),
    }


def _raise_for_result(controller: AppController, result) -> None:
    if isinstance(result, ValidationFailed):
        raise HTTPException(
            status_code=400,
            detail=format_message(controller.flow, "validation_required"),
        )
    if isinstance(result, ActionFailed):
        detail = result.reason
        if result.kind in ("store_unavailable", "write_failure", "not_found"):
            detail = _render_notice(controller, controller.last_notice)["message"]
        raise HTTPException(status_code=_FAILURE_STATUS.get(result.kind, 400), detail=detail)


# --- response models ---


class ContactBody(BaseModel):
    name: str = ""
    phone_number: str = ""
    email: str = ""
    location: str = ""
    profession: str = ""
    reference_contact: str = ""
    photo_uri: str = ""
    primary_display_field: str = "name"


class ContactCard(BaseModel):
    id: str | None = None
    name: str
    phone_number: str
    email: str = ""
    location: str = ""
    profession: str = ""
    reference_contact: str = ""
    photo_uri: str = ""
    primary_display_field: str = "name"
    primary_label: str
    secondary_details: list[str] = []
    secondary_line: str = ""
    initials: str = ""


class NavigateBody(BaseModel):
    screen: str
    contact_id: str | None = None


class CallBody(BaseModel):
    contact_id: str


def _card(contact: Contact, display: ContactDisplay) -> ContactCard:
    return ContactCard(
        id=contact.id,
        name=contact.name,
        phone_number=contact.phone_number,
        email=contact.email,
        location=contact.location,
        profession=contact.profession,
        reference_contact=contact.reference_contact,
        photo_uri=contact.photo_uri,
        primary_display_field=contact.primary_display_field.value,
        primary_label=display.primary_label,
        secondary_details=list(display.secondary_details),
        secondary_line=display.secondary_line,
        initials=display.initials,
    )


def _contact_or_404(controller: AppController, contact_id: str) -> Contact:
    contact = controller.find_contact(contact_id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: state ---


@app.get("/state")
def get_state(request: Request):
    with _locked_controller(request) as controller:
        form_contact = controller.selected_contact_for_form
        call_display = controller.call_view()
        return {
            "current_screen": controller.current_screen,
            "is_auth_ready": controller.is_auth_ready,
            "is_loading_contacts": controller.is_loading_contacts,
            "contacts": [_card(c, d) for c, d in controller.list_view()],
            "selected_contact_for_form": form_contact.id if form_contact else None,
            "calling_contact": (
                _card(controller.calling_contact, call_display) if call_display else None
            ),
            "notice": _render_notice(controller, controller.last_notice),
        }


# --- REST: contacts ---


@app.get("/contacts")
def list_contacts(request: Request, q: str = ""):
    with _locked_controller(request) as controller:
        return [_card(c, d) for c, d in controller.list_view(q)]


@app.post("/contacts")
def create_contact(body: ContactBody, request: Request):
    with _locked_controller(request) as controller:
        result = controller.save_contact(body.model_dump())
        _raise_for_result(controller, result)
        return JSONResponse(
            content={
                "id": result.contact_id,
                "notice": _render_notice(controller, controller.last_notice),
            },
            status_code=201,
        )


@app.put("/contacts/{contact_id}")
def update_contact(contact_id: str, body: ContactBody, request: Request):
    with _locked_controller(request) as controller:
        result = controller.save_contact(body.model_dump(), contact_id=contact_id)
        _raise_for_result(controller, result)
        return {"id": contact_id, "notice": _render_notice(controller, controller.last_notice)}


@app.delete("/contacts/{contact_id}")
def delete_contact(contact_id: str, request: Request):
    with _locked_controller(request) as controller:
        result = controller.delete_contact(contact_id)
        _raise_for_result(controller, result)
        return {"id": contact_id, "notice": _render_notice(controller, controller.last_notice)}


# --- REST: screens and calls ---


@app.post("/navigate")
def navigate(body: NavigateBody, request: Request):
    with _locked_controller(request) as controller:
        contact = _contact_or_404(controller, body.contact_id) if body.contact_id else None
        if not controller.navigate(body.screen, contact):
            raise HTTPException(
                status_code=409,
                detail=f"Cannot go from {controller.current_screen} to {body.screen}",
            )
        return {"current_screen": controller.current_screen}


@app.post("/calls")
def simulate_call(body: CallBody, request: Request):
    with _locked_controller(request) as controller:
        contact = _contact_or_404(controller, body.contact_id)
        result = controller.simulate_call(contact)
        _raise_for_result(controller, result)
        return {
            "current_screen": controller.current_screen,
            "calling_contact": _card(contact, controller.call_view()),
        }


@app.get("/calls/current")
def current_call(request: Request):
    with _locked_controller(request) as controller:
        display = controller.call_view()
        if display is None:
            raise HTTPException(status_code=404, detail="No call in progress")
        return _card(controller.calling_contact, display)


def _end_call_response(controller: AppController, result) -> dict:
    _raise_for_result(controller, result)
    return {
        "answered": result.answered,
        "current_screen": controller.current_screen,
        "notice": _render_notice(controller, controller.last_notice),
    }


@app.post("/calls/answer")
def answer_call(request: Request):
    with _locked_controller(request) as controller:
        return _end_call_response(controller, controller.answer_call())


@app.post("/calls/decline")
def decline_call(request: Request):
    with _locked_controller(request) as controller:
        return _end_call_response(controller, controller.decline_call())
