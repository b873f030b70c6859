"""Application layer: controller, repository facade, ports, and DTOs. Depends only on domain."""

from contactdeck.application.controller import AppController
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
    IdentityUnavailable,
    StoreUnavailable,
    ValidationFailure,
    WriteFailure,
)
from contactdeck.application.ports import ContactStore, IdentityProvider, collection_path
from contactdeck.application.repository import ContactRepository
from contactdeck.application.session import SessionIdentity, resolve_session_identity

__all__ = [
    "ActionFailed",
    "AppController",
    "CallEnded",
    "CallStarted",
    "ContactDeleted",
    "ContactInput",
    "ContactRepository",
    "ContactSaved",
    "ContactStore",
    "ContactNotFound",
    "ContactsError",
    "IdentityProvider",
    "IdentityUnavailable",
    "Notice",
    "SessionIdentity",
    "StoreUnavailable",
    "ValidationFailed",
    "ValidationFailure",
    "WriteFailure",
    "collection_path",
    "resolve_session_identity",
]
