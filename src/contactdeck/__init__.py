"""
ContactDeck core: clean-architecture layout.

- domain: entities (Contact, DisplayField) and caller-ID display rules. No outer dependencies.
- application: AppController, ContactRepository facade, ports, DTOs, session bootstrap.
- infrastructure: adapters (InMemoryContactStore, MongoContactStore, MongoIdentityProvider).
"""

from contactdeck.application import (
    AppController,
    ContactInput,
    ContactRepository,
    ContactStore,
    IdentityProvider,
    SessionIdentity,
    resolve_session_identity,
)
from contactdeck.domain import Contact, ContactDisplay, DisplayField
from contactdeck.infrastructure import (
    InMemoryContactStore,
    MongoContactStore,
    MongoIdentityProvider,
)

__all__ = [
    "AppController",
    "Contact",
    "ContactDisplay",
    "ContactInput",
    "ContactRepository",
    "ContactStore",
    "DisplayField",
    "IdentityProvider",
    "InMemoryContactStore",
    "MongoContactStore",
    "MongoIdentityProvider",
    "SessionIdentity",
    "resolve_session_identity",
]
