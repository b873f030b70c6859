"""Infrastructure layer: concrete implementations of application ports."""

from contactdeck.infrastructure.identity import (
    CHANNEL_ANONYMOUS,
    CHANNEL_CUSTOM_TOKEN,
    MongoIdentityProvider,
    ensure_channel_link_index,
    get_or_create_user_id,
)
from contactdeck.infrastructure.memory_store import InMemoryContactStore
from contactdeck.infrastructure.persistence.mongo_store import MongoContactStore
from contactdeck.infrastructure.phone import normalize_phone, phone_normalizer

__all__ = [
    "CHANNEL_ANONYMOUS",
    "CHANNEL_CUSTOM_TOKEN",
    "InMemoryContactStore",
    "MongoContactStore",
    "MongoIdentityProvider",
    "ensure_channel_link_index",
    "get_or_create_user_id",
    "normalize_phone",
    "phone_normalizer",
]
