"""Identity layer: resolve a sign-in method + external id to a stable user_id.

Each user is an account document ({_id: user_id, created_at, anonymous}). A channel
link ({channel, external_id, user_id}) binds a sign-in credential to that account:
a custom token through the custom_token channel, an installation id through the
anonymous channel. Custom tokens are stored hashed.
"""

import hashlib
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from contactdeck.application.errors import IdentityUnavailable
from contactdeck.application.ports import Unsubscribe

logger = logging.getLogger(__name__)

# Channel name constants for extensibility (oauth providers, etc. later).
CHANNEL_CUSTOM_TOKEN = "custom_token"
CHANNEL_ANONYMOUS = "anonymous"

ACCOUNTS = "accounts"
CHANNEL_LINKS = "channel_links"


def ensure_channel_link_index(database) -> None:
    """Create unique index on channel_links(channel, external_id) if missing."""
    database[CHANNEL_LINKS].create_index(
        [("channel", ASCENDING), ("external_id", ASCENDING)], unique=True
    )


def _create_account(database, *, anonymous: bool) -> str:
    user_id = str(uuid.uuid4())
    database[ACCOUNTS].insert_one(
        {"_id": user_id, "created_at": datetime.now(timezone.utc), "anonymous": anonymous}
    )
    return user_id


def get_or_create_user_id(
    database,
    channel: str,
    external_id: str,
    *,
    anonymous: bool = False,
) -> tuple[str, bool]:
    """Resolve (channel, external_id) to a stable user_id.

    Returns (user_id, is_new_account). If a link exists, returns the linked account id.
    Otherwise creates an account, links it, and returns the new id. When two sessions
    race on the same link, the loser drops its account and returns the winner's id.
    Call ensure_channel_link_index at startup so links are unique.
    """
    external_id = (external_id or "").strip()
    if not external_id:
        raise ValueError("external_id must be non-empty")
    channel = (channel or "").strip()
    if not channel:
        raise ValueError("channel must be non-empty")

    links = database[CHANNEL_LINKS]
    key = {"channel": channel, "external_id": external_id}
    link = links.find_one(key)
    if link is not None:
        return (link["user_id"], False)

    user_id = _create_account(database, anonymous=anonymous)
    try:
        links.insert_one({**key, "user_id": user_id, "created_at": datetime.now(timezone.utc)})
    except DuplicateKeyError:
        database[ACCOUNTS].delete_one({"_id": user_id})
        link = links.find_one(key)
        if link is None:
            raise
        return (link["user_id"], False)
    return (user_id, True)


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class MongoIdentityProvider:
    """IdentityProvider backed by the accounts and channel_links collections."""

    def __init__(self, database, *, device_id: str | None = None) -> None:
        self._database = database
        self._device_id = (device_id or "").strip() or None
        self._listeners: dict[int, Callable[[str], None]] = {}
        self._next_token = 0

    def sign_in_with_custom_token(self, token: str) -> str:
        token = (token or "").strip()
        if not token:
            raise IdentityUnavailable("Custom token must be non-empty.")
        try:
            user_id, is_new = get_or_create_user_id(
                self._database, CHANNEL_CUSTOM_TOKEN, _token_key(token)
            )
        except (ValueError, PyMongoError) as e:
            raise IdentityUnavailable(f"Custom token sign-in failed: {e}") from e
        if is_new:
            logger.info("Created account %s for custom token", user_id)
        self._settle(user_id)
        return user_id

    def sign_in_anonymously(self) -> str:
        try:
            if self._device_id:
                user_id, _ = get_or_create_user_id(
                    self._database, CHANNEL_ANONYMOUS, self._device_id, anonymous=True
                )
            else:
                user_id = _create_account(self._database, anonymous=True)
        except PyMongoError as e:
            raise IdentityUnavailable(f"Anonymous sign-in failed: {e}") from e
        self._settle(user_id)
        return user_id

    def on_identity_change(self, callback: Callable[[str], None]) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = callback

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def _settle(self, user_id: str) -> None:
        for callback in list(self._listeners.values()):
            callback(user_id)
