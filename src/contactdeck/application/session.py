"""Session identity bootstrap: custom token, then anonymous, then a local random id."""

import logging
import uuid
from dataclasses import dataclass

from contactdeck.application.errors import IdentityUnavailable
from contactdeck.application.ports import IdentityProvider

logger = logging.getLogger(__name__)

METHOD_CUSTOM_TOKEN = "custom_token"
METHOD_ANONYMOUS = "anonymous"
METHOD_LOCAL = "local"


@dataclass(frozen=True)
class SessionIdentity:
    """The user id scoping every store path for this session. Immutable once settled."""

    user_id: str
    method: str


def resolve_session_identity(
    provider: IdentityProvider | None,
    custom_token: str | None = None,
) -> SessionIdentity:
    """Settle exactly one identity. Never raises.

    With a custom token, sign in with it and fall back to anonymous sign-in on
    failure. When every sign-in fails (or there is no provider), use a locally
    generated id so the app stays usable.
    """
    token = (custom_token or "").strip()
    if provider is not None:
        if token:
            try:
                user_id = provider.sign_in_with_custom_token(token)
                logger.info("User authenticated with custom token: %s", user_id)
                return SessionIdentity(user_id=user_id, method=METHOD_CUSTOM_TOKEN)
            except IdentityUnavailable as e:
                logger.warning("Custom token sign-in failed, trying anonymous: %s", e)
        try:
            user_id = provider.sign_in_anonymously()
            logger.info("User authenticated anonymously: %s", user_id)
            return SessionIdentity(user_id=user_id, method=METHOD_ANONYMOUS)
        except IdentityUnavailable as e:
            logger.warning("Anonymous sign-in failed: %s", e)
    user_id = str(uuid.uuid4())
    logger.warning("No user authenticated, using random id %s.", user_id)
    return SessionIdentity(user_id=user_id, method=METHOD_LOCAL)
