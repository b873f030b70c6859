"""Error taxonomy shared by the application and its adapters."""


class ContactsError(Exception):
    """Base class for every failure the controller turns into a notice."""


class IdentityUnavailable(ContactsError):
    """Sign-in failed. Startup falls back to the next identity source."""


class StoreUnavailable(ContactsError):
    """No store or no user id when an operation was attempted."""


class WriteFailure(ContactsError):
    """The store rejected a create, update or delete."""


class ValidationFailure(ContactsError, ValueError):
    """Required fields are missing at submission time."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Required fields missing: {', '.join(self.missing)}.")


class ContactNotFound(WriteFailure):
    """An update named a contact id the store never assigned for this user."""

    def __init__(self, contact_id: str) -> None:
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id} not found.")
