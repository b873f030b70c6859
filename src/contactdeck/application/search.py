"""Contact list search (case-insensitive, partial)."""

from collections.abc import Callable, Iterable

from contactdeck.domain import Contact

PhoneNormalizer = Callable[[str], str | None]


def _searchable(contact: Contact) -> tuple[str, ...]:
    return (
        contact.name,
        contact.profession,
        contact.reference_contact,
        contact.location,
        contact.phone_number,
    )


def matches(
    contact: Contact,
    query: str,
    phone_normalizer: PhoneNormalizer | None = None,
) -> bool:
    """True if query is a substring of name, profession, reference, location or phone.

    With a phone_normalizer, two differently formatted numbers that normalize
    to the same value also match.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return True
    if any(needle in value.lower() for value in _searchable(contact)):
        return True
    if phone_normalizer is None or not contact.phone_number:
        return False
    query_phone = phone_normalizer(needle)
    if not query_phone:
        return False
    return phone_normalizer(contact.phone_number) == query_phone


def filter_contacts(
    contacts: Iterable[Contact],
    query: str,
    phone_normalizer: PhoneNormalizer | None = None,
) -> list[Contact]:
    """Return contacts matching query; an empty query returns all of them."""
    return [c for c in contacts if matches(c, query, phone_normalizer)]
