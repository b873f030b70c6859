"""Phone number normalization to E.164, used to match numbers in search."""

from collections.abc import Callable

import phonenumbers


def normalize_phone(raw: str, default_region: str | None = None) -> str | None:
    """Parse and return E.164 form of the number, or None if invalid.

    default_region applies to numbers without a leading + (e.g. "202 555 1234"
    with "US"). A number that carries its own country code ignores it.
    """
    if not raw or not str(raw).strip():
        return None
    raw = str(raw).strip()
    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        return None
    if not phonenumbers.is_valid_number(parsed):
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def phone_normalizer(default_region: str | None = None) -> Callable[[str], str | None]:
    """Return a one-argument normalizer bound to default_region, for search."""

    def normalize(raw: str) -> str | None:
        return normalize_phone(raw, default_region=default_region)

    return normalize
