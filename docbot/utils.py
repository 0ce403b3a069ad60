"""Shared utilities used across docbot."""

import re

_MOBILE = re.compile(r"^[6-9]\d{9}$")


def digits_only(value: str) -> str:
    """Strip everything except digits.

    Examples:
        >>> digits_only("+91 98765-43210")
        '919876543210'
    """
    return re.sub(r"\D", "", value)


def normalize_phone(value: str) -> str:
    """Reduce free text to its trailing 10 digits.

    Country code and trunk prefixes fall away because only the last ten
    digits are kept.

    Examples:
        >>> normalize_phone("+91 98765 43210")
        '9876543210'
        >>> normalize_phone("098765-43210")
        '9876543210'
    """
    return digits_only(value)[-10:]


def is_valid_mobile(value: str) -> bool:
    """Check for a bare 10-digit Indian mobile number starting with 6-9."""
    return bool(_MOBILE.match(value or ""))


def short_ref(identifier: str, length: int = 8) -> str:
    """Truncate an identifier for display in chat replies."""
    return identifier[:length]
