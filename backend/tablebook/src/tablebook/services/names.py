"""Guest name and contact normalization.

Comparison forms used by resident matching and duplicate detection. All
matching is case-insensitive on trimmed values; phone numbers compare on
their last nine digits so that ``+44 7700 900123`` and ``07700 900123`` are
the same number.
"""

import re
from typing import NamedTuple

PHONE_SUFFIX_DIGITS = 9

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")


class NameParts(NamedTuple):
    """A free-text name split for comparison. ``last`` is lower-cased."""

    first: str
    last: str


def split_name(name: str) -> NameParts:
    """Split a full name into first and last name.

    The final whitespace-delimited token is the last name and the rest is
    the first name. A single token yields an empty first name; an empty or
    whitespace-only name yields two empty strings.
    """
    parts = name.split()
    if not parts:
        return NameParts("", "")
    if len(parts) == 1:
        return NameParts("", parts[0].lower())
    return NameParts(" ".join(parts[:-1]), parts[-1].lower())


def normalise_phone(phone: str | None) -> str:
    """Reduce a phone number to its comparable digit suffix.

    Non-digits are dropped; nine or more digits keep the last nine,
    otherwise whatever digits remain.
    """
    if not phone:
        return ""
    digits = _NON_DIGITS.sub("", phone)
    if len(digits) >= PHONE_SUFFIX_DIGITS:
        return digits[-PHONE_SUFFIX_DIGITS:]
    return digits


def same_text(a: str | None, b: str | None) -> bool:
    """Case-insensitive, trimmed equality where empty never matches."""
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    return bool(left) and left == right


def same_phone(a: str | None, b: str | None) -> bool:
    """Phone suffix equality where empty never matches."""
    left = normalise_phone(a)
    return bool(left) and left == normalise_phone(b)


def is_valid_name(name: str | None) -> bool:
    return len((name or "").strip()) >= 2


def is_valid_email(email: str | None) -> bool:
    return bool(_EMAIL_PATTERN.match((email or "").strip()))


def is_valid_phone(phone: str | None) -> bool:
    """Optional phone: blank is valid, otherwise 7 to 15 digits."""
    if not phone or not phone.strip():
        return True
    return 7 <= len(_NON_DIGITS.sub("", phone)) <= 15
