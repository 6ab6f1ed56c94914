"""Closing markers embedded in reservation system period names.

Restaurant staff annotate opening hours directly in their names:

    ``Dinner ##RESIDENTONLY``        period restricted to hotel residents
    ``Lunch %%Closed for a wedding%%`` guest-facing message, period closed
"""

import re

from tablebook.models.periods import ClosingMarkers

RESIDENT_ONLY_MARKER = "##RESIDENTONLY"

_RESIDENT_ONLY = re.compile(re.escape(RESIDENT_ONLY_MARKER), re.IGNORECASE)
_MESSAGE = re.compile(r"%%(.+?)%%", re.DOTALL)
_CLOSURE_WORDS = ("full", "closed", "private", "event", "reserved")


def looks_closed(name: str) -> bool:
    """Heuristic for period names that read as a closure."""
    lower = name.lower()
    return any(word in lower for word in _CLOSURE_WORDS)


def parse_closing_markers(
    name: str,
    default_message: str | None = None,
) -> ClosingMarkers:
    """Extract closing markers from a period name.

    Args:
        name: Raw period name from the reservation system
        default_message: Closeout message used when the period is resident
            only or reads as closed but carries no ``%%message%%`` of its own

    Returns:
        ClosingMarkers with the markers stripped from ``clean_name``
    """
    resident_only = False
    display_message: str | None = None
    clean = name

    if _RESIDENT_ONLY.search(name):
        resident_only = True
        clean = _RESIDENT_ONLY.sub("", clean)

    message = _MESSAGE.search(name)
    if message:
        display_message = message.group(1).strip()
        clean = _MESSAGE.sub("", clean)

    if display_message is None and default_message and (resident_only or looks_closed(name)):
        display_message = default_message

    return ClosingMarkers(
        resident_only=resident_only,
        display_message=display_message,
        clean_name=" ".join(clean.split()),
    )
