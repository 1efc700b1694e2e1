"""
Text helpers shared by the location matchers.

All helpers are pure and total: any string in, a string (or list) out.
"""

import re
from typing import List

_WHITESPACE = re.compile(r"\s+")
# Whole words only, so "Halls" and "Centerpiece" survive
_GENERIC_WORDS = re.compile(r"\b(?:building|center|hall)\b", re.IGNORECASE)


def normalize(text: str) -> str:
    """Trim, lowercase and collapse whitespace runs to a single space."""
    return _WHITESPACE.sub(" ", text).strip().lower()


def strip_generic_words(text: str) -> str:
    """
    Normalize `text` and drop the words "building", "center" and "hall".

    >>> strip_generic_words("ECSW  Building")
    'ecsw'
    """
    return normalize(_GENERIC_WORDS.sub(" ", text))


def tokens(text: str) -> List[str]:
    return text.split()


def decimal_places(value: float) -> int:
    """Number of digits after the decimal point in the shortest repr of `value`."""
    text = repr(float(value))
    if "e" in text or "E" in text:
        # 1e-07 style reprs only happen for tiny offsets, treat them as precise
        mantissa, _, exponent = text.lower().partition("e")
        digits = len(mantissa.partition(".")[2].rstrip("0"))
        return max(0, digits - int(exponent))
    return len(text.partition(".")[2].rstrip("0"))
