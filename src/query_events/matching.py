"""Structural query matching.

A pattern matches a candidate descriptor when every attribute named by the
pattern is *loosely* equal to the candidate's value for that attribute.
Attributes the pattern does not mention are ignored, so an empty pattern
matches any descriptor. Names take no part in structural matching: a name
only ever matches an identical name.

Loose equality is an explicit policy rather than a borrowed coercion table:

* values equal under ``==`` are equal;
* ``None`` only equals ``None``; a key missing from the candidate is ``None``;
* two strings are only equal when identical;
* otherwise, when both sides normalise to a number they are compared
  numerically. ``int`` and ``float`` normalise to themselves, ``bool`` to
  ``1``/``0`` and strings are stripped and parsed with ``float`` (``""``
  normalises to ``0``). Strings containing ``_`` and strings spelling a
  non-finite value (``"inf"``, ``"infinity"``, ``"nan"``) do not normalise;
* anything else is unequal. NaN never equals anything.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any

from .identifiers import Descriptor, Name, to_identifier


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Compare two attribute values with type-coercing equality."""

    if left is None or right is None:
        return left is right
    if left == right:
        return True
    if isinstance(left, str) and isinstance(right, str):
        return False
    left_number = _as_number(left)
    right_number = _as_number(right)
    if left_number is None or right_number is None:
        return False
    if math.isnan(left_number) or math.isnan(right_number):
        return False
    return left_number == right_number


def match_query(candidate: Any, pattern: Any) -> bool:
    """Return ``True`` when ``candidate`` satisfies ``pattern``.

    Both arguments may be raw values (``str`` or mapping) or resolved
    identifiers.
    """

    candidate = to_identifier(candidate)
    pattern = to_identifier(pattern)
    if candidate is pattern or candidate.raw is pattern.raw:
        return True
    if isinstance(candidate, Name) or isinstance(pattern, Name):
        return candidate == pattern
    return _match_attributes(candidate, pattern)


def _match_attributes(candidate: Descriptor, pattern: Descriptor) -> bool:
    for key in pattern.keys():
        if not loose_equals(candidate.get(key), pattern.get(key)):
            return False
    return True


__all__ = ["loose_equals", "match_query"]
