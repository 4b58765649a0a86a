"""License-plate normalization: canonical form for comparison and feed queries."""

from __future__ import annotations

import re

_SEPARATORS_RE = re.compile(r"[\s\-]+")


def normalize_plate(raw: str | None) -> str:
    """Normalize a license plate string.

    - Strips leading/trailing whitespace
    - Removes internal spaces and hyphens
    - Uppercases

    "12 ab-3456" → "12AB3456". Idempotent; ``None`` normalizes to "".
    """
    if not raw:
        return ""
    return _SEPARATORS_RE.sub("", raw.strip()).upper()


def plates_match(a: str | None, b: str | None) -> bool:
    """Two plates are the same vehicle iff their normalized forms are equal."""
    return normalize_plate(a) == normalize_plate(b)
