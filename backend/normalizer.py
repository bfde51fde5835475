"""Text canonicalization for index keys."""

from __future__ import annotations

import unicodedata
from typing import Optional


def normalize(text: Optional[str]) -> str:
    """Fold text into a comparison key.

    Accents are decomposed and dropped, letters lower-cased, and anything
    that is not a letter or number in some script is removed:
    "Café au lait!" -> "cafeaulait".
    """
    if not text:
        return ""
    nfd = unicodedata.normalize("NFD", text).lower()
    return "".join(c for c in nfd if unicodedata.category(c)[0] in ("L", "N"))
