"""Location categories and the keyword classifier used when none is stored."""

from __future__ import annotations

import re
import unicodedata
from typing import Sequence

CATEGORIES: tuple[str, ...] = (
    "food",
    "accommodation",
    "interesting",
    "cafe",
    "bar",
    "shopping",
)
DEFAULT_CATEGORY = "interesting"

# Checked in order; the first category with a matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[str, Sequence[str]], ...] = (
    ("accommodation", ("hotel", "hostel", "apartment", "airbnb", "homestay", "guesthouse", "resort")),
    ("bar", ("bar", "pub", "beer", "cocktail", "brewery", "bia")),
    ("cafe", ("cafe", "café", "coffee", "cà phê")),
    ("shopping", ("shop", "shopping", "mall", "market", "store", "boutique", "chợ")),
    ("food", ("restaurant", "food", "bánh", "quán", "phở", "pho", "cơm", "bún", "noodle")),
)


def _keyword_pattern(keywords: Sequence[str]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(unicodedata.normalize("NFC", word)) for word in keywords)
    return re.compile(rf"\b(?:{alternatives})(?:s|es)?\b")


_PATTERNS = tuple((category, _keyword_pattern(words)) for category, words in CATEGORY_KEYWORDS)


def is_valid_category(value: object) -> bool:
    return isinstance(value, str) and value in CATEGORIES


def classify_category(text: str | None) -> str:
    """Guess a category from free text.

    ``text`` is lower-cased and NFC-normalised before matching so decomposed
    Vietnamese diacritics compare equal to the keyword list.
    """

    if not text:
        return DEFAULT_CATEGORY
    normalized = unicodedata.normalize("NFC", text.lower())
    for category, pattern in _PATTERNS:
        if pattern.search(normalized):
            return category
    return DEFAULT_CATEGORY


def resolve_category(value: object, description: str | None) -> str:
    """Return ``value`` when it is a known category, else classify ``description``."""

    if is_valid_category(value):
        return value  # type: ignore[return-value]
    return classify_category(description)
