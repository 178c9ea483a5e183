"""Best-effort field extraction from free-text placemark descriptions.

Legacy placemarks exported from Google My Maps keep their URL, phone number
and rating inside the description HTML. These helpers pull those values out
and produce a cleaned, tag-free description. Matches are taken from the
raw text first, so a value may be extracted from markup that the cleaned
description no longer shows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

URL_PATTERN = re.compile(r"https?://[^\s<>\"]+")
# Optional country code, 2-3 digit area code (parens allowed), then 3-4 and 4
# digit groups. Covers 555-123-4567 as well as 028 1234 5678.
PHONE_PATTERN = re.compile(r"(?:\+\d{1,3}\s?)?\(?\d{2,3}\)?[\s.-]?\d{3,4}[\s.-]?\d{4}")
RATING_PATTERN = re.compile(r"Rating:\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class DescriptionFields:
    description: str = ""
    description_url: str | None = None
    phone_number: str | None = None
    rating: float | None = None


def find_url(text: str) -> str | None:
    match = URL_PATTERN.search(text)
    return match.group(0) if match else None


def find_phone_number(text: str) -> str | None:
    match = PHONE_PATTERN.search(text)
    return match.group(0) if match else None


def find_rating(text: str) -> float | None:
    match = RATING_PATTERN.search(text)
    return float(match.group(1)) if match else None


def clean_description(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    return _WHITESPACE_PATTERN.sub(" ", _TAG_PATTERN.sub("", text)).strip()


def extract_description_fields(raw: str | None) -> DescriptionFields:
    """Run every heuristic over ``raw``; each one is optional.

    Matches in the raw text win. When tags split a value the cleaned text is
    searched too, so a placemark rebuilt from the cleaned description decodes
    to the same fields.
    """

    if not raw:
        return DescriptionFields()
    cleaned = clean_description(raw)
    rating = find_rating(raw)
    return DescriptionFields(
        description=cleaned,
        description_url=find_url(raw) or find_url(cleaned),
        phone_number=find_phone_number(raw) or find_phone_number(cleaned),
        rating=rating if rating is not None else find_rating(cleaned),
    )
