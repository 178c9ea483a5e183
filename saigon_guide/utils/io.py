"""File IO utilities."""

from __future__ import annotations

import codecs
import os
import re
from pathlib import Path

import chardet

_DECLARED_ENCODING = re.compile(rb"""^<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")


def detect_encoding(path: os.PathLike[str] | str) -> str:
    """Guess the text encoding of the XML file at ``path``.

    A byte order mark or an ``encoding`` in the XML declaration wins; chardet
    is only asked when the file declares nothing. Plain ASCII reads as UTF-8.
    """

    raw = Path(path).read_bytes()
    if raw.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    declared = _DECLARED_ENCODING.match(raw)
    if declared:
        return declared.group(1).decode("ascii")
    guessed = chardet.detect(raw).get("encoding")
    if not guessed or guessed.lower() == "ascii":
        return "utf-8"
    return guessed


def ensure_directory(path: os.PathLike[str] | str) -> Path:
    """Create ``path`` and its parents if needed."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory
