"""Whole-file access to the backing KML document."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ..core.exceptions import StorageError
from ..utils import detect_encoding, ensure_directory

logger = logging.getLogger(__name__)


class KmlFileStorage:
    """Read and write the KML file in full.

    Writes go straight to ``path`` unless ``atomic`` is set, in which case the
    text is written to a sibling temporary file and swapped in with
    :func:`os.replace`.
    """

    def __init__(self, path: Path | str, *, encoding: str = "utf-8-sig", atomic: bool = False):
        self.path = Path(path)
        self.encoding = encoding
        self.atomic = atomic

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> str:
        encoding = self.encoding
        try:
            if encoding == "auto":
                encoding = detect_encoding(self.path)
            return self.path.read_text(encoding=encoding)
        except FileNotFoundError as exc:
            raise StorageError(f"KML file not found: {self.path}", details={"path": str(self.path)}) from exc
        except (OSError, UnicodeDecodeError, LookupError) as exc:
            raise StorageError(
                f"Could not read KML file: {self.path}",
                details={"path": str(self.path), "reason": str(exc)},
            ) from exc

    def write(self, text: str) -> None:
        try:
            if self.atomic:
                self._write_atomic(text)
            else:
                self.path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise StorageError(
                f"Could not write KML file: {self.path}",
                details={"path": str(self.path), "reason": str(exc)},
            ) from exc
        logger.debug("Wrote %d characters to %s", len(text), self.path)

    def _write_atomic(self, text: str) -> None:
        directory = ensure_directory(self.path.parent)
        fd, temp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
