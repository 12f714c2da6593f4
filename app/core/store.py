"""Whole-record JSON persistence for tokens, memory and schedule files."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonFileStore:
    """One JSON object per file, read and replaced as a whole."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> dict[str, Any] | None:
        """Read the record.

        Returns:
            The decoded object, or None if the file is missing or unreadable
        """
        if not self._path.exists():
            return None

        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"[store] Failed to load {self._path.name}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"[store] {self._path.name} does not contain a JSON object")
            return None
        return data

    def save(self, record: dict[str, Any]) -> bool:
        """Replace the record atomically (write temp file, then rename).

        Args:
            record: JSON-serializable object to persist

        Returns:
            True on success, False if the write failed
        """
        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self._path.parent),
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, default=str)
            os.replace(tmp_path, self._path)
            logger.debug(f"[store] Saved {self._path.name}")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"[store] Failed to save {self._path.name}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            return False

    def clear(self) -> None:
        """Delete the record if present."""
        try:
            self._path.unlink(missing_ok=True)
            logger.debug(f"[store] Cleared {self._path.name}")
        except OSError as e:
            logger.error(f"[store] Failed to clear {self._path.name}: {e}")
