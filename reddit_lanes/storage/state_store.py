"""Persisted key/value blobs backing lane order and settings."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class StateStore(Protocol):
    """
    A protocol for the small JSON blobs the client persists between sessions.

    Each key holds one independent JSON value, read once at startup and
    rewritten in full whenever the in-memory value changes.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """
        Return the stored value for ``key``.

        Args:
            key: Blob name (e.g. "subreddits", "appSettings")
            default: Value returned when the blob is absent or unreadable
        """
        ...

    def set(self, key: str, value: Any) -> None:  # noqa: A003
        """Replace the stored value for ``key`` with ``value``."""
        ...


class InMemoryStateStore:
    """StateStore kept in process memory; nothing survives a restart."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:  # noqa: A003
        # Stored encoded so callers never share mutable state with the store.
        self._data[key] = json.dumps(value)


class JsonFileStateStore:
    """StateStore writing one ``<key>.json`` file per blob in a directory."""

    def __init__(self, directory: str):
        """
        Initialize the store.

        Args:
            directory: Directory holding the blob files (created if missing)
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state blob {path}: {e}")
            return default

    def set(self, key: str, value: Any) -> None:  # noqa: A003
        path = self._path(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Persisted state blob {key} to {path}")
