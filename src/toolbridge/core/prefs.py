"""Small JSON-file key/value store for settings and the execution history."""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger("mcp-toolbridge")

APP_DIR_NAME = "ToolBridge"
PREFS_FILE_NAME = "prefs.json"


def default_data_dir() -> str:
    """Per-platform application data directory."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
    elif sys.platform == "darwin":
        base = os.path.expanduser("~/Library/Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
    return os.path.join(base, APP_DIR_NAME)


class PreferenceStore:
    """Key/value preferences persisted as a single JSON object.

    With ``path=None`` values live in memory only, which is what tests and
    throwaway registries use.
    """

    def __init__(self, path: str | os.PathLike | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._values: dict[str, Any] = {}
        self._load()

    @classmethod
    def in_data_dir(cls, data_dir: str | None = None) -> "PreferenceStore":
        return cls(Path(data_dir or default_data_dir()) / PREFS_FILE_NAME)

    @property
    def path(self) -> Path | None:
        return self._path

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preferences at {self._path}: {e}")
            return
        if isinstance(data, dict):
            self._values = data
        else:
            logger.warning(f"Ignoring preferences at {self._path}: expected a JSON object")

    def _flush_locked(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=".prefs-", suffix=".json", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._values, fh, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = value
            self._flush_locked()

    def delete(self, key: str) -> None:
        with self._lock:
            if key in self._values:
                del self._values[key]
                self._flush_locked()

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, bool(value))

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values
