"""Capped, persisted ledger of tool invocations."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from toolbridge.core.config import config as default_config
from toolbridge.core.prefs import PreferenceStore
from toolbridge.models import ExecutionHistoryEntry, ExecutionSource
from toolbridge.services.coercion import to_wire_text

logger = logging.getLogger("mcp-toolbridge")

_ENTRIES = TypeAdapter(list[ExecutionHistoryEntry])

HistoryListener = Callable[[ExecutionHistoryEntry], None]


class ExecutionHistory:
    """Append-only record of the most recent invocations (oldest evicted first).

    Appends are serialized by a lock because eviction and persistence must not
    interleave. The whole ledger is written to the preference store after every
    append; storage problems are logged and never fail the call being recorded.
    """

    def __init__(
        self,
        store: PreferenceStore | None = None,
        limit: int = default_config.history_limit,
        key: str = default_config.history_key,
    ) -> None:
        if limit < 1:
            raise ValueError("history limit must be positive")
        self._store = store if store is not None else PreferenceStore(None)
        self._limit = limit
        self._key = key
        self._entries: list[ExecutionHistoryEntry] = []
        self._lock = threading.Lock()
        self._listeners: list[HistoryListener] = []

    @property
    def limit(self) -> int:
        return self._limit

    def load(self) -> list[ExecutionHistoryEntry]:
        """Replace in-memory entries with the persisted ledger."""
        raw = self._store.get(self._key, [])
        try:
            entries = _ENTRIES.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Failed to load execution history: {e.error_count()} invalid entries")
            entries = []
        with self._lock:
            self._entries = entries[-self._limit:]
            return list(self._entries)

    def _save_locked(self) -> None:
        try:
            self._store.set(self._key, _ENTRIES.dump_python(self._entries, mode="json"))
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to save execution history: {e}")

    def append(self, entry: ExecutionHistoryEntry) -> ExecutionHistoryEntry:
        with self._lock:
            self._entries.append(entry)
            if len(self._entries) > self._limit:
                del self._entries[:len(self._entries) - self._limit]
            self._save_locked()
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(entry)
            except Exception:
                logger.exception("History listener failed")
        return entry

    def record(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None,
        result_text: str,
        succeeded: bool,
        source: ExecutionSource,
    ) -> ExecutionHistoryEntry:
        """Append an entry built from the arguments exactly as the caller supplied them."""
        parameters = []
        if isinstance(arguments, Mapping):
            parameters = [(str(k), "" if v is None else to_wire_text(v)) for k, v in arguments.items()]
        return self.append(ExecutionHistoryEntry(
            tool_name=tool_name,
            parameters=parameters,
            result_text=result_text,
            succeeded=succeeded,
            source=source,
        ))

    def entries(self) -> list[ExecutionHistoryEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._save_locked()

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """Call ``listener`` after each append; returns a function that unsubscribes."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
