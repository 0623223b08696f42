"""A key/value store for bot state that can be saved to a storage back end."""

from __future__ import annotations

import threading
from typing import Any

from .storage import FileStorage, Storage


class MemoryCard:
    """Thread-safe key/value store backed by a storage."""

    def __init__(self, name: str, storage: Storage | None = None) -> None:
        self._storage = storage if storage is not None else FileStorage(name)
        self._payload: dict[str, Any] = {}
        self._lock = threading.Lock()

    def _get(self, key: str) -> Any:
        with self._lock:
            return self._payload.get(key)

    def get_int(self, key: str) -> int:
        """Return the integer at key, or 0 if absent or not an integer."""
        value = self._get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return 0

    def get_string(self, key: str) -> str:
        """Return the string at key, or an empty string if absent or not a string."""
        value = self._get(key)
        return value if isinstance(value, str) else ""

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._payload[key] = value

    def set_int(self, key: str, value: int) -> None:
        self.set(key, value)

    def set_string(self, key: str, value: str) -> None:
        self.set(key, value)

    def clear(self) -> None:
        with self._lock:
            self._payload = {}

    def delete(self, key: str) -> None:
        with self._lock:
            self._payload.pop(key, None)

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._payload

    def load(self) -> None:
        """Merge the stored payload into this card."""
        for key, value in self._storage.load().items():
            self.set(key, value)

    def save(self) -> None:
        with self._lock:
            snapshot = dict(self._payload)
        self._storage.save(snapshot)

    def destroy(self) -> None:
        """Clear the card and remove its stored payload."""
        self.clear()
        self._storage.destroy()