"""Storage back ends for memory cards."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from typing import Any

from .helper import file_exists

STORAGE_SUFFIX = ".memory-card.json"


class Storage(ABC):
    """Where a memory card keeps its data."""

    @abstractmethod
    def save(self, payload: dict[str, Any]) -> None:
        """Persist the payload."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Return the persisted payload, or an empty dict."""

    @abstractmethod
    def destroy(self) -> None:
        """Remove the persisted payload."""


def resolve_storage_path(name: str) -> str:
    """Add the memory-card suffix if missing and make the path absolute."""
    if not name.endswith(STORAGE_SUFFIX):
        name += STORAGE_SUFFIX
    if not os.path.isabs(name):
        name = os.path.join(os.getcwd(), name)
    return name


class FileStorage(Storage):
    """Keeps the payload as JSON in a file."""

    def __init__(self, name: str) -> None:
        self.path = resolve_storage_path(name)

    def save(self, payload: dict[str, Any]) -> None:
        text = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write(text)

    def load(self) -> dict[str, Any]:
        if not file_exists(self.path):
            return {}
        with open(self.path, encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a JSON object")
        return data

    def destroy(self) -> None:
        os.remove(self.path)


class NopStorage(Storage):
    """Stores nothing."""

    def save(self, payload: dict[str, Any]) -> None:
        return None

    def load(self) -> dict[str, Any]:
        return {}

    def destroy(self) -> None:
        return None