"""In-memory StoragePort, used for ephemeral sessions and tests."""

from __future__ import annotations

import copy
import fnmatch
from typing import Any

from bizos.ports.storage_port import StoragePort


class InMemoryStorage(StoragePort):
    """Dict-backed storage. Values are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def list_keys(self, pattern: str) -> list[str]:
        return sorted(k for k in self._data if fnmatch.fnmatchcase(k, pattern))
