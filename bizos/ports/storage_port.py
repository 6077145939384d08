"""StoragePort - key-value persistence for business state snapshots.

The store keeps one JSON snapshot per state key (``bizos_business_context``
by default) and rewrites it after every mutation, so the port is
synchronous. Adapters: in-memory dict, JSON files on local disk, Redis.

Values crossing the port are plain JSON data (dict/list/str/number/bool/
None). Adapters must hand back copies, never live references, and wrap
backend failures in StorageError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StoragePort(ABC):
    """Port: snapshot persistence."""

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Value under ``key``, or None when nothing was stored."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; a missing key is not an error."""

    @abstractmethod
    def list_keys(self, pattern: str) -> list[str]:
        """Keys matching a glob such as ``bizos_*`` (one per tenant snapshot)."""

    def close(self) -> None:  # noqa: B027 - optional hook, most adapters hold no connection
        """Release backend connections at shutdown."""
