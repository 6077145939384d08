"""Redis implementation of StoragePort for business state snapshots.

- Snapshot JSON-encoded under a single key per session
- Backend failures surface as StorageError
"""

from __future__ import annotations

import json
from typing import Any

import redis

from bizos.ports.storage_port import StoragePort
from bizos.shared.errors import StorageError


class RedisStorageAdapter(StoragePort):
    """Redis adapter implementing the StoragePort interface.

    The client is created lazily on first use so the adapter can be
    constructed at import/composition time without a live server.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        *,
        client: redis.Redis | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(self._redis_url, decode_responses=False)
        return self._client

    def put(self, key: str, value: Any) -> None:
        """Store a value as JSON."""
        encoded = json.dumps(value).encode("utf-8")
        try:
            self._get_client().set(key, encoded)
        except redis.RedisError as exc:
            raise StorageError(key, f"Redis write failed for {key}: {exc}") from exc

    def get(self, key: str) -> Any | None:
        """Retrieve a value by key, returning None if absent."""
        try:
            raw = self._get_client().get(key)
        except redis.RedisError as exc:
            raise StorageError(key, f"Redis read failed for {key}: {exc}") from exc
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageError(key, f"Corrupt JSON in Redis for {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        """Delete a value by key (no-op if absent)."""
        try:
            self._get_client().delete(key)
        except redis.RedisError as exc:
            raise StorageError(key, f"Redis delete failed for {key}: {exc}") from exc

    def list_keys(self, pattern: str) -> list[str]:
        """List keys matching a glob pattern."""
        try:
            raw_keys = self._get_client().keys(pattern)
        except redis.RedisError as exc:
            raise StorageError(pattern, f"Redis scan failed for {pattern}: {exc}") from exc
        return [k.decode("utf-8") if isinstance(k, bytes) else k for k in raw_keys]

    def close(self) -> None:
        """Close the Redis connection."""
        if self._client is not None:
            self._client.close()
            self._client = None
