"""Local JSON-file StoragePort: one file per key under a base directory.

The on-disk analogue of a browser's local key-value store. Writes go
to a temp file first and are moved into place, so a crash mid-write
never leaves a truncated snapshot behind.
"""

from __future__ import annotations

import fnmatch
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from bizos.ports.storage_port import StoragePort
from bizos.shared.errors import StorageError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.:-]+$")


class JsonFileStorage(StoragePort):
    """Persist each key as ``<base_dir>/<key>.json``."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(key, f"Invalid storage key: {key!r}")
        return self._base_dir / f"{key}.json"

    def put(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._base_dir, prefix=".tmp-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as exc:
            raise StorageError(key, f"Failed to write {path}: {exc}") from exc

    def get(self, key: str) -> Any | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(key, f"Failed to read {path}: {exc}") from exc
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError
            raise StorageError(key, f"Corrupt JSON in {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(key, f"Failed to delete {path}: {exc}") from exc

    def list_keys(self, pattern: str) -> list[str]:
        keys = [p.stem for p in self._base_dir.glob("*.json") if not p.name.startswith(".tmp-")]
        return sorted(k for k in keys if fnmatch.fnmatchcase(k, pattern))
