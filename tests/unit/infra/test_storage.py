"""Unit tests for the in-memory and JSON-file storage adapters."""

from __future__ import annotations

from pathlib import Path

import pytest

from bizos.brain.state.store import BusinessStateStore
from bizos.infra.storage.json_file import JsonFileStorage
from bizos.infra.storage.memory import InMemoryStorage
from bizos.ports.storage_port import StoragePort
from bizos.shared.errors import StorageError


@pytest.fixture(params=["memory", "json_file"])
def storage(request: pytest.FixtureRequest, tmp_path: Path) -> StoragePort:
    if request.param == "memory":
        return InMemoryStorage()
    return JsonFileStorage(tmp_path / "state")


@pytest.mark.unit
class TestStorageContract:
    def test_put_get(self, storage: StoragePort) -> None:
        storage.put("bizos_business_context", {"tasks": [], "name": "Acme"})
        assert storage.get("bizos_business_context") == {"tasks": [], "name": "Acme"}

    def test_missing_key(self, storage: StoragePort) -> None:
        assert storage.get("nothing_here") is None

    def test_overwrite(self, storage: StoragePort) -> None:
        storage.put("k", 1)
        storage.put("k", 2)
        assert storage.get("k") == 2

    def test_delete_is_idempotent(self, storage: StoragePort) -> None:
        storage.put("k", 1)
        storage.delete("k")
        storage.delete("k")
        assert storage.get("k") is None

    def test_list_keys(self, storage: StoragePort) -> None:
        storage.put("bizos_a", 1)
        storage.put("bizos_b", 2)
        storage.put("other", 3)
        assert storage.list_keys("bizos_*") == ["bizos_a", "bizos_b"]

    def test_returned_values_are_copies(self, storage: StoragePort) -> None:
        storage.put("k", {"tasks": []})
        storage.get("k")["tasks"].append("mutated")
        assert storage.get("k") == {"tasks": []}


@pytest.mark.unit
class TestJsonFileStorage:
    def test_one_file_per_key(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path)
        storage.put("bizos_business_context", {"a": 1})
        assert (tmp_path / "bizos_business_context.json").read_text(encoding="utf-8") == '{"a": 1}'
        assert not list(tmp_path.glob(".tmp-*"))

    def test_creates_base_dir(self, tmp_path: Path) -> None:
        JsonFileStorage(tmp_path / "nested" / "dir")
        assert (tmp_path / "nested" / "dir").is_dir()

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "spaces here"])
    def test_rejects_unsafe_keys(self, tmp_path: Path, key: str) -> None:
        with pytest.raises(StorageError, match="Invalid storage key"):
            JsonFileStorage(tmp_path).put(key, 1)

    def test_corrupt_file_raises_storage_error(self, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError, match="Corrupt JSON"):
            JsonFileStorage(tmp_path).get("broken")

    def test_invalid_utf8_raises_storage_error(self, tmp_path: Path) -> None:
        (tmp_path / "broken.json").write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(StorageError, match="Corrupt JSON"):
            JsonFileStorage(tmp_path).get("broken")

    def test_store_rehydrates_from_disk(self, tmp_path: Path) -> None:
        first = BusinessStateStore(storage=JsonFileStorage(tmp_path))
        first.add_task(title="call the investor", due_date="2026-01-09")
        first.update_finances(balance=90_000)

        second = BusinessStateStore(storage=JsonFileStorage(tmp_path))
        assert second.state.tasks == first.state.tasks
        assert second.state.finances.balance == 90_000

    def test_corrupt_snapshot_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "bizos_business_context.json").write_text("garbage", encoding="utf-8")
        store = BusinessStateStore(storage=JsonFileStorage(tmp_path))
        assert store.state.finances.balance == 150_000

    def test_undecodable_snapshot_file_falls_back_to_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "bizos_business_context.json").write_bytes(b"\xff\xfe\xfa")
        store = BusinessStateStore(storage=JsonFileStorage(tmp_path))
        assert store.state.finances.balance == 150_000
        assert store.state.tasks == []
