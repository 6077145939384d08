"""Unit tests for the Redis storage adapter.

Uses the shared FakeRedis stub to test RedisStorageAdapter without a
real Redis connection.
"""

from __future__ import annotations

import pytest

from bizos.brain.state.store import BusinessStateStore
from bizos.infra.cache.redis import RedisStorageAdapter
from bizos.ports.storage_port import StoragePort
from bizos.shared.errors import StorageError
from tests.fakes import FakeRedis

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def adapter(fake_redis: FakeRedis) -> RedisStorageAdapter:
    return RedisStorageAdapter(client=fake_redis)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestRedisStorageAdapter:
    def test_implements_storage_port(self, adapter: RedisStorageAdapter) -> None:
        assert isinstance(adapter, StoragePort)

    def test_put_get_roundtrip(self, adapter: RedisStorageAdapter) -> None:
        adapter.put("state", {"tasks": [{"title": "x"}], "balance": 1.5})
        assert adapter.get("state") == {"tasks": [{"title": "x"}], "balance": 1.5}

    def test_values_stored_as_json_bytes(
        self, adapter: RedisStorageAdapter, fake_redis: FakeRedis
    ) -> None:
        adapter.put("state", {"a": 1})
        assert fake_redis.store["state"] == b'{"a": 1}'

    def test_get_missing_returns_none(self, adapter: RedisStorageAdapter) -> None:
        assert adapter.get("missing") is None

    def test_delete(self, adapter: RedisStorageAdapter) -> None:
        adapter.put("state", 1)
        adapter.delete("state")
        adapter.delete("state")
        assert adapter.get("state") is None

    def test_list_keys_decodes(self, adapter: RedisStorageAdapter) -> None:
        adapter.put("bizos_a", 1)
        adapter.put("bizos_b", 2)
        adapter.put("other", 3)
        assert sorted(adapter.list_keys("bizos_*")) == ["bizos_a", "bizos_b"]

    def test_close(self, adapter: RedisStorageAdapter, fake_redis: FakeRedis) -> None:
        adapter.close()
        assert fake_redis.closed is True
        adapter.close()


@pytest.mark.unit
class TestRedisFailures:
    @pytest.mark.parametrize(
        "operation",
        [
            lambda a: a.put("k", 1),
            lambda a: a.get("k"),
            lambda a: a.delete("k"),
            lambda a: a.list_keys("*"),
        ],
        ids=["put", "get", "delete", "list_keys"],
    )
    def test_connection_errors_become_storage_errors(
        self, adapter: RedisStorageAdapter, fake_redis: FakeRedis, operation
    ) -> None:
        fake_redis.fail = True
        with pytest.raises(StorageError, match="connection refused"):
            operation(adapter)

    def test_store_falls_back_when_redis_is_down(self, fake_redis: FakeRedis) -> None:
        fake_redis.fail = True
        store = BusinessStateStore(storage=RedisStorageAdapter(client=fake_redis))
        assert store.state.tasks == []

    @pytest.mark.parametrize("raw", [b"{not json", b"\xff\xfe\xfa"], ids=["syntax", "utf8"])
    def test_corrupt_value_raises_storage_error(
        self, adapter: RedisStorageAdapter, fake_redis: FakeRedis, raw: bytes
    ) -> None:
        fake_redis.store["k"] = raw
        with pytest.raises(StorageError, match="Corrupt JSON"):
            adapter.get("k")

    def test_store_falls_back_on_corrupt_snapshot(self, fake_redis: FakeRedis) -> None:
        fake_redis.store["bizos_business_context"] = b"{not json"
        store = BusinessStateStore(storage=RedisStorageAdapter(client=fake_redis))
        assert store.state.finances.balance == 150_000
        assert store.state.tasks == []


@pytest.mark.unit
class TestStoreOnRedis:
    def test_snapshot_survives_new_store(self, fake_redis: FakeRedis) -> None:
        first = BusinessStateStore(storage=RedisStorageAdapter(client=fake_redis))
        first.add_customer(name="Sarah Chen", company="Acme Corp", mrr=500)

        second = BusinessStateStore(storage=RedisStorageAdapter(client=fake_redis))
        assert [c.name for c in second.state.customers] == ["Sarah Chen"]
        assert second.metrics.total_mrr == 500
