"""Composition root tests: environment-driven wiring in bizos.main."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from bizos.infra.cache.redis import RedisStorageAdapter
from bizos.infra.storage.json_file import JsonFileStorage
from bizos.infra.storage.memory import InMemoryStorage
from bizos.main import build_app, build_storage


@pytest.mark.unit
class TestBuildStorage:
    def test_memory(self) -> None:
        assert isinstance(build_storage("memory"), InMemoryStorage)

    def test_file(self, tmp_path: Path) -> None:
        storage = build_storage("file", storage_dir=str(tmp_path / "snap"))
        assert isinstance(storage, JsonFileStorage)
        assert (tmp_path / "snap").is_dir()

    def test_redis_connects_lazily(self) -> None:
        storage = build_storage("redis", redis_url="redis://nowhere:6379/0")
        assert isinstance(storage, RedisStorageAdapter)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="Unknown BIZOS_STORAGE backend"):
            build_storage("s3")


@pytest.mark.unit
class TestBuildApp:
    def test_routes_mounted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BIZOS_STORAGE", raising=False)
        app = build_app(metrics_registry=CollectorRegistry())
        paths = {route.path for route in app.routes}
        assert {
            "/healthz",
            "/metrics",
            "/api/v1/intents/detect",
            "/api/v1/intents/execute",
            "/api/v1/agents/route",
            "/api/v1/agents/chat",
            "/api/v1/state",
            "/api/v1/state/metrics",
            "/api/v1/state/context/{agent_type}",
            "/api/v1/state/tasks/{task_id}",
            "/api/v1/state/customers/{customer_id}",
        } <= paths
        assert isinstance(app.state.storage, InMemoryStorage)

    def test_file_storage_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("BIZOS_STORAGE", "file")
        monkeypatch.setenv("BIZOS_STORAGE_DIR", str(tmp_path))
        monkeypatch.setenv("BIZOS_STATE_KEY", "tenant_a")
        client = TestClient(build_app(metrics_registry=CollectorRegistry()))

        client.post("/api/v1/intents/execute", json={"message": "We decided to hire a designer"})
        assert (tmp_path / "tenant_a.json").exists()

        # A fresh app over the same directory sees the decision
        again = TestClient(build_app(metrics_registry=CollectorRegistry()))
        decisions = again.get("/api/v1/state").json()["decisions"]
        assert [d["title"] for d in decisions] == ["hire a designer"]

    def test_assistant_name_drives_owner_detection(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BIZOS_STORAGE", raising=False)
        monkeypatch.setenv("BIZOS_ASSISTANT_NAME", "Jarvis")
        client = TestClient(build_app(metrics_registry=CollectorRegistry()))
        body = client.post(
            "/api/v1/intents/detect", json={"message": "remind me to have jarvis draft the memo"}
        ).json()
        assert body["parameters"]["owner"] == "ai"

    def test_module_level_app(self) -> None:
        from bizos import main

        assert main.app.title == "BizOS API"

    def test_shutdown_closes_storage(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.delenv("BIZOS_STORAGE", raising=False)
        app = build_app(metrics_registry=CollectorRegistry())
        with caplog.at_level(logging.INFO, logger="bizos.main"), TestClient(app) as client:
            assert client.get("/healthz").status_code == 200
        assert "Storage closed: memory" in caplog.text
