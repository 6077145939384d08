"""Gateway API tests over the fully wired app.

Validates:
- /healthz and /metrics system routes
- Intent detect/execute endpoints and the confidence gate
- Agent route/chat endpoints
- State read and PATCH endpoints, including infinite runway as null
- Uniform {error, message} bodies for domain errors
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from bizos.brain.intent.executor import MSG_LOW_CONFIDENCE
from bizos.brain.persona.prompts import get_persona
from bizos.brain.state.store import BusinessStateStore
from bizos.gateway.api.state import create_state_router
from bizos.gateway.app import create_app
from bizos.main import build_app
from bizos.shared.errors import BizosError, PortUnavailableError
from bizos.shared.types import AgentType
from tests.fakes import FakeLLM, FakeStorage


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch) -> FastAPI:
    monkeypatch.delenv("BIZOS_STORAGE", raising=False)
    monkeypatch.delenv("BIZOS_ASSISTANT_NAME", raising=False)
    return build_app(metrics_registry=CollectorRegistry())


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _execute(client: TestClient, message: str, **extra) -> dict:
    resp = client.post("/api/v1/intents/execute", json={"message": message, **extra})
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.unit
class TestSystemRoutes:
    def test_healthz(self, client: TestClient) -> None:
        resp = client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics_exposes_sli(self, client: TestClient) -> None:
        client.post("/api/v1/intents/detect", json={"message": "remind me to call Bob"})
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert 'bizos_intent_detected_total{intent_type="CREATE_TASK"} 1.0' in resp.text

    def test_unknown_route_uses_uniform_body(self, client: TestClient) -> None:
        resp = client.get("/api/v1/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NOT_FOUND"


@pytest.mark.unit
class TestIntentEndpoints:
    def test_detect(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/intents/detect", json={"message": "remind me to call the investor tomorrow"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["type"] == "CREATE_TASK"
        assert body["confidence"] == 0.9
        assert body["parameters"]["title"] == "call the investor"
        assert body["original_text"] == "remind me to call the investor tomorrow"

    def test_detect_has_no_side_effects(self, client: TestClient) -> None:
        client.post("/api/v1/intents/detect", json={"message": "We decided to go annual"})
        assert client.get("/api/v1/state").json()["decisions"] == []

    @pytest.mark.parametrize("message", ["", "   "])
    def test_empty_message_rejected(self, client: TestClient, message: str) -> None:
        resp = client.post("/api/v1/intents/detect", json={"message": message})
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "VALIDATION"
        assert body["field"] == "message"
        assert "Message cannot be empty" in body["message"]

    def test_execute_logs_decision(self, client: TestClient) -> None:
        body = _execute(client, "We decided to switch to annual pricing")
        assert body["success"] is True
        assert body["intent"] == "LOG_DECISION"
        assert body["message"] == 'Logged decision: "switch to annual pricing"'
        assert body["confirmation"].startswith("\n\n---\n**Action Executed:** Logged decision")
        assert body["created_item"]["title"] == "switch to annual pricing"
        assert body["detected"]["confidence"] == 0.9

        decisions = client.get("/api/v1/state").json()["decisions"]
        assert [d["title"] for d in decisions] == ["switch to annual pricing"]

    def test_execute_below_gate(self, client: TestClient) -> None:
        body = _execute(client, "I keep a todo list on paper")
        assert body["success"] is False
        assert body["message"] == MSG_LOW_CONFIDENCE
        assert body["confirmation"] == ""
        assert client.get("/api/v1/state").json()["tasks"] == []

    def test_execute_with_persona(self, client: TestClient) -> None:
        body = _execute(client, "remind me to email the lawyer", agent_type="finance")
        assert body["created_item"]["agent_type"] == "finance"
        assert body["created_item"]["priority"] == "medium"

    def test_execute_rejects_overflowing_amount(self, client: TestClient) -> None:
        body = _execute(client, "our mrr is now $" + "9" * 400)
        assert body["success"] is False
        assert body["intent"] == "UPDATE_FINANCES"
        assert body["confirmation"] == ""
        assert client.get("/api/v1/state").json()["finances"]["mrr"] == 12_000

    def test_execute_unsupported(self, client: TestClient) -> None:
        body = _execute(client, "log expense: figma seats")
        assert body["success"] is False
        assert body["intent"] == "ADD_EXPENSE"

    def test_invalid_agent_type(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/intents/execute", json={"message": "hi", "agent_type": "cfo"}
        )
        assert resp.status_code == 422


@pytest.mark.unit
class TestAgentEndpoints:
    def test_route(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/agents/route", json={"message": "what's our runway and burn rate this month?"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["primary_agent"] == "finance"
        assert body["keywords"] == ["runway", "burn"]
        assert body["secondary_agents"] is None

    def test_chat_routes_and_executes(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/agents/chat", json={"message": "remind me to call the investor tomorrow"}
        )
        assert resp.status_code == 200
        body = resp.json()
        # "call" (customer) ties "investor" (finance); customer is declared first
        assert body["agent_type"] == "customer"
        assert body["route"]["secondary_agents"] == ["finance"]
        assert body["executed_action"]["success"] is True
        assert body["message"].startswith(get_persona(AgentType.CUSTOMER).default_reply)
        assert "**Action Executed:** Created task" in body["message"]

        tasks = client.get("/api/v1/state").json()["tasks"]
        assert tasks[0]["agent_type"] == "customer"

    def test_chat_with_explicit_persona_and_history(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/agents/chat",
            json={
                "message": "hello",
                "agent_type": "ceo",
                "history": [
                    {"role": "user", "content": "hi"},
                    {"role": "agent", "content": "hello!"},
                ],
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["agent_type"] == "ceo"
        assert body["route"] is None
        assert body["executed_action"] is None
        assert body["detected_intent"]["type"] == "UNKNOWN"

    def test_chat_rejects_bad_history_role(self, client: TestClient) -> None:
        resp = client.post(
            "/api/v1/agents/chat",
            json={"message": "hello", "history": [{"role": "system", "content": "x"}]},
        )
        assert resp.status_code == 422

    def test_chat_uses_llm_reply(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BIZOS_STORAGE", raising=False)
        llm = FakeLLM("Focus on retention.")
        client = TestClient(build_app(llm=llm, metrics_registry=CollectorRegistry()))
        body = client.post("/api/v1/agents/chat", json={"message": "hello"}).json()
        assert body["message"] == "Focus on retention."
        assert body["model_id"] == llm.calls[0]["model_id"]


@pytest.mark.unit
class TestStateEndpoints:
    def test_default_state(self, client: TestClient) -> None:
        body = client.get("/api/v1/state").json()
        assert body["company_info"]["name"] == "My Startup"
        assert body["computed_metrics"]["runway"] == pytest.approx(150_000 / 13_000)

    def test_infinite_runway_is_null(self, client: TestClient) -> None:
        _execute(client, "our mrr is now $30,000")
        assert client.get("/api/v1/state").json()["computed_metrics"]["runway"] is None
        assert client.get("/api/v1/state/metrics").json()["runway"] is None
        context = client.get("/api/v1/state/context/finance").json()
        assert context["metrics"]["runway"] is None
        assert context["metrics"]["mrr"] == 30_000

    def test_context_unknown_agent(self, client: TestClient) -> None:
        assert client.get("/api/v1/state/context/cfo").status_code == 422

    def test_patch_task(self, client: TestClient) -> None:
        task = _execute(client, "remind me to call the investor")["created_item"]
        resp = client.patch(f"/api/v1/state/tasks/{task['id']}", json={"status": "done"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "done"
        assert resp.json()["title"] == "call the investor"
        assert client.get("/api/v1/state/metrics").json()["open_tasks"] == 0

    def test_patch_task_bad_value(self, client: TestClient) -> None:
        task = _execute(client, "remind me to call the investor")["created_item"]
        resp = client.patch(f"/api/v1/state/tasks/{task['id']}", json={"status": "blocked"})
        assert resp.status_code == 422

    def test_patch_unknown_task(self, client: TestClient) -> None:
        resp = client.patch("/api/v1/state/tasks/missing", json={"status": "done"})
        assert resp.status_code == 404
        assert resp.json() == {
            "error": "NOT_FOUND",
            "message": "Task not found: missing",
            "resource_type": "Task",
            "resource_id": "missing",
        }

    def test_patch_customer(self, client: TestClient) -> None:
        customer = _execute(
            client, "New customer: Sarah Chen at Acme Corp, sarah@acme.com, $500/mo"
        )["created_item"]
        assert customer["mrr"] == 500

        resp = client.patch(
            f"/api/v1/state/customers/{customer['id']}", json={"stage": "at-risk"}
        )
        assert resp.status_code == 200
        assert client.get("/api/v1/state/metrics").json()["at_risk_count"] == 1

    def test_patch_customer_store_validation(self, client: TestClient) -> None:
        customer = _execute(client, "New customer: Sarah Chen at Acme Corp")["created_item"]
        resp = client.patch(
            f"/api/v1/state/customers/{customer['id']}", json={"health_score": 150}
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "VALIDATION"
        assert resp.json()["field"] == "health_score"


@pytest.mark.unit
class TestErrorMapping:
    def test_storage_failure_is_503(self) -> None:
        storage = FakeStorage()
        store = BusinessStateStore(storage=storage)
        task = store.add_task(title="x")
        storage.fail_writes = True

        app = create_app(metrics_registry=CollectorRegistry())
        app.include_router(create_state_router(store=store))
        resp = TestClient(app).patch(f"/api/v1/state/tasks/{task.id}", json={"status": "done"})
        assert resp.status_code == 503
        assert resp.json()["error"] == "STORAGE_FAILED"

    def test_port_unavailable_and_base_error(self) -> None:
        app = create_app(metrics_registry=CollectorRegistry())

        @app.get("/port")
        async def port() -> None:
            raise PortUnavailableError("LLMCallPort")

        @app.get("/boom")
        async def boom() -> None:
            raise BizosError("unexpected")

        client = TestClient(app)
        resp = client.get("/port")
        assert resp.status_code == 503
        assert resp.json() == {
            "error": "PORT_UNAVAILABLE",
            "message": "Port LLMCallPort is unavailable",
            "port": "LLMCallPort",
        }
        resp = client.get("/boom")
        assert resp.status_code == 500
        assert resp.json() == {"error": "BIZOS_ERROR", "message": "unexpected"}

    def test_cors_preflight(self) -> None:
        app = create_app(cors_origins=["http://localhost:3000"], metrics_registry=CollectorRegistry())
        resp = TestClient(app).options(
            "/healthz",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
