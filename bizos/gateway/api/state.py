"""Business state API -- read the store and apply manual edits.

- GET   /api/v1/state                        -> full snapshot
- GET   /api/v1/state/metrics                -> derived metrics
- GET   /api/v1/state/context/{agent_type}   -> per-persona context slice
- PATCH /api/v1/state/tasks/{task_id}        -> partial task update
- PATCH /api/v1/state/customers/{customer_id} -> partial customer update
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter
from pydantic import BaseModel, TypeAdapter

from bizos.brain.state.store import metrics_payload
from bizos.shared.types import (  # noqa: TC001 - needed at runtime by FastAPI
    AgentContext,
    AgentType,
    Customer,
    CustomerStage,
    Priority,
    Task,
    TaskOwner,
    TaskStatus,
)

if TYPE_CHECKING:
    from bizos.brain.state.store import BusinessStateStore

_CONTEXT_ADAPTER: TypeAdapter[AgentContext] = TypeAdapter(AgentContext)
_TASK_ADAPTER: TypeAdapter[Task] = TypeAdapter(Task)
_CUSTOMER_ADAPTER: TypeAdapter[Customer] = TypeAdapter(Customer)


class TaskUpdateRequest(BaseModel):
    title: str | None = None
    priority: Priority | None = None
    status: TaskStatus | None = None
    owner: TaskOwner | None = None
    due_date: str | None = None
    description: str | None = None


class CustomerUpdateRequest(BaseModel):
    name: str | None = None
    company: str | None = None
    email: str | None = None
    mrr: float | None = None
    health_score: int | None = None
    stage: CustomerStage | None = None
    last_contact: str | None = None
    notes: str | None = None


def _finite(metrics: dict[str, Any]) -> dict[str, Any]:
    return {
        k: None if isinstance(v, float) and not math.isfinite(v) else v
        for k, v in metrics.items()
    }


def create_state_router(*, store: BusinessStateStore) -> APIRouter:
    """Create business state API router."""
    router = APIRouter(prefix="/api/v1/state", tags=["state"])

    @router.get("")
    async def get_state() -> dict[str, Any]:
        return store.snapshot()

    @router.get("/metrics")
    async def get_metrics() -> dict[str, Any]:
        return metrics_payload(store.metrics)

    @router.get("/context/{agent_type}")
    async def get_context(agent_type: AgentType) -> dict[str, Any]:
        data = _CONTEXT_ADAPTER.dump_python(store.get_agent_context(agent_type), mode="json")
        data["metrics"] = _finite(data["metrics"])
        return data

    @router.patch("/tasks/{task_id}")
    async def update_task(task_id: str, body: TaskUpdateRequest) -> dict[str, Any]:
        task = store.update_task(task_id, **body.model_dump(exclude_unset=True))
        return _TASK_ADAPTER.dump_python(task, mode="json")

    @router.patch("/customers/{customer_id}")
    async def update_customer(customer_id: str, body: CustomerUpdateRequest) -> dict[str, Any]:
        customer = store.update_customer(customer_id, **body.model_dump(exclude_unset=True))
        return _CUSTOMER_ADAPTER.dump_python(customer, mode="json")

    return router
