"""Application composition root -- wires all layers into a runnable FastAPI app.

- Reads configuration from environment variables
- Picks the storage adapter for the business state snapshot
- Instantiates the brain services around one BusinessStateStore
- Mounts the API routers onto the FastAPI app

Entry point: uvicorn bizos.main:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from bizos.brain.engine.agent_service import DEFAULT_MODEL, AgentService
from bizos.brain.intent.catalog import build_catalog
from bizos.brain.intent.classifier import IntentClassifier
from bizos.brain.intent.executor import ActionExecutor
from bizos.brain.metrics.sli import IntentSLI
from bizos.brain.persona.prompts import DEFAULT_ASSISTANT_NAME
from bizos.brain.persona.router import AgentRouter
from bizos.brain.state.store import DEFAULT_STATE_KEY, BusinessStateStore
from bizos.gateway.api.agents import create_agent_router
from bizos.gateway.api.intents import create_intent_router
from bizos.gateway.api.state import create_state_router
from bizos.gateway.app import create_app
from bizos.infra.cache.redis import RedisStorageAdapter
from bizos.infra.storage.json_file import JsonFileStorage
from bizos.infra.storage.memory import InMemoryStorage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI
    from prometheus_client import CollectorRegistry

    from bizos.ports.llm_call_port import LLMCallPort
    from bizos.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


def build_storage(
    kind: str,
    *,
    storage_dir: str = ".bizos",
    redis_url: str = "redis://localhost:6379/0",
) -> StoragePort:
    """Storage adapter for ``BIZOS_STORAGE`` (memory | file | redis)."""
    if kind == "memory":
        return InMemoryStorage()
    if kind == "file":
        return JsonFileStorage(storage_dir)
    if kind == "redis":
        return RedisStorageAdapter(redis_url=redis_url)
    msg = f"Unknown BIZOS_STORAGE backend: {kind!r} (expected memory, file or redis)"
    raise ValueError(msg)


def build_app(
    *,
    llm: LLMCallPort | None = None,
    metrics_registry: CollectorRegistry | None = None,
) -> FastAPI:
    """Build the application: instantiate adapters, wire dependencies, mount routers.

    This function is the single composition root. No LLM provider adapter
    ships with bizos; pass one as ``llm`` to get model replies, otherwise
    personas answer with their default reply. Pass ``metrics_registry``
    to keep SLI metrics out of the global Prometheus registry.
    """
    # -- Configuration from environment --
    storage_kind = os.environ.get("BIZOS_STORAGE", "memory").strip().lower()
    storage_dir = os.environ.get("BIZOS_STORAGE_DIR", ".bizos")
    redis_url = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    state_key = os.environ.get("BIZOS_STATE_KEY", DEFAULT_STATE_KEY)
    assistant_name = os.environ.get("BIZOS_ASSISTANT_NAME", DEFAULT_ASSISTANT_NAME)
    llm_model = os.environ.get("LLM_MODEL", DEFAULT_MODEL)
    cors_origins_raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    # -- Infrastructure layer --
    storage = build_storage(storage_kind, storage_dir=storage_dir, redis_url=redis_url)
    store = BusinessStateStore(storage=storage, state_key=state_key)

    # -- Brain layer --
    sli = IntentSLI(registry=metrics_registry)
    classifier = IntentClassifier(catalog=build_catalog(assistant_name), sli=sli)
    executor = ActionExecutor(threshold=classifier.config.execution_threshold, sli=sli)
    router = AgentRouter(sli=sli)
    service = AgentService(
        store=store,
        llm=llm,
        classifier=classifier,
        executor=executor,
        router=router,
        sli=sli,
        default_model=llm_model,
        assistant_name=assistant_name,
    )

    # -- Gateway --
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        storage.close()
        logger.info("Storage closed: %s", storage_kind)

    application = create_app(
        cors_origins=cors_origins,
        metrics_registry=metrics_registry,
        lifespan=lifespan,
    )
    application.state.storage = storage
    application.state.store = store

    application.include_router(
        create_intent_router(store=store, classifier=classifier, executor=executor),
    )
    application.include_router(
        create_agent_router(router=router, service=service),
    )
    application.include_router(
        create_state_router(store=store),
    )

    logger.info(
        "BizOS app assembled: storage=%s, llm=%s, %d routes mounted",
        storage_kind,
        "configured" if llm is not None else "none",
        len(application.routes),
    )
    return application


app = build_app()
