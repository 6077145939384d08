"""Intent API -- classify messages and execute confident intents.

- POST /api/v1/intents/detect  -> DetectedIntent (no side effects)
- POST /api/v1/intents/execute -> detect + execute against the store
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter
from pydantic import BaseModel, TypeAdapter, field_validator

from bizos.brain.intent.executor import format_action_confirmation
from bizos.shared.types import AgentType  # noqa: TC001 - needed at runtime by FastAPI

if TYPE_CHECKING:
    from bizos.brain.intent.classifier import DetectedIntent, IntentClassifier
    from bizos.brain.intent.executor import ActionExecutor
    from bizos.brain.state.store import BusinessStateStore

logger = logging.getLogger(__name__)

_ITEM_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


class MessageRequest(BaseModel):
    message: str
    agent_type: AgentType | None = None

    @field_validator("message")
    @classmethod
    def message_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "Message cannot be empty"
            raise ValueError(msg)
        return v


class DetectedIntentResponse(BaseModel):
    type: str
    confidence: float
    parameters: dict[str, Any]
    original_text: str


class ExecutionResponse(BaseModel):
    success: bool
    intent: str
    message: str
    confirmation: str
    created_item: Any | None = None
    error: str | None = None
    detected: DetectedIntentResponse


def _intent_response(intent: DetectedIntent) -> DetectedIntentResponse:
    return DetectedIntentResponse(**intent.as_dict())


def create_intent_router(
    *,
    store: BusinessStateStore,
    classifier: IntentClassifier,
    executor: ActionExecutor,
) -> APIRouter:
    """Create intent API router."""
    router = APIRouter(prefix="/api/v1/intents", tags=["intents"])

    @router.post("/detect", response_model=DetectedIntentResponse)
    async def detect(body: MessageRequest) -> DetectedIntentResponse:
        """Classify a message without executing anything."""
        return _intent_response(classifier.detect(body.message))

    @router.post("/execute", response_model=ExecutionResponse)
    async def execute(body: MessageRequest) -> ExecutionResponse:
        """Classify a message and execute it if the confidence gate allows."""
        intent = classifier.detect(body.message)
        result = executor.execute(intent, store.execution_context(body.agent_type))
        logger.info("Intent API execute: %s success=%s", result.intent.value, result.success)
        return ExecutionResponse(
            success=result.success,
            intent=result.intent.value,
            message=result.message,
            confirmation=format_action_confirmation(result),
            created_item=_ITEM_ADAPTER.dump_python(result.created_item, mode="json"),
            error=result.error,
            detected=_intent_response(intent),
        )

    return router
