"""Agent API -- persona routing and full conversational turns.

- POST /api/v1/agents/route -> AgentRoute for a message
- POST /api/v1/agents/chat  -> one AgentService turn (detect, execute, reply)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from fastapi import APIRouter
from pydantic import BaseModel, field_validator

from bizos.shared.types import AgentType  # noqa: TC001 - needed at runtime by FastAPI

if TYPE_CHECKING:
    from bizos.brain.engine.agent_service import AgentService
    from bizos.brain.persona.router import AgentRouter


class RouteRequest(BaseModel):
    message: str


class RouteResponse(BaseModel):
    primary_agent: str
    secondary_agents: list[str] | None = None
    confidence: float
    keywords: list[str]


class HistoryItem(BaseModel):
    role: Literal["user", "agent", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str
    agent_type: AgentType | None = None
    history: list[HistoryItem] = []
    model_id: str | None = None

    @field_validator("message")
    @classmethod
    def message_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            msg = "Message cannot be empty"
            raise ValueError(msg)
        return v


class ExecutedActionResponse(BaseModel):
    success: bool
    intent: str
    message: str
    error: str | None = None


class ChatResponse(BaseModel):
    message: str
    agent_type: str
    detected_intent: dict[str, Any]
    executed_action: ExecutedActionResponse | None = None
    route: RouteResponse | None = None
    model_id: str = ""


def create_agent_router(*, router: AgentRouter, service: AgentService) -> APIRouter:
    """Create agent API router."""
    api = APIRouter(prefix="/api/v1/agents", tags=["agents"])

    @api.post("/route", response_model=RouteResponse)
    async def route(body: RouteRequest) -> RouteResponse:
        return RouteResponse(**router.route(body.message).as_dict())

    @api.post("/chat", response_model=ChatResponse)
    async def chat(body: ChatRequest) -> ChatResponse:
        """Run one agent turn. Confident intents mutate the business state."""
        reply = await service.respond(
            body.message,
            agent_type=body.agent_type,
            history=[item.model_dump() for item in body.history],
            model_id=body.model_id,
        )
        executed = reply.executed_action
        return ChatResponse(
            message=reply.message,
            agent_type=reply.agent_type.value,
            detected_intent=reply.detected_intent.as_dict(),
            executed_action=(
                ExecutedActionResponse(
                    success=executed.success,
                    intent=executed.intent.value,
                    message=executed.message,
                    error=executed.error,
                )
                if executed is not None
                else None
            ),
            route=RouteResponse(**reply.route.as_dict()) if reply.route is not None else None,
            model_id=reply.model_id,
        )

    return api
