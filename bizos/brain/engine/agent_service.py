"""Agent service -- one conversational turn for a specialist persona.

Flow:
1. Route the message to a persona (unless the caller picked one)
2. Classify the message; execute the intent when it clears the gate
3. Build the persona's system prompt from the store's agent context
4. Call the LLM with the last few history turns and the user message
5. Append the action confirmation to the reply

The LLM is a soft dependency: with no LLM configured, or when the call
fails, the persona's default reply is used instead. An executed action
is never rolled back because the reply failed.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bizos.brain.intent.classifier import IntentClassifier
from bizos.brain.intent.executor import ActionExecutor, format_action_confirmation
from bizos.brain.persona.prompts import DEFAULT_ASSISTANT_NAME, build_system_prompt, get_persona
from bizos.brain.persona.router import AgentRouter
from bizos.ports.llm_call_port import ChatMessage, ChatRole
from bizos.shared.errors import PortUnavailableError
from bizos.shared.logging.error_handler import log_structured_error

if TYPE_CHECKING:
    from bizos.brain.intent.classifier import DetectedIntent
    from bizos.brain.intent.executor import ExecutionResult
    from bizos.brain.metrics.sli import IntentSLI
    from bizos.brain.persona.router import AgentRoute
    from bizos.brain.state.store import BusinessStateStore
    from bizos.ports.llm_call_port import LLMCallPort, LLMResponse
    from bizos.shared.types import AgentType

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 6

DEFAULT_MODEL = "google/gemini-2.0-flash-exp:free"

DEFAULT_PARAMETERS: dict[str, Any] = {"max_tokens": 1200, "temperature": 0.7}


@dataclass(frozen=True)
class AgentReply:
    """Result of one agent turn."""

    message: str
    agent_type: AgentType
    detected_intent: DetectedIntent
    executed_action: ExecutionResult | None = None
    route: AgentRoute | None = None
    model_id: str = ""
    tokens_used: dict[str, int] = field(default_factory=dict)


class AgentService:
    """Runs agent turns against one session's business state store."""

    def __init__(
        self,
        *,
        store: BusinessStateStore,
        llm: LLMCallPort | None = None,
        classifier: IntentClassifier | None = None,
        executor: ActionExecutor | None = None,
        router: AgentRouter | None = None,
        sli: IntentSLI | None = None,
        default_model: str = DEFAULT_MODEL,
        assistant_name: str = DEFAULT_ASSISTANT_NAME,
    ) -> None:
        self._store = store
        self._llm = llm
        self._classifier = classifier or IntentClassifier(sli=sli)
        self._executor = executor or ActionExecutor(
            threshold=self._classifier.config.execution_threshold, sli=sli
        )
        self._router = router or AgentRouter(sli=sli)
        self._sli = sli
        self._default_model = default_model
        self._assistant_name = assistant_name

    async def respond(
        self,
        message: str,
        *,
        agent_type: AgentType | None = None,
        history: list[dict[str, str]] | None = None,
        model_id: str | None = None,
    ) -> AgentReply:
        """Process one user message and return the persona's reply."""
        timer = (
            self._sli.timer(self._sli.turn_duration)
            if self._sli is not None
            else contextlib.nullcontext()
        )
        with timer:
            return await self._respond(message, agent_type, history, model_id)

    async def _respond(
        self,
        message: str,
        agent_type: AgentType | None,
        history: list[dict[str, str]] | None,
        model_id: str | None,
    ) -> AgentReply:
        route: AgentRoute | None = None
        if agent_type is None:
            route = self._router.route(message)
            agent_type = route.primary_agent

        # Step 1: Detect and maybe execute
        intent = self._classifier.detect(message)
        executed: ExecutionResult | None = None
        if intent.confidence >= self._classifier.config.execution_threshold:
            executed = self._executor.execute(
                intent, self._store.execution_context(agent_type)
            )

        # Step 2: Build messages
        context = self._store.get_agent_context(agent_type)
        system_prompt = build_system_prompt(
            agent_type, context, assistant_name=self._assistant_name
        )
        messages = self._build_messages(system_prompt, message, history, executed)

        # Step 3: Call LLM (soft dependency)
        resolved_model = model_id or self._default_model
        reply_text = ""
        tokens_used: dict[str, int] = {}
        response_model = ""
        if self._llm is not None:
            try:
                response = await self.complete(messages, resolved_model)
                reply_text = response.reply
                tokens_used = response.tokens_used
                response_model = response.model_id
            except PortUnavailableError as exc:
                log_structured_error(
                    logger,
                    exc,
                    error_code="LLM_CALL_FAILED",
                    agent_type=agent_type.value,
                    context={"model_id": resolved_model, "port": exc.port_name},
                    level=logging.WARNING,
                )

        if not reply_text:
            reply_text = get_persona(agent_type).default_reply
        if executed is not None:
            reply_text += format_action_confirmation(executed)

        logger.info(
            "Agent turn: agent=%s intent=%s executed=%s",
            agent_type.value,
            intent.type.value,
            executed.success if executed is not None else False,
        )
        return AgentReply(
            message=reply_text,
            agent_type=agent_type,
            detected_intent=intent,
            executed_action=executed,
            route=route,
            model_id=response_model,
            tokens_used=tokens_used,
        )

    async def complete(self, messages: list[ChatMessage], model_id: str) -> LLMResponse:
        """Call the LLM port; an absent or failing provider raises PortUnavailableError."""
        if self._llm is None:
            raise PortUnavailableError("LLMCallPort", "No LLM adapter configured")
        try:
            return await self._llm.call(messages, model_id, dict(DEFAULT_PARAMETERS))
        except PortUnavailableError:
            raise
        except Exception as exc:
            raise PortUnavailableError("LLMCallPort", f"LLM call failed: {exc}") from exc

    @staticmethod
    def _build_messages(
        system_prompt: str,
        message: str,
        history: list[dict[str, str]] | None,
        executed: ExecutionResult | None,
    ) -> list[ChatMessage]:
        messages = [ChatMessage(role=ChatRole.SYSTEM, content=system_prompt)]
        for turn in (history or [])[-HISTORY_WINDOW:]:
            messages.append(ChatMessage.from_history(turn))

        user_message = message
        if executed is not None and executed.success:
            user_message += (
                f"\n\n[System Note: Action executed - {executed.message}. "
                "Acknowledge this in your response.]"
            )
        messages.append(ChatMessage(role=ChatRole.USER, content=user_message))
        return messages
