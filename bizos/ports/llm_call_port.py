"""LLMCallPort - LLM invocation interface.

A persona's reply text comes from a third-party chat model. The
provider integration lives outside this package; the agent service
only sees this port and degrades to the persona's default reply when
it is absent or failing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """One message of the transcript sent to the model."""

    role: ChatRole
    content: str

    @classmethod
    def from_history(cls, turn: dict[str, str]) -> ChatMessage:
        """Map a UI history entry; anything not from the user is the persona speaking."""
        role = ChatRole.USER if turn.get("role") == "user" else ChatRole.ASSISTANT
        return cls(role=role, content=turn.get("content", ""))


@dataclass(frozen=True)
class LLMResponse:
    """Model output plus usage accounting."""

    text: str
    tokens_used: dict[str, int] = field(default_factory=dict)  # {input, output}
    model_id: str = ""
    finish_reason: str = "stop"  # "stop" | "length" | "error"

    @property
    def reply(self) -> str:
        """Reply text, empty when the model returned only whitespace."""
        return self.text.strip()


class LLMCallPort(ABC):
    """Port: chat completion for persona replies."""

    @abstractmethod
    async def call(
        self,
        messages: list[ChatMessage],
        model_id: str,
        parameters: dict[str, Any] | None = None,
    ) -> LLMResponse:
        """Complete a chat transcript.

        Args:
            messages: Persona system prompt, recent history, then the user turn.
            model_id: Provider model identifier (LLM_MODEL).
            parameters: Sampling options such as max_tokens and temperature.

        Raises:
            PortUnavailableError: the provider cannot be reached. The agent
                service wraps any other provider error in one as well, and
                treats every failure as "no reply".
        """
