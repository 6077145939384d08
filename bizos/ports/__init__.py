"""Port interfaces - Layer boundary contracts.

    StoragePort   - Business state snapshot persistence
    LLMCallPort   - LLM invocations for persona replies
"""

from bizos.ports.llm_call_port import ChatMessage, ChatRole, LLMCallPort, LLMResponse
from bizos.ports.storage_port import StoragePort

__all__ = [
    "ChatMessage",
    "ChatRole",
    "LLMCallPort",
    "LLMResponse",
    "StoragePort",
]
