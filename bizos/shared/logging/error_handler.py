"""Structured error records for failed actions and persona replies.

A record names the intent and persona involved, so a failed "add
customer" can be told apart from a failed LLM reply in aggregated logs.
User text routinely carries customer emails and amounts; values are
scrubbed before they reach a log line:

- keys such as api_key/token/email are replaced wholesale
- email addresses inside any string are masked
- long strings (raw user messages) are clipped
"""

from __future__ import annotations

import logging
import re
import traceback
from dataclasses import dataclass, field
from typing import Any

REDACTED = "[REDACTED]"
MAX_VALUE_CHARS = 200

_SENSITIVE_KEYS = frozenset(
    {
        "password",
        "token",
        "secret",
        "api_key",
        "authorization",
        "credential",
        "email",
    }
)
_EMAIL = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")


def _scrub_text(text: str) -> str:
    text = _EMAIL.sub(REDACTED, text)
    if len(text) > MAX_VALUE_CHARS:
        return text[: MAX_VALUE_CHARS - 3] + "..."
    return text


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if str(k).lower() in _SENSITIVE_KEYS else _scrub(v)
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [_scrub(v) for v in value]
    if isinstance(value, str):
        return _scrub_text(value)
    return value


@dataclass(frozen=True)
class StructuredError:
    """One failure, tagged with the intent and persona it happened under."""

    error_code: str
    message: str
    intent_type: str = ""
    agent_type: str = ""
    context: dict[str, Any] = field(default_factory=dict)
    stack_trace: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Scrubbed, JSON-ready form for the ``structured_error`` log extra."""
        record: dict[str, Any] = {
            "error_code": self.error_code,
            "message": _scrub_text(self.message),
            "context": _scrub(self.context),
        }
        if self.intent_type:
            record["intent_type"] = self.intent_type
        if self.agent_type:
            record["agent_type"] = self.agent_type
        if self.stack_trace:
            record["stack_trace"] = self.stack_trace
        return record


def create_structured_error(
    exc: Exception,
    *,
    error_code: str = "",
    intent_type: str = "",
    agent_type: str = "",
    context: dict[str, Any] | None = None,
    include_stack: bool = True,
) -> StructuredError:
    """Build a StructuredError from an exception.

    The code defaults to the exception's ``.code`` (BizosError family)
    and then to its class name.
    """
    code = error_code or getattr(exc, "code", type(exc).__name__)
    stack = ""
    if include_stack:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return StructuredError(
        error_code=code,
        message=str(exc),
        intent_type=intent_type,
        agent_type=agent_type,
        context=dict(context or {}),
        stack_trace=stack,
    )


def log_structured_error(
    logger: logging.Logger,
    exc: Exception,
    *,
    error_code: str = "",
    intent_type: str = "",
    agent_type: str = "",
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> StructuredError:
    """Log ``exc`` as a structured record and return it.

    Stack traces are kept only at ERROR and above; degraded paths that
    log at WARNING (a failed mutation, an LLM outage) stay one line.
    """
    structured = create_structured_error(
        exc,
        error_code=error_code,
        intent_type=intent_type,
        agent_type=agent_type,
        context=context,
        include_stack=level >= logging.ERROR,
    )
    logger.log(
        level,
        "structured_error code=%s intent=%s agent=%s",
        structured.error_code,
        structured.intent_type or "-",
        structured.agent_type or "-",
        extra={"structured_error": structured.to_dict()},
    )
    return structured
