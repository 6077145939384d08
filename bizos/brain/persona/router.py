"""Agent router -- pick the specialist persona that answers a message.

- Fixed keyword vocabulary per persona, matched as lowercase substrings
- Highest count wins; ties go to the persona declared first
- Nothing matched -> ceo with confidence 0.5
- Independent of the intent catalog: routing decides who answers,
  the classifier decides what action to take
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bizos.shared.types import AgentType

if TYPE_CHECKING:
    from bizos.brain.metrics.sli import IntentSLI

logger = logging.getLogger(__name__)

DEFAULT_AGENT = AgentType.CEO
DEFAULT_CONFIDENCE = 0.5
# Three keyword hits make a fully confident route.
_SATURATION_HITS = 3

# Declaration order matters: it breaks ties between equal scores.
AGENT_KEYWORDS: dict[AgentType, tuple[str, ...]] = {
    AgentType.CEO: (
        "focus", "priority", "prioritize", "what should i", "what matters",
        "today", "this week", "strategy", "direction", "decide", "tradeoff",
        "important", "urgent", "help me think", "pivot", "stop doing",
    ),
    AgentType.EXECUTION: (
        "task", "todo", "create", "add", "deadline", "overdue", "stuck",
        "blocker", "ship", "done", "complete", "progress", "work on",
        "action", "execute", "plan", "schedule",
    ),
    AgentType.CUSTOMER: (
        "user", "customer", "feedback", "conversation", "call", "meeting",
        "pain point", "problem", "promise", "follow up", "interview",
        "validate", "pmf", "product market fit", "churn", "retention",
    ),
    AgentType.DECISION: (
        "decision", "decided", "choice", "chose", "option", "alternative",
        "why did we", "remember when", "last time", "learned", "mistake",
        "regret", "outcome", "result", "evaluate",
    ),
    AgentType.FINANCE: (
        "runway", "cash", "burn", "money", "revenue", "cost", "expense",
        "fundraise", "investor", "survive", "months left", "budget",
        "pricing", "profit", "loss", "financial",
    ),
    AgentType.MARKETING: (
        "marketing", "growth", "launch", "campaign", "content", "social",
        "distribution", "channel", "acquisition", "funnel", "conversion",
        "traffic", "seo", "ads", "viral", "promote",
    ),
    AgentType.BRANDING: (
        "brand", "branding", "voice", "tone", "positioning", "message",
        "tagline", "slogan", "identity", "logo", "value proposition",
        "differentiate", "unique", "story", "narrative",
    ),
    AgentType.PRODUCT: (
        "build", "feature", "product", "develop", "code", "architecture",
        "tech", "stack", "mvp", "scope", "roadmap", "engineering",
        "design", "ux", "ui", "prototype", "ship",
    ),
}


@dataclass(frozen=True)
class AgentRoute:
    """Routing decision for one message."""

    primary_agent: AgentType
    confidence: float
    secondary_agents: list[AgentType] | None = None
    keywords: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "primary_agent": self.primary_agent.value,
            "secondary_agents": (
                [a.value for a in self.secondary_agents] if self.secondary_agents else None
            ),
            "confidence": self.confidence,
            "keywords": list(self.keywords),
        }


class AgentRouter:
    """Keyword-count router over a persona vocabulary."""

    def __init__(
        self,
        *,
        keywords: dict[AgentType, tuple[str, ...]] | None = None,
        sli: IntentSLI | None = None,
    ) -> None:
        self._keywords = keywords or AGENT_KEYWORDS
        self._sli = sli

    def route(self, message: str) -> AgentRoute:
        lowered = message.lower()
        scores: dict[AgentType, int] = {}
        matched: list[str] = []

        for agent, vocabulary in self._keywords.items():
            hits = [kw for kw in vocabulary if kw in lowered]
            scores[agent] = len(hits)
            matched.extend(hits)

        primary = DEFAULT_AGENT
        best = 0
        for agent, score in scores.items():
            if score > best:
                best = score
                primary = agent

        secondary = [a for a, s in scores.items() if s > 0 and a is not primary]
        confidence = min(best / _SATURATION_HITS, 1.0) if best > 0 else DEFAULT_CONFIDENCE

        route = AgentRoute(
            primary_agent=primary,
            confidence=confidence,
            secondary_agents=secondary or None,
            keywords=matched,
        )
        logger.debug(
            "Routed message to %s (confidence=%.2f, keywords=%d)",
            primary.value,
            confidence,
            len(matched),
        )
        if self._sli is not None:
            self._sli.record_route(primary.value)
        return route


_default_router = AgentRouter()


def detect_agent_intent(message: str) -> AgentRoute:
    """Route with the built-in persona vocabulary."""
    return _default_router.route(message)
