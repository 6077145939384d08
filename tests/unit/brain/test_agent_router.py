"""Tests for the persona router.

Validates:
- Highest keyword count wins, confidence = min(hits / 3, 1)
- Ties go to the persona declared first
- No hits -> ceo at 0.5
- Secondary personas and matched keywords reported
"""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from bizos.brain.metrics.sli import IntentSLI
from bizos.brain.persona.router import (
    AGENT_KEYWORDS,
    DEFAULT_AGENT,
    AgentRoute,
    AgentRouter,
    detect_agent_intent,
)
from bizos.shared.types import AgentType


@pytest.fixture()
def router() -> AgentRouter:
    return AgentRouter()


@pytest.mark.unit
class TestRouting:
    def test_finance_question(self, router: AgentRouter) -> None:
        route = router.route("what's our runway and burn rate this month?")
        assert route.primary_agent is AgentType.FINANCE
        assert route.confidence == pytest.approx(2 / 3)
        assert route.keywords == ["runway", "burn"]
        assert route.secondary_agents is None

    def test_no_keywords_defaults_to_ceo(self, router: AgentRouter) -> None:
        route = router.route("hello there")
        assert route.primary_agent is DEFAULT_AGENT is AgentType.CEO
        assert route.confidence == 0.5
        assert route.keywords == []
        assert route.secondary_agents is None

    def test_tie_goes_to_first_declared(self, router: AgentRouter) -> None:
        # "ship" belongs to both execution and product
        route = router.route("ship")
        assert route.primary_agent is AgentType.EXECUTION
        assert route.secondary_agents == [AgentType.PRODUCT]
        assert route.confidence == pytest.approx(1 / 3)

    def test_secondary_agents_in_declaration_order(self, router: AgentRouter) -> None:
        route = router.route("our customer churn is hurting revenue")
        assert route.primary_agent is AgentType.CUSTOMER
        assert route.secondary_agents == [AgentType.FINANCE]
        assert route.keywords == ["customer", "churn", "revenue"]

    def test_confidence_saturates(self, router: AgentRouter) -> None:
        route = router.route("launch a marketing campaign with ads for growth")
        assert route.primary_agent is AgentType.MARKETING
        assert route.confidence == 1.0

    def test_case_insensitive(self, router: AgentRouter) -> None:
        assert router.route("RUNWAY").primary_agent is AgentType.FINANCE

    def test_custom_vocabulary(self) -> None:
        router = AgentRouter(keywords={AgentType.BRANDING: ("vibe",)})
        route = router.route("what's the vibe")
        assert route.primary_agent is AgentType.BRANDING
        assert router.route("runway").primary_agent is AgentType.CEO

    def test_every_persona_has_vocabulary(self) -> None:
        assert set(AGENT_KEYWORDS) == set(AgentType)
        assert list(AGENT_KEYWORDS)[0] is AgentType.CEO


@pytest.mark.unit
class TestRouteSerialization:
    def test_as_dict(self) -> None:
        route = AgentRoute(
            primary_agent=AgentType.CUSTOMER,
            confidence=0.5,
            secondary_agents=[AgentType.FINANCE],
            keywords=["churn"],
        )
        assert route.as_dict() == {
            "primary_agent": "customer",
            "secondary_agents": ["finance"],
            "confidence": 0.5,
            "keywords": ["churn"],
        }

    def test_as_dict_without_secondary(self) -> None:
        data = detect_agent_intent("hello").as_dict()
        assert data["secondary_agents"] is None
        assert data["primary_agent"] == "ceo"


@pytest.mark.unit
class TestRouterMetrics:
    def test_routes_are_counted(self, registry: CollectorRegistry) -> None:
        router = AgentRouter(sli=IntentSLI(registry=registry))
        router.route("runway")
        router.route("burn")
        router.route("hello")

        def value(agent: str) -> float | None:
            return registry.get_sample_value("bizos_agent_routed_total", {"agent_type": agent})

        assert value("finance") == 2.0
        assert value("ceo") == 1.0
