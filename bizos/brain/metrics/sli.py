"""Brain layer SLI metrics for Prometheus.

1. intent_detected_total{intent_type}            -- classifications by winning type
2. intent_action_total{intent_type,outcome}      -- executor outcomes
3. agent_routed_total{agent_type}                -- persona routing decisions
4. intent_classification_duration_seconds        -- detect() latency
5. agent_turn_duration_seconds                   -- full agent turn latency
"""

from __future__ import annotations

import time
from collections.abc import Generator  # noqa: TC003 -- used at runtime by contextmanager
from contextlib import contextmanager

from prometheus_client import CollectorRegistry, Counter, Histogram

# Classification is a regex scan; turns include the LLM call.
_CLASSIFY_BUCKETS = (0.0001, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1)
_TURN_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0)


def _histogram(
    name: str,
    documentation: str,
    buckets: tuple[float, ...],
    registry: CollectorRegistry | None,
) -> Histogram:
    """Create a Histogram with optional registry."""
    if registry is not None:
        return Histogram(name, documentation, buckets=buckets, registry=registry)
    return Histogram(name, documentation, buckets=buckets)


def _counter(
    name: str,
    documentation: str,
    labelnames: list[str],
    registry: CollectorRegistry | None,
) -> Counter:
    """Create a Counter with optional registry."""
    if registry is not None:
        return Counter(name, documentation, labelnames, registry=registry)
    return Counter(name, documentation, labelnames)


class IntentSLI:
    """Central registry for intent/routing SLI metrics.

    Pass a custom CollectorRegistry for testing isolation.
    In production, use the default global registry (registry=None) and
    create exactly one instance per process.
    """

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.intent_detected = _counter(
            "bizos_intent_detected_total",
            "Messages classified, by winning intent type",
            ["intent_type"],
            registry,
        )

        self.intent_action = _counter(
            "bizos_intent_action_total",
            "Intent execution attempts, by intent type and outcome",
            ["intent_type", "outcome"],
            registry,
        )

        self.agent_routed = _counter(
            "bizos_agent_routed_total",
            "Conversational turns routed, by primary persona",
            ["agent_type"],
            registry,
        )

        self.classification_duration = _histogram(
            "bizos_intent_classification_duration_seconds",
            "Time spent classifying one message",
            _CLASSIFY_BUCKETS,
            registry,
        )

        self.turn_duration = _histogram(
            "bizos_agent_turn_duration_seconds",
            "Time spent on a full agent turn (detect, execute, reply)",
            _TURN_BUCKETS,
            registry,
        )

    def record_detection(self, intent_type: str) -> None:
        self.intent_detected.labels(intent_type=intent_type).inc()

    def record_action(self, intent_type: str, outcome: str) -> None:
        """outcome: executed | skipped | unsupported | failed"""
        self.intent_action.labels(intent_type=intent_type, outcome=outcome).inc()

    def record_route(self, agent_type: str) -> None:
        self.agent_routed.labels(agent_type=agent_type).inc()

    @contextmanager
    def timer(self, histogram: Histogram) -> Generator[None, None, None]:
        """Context manager that observes elapsed time on a histogram.

        Duration is always recorded, even if the block raises an exception.
        """
        start = time.monotonic()
        try:
            yield
        finally:
            histogram.observe(time.monotonic() - start)
