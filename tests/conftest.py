"""Root conftest - shared fixtures for all test layers.

Markers:
    @pytest.mark.unit        - No external deps
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from prometheus_client import CollectorRegistry

from bizos.brain.metrics.sli import IntentSLI
from bizos.brain.state.store import BusinessStateStore, monotonic_ids
from bizos.infra.storage.memory import InMemoryStorage

# Thursday 2026-01-08.
ANCHOR_NOW = datetime(2026, 1, 8, 9, 30, tzinfo=UTC)


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def sli(registry: CollectorRegistry) -> IntentSLI:
    return IntentSLI(registry=registry)


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(memory_storage: InMemoryStorage) -> BusinessStateStore:
    """Store with deterministic ids and a clock pinned to the anchor date."""
    return BusinessStateStore(
        storage=memory_storage,
        id_factory=monotonic_ids("id-"),
        clock=lambda: ANCHOR_NOW,
    )
