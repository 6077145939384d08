"""Fake ExecutionContext implementations for executor tests."""

from __future__ import annotations

import itertools
from typing import Any

from bizos.shared.types import AgentType, Customer, Decision, Goal, Task


class RecordingExecutionContext:
    """Builds entities like the store would and records every mutator call."""

    def __init__(self, agent_type: AgentType | None = None) -> None:
        self._agent_type = agent_type
        self._ids = itertools.count(1)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.finance_updates: dict[str, Any] = {}

    @property
    def agent_type(self) -> AgentType | None:
        return self._agent_type

    def _next_id(self) -> str:
        return f"fake-{next(self._ids)}"

    def add_task(self, **task: Any) -> Task:
        self.calls.append(("add_task", task))
        return Task(id=self._next_id(), created_at="2026-01-08T09:30:00+00:00", **task)

    def add_customer(self, **customer: Any) -> Customer:
        self.calls.append(("add_customer", customer))
        return Customer(id=self._next_id(), **customer)

    def update_finances(self, **updates: Any) -> None:
        self.calls.append(("update_finances", updates))
        self.finance_updates.update(updates)

    def add_decision(self, **decision: Any) -> Decision:
        self.calls.append(("add_decision", decision))
        return Decision(id=self._next_id(), date="2026-01-08T09:30:00+00:00", **decision)

    def add_goal(self, **goal: Any) -> Goal:
        self.calls.append(("add_goal", goal))
        return Goal(id=self._next_id(), **goal)


class FailingExecutionContext(RecordingExecutionContext):
    """Every mutator records the call and then raises ``error``."""

    def __init__(self, error: Exception, agent_type: AgentType | None = None) -> None:
        super().__init__(agent_type)
        self.error = error

    def add_task(self, **task: Any) -> Task:
        self.calls.append(("add_task", task))
        raise self.error

    def add_customer(self, **customer: Any) -> Customer:
        self.calls.append(("add_customer", customer))
        raise self.error

    def update_finances(self, **updates: Any) -> None:
        self.calls.append(("update_finances", updates))
        raise self.error

    def add_decision(self, **decision: Any) -> Decision:
        self.calls.append(("add_decision", decision))
        raise self.error

    def add_goal(self, **goal: Any) -> Goal:
        self.calls.append(("add_goal", goal))
        raise self.error
