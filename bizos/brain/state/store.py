"""Business state store -- the one owner of a session's business data.

- Created once per session; rehydrated from a StoragePort snapshot or
  started from defaults
- Mutated only through the named operations below
- After every mutation: derived metrics recomputed, snapshot persisted
- Ids come from an injected factory (uuid4 hex by default), never from
  timestamps

The store is an explicit object handed to whoever needs it (executor,
gateway, agent service); there is no module-level instance.
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from datetime import UTC, date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import uuid4

import pydantic
from pydantic import TypeAdapter

from bizos.brain.state.metrics import compute_metrics
from bizos.shared.errors import NotFoundError, StorageError, ValidationError
from bizos.shared.types import (
    AgentContext,
    AgentType,
    BusinessState,
    CompanyInfo,
    ComputedMetrics,
    ConversationMemory,
    CorrectionMemory,
    Customer,
    CustomerStage,
    Decision,
    FinancialMetrics,
    Goal,
    GoalStatus,
    Priority,
    RoadmapStatus,
    Task,
    TaskOwner,
    TaskStatus,
    UserPreferences,
    Verbosity,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bizos.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

DEFAULT_STATE_KEY = "bizos_business_context"

MAX_RECENT_CONVERSATIONS = 50
MAX_CORRECTIONS = 20

_E = TypeVar("_E", bound=Enum)

_STATE_ADAPTER: TypeAdapter[BusinessState] = TypeAdapter(BusinessState)

_TASK_FIELDS = frozenset({"title", "priority", "status", "owner", "due_date", "agent_type", "description"})
_CUSTOMER_FIELDS = frozenset(
    {"name", "company", "email", "mrr", "health_score", "stage", "last_contact", "join_date", "notes"}
)
_FINANCE_FIELDS = frozenset(f.name for f in fields(FinancialMetrics))
_COMPANY_FIELDS = frozenset(f.name for f in fields(CompanyInfo))
_PREFERENCE_FIELDS = frozenset({"verbosity", "proactive_insights", "preferred_communication_style"})


def monotonic_ids(prefix: str = "") -> Callable[[], str]:
    """Id factory yielding ``<prefix>1``, ``<prefix>2``, ... for one session."""
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


def metrics_payload(metrics: ComputedMetrics) -> dict[str, Any]:
    """ComputedMetrics as a JSON-safe dict (infinite runway becomes None)."""
    data = asdict(metrics)
    if math.isinf(data["runway"]):
        data["runway"] = None
    return data


def _uuid_id() -> str:
    return uuid4().hex


def _coerce(enum_type: type[_E], value: Any, field_name: str) -> _E:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_type)
        raise ValidationError(
            f"Invalid {field_name}: {value!r} (expected one of: {allowed})",
            field=field_name,
        ) from None


def _coerce_optional(enum_type: type[_E], value: Any, field_name: str) -> _E | None:
    if value is None:
        return None
    return _coerce(enum_type, value, field_name)


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be a non-empty string", field=field_name)
    return value.strip()


def _require_number(value: Any, field_name: str, *, minimum: float | None = None) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{field_name} must be a number", field=field_name)
    if not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a finite number", field=field_name)
    if minimum is not None and value < minimum:
        raise ValidationError(f"{field_name} must be >= {minimum}", field=field_name)
    return value


def _check_iso_date(value: str | None, field_name: str) -> str | None:
    if value is None or value == "":
        return value
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)", field=field_name) from None
    return value


def _check_unknown(updates: dict[str, Any], allowed: frozenset[str], entity: str) -> None:
    unknown = sorted(set(updates) - allowed)
    if unknown:
        raise ValidationError(f"Unknown {entity} field(s): {', '.join(unknown)}", field=unknown[0])


@dataclass(frozen=True)
class StoreExecutionContext:
    """ExecutionContext bound to a store and the persona of the current turn."""

    store: BusinessStateStore
    agent_type: AgentType | None = None

    def add_task(self, **task: Any) -> Task:
        return self.store.add_task(**task)

    def add_customer(self, **customer: Any) -> Customer:
        return self.store.add_customer(**customer)

    def update_finances(self, **updates: Any) -> None:
        self.store.update_finances(**updates)

    def add_decision(self, **decision: Any) -> Decision:
        return self.store.add_decision(**decision)

    def add_goal(self, **goal: Any) -> Goal:
        return self.store.add_goal(**goal)


class BusinessStateStore:
    """Owns the BusinessState for one session."""

    def __init__(
        self,
        *,
        storage: StoragePort | None = None,
        state_key: str = DEFAULT_STATE_KEY,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._storage = storage
        self._state_key = state_key
        self._new_id = id_factory or _uuid_id
        self._clock = clock or (lambda: datetime.now(UTC))
        self._state = self._load()
        self._state.computed_metrics = compute_metrics(self._state, self._today())
        # Last state known to match storage; restored when a write fails
        self._committed = self._dump()

    # -- Read access --

    @property
    def state(self) -> BusinessState:
        """Current state. Treat as read-only; mutate through the store."""
        return self._state

    @property
    def metrics(self) -> ComputedMetrics:
        return self._state.computed_metrics

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready dict of the full state, derived metrics included.

        An infinite runway (not burning cash) is reported as None.
        """
        data = _STATE_ADAPTER.dump_python(self._state, mode="json")
        data["computed_metrics"] = metrics_payload(self._state.computed_metrics)
        return data

    def get_task(self, task_id: str) -> Task:
        for task in self._state.tasks:
            if task.id == task_id:
                return task
        raise NotFoundError("Task", task_id)

    def get_customer(self, customer_id: str) -> Customer:
        for customer in self._state.customers:
            if customer.id == customer_id:
                return customer
        raise NotFoundError("Customer", customer_id)

    def execution_context(self, agent_type: AgentType | None = None) -> StoreExecutionContext:
        return StoreExecutionContext(store=self, agent_type=agent_type)

    # -- Tasks --

    def add_task(
        self,
        *,
        title: str,
        priority: Priority | str = Priority.MEDIUM,
        status: TaskStatus | str = TaskStatus.TODO,
        owner: TaskOwner | str = TaskOwner.YOU,
        due_date: str | None = None,
        agent_type: AgentType | str | None = None,
        description: str | None = None,
    ) -> Task:
        task = Task(
            id=self._new_id(),
            title=_require_text(title, "title"),
            priority=_coerce(Priority, priority, "priority"),
            status=_coerce(TaskStatus, status, "status"),
            owner=_coerce(TaskOwner, owner, "owner"),
            created_at=self._clock().isoformat(),
            due_date=_check_iso_date(due_date, "due_date") or None,
            agent_type=_coerce_optional(AgentType, agent_type, "agent_type"),
            description=description,
        )
        self._state.tasks.insert(0, task)
        self._commit("add_task", task.id)
        return task

    def update_task(self, task_id: str, **updates: Any) -> Task:
        _check_unknown(updates, _TASK_FIELDS, "task")
        current = self.get_task(task_id)
        changes = dict(updates)
        if "title" in changes:
            changes["title"] = _require_text(changes["title"], "title")
        for name, enum_type in (("priority", Priority), ("status", TaskStatus), ("owner", TaskOwner)):
            if name in changes:
                changes[name] = _coerce(enum_type, changes[name], name)
        if "agent_type" in changes:
            changes["agent_type"] = _coerce_optional(AgentType, changes["agent_type"], "agent_type")
        if "due_date" in changes:
            changes["due_date"] = _check_iso_date(changes["due_date"], "due_date") or None

        updated = replace(current, **changes)
        self._state.tasks = [updated if t.id == task_id else t for t in self._state.tasks]
        self._commit("update_task", task_id)
        return updated

    # -- Customers --

    def add_customer(
        self,
        *,
        name: str,
        company: str,
        email: str = "",
        mrr: float = 0,
        health_score: int = 80,
        stage: CustomerStage | str = CustomerStage.ACTIVE,
        last_contact: str = "Today",
        join_date: str | None = None,
        notes: str | None = None,
    ) -> Customer:
        customer = Customer(
            id=self._new_id(),
            name=_require_text(name, "name"),
            company=_require_text(company, "company"),
            email=email or "",
            mrr=_require_number(mrr, "mrr", minimum=0),
            health_score=self._check_health(health_score),
            stage=_coerce(CustomerStage, stage, "stage"),
            last_contact=last_contact,
            join_date=join_date or self._clock().strftime("%b %Y"),
            notes=notes,
        )
        self._state.customers.insert(0, customer)
        self._commit("add_customer", customer.id)
        return customer

    def update_customer(self, customer_id: str, **updates: Any) -> Customer:
        _check_unknown(updates, _CUSTOMER_FIELDS, "customer")
        current = self.get_customer(customer_id)
        changes = dict(updates)
        for name in ("name", "company"):
            if name in changes:
                changes[name] = _require_text(changes[name], name)
        if "mrr" in changes:
            changes["mrr"] = _require_number(changes["mrr"], "mrr", minimum=0)
        if "health_score" in changes:
            changes["health_score"] = self._check_health(changes["health_score"])
        if "stage" in changes:
            changes["stage"] = _coerce(CustomerStage, changes["stage"], "stage")

        updated = replace(current, **changes)
        self._state.customers = [updated if c.id == customer_id else c for c in self._state.customers]
        self._commit("update_customer", customer_id)
        return updated

    @staticmethod
    def _check_health(value: Any) -> int:
        score = _require_number(value, "health_score")
        if not 0 <= score <= 100:
            raise ValidationError("health_score must be between 0 and 100", field="health_score")
        return int(score)

    # -- Finances --

    def update_finances(self, **updates: Any) -> FinancialMetrics:
        """Partial merge into the finance value object."""
        _check_unknown(updates, _FINANCE_FIELDS, "finance")
        for name, value in updates.items():
            if name not in ("expenses", "revenue_streams"):
                _require_number(value, name)
        self._state.finances = replace(self._state.finances, **updates)
        self._commit("update_finances", ",".join(sorted(updates)))
        return self._state.finances

    # -- Goals & decisions --

    def add_goal(
        self,
        *,
        title: str,
        target: str = "",
        current: float = 0,
        target_value: float = 100,
        deadline: str = "",
        status: GoalStatus | str = GoalStatus.ON_TRACK,
    ) -> Goal:
        goal = Goal(
            id=self._new_id(),
            title=_require_text(title, "title"),
            target=target,
            current=_require_number(current, "current"),
            target_value=_require_number(target_value, "target_value"),
            deadline=deadline or "",
            status=_coerce(GoalStatus, status, "status"),
        )
        self._state.goals.insert(0, goal)
        self._commit("add_goal", goal.id)
        return goal

    def add_decision(
        self,
        *,
        title: str,
        context: str = "",
        outcome: str = "",
        agent_type: AgentType | str | None = None,
    ) -> Decision:
        """Append to the decision log. Decisions are never edited afterwards."""
        decision = Decision(
            id=self._new_id(),
            title=_require_text(title, "title"),
            context=context,
            outcome=outcome,
            date=self._clock().isoformat(),
            agent_type=_coerce_optional(AgentType, agent_type, "agent_type"),
        )
        self._state.decisions.insert(0, decision)
        self._commit("add_decision", decision.id)
        return decision

    # -- Settings & memory --

    def update_company_info(self, **updates: Any) -> CompanyInfo:
        _check_unknown(updates, _COMPANY_FIELDS, "company")
        self._state.company_info = replace(self._state.company_info, **updates)
        self._commit("update_company_info", ",".join(sorted(updates)))
        return self._state.company_info

    def save_conversation(
        self,
        agent_type: AgentType | str,
        summary: str,
        insights: Iterable[str] | None = None,
    ) -> ConversationMemory:
        memory = ConversationMemory(
            id=self._new_id(),
            agent_type=_coerce(AgentType, agent_type, "agent_type"),
            summary=summary,
            timestamp=self._clock().isoformat(),
            key_insights=list(insights or []),
        )
        conversations = [memory, *self._state.recent_conversations]
        self._state.recent_conversations = conversations[:MAX_RECENT_CONVERSATIONS]
        self._commit("save_conversation", memory.id)
        return memory

    def add_correction(
        self,
        agent_type: AgentType | str,
        original_output: str,
        correction: str,
    ) -> CorrectionMemory:
        entry = CorrectionMemory(
            id=self._new_id(),
            original_output=original_output,
            correction=correction,
            agent_type=_coerce(AgentType, agent_type, "agent_type"),
            timestamp=self._clock().isoformat(),
        )
        prefs = self._state.user_preferences
        corrections = [entry, *prefs.corrections][:MAX_CORRECTIONS]
        self._state.user_preferences = replace(prefs, corrections=corrections)
        self._commit("add_correction", entry.id)
        return entry

    def update_preferences(self, **prefs: Any) -> UserPreferences:
        _check_unknown(prefs, _PREFERENCE_FIELDS, "preference")
        if "verbosity" in prefs:
            prefs["verbosity"] = _coerce(Verbosity, prefs["verbosity"], "verbosity")
        self._state.user_preferences = replace(self._state.user_preferences, **prefs)
        self._commit("update_preferences", ",".join(sorted(prefs)))
        return self._state.user_preferences

    # -- Per-persona context --

    def get_agent_context(self, agent_type: AgentType | str) -> AgentContext:
        """Slice of the state relevant to one persona's prompt."""
        agent = _coerce(AgentType, agent_type, "agent_type")
        state = self._state
        m = state.computed_metrics
        relevant: dict[str, Any] = {}
        metrics: dict[str, Any] = {}

        if agent is AgentType.FINANCE:
            relevant["finances"] = state.finances
            relevant["recent_expenses"] = state.finances.expenses[:10]
            relevant["revenue_streams"] = state.finances.revenue_streams[:10]
            metrics.update(
                runway=m.runway,
                burn_rate=m.burn_rate,
                mrr=state.finances.mrr,
                arr=state.finances.arr,
                balance=state.finances.balance,
            )
        elif agent is AgentType.CUSTOMER:
            relevant["customers"] = state.customers[:20]
            relevant["at_risk_customers"] = [
                c for c in state.customers if c.stage is CustomerStage.AT_RISK
            ]
            metrics.update(
                total_customers=m.total_customers,
                active_customers=m.active_customers,
                at_risk_count=m.at_risk_count,
                avg_health_score=m.avg_health_score,
                churn_rate=m.churn_rate,
                total_mrr=m.total_mrr,
            )
        elif agent is AgentType.MARKETING:
            relevant["campaigns"] = state.campaigns
            metrics.update(
                active_campaigns=m.active_campaigns,
                total_ad_spend=m.total_ad_spend,
                overall_roi=m.overall_roi,
            )
        elif agent is AgentType.PRODUCT:
            relevant["roadmap"] = state.roadmap
            relevant["now_items"] = [r for r in state.roadmap if r.status is RoadmapStatus.NOW]
            metrics.update(now_items=m.now_items, total_roadmap_items=m.total_roadmap_items)
        elif agent is AgentType.CEO:
            # The generalist sees a bit of everything
            relevant["finances"] = state.finances
            relevant["customers"] = state.customers[:10]
            relevant["campaigns"] = state.campaigns[:5]
            relevant["roadmap"] = [r for r in state.roadmap if r.status is RoadmapStatus.NOW]
            relevant["goals"] = state.goals
            relevant["recent_decisions"] = state.decisions[:5]
            metrics.update(asdict(m))

        relevant["tasks"] = [t for t in state.tasks if t.agent_type in (agent, None)][:10]

        return AgentContext(
            agent_type=agent,
            current_date=self._clock().isoformat(),
            company_info=state.company_info,
            relevant_data=relevant,
            metrics=metrics,
            recent_history=[c for c in state.recent_conversations if c.agent_type is agent][:5],
            user_preferences=state.user_preferences,
        )

    # -- Internals --

    def _today(self) -> date:
        return self._clock().date()

    def _load(self) -> BusinessState:
        if self._storage is None:
            return BusinessState()
        try:
            raw = self._storage.get(self._state_key)
        except StorageError:
            logger.warning("Could not read state snapshot '%s', using defaults", self._state_key, exc_info=True)
            return BusinessState()
        if raw is None:
            logger.info("No state snapshot under '%s', starting from defaults", self._state_key)
            return BusinessState()
        try:
            state = _STATE_ADAPTER.validate_python(raw)
        except pydantic.ValidationError:
            logger.warning("Corrupt state snapshot '%s', using defaults", self._state_key, exc_info=True)
            return BusinessState()
        logger.info(
            "Rehydrated state '%s': %d tasks, %d customers",
            self._state_key,
            len(state.tasks),
            len(state.customers),
        )
        return state

    def _dump(self) -> dict[str, Any]:
        return _STATE_ADAPTER.dump_python(self._state, mode="json", exclude={"computed_metrics"})

    def _commit(self, operation: str, ref: str) -> None:
        """Persist the mutated state, or undo the mutation if the write fails."""
        payload = self._dump()
        if self._storage is not None:
            try:
                self._storage.put(self._state_key, payload)
            except Exception:
                self._state = _STATE_ADAPTER.validate_python(self._committed)
                self._state.computed_metrics = compute_metrics(self._state, self._today())
                logger.warning(
                    "State mutation %s (%s) rolled back: snapshot write failed", operation, ref
                )
                raise
        self._committed = payload
        self._state.computed_metrics = compute_metrics(self._state, self._today())
        logger.debug("State mutation %s (%s) committed", operation, ref)
