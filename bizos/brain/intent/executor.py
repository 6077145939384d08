"""Action executor -- turn a confident DetectedIntent into one store mutation.

- Below the confidence gate: nothing is called, a failed result is returned
- Supported: CREATE_TASK, CREATE_GOAL, ADD_CUSTOMER, UPDATE_FINANCES, LOG_DECISION
- Anything else is reported as not supported
- Mutator errors are caught and reported; the executor never raises

Recomputing derived metrics and persisting are the store's business,
triggered inside each mutator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from bizos.brain.intent.classifier import EXECUTION_THRESHOLD
from bizos.brain.intent.params import (
    CustomerParams,
    DecisionParams,
    FinanceParams,
    FinanceType,
    GoalParams,
    IntentType,
    TaskParams,
)
from bizos.shared.logging.error_handler import log_structured_error
from bizos.shared.types import CustomerStage, GoalStatus, TaskStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from bizos.brain.intent.classifier import DetectedIntent
    from bizos.brain.metrics.sli import IntentSLI
    from bizos.shared.types import (
        AgentType,
        Customer,
        Decision,
        Goal,
        Priority,
        Task,
        TaskOwner,
    )

logger = logging.getLogger(__name__)

MSG_LOW_CONFIDENCE = "Confidence too low to execute automatically"
MSG_UNSUPPORTED = "Intent type not yet supported for automatic execution"
MSG_FAILED = "Failed to execute action"

NEW_CUSTOMER_HEALTH_SCORE = 80

_P = TypeVar("_P")


class ExecutionContext(Protocol):
    """State mutators the executor may call, plus the active persona.

    Each mutator assigns ids, recomputes derived metrics and persists;
    the returned entity is only read back for the confirmation message.
    """

    @property
    def agent_type(self) -> AgentType | None: ...

    def add_task(
        self,
        *,
        title: str,
        priority: Priority,
        status: TaskStatus,
        owner: TaskOwner,
        due_date: str | None = None,
        agent_type: AgentType | None = None,
    ) -> Task: ...

    def add_customer(
        self,
        *,
        name: str,
        company: str,
        email: str,
        mrr: float,
        health_score: int,
        stage: CustomerStage,
        last_contact: str,
        join_date: str,
    ) -> Customer: ...

    def update_finances(self, **updates: Any) -> None: ...

    def add_decision(
        self,
        *,
        title: str,
        context: str,
        outcome: str,
        agent_type: AgentType | None = None,
    ) -> Decision: ...

    def add_goal(
        self,
        *,
        title: str,
        target: str,
        current: float,
        target_value: float,
        deadline: str,
        status: GoalStatus,
    ) -> Goal: ...


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execution attempt. Ephemeral, used to build replies."""

    success: bool
    intent: IntentType
    message: str
    created_item: Any = None
    error: str | None = None


def format_amount(amount: float) -> str:
    """``1500`` -> ``"1,500"``, ``2.5`` -> ``"2.50"``."""
    if float(amount).is_integer():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def _expect(params: Any, params_type: type[_P]) -> _P:
    """The intent's parameters if they match its type, else that type's defaults."""
    if isinstance(params, params_type):
        return params
    return params_type()


class ActionExecutor:
    """Execute detected intents against an ExecutionContext."""

    def __init__(
        self,
        *,
        threshold: float = EXECUTION_THRESHOLD,
        clock: Callable[[], date] = date.today,
        sli: IntentSLI | None = None,
    ) -> None:
        self._threshold = threshold
        self._clock = clock
        self._sli = sli
        self._handlers: dict[
            IntentType, Callable[[DetectedIntent, ExecutionContext], ExecutionResult]
        ] = {
            IntentType.CREATE_TASK: self._create_task,
            IntentType.CREATE_GOAL: self._create_goal,
            IntentType.ADD_CUSTOMER: self._add_customer,
            IntentType.UPDATE_FINANCES: self._update_finances,
            IntentType.LOG_DECISION: self._log_decision,
        }

    def supports(self, intent_type: IntentType) -> bool:
        return intent_type in self._handlers

    def execute(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        """Perform at most one mutation for the intent.

        Never raises: low confidence, unsupported types and mutator
        failures are all reported through the returned result.
        """
        if intent.confidence < self._threshold:
            self._record(intent.type, "skipped")
            return ExecutionResult(success=False, intent=intent.type, message=MSG_LOW_CONFIDENCE)

        handler = self._handlers.get(intent.type)
        if handler is None:
            self._record(intent.type, "unsupported")
            return ExecutionResult(success=False, intent=intent.type, message=MSG_UNSUPPORTED)

        try:
            result = handler(intent, context)
        except Exception as exc:
            agent_type = getattr(context, "agent_type", None)
            log_structured_error(
                logger,
                exc,
                intent_type=intent.type.value,
                agent_type=agent_type.value if agent_type is not None else "",
                context={"parameters": intent.parameters.as_dict()},
                level=logging.WARNING,
            )
            self._record(intent.type, "failed")
            return ExecutionResult(
                success=False,
                intent=intent.type,
                message=MSG_FAILED,
                error=str(exc),
            )

        logger.info("Executed %s: %s", intent.type.value, result.message)
        self._record(intent.type, "executed")
        return result

    def _record(self, intent_type: IntentType, outcome: str) -> None:
        if self._sli is not None:
            self._sli.record_action(intent_type.value, outcome)

    # -- Handlers --

    def _create_task(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        params = _expect(intent.parameters, TaskParams)
        task = context.add_task(
            title=params.title,
            priority=params.priority,
            status=TaskStatus.TODO,
            owner=params.owner,
            due_date=params.due_date,
            agent_type=context.agent_type,
        )
        due = f" (due {task.due_date})" if task.due_date else ""
        return ExecutionResult(
            success=True,
            intent=IntentType.CREATE_TASK,
            message=f'Created task: "{task.title}"{due}',
            created_item=task,
        )

    def _create_goal(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        params = _expect(intent.parameters, GoalParams)
        goal = context.add_goal(
            title=params.title,
            target=params.target,
            current=0,
            target_value=params.target_value,
            deadline=params.deadline,
            status=GoalStatus.ON_TRACK,
        )
        return ExecutionResult(
            success=True,
            intent=IntentType.CREATE_GOAL,
            message=f'Set goal: "{goal.title}"',
            created_item=goal,
        )

    def _add_customer(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        params = _expect(intent.parameters, CustomerParams)
        customer = context.add_customer(
            name=params.name,
            company=params.company,
            email=params.email,
            mrr=params.mrr,
            health_score=NEW_CUSTOMER_HEALTH_SCORE,
            stage=CustomerStage.ACTIVE,
            last_contact="Today",
            join_date=self._clock().strftime("%b %Y"),
        )
        mrr = f" (${format_amount(customer.mrr)}/mo)" if customer.mrr > 0 else ""
        return ExecutionResult(
            success=True,
            intent=IntentType.ADD_CUSTOMER,
            message=f"Added customer: {customer.name} at {customer.company}{mrr}",
            created_item=customer,
        )

    def _update_finances(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        params = _expect(intent.parameters, FinanceParams)
        if params.type is FinanceType.EXPENSE:
            updates: dict[str, float] = {"monthly_burn": params.amount}
        elif params.type is FinanceType.INCOME:
            updates = {"monthly_revenue": params.amount, "mrr": params.amount}
        else:
            updates = {"balance": params.amount}

        context.update_finances(**updates)
        return ExecutionResult(
            success=True,
            intent=IntentType.UPDATE_FINANCES,
            message=f"Updated {params.type.value}: ${format_amount(params.amount)}",
            created_item=updates,
        )

    def _log_decision(self, intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
        params = _expect(intent.parameters, DecisionParams)
        decision = context.add_decision(
            title=params.title,
            context=params.context,
            outcome=params.outcome,
            agent_type=context.agent_type,
        )
        return ExecutionResult(
            success=True,
            intent=IntentType.LOG_DECISION,
            message=f'Logged decision: "{decision.title}"',
            created_item=decision,
        )


def format_action_confirmation(result: ExecutionResult) -> str:
    """Suffix appended to the persona's reply when an action ran."""
    if result.success:
        return f"\n\n---\n**Action Executed:** {result.message}"
    return ""


_default_executor = ActionExecutor()


def execute_intent(intent: DetectedIntent, context: ExecutionContext) -> ExecutionResult:
    """Execute with the default confidence gate."""
    return _default_executor.execute(intent, context)
