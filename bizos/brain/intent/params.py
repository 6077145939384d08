"""Intent types and their typed parameter records.

Each catalog intent builds exactly one parameter record; the record's
defaults are the values the executor falls back to when an extractor
found nothing. ``IntentParams`` is the union the executor matches on.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from bizos.shared.types import Priority, TaskOwner


class IntentType(Enum):
    """Action a message asks for."""

    CREATE_TASK = "CREATE_TASK"
    CREATE_GOAL = "CREATE_GOAL"
    ADD_CUSTOMER = "ADD_CUSTOMER"
    UPDATE_FINANCES = "UPDATE_FINANCES"
    LOG_DECISION = "LOG_DECISION"
    ADD_EXPENSE = "ADD_EXPENSE"
    CREATE_CAMPAIGN = "CREATE_CAMPAIGN"
    # Recognised names with no detection rules yet
    UPDATE_TASK = "UPDATE_TASK"
    SCHEDULE_MEETING = "SCHEDULE_MEETING"
    UNKNOWN = "UNKNOWN"


class FinanceType(Enum):
    """Which finance figure an UPDATE_FINANCES message talks about."""

    INCOME = "income"
    EXPENSE = "expense"
    BALANCE = "balance"


class _ParamsMixin:
    intent_type: ClassVar[IntentType]

    def as_dict(self) -> dict[str, Any]:
        """Plain-dict view with enum members reduced to their values."""
        result: dict[str, Any] = {}
        for key, value in asdict(self).items():  # type: ignore[call-overload]
            if value is None:
                continue
            result[key] = value.value if isinstance(value, Enum) else value
        return result


@dataclass(frozen=True)
class TaskParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.CREATE_TASK

    title: str = "New Task"
    priority: Priority = Priority.MEDIUM
    owner: TaskOwner = TaskOwner.YOU
    due_date: str | None = None


@dataclass(frozen=True)
class GoalParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.CREATE_GOAL

    title: str = "New Goal"
    target: str = ""
    target_value: float = 100
    deadline: str = ""


@dataclass(frozen=True)
class CustomerParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.ADD_CUSTOMER

    name: str = "New Customer"
    company: str = "Unknown"
    email: str = ""
    mrr: float = 0


@dataclass(frozen=True)
class FinanceParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.UPDATE_FINANCES

    amount: float = 0
    type: FinanceType = FinanceType.BALANCE
    category: str = "other"


@dataclass(frozen=True)
class DecisionParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.LOG_DECISION

    title: str = "New Decision"
    context: str = ""
    outcome: str = ""


@dataclass(frozen=True)
class ExpenseParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.ADD_EXPENSE

    name: str = ""
    amount: float = 0
    category: str = "other"
    vendor: str = "Unknown Vendor"


@dataclass(frozen=True)
class CampaignParams(_ParamsMixin):
    intent_type: ClassVar[IntentType] = IntentType.CREATE_CAMPAIGN

    name: str = ""
    channel: str = "google"
    budget: float = 0


@dataclass(frozen=True)
class NoParams(_ParamsMixin):
    """Parameters of an UNKNOWN intent."""

    intent_type: ClassVar[IntentType] = IntentType.UNKNOWN


IntentParams = Union[
    TaskParams,
    GoalParams,
    CustomerParams,
    FinanceParams,
    DecisionParams,
    ExpenseParams,
    CampaignParams,
    NoParams,
]
