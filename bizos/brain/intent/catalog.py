"""Intent catalog -- declarative table of what each action intent looks like.

Each entry lists regex patterns (explicit phrasing, checked in order,
case-insensitive), bare keywords (looser phrasing, substring match on
the lower-cased message), the slot extractors to run when the entry
wins, and the parameter record those slots populate.

Catalog order is significant: on equal confidence the earlier entry
wins. The matching engine lives in ``classifier``; this module holds
data only so the table can be tested and extended on its own.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from bizos.brain.intent import extractors as ex
from bizos.brain.intent.params import (
    CampaignParams,
    CustomerParams,
    DecisionParams,
    ExpenseParams,
    FinanceParams,
    GoalParams,
    IntentParams,
    IntentType,
    TaskParams,
)

if TYPE_CHECKING:
    from datetime import date


@dataclass(frozen=True)
class Slot:
    """One named extractor. ``anchored`` extractors also receive today's date."""

    extract: Callable[..., Any]
    anchored: bool = False

    def run(self, text: str, today: date) -> Any:
        if self.anchored:
            return self.extract(text, today)
        return self.extract(text)


@dataclass(frozen=True)
class IntentDefinition:
    """Detection rules for one intent type."""

    intent_type: IntentType
    patterns: tuple[re.Pattern[str], ...]
    keywords: tuple[str, ...]
    slots: Mapping[str, Slot]
    params_type: type[IntentParams]


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def build_catalog(assistant_name: str = ex.ASSISTANT_NAME) -> tuple[IntentDefinition, ...]:
    """The built-in catalog. ``assistant_name`` feeds task-owner detection."""
    owner = partial(ex.extract_owner, assistant_name=assistant_name)
    return (
        IntentDefinition(
            intent_type=IntentType.CREATE_TASK,
            patterns=_compile(
                r"(?:create|add|make)\s+(?:a\s+)?task\s+(?:to\s+)?(.+)",
                r"remind\s+me\s+to\s+(.+)",
                r"i\s+need\s+to\s+(.+)",
                r"(?:can\s+you\s+)?(?:add|create)\s+(?:a\s+)?(?:task|reminder|todo)\s*[:\s]+(.+)",
                r"task:\s*(.+)",
                r"(?:let's|i'll|we\s+need\s+to)\s+(.+?)(?:\s+by\s+|\s+before\s+|$)",
            ),
            keywords=("task", "remind", "todo", "add task", "create task", "need to"),
            slots={
                "title": Slot(ex.extract_title),
                "priority": Slot(ex.extract_priority),
                "due_date": Slot(ex.extract_due_date, anchored=True),
                "owner": Slot(owner),
            },
            params_type=TaskParams,
        ),
        IntentDefinition(
            intent_type=IntentType.CREATE_GOAL,
            patterns=_compile(
                r"(?:set|create)\s+(?:a\s+)?goal\s+(?:to\s+)?(.+)",
                r"(?:our|my)\s+goal\s+is\s+(?:to\s+)?(.+)",
                r"(?:we\s+)?want\s+to\s+(?:achieve|reach|hit)\s+(.+)",
                r"target:\s*(.+)",
            ),
            keywords=("goal", "target", "achieve", "reach", "hit"),
            slots={
                "title": Slot(ex.extract_title),
                "target": Slot(ex.extract_target),
                "deadline": Slot(ex.extract_due_date, anchored=True),
            },
            params_type=GoalParams,
        ),
        IntentDefinition(
            intent_type=IntentType.ADD_CUSTOMER,
            patterns=_compile(
                r"(?:new|add)\s+customer[:\s]+(.+)",
                r"(?:just\s+)?signed\s+(.+)",
                r"onboard(?:ed|ing)?\s+(.+)",
                r"(?:we\s+)?got\s+(?:a\s+)?new\s+(?:customer|client|user)[:\s]+(.+)",
            ),
            keywords=("customer", "client", "signed", "onboard", "new user"),
            slots={
                "name": Slot(ex.extract_customer_name),
                "company": Slot(ex.extract_company),
                "email": Slot(ex.extract_email),
                "mrr": Slot(ex.extract_money),
            },
            params_type=CustomerParams,
        ),
        IntentDefinition(
            intent_type=IntentType.UPDATE_FINANCES,
            patterns=_compile(
                r"(?:our\s+)?(?:mrr|revenue|income)\s+(?:is\s+)?(?:now\s+)?\$?([\d,]+)",
                r"(?:we\s+)?(?:spent|expense(?:d)?)\s+\$?([\d,]+)",
                r"(?:update|set)\s+(?:our\s+)?(?:balance|runway|burn)\s+(?:to\s+)?\$?([\d,]+)",
                r"(?:raised|got\s+)?(?:funding|investment)\s+(?:of\s+)?\$?([\d,]+)",
            ),
            keywords=("mrr", "revenue", "spent", "expense", "balance", "burn", "funding"),
            slots={
                "amount": Slot(ex.extract_money),
                "type": Slot(ex.extract_finance_type),
                "category": Slot(ex.extract_category),
            },
            params_type=FinanceParams,
        ),
        IntentDefinition(
            intent_type=IntentType.LOG_DECISION,
            patterns=_compile(
                r"(?:we\s+)?decided\s+(?:to\s+)?(.+)",
                r"(?:let's|we'll)\s+go\s+with\s+(.+)",
                r"decision[:\s]+(.+)",
                r"(?:choosing|chose)\s+(?:to\s+)?(.+)",
            ),
            keywords=("decided", "decision", "go with", "chose", "choosing"),
            slots={
                "title": Slot(ex.extract_title),
                "context": Slot(ex.extract_context),
                "outcome": Slot(ex.extract_outcome),
            },
            params_type=DecisionParams,
        ),
        IntentDefinition(
            intent_type=IntentType.ADD_EXPENSE,
            patterns=_compile(
                r"(?:add|log)\s+(?:an?\s+)?expense[:\s]+(.+)",
                r"(?:we\s+)?spent\s+\$?([\d,]+)\s+on\s+(.+)",
                r"(?:new\s+)?expense:\s*(.+)",
                r"(?:paid|paying)\s+\$?([\d,]+)\s+(?:for|to)\s+(.+)",
            ),
            keywords=("expense", "spent", "paid", "paying", "cost"),
            slots={
                "name": Slot(ex.extract_title),
                "amount": Slot(ex.extract_money),
                "category": Slot(ex.extract_category),
                "vendor": Slot(ex.extract_vendor),
            },
            params_type=ExpenseParams,
        ),
        IntentDefinition(
            intent_type=IntentType.CREATE_CAMPAIGN,
            patterns=_compile(
                r"(?:launch|create|start)\s+(?:a\s+)?campaign\s+(.+)",
                r"(?:run|start)\s+ads\s+(?:for|on)\s+(.+)",
                r"campaign:\s*(.+)",
            ),
            keywords=("campaign", "ads", "launch", "marketing"),
            slots={
                "name": Slot(ex.extract_title),
                "channel": Slot(ex.extract_channel),
                "budget": Slot(ex.extract_money),
            },
            params_type=CampaignParams,
        ),
    )


INTENT_CATALOG = build_catalog()
