"""Slot extractors -- pull structured values out of free text.

Every extractor is a pure function over the *whole* user message (not
a regex capture group), so several extractors can draw on different
parts of the same sentence. Extractors are total: for any string they
return a well-typed value, ``None``, or a documented fallback, and
never raise. Ambiguity is resolved by the fallback, not by an error.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, timedelta

from bizos.brain.intent.params import FinanceType
from bizos.shared.types import Priority, TaskOwner

# Product name users address the assistant by ("have Kroniq draft it").
ASSISTANT_NAME = "kroniq"

TITLE_MAX_LENGTH = 100

EXPENSE_CATEGORIES = ("payroll", "software", "marketing", "office", "hosting", "travel", "legal")
MARKETING_CHANNELS = ("google", "facebook", "linkedin", "twitter", "instagram", "email", "content")

DEFAULT_CATEGORY = "other"
DEFAULT_CHANNEL = "google"
DEFAULT_COMPANY = "Unknown Company"
DEFAULT_VENDOR = "Unknown Vendor"
DEFAULT_CUSTOMER_NAME = "New Customer"

_HIGH_PRIORITY_KEYWORDS = ("urgent", "high priority", "asap", "critical")
_LOW_PRIORITY_KEYWORDS = ("low priority", "when you can", "not urgent")
_TEAM_KEYWORDS = ("team", "someone", "delegate")

# -- Title cleanup patterns --

# Command phrasing that introduces the thing being created/logged.
_COMMAND_PREFIX = re.compile(
    r"^(?:(?:please|can\s+you|could\s+you)\s+)?"
    r"(?:remind\s+me\s+to"
    r"|(?:i|we)\s+need\s+to"
    r"|let's|let\s+us|i'll|we'll"
    r"|(?:create|add|make|set)\s+(?:a\s+|an\s+)?(?:new\s+)?(?:task|reminder|todo|goal)(?:\s*:)?(?:\s+to)?"
    r"|(?:our|my)\s+goal\s+is(?:\s+to)?"
    r"|(?:we\s+)?decided(?:\s+to)?"
    r"|(?:task|target|decision|goal)\s*:)\s*",
    re.IGNORECASE,
)
_LEADING_CONNECTOR = re.compile(r"^(?:to|that|about|for|the)\s+", re.IGNORECASE)
_TRAILING_CLAUSE = re.compile(r"\s+(?:by|before|due|from|with)\s+.+$", re.IGNORECASE)
_TRAILING_DATE = re.compile(
    r"\s+(?:today|tonight|tomorrow|next\s+week"
    r"|(?:on\s+)?(?:monday|tuesday|wednesday|thursday|friday|saturday|sunday)"
    r"|in\s+\d+\s+days?"
    r"|(?:at\s+)?(?:the\s+)?end\s+of\s+(?:the\s+)?month|month\s+end)$",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = re.compile(r"[\s.!?,;:]+$")

# -- Value patterns --

_MONEY = re.compile(r"\$?(\d[\d,]*(?:\.\d+)?)(k\b)?", re.IGNORECASE)
_TARGET = re.compile(r"\$?\d[\d,]*(?:\.\d+)?[kK]?")
_EMAIL = re.compile(r"[\w.-]+@[\w.-]+\.\w+")
# Six digits keeps the offset inside the date range
_IN_DAYS = re.compile(r"in\s+(\d{1,6})\s+day")
_AI_WORD = re.compile(r"\bai\b")
_CAPITALIZED_RUN = re.compile(r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*")
_COMPANY_AFTER_PREPOSITION = re.compile(r"\b(?:at|from|with)\s+([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+)*)")
_COMPANY_ANYWHERE = re.compile(
    r"[A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+)*(?:\s+Inc\.?|\s+LLC|\s+Ltd\.?)?"
)
_VENDOR = re.compile(r"\b(?:to|from|for)\s+([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+)*)")

# Capitalized sentence openers that are never part of a person/company name.
_NAME_STOPWORDS = frozenset(
    {
        "Add",
        "Added",
        "Client",
        "Customer",
        "Got",
        "Just",
        "New",
        "Onboard",
        "Onboarded",
        "Onboarding",
        "Our",
        "Signed",
        "The",
        "User",
        "We",
    }
)

# Sunday first, matching the scan order for messages naming several days.
_WEEKDAYS: tuple[tuple[str, int], ...] = (
    ("sunday", 6),
    ("monday", 0),
    ("tuesday", 1),
    ("wednesday", 2),
    ("thursday", 3),
    ("friday", 4),
    ("saturday", 5),
)


def extract_title(text: str) -> str:
    """Reduce a message to the title of the thing it asks for.

    Strips the command phrasing ("remind me to", "create a task"), a
    leading connector word, a trailing date/owner clause (" by ...",
    " with ...") and a trailing relative date ("tomorrow"). Titles over
    100 characters are cut to 97 plus an ellipsis. Falls back to the
    trimmed message when nothing would be left.
    """
    original = text.strip()
    title = _COMMAND_PREFIX.sub("", original, count=1)
    title = _LEADING_CONNECTOR.sub("", title, count=1)
    title = _TRAILING_CLAUSE.sub("", title, count=1)
    title = _TRAILING_DATE.sub("", title, count=1)
    title = _TRAILING_PUNCTUATION.sub("", title).strip()

    if not title:
        title = original

    if len(title) > TITLE_MAX_LENGTH:
        title = title[: TITLE_MAX_LENGTH - 3] + "..."
    return title


def extract_priority(text: str) -> Priority:
    lowered = text.lower()
    if any(kw in lowered for kw in _HIGH_PRIORITY_KEYWORDS):
        return Priority.HIGH
    if any(kw in lowered for kw in _LOW_PRIORITY_KEYWORDS):
        return Priority.LOW
    return Priority.MEDIUM


def extract_due_date(text: str, today: date | None = None) -> str | None:
    """Resolve a relative date phrase to an ISO ``YYYY-MM-DD`` string.

    Rules, first match wins: "today", "tomorrow", a weekday name (next
    occurrence strictly after today, so naming today's weekday means a
    week out), "in N days", "next week", "end of month"/"month end".
    Returns None when no phrase is recognised.
    """
    lowered = text.lower()
    anchor = today or date.today()

    if "today" in lowered:
        return anchor.isoformat()
    if "tomorrow" in lowered:
        return (anchor + timedelta(days=1)).isoformat()

    for name, weekday in _WEEKDAYS:
        if name in lowered:
            days_until = (weekday - anchor.weekday()) % 7 or 7
            return (anchor + timedelta(days=days_until)).isoformat()

    match = _IN_DAYS.search(lowered)
    if match:
        return (anchor + timedelta(days=int(match.group(1)))).isoformat()

    if "next week" in lowered:
        return (anchor + timedelta(days=7)).isoformat()

    if "end of month" in lowered or "month end" in lowered:
        last_day = calendar.monthrange(anchor.year, anchor.month)[1]
        return anchor.replace(day=last_day).isoformat()

    return None


def extract_owner(text: str, assistant_name: str = ASSISTANT_NAME) -> TaskOwner:
    lowered = text.lower()
    if assistant_name.lower() in lowered or _AI_WORD.search(lowered) or "you do" in lowered:
        return TaskOwner.AI
    if any(kw in lowered for kw in _TEAM_KEYWORDS):
        return TaskOwner.TEAM
    return TaskOwner.YOU


def extract_money(text: str) -> float:
    """First numeric amount in the text; ``2.5k`` means 2500.

    Returns 0 when there is no number. Callers treat 0 as "not given".
    """
    match = _MONEY.search(text)
    if match is None:
        return 0.0
    amount = float(match.group(1).replace(",", ""))
    if match.group(2):
        amount *= 1000
    return amount


def extract_email(text: str) -> str | None:
    match = _EMAIL.search(text)
    return match.group(0) if match else None


def extract_target(text: str) -> str:
    """Goal target: the first amount as written ("$50k"), else the text."""
    match = _TARGET.search(text)
    return match.group(0) if match else text.strip()


def _strip_leading_stopwords(run: str) -> str:
    words = run.split()
    while words and words[0] in _NAME_STOPWORDS:
        words.pop(0)
    return " ".join(words)


def extract_customer_name(text: str) -> str:
    """First capitalized word sequence before any email address."""
    before_at = text.split("@", 1)[0]
    for match in _CAPITALIZED_RUN.finditer(before_at):
        name = _strip_leading_stopwords(match.group(0))
        if name:
            return name
    return DEFAULT_CUSTOMER_NAME


def extract_company(text: str) -> str:
    match = _COMPANY_AFTER_PREPOSITION.search(text)
    if match:
        return match.group(1)
    for match in _COMPANY_ANYWHERE.finditer(text):
        company = _strip_leading_stopwords(match.group(0))
        if company:
            return company
    return DEFAULT_COMPANY


def extract_finance_type(text: str) -> FinanceType:
    lowered = text.lower()
    if "spent" in lowered or "expense" in lowered or "paid" in lowered:
        return FinanceType.EXPENSE
    if "revenue" in lowered or "mrr" in lowered or "income" in lowered:
        return FinanceType.INCOME
    return FinanceType.BALANCE


def extract_category(text: str) -> str:
    lowered = text.lower()
    for category in EXPENSE_CATEGORIES:
        if category in lowered:
            return category
    return DEFAULT_CATEGORY


def extract_vendor(text: str) -> str:
    match = _VENDOR.search(text)
    return match.group(1) if match else DEFAULT_VENDOR


def extract_channel(text: str) -> str:
    lowered = text.lower()
    for channel in MARKETING_CHANNELS:
        if channel in lowered:
            return channel
    return DEFAULT_CHANNEL


def extract_context(text: str) -> str:
    return text[:200]


def extract_outcome(text: str) -> str:
    return text[:100]
