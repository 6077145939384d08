"""Shared domain types used across layers.

The business state (tasks, customers, finances, goals, decisions, ...)
and the closed vocabularies its fields draw from. These types flow
through the store, the action executor and the gateway, and are the
shape persisted by the storage adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# -- Closed vocabularies --


class AgentType(Enum):
    """Specialist personas a conversational turn can be routed to."""

    CEO = "ceo"
    EXECUTION = "execution"
    CUSTOMER = "customer"
    DECISION = "decision"
    FINANCE = "finance"
    MARKETING = "marketing"
    BRANDING = "branding"
    PRODUCT = "product"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TaskStatus(Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskOwner(Enum):
    YOU = "you"
    AI = "ai"
    TEAM = "team"


class CustomerStage(Enum):
    LEAD = "lead"
    TRIAL = "trial"
    ACTIVE = "active"
    AT_RISK = "at-risk"
    CHURNED = "churned"


class GoalStatus(Enum):
    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    BEHIND = "behind"


class CampaignStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class RoadmapStatus(Enum):
    NOW = "now"
    NEXT = "next"
    LATER = "later"
    DONE = "done"


class RoadmapCategory(Enum):
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    BUG = "bug"
    INFRASTRUCTURE = "infrastructure"


class PaymentType(Enum):
    RECURRING = "recurring"
    ONE_TIME = "one-time"


class StreamStatus(Enum):
    ACTIVE = "active"
    CHURNED = "churned"


class Verbosity(Enum):
    CONCISE = "concise"
    BALANCED = "balanced"
    DETAILED = "detailed"


# -- Business entities --


@dataclass(frozen=True)
class CompanyInfo:
    """Company profile; changed only through an explicit settings edit."""

    name: str = "My Startup"
    industry: str = "SaaS"
    stage: str = "Seed"
    team_size: int = 5


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    priority: Priority
    status: TaskStatus
    owner: TaskOwner
    created_at: str
    due_date: str | None = None  # ISO YYYY-MM-DD
    agent_type: AgentType | None = None
    description: str | None = None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    company: str
    mrr: float
    health_score: int  # 0-100
    stage: CustomerStage
    last_contact: str
    join_date: str  # "Mon YYYY"
    email: str = ""
    notes: str | None = None


@dataclass(frozen=True)
class Expense:
    id: str
    name: str
    vendor: str
    amount: float
    category: str
    type: PaymentType
    date: str


@dataclass(frozen=True)
class RevenueStream:
    id: str
    name: str
    customer: str
    amount: float
    type: PaymentType
    status: StreamStatus


@dataclass(frozen=True)
class FinancialMetrics:
    """Finance value object; updated by partial merge, never appended to."""

    balance: float = 150_000
    monthly_burn: float = 25_000
    monthly_revenue: float = 12_000
    mrr: float = 12_000
    arr: float = 144_000
    runway: float = 6  # months
    expenses: list[Expense] = field(default_factory=list)
    revenue_streams: list[RevenueStream] = field(default_factory=list)


@dataclass(frozen=True)
class Campaign:
    id: str
    name: str
    channel: str
    status: CampaignStatus
    budget: float = 0
    spent: float = 0
    impressions: int = 0
    clicks: int = 0
    conversions: int = 0
    revenue: float = 0


@dataclass(frozen=True)
class RoadmapItem:
    id: str
    title: str
    status: RoadmapStatus
    priority: Priority
    category: RoadmapCategory
    description: str = ""


@dataclass(frozen=True)
class Decision:
    """Append-only decision log entry."""

    id: str
    title: str
    context: str
    outcome: str
    date: str
    agent_type: AgentType | None = None


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    target: str
    current: float
    target_value: float
    deadline: str
    status: GoalStatus


# -- Memory --


@dataclass(frozen=True)
class ConversationMemory:
    id: str
    agent_type: AgentType
    summary: str
    timestamp: str
    key_insights: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CorrectionMemory:
    id: str
    original_output: str
    correction: str
    agent_type: AgentType
    timestamp: str


@dataclass(frozen=True)
class UserPreferences:
    verbosity: Verbosity = Verbosity.BALANCED
    proactive_insights: bool = True
    preferred_communication_style: str = "professional"
    corrections: list[CorrectionMemory] = field(default_factory=list)


# -- Derived metrics --


@dataclass(frozen=True)
class ComputedMetrics:
    """Metrics derived from the rest of the state. Never set directly."""

    runway: float = 6
    burn_rate: float = 25_000
    mrr_growth: float = 8
    total_customers: int = 0
    active_customers: int = 0
    at_risk_count: int = 0
    avg_health_score: float = 0
    churn_rate: float = 0
    total_mrr: float = 0
    open_tasks: int = 0
    overdue_tasks: int = 0
    ai_owned_tasks: int = 0
    active_campaigns: int = 0
    total_ad_spend: float = 0
    overall_roi: float = 0
    now_items: int = 0
    total_roadmap_items: int = 0


# -- Aggregate --


@dataclass
class BusinessState:
    """Everything the store owns for one session.

    Collections are ordered newest first. ``computed_metrics`` is always
    a function of the other fields and is recomputed by the store.
    """

    company_info: CompanyInfo = field(default_factory=CompanyInfo)
    tasks: list[Task] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    finances: FinancialMetrics = field(default_factory=FinancialMetrics)
    campaigns: list[Campaign] = field(default_factory=list)
    roadmap: list[RoadmapItem] = field(default_factory=list)
    decisions: list[Decision] = field(default_factory=list)
    goals: list[Goal] = field(default_factory=list)
    recent_conversations: list[ConversationMemory] = field(default_factory=list)
    user_preferences: UserPreferences = field(default_factory=UserPreferences)
    computed_metrics: ComputedMetrics = field(default_factory=ComputedMetrics)


@dataclass(frozen=True)
class AgentContext:
    """Per-persona slice of the business state used to build a prompt."""

    agent_type: AgentType
    current_date: str
    company_info: CompanyInfo
    relevant_data: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    recent_history: list[ConversationMemory] = field(default_factory=list)
    user_preferences: UserPreferences = field(default_factory=UserPreferences)
