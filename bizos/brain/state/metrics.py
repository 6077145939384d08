"""Derived business metrics.

``compute_metrics`` is a pure function of the state and an anchor
date; the store calls it after every mutation and never stores metrics
any other way.
"""

from __future__ import annotations

import math
from datetime import date
from typing import TYPE_CHECKING

from bizos.shared.types import (
    CampaignStatus,
    ComputedMetrics,
    CustomerStage,
    RoadmapStatus,
    TaskOwner,
    TaskStatus,
)

if TYPE_CHECKING:
    from bizos.shared.types import BusinessState, FinancialMetrics, Task

# No revenue history is kept, so growth is a fixed placeholder.
MRR_GROWTH_PLACEHOLDER = 8.0


def runway_months(finances: FinancialMetrics) -> float:
    """Months of cash left at the current net burn; inf when not burning."""
    net_burn = finances.monthly_burn - finances.monthly_revenue
    if net_burn <= 0:
        return math.inf
    return finances.balance / net_burn


def is_overdue(task: Task, today: date) -> bool:
    if task.status is TaskStatus.DONE or not task.due_date:
        return False
    try:
        return date.fromisoformat(task.due_date) < today
    except ValueError:
        return False


def compute_metrics(state: BusinessState, today: date) -> ComputedMetrics:
    customers = state.customers
    active = [c for c in customers if c.stage is CustomerStage.ACTIVE]
    churned = [c for c in customers if c.stage is CustomerStage.CHURNED]
    at_risk = [c for c in customers if c.stage is CustomerStage.AT_RISK]
    open_tasks = [t for t in state.tasks if t.status is not TaskStatus.DONE]
    active_campaigns = [c for c in state.campaigns if c.status is CampaignStatus.ACTIVE]

    ad_spend = sum(c.spent for c in active_campaigns)
    campaign_revenue = sum(c.revenue for c in active_campaigns)

    return ComputedMetrics(
        runway=runway_months(state.finances),
        burn_rate=state.finances.monthly_burn,
        mrr_growth=MRR_GROWTH_PLACEHOLDER,
        total_customers=len(customers),
        active_customers=len(active),
        at_risk_count=len(at_risk),
        avg_health_score=(sum(c.health_score for c in active) / len(active) if active else 0),
        churn_rate=(len(churned) / len(customers) * 100 if customers else 0),
        total_mrr=sum(c.mrr for c in active),
        open_tasks=len(open_tasks),
        overdue_tasks=sum(1 for t in state.tasks if is_overdue(t, today)),
        ai_owned_tasks=sum(1 for t in open_tasks if t.owner is TaskOwner.AI),
        active_campaigns=len(active_campaigns),
        total_ad_spend=ad_spend,
        overall_roi=((campaign_revenue - ad_spend) / ad_spend * 100 if ad_spend > 0 else 0),
        now_items=sum(1 for r in state.roadmap if r.status is RoadmapStatus.NOW),
        total_roadmap_items=sum(1 for r in state.roadmap if r.status is not RoadmapStatus.DONE),
    )
