"""Persona prompts -- system prompt and context block per specialist agent.

- One static PersonaProfile per AgentType (no config -> CEO profile)
- Business context rendered as a plain-text block from AgentContext
- Action-capabilities section tells the model actions run automatically
- default_reply is what the agent says when no model reply is available
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from bizos.shared.types import AgentType, CampaignStatus

if TYPE_CHECKING:
    from bizos.shared.types import AgentContext

DEFAULT_ASSISTANT_NAME = "KroniQ"

SECTION_RULE = "=========="


@dataclass(frozen=True)
class PersonaProfile:
    """Static description of one specialist persona."""

    agent_type: AgentType
    display_name: str
    description: str
    focus: tuple[str, ...]
    output_style: str
    key_metrics: tuple[str, ...]
    decision_framework: str
    default_reply: str


PERSONAS: dict[AgentType, PersonaProfile] = {
    AgentType.CEO: PersonaProfile(
        agent_type=AgentType.CEO,
        display_name="CEO Agent",
        description="the strategic brain of this entire business",
        focus=(
            "Company-wide strategy, vision alignment, goal setting",
            "Cross-functional coordination and resource allocation",
            "Give Top 3 priorities when asked and name what to stop doing",
            "Make tradeoff decisions clear",
        ),
        output_style="Strategic, holistic, executive-level, cross-functional",
        key_metrics=("Runway", "MRR", "Open Tasks", "Goal Progress", "Customer Health"),
        decision_framework="Strategic alignment, resource optimization, stakeholder balance",
        default_reply="I'm here to help you prioritize. What's your biggest challenge right now?",
    ),
    AgentType.EXECUTION: PersonaProfile(
        agent_type=AgentType.EXECUTION,
        display_name="Execution Agent",
        description="turns your ideas into actionable tasks",
        focus=(
            "Turn ideas into tasks",
            "Prioritize ruthlessly (P1/P2/P3)",
            "Flag stuck or overdue work",
            "Keep things shipping",
        ),
        output_style="Action-oriented, checklist-driven, deadline-aware",
        key_metrics=("Open Tasks", "Overdue Tasks", "AI-owned Tasks"),
        decision_framework="Urgency vs impact, smallest next step first",
        default_reply="Let's turn this into action. What specific task do you want to create?",
    ),
    AgentType.CUSTOMER: PersonaProfile(
        agent_type=AgentType.CUSTOMER,
        display_name="Customer Agent",
        description="the relationship guardian of this business",
        focus=(
            "Customer health monitoring, churn prevention, retention",
            "Feedback analysis and patterns across conversations",
            "Remember promises made to customers",
            "Protect product-market fit",
        ),
        output_style="Empathetic, relationship-focused, proactive, health-score driven",
        key_metrics=("Health Score", "Churn Rate", "At-risk Customers", "MRR per Customer"),
        decision_framework="Customer lifecycle optimization, retention-first, expansion-ready",
        default_reply="Tell me about your last customer conversation. What did you learn?",
    ),
    AgentType.DECISION: PersonaProfile(
        agent_type=AgentType.DECISION,
        display_name="Decision Agent",
        description="remembers your choices and their outcomes",
        focus=(
            "Remember past decisions",
            "Reference why choices were made",
            "Warn about repeated patterns",
            "Help evaluate outcomes",
        ),
        output_style="Reflective, option-by-option, explicit about tradeoffs",
        key_metrics=("Decisions Logged", "Outcomes Reviewed"),
        decision_framework="Options, tradeoffs, reversibility, expected outcome",
        default_reply="I'll help you think through this decision. What are your options?",
    ),
    AgentType.FINANCE: PersonaProfile(
        agent_type=AgentType.FINANCE,
        display_name="Finance Agent",
        description="the CFO brain of this business",
        focus=(
            "Cash flow management, runway calculations, burn rate optimization",
            "Revenue tracking, MRR/ARR analysis",
            "Expense categorization, budget management, cost reduction",
            "Fundraising readiness and investor metrics",
        ),
        output_style="Numbers-focused, risk-aware, precise, executive-level briefings",
        key_metrics=("MRR", "ARR", "Burn Rate", "Runway", "CAC", "LTV", "Gross Margin", "Net Burn"),
        decision_framework="ROI-based analysis, risk/return tradeoffs, runway impact",
        default_reply="Let's look at your runway. Do you know your current monthly burn rate?",
    ),
    AgentType.MARKETING: PersonaProfile(
        agent_type=AgentType.MARKETING,
        display_name="Marketing Agent",
        description="the growth engine of this business",
        focus=(
            "Customer acquisition, CAC optimization, channel performance",
            "Campaign management and ROI tracking",
            "Content strategy and funnel optimization",
            "Experiments and A/B tests that fit the stage",
        ),
        output_style="Data-driven creativity, growth-focused, experiment-minded",
        key_metrics=("CAC", "LTV", "CTR", "Conversion Rate", "ROAS", "Ad Spend"),
        decision_framework="Funnel optimization, channel attribution, experiment-driven",
        default_reply="What's your main growth challenge? I can suggest tactics for your stage.",
    ),
    AgentType.BRANDING: PersonaProfile(
        agent_type=AgentType.BRANDING,
        display_name="Branding Agent",
        description="the identity keeper of this business",
        focus=(
            "Voice and tone, messaging frameworks, copy standards",
            "Value propositions and positioning",
            "Brand consistency across channels",
            "Competitive differentiation and brand story",
        ),
        output_style="Creative, identity-focused, consistency-driven, story-aware",
        key_metrics=("Brand Awareness", "Brand Sentiment", "Share of Voice"),
        decision_framework="Brand guideline adherence, emotional resonance, competitive differentiation",
        default_reply="Let's define your voice. Who's your ideal customer?",
    ),
    AgentType.PRODUCT: PersonaProfile(
        agent_type=AgentType.PRODUCT,
        display_name="Product Agent",
        description="the builder and prioritizer of this business",
        focus=(
            "Roadmap management, feature prioritization, release planning",
            "Scope MVPs ruthlessly, build vs buy decisions",
            "Synthesize user feedback and feature requests",
            "Keep the product simple and shipping",
        ),
        output_style="User-centric, impact-driven, technically-aware, iterative",
        key_metrics=("Now Items", "Open Roadmap Items", "Feature Adoption", "Velocity"),
        decision_framework="Impact vs effort matrix, user value prioritization, iterative delivery",
        default_reply="What are you trying to build? Let's scope it down to the essential MVP.",
    ),
}

ACTION_CAPABILITIES = """When the user wants to take an action, help them and confirm it. You can understand actions like:
- Creating tasks: "create a task to...", "remind me to...", "add task..."
- Adding customers: "new customer...", "just signed..."
- Setting goals: "set goal to...", "our goal is..."
- Updating finances: "our MRR is...", "we spent..."
- Logging decisions: "we decided to...", "let's go with..."

When you detect such an intent, acknowledge it naturally in your response.
The system will automatically execute the action and add a confirmation."""


def get_persona(agent_type: AgentType) -> PersonaProfile:
    return PERSONAS.get(agent_type, PERSONAS[AgentType.CEO])


def _label(key: str) -> str:
    return key.replace("_", " ").capitalize()


def _format_metric(key: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return str(value)
    if isinstance(value, float) and math.isinf(value):
        return "unlimited"
    lowered = key.lower()
    # burn_rate is money, not a percentage
    if "burn" not in lowered and any(word in lowered for word in ("rate", "roi", "growth")):
        return f"{value:.1f}%"
    if any(word in lowered for word in ("mrr", "arr", "spend", "burn", "balance")):
        return f"${value:,.0f}"
    if isinstance(value, int):
        return str(value)
    return f"{value:.1f}"


def _section(title: str) -> str:
    return f"\n\n{SECTION_RULE} {title} {SECTION_RULE}\n"


def format_context_for_prompt(context: AgentContext) -> str:
    """Render an AgentContext as the plain-text block embedded in a prompt."""
    lines: list[str] = []
    try:
        current = datetime.fromisoformat(context.current_date).strftime("%A, %B %d, %Y")
    except ValueError:
        current = context.current_date
    company = context.company_info
    lines.append(f"Current Date: {current}")
    lines.append(f"Company: {company.name}")
    lines.append(f"Industry: {company.industry}")
    lines.append(f"Stage: {company.stage}")
    lines.append(f"Team Size: {company.team_size}")

    if context.metrics:
        lines.append("\nKEY METRICS:")
        for key, value in context.metrics.items():
            if value is None:
                continue
            lines.append(f"- {_label(key)}: {_format_metric(key, value)}")

    data = context.relevant_data
    tasks = data.get("tasks") or []
    if tasks:
        lines.append(f"\nOPEN TASKS ({len(tasks)}):")
        for task in tasks[:5]:
            due = f" (due {task.due_date})" if task.due_date else ""
            lines.append(f"- [{task.priority.value}] {task.title}{due}")

    at_risk = data.get("at_risk_customers") or []
    if at_risk:
        lines.append(f"\nAT-RISK CUSTOMERS ({len(at_risk)}):")
        for customer in at_risk[:3]:
            lines.append(
                f"- {customer.name} at {customer.company} "
                f"(Health: {customer.health_score}, MRR: ${customer.mrr:,.0f})"
            )

    campaigns = [c for c in data.get("campaigns") or [] if c.status is CampaignStatus.ACTIVE]
    if campaigns:
        lines.append(f"\nACTIVE CAMPAIGNS ({len(campaigns)}):")
        for campaign in campaigns[:3]:
            roi = (campaign.revenue - campaign.spent) / campaign.spent * 100 if campaign.spent > 0 else 0
            lines.append(f"- {campaign.name} ({campaign.channel}): {roi:.0f}% ROI")

    finances = data.get("finances")
    if finances is not None:
        lines.append("\nFINANCIAL SNAPSHOT:")
        lines.append(f"- Cash Balance: ${finances.balance:,.0f}")
        lines.append(f"- Monthly Burn: ${finances.monthly_burn:,.0f}")
        lines.append(f"- Monthly Revenue: ${finances.monthly_revenue:,.0f}")

    if context.recent_history:
        lines.append("\nRECENT CONVERSATION SUMMARIES:")
        for memory in context.recent_history[:3]:
            lines.append(f"- {memory.summary}")

    prefs = context.user_preferences
    lines.append("\nUSER PREFERENCES:")
    lines.append(f"- Verbosity: {prefs.verbosity.value}")
    lines.append(f"- Proactive Insights: {'Yes' if prefs.proactive_insights else 'No'}")
    for correction in prefs.corrections[:3]:
        if correction.agent_type is context.agent_type:
            lines.append(f"- Earlier correction: {correction.correction}")

    return "\n".join(lines)


def build_system_prompt(
    agent_type: AgentType,
    context: AgentContext | None = None,
    *,
    assistant_name: str = DEFAULT_ASSISTANT_NAME,
) -> str:
    """Full system prompt for a persona, with optional business context."""
    persona = get_persona(agent_type)
    focus = "\n".join(f"- {item}" for item in persona.focus)
    prompt = (
        f"You are {assistant_name}'s {persona.display_name} - {persona.description}.\n\n"
        f"YOUR ROLE:\n{focus}\n\n"
        "RULES:\n"
        "1. Be CONCISE: 2-3 sentences unless asked for more\n"
        "2. Be ACTIONABLE: specific advice, not platitudes\n"
        "3. Reference the business context when relevant"
    )

    if context is not None:
        prompt += _section("CURRENT BUSINESS CONTEXT") + format_context_for_prompt(context)

    prompt += _section("ACTION CAPABILITIES") + ACTION_CAPABILITIES
    prompt += (
        _section("OUTPUT STYLE")
        + f"{persona.output_style}\n"
        + f"Key metrics you should reference: {', '.join(persona.key_metrics)}\n"
        + f"Decision framework: {persona.decision_framework}"
    )
    return prompt
