"""Prompt templates for business idea generation.

Contains:
1. The system instruction sent with every gateway call
2. Batch ideation, single-idea and refinement prompt builders
3. Presentation-only formatters (currency bands, opportunity and pain lists)
"""

from __future__ import annotations

import json
from typing import List, Optional, Sequence

from ...constants import CURRENCY_BANDS, CURRENCY_BASE_SUFFIX, DEFAULT_LOCALE, IDEA_GENERATION
from ...schemas.idea_schema import BusinessIdea, CustomerPain, MarketContext, MarketOpportunity

MAX_LISTED_ITEMS = 5


# ── System instruction ───────────────────────────────────────────────────

SYSTEM_PROMPT = """\
You are an expert at generating innovative, realistic business ideas from market research.

RULES — you MUST follow all of these:
1. Output valid JSON ONLY — no markdown, no explanation, no preamble.
2. Follow the provided output shape EXACTLY, using the camelCase field names.
3. Ground every idea in the supplied research; do not invent market data.
4. Keep revenue estimates realistic and expressed as a plain number in yen.
5. implementationDifficulty must be one of: low, medium, high.
"""

IDEA_SHAPE = """\
{
  "id": "unique-id",
  "title": "title of at most 30 characters",
  "description": "detailed description of about 200 characters",
  "targetCustomers": ["customer segment 1", "customer segment 2"],
  "customerPains": ["pain solved 1", "pain solved 2"],
  "valueProposition": "clear statement of the value delivered (10+ characters)",
  "revenueModel": "how the business makes money (10+ characters)",
  "estimatedRevenue": 100000000,
  "implementationDifficulty": "low | medium | high",
  "marketOpportunity": "the market opportunity addressed (10+ characters)"
}"""


# ── Formatters ───────────────────────────────────────────────────────────

def format_currency(amount: float, locale: str = DEFAULT_LOCALE) -> str:
    """Render a yen amount in readable bands. Display only."""
    bands = CURRENCY_BANDS.get(locale, CURRENCY_BANDS[DEFAULT_LOCALE])
    for threshold, divisor, suffix, decimals in bands:
        if amount >= threshold:
            return f"{amount / divisor:.{decimals}f}{suffix}"
    base_suffix = CURRENCY_BASE_SUFFIX.get(locale, CURRENCY_BASE_SUFFIX[DEFAULT_LOCALE])
    return f"{amount:g}{base_suffix}"


def format_market_opportunities(
    opportunities: Sequence[MarketOpportunity],
    locale: str = DEFAULT_LOCALE,
) -> str:
    if not opportunities:
        return "No market opportunity information."
    return "\n\n".join(
        f"{i}. {opp.description}\n"
        f"   - Market size: {format_currency(opp.market_size, locale)}\n"
        f"   - Growth rate: {opp.growth_rate:g}%\n"
        f"   - Unmet needs: {', '.join(opp.unmet_needs)}"
        for i, opp in enumerate(opportunities[:MAX_LISTED_ITEMS], start=1)
    )


def format_customer_pains(pains: Sequence[CustomerPain]) -> str:
    if not pains:
        return "No customer pain information."
    return "\n\n".join(
        f"{i}. {pain.description}\n"
        f"   - Severity: {pain.severity}\n"
        f"   - Frequency: {pain.frequency}\n"
        f"   - Limitations of current solutions: {', '.join(pain.limitations)}"
        for i, pain in enumerate(pains[:MAX_LISTED_ITEMS], start=1)
    )


def _bullets(items: Sequence[str], empty: str) -> str:
    return "\n".join(f"- {item}" for item in items) if items else empty


# ── Prompt builders ──────────────────────────────────────────────────────

def build_ideation_prompt(
    context: MarketContext,
    idea_count: int = IDEA_GENERATION["required_count"],
    *,
    target_revenue: float = IDEA_GENERATION["target_revenue"],
    locale: str = DEFAULT_LOCALE,
    focus_areas: Optional[Sequence[str]] = None,
    constraints: Optional[Sequence[str]] = None,
    target_market: Optional[str] = None,
) -> str:
    """Render the batch generation prompt for exactly *idea_count* ideas."""
    sections: List[str] = [
        f"Based on the market research below, generate EXACTLY {idea_count} "
        "innovative business ideas.",
        "## Research summary\n" + (context.research_summary or "No research summary."),
        "## Market opportunities\n" + format_market_opportunities(context.opportunities, locale),
        "## Customer pains\n" + format_customer_pains(context.customer_pains),
        "## Market trends\n" + _bullets(context.trends, "No trend information."),
        "## Competitive landscape\n" + (context.competitive_landscape or "No competitive information."),
    ]

    requirements = [
        f"Each idea should be able to reach an operating profit of around "
        f"{format_currency(target_revenue, locale)}.",
        "Identify a clear customer segment and the pains the idea solves.",
        "Present a concrete revenue model.",
        "Rate implementation difficulty as low, medium or high.",
        "Explain the market opportunity clearly.",
    ]
    if focus_areas:
        requirements.append(f"Focus on these areas: {', '.join(focus_areas)}.")
    if constraints:
        requirements.append(f"Respect these constraints: {'; '.join(constraints)}.")
    if target_market:
        requirements.append(f"Target market: {target_market}.")
    sections.append(
        "## Requirements\n" + "\n".join(f"{i}. {r}" for i, r in enumerate(requirements, start=1))
    )

    sections.append(
        "## Output format\n"
        f'Return a JSON object with an "ideas" array of EXACTLY {idea_count} items, '
        'plus an optional "summary" string. Each item has this shape:\n'
        f"{IDEA_SHAPE}"
    )
    return "\n\n".join(sections)


def build_single_idea_prompt(context: MarketContext, focus: Optional[str] = None) -> str:
    """Prompt for one additional idea (backfill or on-demand generation)."""
    sections: List[str] = ["Based on the market research below, generate ONE innovative business idea."]
    if focus:
        sections.append(f'Focus especially on "{focus}".')
    sections.extend([
        "## Research summary\n" + (context.research_summary or "No research summary."),
        "## Market opportunities\n" + format_market_opportunities(context.opportunities[:3]),
        "## Customer pains\n" + format_customer_pains(context.customer_pains[:3]),
        f"Return a single JSON object with this shape:\n{IDEA_SHAPE}",
    ])
    return "\n\n".join(sections)


def build_refinement_prompt(idea: BusinessIdea, feedback: str) -> str:
    """Prompt asking the model to improve *idea* according to *feedback*."""
    current = json.dumps(idea.model_dump(by_alias=True), ensure_ascii=False, indent=2)
    return (
        "Improve the following business idea based on the feedback.\n\n"
        f"## Current idea\n{current}\n\n"
        f"## Feedback\n{feedback}\n\n"
        "Return the improved idea as a single JSON object with the same shape and the same id."
    )
