"""Output enrichment — normalizes raw LLM output into an IdeatorOutput.

Never rejects data: missing ids and market opportunities are back-filled,
aggregates are computed, and a summary is synthesized when the model
omitted one. Validation is the quality validator's job.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence

from ...constants import HIGH_VALUE_REVENUE
from ...schemas.idea_schema import BusinessIdea, IdeatorMetadata, IdeatorOutput, MarketContext, RawIdeatorOutput

Clock = Callable[[], float]

MISSING_OPPORTUNITY = "Market opportunity requires further analysis"


def fill_idea_defaults(
    idea: BusinessIdea,
    context: MarketContext,
    index: int,
    clock: Clock = time.time,
) -> BusinessIdea:
    """Return *idea* with a synthetic id and market opportunity where missing."""
    updates = {}
    if not idea.id.strip():
        updates["id"] = f"idea-{int(clock() * 1000)}-{index}"
    if not idea.market_opportunity.strip():
        updates["market_opportunity"] = (
            context.opportunities[0].description if context.opportunities else MISSING_OPPORTUNITY
        )
    return idea.model_copy(update=updates) if updates else idea


def generate_summary(ideas: Sequence[BusinessIdea]) -> str:
    if not ideas:
        return "No business ideas were generated."
    high_value = sum(1 for i in ideas if i.estimated_revenue > HIGH_VALUE_REVENUE)
    easy = sum(1 for i in ideas if i.implementation_difficulty == "low")

    summary = f"Generated {len(ideas)} business ideas."
    if high_value:
        summary += f" {high_value} of them are expected to exceed 100 million yen in operating profit."
    if easy:
        summary += f" {easy} have low implementation difficulty and can be launched early."
    return summary


def enrich_output(
    raw: RawIdeatorOutput,
    context: MarketContext,
    clock: Clock = time.time,
) -> IdeatorOutput:
    ideas: List[BusinessIdea] = [
        fill_idea_defaults(idea, context, index, clock) for index, idea in enumerate(raw.ideas)
    ]
    return IdeatorOutput(
        ideas=ideas,
        summary=(raw.summary or "").strip() or generate_summary(ideas),
        metadata=build_metadata(ideas, context, clock=clock),
    )


def build_metadata(
    ideas: Sequence[BusinessIdea],
    context: MarketContext,
    *,
    clock: Clock = time.time,
    base: Optional[IdeatorMetadata] = None,
) -> IdeatorMetadata:
    """Recompute the idea aggregates, keeping any other fields from *base*."""
    average = sum(i.estimated_revenue for i in ideas) / len(ideas) if ideas else 0.0
    update = {
        "total_ideas": len(ideas),
        "average_revenue": average,
        "market_size": sum(o.market_size for o in context.opportunities),
    }
    if base is None:
        return IdeatorMetadata(
            generated_at=datetime.fromtimestamp(clock(), tz=timezone.utc),
            **update,
        )
    return base.model_copy(update=update)
