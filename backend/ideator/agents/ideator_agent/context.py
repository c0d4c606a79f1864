"""Market context extraction — deterministic, no LLM, no randomness.

Derives opportunities, customer pains, trends and a competitive-landscape
summary from a ResearchOutput. All heuristics are substring matches driven
by the keyword tables in `ideator.constants`; ids are uuid5 digests of the
content, so identical research always yields an identical context.
"""

from __future__ import annotations

import math
import uuid
from typing import Iterable, List, Sequence, Tuple

from ...constants import (
    CHALLENGE_NEED_KEYWORDS,
    CURRENT_SOLUTION_KEYWORDS,
    DAILY_FREQUENCY_KEYWORDS,
    DEFAULT_GROWTH_RATE,
    FACT_OPPORTUNITY_GAPS,
    FACT_OPPORTUNITY_GROWTH_RATE,
    FACT_OPPORTUNITY_NEEDS,
    FACT_OPPORTUNITY_PLACEHOLDER_SIZE,
    FACT_PAIN_LIMITATIONS,
    FACT_PAIN_SOLUTIONS,
    FREQUENT_FREQUENCY_KEYWORDS,
    GENERIC_CURRENT_SOLUTION,
    GENERIC_LIMITATION,
    GENERIC_UNMET_NEED,
    GROWTH_FACT_KEYWORDS,
    HIGH_SEVERITY_KEYWORDS,
    INSUFFICIENT_LANDSCAPE,
    LANDSCAPE_GAP_KEYWORDS,
    LIMITATION_KEYWORDS,
    LOW_SEVERITY_KEYWORDS,
    OPPORTUNITY_GAP_KEYWORDS,
    PROBLEM_FACT_KEYWORDS,
    RARE_FREQUENCY_KEYWORDS,
    TREND_FACT_KEYWORDS,
    UNMET_NEED_KEYWORDS,
)
from ...schemas.idea_schema import CustomerPain, Frequency, MarketContext, MarketOpportunity, Severity
from ...schemas.research_schema import ResearchOutput, parse_magnitude

_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "ideator/market-context")

KeywordTable = Sequence[Tuple[Tuple[str, ...], str]]


# ── Matching helpers ──────────────────────────────────────────────────

def contains_keyword(text: str, keyword: str) -> bool:
    """Lowercase keywords match case-insensitively; acronyms match as written."""
    if keyword.lower() != keyword:
        return keyword in text
    return keyword in text.lower()


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(contains_keyword(text, k) for k in keywords)


def _apply_table(text: str, table: KeywordTable) -> List[str]:
    return [label for keywords, label in table if contains_any(text, keywords)]


def _stable_id(kind: str, index: int, text: str) -> str:
    return str(uuid.uuid5(_ID_NAMESPACE, f"{kind}:{index}:{text}"))


def _competitors(research: ResearchOutput) -> List[str]:
    return [e.name for e in research.entities if e.type == "competitor"]


def _dedupe(items: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


# ── Opportunities ─────────────────────────────────────────────────────

def _unmet_needs(research: ResearchOutput, opportunity: str) -> List[str]:
    needs = _apply_table(opportunity, UNMET_NEED_KEYWORDS)
    needs.extend(
        c for c in research.detailed_analysis.challenges
        if contains_any(c, CHALLENGE_NEED_KEYWORDS)
    )
    return _dedupe(needs) or [GENERIC_UNMET_NEED]


def _competitive_gaps(research: ResearchOutput, opportunity: str) -> List[str]:
    gaps = _apply_table(research.detailed_analysis.competitive_landscape, LANDSCAPE_GAP_KEYWORDS)
    gaps.extend(_apply_table(opportunity, OPPORTUNITY_GAP_KEYWORDS))
    return _dedupe(gaps)


def _opportunities_from_facts(facts: Sequence[str]) -> List[MarketOpportunity]:
    growth_facts = [f for f in facts if contains_any(f, GROWTH_FACT_KEYWORDS)]
    opportunities: List[MarketOpportunity] = []
    for index, fact in enumerate(growth_facts[:1]):
        size = parse_magnitude(fact)
        opportunities.append(MarketOpportunity(
            id=_stable_id("fact-opportunity", index, fact),
            description=fact,
            market_size=FACT_OPPORTUNITY_PLACEHOLDER_SIZE if size is None else size,
            growth_rate=FACT_OPPORTUNITY_GROWTH_RATE,
            unmet_needs=list(FACT_OPPORTUNITY_NEEDS),
            competitive_gaps=list(FACT_OPPORTUNITY_GAPS),
        ))
    return opportunities


def extract_opportunities(research: ResearchOutput) -> List[MarketOpportunity]:
    """Structured opportunities first; one growth fact when there are none."""
    entries = research.detailed_analysis.opportunities
    if not entries:
        return _opportunities_from_facts(research.facts)

    base = research.metrics.market_size or 0
    size = math.floor(base / len(entries)) if base else 0
    # A zero growth rate counts as unreported
    growth = research.metrics.growth_rate or DEFAULT_GROWTH_RATE
    # Keep inside the accepted growth band
    growth = max(-100.0, min(1000.0, growth))

    return [
        MarketOpportunity(
            id=_stable_id("opportunity", index, text),
            description=text,
            market_size=size,
            growth_rate=growth,
            unmet_needs=_unmet_needs(research, text),
            competitive_gaps=_competitive_gaps(research, text),
        )
        for index, text in enumerate(entries)
    ]


# ── Customer pains ────────────────────────────────────────────────────

def assess_severity(challenge: str) -> Severity:
    if contains_any(challenge, HIGH_SEVERITY_KEYWORDS):
        return "high"
    if contains_any(challenge, LOW_SEVERITY_KEYWORDS):
        return "low"
    return "medium"


def assess_frequency(challenge: str) -> Frequency:
    if contains_any(challenge, DAILY_FREQUENCY_KEYWORDS):
        return "daily"
    if contains_any(challenge, FREQUENT_FREQUENCY_KEYWORDS):
        return "frequent"
    if contains_any(challenge, RARE_FREQUENCY_KEYWORDS):
        return "rare"
    return "occasional"


def _current_solutions(research: ResearchOutput, challenge: str) -> List[str]:
    solutions = [f"{name} solution" for name in _competitors(research)]
    solutions.extend(_apply_table(challenge, CURRENT_SOLUTION_KEYWORDS))
    return solutions or [GENERIC_CURRENT_SOLUTION]


def _limitations(challenge: str) -> List[str]:
    return _apply_table(challenge, LIMITATION_KEYWORDS) or [GENERIC_LIMITATION]


def identify_customer_pains(research: ResearchOutput) -> List[CustomerPain]:
    pains = [
        CustomerPain(
            id=_stable_id("pain", index, challenge),
            description=challenge,
            severity=assess_severity(challenge),
            frequency=assess_frequency(challenge),
            current_solutions=_current_solutions(research, challenge),
            limitations=_limitations(challenge),
        )
        for index, challenge in enumerate(research.detailed_analysis.challenges)
    ]

    # Supplementary pains mined from problem statements in the facts
    for index, fact in enumerate(research.facts):
        if contains_any(fact, PROBLEM_FACT_KEYWORDS):
            pains.append(CustomerPain(
                id=_stable_id("fact-pain", index, fact),
                description=fact,
                severity="medium",
                frequency="frequent",
                current_solutions=list(FACT_PAIN_SOLUTIONS),
                limitations=list(FACT_PAIN_LIMITATIONS),
            ))
    return pains


# ── Trends & landscape ────────────────────────────────────────────────

def extract_trends(research: ResearchOutput) -> List[str]:
    trends = research.detailed_analysis.market_trends
    if not trends:
        trends = [f for f in research.facts if contains_any(f, TREND_FACT_KEYWORDS)]
    return _dedupe(trends)


def summarize_competitive_landscape(research: ResearchOutput) -> str:
    landscape = research.detailed_analysis.competitive_landscape.strip()
    if landscape:
        return landscape
    competitors = _competitors(research)
    if competitors:
        return (
            f"Key competitors: {', '.join(competitors)}. "
            "Detailed competitive analysis is not available."
        )
    return INSUFFICIENT_LANDSCAPE


def extract_market_context(research: ResearchOutput) -> MarketContext:
    """Build the full MarketContext for one generation request."""
    return MarketContext(
        opportunities=extract_opportunities(research),
        customer_pains=identify_customer_pains(research),
        trends=extract_trends(research),
        competitive_landscape=summarize_competitive_landscape(research),
        research_summary=research.processed_research.summary,
    )
