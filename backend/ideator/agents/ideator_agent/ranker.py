"""Deterministic idea ranking.

score = revenue (max 40) + feasibility (10-30) + market fit (max 30)
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from ...schemas.idea_schema import BusinessIdea

REVENUE_WEIGHT = 40
REVENUE_CAP = 1_000_000_000
FEASIBILITY_SCORES: Dict[str, int] = {"low": 30, "medium": 20, "high": 10}
MARKET_FIT_PER_ITEM = 5
MARKET_FIT_CAP = 30


def calculate_idea_score(idea: BusinessIdea) -> float:
    revenue = min(idea.estimated_revenue / REVENUE_CAP, 1) * REVENUE_WEIGHT
    feasibility = FEASIBILITY_SCORES.get(idea.implementation_difficulty, FEASIBILITY_SCORES["high"])
    market_fit = min(
        len(idea.target_customers) * MARKET_FIT_PER_ITEM + len(idea.customer_pains) * MARKET_FIT_PER_ITEM,
        MARKET_FIT_CAP,
    )
    return revenue + feasibility + market_fit


def rank_ideas(ideas: Sequence[BusinessIdea]) -> List[BusinessIdea]:
    """Return a new list, highest score first. Ties keep their input order."""
    return sorted(ideas, key=calculate_idea_score, reverse=True)
