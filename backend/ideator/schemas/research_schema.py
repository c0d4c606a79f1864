"""Research input schema — the upstream research stage's output contract.

`ResearchOutput` is immutable once built. `coerce_research_output()` also
accepts the researcher envelope (`{"research": {...}}`) emitted by the
broad-research agent and converts it into the enhanced shape.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..constants import DEFAULT_GROWTH_RATE, MAGNITUDE_UNITS


class _ResearchModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Entity(_ResearchModel):
    name: str
    type: str = ""


class DetailedAnalysis(_ResearchModel):
    opportunities: List[str] = Field(default_factory=list)
    challenges: List[str] = Field(default_factory=list)
    market_trends: List[str] = Field(default_factory=list)
    competitive_landscape: str = ""


class ResearchMetrics(_ResearchModel):
    market_size: float = Field(0, ge=0, description="Total addressable market in yen")
    growth_rate: Optional[float] = Field(None, description="Annual growth rate in percent")


class ProcessedResearch(_ResearchModel):
    summary: str = ""


class ResearchOutput(_ResearchModel):
    """Enhanced output of the research stage."""

    id: str = ""
    facts: List[str] = Field(default_factory=list)
    entities: List[Entity] = Field(default_factory=list)
    detailed_analysis: DetailedAnalysis = Field(default_factory=DetailedAnalysis)
    metrics: ResearchMetrics = Field(default_factory=ResearchMetrics)
    processed_research: ProcessedResearch = Field(default_factory=ProcessedResearch)

    def is_empty(self) -> bool:
        """True when there is nothing to derive a market context from."""
        analysis = self.detailed_analysis
        return not (
            self.facts
            or analysis.opportunities
            or analysis.challenges
            or analysis.market_trends
            or analysis.competitive_landscape
            or self.processed_research.summary.strip()
        )


# ── Researcher envelope coercion ─────────────────────────────────────────

_MAGNITUDE_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(" + "|".join(re.escape(u) for u in MAGNITUDE_UNITS) + r")",
    re.IGNORECASE,
)
_NUMBER_RE = re.compile(r"(-?\d+(?:\.\d+)?)")


def parse_magnitude(text: str) -> Optional[float]:
    """Parse the first "<number> <large unit>" token in *text*.

    Returns None when no such token exists.
    """
    match = _MAGNITUDE_RE.search(text or "")
    if not match:
        return None
    number = float(match.group(1).replace(",", ""))
    return number * MAGNITUDE_UNITS[match.group(2).lower()]


def parse_growth_rate(text: str) -> float:
    match = _NUMBER_RE.search(text or "")
    return float(match.group(1)) if match else DEFAULT_GROWTH_RATE


def coerce_research_output(payload: Any) -> ResearchOutput:
    """Build a ResearchOutput from either the enhanced or the envelope shape."""
    if isinstance(payload, ResearchOutput):
        return payload
    if not isinstance(payload, dict):
        raise TypeError(f"Unsupported research payload type: {type(payload).__name__}")

    research = payload.get("research", payload)
    if not isinstance(research, dict):
        raise TypeError(f"Unsupported research envelope type: {type(research).__name__}")
    if "facts" in research or "detailedAnalysis" in research or "detailed_analysis" in research:
        return ResearchOutput.model_validate(research)

    insights = research.get("insights") or {}
    if not isinstance(insights, dict):
        raise TypeError(f"Unsupported research insights type: {type(insights).__name__}")
    competitors = insights.get("competitors") or []
    market_size = insights.get("marketSize", 0)
    if isinstance(market_size, str):
        market_size = parse_magnitude(market_size) or 0
    growth_rate = insights.get("growthRate")
    if isinstance(growth_rate, str) or growth_rate is None:
        growth_rate = parse_growth_rate(growth_rate or "")

    return ResearchOutput(
        id=str(research.get("id", "")),
        facts=list(research.get("keyFindings") or []),
        entities=[Entity(name=name, type="competitor") for name in competitors],
        detailed_analysis=DetailedAnalysis(
            opportunities=list(insights.get("customerNeeds") or []),
            competitive_landscape=", ".join(competitors),
        ),
        metrics=ResearchMetrics(market_size=market_size, growth_rate=growth_rate),
        processed_research=ProcessedResearch(summary=research.get("summary", "") or ""),
    )
