"""Business idea schemas — market context, ideas, and the ideator output.

`BusinessIdea` is deliberately lenient: it carries whatever the LLM returned
so the quality validator can report on it. The field bounds live on
`StrictBusinessIdea`, which the validator uses for its schema check.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]
Frequency = Literal["rare", "occasional", "frequent", "daily"]
Difficulty = Literal["low", "medium", "high"]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Market context ───────────────────────────────────────────────────────

class MarketOpportunity(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    description: str
    market_size: float = Field(..., ge=0, description="Apportioned market size in yen")
    growth_rate: float = Field(..., ge=-100, le=1000, description="Growth rate in percent")
    unmet_needs: List[str] = Field(..., min_length=1)
    competitive_gaps: List[str] = Field(default_factory=list)


class CustomerPain(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    description: str
    severity: Severity = "medium"
    frequency: Frequency = "occasional"
    current_solutions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)


class MarketContext(CamelModel):
    """Everything the prompt composer needs. Scoped to one request."""

    opportunities: List[MarketOpportunity] = Field(default_factory=list)
    customer_pains: List[CustomerPain] = Field(default_factory=list)
    trends: List[str] = Field(default_factory=list)
    competitive_landscape: str = ""
    research_summary: str = ""


# ── Business ideas ───────────────────────────────────────────────────────

class BusinessIdea(CamelModel):
    """A single business proposal as produced by the LLM."""

    id: str = ""
    title: str = ""
    description: str = ""
    target_customers: List[str] = Field(default_factory=list)
    customer_pains: List[str] = Field(default_factory=list)
    value_proposition: str = ""
    revenue_model: str = ""
    estimated_revenue: float = Field(0, description="Estimated operating profit in yen")
    implementation_difficulty: str = ""
    market_opportunity: str = ""

    @field_validator(
        "id", "title", "description", "value_proposition",
        "revenue_model", "implementation_difficulty", "market_opportunity",
        mode="before",
    )
    @classmethod
    def none_to_empty_string(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("target_customers", "customer_pains", mode="before")
    @classmethod
    def none_to_empty_list(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("estimated_revenue", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class StrictBusinessIdea(CamelModel):
    """Field bounds every accepted idea must satisfy."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=30)
    description: str = Field(..., min_length=10, max_length=500)
    target_customers: List[str] = Field(..., min_length=1)
    customer_pains: List[str] = Field(..., min_length=1)
    value_proposition: str = Field(..., min_length=10)
    revenue_model: str = Field(..., min_length=10)
    estimated_revenue: float = Field(..., ge=0)
    implementation_difficulty: Difficulty
    market_opportunity: str = Field(..., min_length=10)

    @field_validator("target_customers", "customer_pains")
    @classmethod
    def entries_not_blank(cls, v: List[str]) -> List[str]:
        if any(not entry.strip() for entry in v):
            raise ValueError("entries must not be empty")
        return v


# ── Ideator output ───────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdeatorMetadata(CamelModel):
    generated_at: datetime = Field(default_factory=_utcnow)
    model_used: str = ""
    tokens_used: int = Field(0, ge=0)
    processing_time_ms: float = Field(0, ge=0)
    research_data_id: str = ""
    total_ideas: int = 0
    average_revenue: float = 0
    market_size: float = 0


class QualityMetrics(CamelModel):
    structure_completeness: float = Field(0, ge=0, le=100)
    content_consistency: float = Field(0, ge=0, le=100)
    market_clarity: float = Field(0, ge=0, le=100)


class IdeatorOutput(CamelModel):
    session_id: str = ""
    ideas: List[BusinessIdea] = Field(default_factory=list)
    summary: str = ""
    metadata: IdeatorMetadata = Field(default_factory=IdeatorMetadata)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)


class RawIdeatorOutput(CamelModel):
    """Schema handed to the LLM gateway for batch generation."""

    ideas: List[BusinessIdea]
    summary: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


# ── Requests ─────────────────────────────────────────────────────────────

class IdeationRequest(CamelModel):
    """Per-invocation overrides. Unset fields fall back to the agent config."""

    number_of_ideas: Optional[int] = Field(None, ge=1, le=20)
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, ge=100, le=32000)
    focus_areas: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    target_market: Optional[str] = None
