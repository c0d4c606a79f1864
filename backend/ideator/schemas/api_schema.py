"""Request and response bodies for the /ideator endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import Field

from .idea_schema import BusinessIdea, CamelModel, IdeationRequest, IdeatorOutput
from .validation_schema import IdeaAnalysis, ValidationResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerateIdeasRequest(CamelModel):
    """Body for POST /ideator.

    ``research`` takes either the enhanced research output or the raw
    researcher envelope (``{"research": {...}}``).
    """

    research: Dict[str, Any] = Field(..., description="Upstream research output")
    request: Optional[IdeationRequest] = None


class GenerateIdeasResponse(CamelModel):
    success: bool = True
    data: IdeatorOutput
    timestamp: datetime = Field(default_factory=_utcnow)


class ValidateIdeaRequest(CamelModel):
    idea: BusinessIdea
    analyze_strengths_and_weaknesses: bool = False


class ValidateIdeaResponse(CamelModel):
    success: bool = True
    validation: ValidationResult
    analysis: Optional[IdeaAnalysis] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class RefineIdeaRequest(CamelModel):
    idea: BusinessIdea
    feedback: str = Field(..., min_length=1)
    validate_result: bool = True


class IdeaChanges(CamelModel):
    title_changed: bool
    description_changed: bool
    revenue_changed: bool


class RefineIdeaResponse(CamelModel):
    success: bool = True
    original_idea: BusinessIdea
    refined_idea: BusinessIdea
    validation: Optional[ValidationResult] = None
    analysis: Optional[IdeaAnalysis] = None
    improvements: IdeaChanges
    timestamp: datetime = Field(default_factory=_utcnow)


class ErrorResponse(CamelModel):
    success: bool = False
    code: str
    message: str
    retryable: bool
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str
