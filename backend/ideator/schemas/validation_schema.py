"""Quality validation result schemas (camelCase on the wire)."""

from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import Field

from .idea_schema import BusinessIdea, CamelModel

IssueSeverity = Literal["error", "warning", "info"]


class ValidationIssue(CamelModel):
    field: str
    message: str
    severity: IssueSeverity


class ValidationResult(CamelModel):
    """Outcome of validating a single idea."""

    is_valid: bool
    issues: List[ValidationIssue] = Field(default_factory=list)
    quality_score: float = Field(..., ge=0, le=100)
    idea_id: str = ""

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)


class BatchValidationResult(CamelModel):
    """Outcome of validating every idea in an output."""

    is_valid: bool
    valid_ideas: List[BusinessIdea] = Field(default_factory=list)
    invalid_ideas: List[BusinessIdea] = Field(default_factory=list)
    issues: Dict[str, List[ValidationIssue]] = Field(default_factory=dict)
    results: List[ValidationResult] = Field(default_factory=list)
    overall_score: float = Field(0, ge=0, le=100)


class IdeaAnalysis(CamelModel):
    strengths: List[str]
    weaknesses: List[str]
    validation_result: ValidationResult
    suggestions: List[str]
