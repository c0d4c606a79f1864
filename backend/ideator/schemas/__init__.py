# Schemas package
from .config_schema import IdeationConfig, IdeatorConfig, LLMConfig, ValidationConfig
from .idea_schema import (
    BusinessIdea,
    CustomerPain,
    IdeationRequest,
    IdeatorMetadata,
    IdeatorOutput,
    MarketContext,
    MarketOpportunity,
    QualityMetrics,
    RawIdeatorOutput,
    StrictBusinessIdea,
)
from .research_schema import ResearchOutput, coerce_research_output
from .validation_schema import BatchValidationResult, IdeaAnalysis, ValidationIssue, ValidationResult

__all__ = [
    "IdeatorConfig",
    "LLMConfig",
    "IdeationConfig",
    "ValidationConfig",
    "BusinessIdea",
    "StrictBusinessIdea",
    "CustomerPain",
    "MarketOpportunity",
    "MarketContext",
    "IdeationRequest",
    "IdeatorMetadata",
    "IdeatorOutput",
    "QualityMetrics",
    "RawIdeatorOutput",
    "ResearchOutput",
    "coerce_research_output",
    "ValidationIssue",
    "ValidationResult",
    "BatchValidationResult",
    "IdeaAnalysis",
]
