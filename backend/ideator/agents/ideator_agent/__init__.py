# Ideator agent package
from .agent import IdeatorAgent
from .errors import IdeatorError, IdeatorErrorCode, is_retryable_error
from .ranker import calculate_idea_score, rank_ideas
from .validator import QualityValidator

__all__ = [
    "IdeatorAgent",
    "IdeatorError",
    "IdeatorErrorCode",
    "is_retryable_error",
    "QualityValidator",
    "calculate_idea_score",
    "rank_ideas",
]
