"""Quality validation — schema bounds plus nine heuristic rules.

Each rule is plain data: a `QualityRule` record holding a check function
that returns at most one `ValidationIssue`. Rules are independent and run
in order after the schema check. An idea is valid when neither the schema
check nor any rule produced an error.

Scoring:
  100 - 20/error - 10/warning - 5/info
  + 5 each for: description > 100 chars, >= 2 target customers,
    >= 2 customer pains, revenue model > 20 chars
  + 10 when estimated revenue is inside the plausible band
  clamped to [0, 100]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ...constants import (
    COMPLETENESS_BONUS,
    HIGH_REVENUE_WARNING_THRESHOLD,
    IMPROVEMENT_SUGGESTIONS,
    LOW_REVENUE_INFO_THRESHOLD,
    LOW_SCORE_ADVICE,
    MAX_CUSTOMER_PAINS,
    MID_SCORE_ADVICE,
    MOAT_REVIEW_REVENUE_THRESHOLD,
    PLAUSIBLE_REVENUE_BAND,
    REALISM_BONUS,
    SEVERITY_PENALTIES,
)
from ...schemas.config_schema import IdeationConfig
from ...schemas.idea_schema import BusinessIdea, IdeatorOutput, StrictBusinessIdea
from ...schemas.validation_schema import (
    BatchValidationResult,
    IssueSeverity,
    ValidationIssue,
    ValidationResult,
)

VALID_DIFFICULTIES = ("low", "medium", "high")
MIN_TEXT_LENGTH = 10
SEVERITY_ORDER: tuple[IssueSeverity, ...] = ("error", "warning", "info")


@dataclass(frozen=True)
class QualityRule:
    id: str
    name: str
    description: str
    check: Callable[[BusinessIdea], Optional[ValidationIssue]]


def _issue(field: str, message: str, severity: IssueSeverity) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity=severity)


# ── Rule set ──────────────────────────────────────────────────────────

def build_quality_rules(config: Optional[IdeationConfig] = None) -> List[QualityRule]:
    """Build the ordered rule list for the given length bounds."""
    cfg = config or IdeationConfig()

    def title_length(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if not idea.title:
            return _issue("title", "Title is missing", "error")
        if len(idea.title) > cfg.max_title_length:
            return _issue("title", f"Title must be at most {cfg.max_title_length} characters", "error")
        return None

    def description_quality(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if len(idea.description) < cfg.min_description_length:
            return _issue("description", "Description is too short; add more detail", "warning")
        if len(idea.description) > cfg.max_description_length:
            return _issue("description", "Description is too long; focus on the key points", "warning")
        return None

    def target_customers(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if not idea.target_customers:
            return _issue("targetCustomers", "Target customers are missing", "error")
        if any(len(c) < 2 for c in idea.target_customers):
            return _issue("targetCustomers", "Target customer description is insufficient", "warning")
        return None

    def revenue_realism(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if idea.estimated_revenue <= 0:
            return _issue("estimatedRevenue", "Estimated revenue is not set", "error")
        if idea.estimated_revenue > HIGH_REVENUE_WARNING_THRESHOLD:
            return _issue("estimatedRevenue", "Estimated revenue may be unrealistically high", "warning")
        if idea.estimated_revenue < LOW_REVENUE_INFO_THRESHOLD:
            return _issue("estimatedRevenue", "Estimated revenue may be too small for a business", "info")
        return None

    def value_proposition_clarity(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if len(idea.value_proposition) < MIN_TEXT_LENGTH:
            return _issue("valueProposition", "Value proposition is unclear", "error")
        return None

    def revenue_model_detail(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if len(idea.revenue_model) < MIN_TEXT_LENGTH:
            return _issue("revenueModel", "Revenue model is not described in enough detail", "warning")
        return None

    def customer_pain_alignment(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if not idea.customer_pains:
            return _issue("customerPains", "No customer pains are addressed", "warning")
        if len(idea.customer_pains) > MAX_CUSTOMER_PAINS:
            return _issue("customerPains", "Too many customer pains; consider narrowing the focus", "info")
        return None

    def implementation_assessment(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if idea.implementation_difficulty not in VALID_DIFFICULTIES:
            return _issue("implementationDifficulty", "Implementation difficulty is not set correctly", "error")
        if idea.estimated_revenue > MOAT_REVIEW_REVENUE_THRESHOLD and idea.implementation_difficulty == "low":
            return _issue(
                "implementationDifficulty",
                "High revenue with low implementation difficulty; re-examine the competitive advantage",
                "info",
            )
        return None

    def market_opportunity_link(idea: BusinessIdea) -> Optional[ValidationIssue]:
        if len(idea.market_opportunity) < MIN_TEXT_LENGTH:
            return _issue("marketOpportunity", "Market opportunity is not described in enough detail", "warning")
        return None

    return [
        QualityRule("title-length", "Title length", "Title is present and short enough", title_length),
        QualityRule("description-quality", "Description quality", "Description is detailed but focused", description_quality),
        QualityRule("target-customers", "Target customer specificity", "Target customers are defined", target_customers),
        QualityRule("revenue-realism", "Revenue realism", "Estimated revenue is plausible", revenue_realism),
        QualityRule("value-proposition-clarity", "Value proposition clarity", "Value proposition is stated", value_proposition_clarity),
        QualityRule("revenue-model-detail", "Revenue model detail", "Revenue model is explained", revenue_model_detail),
        QualityRule("customer-pain-alignment", "Customer pain alignment", "Addressed pains are focused", customer_pain_alignment),
        QualityRule("implementation-assessment", "Implementation assessment", "Difficulty rating is valid and credible", implementation_assessment),
        QualityRule("market-opportunity-link", "Market opportunity link", "Market opportunity is described", market_opportunity_link),
    ]


# ── Validator ─────────────────────────────────────────────────────────

def schema_issues(idea: BusinessIdea) -> List[ValidationIssue]:
    """Field-bound violations, one error per pydantic error."""
    try:
        StrictBusinessIdea.model_validate(idea.model_dump(by_alias=True))
    except ValidationError as exc:
        return [
            _issue(".".join(str(p) for p in err["loc"]), err["msg"], "error")
            for err in exc.errors()
        ]
    return []


class QualityValidator:
    def __init__(self, config: Optional[IdeationConfig] = None):
        self.config = config or IdeationConfig()
        self.rules = build_quality_rules(self.config)

    def validate_idea(self, idea: BusinessIdea) -> ValidationResult:
        issues = schema_issues(idea)
        schema_fields = {issue.field.split(".")[0] for issue in issues}

        for rule in self.rules:
            issue = rule.check(idea)
            if issue is None or issue.field in schema_fields:
                continue
            issues.append(issue)

        return ValidationResult(
            is_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
            quality_score=self.calculate_quality_score(idea, issues),
            idea_id=idea.id,
        )

    def validate_output(self, output: IdeatorOutput) -> BatchValidationResult:
        results = [self.validate_idea(idea) for idea in output.ideas]
        valid = [idea for idea, r in zip(output.ideas, results) if r.is_valid]
        invalid = [idea for idea, r in zip(output.ideas, results) if not r.is_valid]
        issues: Dict[str, List[ValidationIssue]] = {
            r.idea_id: r.issues for r in results if r.issues
        }
        overall = sum(r.quality_score for r in results) / len(results) if results else 0.0
        return BatchValidationResult(
            is_valid=not invalid,
            valid_ideas=valid,
            invalid_ideas=invalid,
            issues=issues,
            results=results,
            overall_score=overall,
        )

    @staticmethod
    def calculate_quality_score(idea: BusinessIdea, issues: Sequence[ValidationIssue]) -> float:
        score = 100
        for issue in issues:
            score -= SEVERITY_PENALTIES[issue.severity]

        if len(idea.description) > 100:
            score += COMPLETENESS_BONUS
        if len(idea.target_customers) >= 2:
            score += COMPLETENESS_BONUS
        if len(idea.customer_pains) >= 2:
            score += COMPLETENESS_BONUS
        if len(idea.revenue_model) > 20:
            score += COMPLETENESS_BONUS

        low, high = PLAUSIBLE_REVENUE_BAND
        if low < idea.estimated_revenue < high:
            score += REALISM_BONUS

        return float(max(0, min(100, score)))

    def generate_improvement_suggestions(
        self, idea: BusinessIdea, result: ValidationResult
    ) -> List[str]:
        """Field-specific suggestions ordered by severity, then score-tier advice."""
        suggestions: List[str] = []
        for severity in SEVERITY_ORDER:
            for issue in result.issues:
                if issue.severity != severity:
                    continue
                text = self._suggestion_for(issue, idea)
                if text not in suggestions:
                    suggestions.append(text)

        if result.quality_score < 60:
            suggestions.append(LOW_SCORE_ADVICE)
        elif result.quality_score < 80:
            suggestions.append(MID_SCORE_ADVICE)
        return suggestions

    @staticmethod
    def _suggestion_for(issue: ValidationIssue, idea: BusinessIdea) -> str:
        template = IMPROVEMENT_SUGGESTIONS.get(issue.field.split(".")[0])
        if template is None:
            return f"{issue.field}: {issue.message}"
        return template.format(title=idea.title)

    # ── Analysis ──────────────────────────────────────────────────────

    @staticmethod
    def analyze_strengths(idea: BusinessIdea) -> List[str]:
        strengths: List[str] = []
        if idea.estimated_revenue > 1_000_000_000:
            strengths.append("High expected profitability")
        if idea.implementation_difficulty == "low":
            strengths.append("Relatively easy to implement and launch early")
        if len(idea.target_customers) >= 3:
            strengths.append("Serves a broad range of customer segments")
        if len(idea.customer_pains) >= 3:
            strengths.append("Solves several customer pains at once")
        if len(idea.value_proposition) > 50:
            strengths.append("Differentiated by a clear value proposition")
        return strengths

    @staticmethod
    def analyze_weaknesses(idea: BusinessIdea) -> List[str]:
        weaknesses: List[str] = []
        if idea.implementation_difficulty == "high":
            weaknesses.append("Complex implementation that needs time and resources")
        if idea.estimated_revenue < 100_000_000:
            weaknesses.append("Limited market size constrains growth")
        if len(idea.target_customers) == 1:
            weaknesses.append("Narrow target customer base increases risk")
        if len(idea.revenue_model) < 30:
            weaknesses.append("Revenue model lacks specifics")
        return weaknesses
