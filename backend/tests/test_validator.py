"""Quality validator rules, scoring, suggestions, and ranking."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from conftest import make_batch, make_idea
from ideator.agents.ideator_agent.ranker import calculate_idea_score, rank_ideas
from ideator.agents.ideator_agent.validator import QualityValidator, build_quality_rules, schema_issues
from ideator.schemas.idea_schema import BusinessIdea, IdeatorOutput
from ideator.schemas.validation_schema import ValidationIssue


def _idea(index=0, **overrides) -> BusinessIdea:
    return BusinessIdea.model_validate(make_idea(index, **overrides))


@pytest.fixture
def validator() -> QualityValidator:
    return QualityValidator()


# ---------------------------------------------------------------------------
# Single idea
# ---------------------------------------------------------------------------

def test_clean_idea_is_valid_with_full_score(validator):
    result = validator.validate_idea(_idea())
    assert result.is_valid
    assert result.issues == []
    assert result.quality_score == 100
    assert result.idea_id == "idea-0"


def test_nine_rules_in_order():
    rules = build_quality_rules()
    assert len(rules) == 9
    assert rules[0].id == "title-length"
    assert rules[-1].id == "market-opportunity-link"


def test_overlong_title_reports_one_error(validator):
    result = validator.validate_idea(_idea(title="T" * 31))

    title_issues = [i for i in result.issues if i.field == "title"]
    assert len(title_issues) == 1
    assert title_issues[0].severity == "error"
    assert not result.is_valid


def test_high_revenue_low_difficulty_is_info_only(validator):
    result = validator.validate_idea(_idea(estimatedRevenue=50_000_000_000, implementationDifficulty="low"))

    assert result.is_valid
    assert [i.severity for i in result.issues] == ["info"]
    assert result.issues[0].field == "implementationDifficulty"


def test_unrealistic_revenue_warns(validator):
    result = validator.validate_idea(_idea(estimatedRevenue=200_000_000_000))
    assert result.is_valid
    assert result.count("warning") == 1


def test_missing_revenue_is_error(validator):
    result = validator.validate_idea(_idea(estimatedRevenue=0))
    assert not result.is_valid
    assert any(i.field == "estimatedRevenue" and i.severity == "error" for i in result.issues)


def test_unknown_difficulty_is_single_error(validator):
    result = validator.validate_idea(_idea(implementationDifficulty="extreme"))

    difficulty = [i for i in result.issues if i.field == "implementationDifficulty"]
    assert len(difficulty) == 1
    assert not result.is_valid


def test_empty_idea_scores_zero(validator):
    result = validator.validate_idea(BusinessIdea())
    assert not result.is_valid
    assert result.quality_score == 0


def test_schema_issue_fields_use_dotted_locations():
    issues = schema_issues(_idea(targetCustomers=["Retailers", " "]))
    assert [i.field for i in issues] == ["targetCustomers"]


def test_score_penalties_and_bonuses():
    idea = _idea(description="x" * 80, targetCustomers=["Shops"], customerPains=["Cost"],
                 revenueModel="Subscription", estimatedRevenue=5_000_000)
    issues = [
        ValidationIssue(field="a", message="m", severity="error"),
        ValidationIssue(field="b", message="m", severity="warning"),
        ValidationIssue(field="c", message="m", severity="info"),
    ]
    assert QualityValidator.calculate_quality_score(idea, issues) == 65


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

def test_validate_output_partitions_ideas(validator):
    batch = make_batch(3)
    batch["ideas"][1]["title"] = ""
    output = IdeatorOutput.model_validate(batch)

    result = validator.validate_output(output)

    assert not result.is_valid
    assert [i.id for i in result.valid_ideas] == ["idea-0", "idea-2"]
    assert [i.id for i in result.invalid_ideas] == ["idea-1"]
    assert set(result.issues) == {"idea-1"}
    assert len(result.results) == 3
    assert 0 <= result.overall_score <= 100


def test_validate_empty_output(validator):
    result = validator.validate_output(IdeatorOutput())
    assert result.is_valid
    assert result.overall_score == 0


# ---------------------------------------------------------------------------
# Suggestions & analysis
# ---------------------------------------------------------------------------

def test_suggestions_follow_severity_then_tier(validator):
    idea = _idea(title="", revenueModel="Ads", description="Too short")
    result = validator.validate_idea(idea)
    suggestions = validator.generate_improvement_suggestions(idea, result)

    assert suggestions[0].startswith("Rework the title")
    assert any(s.startswith("Detail how the business makes money") for s in suggestions)
    assert len(suggestions) == len(set(suggestions))
    assert suggestions[-1] in (
        "Increase the specificity of the idea and examine its feasibility in detail.",
        "Add more detail to the revenue model and the market opportunity.",
    )


def test_no_suggestions_for_clean_idea(validator):
    idea = _idea()
    assert validator.generate_improvement_suggestions(idea, validator.validate_idea(idea)) == []


def test_strengths_and_weaknesses():
    strong = _idea(estimatedRevenue=2_000_000_000, implementationDifficulty="low",
                   targetCustomers=["A shops", "B shops", "C shops"])
    assert "High expected profitability" in QualityValidator.analyze_strengths(strong)
    assert "Serves a broad range of customer segments" in QualityValidator.analyze_strengths(strong)

    weak = _idea(estimatedRevenue=50_000_000, implementationDifficulty="high",
                 targetCustomers=["Shops"], revenueModel="Ads only")
    weaknesses = QualityValidator.analyze_weaknesses(weak)
    assert len(weaknesses) == 4


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------

def test_idea_score_components():
    assert calculate_idea_score(_idea()) == 60
    top = _idea(estimatedRevenue=5_000_000_000, implementationDifficulty="low",
                targetCustomers=["a", "b", "c", "d"], customerPains=["x", "y", "z"])
    assert calculate_idea_score(top) == 100


def test_unknown_difficulty_scores_as_high():
    assert calculate_idea_score(_idea(implementationDifficulty="??")) == calculate_idea_score(
        _idea(implementationDifficulty="high")
    )


def test_rank_is_descending_and_stable():
    ideas = [
        _idea(0),
        _idea(1, implementationDifficulty="low"),
        _idea(2),
        _idea(3, implementationDifficulty="high"),
    ]
    ranked = rank_ideas(ideas)

    assert [i.id for i in ranked] == ["idea-1", "idea-0", "idea-2", "idea-3"]
    assert [i.id for i in ideas] == ["idea-0", "idea-1", "idea-2", "idea-3"]
