"""Prompt rendering and output enrichment."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import json

import pytest

from conftest import make_idea
from ideator.agents.ideator_agent.context import extract_market_context
from ideator.agents.ideator_agent.enricher import (
    MISSING_OPPORTUNITY,
    build_metadata,
    enrich_output,
    fill_idea_defaults,
    generate_summary,
)
from ideator.agents.ideator_agent.prompts import (
    build_ideation_prompt,
    build_refinement_prompt,
    build_single_idea_prompt,
    format_currency,
    format_customer_pains,
    format_market_opportunities,
)
from ideator.schemas.idea_schema import BusinessIdea, MarketContext, MarketOpportunity, RawIdeatorOutput

FROZEN_NOW = 1_700_000_000.5


def _clock() -> float:
    return FROZEN_NOW


@pytest.fixture
def context(research) -> MarketContext:
    return extract_market_context(research)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("amount, locale, expected", [
    (1_000_000_000, "en", "1.0 billion yen"),
    (300_000_000_000, "en", "300.0 billion yen"),
    (2_000_000_000_000, "en", "2.0 trillion yen"),
    (50_000, "en", "5 ten-thousand yen"),
    (500, "en", "500 yen"),
    (150_000_000, "ja", "1.5億円"),
    (30_000, "ja", "3万円"),
])
def test_format_currency(amount, locale, expected):
    assert format_currency(amount, locale) == expected


def test_empty_sections_have_placeholders():
    assert format_market_opportunities([]) == "No market opportunity information."
    assert format_customer_pains([]) == "No customer pain information."


def test_opportunity_list_is_capped():
    opportunities = [
        MarketOpportunity(id=f"o{i}", description=f"Opportunity {i}", market_size=0,
                          growth_rate=5, unmet_needs=["need"])
        for i in range(7)
    ]
    rendered = format_market_opportunities(opportunities)
    assert "5. Opportunity 4" in rendered
    assert "Opportunity 5" not in rendered


# ---------------------------------------------------------------------------
# Prompt builders
# ---------------------------------------------------------------------------

def test_ideation_prompt_carries_count_and_context(context):
    prompt = build_ideation_prompt(context, 4, focus_areas=["retail"], constraints=["no hardware"],
                                   target_market="Japan")

    assert "EXACTLY 4" in prompt
    assert "SMB accounting is underserved and growing." in prompt
    assert "300.0 billion yen" in prompt
    assert "Growth rate: 12%" in prompt
    assert "Cloud adoption" in prompt
    assert "Dominated by expensive enterprise suites" in prompt
    assert "1.0 billion yen" in prompt
    assert "Focus on these areas: retail." in prompt
    assert "Respect these constraints: no hardware." in prompt
    assert "Target market: Japan." in prompt
    assert '"targetCustomers"' in prompt


def test_ideation_prompt_for_empty_context():
    prompt = build_ideation_prompt(MarketContext(), 5)
    assert "No research summary." in prompt
    assert "No trend information." in prompt
    assert "Focus on these areas" not in prompt


def test_single_idea_prompt_focus(context):
    prompt = build_single_idea_prompt(context, focus="inventory")
    assert 'Focus especially on "inventory".' in prompt
    assert "ONE innovative business idea" in prompt


def test_refinement_prompt_embeds_idea_and_feedback():
    idea = BusinessIdea.model_validate(make_idea(3))
    prompt = build_refinement_prompt(idea, "Make the title punchier")

    assert "## Feedback\nMake the title punchier" in prompt
    assert json.dumps("Smart Ledger 3") in prompt
    assert '"estimatedRevenue"' in prompt


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------

def test_missing_id_and_opportunity_are_filled(context):
    idea = BusinessIdea.model_validate(make_idea(0, id="", marketOpportunity=""))
    filled = fill_idea_defaults(idea, context, 2, _clock)

    assert filled.id == "idea-1700000000500-2"
    assert filled.market_opportunity == context.opportunities[0].description


def test_missing_opportunity_without_context():
    idea = BusinessIdea.model_validate(make_idea(0, marketOpportunity="  "))
    assert fill_idea_defaults(idea, MarketContext(), 0, _clock).market_opportunity == MISSING_OPPORTUNITY


def test_existing_fields_are_kept(context):
    idea = BusinessIdea.model_validate(make_idea(0))
    assert fill_idea_defaults(idea, context, 0, _clock) is idea


def test_generate_summary_mentions_value_and_ease():
    ideas = [
        BusinessIdea.model_validate(make_idea(0, implementationDifficulty="low")),
        BusinessIdea.model_validate(make_idea(1, estimatedRevenue=50_000_000)),
    ]
    summary = generate_summary(ideas)
    assert summary.startswith("Generated 2 business ideas.")
    assert "1 of them are expected to exceed 100 million yen" in summary
    assert "1 have low implementation difficulty" in summary
    assert generate_summary([]) == "No business ideas were generated."


def test_enrich_output_keeps_model_summary_and_aggregates(context):
    raw = RawIdeatorOutput.model_validate({
        "ideas": [make_idea(0, estimatedRevenue=200_000_000), make_idea(1, estimatedRevenue=400_000_000)],
        "summary": "Two ledger ideas",
    })
    output = enrich_output(raw, context, _clock)

    assert output.summary == "Two ledger ideas"
    assert output.metadata.total_ideas == 2
    assert output.metadata.average_revenue == 300_000_000
    assert output.metadata.market_size == 900_000_000_000


def test_enrich_output_synthesizes_blank_summary(context):
    raw = RawIdeatorOutput.model_validate({"ideas": [make_idea(0)], "summary": "   "})
    assert enrich_output(raw, context, _clock).summary.startswith("Generated 1 business ideas.")


def test_build_metadata_keeps_base_fields(context):
    base = build_metadata([], context, clock=_clock).model_copy(update={"model_used": "gpt-4o"})
    ideas = [BusinessIdea.model_validate(make_idea(0))]
    updated = build_metadata(ideas, context, base=base)

    assert updated.model_used == "gpt-4o"
    assert updated.total_ideas == 1
    assert updated.average_revenue == 500_000_000
