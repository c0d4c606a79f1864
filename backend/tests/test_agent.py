"""Ideator agent end-to-end with a scripted gateway (no network)."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import asyncio

import pytest

from conftest import FakeGateway, make_batch, make_idea
from ideator.agents.ideator_agent import IdeatorAgent, IdeatorError, IdeatorErrorCode
from ideator.agents.ideator_agent.context import extract_market_context
from ideator.agents.ideator_agent.refinement import IdeaState, RefinementLoop
from ideator.agents.ideator_agent.validator import QualityValidator
from ideator.schemas.config_schema import IdeatorConfig
from ideator.schemas.idea_schema import BusinessIdea, IdeationRequest, IdeatorOutput
from ideator.services.llm_gateway import AuthFailed, UnknownGatewayError
from ideator.services.notifications import CollectingErrorNotifier

FROZEN_NOW = 1_700_000_000.0


def _agent(responses, fake_sleep, config=None, tokens_per_call=0):
    gateway = FakeGateway(responses, tokens_per_call=tokens_per_call)
    notifier = CollectingErrorNotifier()
    agent = IdeatorAgent(
        gateway=gateway,
        config=config,
        notifier=notifier,
        sleep=fake_sleep,
        clock=lambda: FROZEN_NOW,
    )
    return agent, gateway, notifier


# ---------------------------------------------------------------------------
# generate_ideas — happy paths
# ---------------------------------------------------------------------------

def test_clean_batch_is_accepted_in_one_call(research, fake_sleep):
    agent, gateway, notifier = _agent([make_batch(5)], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(output.ideas) == 5
    assert len(gateway.calls) == 1
    assert "EXACTLY 5" in gateway.calls[0]["prompt"]
    assert gateway.calls[0]["options"].temperature == 0.8
    assert output.session_id
    assert output.summary == "Scripted batch"
    assert output.metadata.research_data_id == "research-42"
    assert output.metadata.model_used == "gpt-4o"
    assert output.metadata.total_ideas == 5
    assert output.quality_metrics.structure_completeness == 100
    assert output.quality_metrics.content_consistency == 100
    assert output.quality_metrics.market_clarity == 100
    assert notifier.errors == []


def test_ideas_are_ranked(research, fake_sleep):
    batch = make_batch(5)
    batch["ideas"][3]["implementationDifficulty"] = "low"
    batch["ideas"][0]["implementationDifficulty"] = "high"
    agent, _, _ = _agent([batch], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert [i.id for i in output.ideas] == ["idea-3", "idea-1", "idea-2", "idea-4", "idea-0"]


def test_short_batch_is_backfilled(research, fake_sleep):
    agent, gateway, _ = _agent([make_batch(3), make_idea(3), make_idea(4)], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(output.ideas) == 5
    assert len(gateway.calls) == 3
    assert gateway.calls[1]["options"].temperature == 0.9
    assert gateway.calls[1]["options"].max_tokens == 2000
    assert {i.id for i in output.ideas} == {f"idea-{n}" for n in range(5)}


def test_long_batch_is_truncated(research, fake_sleep):
    agent, gateway, _ = _agent([make_batch(7)], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(output.ideas) == 5
    assert len(gateway.calls) == 1
    assert "idea-6" not in {i.id for i in output.ideas}


def test_failing_idea_is_refined_once(research, fake_sleep):
    batch = make_batch(5)
    batch["ideas"][2]["title"] = "An Extremely Long Idea Title Here"
    refined = make_idea(2, id="model-invented-id", title="Ledger Pro")
    agent, gateway, _ = _agent([batch, refined], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(gateway.calls) == 2
    assert "## Feedback" in gateway.calls[1]["prompt"]
    assert gateway.calls[1]["options"].temperature == 0.7
    by_id = {i.id: i for i in output.ideas}
    assert by_id["idea-2"].title == "Ledger Pro"


def test_failed_refinement_discards_and_backfills(research, fake_sleep):
    batch = make_batch(5)
    batch["ideas"][1]["estimatedRevenue"] = 0
    agent, gateway, _ = _agent(
        [batch, AuthFailed("401: Authentication failed", status_code=401), make_idea(7)],
        fake_sleep,
    )

    output = asyncio.run(agent.generate_ideas(research))

    ids = {i.id for i in output.ideas}
    assert len(output.ideas) == 5
    assert "idea-1" not in ids
    assert "idea-7" in ids
    assert len(gateway.calls) == 3


def test_transient_gateway_failure_is_retried(research, sleeps, fake_sleep):
    agent, gateway, _ = _agent([UnknownGatewayError("500: Server Error"), make_batch(5)], fake_sleep)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(output.ideas) == 5
    assert len(gateway.calls) == 2
    assert sleeps == [1.0]
    assert agent.get_metrics()["performance_metrics"]["retry_count"] == 1


def test_request_overrides_count_and_temperature(research, fake_sleep):
    agent, gateway, _ = _agent([make_batch(3)], fake_sleep)

    output = asyncio.run(agent.generate_ideas(
        research, IdeationRequest(number_of_ideas=3, temperature=0.4, focus_areas=["retail"]),
    ))

    assert len(output.ideas) == 3
    prompt = gateway.calls[0]["prompt"]
    assert "EXACTLY 3" in prompt
    assert "Focus on these areas: retail." in prompt
    assert gateway.calls[0]["options"].temperature == 0.4


def test_validation_disabled_keeps_invalid_ideas(research, fake_sleep):
    batch = make_batch(5)
    batch["ideas"][0]["title"] = ""
    config = IdeatorConfig().merged({"validation_config": {"enable_validation": False}})
    agent, gateway, _ = _agent([batch], fake_sleep, config=config)

    output = asyncio.run(agent.generate_ideas(research))

    assert len(gateway.calls) == 1
    assert len(output.ideas) == 5
    assert output.quality_metrics.structure_completeness == 80


def test_envelope_research_is_accepted(fake_sleep):
    agent, _, _ = _agent([make_batch(5)], fake_sleep)
    envelope = {"research": {"id": "env-1", "summary": "Pet care is booming", "keyFindings": ["Growing demand"]}}

    output = asyncio.run(agent.generate_ideas(envelope))

    assert output.metadata.research_data_id == "env-1"


def test_token_usage_is_reported(research, fake_sleep):
    agent, gateway, _ = _agent([make_batch(5)], fake_sleep, tokens_per_call=120)
    gateway.usage_callback = agent.llm_service.track_token_usage

    output = asyncio.run(agent.generate_ideas(research))

    assert output.metadata.tokens_used == 120
    metrics = agent.get_metrics()
    assert metrics["token_usage"]["total_tokens"] == 120
    assert metrics["performance_metrics"]["success_count"] == 1

    agent.reset_metrics()
    assert agent.get_metrics()["token_usage"]["total_tokens"] == 0


# ---------------------------------------------------------------------------
# generate_ideas — failures
# ---------------------------------------------------------------------------

def test_missing_research_is_insufficient_input(fake_sleep):
    agent, gateway, notifier = _agent([], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(None))

    assert exc_info.value.code == IdeatorErrorCode.INSUFFICIENT_INPUT
    assert exc_info.value.retryable is False
    assert gateway.calls == []
    assert len(notifier.errors) == 1


def test_empty_research_is_insufficient_input(fake_sleep):
    agent, _, _ = _agent([], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas({}))

    assert exc_info.value.code == IdeatorErrorCode.INSUFFICIENT_INPUT


def test_failed_backfill_escalates_count_mismatch(research, fake_sleep):
    agent, _, notifier = _agent([make_batch(4), AuthFailed("401: Authentication failed", status_code=401)], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(research))

    error = exc_info.value
    assert error.code == IdeatorErrorCode.IDEA_COUNT_MISMATCH
    assert error.details["expected"] == 5
    assert error.details["actual"] == 4
    assert notifier.snapshot()[0]["code"] == "IDEA_COUNT_MISMATCH"


def test_backfill_auth_failure_is_not_retryable(research, fake_sleep):
    agent, _, _ = _agent([make_batch(3), AuthFailed("401: Authentication failed", status_code=401)], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(research))

    assert exc_info.value.code == IdeatorErrorCode.IDEA_COUNT_MISMATCH
    assert exc_info.value.retryable is False
    assert exc_info.value.details["actual"] == 3


def test_backfill_outage_stays_retryable(research, sleeps, fake_sleep):
    outage = [UnknownGatewayError("503: Service Unavailable", status_code=503)] * 4
    agent, _, _ = _agent([make_batch(4)] + outage, fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(research))

    assert exc_info.value.code == IdeatorErrorCode.IDEA_COUNT_MISMATCH
    assert exc_info.value.retryable is True
    assert sleeps == [1.0, 2.0, 4.0]


@pytest.mark.parametrize("payload", [
    {"research": "just text"},
    {"research": {"id": "r-9", "summary": "Some summary", "insights": ["x"]}},
])
def test_malformed_envelope_is_insufficient_input(payload, fake_sleep):
    agent, gateway, _ = _agent([], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(payload))

    assert exc_info.value.code == IdeatorErrorCode.INSUFFICIENT_INPUT
    assert exc_info.value.retryable is False
    assert gateway.calls == []


def test_non_retryable_gateway_failure_escalates(research, sleeps, fake_sleep):
    agent, gateway, notifier = _agent([AuthFailed("401: Authentication failed", status_code=401)], fake_sleep)

    with pytest.raises(IdeatorError) as exc_info:
        asyncio.run(agent.generate_ideas(research))

    assert exc_info.value.retryable is False
    assert len(gateway.calls) == 1
    assert sleeps == []
    assert len(notifier.errors) == 1
    assert agent.get_metrics()["performance_metrics"]["error_count"] == 1


# ---------------------------------------------------------------------------
# Single idea, refinement, analysis, config
# ---------------------------------------------------------------------------

def test_generate_single_idea_fills_id(research, fake_sleep):
    agent, gateway, _ = _agent([make_idea(0, id="")], fake_sleep)

    idea = asyncio.run(agent.generate_single_idea(research, focus="inventory"))

    assert idea.id == "idea-1700000000000-0"
    assert 'Focus especially on "inventory".' in gateway.calls[0]["prompt"]


def test_generate_single_idea_refines_invalid_result(research, fake_sleep):
    agent, gateway, _ = _agent([make_idea(0, title=""), make_idea(0, title="Fixed Ledger")], fake_sleep)

    idea = asyncio.run(agent.generate_single_idea(research))

    assert idea.title == "Fixed Ledger"
    assert len(gateway.calls) == 2


def test_refine_idea_keeps_identity(fake_sleep):
    agent, _, _ = _agent([make_idea(5, id="other", title="Sharper Ledger")], fake_sleep)
    original = BusinessIdea.model_validate(make_idea(1))

    refined = asyncio.run(agent.refine_idea(original, "Sharpen the pitch"))

    assert refined.id == "idea-1"
    assert refined.title == "Sharper Ledger"


def test_analyze_idea(fake_sleep):
    agent, _, _ = _agent([], fake_sleep)
    analysis = agent.analyze_idea(BusinessIdea.model_validate(make_idea(0, implementationDifficulty="low")))

    assert analysis.validation_result.is_valid
    assert "Relatively easy to implement and launch early" in analysis.strengths
    assert analysis.suggestions == []


def test_update_config_merges_sections(fake_sleep):
    agent, _, _ = _agent([], fake_sleep)

    config = agent.update_config({
        "validationConfig": {"minQualityScore": 75, "maxRetries": 1},
        "llm_config": {"temperature": 0.2},
    })

    assert config.validation_config.min_quality_score == 75
    assert config.validation_config.enable_validation is True
    assert config.llm_config.temperature == 0.2
    assert config.llm_config.model == "gpt-4o"
    assert agent.llm_service.max_retries == 1
    assert agent.llm_service.get_current_config()["temperature"] == 0.2


def test_config_update_mid_run_keeps_snapshot(research, fake_sleep):
    holder = {}

    def first_batch(prompt, schema):
        holder["agent"].update_config({"llm_config": {"model": "gpt-4o-mini", "topP": 0.5}})
        return make_batch(3)

    agent, gateway, _ = _agent([first_batch, make_idea(3), make_idea(4)], fake_sleep)
    holder["agent"] = agent

    output = asyncio.run(agent.generate_ideas(research))

    assert len(gateway.calls) == 3
    assert [c["options"].model for c in gateway.calls] == ["gpt-4o"] * 3
    assert [c["options"].top_p for c in gateway.calls] == [0.9] * 3
    assert output.metadata.model_used == "gpt-4o"
    assert agent.config.llm_config.model == "gpt-4o-mini"


def test_refinement_report_states(research, fake_sleep):
    agent, _, _ = _agent([make_idea(9, title="Better Ledger")], fake_sleep)
    generator = agent._generator(agent.config)
    batch = make_batch(2)
    batch["ideas"][0]["revenueModel"] = ""
    output = IdeatorOutput.model_validate(batch)

    result, report = asyncio.run(RefinementLoop(generator, QualityValidator()).run(
        output, extract_market_context(research), target_count=2, min_quality_score=60,
    ))

    assert not report.accepted_as_is
    assert report.refined == 1
    assert report.states["idea-0"] == IdeaState.REFINED
    assert report.states["idea-1"] == IdeaState.ACCEPTED
    assert [i.title for i in result.ideas] == ["Better Ledger", "Smart Ledger 1"]
