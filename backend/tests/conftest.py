"""Shared fixtures — scripted LLM gateway, sample research, idea payloads."""

import os
import sys

# Ensure the backend package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from typing import Any, Callable, Dict, List

import pytest

from ideator.schemas.config_schema import IdeatorConfig
from ideator.schemas.research_schema import ResearchOutput
from ideator.services.llm_gateway import UnknownGatewayError, UsageMetadata


class FakeGateway:
    """LLM gateway that replays scripted responses in order.

    A scripted item may be a payload dict (validated against the requested
    schema), an exception instance (raised), or a callable taking
    ``(prompt, schema)`` and returning a payload.
    """

    def __init__(self, responses: List[Any], tokens_per_call: int = 0):
        self.responses = list(responses)
        self.tokens_per_call = tokens_per_call
        self.usage_callback = None
        self.calls: List[Dict[str, Any]] = []

    async def invoke_structured(self, prompt, schema, options):
        self.calls.append({"prompt": prompt, "schema": schema, "options": options})
        if not self.responses:
            raise UnknownGatewayError("Invalid script: no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        if callable(item):
            item = item(prompt, schema)
        if self.usage_callback is not None and self.tokens_per_call:
            self.usage_callback(UsageMetadata(total_tokens=self.tokens_per_call, model_name="fake"))
        return schema.model_validate(item)


def make_idea(index: int = 0, **overrides: Any) -> Dict[str, Any]:
    """A camelCase idea payload that passes every quality rule with score 100."""
    payload = {
        "id": f"idea-{index}",
        "title": f"Smart Ledger {index}",
        "description": (
            "A cloud accounting assistant that reads receipts, reconciles bank feeds "
            "and prepares monthly reports for small retailers without an accountant."
        ),
        "targetCustomers": ["Small retailers", "Freelance bookkeepers"],
        "customerPains": ["Manual bookkeeping", "Late tax filings"],
        "valueProposition": "Cuts monthly bookkeeping time by eighty percent",
        "revenueModel": "Monthly subscription per store with a usage-based OCR add-on",
        "estimatedRevenue": 500_000_000,
        "implementationDifficulty": "medium",
        "marketOpportunity": "Small retailers are digitising back-office work after invoice reform",
    }
    payload.update(overrides)
    return payload


def make_batch(count: int, **overrides: Any) -> Dict[str, Any]:
    return {"ideas": [make_idea(i, **overrides) for i in range(count)], "summary": "Scripted batch"}


@pytest.fixture
def idea_factory() -> Callable[..., Dict[str, Any]]:
    return make_idea


@pytest.fixture
def batch_factory() -> Callable[..., Dict[str, Any]]:
    return make_batch


@pytest.fixture
def research() -> ResearchOutput:
    return ResearchOutput.model_validate({
        "id": "research-42",
        "facts": [
            "The SaaS accounting market is growing 12% per year",
            "Bookkeeping errors are a common problem for small shops",
        ],
        "entities": [{"name": "FreeLedger", "type": "competitor"}, {"name": "Tokyo", "type": "place"}],
        "detailedAnalysis": {
            "opportunities": [
                "AI automation for small business accounting",
                "Simple invoicing for freelancers",
                "Industry-specific inventory tools",
            ],
            "challenges": [
                "Severe talent shortage in accounting",
                "Manual data entry takes time every day",
            ],
            "marketTrends": ["Cloud adoption", "E-invoicing mandates"],
            "competitiveLandscape": "Dominated by expensive enterprise suites",
        },
        "metrics": {"marketSize": 900_000_000_000, "growthRate": 12},
        "processedResearch": {"summary": "SMB accounting is underserved and growing."},
    })


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def config() -> IdeatorConfig:
    return IdeatorConfig()
