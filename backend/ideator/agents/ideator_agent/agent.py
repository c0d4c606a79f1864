"""Ideator agent — research in, ranked business ideas out.

Pipeline (one invocation, strictly sequential LLM calls):
  1. Snapshot config, coerce research input
  2. Extract market context (deterministic)
  3. Batch generation via the LLM gateway, then enrichment
  4. Validation + refinement/backfill to exactly the target count
  5. Deterministic ranking, quality metrics, metadata

Every failure leaves as an IdeatorError after being handed to the
injected error notifier.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ...schemas.config_schema import IdeatorConfig
from ...schemas.idea_schema import BusinessIdea, IdeationRequest, IdeatorOutput, QualityMetrics
from ...schemas.research_schema import ResearchOutput, coerce_research_output
from ...schemas.validation_schema import IdeaAnalysis, ValidationResult
from ...services.llm_gateway import LLMGateway
from ...services.notifications import ErrorNotifier, LoggingErrorNotifier
from ...services.openai_gateway import OpenAIStructuredGateway
from ...timing import StepTimer
from .context import extract_market_context
from .enricher import Clock, build_metadata
from .errors import IdeatorError, IdeatorErrorCode
from .generator import StructuredOutputGenerator
from .llm_service import LLMIntegrationService
from .prompts import SYSTEM_PROMPT
from .ranker import rank_ideas
from .refinement import RefinementLoop
from .retry import SleepFn
from .validator import QualityValidator, schema_issues

ResearchInput = Union[ResearchOutput, Mapping[str, Any]]


class IdeatorAgent:
    def __init__(
        self,
        gateway: Optional[LLMGateway] = None,
        config: Optional[IdeatorConfig] = None,
        notifier: Optional[ErrorNotifier] = None,
        sleep: Optional[SleepFn] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or IdeatorConfig()
        self.notifier = notifier or LoggingErrorNotifier()
        self.clock = clock or time.time

        llm = self.config.llm_config
        if gateway is None:
            gateway = OpenAIStructuredGateway(
                model=llm.model,
                top_p=llm.top_p,
                presence_penalty=llm.presence_penalty,
                frequency_penalty=llm.frequency_penalty,
                system_prompt=SYSTEM_PROMPT,
            )
        self.llm_service = LLMIntegrationService(
            gateway,
            llm,
            max_retries=self.config.validation_config.max_retries,
            sleep=sleep or asyncio.sleep,
        )
        if isinstance(gateway, OpenAIStructuredGateway) and gateway.usage_callback is None:
            gateway.usage_callback = self.llm_service.track_token_usage

    # ── Generation ────────────────────────────────────────────────────

    async def generate_ideas(
        self,
        research: Optional[ResearchInput],
        request: Optional[IdeationRequest] = None,
    ) -> IdeatorOutput:
        config = self.config
        timer = StepTimer("ideator")
        tokens_before = self.llm_service.get_token_usage().total_tokens

        try:
            research_output = self._coerce_research(research)
            request = self._resolve_request(request, config)
            target_count = request.number_of_ideas
            print(f"🚀 [IDEATOR] Generating {target_count} ideas (research={research_output.id or 'n/a'})")

            with timer.step("context"):
                context = extract_market_context(research_output)
            print(
                f"🔍 [IDEATOR] Context: {len(context.opportunities)} opportunities, "
                f"{len(context.customer_pains)} pains, {len(context.trends)} trends"
            )

            generator = self._generator(config)
            validator = QualityValidator(config.ideation_config)

            async with timer.async_step("generate"):
                output = await generator.generate_business_ideas(context, request)

            async with timer.async_step("refine"):
                output, report = await RefinementLoop(generator, validator).run(
                    output,
                    context,
                    target_count=target_count,
                    min_quality_score=config.validation_config.min_quality_score,
                    enable_validation=config.validation_config.enable_validation,
                )
            if not report.accepted_as_is:
                print(
                    f"🔧 [IDEATOR] Refined={report.refined}, discarded={report.discarded}, "
                    f"backfilled={report.backfilled}"
                )

            with timer.step("rank"):
                ideas = rank_ideas(output.ideas)

            tokens_used = self.llm_service.get_token_usage().total_tokens - tokens_before
            metadata = build_metadata(ideas, context, clock=self.clock, base=output.metadata).model_copy(
                update={
                    "model_used": config.llm_config.model,
                    "tokens_used": max(tokens_used, 0),
                    "processing_time_ms": timer.elapsed_ms(),
                    "research_data_id": research_output.id,
                }
            )
            result = output.model_copy(update={
                "session_id": str(uuid.uuid4()),
                "ideas": ideas,
                "metadata": metadata,
                "quality_metrics": self._quality_metrics(ideas, validator),
            })
        except Exception as exc:
            error = self._escalate(exc)
            if error is exc:
                raise
            raise error from exc

        timer.summary()
        print(f"✅ [IDEATOR] Generated {len(result.ideas)} ideas (tokens={result.metadata.tokens_used})")
        return result

    async def generate_single_idea(
        self,
        research: Optional[ResearchInput],
        focus: Optional[str] = None,
    ) -> BusinessIdea:
        """One idea; when validation is on, a failing idea is refined once."""
        config = self.config
        try:
            context = extract_market_context(self._coerce_research(research))
            generator = self._generator(config)
            idea = await generator.generate_single_idea(context, focus)

            if config.validation_config.enable_validation:
                validator = QualityValidator(config.ideation_config)
                result = validator.validate_idea(idea)
                if not result.is_valid:
                    print("🔧 [IDEATOR] Generated idea failed validation, refining once")
                    feedback = "\n".join(validator.generate_improvement_suggestions(idea, result))
                    idea = await generator.refine_idea(idea, feedback)
            return idea
        except Exception as exc:
            error = self._escalate(exc)
            if error is exc:
                raise
            raise error from exc

    async def refine_idea(self, idea: BusinessIdea, feedback: str) -> BusinessIdea:
        config = self.config
        try:
            refined = await self._generator(config).refine_idea(idea, feedback)
        except Exception as exc:
            error = self._escalate(exc)
            if error is exc:
                raise
            raise error from exc

        if config.validation_config.enable_validation:
            result = QualityValidator(config.ideation_config).validate_idea(refined)
            if result.quality_score < config.validation_config.min_quality_score:
                print(f"⚠️  [IDEATOR] Refined idea quality score ({result.quality_score:.0f}) below threshold")
        return refined

    # ── Validation & analysis ─────────────────────────────────────────

    def validate_idea(self, idea: BusinessIdea) -> ValidationResult:
        return QualityValidator(self.config.ideation_config).validate_idea(idea)

    def analyze_idea(self, idea: BusinessIdea) -> IdeaAnalysis:
        validator = QualityValidator(self.config.ideation_config)
        result = validator.validate_idea(idea)
        return IdeaAnalysis(
            strengths=validator.analyze_strengths(idea),
            weaknesses=validator.analyze_weaknesses(idea),
            validation_result=result,
            suggestions=validator.generate_improvement_suggestions(idea, result),
        )

    # ── Configuration & metrics ───────────────────────────────────────

    def update_config(self, update: Union[IdeatorConfig, Mapping[str, Any]]) -> IdeatorConfig:
        """Shallow-merge *update* into each config section. In-flight calls keep their snapshot."""
        self.config = self.config.merged(update)
        self.llm_service.configure(self.config.llm_config, self.config.validation_config.max_retries)
        return self.config

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {
            "token_usage": vars(self.llm_service.get_token_usage()),
            "performance_metrics": vars(self.llm_service.get_performance_metrics()),
        }

    def reset_metrics(self) -> None:
        self.llm_service.reset_token_usage()
        self.llm_service.reset_performance_metrics()

    # ── Internals ─────────────────────────────────────────────────────

    def _generator(self, config: IdeatorConfig) -> StructuredOutputGenerator:
        return StructuredOutputGenerator(
            self.llm_service,
            config.ideation_config,
            self.clock,
            llm_config=config.llm_config,
            max_retries=config.validation_config.max_retries,
        )

    @staticmethod
    def _coerce_research(research: Optional[ResearchInput]) -> ResearchOutput:
        if research is None:
            raise IdeatorError.from_code(IdeatorErrorCode.INSUFFICIENT_INPUT)
        try:
            research_output = coerce_research_output(research)
        except (TypeError, ValidationError) as exc:
            raise IdeatorError.from_code(
                IdeatorErrorCode.INSUFFICIENT_INPUT,
                {"reason": str(exc)},
            ) from exc
        if research_output.is_empty():
            raise IdeatorError.from_code(
                IdeatorErrorCode.INSUFFICIENT_INPUT,
                {"reason": "research output contains no facts, analysis or summary"},
            )
        return research_output

    @staticmethod
    def _resolve_request(request: Optional[IdeationRequest], config: IdeatorConfig) -> IdeationRequest:
        request = request or IdeationRequest()
        return request.model_copy(update={
            "number_of_ideas": request.number_of_ideas or config.ideation_config.required_count,
            "max_tokens": request.max_tokens or config.llm_config.max_tokens,
        })

    @staticmethod
    def _quality_metrics(ideas: List[BusinessIdea], validator: QualityValidator) -> QualityMetrics:
        if not ideas:
            return QualityMetrics()
        results = [validator.validate_idea(idea) for idea in ideas]
        structured = sum(1 for idea in ideas if not schema_issues(idea))
        clear = sum(
            1 for r in results
            if not any(i.field == "marketOpportunity" or i.field.startswith("marketOpportunity.") for i in r.issues)
        )
        total = len(results)
        return QualityMetrics(
            structure_completeness=100 * structured / total,
            content_consistency=sum(r.quality_score for r in results) / total,
            market_clarity=100 * clear / total,
        )

    def _escalate(self, exc: BaseException) -> IdeatorError:
        error = IdeatorError.from_error(exc)
        print(f"❌ [IDEATOR] {error.code.value}: {error.message}")
        self.notifier.notify(error)
        return error
