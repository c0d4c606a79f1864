"""Structured idea generation through the LLM integration service.

Three calls, all returning validated pydantic objects:
  - generate_business_ideas: batch prompt -> RawIdeatorOutput -> enriched IdeatorOutput
  - generate_single_idea:    one extra idea (backfill / on-demand)
  - refine_idea:             one improved version of an existing idea
"""

from __future__ import annotations

import time
from typing import Optional

from ...constants import (
    BATCH_GENERATION_TEMPERATURE,
    REFINEMENT_TEMPERATURE,
    SINGLE_IDEA_MAX_TOKENS,
    SINGLE_IDEA_TEMPERATURE,
)
from ...schemas.config_schema import IdeationConfig, LLMConfig
from ...schemas.idea_schema import BusinessIdea, IdeationRequest, IdeatorOutput, MarketContext, RawIdeatorOutput
from .enricher import Clock, enrich_output, fill_idea_defaults
from .llm_service import LLMIntegrationService
from .prompts import build_ideation_prompt, build_refinement_prompt, build_single_idea_prompt


class StructuredOutputGenerator:
    def __init__(
        self,
        llm_service: LLMIntegrationService,
        ideation_config: Optional[IdeationConfig] = None,
        clock: Clock = time.time,
        *,
        llm_config: Optional[LLMConfig] = None,
        max_retries: Optional[int] = None,
    ):
        self.llm_service = llm_service
        self.ideation_config = ideation_config or IdeationConfig()
        self.clock = clock
        self.llm_config = llm_config
        self.max_retries = max_retries

    async def generate_business_ideas(
        self,
        context: MarketContext,
        request: IdeationRequest,
    ) -> IdeatorOutput:
        cfg = self.ideation_config
        count = request.number_of_ideas or cfg.required_count
        prompt = build_ideation_prompt(
            context,
            count,
            target_revenue=cfg.target_revenue,
            locale=cfg.locale,
            focus_areas=request.focus_areas,
            constraints=request.constraints,
            target_market=request.target_market,
        )

        print(f"💡 [IDEATOR] Requesting {count} ideas (prompt={len(prompt)} chars)")
        raw = await self.llm_service.invoke_structured(
            prompt,
            RawIdeatorOutput,
            temperature=request.temperature if request.temperature is not None else BATCH_GENERATION_TEMPERATURE,
            max_tokens=request.max_tokens,
            llm_config=self.llm_config,
            max_retries=self.max_retries,
        )
        print(f"💡 [IDEATOR] Model returned {len(raw.ideas)} ideas")
        return enrich_output(raw, context, self.clock)

    async def generate_single_idea(
        self,
        context: MarketContext,
        focus: Optional[str] = None,
        index: int = 0,
    ) -> BusinessIdea:
        prompt = build_single_idea_prompt(context, focus)
        idea = await self.llm_service.invoke_structured(
            prompt,
            BusinessIdea,
            temperature=SINGLE_IDEA_TEMPERATURE,
            max_tokens=SINGLE_IDEA_MAX_TOKENS,
            llm_config=self.llm_config,
            max_retries=self.max_retries,
        )
        return fill_idea_defaults(idea, context, index, self.clock)

    async def refine_idea(self, idea: BusinessIdea, feedback: str) -> BusinessIdea:
        prompt = build_refinement_prompt(idea, feedback)
        refined = await self.llm_service.invoke_structured(
            prompt,
            BusinessIdea,
            temperature=REFINEMENT_TEMPERATURE,
            max_tokens=SINGLE_IDEA_MAX_TOKENS,
            llm_config=self.llm_config,
            max_retries=self.max_retries,
        )
        # Refinement keeps the identity of the idea it replaces
        if idea.id and refined.id != idea.id:
            refined = refined.model_copy(update={"id": idea.id})
        return refined
