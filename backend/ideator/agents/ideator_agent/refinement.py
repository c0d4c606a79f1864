"""Refinement loop — bounded repair of a generated batch.

Per idea:  GENERATED -> VALIDATED -> ACCEPTED | NEEDS_REFINEMENT
           NEEDS_REFINEMENT -> REFINED (trusted, not re-validated) | DISCARDED

Flow:
  1. Validate the batch. Valid, at/above threshold and at the target
     count -> accepted as-is.
  2. Otherwise refine every failing idea exactly once, sequentially.
     An idea whose refinement call fails terminally is discarded.
  3. Truncate to the target count, then backfill one idea at a time
     until the target count is reached. A failed backfill escalates
     as IDEA_COUNT_MISMATCH.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from ...schemas.idea_schema import BusinessIdea, IdeatorOutput, MarketContext
from .errors import IdeatorError, IdeatorErrorCode
from .generator import StructuredOutputGenerator
from .validator import QualityValidator


class IdeaState(str, Enum):
    GENERATED = "generated"
    VALIDATED = "validated"
    ACCEPTED = "accepted"
    NEEDS_REFINEMENT = "needs_refinement"
    REFINED = "refined"
    DISCARDED = "discarded"


@dataclass
class RefinementReport:
    accepted_as_is: bool = False
    initial_score: float = 0.0
    states: Dict[str, IdeaState] = field(default_factory=dict)
    refined: int = 0
    discarded: int = 0
    truncated: int = 0
    backfilled: int = 0


class RefinementLoop:
    def __init__(self, generator: StructuredOutputGenerator, validator: QualityValidator):
        self.generator = generator
        self.validator = validator

    async def run(
        self,
        output: IdeatorOutput,
        context: MarketContext,
        *,
        target_count: int,
        min_quality_score: float,
        enable_validation: bool = True,
    ) -> tuple[IdeatorOutput, RefinementReport]:
        """Return a copy of *output* holding exactly *target_count* ideas."""
        report = RefinementReport()
        for idea in output.ideas:
            report.states[idea.id] = IdeaState.GENERATED

        if not enable_validation:
            ideas = await self._reconcile_count(list(output.ideas), context, target_count, report)
            return output.model_copy(update={"ideas": ideas}), report

        batch = self.validator.validate_output(output)
        report.initial_score = batch.overall_score
        for idea in output.ideas:
            report.states[idea.id] = IdeaState.VALIDATED

        if batch.is_valid and batch.overall_score >= min_quality_score and len(output.ideas) == target_count:
            print(f"✅ [IDEATOR] Batch accepted as-is (score={batch.overall_score:.1f})")
            report.accepted_as_is = True
            for idea in output.ideas:
                report.states[idea.id] = IdeaState.ACCEPTED
            return output, report

        print(
            f"🔧 [IDEATOR] Refinement needed — valid={batch.is_valid}, "
            f"score={batch.overall_score:.1f}, count={len(output.ideas)}/{target_count}"
        )

        ideas: List[BusinessIdea] = []
        for idea, result in zip(output.ideas, batch.results):
            if result.is_valid and result.quality_score >= min_quality_score:
                report.states[idea.id] = IdeaState.ACCEPTED
                ideas.append(idea)
                continue

            report.states[idea.id] = IdeaState.NEEDS_REFINEMENT
            feedback = "\n".join(self.validator.generate_improvement_suggestions(idea, result))
            try:
                refined = await self.generator.refine_idea(idea, feedback)
            except IdeatorError as exc:
                print(f"⚠️  [IDEATOR] Refinement of {idea.id} failed ({exc.code.value}); discarding")
                report.states[idea.id] = IdeaState.DISCARDED
                report.discarded += 1
                continue

            report.states[refined.id] = IdeaState.REFINED
            report.refined += 1
            ideas.append(refined)

        ideas = await self._reconcile_count(ideas, context, target_count, report)
        return output.model_copy(update={"ideas": ideas}), report

    async def _reconcile_count(
        self,
        ideas: List[BusinessIdea],
        context: MarketContext,
        target_count: int,
        report: RefinementReport,
    ) -> List[BusinessIdea]:
        if len(ideas) > target_count:
            report.truncated = len(ideas) - target_count
            ideas = ideas[:target_count]

        while len(ideas) < target_count:
            try:
                idea = await self.generator.generate_single_idea(context, index=len(ideas))
            except IdeatorError as exc:
                mismatch = IdeatorError.from_code(
                    IdeatorErrorCode.IDEA_COUNT_MISMATCH,
                    {
                        "expected": target_count,
                        "actual": len(ideas),
                        "cause": exc.code.value,
                        "cause_message": exc.message,
                    },
                )
                # Only as retryable as the failure that stopped the backfill
                mismatch.retryable = exc.retryable
                raise mismatch from exc
            print(f"➕ [IDEATOR] Backfilled idea {len(ideas) + 1}/{target_count}")
            report.states[idea.id] = IdeaState.ACCEPTED
            report.backfilled += 1
            ideas.append(idea)
        return ideas
