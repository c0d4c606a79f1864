"""Ideator routes — generate, validate and refine business ideas.

Endpoints:
  POST /ideator            — Generate ranked ideas from research output
  POST /ideator/validate   — Validate one idea (optionally with analysis)
  POST /ideator/refine     — Refine one idea from feedback
  GET  /ideator/errors     — Recently escalated ideator errors
  GET  /ideator/health     — Service health check
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..agents.ideator_agent.agent import IdeatorAgent
from ..agents.ideator_agent.errors import IdeatorError, IdeatorErrorCode
from ..schemas.api_schema import (
    ErrorResponse,
    GenerateIdeasRequest,
    GenerateIdeasResponse,
    IdeaChanges,
    RefineIdeaRequest,
    RefineIdeaResponse,
    ValidateIdeaRequest,
    ValidateIdeaResponse,
)
from ..schemas.config_schema import IdeatorConfig
from ..services.notifications import CollectingErrorNotifier, LoggingErrorNotifier

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ideator",
    tags=["Ideator"],
    responses={
        400: {"model": ErrorResponse, "description": "Insufficient or invalid input"},
        503: {"model": ErrorResponse, "description": "Transient failure, safe to retry"},
        500: {"model": ErrorResponse, "description": "Ideation failed"},
    },
)

# Process-wide error feed, shared by every agent this module builds
error_feed = CollectingErrorNotifier(limit=100, forward=LoggingErrorNotifier())

_agent: Optional[IdeatorAgent] = None

_BAD_INPUT_CODES = {IdeatorErrorCode.INSUFFICIENT_INPUT, IdeatorErrorCode.VALIDATION_FAILED}


def get_ideator_agent() -> IdeatorAgent:
    """Lazily build the shared agent from environment configuration."""
    global _agent
    if _agent is None:
        _agent = IdeatorAgent(config=IdeatorConfig.from_env(), notifier=error_feed)
    return _agent


def _error_response(error: IdeatorError) -> JSONResponse:
    logger.warning("Ideator request failed code=%s retryable=%s", error.code.value, error.retryable)
    if error.code in _BAD_INPUT_CODES:
        status_code = status.HTTP_400_BAD_REQUEST
    elif error.retryable:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    payload = error.to_dict()
    body = ErrorResponse(
        code=payload["code"],
        message=payload["message"],
        retryable=payload["retryable"],
        details=payload["details"],
        timestamp=payload["timestamp"],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


# ── Endpoints ────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=GenerateIdeasResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate business ideas",
)
async def generate_ideas(
    body: GenerateIdeasRequest,
    agent: IdeatorAgent = Depends(get_ideator_agent),
):
    start = time.perf_counter()
    print("[TIMING] ideator_endpoint: START")
    try:
        output = await agent.generate_ideas(body.research, body.request)
    except IdeatorError as exc:
        duration = (time.perf_counter() - start) * 1000
        print(f"[TIMING] ideator_endpoint: ERROR after {duration:.0f}ms — {exc.code.value}")
        return _error_response(exc)

    duration = (time.perf_counter() - start) * 1000
    print(f"[TIMING] ideator_endpoint: END — duration={duration:.0f}ms")
    return GenerateIdeasResponse(data=output)


@router.post(
    "/validate",
    response_model=ValidateIdeaResponse,
    summary="Validate a business idea",
)
async def validate_idea(
    body: ValidateIdeaRequest,
    agent: IdeatorAgent = Depends(get_ideator_agent),
):
    analysis = agent.analyze_idea(body.idea) if body.analyze_strengths_and_weaknesses else None
    return ValidateIdeaResponse(
        validation=analysis.validation_result if analysis else agent.validate_idea(body.idea),
        analysis=analysis,
    )


@router.post(
    "/refine",
    response_model=RefineIdeaResponse,
    summary="Refine a business idea from feedback",
)
async def refine_idea(
    body: RefineIdeaRequest,
    agent: IdeatorAgent = Depends(get_ideator_agent),
):
    try:
        refined = await agent.refine_idea(body.idea, body.feedback)
    except IdeatorError as exc:
        return _error_response(exc)

    analysis = agent.analyze_idea(refined) if body.validate_result else None
    return RefineIdeaResponse(
        original_idea=body.idea,
        refined_idea=refined,
        validation=analysis.validation_result if analysis else None,
        analysis=analysis,
        improvements=IdeaChanges(
            title_changed=body.idea.title != refined.title,
            description_changed=body.idea.description != refined.description,
            revenue_changed=body.idea.estimated_revenue != refined.estimated_revenue,
        ),
    )


@router.get("/errors", summary="Recently escalated ideator errors")
async def recent_errors():
    errors = error_feed.snapshot()
    return {"count": len(errors), "errors": errors}


@router.get("/health", summary="Ideator health check")
async def ideator_health():
    config = IdeatorConfig.from_env()
    return {
        "status": "healthy",
        "service": "ideator",
        "model": config.llm_config.model,
        "openai_configured": bool(os.getenv("OPENAI_API_KEY")),
        "required_count": config.ideation_config.required_count,
    }
