"""LLM integration service — retries, per-call timeouts, usage tracking.

Wraps an `LLMGateway` so every structured call:
  1. Runs under `asyncio.wait_for` with llm_config.timeout_ms.
  2. Is retried with exponential backoff while the failure is retryable.
  3. Updates token-usage and performance counters.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Type

from ...schemas.config_schema import LLMConfig
from ...services.llm_gateway import GenerationOptions, LLMGateway, T, UsageMetadata
from .retry import SleepFn, retry_with_backoff, with_timeout


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    invocation_count: int = 0


@dataclass
class PerformanceMetrics:
    last_invocation_time_ms: float = 0.0
    average_invocation_time_ms: float = 0.0
    retry_count: int = 0
    success_count: int = 0
    error_count: int = 0


class LLMIntegrationService:
    def __init__(
        self,
        gateway: LLMGateway,
        llm_config: Optional[LLMConfig] = None,
        max_retries: int = 3,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.gateway = gateway
        self.llm_config = llm_config or LLMConfig()
        self.max_retries = max_retries
        self._sleep = sleep
        self._usage = TokenUsage()
        self._perf = PerformanceMetrics()

    async def invoke_structured(
        self,
        prompt: str,
        schema: Type[T],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        llm_config: Optional[LLMConfig] = None,
        max_retries: Optional[int] = None,
    ) -> T:
        """Call the gateway with retry and timeout; returns the validated object.

        *llm_config* and *max_retries* let a caller pin the values it
        snapshotted at invocation start.
        """
        config = llm_config or self.llm_config
        retry_limit = self.max_retries if max_retries is None else max_retries
        options = GenerationOptions(
            temperature=config.temperature if temperature is None else temperature,
            max_tokens=config.max_tokens if max_tokens is None else max_tokens,
            model=config.model,
            top_p=config.top_p,
            presence_penalty=config.presence_penalty,
            frequency_penalty=config.frequency_penalty,
        )
        retries = 0

        def _count_retry(attempt: int, delay_ms: float, exc: BaseException) -> None:
            nonlocal retries
            retries += 1

        async def _attempt() -> T:
            return await with_timeout(
                self.gateway.invoke_structured(prompt, schema, options),
                config.timeout_ms,
            )

        started = time.perf_counter()
        try:
            result = await retry_with_backoff(
                _attempt,
                retry_limit,
                sleep=self._sleep,
                on_retry=_count_retry,
            )
        except Exception:
            self._record(0.0, retries, success=False)
            raise
        self._record((time.perf_counter() - started) * 1000, retries, success=True)
        return result

    # ── Token usage ──────────────────────────────────────────────────

    def track_token_usage(self, usage: UsageMetadata) -> None:
        self._usage.prompt_tokens += usage.prompt_tokens or 0
        self._usage.completion_tokens += usage.completion_tokens or 0
        self._usage.total_tokens += usage.total_tokens or 0
        self._usage.invocation_count += 1

    def get_token_usage(self) -> TokenUsage:
        return TokenUsage(**asdict(self._usage))

    def reset_token_usage(self) -> None:
        self._usage = TokenUsage()

    # ── Performance ──────────────────────────────────────────────────

    def get_performance_metrics(self) -> PerformanceMetrics:
        return PerformanceMetrics(**asdict(self._perf))

    def reset_performance_metrics(self) -> None:
        self._perf = PerformanceMetrics()

    def _record(self, elapsed_ms: float, retries: int, *, success: bool) -> None:
        perf = self._perf
        if success:
            perf.success_count += 1
            perf.last_invocation_time_ms = elapsed_ms
            total = perf.average_invocation_time_ms * (perf.success_count - 1) + elapsed_ms
            perf.average_invocation_time_ms = total / perf.success_count
        else:
            perf.error_count += 1
        perf.retry_count += retries

    # ── Configuration ────────────────────────────────────────────────

    def configure(self, llm_config: LLMConfig, max_retries: Optional[int] = None) -> None:
        self.llm_config = llm_config
        if max_retries is not None:
            self.max_retries = max_retries

    def get_current_config(self) -> Dict[str, Any]:
        return self.llm_config.model_dump()
