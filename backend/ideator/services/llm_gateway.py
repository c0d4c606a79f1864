"""LLM gateway contract — the only way the ideator talks to a model.

Any object with an async ``invoke_structured(prompt, schema, options)``
method satisfies the protocol. Failures are raised as one of the
``LLMGatewayError`` subclasses below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Type, TypeVar, runtime_checkable

from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float
    max_tokens: int
    # Unset fields fall back to the gateway's own defaults
    model: Optional[str] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None


@dataclass(frozen=True)
class UsageMetadata:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    model_name: str = ""
    request_id: Optional[str] = None


@runtime_checkable
class LLMGateway(Protocol):
    async def invoke_structured(
        self,
        prompt: str,
        schema: Type[T],
        options: GenerationOptions,
    ) -> T:
        ...


# ── Gateway failures ─────────────────────────────────────────────────────

class LLMGatewayError(Exception):
    """Base class for gateway failures."""

    retryable: bool = True

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemaMismatch(LLMGatewayError):
    """The model answered, but not in the requested shape."""


class RateLimited(LLMGatewayError):
    pass


class AuthFailed(LLMGatewayError):
    retryable = False


class GatewayTimeout(LLMGatewayError):
    pass


class UnknownGatewayError(LLMGatewayError):
    pass
