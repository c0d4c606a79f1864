"""Ideator errors — closed taxonomy, classification, and retry policy.

Every failure the agent surfaces is an `IdeatorError` carrying a code,
message, retryable flag, details bag and timestamp. `IdeatorError.from_error`
classifies raw exceptions; `is_retryable_error` decides whether the LLM
integration service may try again.
"""

from __future__ import annotations

import asyncio
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ...constants import ERROR_MESSAGES
from ...services.llm_gateway import (
    AuthFailed,
    GatewayTimeout,
    LLMGatewayError,
    RateLimited,
    SchemaMismatch,
    UnknownGatewayError,
)


class IdeatorErrorCode(str, Enum):
    INSUFFICIENT_INPUT = "INSUFFICIENT_INPUT"
    LLM_GENERATION_FAILED = "LLM_GENERATION_FAILED"
    INVALID_OUTPUT_FORMAT = "INVALID_OUTPUT_FORMAT"
    IDEA_COUNT_MISMATCH = "IDEA_COUNT_MISMATCH"
    QUALITY_THRESHOLD_NOT_MET = "QUALITY_THRESHOLD_NOT_MET"
    TOKEN_LIMIT_EXCEEDED = "TOKEN_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    VALIDATION_FAILED = "VALIDATION_FAILED"


NON_RETRYABLE_CODES: frozenset[IdeatorErrorCode] = frozenset({
    IdeatorErrorCode.INSUFFICIENT_INPUT,
    IdeatorErrorCode.VALIDATION_FAILED,
    IdeatorErrorCode.TOKEN_LIMIT_EXCEEDED,
})

_TIMEOUT_TYPES = (TimeoutError, asyncio.TimeoutError, httpx.TimeoutException)

# Raw-message markers for retry decisions
RETRYABLE_MARKERS: tuple[str, ...] = (
    "network", "timeout", "ECONNREFUSED", "ECONNRESET", "ETIMEDOUT", "ENOTFOUND",
    "429", "rate limit", "Too Many Requests",
)
NON_RETRYABLE_MARKERS: tuple[str, ...] = (
    "Invalid", "validation", "Authentication failed", "Permission denied",
)
_AUTH_STATUS_RE = re.compile(r"\b(401|403)\b")
_SERVER_STATUS_RE = re.compile(r"\b5\d\d\b")


class IdeatorError(Exception):
    """Structured failure raised by the ideator agent."""

    def __init__(
        self,
        message: str,
        code: IdeatorErrorCode,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: Dict[str, Any] = details or {}
        self.retryable = retryable
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_code(
        cls,
        code: IdeatorErrorCode,
        details: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> "IdeatorError":
        """Build an error with the canned message and the code's retry policy."""
        text = message or ERROR_MESSAGES.get(code.value, "Unknown error occurred")
        return cls(text, code, details, retryable=code not in NON_RETRYABLE_CODES)

    @classmethod
    def from_error(
        cls,
        error: Any,
        default_code: IdeatorErrorCode = IdeatorErrorCode.LLM_GENERATION_FAILED,
    ) -> "IdeatorError":
        """Classify an arbitrary failure into the ideator taxonomy."""
        if isinstance(error, IdeatorError):
            return error

        if not isinstance(error, BaseException):
            return cls(
                "An unknown error occurred",
                default_code,
                {"original_error": error},
                retryable=False,
            )

        message = str(error)
        details: Dict[str, Any] = {
            "original_message": message,
            "name": type(error).__name__,
        }
        status = _status_of(error)
        if status is not None:
            details["status_code"] = status

        # Typed gateway and transport failures
        if isinstance(error, SchemaMismatch):
            return cls.from_code(IdeatorErrorCode.INVALID_OUTPUT_FORMAT, details, message)
        if isinstance(error, (GatewayTimeout,) + _TIMEOUT_TYPES):
            return cls.from_code(IdeatorErrorCode.TIMEOUT, details)
        if isinstance(error, RateLimited):
            return cls(
                "Rate limit exceeded. Please retry after some time.",
                IdeatorErrorCode.LLM_GENERATION_FAILED,
                details,
                retryable=True,
            )
        if isinstance(error, AuthFailed):
            return cls(
                "Authentication failed. Please check API credentials.",
                IdeatorErrorCode.LLM_GENERATION_FAILED,
                details,
                retryable=False,
            )

        # Message patterns
        if "token" in message or "context_length" in message:
            return cls.from_code(IdeatorErrorCode.TOKEN_LIMIT_EXCEEDED, details)
        if "timeout" in message or "ETIMEDOUT" in message:
            return cls.from_code(IdeatorErrorCode.TIMEOUT, details)
        if "Invalid" in message or "validation" in message:
            return cls.from_code(IdeatorErrorCode.VALIDATION_FAILED, details)
        if status == 429:
            return cls(
                "Rate limit exceeded. Please retry after some time.",
                IdeatorErrorCode.LLM_GENERATION_FAILED,
                details,
                retryable=True,
            )
        if status == 401:
            return cls(
                "Authentication failed. Please check API credentials.",
                IdeatorErrorCode.LLM_GENERATION_FAILED,
                details,
                retryable=False,
            )

        return cls(message or type(error).__name__, default_code, details, retryable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": _jsonable(self.details),
            "timestamp": self.timestamp.isoformat(),
            "retryable": self.retryable,
        }


def _status_of(error: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def _jsonable(details: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in details.items():
        if value is None or isinstance(value, (str, int, float, bool, list, dict)):
            out[key] = value
        else:
            out[key] = repr(value)
    return out


def is_retryable_error(error: Any) -> bool:
    """Decide whether a failed LLM call may be attempted again."""
    if isinstance(error, IdeatorError):
        return error.retryable
    # Unknown gateway failures are judged by their message below
    if isinstance(error, LLMGatewayError) and not isinstance(error, UnknownGatewayError):
        return error.retryable
    if isinstance(error, _TIMEOUT_TYPES):
        return True
    if not isinstance(error, BaseException):
        return False

    message = str(error)
    status = _status_of(error)

    if status in (401, 403) or _AUTH_STATUS_RE.search(message):
        return False
    if status == 429 or (status is not None and status >= 500):
        return True
    if _SERVER_STATUS_RE.search(message):
        return True
    if any(marker in message for marker in RETRYABLE_MARKERS):
        return True
    if any(marker in message for marker in NON_RETRYABLE_MARKERS):
        return False

    return IdeatorError.from_error(error).retryable


def format_error_message(error: Any) -> str:
    if isinstance(error, IdeatorError):
        return f"[{error.code.value}] {error.message}"
    return str(error)
