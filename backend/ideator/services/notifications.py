"""Error notification channel handed to the ideator agent at construction.

The agent never reaches for a global store; callers that want to surface
failures (a UI toast queue, a message bus) pass their own notifier.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ErrorNotifier(Protocol):
    def notify(self, error: Any) -> None:
        ...


class LoggingErrorNotifier:
    """Default notifier: writes escalated ideator errors to the log."""

    def notify(self, error: Any) -> None:
        code = getattr(error, "code", None)
        retryable = getattr(error, "retryable", None)
        logger.error(
            "Ideator failure code=%s retryable=%s: %s",
            getattr(code, "value", code),
            retryable,
            error,
        )


class CollectingErrorNotifier:
    """Keeps notified errors in memory, newest last.

    An optional *forward* notifier receives every error as well.
    """

    def __init__(self, limit: int = 100, forward: Optional[ErrorNotifier] = None):
        self.limit = limit
        self.forward = forward
        self.errors: List[Any] = []

    def notify(self, error: Any) -> None:
        if self.forward is not None:
            self.forward.notify(error)
        self.errors.append(error)
        if len(self.errors) > self.limit:
            del self.errors[: len(self.errors) - self.limit]

    def snapshot(self) -> List[Dict[str, Any]]:
        return [e.to_dict() if hasattr(e, "to_dict") else {"message": str(e)} for e in self.errors]
