"""Latency instrumentation for the ideation pipeline.

`StepTimer` records how long each pipeline stage took and prints a
`[TIMING]` line per stage; the agent reports `elapsed_ms()` as the
invocation's processing time.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Callable, Dict, Iterator, Optional


def log_timing(scope: str, action: str, duration_ms: Optional[float] = None) -> None:
    if duration_ms is None:
        print(f"[TIMING] {scope}: {action}")
    else:
        print(f"[TIMING] {scope}: {action} — duration={duration_ms:.0f}ms")


class StepTimer:
    """Times named steps within one invocation.

    Usage:
        timer = StepTimer("ideator")
        with timer.step("context"):
            build_context()
        async with timer.async_step("generate"):
            await generate()
        timer.summary()
    """

    def __init__(self, scope: str, clock: Callable[[], float] = time.perf_counter):
        self.scope = scope
        self.clock = clock
        self.steps: Dict[str, float] = {}
        self.started = clock()

    def _record(self, name: str, start: float) -> None:
        duration_ms = (self.clock() - start) * 1000
        self.steps[name] = self.steps.get(name, 0.0) + duration_ms
        log_timing(self.scope, name, duration_ms)

    @contextmanager
    def step(self, name: str) -> Iterator[None]:
        start = self.clock()
        try:
            yield
        finally:
            self._record(name, start)

    @asynccontextmanager
    async def async_step(self, name: str) -> AsyncIterator[None]:
        start = self.clock()
        try:
            yield
        finally:
            self._record(name, start)

    def elapsed_ms(self) -> float:
        return (self.clock() - self.started) * 1000

    def summary(self) -> float:
        total_ms = self.elapsed_ms()
        log_timing(self.scope, "TOTAL", total_ms)
        return total_ms
