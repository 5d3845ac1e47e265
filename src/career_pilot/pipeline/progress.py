"""Cosmetic loading-step ticker bound to the lifetime of a generation call."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable

logger = logging.getLogger(__name__)

LOADING_STEPS: tuple[str, ...] = (
    "Scanning your skills profile...",
    "Cross-referencing industry demand...",
    "Identifying skill gaps...",
    "Generating personalised roadmaps...",
)


class LoadingTicker:
    """Advance a step index on a fixed interval, capped at the last step.

    The index says nothing about real progress. Use as an async context
    manager around the call it decorates; leaving the block stops the
    ticker immediately whatever phase the timer is in.
    """

    def __init__(
        self,
        step_count: int = len(LOADING_STEPS),
        interval: float = 1.2,
        on_tick: Callable[[int], None] | None = None,
    ):
        if step_count < 1:
            raise ValueError("step_count must be at least 1")
        self.step_count = step_count
        self.interval = interval
        self.on_tick = on_tick
        self.index = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self.index = 0
        self._task = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        last = self.step_count - 1
        while self.index < last:
            await asyncio.sleep(self.interval)
            self.index = min(self.index + 1, last)
            if self.on_tick:
                self.on_tick(self.index)

    async def __aenter__(self) -> LoadingTicker:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
