"""Repeating task that drives the poll cycle."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import anyio
import structlog

from .orchestrator import TickResult

logger = structlog.get_logger(__name__)

Tick = Callable[[], Awaitable[TickResult]]
ResultCallback = Callable[[TickResult], None]


class PollScheduler:
    """Run ``tick`` every ``interval`` seconds, one tick at a time."""

    def __init__(
        self,
        tick: Tick,
        interval: float,
        on_result: ResultCallback | None = None,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        self._tick = tick
        self.interval = interval
        self._on_result = on_result
        self._lock = anyio.Lock()
        self._scope: anyio.CancelScope | None = None
        self._stopped = False

    async def run_once(self) -> TickResult:
        """Run a tick now, waiting behind one that is already in flight."""
        async with self._lock:
            try:
                result = await self._tick()
            except Exception as exc:
                logger.exception("tick_failed", error=str(exc))
                result = TickResult(error=str(exc))
        if self._on_result is not None:
            self._on_result(result)
        return result

    async def run(self) -> None:
        """Tick immediately, then every interval until ``stop`` is called."""
        with anyio.CancelScope() as scope:
            self._scope = scope
            while not self._stopped:
                started = anyio.current_time()
                await self.run_once()
                elapsed = anyio.current_time() - started
                await anyio.sleep(max(0.0, self.interval - elapsed))
        self._scope = None

    def stop(self) -> None:
        self._stopped = True
        if self._scope is not None:
            self._scope.cancel()


__all__ = ["PollScheduler"]
