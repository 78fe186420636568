"""
Background eviction of inactive participants
"""

import asyncio
import time
from typing import Optional, Set

from .constants import STATUS_LEFT_TEXT
from .logger import get_logger, log_sweep_event, log_system_event
from .message_store import MessageStore
from .models import display_time
from .registry import ParticipantRegistry

logger = get_logger()


class InactivitySweeper:
    """Recurring task that evicts stale participants and announces departures"""

    def __init__(self, registry: ParticipantRegistry, messages: MessageStore,
                 threshold_seconds: float, interval_seconds: float):
        self._registry = registry
        self._messages = messages
        self.threshold_ms = int(threshold_seconds * 1000)
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> Set[str]:
        """
        Run one sweep

        Returns:
            Names evicted during this tick
        """
        started = time.perf_counter()
        evicted = await self._registry.evict_stale(self.threshold_ms)
        if not evicted:
            log_sweep_event(evicted, duration_ms=(time.perf_counter() - started) * 1000)
            return evicted

        # One display time for every departure in the batch
        departed_at = display_time()
        failures = 0
        for name in sorted(evicted):
            try:
                await self._messages.append_status(name, STATUS_LEFT_TEXT, departed_at)
            except Exception as e:
                failures += 1
                logger.error(f"Failed to announce departure of {name}: {e}")

        log_sweep_event(evicted, failures, (time.perf_counter() - started) * 1000)
        return evicted

    async def run(self):
        """Sweep every interval until stop() is called"""
        log_system_event("sweeper_started", f"threshold_ms={self.threshold_ms} interval={self.interval_seconds}s")
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Sweeper tick failed: {e}")
        log_system_event("sweeper_stopped", "no further ticks scheduled")

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stopping.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        """Stop after any in-flight tick has finished"""
        if self._task is None:
            return
        self._stopping.set()
        try:
            await self._task
        finally:
            self._task = None
