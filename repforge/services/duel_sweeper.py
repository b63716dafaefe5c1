"""
repforge.services.duel_sweeper — Periodic duel sweep
=====================================================

Runs :meth:`DuelArbiter.sweep` every ``duel_sweep_interval_seconds`` on a
background task.  Acceptance windows and duel end times are wall-clock
deadlines; nothing blocks waiting on them.
"""

from __future__ import annotations

import asyncio
import logging

from repforge.database.engine import run_db
from repforge.services.duel_service import DuelArbiter, SweepResult

logger = logging.getLogger(__name__)


class DuelSweeper:
    """Background task that expires and finalizes due duels."""

    def __init__(self, arbiter: DuelArbiter, interval: float = 600) -> None:
        self.arbiter = arbiter
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> SweepResult:
        return await run_db(self.arbiter.sweep)

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the sweep loop (first pass runs immediately)."""
        if self._task is not None:
            return
        loop = loop or asyncio.get_running_loop()

        async def _sweep_loop() -> None:
            while True:
                try:
                    await self.sweep_once()
                except Exception:
                    logger.exception("Duel sweep error")
                await asyncio.sleep(self.interval)

        self._task = loop.create_task(_sweep_loop(), name="duel-sweep")
        logger.info("Duel sweeper started (every %ss)", self.interval)

    def stop(self) -> None:
        if self._task:
            self._task.cancel()
            self._task = None
            logger.info("Duel sweeper stopped")
