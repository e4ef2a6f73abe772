from __future__ import annotations

"""
File: fleetops/runner.py
Purpose: Periodic driver for the creation and advancement ticks.
Key responsibilities:
- Create the first batch of missions eagerly at start.
- Run two independent asyncio tick loops against a FleetSimulation.
- Keep ticking when a single tick fails; stop cleanly on shutdown.
Key entrypoints:
- SimRunner.start(), SimRunner.stop()
Config/env vars:
- CREATION_INTERVAL_S, ADVANCE_INTERVAL_S
"""

import asyncio
import logging
from typing import Callable

from fleetops.sim.simulation import FleetSimulation

logger = logging.getLogger("fleetops")


class SimRunner:
    """Owns the two tick tasks for one simulation."""
    def __init__(self, simulation: FleetSimulation, creation_interval_s: float, advance_interval_s: float) -> None:
        if creation_interval_s <= 0 or advance_interval_s <= 0:
            raise ValueError("tick intervals must be > 0")
        self.simulation = simulation
        self.creation_interval_s = creation_interval_s
        self.advance_interval_s = advance_interval_s
        self.tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self.tasks)

    async def start(self) -> None:
        """Create the initial batch and schedule both tick loops."""
        if self.running:
            logger.warning("simulation already running")
            return
        self.simulation.create_missions()
        self.tasks = [
            asyncio.create_task(
                self._tick_loop("creation", self.creation_interval_s, self.simulation.create_missions)
            ),
            asyncio.create_task(self._tick_loop("advance", self.advance_interval_s, self.simulation.advance)),
        ]
        logger.info(
            "simulation started creation_interval_s=%s advance_interval_s=%s",
            self.creation_interval_s,
            self.advance_interval_s,
        )

    async def stop(self) -> None:
        """Cancel both tick loops and wait for them to exit."""
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []
        logger.info("simulation stopped")

    async def _tick_loop(self, name: str, interval_s: float, tick: Callable[[], object]) -> None:
        """Invoke `tick` at a fixed rate of one call per `interval_s` until cancelled.

        Deadlines are measured from the loop start, so time spent inside a tick
        does not push later ticks back.
        """
        loop = asyncio.get_running_loop()
        next_at = loop.time()
        while True:
            next_at += interval_s
            delay = next_at - loop.time()
            if delay < -interval_s:
                # Missed more than a whole interval; re-anchor instead of bursting.
                next_at = loop.time()
                delay = 0.0
            await asyncio.sleep(max(0.0, delay))
            try:
                tick()
            except Exception as exc:  # noqa: BLE001
                logger.exception("%s tick failed: %s", name, exc)
