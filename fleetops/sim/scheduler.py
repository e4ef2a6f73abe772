from __future__ import annotations

"""
File: fleetops/sim/scheduler.py
Purpose: First-available assignment of idle robots to new missions.
Key responsibilities:
- Pick up to `batch_size` idle robots in registry order each creation tick.
- Hand each pick to the lifecycle engine as a new mission.
"""

import logging

from fleetops.sim.engine import LifecycleEngine
from fleetops.sim.entities import Mission
from fleetops.sim.registry import FleetRegistry

logger = logging.getLogger("fleetops.sim")


class AssignmentScheduler:
    """FIFO scheduler: no locality, capability or load matching."""
    def __init__(self, registry: FleetRegistry, engine: LifecycleEngine, batch_size: int = 2) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        self.registry = registry
        self.engine = engine
        self.batch_size = batch_size

    def create_missions(self) -> list[Mission]:
        """Create up to one batch of missions; none when the fleet is busy."""
        selected = self.registry.idle()[: self.batch_size]
        created = [self.engine.start_mission(robot) for robot in selected]
        if not created:
            logger.info("no idle robots, skipping mission creation")
        return created
