from __future__ import annotations

"""
File: fleetops/sim/world.py
Purpose: Fleet initialization for a simulation run.
Key responsibilities:
- Create the fixed-size fleet of idle robots with stable ids.
"""

import logging

from fleetops.sim.entities import Clock, Robot, utcnow
from fleetops.sim.registry import FleetRegistry

logger = logging.getLogger("fleetops.sim")


def robot_id(index: int) -> str:
    return f"robot-{index}"


def build_fleet(size: int, clock: Clock = utcnow) -> FleetRegistry:
    """Create a registry holding `size` idle robots, robot-1 .. robot-N."""
    if size <= 0:
        raise ValueError("fleet size must be > 0")

    now = clock()
    robots = [
        Robot(id=robot_id(idx), status="idle", current_mission_id=None, last_updated=now)
        for idx in range(1, size + 1)
    ]
    registry = FleetRegistry(robots, clock=clock)
    logger.info("initialized %d robots", len(registry))
    return registry
