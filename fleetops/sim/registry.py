from __future__ import annotations

"""
File: fleetops/sim/registry.py
Purpose: In-memory store that owns the canonical robot records.
Key responsibilities:
- Snapshot, lookup and partial update of robots.
- Stamp last_updated on every write.
"""

from dataclasses import replace
from typing import Any

from fleetops.sim.entities import Clock, Robot, utcnow


class FleetRegistry:
    """Robot records keyed by id, iterated in insertion order."""
    def __init__(self, robots: list[Robot] | None = None, clock: Clock = utcnow) -> None:
        self.clock = clock
        self._robots: dict[str, Robot] = {}
        for robot in robots or []:
            self.add(robot)

    def __len__(self) -> int:
        return len(self._robots)

    def add(self, robot: Robot) -> None:
        """Register a robot; ids are never reused."""
        if robot.id in self._robots:
            raise ValueError(f"duplicate robot id: {robot.id}")
        self._robots[robot.id] = robot

    def list(self) -> list[Robot]:
        """Return a snapshot of all robots in stable order."""
        return list(self._robots.values())

    def get(self, robot_id: str) -> Robot | None:
        return self._robots.get(robot_id)

    def idle(self) -> list[Robot]:
        """Return idle robots in registry order."""
        return [robot for robot in self._robots.values() if robot.status == "idle"]

    def update(self, robot_id: str, **fields: Any) -> Robot | None:
        """Merge `fields` into the robot record and stamp last_updated.

        Cross-field invariants (status vs. current_mission_id) are the
        caller's responsibility. A caller-supplied last_updated is overridden.
        """
        robot = self._robots.get(robot_id)
        if robot is None:
            return None
        updated = replace(robot, **{**fields, "last_updated": self.clock()})
        self._robots[robot_id] = updated
        return updated
