from __future__ import annotations

"""
File: fleetops/sim/engine.py
Purpose: Mission lifecycle engine driven by the advancement tick.
Key responsibilities:
- Own mission records and generate collision-free mission ids.
- Advance each active mission through its timed stages once per tick.
- Cancel a robot's active mission and release the robot.

Stage completion is only observed on a tick, so a stage runs for its nominal
duration plus at most one tick interval.
"""

from datetime import datetime
import itertools
import logging

from fleetops.sim.entities import (
    Clock,
    Mission,
    MissionStage,
    Robot,
    StageSpec,
    next_stage,
    utcnow,
)
from fleetops.sim.registry import FleetRegistry

logger = logging.getLogger("fleetops.sim")


class MissionStore:
    """Mission records keyed by id. Missions are retained once finished."""
    def __init__(self) -> None:
        self._missions: dict[str, Mission] = {}
        self._seq = itertools.count(1)

    def __len__(self) -> int:
        return len(self._missions)

    def next_id(self, now: datetime) -> str:
        """Timestamp plus a process-wide sequence number."""
        return f"mission-{int(now.timestamp() * 1000)}-{next(self._seq)}"

    def add(self, mission: Mission) -> None:
        if mission.id in self._missions:
            raise ValueError(f"duplicate mission id: {mission.id}")
        self._missions[mission.id] = mission

    def get(self, mission_id: str) -> Mission | None:
        return self._missions.get(mission_id)

    def list(self) -> list[Mission]:
        return list(self._missions.values())


class LifecycleEngine:
    """Stage-timing state machine over the registry's robots."""
    def __init__(
        self,
        registry: FleetRegistry,
        missions: MissionStore,
        stage_table: dict[MissionStage, StageSpec],
        clock: Clock = utcnow,
    ) -> None:
        self.registry = registry
        self.missions = missions
        self.stage_table = stage_table
        self.clock = clock

    def start_mission(self, robot: Robot) -> Mission:
        """Create a mission in its first stage and bind it to `robot`."""
        now = self.clock()
        mission = Mission(
            id=self.missions.next_id(now),
            assigned_robot_id=robot.id,
            current_stage="preparation",
            created_at=now,
            stage_start_time=now,
        )
        self.missions.add(mission)
        self.registry.update(
            robot.id,
            status=self.stage_table["preparation"].robot_status,
            current_mission_id=mission.id,
        )
        logger.info("mission created mission_id=%s robot_id=%s", mission.id, robot.id)
        return mission

    def advance(self) -> int:
        """Advance every bound mission whose stage has elapsed.

        Returns the number of transitions applied (including robot releases).
        """
        now = self.clock()
        applied = 0
        for robot in self.registry.list():
            if robot.current_mission_id is None:
                continue
            mission = self.missions.get(robot.current_mission_id)
            # Cancelled missions are never advanced again.
            if mission is None or mission.current_stage == "cancelled":
                continue

            elapsed_s = (now - mission.stage_start_time).total_seconds()
            if elapsed_s < self.stage_table[mission.current_stage].duration_s:
                continue

            following = next_stage(mission.current_stage)
            if following is None:
                self.registry.update(robot.id, status="idle", current_mission_id=None)
                logger.info("robot released robot_id=%s mission_id=%s", robot.id, mission.id)
            else:
                previous = mission.current_stage
                mission.transition(following, now)
                self.registry.update(robot.id, status=self.stage_table[following].robot_status)
                logger.debug(
                    "stage advanced mission_id=%s %s->%s elapsed_s=%.1f",
                    mission.id,
                    previous,
                    following,
                    elapsed_s,
                )
            applied += 1
        return applied

    def cancel(self, robot_id: str) -> bool:
        """Cancel the robot's active mission and idle the robot."""
        robot = self.registry.get(robot_id)
        if robot is None or robot.current_mission_id is None:
            return False

        mission = self.missions.get(robot.current_mission_id)
        if mission is not None and mission.current_stage != "cancelled":
            mission.transition("cancelled", self.clock())
        self.registry.update(robot_id, status="idle", current_mission_id=None)
        logger.info("mission cancelled robot_id=%s mission_id=%s", robot_id, robot.current_mission_id)
        return True
