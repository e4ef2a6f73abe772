from __future__ import annotations

"""
File: fleetops/sim/simulation.py
Purpose: Facade that wires registry, engine and scheduler for one process.
Key responsibilities:
- Build the fleet and stage table from settings.
- Serialize ticks, cancellations and snapshot reads on a single lock.
Key entrypoints:
- FleetSimulation.from_settings()
"""

from dataclasses import replace
import threading

from fleetops.settings import STAGE_DURATIONS_S, Settings
from fleetops.sim.engine import LifecycleEngine, MissionStore
from fleetops.sim.entities import Clock, Mission, Robot, build_stage_table, utcnow
from fleetops.sim.metrics import compute_stats
from fleetops.sim.registry import FleetRegistry
from fleetops.sim.scheduler import AssignmentScheduler
from fleetops.sim.world import build_fleet


class FleetSimulation:
    """In-memory fleet simulation shared by the tick runner and the API."""
    def __init__(
        self,
        registry: FleetRegistry,
        stage_durations_s: dict[str, float],
        batch_size: int = 2,
        clock: Clock = utcnow,
    ) -> None:
        self.registry = registry
        self.missions = MissionStore()
        self.engine = LifecycleEngine(
            registry=registry,
            missions=self.missions,
            stage_table=build_stage_table(stage_durations_s),
            clock=clock,
        )
        self.scheduler = AssignmentScheduler(registry, self.engine, batch_size=batch_size)
        # Held only for the duration of one synchronous tick/request.
        self._lock = threading.Lock()

    @classmethod
    def create(
        cls,
        fleet_size: int,
        stage_durations_s: dict[str, float],
        batch_size: int = 2,
        clock: Clock = utcnow,
    ) -> "FleetSimulation":
        """Initialize a fresh fleet and return the simulation around it."""
        registry = build_fleet(fleet_size, clock=clock)
        return cls(registry, stage_durations_s, batch_size=batch_size, clock=clock)

    @classmethod
    def from_settings(cls, cfg: Settings, clock: Clock = utcnow) -> "FleetSimulation":
        return cls.create(
            fleet_size=cfg.fleet_size,
            stage_durations_s=STAGE_DURATIONS_S,
            batch_size=cfg.mission_batch_size,
            clock=clock,
        )

    def create_missions(self) -> list[Mission]:
        with self._lock:
            return self.scheduler.create_missions()

    def advance(self) -> int:
        with self._lock:
            return self.engine.advance()

    def cancel(self, robot_id: str) -> bool:
        with self._lock:
            return self.engine.cancel(robot_id)

    def robots(self) -> list[Robot]:
        with self._lock:
            return self.registry.list()

    def mission_list(self) -> list[Mission]:
        with self._lock:
            return [replace(mission) for mission in self.missions.list()]

    def stats(self) -> dict[str, int]:
        with self._lock:
            return compute_stats(self.registry.list(), self.missions.list())
