from __future__ import annotations

"""
File: fleetops/sim/entities.py
Purpose: Core dataclasses, state aliases and the mission stage table.
Key responsibilities:
- Robot and Mission records.
- Stage sequence, per-stage robot status and the legal transition table.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal


RobotStatus = Literal["idle", "assigned", "en_route", "delivering", "completed"]
MissionStage = Literal["preparation", "travel", "delivery", "completed", "cancelled"]

Clock = Callable[[], datetime]

STAGE_SEQUENCE: tuple[MissionStage, ...] = ("preparation", "travel", "delivery", "completed")

STAGE_ROBOT_STATUS: dict[MissionStage, RobotStatus] = {
    "preparation": "assigned",
    "travel": "en_route",
    "delivery": "delivering",
    "completed": "completed",
}

# Every timed stage may be cancelled; cancelled has no exits.
TRANSITIONS: dict[MissionStage, frozenset[MissionStage]] = {
    "preparation": frozenset({"travel", "cancelled"}),
    "travel": frozenset({"delivery", "cancelled"}),
    "delivery": frozenset({"completed", "cancelled"}),
    "completed": frozenset({"cancelled"}),
    "cancelled": frozenset(),
}


def utcnow() -> datetime:
    """Default wall clock."""
    return datetime.now(timezone.utc)


def next_stage(stage: MissionStage) -> MissionStage | None:
    """Return the stage after `stage` in the delivery sequence, if any."""
    if stage not in STAGE_SEQUENCE:
        return None
    idx = STAGE_SEQUENCE.index(stage)
    if idx + 1 >= len(STAGE_SEQUENCE):
        return None
    return STAGE_SEQUENCE[idx + 1]


class InvalidTransition(ValueError):
    """Raised when a mission is moved along an edge the state machine lacks."""


@dataclass(frozen=True)
class StageSpec:
    """Nominal duration and robot status for one mission stage."""
    duration_s: float
    robot_status: RobotStatus


def build_stage_table(durations_s: dict[str, float]) -> dict[MissionStage, StageSpec]:
    """Combine configured durations with the fixed stage → robot status map."""
    table: dict[MissionStage, StageSpec] = {}
    for stage in STAGE_SEQUENCE:
        if stage not in durations_s:
            raise ValueError(f"missing duration for stage: {stage}")
        duration = float(durations_s[stage])
        if duration < 0:
            raise ValueError(f"stage duration must be >= 0: {stage}={duration}")
        table[stage] = StageSpec(duration_s=duration, robot_status=STAGE_ROBOT_STATUS[stage])
    return table


@dataclass
class Robot:
    """Robot record owned by the fleet registry."""
    id: str
    status: RobotStatus
    current_mission_id: str | None
    last_updated: datetime


@dataclass
class Mission:
    """Mission record owned by the lifecycle engine."""
    id: str
    assigned_robot_id: str
    current_stage: MissionStage
    created_at: datetime
    stage_start_time: datetime

    @property
    def is_active(self) -> bool:
        return self.current_stage not in {"completed", "cancelled"}

    def transition(self, stage: MissionStage, now: datetime) -> None:
        """Move to `stage` and restart the stage timer."""
        if stage not in TRANSITIONS[self.current_stage]:
            raise InvalidTransition(f"mission {self.id}: {self.current_stage} -> {stage}")
        self.current_stage = stage
        self.stage_start_time = now
