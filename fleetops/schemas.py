from __future__ import annotations

"""
File: fleetops/schemas.py
Purpose: Pydantic models for the polling API response contracts.
Key responsibilities:
- Serialize robots, missions and stats with camelCase wire names.
Key entrypoints:
- RobotOut, MissionOut, StatsOut, CancelResponse
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fleetops.sim.entities import Mission, MissionStage, Robot, RobotStatus


class RobotOut(BaseModel):
    """Robot record as returned by GET /robots."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: RobotStatus
    current_mission_id: Optional[str] = Field(default=None, alias="currentMissionId")
    last_updated: datetime = Field(alias="lastUpdated")

    @classmethod
    def from_robot(cls, robot: Robot) -> "RobotOut":
        return cls(
            id=robot.id,
            status=robot.status,
            current_mission_id=robot.current_mission_id,
            last_updated=robot.last_updated,
        )


class MissionOut(BaseModel):
    """Mission record as returned by GET /missions."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    assigned_robot_id: str = Field(alias="assignedRobotId")
    current_stage: MissionStage = Field(alias="currentStage")
    created_at: datetime = Field(alias="createdAt")
    stage_start_time: datetime = Field(alias="stageStartTime")

    @classmethod
    def from_mission(cls, mission: Mission) -> "MissionOut":
        return cls(
            id=mission.id,
            assigned_robot_id=mission.assigned_robot_id,
            current_stage=mission.current_stage,
            created_at=mission.created_at,
            stage_start_time=mission.stage_start_time,
        )


class StatsOut(BaseModel):
    """Fleet counters as returned by GET /stats."""
    model_config = ConfigDict(populate_by_name=True)

    total_robots: int = Field(alias="totalRobots")
    idle_robots: int = Field(alias="idleRobots")
    total_missions: int = Field(alias="totalMissions")
    active_missions: int = Field(alias="activeMissions")
    completed_missions: int = Field(alias="completedMissions")
    cancelled_missions: int = Field(alias="cancelledMissions")


class CancelResponse(BaseModel):
    """Response body for POST /robots/{id}/cancel."""
    success: bool
