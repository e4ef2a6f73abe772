from __future__ import annotations

"""
File: fleetops/main.py
Purpose: FastAPI entrypoint for the delivery fleet simulator.
Key responsibilities:
- Initialize the fleet once at process start and run the tick loops.
- Expose robots, missions and stats for polling clients.
- Translate cancellation requests into lifecycle engine calls.
Key entrypoints:
- create_app()
- /robots, /robots/{robot_id}/cancel, /stats (also under /api)
Config/env vars:
- FLEET_SIZE, MISSION_BATCH_SIZE, CREATION_INTERVAL_S, ADVANCE_INTERVAL_S
- STAGE_*_S, FLEETOPS_HOST, FLEETOPS_PORT
"""

from contextlib import asynccontextmanager
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from fleetops.runner import SimRunner
from fleetops.schemas import CancelResponse, MissionOut, RobotOut, StatsOut
from fleetops.settings import Settings, settings
from fleetops.sim.simulation import FleetSimulation

logger = logging.getLogger("fleetops")

router = APIRouter()


def _simulation(request: Request) -> FleetSimulation:
    return request.app.state.simulation


@router.get("/robots", response_model=list[RobotOut])
async def list_robots(request: Request) -> list[RobotOut]:
    """Return every robot in the fleet."""
    return [RobotOut.from_robot(robot) for robot in _simulation(request).robots()]


@router.post("/robots/{robot_id}/cancel", response_model=CancelResponse)
async def cancel_robot_mission(robot_id: str, request: Request) -> CancelResponse:
    """Cancel the robot's active mission; success=false when there is none."""
    success = _simulation(request).cancel(robot_id)
    if not success:
        logger.info("cancel ignored robot_id=%s", robot_id)
    return CancelResponse(success=success)


@router.get("/missions", response_model=list[MissionOut])
async def list_missions(request: Request) -> list[MissionOut]:
    """Return every mission created so far, finished ones included."""
    return [MissionOut.from_mission(mission) for mission in _simulation(request).mission_list()]


@router.get("/stats", response_model=StatsOut)
async def stats(request: Request) -> StatsOut:
    """Return fleet and mission counters for the dashboard."""
    return StatsOut(**_simulation(request).stats())


def create_app(
    simulation: FleetSimulation | None = None,
    cfg: Settings = settings,
    run_ticks: bool = True,
) -> FastAPI:
    """Build the API around `simulation` (a fresh fleet from `cfg` by default)."""
    simulation = simulation if simulation is not None else FleetSimulation.from_settings(cfg)
    runner = SimRunner(
        simulation,
        creation_interval_s=cfg.creation_interval_s,
        advance_interval_s=cfg.advance_interval_s,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if run_ticks:
            await runner.start()
        try:
            yield
        finally:
            if run_ticks:
                await runner.stop()

    app = FastAPI(title="fleetops", version="1.0.0", lifespan=lifespan)
    app.state.simulation = simulation
    app.state.runner = runner
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Liveness/readiness endpoint."""
        return {"status": "ok"}

    app.include_router(router)
    app.include_router(router, prefix="/api")
    return app


def main() -> None:
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s fleetops %(message)s")
    app = create_app()
    logger.info("server starting on http://%s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
