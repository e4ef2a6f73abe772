from __future__ import annotations

"""
File: fleetops/sim/metrics.py
Purpose: Compute fleet/mission counters for the stats endpoint.
"""

from fleetops.sim.entities import Mission, Robot


def compute_stats(robots: list[Robot], missions: list[Mission]) -> dict[str, int]:
    """Count robots and missions by state."""
    return {
        "total_robots": len(robots),
        "idle_robots": sum(1 for r in robots if r.status == "idle"),
        "total_missions": len(missions),
        "active_missions": sum(1 for m in missions if m.is_active),
        "completed_missions": sum(1 for m in missions if m.current_stage == "completed"),
        "cancelled_missions": sum(1 for m in missions if m.current_stage == "cancelled"),
    }
