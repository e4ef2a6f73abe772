"""
File: fleetops/settings.py
Purpose: Environment-backed configuration for the fleet simulator.
Key responsibilities:
- Parse fleet size, assignment batch size and tick intervals.
- Define the default stage durations (with optional per-stage overrides).
- Parse HTTP bind address and polling-client settings.
"""

from dataclasses import dataclass
import os


DEFAULT_STAGE_DURATIONS_S = {
    "preparation": 30.0,
    "travel": 150.0,
    "delivery": 60.0,
    "completed": 5.0,
}


def _int_env(name: str, default: int = 0) -> int:
    """Parse an integer env var with a fallback."""
    raw = os.getenv(name, "")
    if raw == "":
        return default
    return int(raw)


def _float_env(name: str, default: float = 0.0) -> float:
    """Parse a float env var with a fallback."""
    raw = os.getenv(name, "")
    if raw == "":
        return default
    return float(raw)


def _build_stage_durations() -> dict[str, float]:
    """Return stage durations with optional STAGE_<NAME>_S overrides."""
    return {
        stage: _float_env(f"STAGE_{stage.upper()}_S", default)
        for stage, default in DEFAULT_STAGE_DURATIONS_S.items()
    }


STAGE_DURATIONS_S = _build_stage_durations()


@dataclass(frozen=True)
class Settings:
    """Simulator configuration parsed from environment."""
    host: str = os.getenv("FLEETOPS_HOST", "0.0.0.0")
    port: int = _int_env("FLEETOPS_PORT", 3000)
    fleet_size: int = _int_env("FLEET_SIZE", 100)
    mission_batch_size: int = _int_env("MISSION_BATCH_SIZE", 2)
    creation_interval_s: float = _float_env("CREATION_INTERVAL_S", 60.0)
    advance_interval_s: float = _float_env("ADVANCE_INTERVAL_S", 10.0)
    api_url: str = os.getenv("FLEETOPS_API_URL", "http://localhost:3000")
    poll_interval_s: float = _float_env("POLL_INTERVAL_S", 10.0)
    poll_retry_s: float = _float_env("POLL_RETRY_S", 2.0)
    poll_max_attempts: int = _int_env("POLL_MAX_ATTEMPTS", 30)


settings = Settings()
