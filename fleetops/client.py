from __future__ import annotations

"""
File: fleetops/client.py
Purpose: HTTP polling client for the fleet simulator API.
Key responsibilities:
- Fetch robots and stats, request cancellations.
- Retry the initial robot fetch until the server answers.
- Poll on a fixed interval and hand snapshots to a callback.
Key entrypoints:
- FleetClient, main() (fleetops-watch)
Config/env vars:
- FLEETOPS_API_URL, POLL_INTERVAL_S, POLL_RETRY_S, POLL_MAX_ATTEMPTS
"""

import asyncio
from dataclasses import dataclass
import logging
from typing import Any, Awaitable, Callable

import httpx

from fleetops.settings import settings

logger = logging.getLogger("fleetops.client")


@dataclass
class FleetSnapshot:
    """One polling result; either part is None when its request failed."""
    robots: list[dict[str, Any]] | None
    stats: dict[str, Any] | None


class FleetClient:
    """Thin async client over the simulator's polling endpoints."""
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get_json(self, path: str) -> Any | None:
        try:
            async with self._client() as client:
                resp = await client.get(path)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("request failed path=%s err=%s", path, exc)
            return None

    async def fetch_robots(self) -> list[dict[str, Any]] | None:
        """Return all robots, or None when the server is unreachable."""
        return await self._get_json("/api/robots")

    async def fetch_stats(self) -> dict[str, Any] | None:
        """Return fleet counters, or None when the server is unreachable."""
        return await self._get_json("/api/stats")

    async def cancel(self, robot_id: str) -> bool:
        """Request cancellation; False on refusal or transport error."""
        try:
            async with self._client() as client:
                resp = await client.post(f"/api/robots/{robot_id}/cancel")
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("cancel failed robot_id=%s err=%s", robot_id, exc)
            return False
        if not isinstance(data, dict):
            return False
        return bool(data.get("success", False))

    async def wait_for_robots(self, retry_s: float, max_attempts: int) -> list[dict[str, Any]] | None:
        """Retry the robot fetch every `retry_s` until it succeeds."""
        for attempt in range(1, max_attempts + 1):
            robots = await self.fetch_robots()
            if robots is not None:
                return robots
            logger.info("retrying robot fetch in %ss attempt=%d/%d", retry_s, attempt, max_attempts)
            if attempt < max_attempts:
                await asyncio.sleep(retry_s)
        return None

    async def snapshot(self) -> FleetSnapshot:
        return FleetSnapshot(robots=await self.fetch_robots(), stats=await self.fetch_stats())

    async def poll(
        self,
        on_snapshot: Callable[[FleetSnapshot], Awaitable[None] | None],
        interval_s: float,
        iterations: int | None = None,
    ) -> None:
        """Deliver a snapshot every `interval_s`; forever unless `iterations` is set."""
        count = 0
        while iterations is None or count < iterations:
            result = on_snapshot(await self.snapshot())
            if asyncio.iscoroutine(result):
                await result
            count += 1
            if iterations is None or count < iterations:
                await asyncio.sleep(interval_s)


def format_snapshot(snapshot: FleetSnapshot) -> str:
    """One-line summary of a snapshot for the terminal."""
    if snapshot.stats is None:
        return "stats unavailable"
    stats = snapshot.stats
    return (
        f"robots={stats.get('totalRobots')} idle={stats.get('idleRobots')} "
        f"missions={stats.get('totalMissions')} active={stats.get('activeMissions')} "
        f"completed={stats.get('completedMissions')} cancelled={stats.get('cancelledMissions')}"
    )


async def watch() -> None:
    client = FleetClient(settings.api_url)
    robots = await client.wait_for_robots(settings.poll_retry_s, settings.poll_max_attempts)
    if robots is None:
        logger.error("server unavailable url=%s", settings.api_url)
        return
    logger.info("connected url=%s robots=%d", settings.api_url, len(robots))
    await client.poll(lambda snap: print(format_snapshot(snap)), settings.poll_interval_s)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s fleetops-watch %(message)s")
    asyncio.run(watch())


if __name__ == "__main__":
    main()
