"""Reachability checks reported by ``GET /health``."""

import asyncio
import time
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Literal

import httpx
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

CHECK_TIMEOUT_SECONDS = 2.0


@dataclass
class ServiceHealth:
    """Health status for a service dependency."""

    status: Literal["connected", "unreachable", "error"]
    latency_ms: float | None = None
    error: str | None = None


async def _timed(probe: Awaitable[str | None]) -> ServiceHealth:
    """Run a probe under the check timeout.

    The probe returns None when the dependency answered correctly, or an
    error description otherwise.
    """
    start = time.perf_counter()
    try:
        async with asyncio.timeout(CHECK_TIMEOUT_SECONDS):
            problem = await probe
    except TimeoutError:
        return ServiceHealth(status="unreachable", error="timeout")
    except Exception as e:
        return ServiceHealth(status="error", error=str(e))

    if problem:
        return ServiceHealth(status="error", error=problem)
    return ServiceHealth(status="connected", latency_ms=round((time.perf_counter() - start) * 1000, 2))


async def check_database(db: AsyncSession) -> ServiceHealth:
    """SELECT 1 against the local store."""

    async def probe() -> None:
        await db.execute(text("SELECT 1"))

    return await _timed(probe())


async def check_openrouter(models_url: str, transport: httpx.AsyncBaseTransport | None = None) -> ServiceHealth:
    """GET the public model listing, which needs no API key."""

    async def probe() -> str | None:
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(models_url)
        return None if response.status_code == 200 else f"HTTP {response.status_code}"

    return await _timed(probe())
