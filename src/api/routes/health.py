"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_connectivity
from src.application.dto.responses import ComponentHealthResponse, HealthResponse
from src.config import get_settings
from src.core.interfaces import IConnectivitySignal

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.api_route("", methods=["GET", "HEAD"], response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/full", response_model=HealthResponse)
async def full_health_check(
    connectivity: IConnectivitySignal = Depends(get_connectivity),
) -> HealthResponse:
    """
    Full health check.

    The local database must be reachable for the terminal to take sales.
    A lost backend only degrades it, since sales are queued.
    """
    from src.infrastructure.storage.sqlite import get_pool

    status_str = "healthy"

    db_status = ComponentHealthResponse(name="sqlite", available=False)
    try:
        pool = await get_pool()
        start = time.time()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
        db_status = ComponentHealthResponse(
            name="sqlite",
            available=True,
            latency_ms=(time.time() - start) * 1000,
        )
    except Exception as e:
        db_status.error = str(e)
        status_str = "unhealthy"

    network = connectivity.status()
    backend_status = ComponentHealthResponse(
        name="backend",
        available=network.is_online,
        error=None if network.is_online else "offline",
    )
    if status_str == "healthy" and (not network.is_online or network.is_slow_connection):
        status_str = "degraded"

    return HealthResponse(
        status=status_str,
        version=get_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
        backend=backend_status,
    )
