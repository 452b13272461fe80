"""
Connectivity monitor.

Probes the backend's health endpoint on an interval and publishes a
NetworkStatus to subscribers whenever it changes. ``set_online`` and
``set_offline`` let the host report connectivity changes it learns about
first (for example from the operating system).
"""

import asyncio
import time
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

import httpx

from src.config import get_logger, get_settings
from src.core.interfaces.connectivity import (
    IConnectivitySignal,
    NetworkStatus,
    StatusListener,
)

logger = get_logger(__name__)


class ConnectivityMonitor(IConnectivitySignal):
    """
    Health-probe based online/offline signal.

    - a request error or timeout means offline
    - any HTTP answer means online
    - an answer slower than the threshold, or a non-2xx answer, flags a slow connection
    """

    def __init__(
        self,
        health_url: str | None = None,
        probe_interval: float | None = None,
        slow_threshold_ms: int | None = None,
        timeout: float | None = None,
        initial_online: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.health_url = health_url or (
            settings.remote.base_url.rstrip("/") + settings.remote.health_path
        )
        self.probe_interval = (
            probe_interval
            if probe_interval is not None
            else settings.offline.health_check_interval_seconds
        )
        self.slow_threshold_ms = (
            slow_threshold_ms
            if slow_threshold_ms is not None
            else settings.offline.slow_connection_threshold_ms
        )
        self.timeout = timeout if timeout is not None else settings.remote.timeout
        self._transport = transport

        now = datetime.now(UTC)
        self._status = NetworkStatus(
            is_online=initial_online,
            last_online_time=now if initial_online else None,
            last_offline_time=None if initial_online else now,
        )
        self._listeners: list[StatusListener] = []
        self._task: asyncio.Task | None = None

    # === IConnectivitySignal ===

    @property
    def is_online(self) -> bool:
        return self._status.is_online

    def status(self) -> NetworkStatus:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)
        self._call(listener, self._status)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # === Manual transitions ===

    def set_online(self) -> None:
        self._update(is_online=True)

    def set_offline(self) -> None:
        self._update(is_online=False, is_slow_connection=False)

    # === Probing ===

    async def probe(self) -> NetworkStatus:
        """Check the health endpoint once and publish the result."""
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.head(self.health_url)
        except httpx.RequestError as e:
            logger.info("connectivity_probe_failed", url=self.health_url, error=str(e) or type(e).__name__)
            self._update(is_online=False, is_slow_connection=False)
            return self._status

        duration_ms = (time.perf_counter() - start) * 1000
        slow = duration_ms > self.slow_threshold_ms or not response.is_success
        logger.debug(
            "connectivity_probe",
            status_code=response.status_code,
            duration_ms=round(duration_ms),
            slow=slow,
        )
        self._update(is_online=True, is_slow_connection=slow)
        return self._status

    def start(self) -> None:
        """Start probing in the background."""
        if self._task is None and self.probe_interval > 0:
            self._task = asyncio.create_task(self._run())
            logger.info(
                "connectivity_monitor_started",
                url=self.health_url,
                interval=self.probe_interval,
            )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
            logger.info("connectivity_monitor_stopped")

    async def _run(self) -> None:
        while True:
            await self.probe()
            await asyncio.sleep(self.probe_interval)

    # === Internals ===

    def _update(self, is_online: bool, is_slow_connection: bool | None = None) -> None:
        previous = self._status
        slow = previous.is_slow_connection if is_slow_connection is None else is_slow_connection
        status = replace(previous, is_online=is_online, is_slow_connection=slow)

        if is_online != previous.is_online:
            now = datetime.now(UTC)
            if is_online:
                status = replace(status, last_online_time=now)
            else:
                status = replace(status, last_offline_time=now)
            logger.info("connectivity_changed", is_online=is_online)

        if status == previous:
            return
        self._status = status
        for listener in list(self._listeners):
            self._call(listener, status)

    @staticmethod
    def _call(listener: StatusListener, status: NetworkStatus) -> None:
        try:
            listener(status)
        except Exception as e:
            logger.error("connectivity_listener_failed", error=str(e), error_type=type(e).__name__)
