"""Periodic background refresh of analytics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from flare_stats.core.service import AnalyticsService
from flare_stats.core.state import AppState
from flare_stats.domain.exceptions import FlareStatsError
from flare_stats.domain.models import AggregationResult, RefreshInterval

_INTERVAL_SECONDS = {
    RefreshInterval.FIVE_MINUTES.value: 300.0,
    RefreshInterval.FIFTEEN_MINUTES.value: 900.0,
    RefreshInterval.SIXTY_MINUTES.value: 3600.0,
}
DEFAULT_INTERVAL_SECONDS = _INTERVAL_SECONDS[RefreshInterval.FIFTEEN_MINUTES.value]


def parse_interval_seconds(interval: str | RefreshInterval) -> float:
    """Map a refresh interval label to seconds; unknown labels mean 15 minutes."""

    key = interval.value if isinstance(interval, RefreshInterval) else interval
    return _INTERVAL_SECONDS.get(key, DEFAULT_INTERVAL_SECONDS)


class BackgroundRefresher:
    """Owns at most one refresh loop; starting again replaces the running loop."""

    def __init__(
        self,
        service: AnalyticsService,
        state: AppState,
        *,
        on_refresh: Optional[Callable[[AggregationResult], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._service = service
        self._state = state
        self._on_refresh = on_refresh
        self._sleep = sleep
        self._task: Optional[asyncio.Task[None]] = None
        self.logger = logger or logging.getLogger(__name__)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval: Optional[float] = None) -> None:
        if interval is None:
            interval = parse_interval_seconds(
                self._service.get_settings().refresh_interval
            )
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._loop(interval))
        self.logger.info("background_refresh_started", extra={"interval": interval})

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def refresh_once(self) -> Optional[AggregationResult]:
        try:
            result = await self._service.fetch_analytics()
        except FlareStatsError as exc:
            self._state.record_failure(exc)
            self.logger.warning("background_refresh_failed", extra={"error": str(exc)})
            return None
        self._state.record_success(result)
        if self._on_refresh is not None:
            self._on_refresh(result)
        return result

    async def _loop(self, interval: float) -> None:
        while True:
            await self._sleep(interval)
            try:
                await self.refresh_once()
            except Exception:
                self.logger.exception(
                    "background_refresh_failed", extra={"interval": interval}
                )
