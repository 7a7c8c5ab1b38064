"""
Periodic health poll driving the error indicator.

The monitor only reads; it never gates other logic.
"""
from __future__ import annotations

import asyncio
from typing import Callable

from health.aggregator import HealthReport
from observability.logger import log_event
from spec import HEALTH_POLL_INTERVAL_S


class HealthMonitor:
    def __init__(
        self,
        *,
        report: Callable[[], HealthReport],
        set_error_indicator: Callable[[bool], None],
        interval_s: float = HEALTH_POLL_INTERVAL_S,
    ) -> None:
        self._report = report
        self._set_error_indicator = set_error_indicator
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None
        self._last_status: str | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def check(self) -> HealthReport:
        """Evaluate once and drive the indicator."""
        report = self._report()
        self._set_error_indicator(report.is_error)
        if report.status.value != self._last_status:
            self._last_status = report.status.value
            log_event({
                "event_type": "HEALTH_CHANGED",
                "level": "warning" if report.messages else "info",
                **report.as_dict(),
            })
        return report

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        try:
            while True:
                self.check()
                await asyncio.sleep(self._interval_s)
        except asyncio.CancelledError:
            # Monitor was stopped - this is normal
            return
