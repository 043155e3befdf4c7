"""Background sweep that garbage-collects idle rate limit keys.

Admission decisions never depend on the sweep; it only bounds store size
for users who stopped sending requests.
"""

import asyncio
import logging

from quotagate.limiter.controller import AdmissionController
from quotagate.logging.audit import audit, get_audit_logger


class WindowSweeper:
    """Runs AdmissionController.sweep on a fixed interval until stopped."""

    def __init__(self, controller: AdmissionController, interval_seconds: float, retention_seconds: float):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._controller = controller
        self._interval = interval_seconds
        self._retention = retention_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="rate-window-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def sweep_once(self) -> int:
        removed = await self._controller.sweep(self._retention)
        audit(logging.DEBUG, "Rate window sweep finished", keys_removed=removed, retention_seconds=self._retention)
        return removed

    async def _run(self) -> None:
        logger = get_audit_logger()
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                # Keep sweeping on the next tick; admissions stay correct without it
                logger.exception("Rate window sweep failed")
