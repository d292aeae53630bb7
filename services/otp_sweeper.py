"""Periodic deletion of expired OTP records.

OtpSweeper owns a single asyncio task. The app lifespan starts it on boot
and stops it on shutdown; stop() cancels and awaits the task.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from services.otp_service import OtpService
from shared.logging import get_logger

log = get_logger(__name__)


class OtpSweeper:
    def __init__(self, otp_service: OtpService, interval_seconds: float = 3600) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._otp = otp_service
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-sweeper")
        log.info("otp_sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("otp_sweeper_stopped")

    async def run_once(self) -> int:
        """One sweep pass. Errors are logged, never raised."""
        try:
            return await self._otp.sweep()
        except Exception as e:
            log.error(
                "otp_sweep_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()
