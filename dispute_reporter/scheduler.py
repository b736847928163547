"""Cron-driven trigger for the weekly report"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from croniter import croniter

from dispute_reporter.config import settings
from dispute_reporter.domain.models import ReportOutcome
from dispute_reporter.pipeline import ReportPipeline

logger = logging.getLogger(__name__)


class ReportScheduler:
    """Sleeps until each cron fire time, then runs the pipeline"""

    def __init__(
        self,
        pipeline: ReportPipeline,
        cron_expression: str | None = None,
        timezone_name: str | None = None,
    ):
        self.pipeline = pipeline
        self.cron_expression = cron_expression or settings.cron_schedule
        if not croniter.is_valid(self.cron_expression):
            raise ValueError(f"Invalid cron expression: {self.cron_expression!r}")
        self.tz = ZoneInfo(timezone_name or settings.schedule_timezone)
        self._task: Optional[asyncio.Task] = None

    def next_fire_time(self, now: datetime) -> datetime:
        """Next fire time strictly after `now`, in the schedule timezone"""
        return croniter(self.cron_expression, now.astimezone(self.tz)).get_next(datetime)

    async def trigger(self) -> Optional[ReportOutcome]:
        """Run once; an unexpected failure is logged and never stops the schedule"""
        try:
            return await self.pipeline.run()
        except Exception:
            logger.exception("Unexpected error in weekly report run")
            return None

    async def run_forever(self, run_immediately: bool = False) -> None:
        if run_immediately:
            await self.trigger()

        while True:
            now = datetime.now(self.tz)
            fire_at = self.next_fire_time(now)
            wait_seconds = (fire_at - now).total_seconds()
            logger.info(
                "Next report run scheduled",
                extra={"fire_at": fire_at.isoformat(), "cron": self.cron_expression},
            )
            if wait_seconds > 0:
                await asyncio.sleep(wait_seconds)
            await self.trigger()

    def start(self, run_immediately: bool = False) -> None:
        logger.info(f"Scheduling weekly reports with cron: {self.cron_expression} ({self.tz.key})")
        self._task = asyncio.create_task(self.run_forever(run_immediately))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Report scheduler stopped")
