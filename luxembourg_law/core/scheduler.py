"""Scheduler for automated data freshness checks

Runs `check_updates` on a cron schedule with APScheduler and keeps the last
summary for the HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from pydantic import BaseModel

from luxembourg_law.config.settings import settings
from luxembourg_law.pipeline.update_check import UpdateSummary, check_updates
from luxembourg_law.repository.db import SessionLocal
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)


class ScheduleConfig(BaseModel):
    """Scheduler settings"""

    update_check_schedule: str = "0 3 * * 1"  # Mondays at 3 AM
    enable_update_checks: bool = False


class UpdateCheckScheduler:
    """Periodic Legilux update checks"""

    def __init__(self, config: ScheduleConfig):
        self.config = config
        self.scheduler = AsyncIOScheduler()
        self.last_summary: Optional[UpdateSummary] = None
        self._initialized = False

    async def initialize(self) -> None:
        if self.config.enable_update_checks:
            self.scheduler.add_job(
                self._check_updates,
                trigger=CronTrigger.from_crontab(self.config.update_check_schedule),
                id="check_updates",
                name="Check Legilux for updated or new legislation",
                replace_existing=True,
            )
            logger.info(f"Scheduled update checks: {self.config.update_check_schedule}")
        else:
            logger.info("Scheduled update checks are disabled")

        self._initialized = True
        self.scheduler.start()

    async def shutdown(self) -> None:
        if self._initialized:
            self.scheduler.shutdown()
            self._initialized = False
            logger.info("Scheduler shutdown complete")

    async def _check_updates(self) -> UpdateSummary:
        logger.info("Starting update check...")
        start_time = datetime.now()

        with SessionLocal() as db:
            summary = await check_updates(db)

        self.last_summary = summary
        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"Update check completed in {elapsed:.1f}s")
        return summary

    async def trigger_check(self) -> UpdateSummary:
        """Run an update check now, outside the schedule"""
        logger.info("Manually triggering update check...")
        return await self._check_updates()

    def get_jobs(self) -> list[dict[str, Any]]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                }
            )
        return jobs


# Global scheduler instance
_scheduler: UpdateCheckScheduler | None = None


async def get_scheduler() -> UpdateCheckScheduler:
    global _scheduler

    if _scheduler is None:
        config = ScheduleConfig(
            update_check_schedule=settings.update_check_schedule,
            enable_update_checks=settings.enable_update_checks,
        )
        _scheduler = UpdateCheckScheduler(config)
        await _scheduler.initialize()

    return _scheduler


async def shutdown_scheduler() -> None:
    global _scheduler

    if _scheduler:
        await _scheduler.shutdown()
        _scheduler = None
