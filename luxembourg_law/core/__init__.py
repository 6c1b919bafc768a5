"""Core Package for the Luxembourg Law Service

Background scheduling of data freshness checks.
"""

from .scheduler import (
    ScheduleConfig,
    UpdateCheckScheduler,
    get_scheduler,
    shutdown_scheduler,
)

__all__ = [
    "ScheduleConfig",
    "UpdateCheckScheduler",
    "get_scheduler",
    "shutdown_scheduler",
]
