"""定时任务调度模块"""

from typing import Callable, Awaitable
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import structlog

from .config import ScheduleConfig

logger = structlog.get_logger()


class Scheduler:
    """任务调度器：每天早晚各触发一次简报任务"""

    def __init__(self, config: ScheduleConfig):
        self.config = config
        self.scheduler = AsyncIOScheduler(timezone=config.timezone)
        self._job_prefix = "briefing"

    def add_session_jobs(self, func: Callable[..., Awaitable[object]]):
        """添加早间与晚间简报任务，func 以 is_morning 关键字参数调用"""
        sessions = [
            ("am", self.config.morning_time, True),
            ("pm", self.config.evening_time, False),
        ]

        for suffix, time_str, is_morning in sessions:
            hour, minute = self._parse_time(time_str)
            job_id = f"{self._job_prefix}_{suffix}"

            self.scheduler.add_job(
                func,
                CronTrigger(hour=hour, minute=minute, timezone=self.config.timezone),
                kwargs={"is_morning": is_morning},
                id=job_id,
                name=f"Briefing - {'Morning' if is_morning else 'Afternoon'}",
                replace_existing=True,
            )

            logger.info("briefing_job_added", time=time_str, morning=is_morning)

    def start(self):
        """启动调度器"""
        self.scheduler.start()
        logger.info("scheduler_started")

    def stop(self):
        """停止调度器"""
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("scheduler_stopped")

    def _parse_time(self, time_str: str) -> tuple[int, int]:
        """解析时间字符串，如 '07:00'"""
        parts = time_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"无效的时间格式: {time_str}")

        hour = int(parts[0])
        minute = int(parts[1])

        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"无效的时间值: {time_str}")

        return hour, minute
