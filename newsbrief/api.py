"""读取接口与任务触发"""

import asyncio
import time
from datetime import date, datetime, timezone
from typing import Callable, Optional
import structlog

from .errors import AuthError
from .pipeline import BriefingPipeline
from .storage.store import DualTierStore

logger = structlog.get_logger()


class BriefingAPI:
    """
    供 HTTP 层调用的接口

    读取类接口永不抛出异常；只有 trigger_job 会因鉴权失败抛出 AuthError。
    """

    def __init__(
        self,
        store: DualTierStore,
        pipeline: BriefingPipeline,
        trigger_token: str = "",
        has_api_key: bool = False,
        morning_cutoff_hour: int = 3,
    ):
        self.store = store
        self.pipeline = pipeline
        self.trigger_token = trigger_token
        self.has_api_key = has_api_key
        self.morning_cutoff_hour = morning_cutoff_hour
        self._started = time.monotonic()
        self._tasks: set[asyncio.Task] = set()

    async def get_latest(self) -> list[dict]:
        items = await self.store.read_latest()
        return [item.to_payload() for item in items]

    async def get_archive(self, display_date: date) -> list[dict]:
        items = await self.store.read_archive(display_date)
        return [item.to_payload() for item in items]

    async def get_available_dates(self) -> list[str]:
        dates = await self.store.list_available_dates()
        return [d.isoformat() for d in dates]

    def get_debug_snapshot(self) -> dict:
        """运行时长、配置状态与最近任务记录"""
        return {
            "uptime": round(time.monotonic() - self._started, 3),
            "env": {
                "hasApiKey": self.has_api_key,
                "hasDb": self.store.has_durable,
            },
            "running": self.pipeline.is_running,
            "jobHistory": self.pipeline.tracker.to_list(),
        }

    def is_morning_session(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now.astimezone(timezone.utc).hour < self.morning_cutoff_hour

    def authorize(self, credential: Optional[str]):
        """校验触发凭证（完全相等才通过）"""
        if not self.trigger_token:
            raise AuthError("API_KEY missing", configured=False)
        if credential != self.trigger_token:
            raise AuthError("Unauthorized", configured=True)

    def trigger_job(
        self,
        credential: Optional[str],
        schedule: Optional[Callable] = None,
        now: Optional[datetime] = None,
    ) -> Optional[bool]:
        """
        鉴权后异步启动任务并立即返回

        Args:
            credential: 调用方提供的凭证
            schedule: 可选的调度函数，如 FastAPI 的 BackgroundTasks.add_task；
                      未提供时在当前事件循环中创建后台任务
        Returns:
            本次触发对应的是否为早间场次；已有任务在运行时不启动，返回 None
        """
        self.authorize(credential)
        if self.pipeline.is_running:
            logger.warning("trigger_skipped_already_running")
            return None

        is_morning = self.is_morning_session(now)
        logger.info("job_triggered", morning=is_morning)

        if schedule is not None:
            schedule(self.pipeline.run_job, is_morning)
        else:
            task = asyncio.get_running_loop().create_task(self.pipeline.run_job(is_morning))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return is_morning
