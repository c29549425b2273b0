"""Briefing Pipeline - 抓取 → 组装 → 生成 → 校验 → 持久化"""

import asyncio
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import structlog

from .ai.generator import BriefingGenerator
from .ai.sanitizer import sanitize
from .config import FeedSource
from .fetcher.context import ContextAssembler
from .services.job_tracker import JobRun, JobTracker
from .storage.store import DualTierStore

logger = structlog.get_logger()


class JobPhase(str, Enum):
    """单次任务的阶段"""
    STARTED = "started"
    FETCHING = "fetching"
    GENERATING = "generating"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def session_key(now: datetime, is_morning: bool) -> str:
    """场次键：YYYY-MM-DD-AM / YYYY-MM-DD-PM（UTC 日期）"""
    day = now.astimezone(timezone.utc).date()
    return f"{day.isoformat()}-{'AM' if is_morning else 'PM'}"


class BriefingPipeline:
    """
    简报任务编排

    同一时间只运行一个任务：重叠的触发会被跳过。
    任务内部错误全部在这里捕获，记录到任务历史，不向调用方传播。
    """

    def __init__(
        self,
        sources: list[FeedSource],
        assembler: ContextAssembler,
        generator: BriefingGenerator,
        store: DualTierStore,
        tracker: JobTracker,
    ):
        self.sources = sources
        self.assembler = assembler
        self.generator = generator
        self.store = store
        self.tracker = tracker
        self.phase = JobPhase.STARTED

        self._running = False
        self._run_lock = asyncio.Lock()

        if self.assembler.job_log is None:
            self.assembler.job_log = self.tracker.log

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_job(self, is_morning: bool, now: Optional[datetime] = None) -> Optional[JobRun]:
        """执行一次任务，返回封存后的任务记录；已有任务运行时返回 None"""
        async with self._run_lock:
            if self._running:
                logger.warning("job_skipped_already_running", morning=is_morning)
                return None
            self._running = True

        try:
            return await self._execute(is_morning, now)
        finally:
            async with self._run_lock:
                self._running = False

    async def _execute(self, is_morning: bool, now: Optional[datetime]) -> JobRun:
        now = now or datetime.now(timezone.utc)
        label = "Morning" if is_morning else "Afternoon"
        run = self.tracker.begin(f"Job Started: {label}")
        self.phase = JobPhase.STARTED
        key = session_key(now, is_morning)

        try:
            self._enter(JobPhase.FETCHING)
            context = await self.assembler.assemble(self.sources, now=now)
            if context.is_empty:
                self.tracker.log("WARNING: Feed data extremely short.")

            self._enter(JobPhase.GENERATING)
            self.tracker.log("Calling model API...")
            raw_text = await self.generator.generate(context.render())
            self.tracker.log("Model response received.")

            self._enter(JobPhase.VALIDATING)
            items = sanitize(raw_text, generated_at=now)

            self._enter(JobPhase.PERSISTING)
            saved = await self.store.upsert(key, now.astimezone(timezone.utc).date(), items)
            self.tracker.log(f"Memory cache updated ({len(items)} items).")
            if saved:
                self.tracker.log("Saved to DB successfully.")
            elif self.store.has_durable:
                self.tracker.log("DB save failed; serving from memory cache.")
            else:
                self.tracker.log("DB skipped (Not Configured).")

            self.phase = JobPhase.SUCCEEDED
            self.tracker.finish(True)
            logger.info("job_succeeded", session=key, items=len(items))

        except Exception as e:
            failed_in = self.phase
            self.phase = JobPhase.FAILED
            self.tracker.log(f"FATAL ERROR during {failed_in.value}: {e}")
            self.tracker.finish(False, str(e))
            logger.error("job_failed", session=key, phase=failed_in.value, error=str(e))

        return run

    def _enter(self, phase: JobPhase):
        self.phase = phase
        self.tracker.log(f"Phase: {phase.value}")
