"""时间窗口筛选与上下文组装"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional
import aiohttp
import structlog

from ..config import FeedSource, FetchConfig
from ..errors import FetchError
from ..models.feed import Context, FeedItem, SourceSection
from .rss_parser import MirrorFetcher

logger = structlog.get_logger()


class ContextAssembler:
    """
    上下文组装器

    抓取所有订阅源，丢弃没有日期或早于 cutoff 的条目，
    每个源最多保留 max_items_per_source 条。单个源失败不影响整体。
    """

    def __init__(self, fetcher: MirrorFetcher, config: Optional[FetchConfig] = None,
                 job_log=None):
        self.fetcher = fetcher
        self.config = config or FetchConfig()
        self.job_log = job_log  # 可选：把运维可见的日志写入任务记录

    async def assemble(self, sources: list[FeedSource],
                       now: Optional[datetime] = None) -> Context:
        """抓取并组装上下文（不会抛出异常）"""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=self.config.window_hours)
        context = Context(cutoff=cutoff)

        self._log("Starting feed fetch...")
        logger.info("fetching_feeds", count=len(sources), cutoff=cutoff.isoformat())

        async with aiohttp.ClientSession(
            headers={"User-Agent": self.config.user_agent}
        ) as session:
            tasks = [self.fetcher.fetch(source, session) for source in sources]
            results = await asyncio.gather(*tasks, return_exceptions=True)

        for source, result in zip(sources, results):
            if isinstance(result, BaseException):
                reason = str(result) if isinstance(result, FetchError) else repr(result)
                context.skipped.append(source.name)
                self._log(f"Skipped {source.name}: {reason}")
                logger.error("feed_fetch_failed", feed=source.name, error=reason)
                continue

            kept = self.filter_recent(result, cutoff)
            context.sections.append(SourceSection(source=source.name, items=kept))
            self._log(f"Fetched {source.name} ({len(result)} items, {len(kept)} recent)")
            logger.info("feed_fetched",
                        feed=source.name,
                        count=len(result),
                        recent=len(kept))

        logger.info("fetch_complete",
                    total=context.item_count,
                    skipped=len(context.skipped))
        return context

    def filter_recent(self, items: list[FeedItem], cutoff: datetime) -> list[FeedItem]:
        """保留 cutoff 之后发布的条目，按订阅源原顺序截取"""
        kept = []
        for item in items:
            # 无日期的条目直接丢弃
            if item.published_at is None or item.published_at < cutoff:
                continue
            kept.append(self._trim(item))
            if len(kept) >= self.config.max_items_per_source:
                break
        return kept

    def _trim(self, item: FeedItem) -> FeedItem:
        limit = self.config.snippet_length
        if len(item.snippet) <= limit:
            return item
        return item.model_copy(update={"snippet": item.snippet[:limit]})

    def _log(self, message: str):
        if self.job_log:
            self.job_log(message)
