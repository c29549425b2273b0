"""双层存储：内存缓存 + 可选的持久化数据库"""

import asyncio
from datetime import date, datetime, timezone
from functools import partial
from typing import Optional, Union
import structlog

from ..errors import RelationNotFoundError
from ..models.briefing import BriefingItem, RawModelItem, parse_date
from .cache import BriefingCache
from .database import BriefingDatabase
from .postgres import PostgresBriefingDatabase

logger = structlog.get_logger()


class DualTierStore:
    """
    简报存储

    - 写入：先覆盖内存缓存，再尽力写入数据库（失败只记录日志）
    - 读取：优先数据库；表不存在时建表并重试一次；其余情况回退到缓存
    """

    def __init__(self, cache: BriefingCache,
                 db: Optional[Union[BriefingDatabase, PostgresBriefingDatabase]] = None,
                 max_dates: int = 30):
        self.cache = cache
        self.db = db
        self.max_dates = max_dates

    @property
    def has_durable(self) -> bool:
        return self.db is not None

    async def _run(self, fn, *args):
        """在线程池中执行阻塞的数据库调用"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    async def _durable(self, fn, *args):
        """执行数据库操作；表不存在时建表后重试一次"""
        try:
            return await self._run(fn, *args)
        except RelationNotFoundError:
            logger.warning("briefings_table_missing", operation=getattr(fn, "__name__", "durable"))
            await self._run(self.db.ensure_schema)
            return await self._run(fn, *args)

    async def upsert(self, session_key: str, display_date: date,
                     items: list[BriefingItem]) -> bool:
        """写入简报，返回是否成功写入数据库"""
        self.cache.replace(items)
        logger.info("cache_updated", count=len(items))

        if self.db is None:
            return False

        payload = [item.to_payload() for item in items]
        try:
            await self._durable(self.db.upsert_briefing, session_key, display_date, payload)
        except Exception as e:
            logger.error("briefing_save_failed", date_key=session_key, error=str(e))
            return False

        logger.info("briefing_saved", date_key=session_key, count=len(items))
        return True

    async def read_latest(self) -> list[BriefingItem]:
        """最新一期简报，任何情况下都不抛出异常"""
        if self.db is not None:
            try:
                record = await self._durable(self.db.latest_briefing)
                if record is not None:
                    return self._load_items(record)
            except Exception as e:
                logger.error("briefing_read_failed", error=str(e))
        return self.cache.get()

    async def read_archive(self, display_date: date) -> list[BriefingItem]:
        """某一天的全部简报，新记录优先，按 (url, title.en) 去重"""
        if self.db is None:
            return []

        try:
            records = await self._durable(self.db.briefings_for_date, display_date)
        except Exception as e:
            logger.error("archive_read_failed", date=display_date.isoformat(), error=str(e))
            return []

        merged = []
        seen = set()
        for record in records:
            for item in self._load_items(record):
                if item.dedupe_key in seen:
                    continue
                seen.add(item.dedupe_key)
                merged.append(item)
        return merged

    async def list_available_dates(self) -> list[date]:
        """有数据的日期，最新在前"""
        if self.db is None:
            return []

        try:
            return await self._durable(self.db.available_dates, self.max_dates)
        except Exception as e:
            logger.error("dates_read_failed", error=str(e))
            return []

    async def ensure_schema(self) -> bool:
        """启动时尽力建表"""
        if self.db is None:
            return False
        try:
            await self._run(self.db.ensure_schema)
            return True
        except Exception as e:
            logger.error("database_schema_error", error=str(e))
            return False

    def _load_items(self, record: dict) -> list[BriefingItem]:
        """把存储内容还原为 BriefingItem，旧数据按模型输出的规则规范化"""
        fallback = parse_date(record.get("created_at")) or datetime.now(timezone.utc)
        items = []
        for element in record.get("content") or []:
            if not isinstance(element, dict):
                continue
            items.append(RawModelItem.model_validate(element).normalize(fallback))
        return items
