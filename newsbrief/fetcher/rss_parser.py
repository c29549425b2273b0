"""RSS 解析模块（支持镜像故障转移）"""

import asyncio
import re
from datetime import datetime, timezone
from html import unescape
from typing import Optional
from urllib.parse import urlsplit
import aiohttp
import feedparser
from dateutil import parser as date_parser
import structlog

from ..config import FeedSource, MirrorGroup
from ..errors import FetchError
from ..models.feed import FeedItem

logger = structlog.get_logger()

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


class MirrorFetcher:
    """RSS 抓取器：按镜像候选地址顺序尝试，单次尝试有超时限制"""

    def __init__(
        self,
        mirror_groups: Optional[list[MirrorGroup]] = None,
        timeout: float = 8.0,
        max_candidates: int = 3,
    ):
        self.mirror_groups = {g.name: g for g in (mirror_groups or [])}
        self.timeout = timeout
        self.max_candidates = max_candidates

    def resolve_candidates(self, source: FeedSource) -> list[str]:
        """解析候选地址：镜像组内替换主机，路径与查询保持不变"""
        group = self._find_group(source)
        if group is None:
            return [source.url]

        parts = urlsplit(source.url)
        suffix = parts.path
        if parts.query:
            suffix += f"?{parts.query}"

        candidates = []
        for host in group.hosts:
            url = f"{host.rstrip('/')}{suffix}"
            if url not in candidates:
                candidates.append(url)
        return candidates[:self.max_candidates]

    def _find_group(self, source: FeedSource) -> Optional[MirrorGroup]:
        if source.mirror_group:
            group = self.mirror_groups.get(source.mirror_group)
            if group is None:
                logger.warning("mirror_group_unknown",
                               feed=source.name,
                               group=source.mirror_group)
            return group

        host = urlsplit(source.url).netloc
        for group in self.mirror_groups.values():
            if any(urlsplit(h).netloc == host for h in group.hosts):
                return group
        return None

    async def fetch(self, source: FeedSource,
                    session: aiohttp.ClientSession) -> list[FeedItem]:
        """抓取单个订阅源，全部候选失败时抛出 FetchError"""
        for url in self.resolve_candidates(source):
            try:
                items = await asyncio.wait_for(
                    self._attempt(session, url, source),
                    timeout=self.timeout,
                )
                logger.debug("feed_candidate_ok", feed=source.name, url=url)
                return items
            except asyncio.TimeoutError:
                logger.warning("feed_timeout", feed=source.name, url=url)
            except Exception as e:
                logger.warning("feed_candidate_failed",
                               feed=source.name,
                               url=url,
                               error=str(e))

        raise FetchError(source.name)

    async def _attempt(self, session: aiohttp.ClientSession, url: str,
                       source: FeedSource) -> list[FeedItem]:
        content = await self._download(session, url)
        return self._parse_feed(content, source)

    async def _download(self, session: aiohttp.ClientSession, url: str) -> str:
        async with session.get(url) as response:
            if response.status != 200:
                raise ValueError(f"HTTP {response.status}")
            return await response.text()

    def _parse_feed(self, content: str, source: FeedSource) -> list[FeedItem]:
        """解析 RSS/Atom 内容，无法识别为订阅源时抛出 ValueError"""
        parsed = feedparser.parse(content)

        if not parsed.entries and (parsed.bozo or not parsed.get("version")):
            reason = parsed.get("bozo_exception") or "not a feed"
            raise ValueError(f"unparseable feed: {reason}")

        items = []
        for entry in parsed.entries:
            try:
                item = self._entry_to_item(entry, source)
                if item:
                    items.append(item)
            except Exception as e:
                logger.warning("entry_parse_error",
                               feed=source.name,
                               error=str(e))
        return items

    def _entry_to_item(self, entry, source: FeedSource) -> Optional[FeedItem]:
        """将 RSS entry 转换为 FeedItem"""
        title = entry.get("title", "").strip()
        if not title:
            return None

        snippet = ""
        if entry.get("summary"):
            snippet = entry.summary
        elif entry.get("description"):
            snippet = entry.description
        elif entry.get("content"):
            snippet = entry.content[0].get("value", "")

        return FeedItem(
            title=title,
            link=entry.get("link", ""),
            published_at=self._published_at(entry),
            snippet=clean_snippet(snippet),
            source=source.name,
        )

    def _published_at(self, entry) -> Optional[datetime]:
        """获取发布时间并统一为 UTC，无法解析时返回 None"""
        for date_field in ["published", "updated", "created"]:
            date_str = entry.get(date_field)
            if not date_str:
                continue
            try:
                dt = date_parser.parse(date_str)
            except (ValueError, OverflowError):
                continue

            if dt.tzinfo is None:
                # RSS 日期缺少时区时按 UTC 处理
                return dt.replace(tzinfo=timezone.utc)
            return dt.astimezone(timezone.utc)
        return None


def clean_snippet(html: str) -> str:
    """去除 HTML 标签并压缩空白"""
    text = unescape(_TAG_RE.sub(" ", html or ""))
    return _SPACE_RE.sub(" ", text).strip()
