"""镜像抓取器测试"""

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from newsbrief.config import FeedSource, MirrorGroup
from newsbrief.errors import FetchError
from newsbrief.fetcher.rss_parser import MirrorFetcher, clean_snippet
from newsbrief.sources import RSSHUB_MIRRORS


RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com</link>
    <description>Test</description>
    <item>
      <title>New model released</title>
      <link>https://example.com/a</link>
      <description>&lt;p&gt;A &lt;b&gt;new&lt;/b&gt;   model&lt;/p&gt;</description>
      <pubDate>Mon, 19 Oct 2026 08:00:00 +0800</pubDate>
    </item>
    <item>
      <title>Undated story</title>
      <link>https://example.com/b</link>
      <description>No date here</description>
    </item>
    <item>
      <title></title>
      <link>https://example.com/c</link>
    </item>
  </channel>
</rss>
"""


class TestResolveCandidates:
    """候选地址解析测试"""

    def setup_method(self):
        self.fetcher = MirrorFetcher([RSSHUB_MIRRORS], timeout=1, max_candidates=3)

    def test_mirror_group_keeps_path(self):
        """镜像组内替换主机，路径不变，最多 3 个"""
        source = FeedSource(
            name="Reddit LocalLlama",
            url="https://rsshub.app/reddit/subreddit/LocalLLaMA",
            mirror_group="rsshub",
        )
        candidates = self.fetcher.resolve_candidates(source)

        assert candidates == [
            "https://rsshub.app/reddit/subreddit/LocalLLaMA",
            "https://rsshub.feedlib.xyz/reddit/subreddit/LocalLLaMA",
            "https://rsshub.pseudoyu.com/reddit/subreddit/LocalLLaMA",
        ]

    def test_mirror_group_detected_by_host(self):
        """未声明镜像组时按主机匹配"""
        source = FeedSource(name="Tencent", url="https://rsshub.app/tencent/news?limit=5")
        candidates = self.fetcher.resolve_candidates(source)

        assert len(candidates) == 3
        assert all(c.endswith("/tencent/news?limit=5") for c in candidates)

    def test_plain_source_single_candidate(self):
        """非镜像源只有一个候选地址"""
        source = FeedSource(name="HF", url="https://huggingface.co/blog/feed.xml")
        assert self.fetcher.resolve_candidates(source) == ["https://huggingface.co/blog/feed.xml"]

    def test_unknown_group_falls_back_to_url(self):
        """声明了不存在的镜像组时使用原地址"""
        source = FeedSource(name="X", url="https://x.com/feed", mirror_group="nope")
        assert self.fetcher.resolve_candidates(source) == ["https://x.com/feed"]

    def test_custom_group(self):
        """自定义镜像组"""
        group = MirrorGroup(name="alt", hosts=["https://a.example", "https://b.example/"])
        fetcher = MirrorFetcher([group], max_candidates=5)
        source = FeedSource(name="Alt", url="https://a.example/rss", mirror_group="alt")

        assert fetcher.resolve_candidates(source) == [
            "https://a.example/rss",
            "https://b.example/rss",
        ]


class TestMirrorFetcher:
    """抓取与故障转移测试"""

    def setup_method(self):
        self.fetcher = MirrorFetcher([RSSHUB_MIRRORS], timeout=0.2, max_candidates=3)
        self.source = FeedSource(
            name="Reddit LocalLlama",
            url="https://rsshub.app/reddit/subreddit/LocalLLaMA",
        )

    @pytest.mark.asyncio
    async def test_failover_to_next_mirror(self):
        """第一个镜像失败后尝试下一个"""
        self.fetcher._download = AsyncMock(side_effect=[ValueError("HTTP 503"), RSS_XML])

        items = await self.fetcher.fetch(self.source, session=None)

        assert [i.title for i in items] == ["New model released", "Undated story"]
        assert self.fetcher._download.await_count == 2
        called_urls = [c.args[1] for c in self.fetcher._download.await_args_list]
        assert called_urls[1].startswith("https://rsshub.feedlib.xyz/")

    @pytest.mark.asyncio
    async def test_timeout_moves_to_next_mirror(self):
        """单次尝试超时不会中断抓取"""
        calls = []

        async def slow_then_fast(session, url):
            calls.append(url)
            if len(calls) == 1:
                await asyncio.sleep(5)
            return RSS_XML

        self.fetcher._download = slow_then_fast
        items = await self.fetcher.fetch(self.source, session=None)

        assert len(calls) == 2
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_all_mirrors_fail(self):
        """所有候选地址失败时抛出 FetchError"""
        self.fetcher._download = AsyncMock(side_effect=ValueError("boom"))

        with pytest.raises(FetchError) as exc_info:
            await self.fetcher.fetch(self.source, session=None)

        assert exc_info.value.source == "Reddit LocalLlama"
        assert self.fetcher._download.await_count == 3

    @pytest.mark.asyncio
    async def test_unparseable_document_counts_as_failure(self):
        """非订阅源内容视为失败"""
        self.fetcher._download = AsyncMock(side_effect=["<html><body>blocked</body></html>", RSS_XML])

        items = await self.fetcher.fetch(self.source, session=None)

        assert len(items) == 2
        assert self.fetcher._download.await_count == 2


class TestEntryParsing:
    """条目解析测试"""

    def setup_method(self):
        self.fetcher = MirrorFetcher()
        self.source = FeedSource(name="Test", url="https://example.com/rss")

    def test_parse_fields(self):
        """解析标题、链接、日期与摘要"""
        items = self.fetcher._parse_feed(RSS_XML, self.source)
        first = items[0]

        assert first.title == "New model released"
        assert first.link == "https://example.com/a"
        assert first.source == "Test"
        assert first.snippet == "A new model"
        assert first.published_at == datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)

    def test_missing_date_is_none(self):
        """没有日期的条目 published_at 为 None"""
        items = self.fetcher._parse_feed(RSS_XML, self.source)
        assert items[1].published_at is None

    def test_entry_without_title_skipped(self):
        """无标题条目被跳过"""
        items = self.fetcher._parse_feed(RSS_XML, self.source)
        assert all(i.title for i in items)
        assert len(items) == 2

    def test_html_rejected(self):
        """HTML 页面不是订阅源"""
        with pytest.raises(ValueError):
            self.fetcher._parse_feed("<html><body>hi</body></html>", self.source)

    def test_clean_snippet(self):
        """去除标签与多余空白"""
        assert clean_snippet("<p>Hello <i>world</i></p>\n\n ok") == "Hello world ok"
        assert clean_snippet("Fish &amp; Chips") == "Fish & Chips"
        assert clean_snippet("") == ""
