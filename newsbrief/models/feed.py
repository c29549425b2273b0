"""订阅源条目与上下文模型"""

from datetime import datetime
from typing import ClassVar, Optional
from pydantic import BaseModel, Field


class FeedItem(BaseModel):
    """单条订阅源条目（仅在一次任务内存在，不持久化）"""
    title: str
    link: str = ""
    published_at: Optional[datetime] = None
    snippet: str = ""
    source: str = ""


class SourceSection(BaseModel):
    """某一订阅源通过时间窗口筛选后的条目"""
    source: str
    items: list[FeedItem] = Field(default_factory=list)


class Context(BaseModel):
    """
    发送给生成模型的上下文

    按注册表顺序保存各订阅源的条目，render() 输出为单个文本块。
    """
    BANNER: ClassVar[str] = "RAW FEED DATA:"

    cutoff: datetime
    sections: list[SourceSection] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)  # 抓取失败被跳过的源

    @property
    def item_count(self) -> int:
        return sum(len(s.items) for s in self.sections)

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def render(self) -> str:
        """渲染为文本块：Title / Date / Link / Snippet"""
        lines = [self.BANNER]
        for section in self.sections:
            if not section.items:
                continue
            lines.append(f"--- SOURCE: {section.source} ---")
            for item in section.items:
                lines.append(f"Title: {item.title}")
                lines.append(f"Date: {item.published_at.isoformat() if item.published_at else ''}")
                lines.append(f"Link: {item.link}")
                lines.append(f"Snippet: {item.snippet}")
                lines.append("")
        return "\n".join(lines)
