"""简报条目模型

模型输出先按宽松结构 RawModelItem 接收，再规范化为 BriefingItem：
- 双语字段总是 {en, zh}
- impactScore 截断到 [1, 10]
- category 映射到固定枚举
"""

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field


MIN_IMPACT = 1
MAX_IMPACT = 10


class Category(str, Enum):
    """简报分类"""
    LLMS = "LLMs"
    IMAGE_AND_VIDEO = "ImageAndVideo"
    HARDWARE = "Hardware"
    BUSINESS = "Business"
    RESEARCH = "Research"
    ROBOTICS = "Robotics"
    SYSTEM = "System"

    @classmethod
    def match(cls, value: Any) -> Optional["Category"]:
        """忽略大小写与标点匹配分类，如 "Image & Video" -> IMAGE_AND_VIDEO"""
        if isinstance(value, Category):
            return value
        if not isinstance(value, str):
            return None
        key = _category_key(value)
        return _CATEGORY_LOOKUP.get(key)


def _category_key(value: str) -> str:
    return re.sub(r"[^a-z]", "", value.lower().replace("&", "and"))


_CATEGORY_LOOKUP = {_category_key(c.value): c for c in Category}
_CATEGORY_LOOKUP.update({
    "llm": Category.LLMS,
    "imagevideo": Category.IMAGE_AND_VIDEO,
    "robotic": Category.ROBOTICS,
})

FALLBACK_CATEGORY = Category.RESEARCH


class LocalizedText(BaseModel):
    """中英双语文本"""
    en: str = ""
    zh: str = ""

    @classmethod
    def coerce(cls, value: Any) -> "LocalizedText":
        """裸字符串复制到两种语言；只有一种语言时用另一种补齐"""
        if isinstance(value, LocalizedText):
            return value
        if isinstance(value, dict):
            en = _as_text(value.get("en"))
            zh = _as_text(value.get("zh"))
            return cls(en=en or zh, zh=zh or en)
        text = _as_text(value)
        return cls(en=text, zh=text)


class BriefingItem(BaseModel):
    """对外提供并持久化的简报条目"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: LocalizedText
    summary: LocalizedText
    category: Category
    url: str = ""
    source: str = ""
    impact_score: int = Field(default=MIN_IMPACT, ge=MIN_IMPACT, le=MAX_IMPACT, alias="impactScore")
    tags: list[str] = Field(default_factory=list)
    date: datetime

    @property
    def dedupe_key(self) -> tuple[str, str]:
        return (self.url, self.title.en)

    def to_payload(self) -> dict:
        """序列化为 JSON 友好的字典（字段名与前端一致）"""
        return self.model_dump(mode="json", by_alias=True)


class RawModelItem(BaseModel):
    """生成模型返回的原始条目，字段类型不做假设"""
    model_config = ConfigDict(extra="ignore")

    id: Any = None
    title: Any = None
    summary: Any = None
    category: Any = None
    url: Any = None
    source: Any = None
    impactScore: Any = None
    tags: Any = None
    date: Any = None

    def normalize(self, generated_at: datetime) -> BriefingItem:
        """规范化为 BriefingItem，缺失或非法的日期使用 generated_at"""
        return BriefingItem(
            id=_as_text(self.id) or uuid.uuid4().hex[:12],
            title=LocalizedText.coerce(self.title),
            summary=LocalizedText.coerce(self.summary),
            category=Category.match(self.category) or FALLBACK_CATEGORY,
            url=_as_text(self.url),
            source=_as_text(self.source),
            impact_score=clamp_score(self.impactScore),
            tags=_normalize_tags(self.tags),
            date=parse_date(self.date) or generated_at,
        )


def clamp_score(value: Any) -> int:
    """将影响力评分截断到 [1, 10]，无法解析时取最低分"""
    if isinstance(value, bool):
        return MIN_IMPACT
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return MIN_IMPACT
    return max(MIN_IMPACT, min(MAX_IMPACT, score))


def parse_date(value: Any) -> Optional[datetime]:
    """解析日期并统一为 UTC，失败返回 None"""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _normalize_tags(value: Any) -> list[str]:
    """标签去重并保持顺序"""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        return []

    tags = []
    for tag in value:
        text = _as_text(tag)
        if text and text not in tags:
            tags.append(text)
    return tags
