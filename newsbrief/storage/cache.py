"""内存缓存：保存最近一次成功生成的简报"""

from datetime import datetime, timezone
from typing import Optional

from ..models.briefing import BriefingItem, Category, LocalizedText


def placeholder_items(db_configured: bool, db_url_given: bool = False,
                      now: Optional[datetime] = None) -> list[BriefingItem]:
    """尚无任务成功时展示给运维人员的状态卡片"""
    now = now or datetime.now(timezone.utc)
    if db_configured:
        return [BriefingItem(
            id="sys-connected-waiting",
            title=LocalizedText(
                en="🟢 System Online - Database Connected",
                zh="🟢 系统在线 - 数据库已连接",
            ),
            summary=LocalizedText(
                en="The backend is connected to its database. The list is empty because "
                   "the briefing job hasn't run yet. Trigger an update to fetch news now.",
                zh="后端已连接到数据库。当前列表为空是因为简报任务尚未运行。"
                   "请触发一次更新立即抓取新闻。",
            ),
            category=Category.SYSTEM,
            url="#",
            source="System",
            impact_score=1,
            tags=["Ready", "Waiting for Trigger"],
            date=now,
        )]

    if db_url_given:
        return [BriefingItem(
            id="sys-db-unavailable",
            title=LocalizedText(
                en="⚠️ SYSTEM ALERT: Database Unavailable",
                zh="⚠️ 系统警告：数据库不可用",
            ),
            summary=LocalizedText(
                en="DATABASE_URL is set but the database could not be opened. "
                   "The backend is serving from memory and data will be lost on restart.",
                zh="已设置 DATABASE_URL，但无法打开数据库。"
                   "后端当前仅使用内存缓存，重启后数据将丢失。",
            ),
            category=Category.SYSTEM,
            url="#",
            source="System",
            impact_score=10,
            tags=["Config Error"],
            date=now,
        )]

    return [BriefingItem(
        id="sys-missing-db",
        title=LocalizedText(
            en="⚠️ SYSTEM ALERT: Database Not Configured",
            zh="⚠️ 系统警告：未配置数据库",
        ),
        summary=LocalizedText(
            en="The backend is running but cannot find DATABASE_URL. "
               "Data will be lost on restart.",
            zh="后端正在运行但未找到 DATABASE_URL 环境变量。重启后数据将丢失。",
        ),
        category=Category.SYSTEM,
        url="#",
        source="System",
        impact_score=10,
        tags=["Config Error"],
        date=now,
    )]


class BriefingCache:
    """单槽内存缓存，每次成功任务整体覆盖"""

    def __init__(self, db_configured: bool = False, db_url_given: bool = False):
        self._items = placeholder_items(db_configured, db_url_given)
        self._is_placeholder = True

    @property
    def is_placeholder(self) -> bool:
        return self._is_placeholder

    def get(self) -> list[BriefingItem]:
        return list(self._items)

    def replace(self, items: list[BriefingItem]):
        self._items = list(items)
        self._is_placeholder = False
