"""SQLite 简报存储"""

import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional, Union
import structlog

from ..errors import PersistenceError, RelationNotFoundError
from .postgres import PostgresBriefingDatabase

logger = structlog.get_logger()

TABLE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS briefings (
        date_key TEXT PRIMARY KEY,
        display_date DATE,
        content JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""


class BriefingDatabase:
    """
    简报持久化存储

    表结构按需创建（见 ensure_schema）；表不存在时抛出 RelationNotFoundError，
    由上层决定是否建表后重试。
    """

    def __init__(self, db_path: str = "data/briefings.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_conn(self) -> sqlite3.Connection:
        """获取数据库连接"""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """执行语句并把 sqlite 异常转换为存储异常"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(sql, params)
                rows = cursor.fetchall()
                conn.commit()
                return rows
        except sqlite3.OperationalError as e:
            if "no such table" in str(e):
                raise RelationNotFoundError(str(e)) from e
            raise PersistenceError(str(e)) from e
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    def ensure_schema(self):
        """创建 briefings 表（幂等）"""
        self._execute(TABLE_SCHEMA)
        logger.info("database_schema_verified", path=str(self.db_path))

    def upsert_briefing(self, date_key: str, display_date: date,
                        content: list[dict], created_at: Optional[datetime] = None):
        """按场次键写入；已存在时覆盖内容并刷新 created_at"""
        created_at = created_at or datetime.now(timezone.utc)
        self._execute("""
            INSERT INTO briefings (date_key, display_date, content, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(date_key) DO UPDATE SET
                content = excluded.content,
                created_at = excluded.created_at
        """, (
            date_key,
            display_date.isoformat(),
            json.dumps(content, ensure_ascii=False),
            created_at.isoformat(),
        ))

    def latest_briefing(self) -> Optional[dict]:
        """最近创建的一条记录"""
        rows = self._execute(
            "SELECT * FROM briefings ORDER BY created_at DESC LIMIT 1"
        )
        return self._row_to_record(rows[0]) if rows else None

    def briefings_for_date(self, display_date: date) -> list[dict]:
        """某一天的所有记录，按创建时间倒序"""
        rows = self._execute(
            "SELECT * FROM briefings WHERE display_date = ? ORDER BY created_at DESC",
            (display_date.isoformat(),)
        )
        return [self._row_to_record(row) for row in rows]

    def available_dates(self, limit: int = 30) -> list[date]:
        """已有数据的日期，最新在前"""
        rows = self._execute(
            "SELECT DISTINCT display_date FROM briefings ORDER BY display_date DESC LIMIT ?",
            (limit,)
        )
        return [date.fromisoformat(str(row["display_date"])) for row in rows]

    def _row_to_record(self, row: sqlite3.Row) -> dict:
        """将数据库行转换为记录字典"""
        content = row["content"]
        if isinstance(content, (str, bytes)):
            try:
                content = json.loads(content)
            except json.JSONDecodeError:
                logger.warning("briefing_content_corrupt", date_key=row["date_key"])
                content = []

        return {
            "date_key": row["date_key"],
            "display_date": row["display_date"],
            "content": content if isinstance(content, list) else [],
            "created_at": row["created_at"],
        }


def open_database(database_url: str) -> Optional[Union[BriefingDatabase, PostgresBriefingDatabase]]:
    """
    根据连接串打开持久化存储

    - postgres:// 或 postgresql:// 使用 PostgreSQL
    - sqlite:///path 或普通路径使用 SQLite
    - 为空、协议不支持或路径不可用时返回 None（仅内存模式）
    """
    if not database_url:
        logger.warning("database_not_configured", mode="memory")
        return None

    scheme = database_url.split("://", 1)[0].lower() if "://" in database_url else ""
    if scheme in ("postgres", "postgresql"):
        return PostgresBriefingDatabase(database_url)

    if scheme == "sqlite":
        path = database_url[len("sqlite:///"):]
    elif scheme:
        logger.error("database_url_unsupported", scheme=scheme, mode="memory")
        return None
    else:
        path = database_url

    try:
        return BriefingDatabase(path)
    except OSError as e:
        logger.error("database_path_unusable", path=path, error=str(e), mode="memory")
        return None
