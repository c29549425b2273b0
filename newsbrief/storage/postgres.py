"""PostgreSQL 简报存储

与 BriefingDatabase 接口一致，每次调用新建连接（psycopg + dict_row）。
"""

import json
from datetime import date, datetime, timezone
from typing import Any, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
import structlog

from ..errors import PersistenceError, RelationNotFoundError

logger = structlog.get_logger()

TABLE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS briefings (
        date_key TEXT PRIMARY KEY,
        display_date DATE,
        content JSONB,
        created_at TIMESTAMPTZ DEFAULT NOW()
    )
"""


class PostgresBriefingDatabase:
    """简报持久化存储（PostgreSQL）"""

    def __init__(self, dsn: str):
        self._dsn = dsn

    def _connect(self) -> psycopg.Connection:
        return psycopg.connect(self._dsn, row_factory=dict_row)

    def _execute(self, query: str, params: tuple = ()) -> list[dict]:
        """执行语句；表不存在时抛出 RelationNotFoundError，其余驱动异常转为 PersistenceError"""
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall() if cur.description else []
                conn.commit()
                return [dict(r) for r in rows]
        except psycopg.errors.UndefinedTable as e:
            raise RelationNotFoundError(str(e)) from e
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e

    def ensure_schema(self):
        """创建 briefings 表（幂等）"""
        self._execute(TABLE_SCHEMA)
        logger.info("database_schema_verified", backend="postgres")

    def upsert_briefing(self, date_key: str, display_date: date,
                        content: list[dict], created_at: Optional[datetime] = None):
        """按场次键写入；已存在时覆盖内容并刷新 created_at"""
        created_at = created_at or datetime.now(timezone.utc)
        self._execute("""
            INSERT INTO briefings (date_key, display_date, content, created_at)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (date_key) DO UPDATE SET
                content = EXCLUDED.content,
                created_at = EXCLUDED.created_at
        """, (date_key, display_date, Jsonb(content), created_at))

    def latest_briefing(self) -> Optional[dict]:
        rows = self._execute(
            "SELECT * FROM briefings ORDER BY created_at DESC LIMIT 1"
        )
        return self._row_to_record(rows[0]) if rows else None

    def briefings_for_date(self, display_date: date) -> list[dict]:
        rows = self._execute(
            "SELECT * FROM briefings WHERE display_date = %s ORDER BY created_at DESC",
            (display_date,)
        )
        return [self._row_to_record(row) for row in rows]

    def available_dates(self, limit: int = 30) -> list[date]:
        rows = self._execute(
            "SELECT DISTINCT display_date FROM briefings ORDER BY display_date DESC LIMIT %s",
            (limit,)
        )
        return [_as_date(row["display_date"]) for row in rows]

    def _row_to_record(self, row: dict) -> dict:
        """将数据库行转换为与 SQLite 实现相同的记录字典"""
        content = row.get("content")
        if isinstance(content, (str, bytes)):
            try:
                content = json.loads(content)
            except json.JSONDecodeError:
                logger.warning("briefing_content_corrupt", date_key=row.get("date_key"))
                content = []

        created_at = row.get("created_at")
        if isinstance(created_at, datetime):
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=timezone.utc)
            created_at = created_at.isoformat()

        return {
            "date_key": row.get("date_key"),
            "display_date": _as_date(row.get("display_date")).isoformat(),
            "content": content if isinstance(content, list) else [],
            "created_at": created_at,
        }


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))
