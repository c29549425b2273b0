"""模型输出清洗与校验"""

import json
import re
from datetime import datetime, timezone
from typing import Optional
import structlog

from ..errors import ValidationError
from ..models.briefing import BriefingItem, RawModelItem

logger = structlog.get_logger()

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """去掉可选的 ```json ... ``` 代码块包裹"""
    cleaned = (text or "").strip()
    match = _FENCE_RE.search(cleaned)
    if match:
        return match.group(1).strip()
    return cleaned


def sanitize(raw_text: str, generated_at: Optional[datetime] = None) -> list[BriefingItem]:
    """
    将模型输出解析为规范化的简报条目

    整体不是 JSON 数组时抛出 ValidationError；数组内非对象元素被丢弃。
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    cleaned = strip_code_fence(raw_text)
    if not cleaned:
        raise ValidationError("Empty model output")

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("json_parse_failed", content_preview=cleaned[:200])
        raise ValidationError(f"Model output is not valid JSON: {e}") from e

    if not isinstance(parsed, list):
        raise ValidationError("Invalid JSON Array")

    items = []
    for index, element in enumerate(parsed):
        if not isinstance(element, dict):
            logger.warning("briefing_item_dropped", index=index, reason="not an object")
            continue
        items.append(RawModelItem.model_validate(element).normalize(generated_at))

    logger.info("sanitize_complete", received=len(parsed), kept=len(items))
    return items
