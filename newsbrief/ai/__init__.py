"""AI 生成与清洗模块"""

from .generator import BriefingGenerator
from .sanitizer import sanitize, strip_code_fence

__all__ = ["BriefingGenerator", "sanitize", "strip_code_fence"]
