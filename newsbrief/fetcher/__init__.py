"""抓取模块"""

from .rss_parser import MirrorFetcher
from .context import ContextAssembler

__all__ = ["MirrorFetcher", "ContextAssembler"]
