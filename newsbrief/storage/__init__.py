"""存储模块"""

from .cache import BriefingCache
from .database import BriefingDatabase, open_database
from .postgres import PostgresBriefingDatabase
from .store import DualTierStore

__all__ = [
    "BriefingCache",
    "BriefingDatabase",
    "PostgresBriefingDatabase",
    "open_database",
    "DualTierStore",
]
