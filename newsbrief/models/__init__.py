# Models package for the briefing pipeline

from .feed import FeedItem, SourceSection, Context
from .briefing import (
    Category,
    LocalizedText,
    BriefingItem,
    RawModelItem,
)

__all__ = [
    # Feed models
    "FeedItem",
    "SourceSection",
    "Context",
    # Briefing models
    "Category",
    "LocalizedText",
    "BriefingItem",
    "RawModelItem",
]
