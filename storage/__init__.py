"""
Storage Module - Data models and in-memory snapshot cache for Pulse Terminal.
"""

from storage.cache import SnapshotCache
from storage.models import (
    RawFeedPayload,
    NewsItem,
    PriceQuote,
    MacroSnapshot,
    TradeIdea,
    PipelineSnapshot,
)

__all__ = [
    "SnapshotCache",
    "RawFeedPayload",
    "NewsItem",
    "PriceQuote",
    "MacroSnapshot",
    "TradeIdea",
    "PipelineSnapshot",
]
