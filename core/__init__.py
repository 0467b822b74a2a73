"""
Core Module - Feed normalization, classification, regime and idea engines.
"""

from core.data_fetcher import DataFetcher
from core.news_classifier import CategoryClassifier, LexiconScorer, RandomScorer
from core.news_normalizer import NewsNormalizer
from core.asset_correlator import AssetCorrelator
from core.macro_regime import estimate_regime
from core.trade_ideas import TradeIdeaGenerator
from core.pipeline import MarketPulsePipeline

__all__ = [
    "DataFetcher",
    "CategoryClassifier",
    "LexiconScorer",
    "RandomScorer",
    "NewsNormalizer",
    "AssetCorrelator",
    "estimate_regime",
    "TradeIdeaGenerator",
    "MarketPulsePipeline",
]
