"""
News Classifier for Pulse Terminal.
Assigns topic categories by keyword priority and scores sentiment/impact.
"""

import logging
import random
import re
from typing import List, Optional, Tuple, Union

from storage.models import (
    Category,
    ImpactLevel,
    NewsItem,
    Sentiment,
    SourceKind,
)

logger = logging.getLogger(__name__)


# Checked top to bottom; the first category with a hit wins
CATEGORY_RULES: List[Tuple[Category, List[str]]] = [
    (Category.AI, ["ai", "machine learning", "nvidia"]),
    (Category.LAYER2, ["layer 2", "scaling", "l2", "rollup"]),
    (Category.LST, ["staking", "liquid staking", "restaking"]),
    (Category.GAMING, ["nft", "gaming", "metaverse"]),
    (Category.DEFI, ["defi", "dex", "uniswap", "aave"]),
    (Category.SOLANA, ["solana", "sol"]),
    (Category.STABLE, ["stablecoin", "usdt", "usdc"]),
]

BULLISH_KEYWORDS = [
    "surge", "surges", "soar", "soars", "rally", "rallies", "jump", "jumps",
    "gain", "gains", "rise", "rises", "climb", "record high", "all-time high",
    "breakout", "bullish", "inflows", "approval", "approves", "approved",
    "adoption", "partnership", "launch", "launches", "listing", "lists",
    "will list", "upgrade", "recovery", "boost", "outperform",
]

BEARISH_KEYWORDS = [
    "drop", "drops", "fall", "falls", "plunge", "plunges", "crash", "slump",
    "tumble", "sink", "decline", "bearish", "outflows", "hack", "hacked",
    "exploit", "lawsuit", "sues", "ban", "bans", "fraud", "liquidation",
    "liquidations", "delist", "delisting", "delists", "suspend", "suspends",
    "halt", "warning", "selloff", "sell-off", "rejects", "rejected",
]

# Terms that make a headline market-moving regardless of direction
SALIENCE_KEYWORDS = [
    "listing", "will list", "lists", "delist", "delisting", "launchpool",
    "launchpad", "hack", "hacked", "exploit", "sec", "etf", "fed",
    "rate cut", "rate hike", "halving", "lawsuit", "ban", "approval",
    "liquidation", "liquidations", "futures", "perpetual", "airdrop",
]


def _keyword_pattern(keywords: List[str], plurals: bool = False) -> "re.Pattern":
    # Whole words only, so "ai" never matches inside "available"
    suffix = r"(?:e?s)?" if plurals else ""
    return re.compile(
        r"\b(" + "|".join(re.escape(kw) for kw in keywords) + r")" + suffix + r"\b",
        re.IGNORECASE,
    )


class CategoryClassifier:
    """
    Maps text to one coarse topic category.

    Rules are tested in a fixed priority order and the first match wins;
    there is no scoring between categories.
    """

    def __init__(self, rules: Optional[List[Tuple[Category, List[str]]]] = None):
        rules = rules if rules is not None else CATEGORY_RULES
        self._rules = [(cat, _keyword_pattern(kw, plurals=True)) for cat, kw in rules]

    def classify(self, text: Optional[str]) -> Category:
        """
        Classify text into a Category.

        Args:
            text: Combined title and summary

        Returns:
            First matching Category, or GENERAL for empty/unmatched text
        """
        if not text or not isinstance(text, str):
            return Category.GENERAL

        for category, pattern in self._rules:
            if pattern.search(text):
                return category

        return Category.GENERAL


class SignalScorer:
    """Assigns sentiment and impact to a news item's text."""

    def score(self, text: str, source_kind: SourceKind) -> Tuple[Sentiment, ImpactLevel]:
        raise NotImplementedError


class RandomScorer(SignalScorer):
    """Uniform random draw from the sentiment and impact enumerations."""

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random(seed)

    def score(self, text: str, source_kind: SourceKind) -> Tuple[Sentiment, ImpactLevel]:
        return self._rng.choice(list(Sentiment)), self._rng.choice(list(ImpactLevel))


class LexiconScorer(SignalScorer):
    """
    Deterministic keyword scorer.

    Sentiment comes from bullish/bearish lexicon counts. Impact combines
    keyword salience with source authority: exchange announcements are
    first-hand, so a single salient term is enough for High impact.
    """

    def __init__(
        self,
        bullish_keywords: Optional[List[str]] = None,
        bearish_keywords: Optional[List[str]] = None,
        salience_keywords: Optional[List[str]] = None,
        threshold: float = 0.2,
    ):
        self.threshold = threshold
        self._bullish_pattern = _keyword_pattern(bullish_keywords or BULLISH_KEYWORDS)
        self._bearish_pattern = _keyword_pattern(bearish_keywords or BEARISH_KEYWORDS)
        self._salience_pattern = _keyword_pattern(salience_keywords or SALIENCE_KEYWORDS)

    def classify_sentiment(self, text: Optional[str]) -> Tuple[Sentiment, float]:
        """
        Classify sentiment from lexicon hits.

        Args:
            text: Combined title and summary

        Returns:
            Tuple of (Sentiment, score from -1 to 1)
        """
        if not text:
            return Sentiment.NEUTRAL, 0.0

        bullish_count = len(self._bullish_pattern.findall(text))
        bearish_count = len(self._bearish_pattern.findall(text))

        total = bullish_count + bearish_count
        if total == 0:
            return Sentiment.NEUTRAL, 0.0

        score = (bullish_count - bearish_count) / total

        if score > self.threshold:
            return Sentiment.BULLISH, score
        elif score < -self.threshold:
            return Sentiment.BEARISH, score
        else:
            # Conflicting signals
            return Sentiment.CAUTIOUS, score

    def classify_impact(self, text: Optional[str], source_kind: SourceKind) -> ImpactLevel:
        if not text:
            return ImpactLevel.LOW

        salience = len({m.lower() for m in self._salience_pattern.findall(text)})

        if salience >= 2 or (salience == 1 and source_kind == SourceKind.EXCHANGE):
            return ImpactLevel.HIGH
        if salience == 1:
            return ImpactLevel.MEDIUM
        if self._bullish_pattern.search(text) or self._bearish_pattern.search(text):
            return ImpactLevel.MEDIUM
        return ImpactLevel.LOW

    def score(self, text: str, source_kind: SourceKind) -> Tuple[Sentiment, ImpactLevel]:
        sentiment, _ = self.classify_sentiment(text)
        return sentiment, self.classify_impact(text, source_kind)


def get_scorer(name: str, seed: Optional[int] = None) -> SignalScorer:
    """Get a scorer by config name ('lexicon' or 'random')."""
    if name.lower() == "random":
        return RandomScorer(seed=seed)
    return LexiconScorer()


def filter_by_sentiment(
    news_list: List[NewsItem],
    sentiment: Union[Sentiment, str],
) -> List[NewsItem]:
    """
    Filter news by sentiment.

    Args:
        news_list: List of NewsItem objects
        sentiment: Sentiment or its label; "All" keeps everything

    Returns:
        Filtered list
    """
    if sentiment == "All":
        return list(news_list)
    if isinstance(sentiment, str):
        sentiment = Sentiment(sentiment)
    return [n for n in news_list if n.sentiment == sentiment]


def filter_by_category(
    news_list: List[NewsItem],
    categories: List[Category],
) -> List[NewsItem]:
    """Filter news by categories."""
    return [n for n in news_list if n.category in categories]
