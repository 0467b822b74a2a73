"""
Trade Idea Generator for Pulse Terminal.
Combines the macro regime with high-impact news into heuristic trade ideas.
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

from storage.models import (
    Conviction,
    IdeaCategory,
    LiquidityLabel,
    MacroSnapshot,
    NewsItem,
    Sentiment,
    SourceKind,
    TradeIdea,
    VolatilityLabel,
)

logger = logging.getLogger(__name__)


@dataclass
class IdeaConfig:
    """Configuration for idea generation."""
    news_window: int = 50
    max_narrative_ideas: int = 5
    summary_chars: int = 120

    # Narrative edge is drawn uniformly from [edge_min, edge_max)
    edge_min: float = 0.5
    edge_max: float = 2.5


LONG_BTC_IDEA = dict(
    id="long-btc",
    tag="LONG BTC PERP",
    category=IdeaCategory.DIRECTIONAL,
    edge_estimate="+1.6%",
    title="Align with macro bull impulse",
    summary=(
        "Macro environment shows bullish pressure with supportive high-impact "
        "headlines. Models lean long BTC."
    ),
    horizon="4–12h",
    risk_note="Stop below local lows. Reduce size if volatility flips into High Stress.",
)

SHORT_BTC_IDEA = dict(
    id="short-btc",
    tag="SHORT BTC PERP",
    category=IdeaCategory.DIRECTIONAL,
    edge_estimate="+1.9%",
    title="Fade macro downside pressure",
    summary=(
        "Bearish macro trend confirmed by high-impact negative news. Models "
        "favour shorting BTC on bounces."
    ),
    horizon="4–10h",
    risk_note="Avoid chasing lows. Stop above local highs.",
)

PAIRS_IDEA = TradeIdea(
    id="eth-alt",
    tag="PAIRS TRADE",
    category=IdeaCategory.RELATIVE_VALUE,
    edge_estimate="+1.2%",
    conviction=Conviction.MEDIUM,
    title="Long ETH vs altcoin hype basket",
    summary=(
        "Heavy altcoin narrative rotation in the media while ETH remains the "
        "liquidity anchor. Long ETH / short small alt basket."
    ),
    horizon="1–3d",
    risk_note="Avoid overweighting single-name shorts. Maintain diversified hedge.",
)

RISK_WARNING_IDEA = TradeIdea(
    id="risk-warning",
    tag="RISK WATCH",
    category=IdeaCategory.RISK_MANAGEMENT,
    edge_estimate="Protect PnL",
    conviction=Conviction.HIGH,
    title="Tighten exposure under stressed conditions",
    summary=(
        "Volatility or liquidity stress detected by the macro engine. Reduce "
        "exposure & tighten stops."
    ),
    horizon="Current session",
    risk_note="High risk of chop or liquidation cascades in thin conditions.",
)

NO_EDGE_IDEA = TradeIdea(
    id="no-edge",
    tag="NO STRONG EDGE",
    category=IdeaCategory.NEUTRAL,
    edge_estimate="Flat",
    conviction=Conviction.LOW,
    title="No high-probability setups detected",
    summary="Macro + news signals do not align. Wait for clearer asymmetry.",
    horizon="Wait",
    risk_note="Avoid forcing trades in low-edge environments.",
)

NARRATIVE_TAGS = {
    Sentiment.BULLISH: "MOMO LONG",
    Sentiment.BEARISH: "MOMO SHORT",
}


class TradeIdeaGenerator:
    """
    Rule-based trade idea engine (macro x sentiment x news impact).

    Rules run in a fixed order and the output keeps that order:
    directional, relative value, risk warning, narratives, then the
    no-edge fallback when nothing else fired.
    """

    def __init__(self, config: Optional[IdeaConfig] = None, rng: Optional[random.Random] = None):
        """
        Initialize trade idea generator.

        Args:
            config: Idea configuration
            rng: Random source for narrative edge estimates
        """
        self.config = config or IdeaConfig()
        self._rng = rng or random.Random()

    def _directional_idea(
        self,
        macro: MacroSnapshot,
        bullish_count: int,
        bearish_count: int,
    ) -> Optional[TradeIdea]:
        trend = macro.trend_label.value
        if "Bull" in trend:
            conviction = Conviction.HIGH if bullish_count > bearish_count else Conviction.MEDIUM
            return TradeIdea(conviction=conviction, **LONG_BTC_IDEA)
        if "Bear" in trend:
            conviction = Conviction.HIGH if bearish_count >= bullish_count else Conviction.MEDIUM
            return TradeIdea(conviction=conviction, **SHORT_BTC_IDEA)
        return None

    def _narrative_idea(self, index: int, item: NewsItem) -> TradeIdea:
        span = self.config.edge_max - self.config.edge_min
        edge = self.config.edge_min + self._rng.random() * span

        return TradeIdea(
            id=f"news-idea-{index}",
            tag=NARRATIVE_TAGS.get(item.sentiment, "THEME IDEA"),
            category=IdeaCategory.NARRATIVE,
            edge_estimate=f"{edge:.1f}%",
            conviction=Conviction.MEDIUM if index % 2 == 0 else Conviction.LOW,
            title=f"Play {item.source} narrative on {item.sentiment.value} flow",
            summary=(item.summary or "")[:self.config.summary_chars] + "...",
            horizon="6–18h",
            risk_note="News-driven trade. Tight stops recommended.",
        )

    def generate(self, macro: MacroSnapshot, news_list: Sequence[NewsItem]) -> List[TradeIdea]:
        """
        Generate trade ideas from scratch.

        Args:
            macro: Current MacroSnapshot
            news_list: Enriched news in feed order

        Returns:
            Non-empty list of TradeIdea in rule order
        """
        top_news = list(news_list)[:self.config.news_window]
        high_impact = [n for n in top_news if n.is_high_impact]
        bullish = [n for n in high_impact if n.sentiment == Sentiment.BULLISH]
        bearish = [n for n in high_impact if n.sentiment == Sentiment.BEARISH]

        ideas: List[TradeIdea] = []

        directional = self._directional_idea(macro, len(bullish), len(bearish))
        if directional:
            ideas.append(directional)

        if any(n.source_kind == SourceKind.MEDIA for n in high_impact):
            ideas.append(PAIRS_IDEA)

        if (
            macro.volatility_label == VolatilityLabel.HIGH_STRESS
            or macro.liquidity_label == LiquidityLabel.THINNER
        ):
            ideas.append(RISK_WARNING_IDEA)

        for idx, item in enumerate(high_impact[:self.config.max_narrative_ideas]):
            ideas.append(self._narrative_idea(idx, item))

        if not ideas:
            ideas.append(NO_EDGE_IDEA)

        logger.info(
            f"Generated {len(ideas)} trade ideas from {len(high_impact)} high-impact items "
            f"({len(bullish)} bullish, {len(bearish)} bearish)"
        )
        return ideas


def generate_ideas(
    macro: MacroSnapshot,
    news_list: Sequence[NewsItem],
    rng: Optional[random.Random] = None,
) -> List[TradeIdea]:
    """Generate ideas with a default TradeIdeaGenerator."""
    return TradeIdeaGenerator(rng=rng).generate(macro, news_list)
