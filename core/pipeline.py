"""
Signal Pipeline for Pulse Terminal.
Wires the derivation stages into a small dataflow graph and runs fetch cycles.
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from storage.cache import SnapshotCache
from storage.models import (
    MacroSnapshot,
    NewsItem,
    PipelineSnapshot,
    PriceQuote,
    RawFeedPayload,
    TradeIdea,
)
from core.asset_correlator import AssetCorrelator
from core.data_fetcher import DataFetcher
from core.macro_regime import regime_from_prices
from core.news_classifier import get_scorer
from core.news_normalizer import NewsNormalizer, pick_headline
from core.settings import PipelineConfig
from core.trade_ideas import IdeaConfig, TradeIdeaGenerator

logger = logging.getLogger(__name__)


class Stage:
    """
    A derived value that is recomputed only when an input reference changes.

    Inputs are compared by identity, so upstream stages must publish new
    objects instead of mutating old ones.
    """

    def __init__(self, name: str, compute: Callable[..., Any]):
        self.name = name
        self._compute = compute
        self._inputs: Optional[Tuple[Any, ...]] = None
        self._value: Any = None
        self.runs = 0

    def resolve(self, *inputs: Any) -> Any:
        if self._inputs is not None and len(inputs) == len(self._inputs) and all(
            new is old for new, old in zip(inputs, self._inputs)
        ):
            return self._value

        self._value = self._compute(*inputs)
        self._inputs = inputs
        self.runs += 1
        logger.debug(f"Stage {self.name} recomputed (run {self.runs})")
        return self._value


class MarketPulsePipeline:
    """
    News + macro signal pipeline.

    Dependency edges:
        feed payloads -> news -> enriched news --+
        macro prices  -> macro regime -----------+-> trade ideas
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        fetcher: Optional[DataFetcher] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Pipeline configuration
            fetcher: DataFetcher for refresh cycles (created lazily if omitted)
            rng: Random source shared by the random scorer and idea edges
        """
        self.config = config or PipelineConfig()
        self._fetcher = fetcher
        self._owns_fetcher = fetcher is None

        self.normalizer = NewsNormalizer(
            scorer=get_scorer(self.config.scorer, self.config.random_seed),
            max_items=self.config.max_news_items,
        )
        self.correlator = AssetCorrelator(self.config.category_assets)
        self.idea_generator = TradeIdeaGenerator(
            IdeaConfig(
                news_window=self.config.idea_news_window,
                max_narrative_ideas=self.config.max_narrative_ideas,
            ),
            rng=rng or random.Random(self.config.random_seed),
        )
        self.cache = SnapshotCache(self.config.snapshot_max_age_minutes)

        # Sources
        self._payloads: Tuple[Optional[RawFeedPayload], ...] = ()
        self._macro_prices: Optional[Dict[str, PriceQuote]] = None

        # Enrichment is valid only for the news tuple it was computed from
        self._enriched: Tuple[NewsItem, ...] = ()
        self._enriched_from: Optional[Tuple[NewsItem, ...]] = None

        self._news_stage = Stage("news", self._merge)
        self._macro_stage = Stage("macro", self._estimate)
        self._ideas_stage = Stage("ideas", self._generate)

    async def __aenter__(self) -> "MarketPulsePipeline":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_fetcher and self._fetcher is not None:
            await self._fetcher.close()

    def _get_fetcher(self) -> DataFetcher:
        if self._fetcher is None:
            self._fetcher = DataFetcher(self.config)
        return self._fetcher

    # ========================
    # Stage computations
    # ========================

    def _merge(self, payloads: Tuple[Optional[RawFeedPayload], ...]) -> Tuple[NewsItem, ...]:
        return tuple(self.normalizer.merge(payloads))

    def _estimate(self, prices: Optional[Dict[str, PriceQuote]]) -> MacroSnapshot:
        return regime_from_prices(prices, self.config.base_asset, self.config.platform_asset)

    def _generate(self, macro: MacroSnapshot, news: Tuple[NewsItem, ...]) -> Tuple[TradeIdea, ...]:
        return tuple(self.idea_generator.generate(macro, news))

    # ========================
    # Inputs
    # ========================

    def update_news(self, payloads: Sequence[Optional[RawFeedPayload]]) -> None:
        """Replace the raw feed payloads (None entries for failed sources)."""
        self._payloads = tuple(payloads)

    def update_prices(self, prices: Optional[Dict[str, PriceQuote]]) -> None:
        """Replace the macro reference price snapshot."""
        self._macro_prices = dict(prices) if prices is not None else None

    # ========================
    # Outputs
    # ========================

    def news(self) -> Tuple[NewsItem, ...]:
        return self._news_stage.resolve(self._payloads)

    def enriched_news(self) -> Tuple[NewsItem, ...]:
        """News with price moves; items stay at N/A until enrichment has run."""
        news = self.news()
        if self._enriched_from is news:
            return self._enriched
        return news

    def macro(self) -> MacroSnapshot:
        return self._macro_stage.resolve(self._macro_prices)

    def ideas(self) -> Tuple[TradeIdea, ...]:
        return self._ideas_stage.resolve(self.macro(), self.enriched_news())

    def snapshot(self) -> PipelineSnapshot:
        """
        Current outbound snapshot.

        A new PipelineSnapshot is published only when one of its parts
        changed; otherwise the cached one is returned.
        """
        news = self.enriched_news()
        macro = self.macro()
        ideas = self.ideas()

        current = self.cache.get("snapshot")
        if (
            current is not None
            and current.news is news
            and current.macro is macro
            and current.ideas is ideas
        ):
            return current

        snapshot = PipelineSnapshot(
            news=news,
            macro=macro,
            ideas=ideas,
            headline=pick_headline(news),
            refreshed_at=datetime.now(),
        )
        self.cache.publish("snapshot", snapshot)
        return snapshot

    # ========================
    # Fetch cycle
    # ========================

    async def enrich_news(self) -> Tuple[NewsItem, ...]:
        """Attach price moves to the current news; no-op without news."""
        news = self.news()
        if not news:
            return news

        enriched = await self.correlator.enrich(news, self._get_fetcher().fetch_prices)

        # News may have been replaced while prices were in flight
        if self.news() is news:
            self._enriched = tuple(enriched)
            self._enriched_from = news
        return self.enriched_news()

    async def _load_macro_prices(self) -> Optional[Dict[str, PriceQuote]]:
        try:
            return await self._get_fetcher().fetch_macro_prices()
        except Exception as e:
            logger.error(f"Macro price fetch failed, using default regime: {e}")
            return None

    async def refresh(self) -> PipelineSnapshot:
        """
        Run one full cycle: fetch feeds and macro prices concurrently,
        merge, enrich, and publish a fresh snapshot.

        Never raises; failures degrade the affected stage and are logged.
        """
        logger.info("Starting refresh cycle")

        try:
            payloads, macro_prices = await asyncio.gather(
                self._get_fetcher().fetch_all_feeds(self.config.feeds),
                self._load_macro_prices(),
            )
            self.update_news(payloads)
            self.update_prices(macro_prices)
            await self.enrich_news()
        except Exception as e:
            logger.error(f"Refresh cycle failed: {e}")

        snapshot = self.snapshot()
        logger.info(
            f"Refresh complete: {len(snapshot.news)} news, "
            f"{snapshot.macro.trend_label.value}, {len(snapshot.ideas)} ideas"
        )
        return snapshot

    def is_stale(self) -> bool:
        """Check if the published snapshot is missing or older than the configured max age."""
        return self.cache.is_stale("snapshot")
