"""
Asset Correlator for Pulse Terminal.
Attaches the 24h move of each category's representative asset to news items.
"""

import dataclasses
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from storage.models import PRICE_UNAVAILABLE, Category, NewsItem, PriceQuote
from core.settings import CATEGORY_ASSET_MAP

logger = logging.getLogger(__name__)


PriceFetcher = Callable[[List[str]], Awaitable[Dict[str, PriceQuote]]]


def format_price_move(change: Optional[float]) -> str:
    """Format a 24h change as '+1.23%' / '-0.50%', or N/A when missing."""
    if change is None or isinstance(change, bool) or not isinstance(change, (int, float)):
        return PRICE_UNAVAILABLE
    sign = "+" if change > 0 else ""
    return f"{sign}{change:.2f}%"


class AssetCorrelator:
    """
    Maps news categories to market assets and enriches items with price moves.
    """

    def __init__(self, category_assets: Optional[Mapping[Category, str]] = None):
        """
        Initialize asset correlator.

        Args:
            category_assets: Category -> asset id table (default: CATEGORY_ASSET_MAP)
        """
        self.category_assets = dict(category_assets or CATEGORY_ASSET_MAP)
        self.fallback_asset = self.category_assets.get(
            Category.GENERAL, CATEGORY_ASSET_MAP[Category.GENERAL]
        )

    def asset_for(self, category: Category) -> str:
        """Representative asset id; categories without an entry use the General asset."""
        return self.category_assets.get(category, self.fallback_asset)

    def required_assets(self, news_list: Sequence[NewsItem]) -> List[str]:
        """Deduplicated asset ids needed for the given items, in first-seen order."""
        assets: List[str] = []
        for item in news_list:
            asset = self.asset_for(item.category)
            if asset not in assets:
                assets.append(asset)
        return assets

    def correlate(
        self,
        news_list: Sequence[NewsItem],
        prices: Mapping[str, PriceQuote],
    ) -> List[NewsItem]:
        """
        Attach price moves from a price snapshot.

        Args:
            news_list: Items to enrich
            prices: Asset id -> PriceQuote

        Returns:
            New NewsItems with price_move_pct set
        """
        enriched = []
        for item in news_list:
            quote = prices.get(self.asset_for(item.category))
            change = quote.change_24h_pct if quote is not None else None
            enriched.append(dataclasses.replace(item, price_move_pct=format_price_move(change)))
        return enriched

    def mark_unavailable(self, news_list: Sequence[NewsItem]) -> List[NewsItem]:
        return [dataclasses.replace(n, price_move_pct=PRICE_UNAVAILABLE) for n in news_list]

    async def enrich(
        self,
        news_list: Sequence[NewsItem],
        fetch_prices: PriceFetcher,
    ) -> List[NewsItem]:
        """
        Fetch prices for all needed assets in one batch and correlate.

        A failed fetch leaves every item at N/A instead of raising.

        Args:
            news_list: Items to enrich
            fetch_prices: Async callable taking a list of asset ids

        Returns:
            Enriched NewsItems
        """
        if not news_list:
            return []

        assets = self.required_assets(news_list)

        try:
            prices = await fetch_prices(assets)
        except Exception as e:
            logger.error(f"Price enrichment failed for {len(assets)} assets: {e}")
            return self.mark_unavailable(news_list)

        logger.info(f"Enriched {len(news_list)} news items with {len(prices)} asset quotes")
        return self.correlate(news_list, prices)
