"""
Tests for the Storage Layer

Tests cover:
- Snapshot cache publish/version/staleness
- Model parsing and serialization
"""

import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage.cache import SnapshotCache
from storage.models import (
    Category,
    ImpactLevel,
    NewsItem,
    PriceQuote,
    RawFeedPayload,
    Sentiment,
    SourceKind,
)


@pytest.fixture
def cache():
    """Create snapshot cache instance."""
    return SnapshotCache(max_age_minutes=5)


class TestSnapshotCache:
    """Tests for the in-memory snapshot cache."""

    def test_publish_and_get(self, cache):
        assert cache.get("news") is None
        assert cache.get("news", ()) == ()

        version = cache.publish("news", ("a",))

        assert version == 1
        assert cache.get("news") == ("a",)

    def test_publish_replaces_wholesale(self, cache):
        cache.publish("news", ("a", "b"))
        assert cache.publish("news", ("c",)) == 2
        assert cache.get("news") == ("c",)
        assert cache.version("news") == 2
        assert cache.version("macro") == 0

    def test_staleness(self, cache):
        assert cache.is_stale("news")

        cache.publish("news", ())
        published = cache.published_at("news")

        assert not cache.is_stale("news")
        assert not cache.is_stale("news", now=published + timedelta(minutes=4))
        assert cache.is_stale("news", now=published + timedelta(minutes=6))

    def test_clear(self, cache):
        cache.publish("news", ())
        cache.clear()

        assert cache.get("news") is None
        assert cache.version("news") == 0
        assert cache.published_at("news") is None


class TestModels:
    """Tests for model helpers."""

    def test_price_quote_from_api(self):
        quote = PriceQuote.from_api("bitcoin", {"usd": 64000, "usd_24h_change": "3.1", "usd_24h_vol": True})

        assert quote.price_usd == 64000.0
        assert quote.change_24h_pct is None
        assert quote.volume_24h_usd is None

    def test_price_quote_from_non_dict(self):
        assert PriceQuote.from_api("x", None) == PriceQuote("x")

    def test_raw_payload_from_json(self):
        payload = RawFeedPayload.from_json("Coindesk", {"status": "ok", "items": [{"title": "t"}]}, SourceKind.MEDIA)

        assert payload.items == [{"title": "t"}]
        assert payload.kind == SourceKind.MEDIA

    @pytest.mark.parametrize("source,expected", [
        ("Cointelegraph", SourceKind.MEDIA),
        ("coindesk", SourceKind.MEDIA),
        ("Binance", SourceKind.EXCHANGE),
        ("Unknown Blog", SourceKind.EXCHANGE),
    ])
    def test_kind_defaults_to_configured_provider(self, source, expected):
        """Without an explicit kind, the provider's configured kind is used."""
        assert RawFeedPayload.from_json(source, {"items": []}).kind == expected
        assert RawFeedPayload(source).kind == expected

    def test_explicit_kind_wins(self):
        assert RawFeedPayload("Cointelegraph", [], SourceKind.EXCHANGE).kind == SourceKind.EXCHANGE

    def test_news_item_immutable_and_serializable(self):
        item = NewsItem(
            id="1",
            title="Title",
            source="OKX",
            published_at="",
            category=Category.DEFI,
            summary="Summary",
            sentiment=Sentiment.BULLISH,
            impact_level=ImpactLevel.HIGH,
            tags=("OKX", "DeFi"),
        )

        with pytest.raises(Exception):
            item.title = "Changed"

        data = item.to_dict()
        assert data["category"] == "DeFi"
        assert data["sentiment"] == "Bullish"
        assert data["price_move_pct"] == "N/A"
        assert data["tags"] == ["OKX", "DeFi"]
        assert data["source_kind"] == "exchange"
        assert item.is_high_impact


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
