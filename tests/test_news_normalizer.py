"""
Tests for the News Normalizer Module

Tests cover:
- Merging payloads from several providers
- Id fallback rules
- Failed and malformed payloads
- The 60 item cap
- Idempotence
"""

import pytest
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.news_classifier import RandomScorer
from core.news_normalizer import (
    MAX_NEWS_ITEMS,
    WAITING_HEADLINE,
    NewsNormalizer,
    index_by_id,
    merge_feeds,
    pick_headline,
)
from storage.models import (
    NO_SUMMARY,
    PRICE_UNAVAILABLE,
    Category,
    ImpactLevel,
    RawFeedPayload,
    Sentiment,
    SourceKind,
)


@pytest.fixture
def normalizer():
    """Create news normalizer instance."""
    return NewsNormalizer()


@pytest.fixture
def scenario_payloads():
    """One exchange item and one media item."""
    return [
        RawFeedPayload("Binance", [{"title": "Binance Lists New AI Token"}], SourceKind.EXCHANGE),
        RawFeedPayload("Cointelegraph", [{"title": "Bitcoin breaks key level"}], SourceKind.MEDIA),
    ]


def bulk_payload(source, count):
    items = [
        {"title": f"{source} notice {i}", "guid": f"{source}-{i}", "description": "<p>Update</p>"}
        for i in range(count)
    ]
    return RawFeedPayload(source, items)


class TestMerge:
    """Tests for merging feed payloads."""

    def test_scenario(self, normalizer, scenario_payloads):
        """Two providers with one item each merge into two classified items."""
        items = normalizer.merge(scenario_payloads)

        assert len(items) == 2
        assert items[0].category == Category.AI
        assert items[0].source == "Binance"
        assert items[1].category == Category.GENERAL
        assert items[1].source == "Cointelegraph"
        assert items[1].source_kind == SourceKind.MEDIA

    def test_fields(self, normalizer):
        """Should build summary, tags and defaults from the raw item."""
        payload = RawFeedPayload("OKX", [{
            "title": "  OKX to launch Uniswap perpetual  ",
            "description": '<p>Trading opens soon. <a href="https://okx.com/x">Details</a></p>',
            "pubDate": "2024-05-01 08:00:00",
            "link": "https://okx.com/help/1",
        }])

        item = normalizer.merge([payload])[0]

        assert item.title == "OKX to launch Uniswap perpetual"
        assert item.summary == "Trading opens soon. Details"
        assert item.published_at == "2024-05-01 08:00:00"
        assert item.category == Category.DEFI
        assert item.tags == ("OKX", "DeFi")
        assert item.price_move_pct == PRICE_UNAVAILABLE
        assert item.link == "https://okx.com/help/1"
        assert item.sentiment in Sentiment
        assert item.impact_level in ImpactLevel

    def test_missing_fields(self, normalizer):
        """Should fall back to Untitled and the summary sentinel."""
        item = normalizer.merge([RawFeedPayload("Bybit", [{}])])[0]

        assert item.title == "Untitled"
        assert item.summary == NO_SUMMARY
        assert item.id == "Bybit-Untitled"
        assert item.published_at == ""

    def test_media_kind_from_provider_name(self, normalizer):
        """Raw JSON from a known media provider yields media items."""
        payload = RawFeedPayload.from_json("Cointelegraph", {"items": [{"title": "SEC delays spot ETF"}]})
        item = normalizer.merge([payload])[0]

        assert item.source_kind == SourceKind.MEDIA
        assert item.impact_level == ImpactLevel.HIGH

    def test_order_preserved(self, normalizer):
        """Items keep payload order, then item order."""
        items = normalizer.merge([bulk_payload("A", 2), bulk_payload("B", 2)])
        assert [n.id for n in items] == ["A-0", "A-1", "B-0", "B-1"]


class TestIds:
    """Tests for id assignment."""

    def test_guid_preferred(self, normalizer):
        item = normalizer.normalize_item({"title": "T", "guid": "g-1", "link": "https://l"}, "Binance")
        assert item.id == "g-1"

    def test_link_fallback(self, normalizer):
        item = normalizer.normalize_item({"title": "T", "link": "https://l"}, "Binance")
        assert item.id == "https://l"

    def test_provider_title_fallback(self, normalizer):
        item = normalizer.normalize_item({"title": "T"}, "Binance")
        assert item.id == "Binance-T"

    def test_index_last_write_wins(self, normalizer):
        """Colliding ids keep the later item."""
        payload = RawFeedPayload("OKX", [
            {"title": "First", "guid": "same"},
            {"title": "Second", "guid": "same"},
        ])
        index = index_by_id(normalizer.merge([payload]))
        assert list(index) == ["same"]
        assert index["same"].title == "Second"


class TestFailures:
    """Tests for failed and malformed input."""

    def test_failed_feed_does_not_block_others(self, normalizer, scenario_payloads):
        """None placeholders are skipped."""
        payloads = [None, scenario_payloads[0], None, scenario_payloads[1]]
        items = normalizer.merge(payloads)
        assert [n.source for n in items] == ["Binance", "Cointelegraph"]

    def test_all_failed(self, normalizer):
        assert normalizer.merge([None, None]) == []
        assert normalizer.merge([]) == []

    def test_malformed_items_skipped(self, normalizer):
        """Non-mapping items are skipped without affecting the rest."""
        payload = RawFeedPayload("Coindesk", ["junk", None, {"title": "Real story"}, 5])
        items = normalizer.merge([payload])
        assert [n.title for n in items] == ["Real story"]

    @pytest.mark.parametrize("data", [None, "oops", {}, {"items": "nope"}, {"items": None}, []])
    def test_malformed_payload_json(self, normalizer, data):
        """Malformed feed bodies become empty payloads."""
        payload = RawFeedPayload.from_json("Coindesk", data, SourceKind.MEDIA)
        assert payload.items == []
        assert normalizer.merge([payload]) == []


class TestCap:
    """Tests for the output size limit."""

    def test_capped_at_sixty(self, normalizer):
        """Output length never exceeds 60."""
        payloads = [bulk_payload(name, 30) for name in ("A", "B", "C", "D", "E")]
        items = normalizer.merge(payloads)

        assert MAX_NEWS_ITEMS == 60
        assert len(items) == 60
        assert items[-1].id == "B-29"

    def test_under_cap(self, normalizer):
        assert len(normalizer.merge([bulk_payload("A", 5)])) == 5

    def test_custom_cap(self):
        items = merge_feeds([bulk_payload("A", 10)], max_items=3)
        assert [n.id for n in items] == ["A-0", "A-1", "A-2"]

    def test_cap_cannot_be_raised(self):
        """A larger max_items still yields at most 60 items."""
        assert NewsNormalizer(max_items=500).max_items == MAX_NEWS_ITEMS
        assert len(merge_feeds([bulk_payload("A", 100)], max_items=500)) == 60

    def test_negative_cap_is_empty(self):
        assert merge_feeds([bulk_payload("A", 5)], max_items=-1) == []


class TestIdempotence:
    """Re-running on the same payloads yields the same derived fields."""

    def test_same_payloads_same_items(self, scenario_payloads):
        first = merge_feeds(scenario_payloads, scorer=RandomScorer(seed=1))
        second = merge_feeds(scenario_payloads, scorer=RandomScorer(seed=2))

        key = lambda n: (n.id, n.title, n.category, n.summary)
        assert [key(n) for n in first] == [key(n) for n in second]

    def test_lexicon_scorer_fully_deterministic(self, scenario_payloads):
        assert merge_feeds(scenario_payloads) == merge_feeds(scenario_payloads)


class TestHeadline:
    """Tests for top story selection."""

    def test_placeholder_when_empty(self):
        assert pick_headline([]) is WAITING_HEADLINE
        assert WAITING_HEADLINE.price_move_pct == PRICE_UNAVAILABLE

    def test_first_item(self, normalizer, scenario_payloads):
        items = normalizer.merge(scenario_payloads)
        assert pick_headline(items) is items[0]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
