"""
News Normalizer for Pulse Terminal.
Merges raw feed payloads into a flat, capped list of classified NewsItems.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from storage.models import (
    NO_SUMMARY,
    PRICE_UNAVAILABLE,
    UNTITLED,
    Category,
    ImpactLevel,
    NewsItem,
    RawFeedPayload,
    Sentiment,
    SourceKind,
)
from core.news_classifier import CategoryClassifier, LexiconScorer, SignalScorer
from core.settings import MAX_NEWS_ITEMS
from core.text_normalizer import normalize

logger = logging.getLogger(__name__)

# Shown as the top story before any feed has delivered items
WAITING_HEADLINE = NewsItem(
    id="waiting-for-feeds",
    title="Waiting for live announcements from exchange and media feeds...",
    source="Exchange & Media Feeds",
    published_at="Just now",
    category=Category.GENERAL,
    summary=(
        "The news terminal is connecting to crypto exchange and media feeds. "
        "Once responses arrive, listings, regulatory headlines and "
        "market-structure updates will appear here."
    ),
    sentiment=Sentiment.NEUTRAL,
    impact_level=ImpactLevel.MEDIUM,
    price_move_pct=PRICE_UNAVAILABLE,
    tags=("EXCHANGES", "MEDIA"),
)


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class NewsNormalizer:
    """
    Builds NewsItems from raw feed payloads.
    """

    def __init__(
        self,
        classifier: Optional[CategoryClassifier] = None,
        scorer: Optional[SignalScorer] = None,
        max_items: int = MAX_NEWS_ITEMS,
    ):
        """
        Initialize news normalizer.

        Args:
            classifier: Category classifier instance
            scorer: Sentiment/impact scorer (default: LexiconScorer)
            max_items: Cap on the merged list length (never above MAX_NEWS_ITEMS)
        """
        self.classifier = classifier or CategoryClassifier()
        self.scorer = scorer or LexiconScorer()
        self.max_items = min(MAX_NEWS_ITEMS, max(0, max_items))

    def normalize_item(
        self,
        raw: Mapping[str, Any],
        source: str,
        kind: SourceKind = SourceKind.EXCHANGE,
    ) -> NewsItem:
        """
        Convert one raw feed item.

        Args:
            raw: Item mapping with optional title/description/pubDate/guid/link
            source: Provider name
            kind: Provider kind

        Returns:
            NewsItem with summary, category, sentiment and impact assigned
        """
        title = _text(raw.get("title")) or UNTITLED
        summary = normalize(raw.get("description") or NO_SUMMARY)
        category = self.classifier.classify(f"{title} {summary}")

        guid = _text(raw.get("guid"))
        link = _text(raw.get("link"))
        item_id = guid or link or f"{source}-{title}"

        sentiment, impact = self.scorer.score(f"{title} {summary}", kind)

        return NewsItem(
            id=item_id,
            title=title,
            source=source,
            published_at=_text(raw.get("pubDate")),
            category=category,
            summary=summary,
            sentiment=sentiment,
            impact_level=impact,
            price_move_pct=PRICE_UNAVAILABLE,
            tags=(source, category.value),
            source_kind=kind,
            link=link,
        )

    def merge(self, payloads: Sequence[Optional[RawFeedPayload]]) -> List[NewsItem]:
        """
        Merge payloads into one flat list, in payload order.

        A None payload stands for a failed fetch and is skipped; a bad item
        inside a payload is skipped without affecting the rest of the batch.

        Args:
            payloads: One entry per provider, None for failed providers

        Returns:
            At most max_items NewsItems
        """
        merged: List[NewsItem] = []

        for payload in payloads:
            if payload is None:
                continue

            items = payload.items if isinstance(payload.items, list) else []
            for raw in items:
                if len(merged) >= self.max_items:
                    break
                if not isinstance(raw, Mapping):
                    logger.warning(f"Skipping malformed item from {payload.source}: {type(raw).__name__}")
                    continue
                try:
                    merged.append(self.normalize_item(raw, payload.source, payload.kind))
                except Exception as e:
                    logger.error(f"Error normalizing item from {payload.source}: {e}")

        logger.info(f"Merged {len(merged)} news items from {sum(1 for p in payloads if p)} feeds")
        return merged


def merge_feeds(
    payloads: Sequence[Optional[RawFeedPayload]],
    max_items: int = MAX_NEWS_ITEMS,
    scorer: Optional[SignalScorer] = None,
) -> List[NewsItem]:
    """Merge raw payloads with a default NewsNormalizer."""
    return NewsNormalizer(scorer=scorer, max_items=max_items).merge(payloads)


def index_by_id(news_list: Sequence[NewsItem]) -> Dict[str, NewsItem]:
    """Index items by id; on collision the later item wins."""
    return {n.id: n for n in news_list}


def pick_headline(news_list: Sequence[NewsItem]) -> NewsItem:
    """Top story for display, or the waiting placeholder when there is no news."""
    return news_list[0] if news_list else WAITING_HEADLINE
