"""
Data Models for Pulse Terminal.
Dataclasses representing feed payloads, derived news, regimes and trade ideas.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from enum import Enum


NO_SUMMARY = "No summary available."
PRICE_UNAVAILABLE = "N/A"
UNTITLED = "Untitled"


class Category(Enum):
    """Coarse news topic."""
    AI = "AI"
    LAYER2 = "Layer2"
    LST = "LST"
    GAMING = "Gaming"
    DEFI = "DeFi"
    SOLANA = "Solana"
    STABLE = "Stable"
    GENERAL = "General"


class Sentiment(Enum):
    """News sentiment enum."""
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"
    CAUTIOUS = "Cautious"


class ImpactLevel(Enum):
    """News impact enum."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class SourceKind(Enum):
    """Whether a provider publishes exchange announcements or media articles."""
    EXCHANGE = "exchange"
    MEDIA = "media"


class TrendLabel(Enum):
    STRONG_BULL = "Strong Bull"
    MILD_BULL = "Mild Bull"
    SIDEWAYS = "Sideways"
    MILD_BEAR = "Mild Bear"
    STRONG_BEAR = "Strong Bear"


class VolatilityLabel(Enum):
    CALM = "Calm"
    ELEVATED = "Elevated"
    HIGH_STRESS = "High Stress"


class LiquidityLabel(Enum):
    UNKNOWN = "Unknown"
    THINNER = "Thinner"
    NORMAL = "Normal"
    DEEP = "Deep"


class IdeaCategory(Enum):
    """Trade idea category enum."""
    DIRECTIONAL = "Directional"
    RELATIVE_VALUE = "Relative Value"
    RISK_MANAGEMENT = "Risk Management"
    NARRATIVE = "Narrative"
    NEUTRAL = "Neutral"


class Conviction(Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass
class RawFeedPayload:
    """One provider's batch of raw items for one fetch cycle."""
    source: str
    items: List[Dict[str, Any]] = field(default_factory=list)
    kind: Optional[SourceKind] = None

    def __post_init__(self):
        if self.kind is None:
            # Resolved lazily; settings imports this module
            from core.settings import source_kind_for
            self.kind = source_kind_for(self.source)

    @classmethod
    def from_json(
        cls,
        source: str,
        data: Any,
        kind: Optional[SourceKind] = None,
    ) -> "RawFeedPayload":
        """
        Build a payload from a feed JSON body; anything malformed yields no items.

        Without an explicit kind, the provider's configured kind is used.
        """
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            items = []
        return cls(source=source, items=items, kind=kind)


@dataclass(frozen=True)
class NewsItem:
    """Normalized, classified news item."""
    id: str
    title: str
    source: str
    published_at: str
    category: Category
    summary: str
    sentiment: Sentiment
    impact_level: ImpactLevel
    price_move_pct: str = PRICE_UNAVAILABLE
    tags: Tuple[str, ...] = ()
    source_kind: SourceKind = SourceKind.EXCHANGE
    link: str = ""

    @property
    def is_high_impact(self) -> bool:
        return self.impact_level == ImpactLevel.HIGH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "source": self.source,
            "published_at": self.published_at,
            "category": self.category.value,
            "summary": self.summary,
            "sentiment": self.sentiment.value,
            "impact_level": self.impact_level.value,
            "price_move_pct": self.price_move_pct,
            "tags": list(self.tags),
            "source_kind": self.source_kind.value,
            "link": self.link,
        }


@dataclass(frozen=True)
class PriceQuote:
    """Latest price figures for one asset."""
    asset_id: str
    price_usd: Optional[float] = None
    change_24h_pct: Optional[float] = None
    volume_24h_usd: Optional[float] = None

    @classmethod
    def from_api(cls, asset_id: str, data: Any) -> "PriceQuote":
        """Parse one entry of the price source mapping, keeping only numeric fields."""
        if not isinstance(data, dict):
            return cls(asset_id=asset_id)

        def _number(key: str) -> Optional[float]:
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            return float(value)

        return cls(
            asset_id=asset_id,
            price_usd=_number("usd"),
            change_24h_pct=_number("usd_24h_change"),
            volume_24h_usd=_number("usd_24h_vol"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "price_usd": self.price_usd,
            "change_24h_pct": self.change_24h_pct,
            "volume_24h_usd": self.volume_24h_usd,
        }


@dataclass(frozen=True)
class MacroSnapshot:
    """Trend / volatility / liquidity regime for the current session."""
    trend_label: TrendLabel
    trend_desc: str
    volatility_label: VolatilityLabel
    volatility_desc: str
    liquidity_label: LiquidityLabel
    liquidity_desc: str
    avg_change: float = 0.0
    total_volume: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend_label": self.trend_label.value,
            "trend_desc": self.trend_desc,
            "volatility_label": self.volatility_label.value,
            "volatility_desc": self.volatility_desc,
            "liquidity_label": self.liquidity_label.value,
            "liquidity_desc": self.liquidity_desc,
            "avg_change": self.avg_change,
            "total_volume": self.total_volume,
        }


@dataclass(frozen=True)
class TradeIdea:
    """Heuristic trade idea record."""
    id: str
    tag: str
    category: IdeaCategory
    edge_estimate: str
    conviction: Conviction
    title: str
    summary: str
    horizon: str
    risk_note: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tag": self.tag,
            "category": self.category.value,
            "edge_estimate": self.edge_estimate,
            "conviction": self.conviction.value,
            "title": self.title,
            "summary": self.summary,
            "horizon": self.horizon,
            "risk_note": self.risk_note,
        }


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view of the latest pipeline outputs."""
    news: Tuple[NewsItem, ...]
    macro: MacroSnapshot
    ideas: Tuple[TradeIdea, ...]
    headline: NewsItem
    refreshed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "news": [n.to_dict() for n in self.news],
            "macro": self.macro.to_dict(),
            "ideas": [i.to_dict() for i in self.ideas],
            "headline": self.headline.to_dict(),
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
        }
