"""
Configuration for Pulse Terminal.
Feed sources, category/asset table and pipeline tunables, with env overrides.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from dotenv import load_dotenv

from storage.models import Category, SourceKind

logger = logging.getLogger(__name__)


RSS2JSON_URL = "https://api.rss2json.com/v1/api.json?rss_url={rss_url}"
COINGECKO_API_URL = "https://api.coingecko.com/api/v3"

# Hard ceiling on merged news items; config can lower it but not raise it
MAX_NEWS_ITEMS = 60


@dataclass(frozen=True)
class FeedSource:
    """One news provider."""
    name: str
    url: str
    kind: SourceKind = SourceKind.EXCHANGE
    format: str = "rss2json"  # rss2json or rss
    enabled: bool = True


def _rss2json(rss_url: str) -> str:
    return RSS2JSON_URL.format(rss_url=rss_url)


DEFAULT_FEED_SOURCES: List[FeedSource] = [
    FeedSource(
        "Binance",
        _rss2json("https://www.binance.com/en/support/announcement/rss"),
        SourceKind.EXCHANGE,
    ),
    FeedSource(
        "Bybit",
        _rss2json("https://announcements.bybit.com/en-US/rss"),
        SourceKind.EXCHANGE,
    ),
    FeedSource(
        "OKX",
        _rss2json("https://www.okx.com/help/announcement/rss"),
        SourceKind.EXCHANGE,
    ),
    FeedSource(
        "Cointelegraph",
        _rss2json("https://cointelegraph.com/rss"),
        SourceKind.MEDIA,
    ),
    FeedSource(
        "Coindesk",
        _rss2json("https://www.coindesk.com/arc/outboundfeeds/rss/"),
        SourceKind.MEDIA,
    ),
]

def source_kind_for(name: str, sources: Optional[List[FeedSource]] = None) -> SourceKind:
    """Kind of a provider by name (case-insensitive); unknown providers count as exchange."""
    for source in (sources if sources is not None else DEFAULT_FEED_SOURCES):
        if source.name.lower() == name.lower():
            return source.kind
    return SourceKind.EXCHANGE


# Representative market asset per news category (price source ids)
CATEGORY_ASSET_MAP: Dict[Category, str] = {
    Category.AI: "render-token",
    Category.LAYER2: "matic-network",
    Category.LST: "lido-dao",
    Category.GAMING: "immutable-x",
    Category.DEFI: "uniswap",
    Category.SOLANA: "solana",
    Category.STABLE: "tether",
    Category.GENERAL: "bitcoin",
}


@dataclass
class PipelineConfig:
    """Configuration for the signal pipeline."""
    feeds: List[FeedSource] = field(default_factory=lambda: list(DEFAULT_FEED_SOURCES))
    category_assets: Dict[Category, str] = field(default_factory=lambda: dict(CATEGORY_ASSET_MAP))

    # Reference assets for the macro regime
    base_asset: str = "bitcoin"
    platform_asset: str = "ethereum"

    # Limits
    max_news_items: int = MAX_NEWS_ITEMS
    idea_news_window: int = 50
    max_narrative_ideas: int = 5

    # Transport
    price_api_url: str = COINGECKO_API_URL
    request_timeout: float = 10.0  # Seconds per request
    batch_deadline: float = 20.0  # Seconds for a whole fan-out batch
    retry_attempts: int = 2

    # lexicon (deterministic) or random
    scorer: str = "lexicon"
    random_seed: Optional[int] = None

    # Snapshot staleness
    snapshot_max_age_minutes: float = 5.0


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}")
        return default


def _clamp_news_items(value: int) -> int:
    clamped = min(MAX_NEWS_ITEMS, max(0, value))
    if clamped != value:
        logger.warning(f"max_news_items={value} out of range, using {clamped}")
    return clamped


def load_config(base: Optional[PipelineConfig] = None, dotenv: bool = True) -> PipelineConfig:
    """
    Build a PipelineConfig with environment overrides.

    Args:
        base: Starting config (default: PipelineConfig())
        dotenv: Load a .env file first

    Returns:
        PipelineConfig with PULSE_* variables applied
    """
    if dotenv:
        load_dotenv()

    cfg = base or PipelineConfig()

    scorer = os.getenv("PULSE_SCORER", cfg.scorer).strip().lower()
    if scorer not in ("lexicon", "random"):
        logger.warning(f"Unknown PULSE_SCORER={scorer!r}, using lexicon")
        scorer = "lexicon"

    seed_raw = os.getenv("PULSE_RANDOM_SEED")
    seed = cfg.random_seed
    if seed_raw:
        seed = _env_int("PULSE_RANDOM_SEED", 0)

    return replace(
        cfg,
        price_api_url=os.getenv("PULSE_PRICE_API_URL", cfg.price_api_url).rstrip("/"),
        request_timeout=_env_float("PULSE_REQUEST_TIMEOUT", cfg.request_timeout),
        batch_deadline=_env_float("PULSE_BATCH_DEADLINE", cfg.batch_deadline),
        retry_attempts=max(1, _env_int("PULSE_RETRY_ATTEMPTS", cfg.retry_attempts)),
        max_news_items=_clamp_news_items(_env_int("PULSE_MAX_NEWS_ITEMS", cfg.max_news_items)),
        scorer=scorer,
        random_seed=seed,
    )

