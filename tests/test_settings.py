"""
Tests for configuration loading

Tests cover:
- Defaults
- Environment overrides
- Invalid values
"""

import pytest
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.settings import (
    CATEGORY_ASSET_MAP,
    DEFAULT_FEED_SOURCES,
    PipelineConfig,
    load_config,
)
from storage.models import Category, SourceKind


ENV_VARS = [
    "PULSE_SCORER",
    "PULSE_RANDOM_SEED",
    "PULSE_PRICE_API_URL",
    "PULSE_REQUEST_TIMEOUT",
    "PULSE_BATCH_DEADLINE",
    "PULSE_RETRY_ATTEMPTS",
    "PULSE_MAX_NEWS_ITEMS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for default configuration."""

    def test_defaults(self):
        config = load_config(dotenv=False)

        assert config.max_news_items == 60
        assert config.idea_news_window == 50
        assert config.max_narrative_ideas == 5
        assert config.scorer == "lexicon"
        assert config.random_seed is None
        assert config.retry_attempts == 2

    def test_feed_sources(self):
        names = [s.name for s in DEFAULT_FEED_SOURCES]
        assert names == ["Binance", "Bybit", "OKX", "Cointelegraph", "Coindesk"]

        kinds = {s.name: s.kind for s in DEFAULT_FEED_SOURCES}
        assert kinds["Cointelegraph"] == SourceKind.MEDIA
        assert kinds["OKX"] == SourceKind.EXCHANGE

    def test_every_category_has_an_asset(self):
        assert set(CATEGORY_ASSET_MAP) == set(Category)
        assert CATEGORY_ASSET_MAP[Category.GENERAL] == "bitcoin"

    def test_configs_do_not_share_lists(self):
        a, b = PipelineConfig(), PipelineConfig()
        a.feeds.clear()
        assert len(b.feeds) == len(DEFAULT_FEED_SOURCES)


class TestEnvironment:
    """Tests for PULSE_* overrides."""

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PULSE_SCORER", "Random")
        monkeypatch.setenv("PULSE_RANDOM_SEED", "42")
        monkeypatch.setenv("PULSE_PRICE_API_URL", "https://prices.test/api/")
        monkeypatch.setenv("PULSE_REQUEST_TIMEOUT", "3.5")
        monkeypatch.setenv("PULSE_BATCH_DEADLINE", "8")
        monkeypatch.setenv("PULSE_RETRY_ATTEMPTS", "4")
        monkeypatch.setenv("PULSE_MAX_NEWS_ITEMS", "25")

        config = load_config(dotenv=False)

        assert config.scorer == "random"
        assert config.random_seed == 42
        assert config.price_api_url == "https://prices.test/api"
        assert config.request_timeout == 3.5
        assert config.batch_deadline == 8.0
        assert config.retry_attempts == 4
        assert config.max_news_items == 25

    def test_invalid_values_ignored(self, monkeypatch):
        monkeypatch.setenv("PULSE_REQUEST_TIMEOUT", "soon")
        monkeypatch.setenv("PULSE_MAX_NEWS_ITEMS", "lots")
        monkeypatch.setenv("PULSE_SCORER", "oracle")

        config = load_config(dotenv=False)

        assert config.request_timeout == 10.0
        assert config.max_news_items == 60
        assert config.scorer == "lexicon"

    @pytest.mark.parametrize("raw,expected", [("500", 60), ("61", 60), ("-3", 0), ("20", 20)])
    def test_max_news_items_clamped(self, monkeypatch, raw, expected):
        """The env override can lower the news cap but never raise it past 60."""
        monkeypatch.setenv("PULSE_MAX_NEWS_ITEMS", raw)
        assert load_config(dotenv=False).max_news_items == expected

    def test_retry_attempts_floor(self, monkeypatch):
        monkeypatch.setenv("PULSE_RETRY_ATTEMPTS", "0")
        assert load_config(dotenv=False).retry_attempts == 1

    def test_base_config_preserved(self):
        base = PipelineConfig(max_narrative_ideas=2, base_asset="solana")
        config = load_config(base, dotenv=False)

        assert config.max_narrative_ideas == 2
        assert config.base_asset == "solana"
        assert config is not base


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
