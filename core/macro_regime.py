"""
Macro Regime Estimator for Pulse Terminal.
Derives trend, volatility and liquidity labels from two reference assets.
"""

import logging
import math
from typing import Any, Mapping, Optional

from storage.models import (
    LiquidityLabel,
    MacroSnapshot,
    PriceQuote,
    TrendLabel,
    VolatilityLabel,
)

logger = logging.getLogger(__name__)


TREND_DESCRIPTIONS = {
    TrendLabel.STRONG_BULL: "BTC/ETH show strong upside over the last 24h.",
    TrendLabel.MILD_BULL: "Upside bias with modest 24h gains.",
    TrendLabel.SIDEWAYS: "Major pairs trade flat on the day.",
    TrendLabel.MILD_BEAR: "Downside bias with controlled drawdown.",
    TrendLabel.STRONG_BEAR: "Heavy downside pressure in majors over the last 24h.",
}

VOLATILITY_DESCRIPTIONS = {
    VolatilityLabel.CALM: "24h realised volatility is subdued in majors.",
    VolatilityLabel.ELEVATED: "Realised volatility is elevated vs. typical sessions.",
    VolatilityLabel.HIGH_STRESS: "Large 24h moves imply stressed volatility conditions.",
}

LIQUIDITY_DESCRIPTIONS = {
    LiquidityLabel.UNKNOWN: "Awaiting volume data.",
    LiquidityLabel.THINNER: "Volumes are lighter than usual, watch for slippage.",
    LiquidityLabel.NORMAL: "Liquidity looks in line with recent averages.",
    LiquidityLabel.DEEP: "Liquidity conditions are strong across BTC & ETH.",
}

# Thresholds (percent for changes, USD for volume); all comparisons are strict
STRONG_TREND_PCT = 3.0
MILD_TREND_PCT = 1.0
HIGH_STRESS_PCT = 4.0
ELEVATED_PCT = 2.0
DEEP_VOLUME_USD = 50_000_000_000
NORMAL_VOLUME_USD = 20_000_000_000


def _as_number(value: Any) -> float:
    """Coerce an input to float; missing or invalid values count as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def trend_label(avg_change: float) -> TrendLabel:
    if avg_change > STRONG_TREND_PCT:
        return TrendLabel.STRONG_BULL
    elif avg_change > MILD_TREND_PCT:
        return TrendLabel.MILD_BULL
    elif avg_change < -STRONG_TREND_PCT:
        return TrendLabel.STRONG_BEAR
    elif avg_change < -MILD_TREND_PCT:
        return TrendLabel.MILD_BEAR
    return TrendLabel.SIDEWAYS


def volatility_label(avg_change: float) -> VolatilityLabel:
    move = abs(avg_change)
    if move > HIGH_STRESS_PCT:
        return VolatilityLabel.HIGH_STRESS
    elif move > ELEVATED_PCT:
        return VolatilityLabel.ELEVATED
    return VolatilityLabel.CALM


def liquidity_label(total_volume: float) -> LiquidityLabel:
    if total_volume > DEEP_VOLUME_USD:
        return LiquidityLabel.DEEP
    elif total_volume > NORMAL_VOLUME_USD:
        return LiquidityLabel.NORMAL
    elif total_volume > 0:
        return LiquidityLabel.THINNER
    return LiquidityLabel.UNKNOWN


def estimate_regime(
    change_1: Any,
    change_2: Any,
    volume_1: Any = 0.0,
    volume_2: Any = 0.0,
) -> MacroSnapshot:
    """
    Estimate the macro regime from two reference assets.

    Args:
        change_1: 24h % change of the base-layer coin
        change_2: 24h % change of the smart-contract-platform coin
        volume_1: 24h USD volume of the base-layer coin
        volume_2: 24h USD volume of the smart-contract-platform coin

    Returns:
        MacroSnapshot; missing inputs degrade to Sideways/Calm/Unknown
    """
    avg_change = (_as_number(change_1) + _as_number(change_2)) / 2
    total_volume = _as_number(volume_1) + _as_number(volume_2)

    trend = trend_label(avg_change)
    volatility = volatility_label(avg_change)
    liquidity = liquidity_label(total_volume)

    return MacroSnapshot(
        trend_label=trend,
        trend_desc=TREND_DESCRIPTIONS[trend],
        volatility_label=volatility,
        volatility_desc=VOLATILITY_DESCRIPTIONS[volatility],
        liquidity_label=liquidity,
        liquidity_desc=LIQUIDITY_DESCRIPTIONS[liquidity],
        avg_change=avg_change,
        total_volume=total_volume,
    )


def default_regime() -> MacroSnapshot:
    """Safe-default regime used before prices arrive or after a failed fetch."""
    return estimate_regime(0.0, 0.0, 0.0, 0.0)


def regime_from_prices(
    prices: Optional[Mapping[str, PriceQuote]],
    base_asset: str = "bitcoin",
    platform_asset: str = "ethereum",
) -> MacroSnapshot:
    """Estimate the regime from a price snapshot keyed by asset id."""
    if not prices:
        logger.warning("No macro price data, using default regime")
        return default_regime()

    base = prices.get(base_asset) or PriceQuote(base_asset)
    platform = prices.get(platform_asset) or PriceQuote(platform_asset)

    snapshot = estimate_regime(
        base.change_24h_pct,
        platform.change_24h_pct,
        base.volume_24h_usd,
        platform.volume_24h_usd,
    )
    logger.info(
        f"Macro regime: {snapshot.trend_label.value} / "
        f"{snapshot.volatility_label.value} / {snapshot.liquidity_label.value}"
    )
    return snapshot
