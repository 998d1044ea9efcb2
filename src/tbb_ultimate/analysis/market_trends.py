from typing import Any, Dict, Optional
import math

from tbb_ultimate.utils.logger import TradingLogger

def classify_trend(change_pct: float, threshold_pct: float = 10.0) -> str:
    if change_pct > threshold_pct:
        return "uptrend"
    if change_pct < -threshold_pct:
        return "downtrend"
    return "sideways"

def _number(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None

class MarketTrendAnalyzer:
    """
    Trend summary from the Dexscreener snapshot of a token.

    The trend follows the 24h price change. A volume spike means the last
    hour traded more than ``spike_ratio`` times the average hourly volume
    of the last 24h.
    """

    def __init__(self, price_source, logger: Optional[TradingLogger] = None,
                 trend_threshold_pct: float = 10.0, spike_ratio: float = 2.0):
        self.price_source = price_source
        self.logger = logger or TradingLogger("tbb_ultimate.market_trends")
        self.trend_threshold_pct = trend_threshold_pct
        self.spike_ratio = spike_ratio

    async def analyze(self, token_mint: str) -> Dict[str, Any]:
        """Returns the trend summary or ``{"error": ...}``"""
        data = await self.price_source.get_token_data(token_mint)
        if "error" in data:
            return {"error": data["error"]}

        change = data.get("priceChange") or {}
        change_24h = _number(change.get("h24"))
        if change_24h is None:
            return {"error": "Not enough price history for trend analysis."}

        volume = data.get("volume") or {}
        volume_24h = _number(volume.get("h24"))
        volume_1h = _number(volume.get("h1"))
        volume_spike = bool(
            volume_24h and volume_1h is not None
            and volume_1h > self.spike_ratio * volume_24h / 24
        )

        trend = classify_trend(change_24h, self.trend_threshold_pct)
        self.logger.info(f"{token_mint}: {trend}, 24h change {change_24h:.2f}%, volume spike {volume_spike}")
        return {
            "message": "Market trends analyzed.",
            "priceChange24h": change_24h,
            "priceChange6h": _number(change.get("h6")),
            "priceChange1h": _number(change.get("h1")),
            "volumeSpike": volume_spike,
            "trend": trend,
        }
