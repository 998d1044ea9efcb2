from typing import Any, Dict, List, Optional
import math
import aiohttp

from tbb_ultimate.data.http_source import HttpSource
from tbb_ultimate.utils.logger import TradingLogger

def _safe_float(value: Any, default: float = 0.0) -> float:
    """Safely convert value to float."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

class DexscreenerClient(HttpSource):
    """Dexscreener public API. Source of USD prices for entry, polling and sampling."""

    name = "Dexscreener"

    def __init__(self, base_url: str = "https://api.dexscreener.com/latest/dex",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None,
                 chain: str = "solana"):
        super().__init__(base_url, session, logger)
        self.chain = chain

    async def get_token_info(self, address: str) -> Dict[str, Any]:
        """Raw token lookup: all pairs trading the token"""
        return await self._get_json(f"{self.base_url}/tokens/{address}")

    async def get_pair_info(self, pair_address: str) -> Dict[str, Any]:
        return await self._get_json(f"{self.base_url}/pairs/{self.chain}/{pair_address}")

    async def search_token(self, query: str) -> Dict[str, Any]:
        return await self._get_json(f"{self.base_url}/search", params={"q": query})

    @staticmethod
    def _liquidity_usd(pair: Dict[str, Any]) -> float:
        liquidity = pair.get("liquidity")
        if not isinstance(liquidity, dict):
            return 0.0
        usd = _safe_float(liquidity.get("usd"))
        return usd if math.isfinite(usd) else 0.0

    def _select_pair(self, pairs: List[Any]) -> Optional[Dict[str, Any]]:
        # Most liquid pair on our chain
        on_chain = [p for p in pairs if isinstance(p, dict) and p.get("chainId", self.chain) == self.chain]
        if not on_chain:
            return None
        return max(on_chain, key=self._liquidity_usd)

    async def get_token_data(self, token_mint: str) -> Dict[str, Any]:
        """
        Normalised token snapshot.

        Returns a dict with a float ``priceUsd`` and pair details, or
        ``{"error": ...}`` when the token has no usable data. Network
        failures are reported the same way.
        """
        if not token_mint:
            return {"error": "Token mint is required."}
        try:
            data = await self.get_token_info(token_mint)
        except Exception as e:
            return {"error": f"Failed to fetch Dexscreener data: {str(e)}"}

        pairs = data.get("pairs") if isinstance(data, dict) else None
        if not isinstance(pairs, list) or not pairs:
            return {"error": f"No pairs found for {token_mint}"}

        pair = self._select_pair(pairs)
        if pair is None:
            return {"error": f"No {self.chain} pairs found for {token_mint}"}

        price_usd = _safe_float(pair.get("priceUsd"), default=math.nan)
        if not math.isfinite(price_usd) or price_usd <= 0:
            return {"error": f"Invalid price data for {token_mint}"}

        volume = pair.get("volume") if isinstance(pair.get("volume"), dict) else {}
        txns = pair.get("txns") if isinstance(pair.get("txns"), dict) else {}
        price_change = pair.get("priceChange") if isinstance(pair.get("priceChange"), dict) else {}
        return {
            "priceUsd": price_usd,
            "liquidityUsd": self._liquidity_usd(pair),
            "volume24h": volume.get("h24"),
            "volume": volume,
            "dexId": pair.get("dexId"),
            "pairAddress": pair.get("pairAddress"),
            "priceChange": price_change,
            "txnsH24": txns.get("h24"),
            "pairCreatedAt": pair.get("pairCreatedAt"),
            "raw": pair,
        }

    async def get_price_usd(self, token_mint: str) -> Optional[float]:
        """Current USD price or None"""
        data = await self.get_token_data(token_mint)
        return data.get("priceUsd")
