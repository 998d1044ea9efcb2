from typing import Optional
import aiohttp

from tbb_ultimate.data.http_source import HttpSource
from tbb_ultimate.utils.logger import TradingLogger

class RaydiumClient(HttpSource):
    """Raydium SDK quote API used as an arbitrage price source"""

    name = "Raydium"

    def __init__(self, base_url: str = "https://api.raydium.io/v2/sdk/quote",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None):
        super().__init__(base_url, session, logger)

    async def get_price(self, input_mint: str, output_mint: str, amount: int = 1_000_000) -> Optional[float]:
        """Exchange rate for the pair or None. Never raises."""
        if not input_mint or not output_mint:
            return None
        try:
            data = await self._get_json(self.base_url, params={
                "inputMint": input_mint,
                "outputMint": output_mint,
            })
            payload = data.get("data") if isinstance(data, dict) else None
            price = payload.get("price") if isinstance(payload, dict) else None
            if not price:
                return None
            return float(price)
        except Exception as e:
            self.logger.debug(f"Raydium price unavailable for {input_mint}/{output_mint}: {str(e)}")
            return None
