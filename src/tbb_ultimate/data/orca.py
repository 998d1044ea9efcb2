from typing import Optional
import aiohttp

from tbb_ultimate.data.http_source import HttpSource
from tbb_ultimate.utils.logger import TradingLogger

class OrcaClient(HttpSource):
    """Orca quote API used as an arbitrage price source"""

    name = "Orca"

    def __init__(self, base_url: str = "https://api.orca.so/v1/quote",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None,
                 slippage: float = 0.5):
        super().__init__(base_url, session, logger)
        self.slippage = slippage

    async def get_price(self, input_mint: str, output_mint: str, amount: int = 1_000_000) -> Optional[float]:
        """Exchange rate for the pair or None. Never raises."""
        if not input_mint or not output_mint:
            return None
        try:
            data = await self._get_json(self.base_url, params={
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": str(amount),
                "slippage": str(self.slippage),
            })
            if not isinstance(data, dict):
                return None
            if data.get("price") is not None:
                price = float(data["price"])
            elif data.get("outAmount") is not None:
                price = float(data["outAmount"]) / float(data.get("inAmount") or amount)
            else:
                return None
            return price if price > 0 else None
        except Exception as e:
            self.logger.debug(f"Orca price unavailable for {input_mint}/{output_mint}: {str(e)}")
            return None
