from typing import Any, Dict, Optional
import aiohttp

from tbb_ultimate.core.errors import NetworkError, QuoteError, TransactionBuildError
from tbb_ultimate.core.types import SwapQuote
from tbb_ultimate.data.http_source import HttpSource
from tbb_ultimate.utils.logger import TradingLogger

class JupiterClient(HttpSource):
    """Jupiter v6 quote and swap-build API. Primary route source for swaps."""

    name = "Jupiter"

    def __init__(self, base_url: str = "https://quote-api.jup.ag/v6",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None):
        super().__init__(base_url, session, logger)

    async def get_quote(self, input_mint: str, output_mint: str, amount: int, slippage_bps: int = 50) -> SwapQuote:
        """Fetch the best route for a pair. Raises QuoteError when no route exists."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        try:
            data = await self._get_json(f"{self.base_url}/quote", params=params)
        except NetworkError as e:
            raise QuoteError(f"No quote available: {str(e)}") from e

        if not isinstance(data, dict) or data.get("error") or "outAmount" not in data:
            error = data.get("error") if isinstance(data, dict) else None
            raise QuoteError(f"No route found for {input_mint} -> {output_mint}: {error or 'empty response'}")

        return SwapQuote(
            input_mint=input_mint,
            output_mint=output_mint,
            in_amount=int(data.get("inAmount", amount)),
            out_amount=int(data["outAmount"]),
            slippage_bps=slippage_bps,
            route=data,
        )

    async def build_swap_transaction(self, quote: SwapQuote, user_public_key: str) -> str:
        """Build an unsigned swap transaction for the route, returned base64 encoded"""
        payload: Dict[str, Any] = {
            "quoteResponse": quote.route,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
        }
        try:
            data = await self._post_json(f"{self.base_url}/swap", payload)
        except NetworkError as e:
            raise TransactionBuildError(f"Failed to build Jupiter swap transaction: {str(e)}") from e

        swap_transaction = data.get("swapTransaction") if isinstance(data, dict) else None
        if not swap_transaction:
            raise TransactionBuildError("Jupiter swap response did not contain a transaction")
        return swap_transaction

    async def get_price(self, input_mint: str, output_mint: str, amount: int = 1_000_000) -> Optional[float]:
        """Quoted exchange rate for the pair, None when no route exists"""
        try:
            quote = await self.get_quote(input_mint, output_mint, amount)
        except Exception as e:
            self.logger.debug(f"Jupiter price unavailable for {input_mint}/{output_mint}: {str(e)}")
            return None
        return quote.price if quote.price > 0 else None
