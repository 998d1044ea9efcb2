from typing import Any, Dict, Optional
import asyncio
import math

from tbb_ultimate.core.types import WalletBalance
from tbb_ultimate.execution.constants import SOL_MINT
from tbb_ultimate.utils.logger import TradingLogger

class PortfolioTracker:
    """Wallet balances valued in USD with Dexscreener prices"""

    def __init__(self, rpc, price_source, logger: Optional[TradingLogger] = None):
        self.rpc = rpc
        self.price_source = price_source
        self.logger = logger or TradingLogger("tbb_ultimate.portfolio")

    async def check_wallet_balance(self, owner: str) -> WalletBalance:
        return await self.rpc.get_wallet_balance(owner)

    async def _price(self, token_mint: str) -> Optional[float]:
        try:
            price = await self.price_source.get_price_usd(token_mint)
        except Exception as e:
            self.logger.debug(f"Price lookup for {token_mint} failed: {str(e)}")
            return None
        if price is None or not math.isfinite(price) or price <= 0:
            return None
        return float(price)

    async def track(self, owner: str) -> Dict[str, Any]:
        """
        Value every holding of a wallet. Tokens without a price are listed
        with a value of zero instead of failing the whole valuation.
        """
        balance = await self.check_wallet_balance(owner)

        prices = await asyncio.gather(
            self._price(SOL_MINT),
            *(self._price(holding.token_mint) for holding in balance.tokens),
        )
        sol_price = prices[0] or 0.0
        for holding, price in zip(balance.tokens, prices[1:]):
            holding.price_usd = price

        sol_value = balance.sol * sol_price
        total = sol_value + sum(holding.value_usd for holding in balance.tokens)
        unpriced = [h.token_mint for h in balance.tokens if h.price_usd is None]
        if unpriced:
            self.logger.warning(f"No USD price for {len(unpriced)} holdings of {owner}")

        self.logger.info(f"Portfolio of {owner}: ${total:,.2f}")
        return {
            "message": "Portfolio tracked successfully.",
            "sol": {"amount": balance.sol, "price": sol_price, "valueUsd": sol_value},
            "tokens": [holding.to_dict() for holding in balance.tokens],
            "totalValueUsd": total,
        }
