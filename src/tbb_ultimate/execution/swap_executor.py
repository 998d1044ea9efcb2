from typing import Optional

from tbb_ultimate.core.errors import SwapError
from tbb_ultimate.data.jupiter import JupiterClient
from tbb_ultimate.execution.constants import SOL_MINT
from tbb_ultimate.execution.transaction_sender import TransactionSender
from tbb_ultimate.utils.logger import TradingLogger

class SwapExecutor:
    """Quote -> build -> sign -> submit -> confirm, through Jupiter"""

    def __init__(self, jupiter: JupiterClient, sender: TransactionSender,
                 logger: Optional[TradingLogger] = None, default_slippage_bps: int = 50):
        self.jupiter = jupiter
        self.sender = sender
        self.logger = logger or TradingLogger("tbb_ultimate.swap")
        self.default_slippage_bps = default_slippage_bps

    async def swap(self, input_mint: str, output_mint: str, amount: int, slippage_bps: Optional[int] = None) -> str:
        """Execute a swap and return the confirmed transaction signature"""
        if not input_mint or not output_mint:
            raise ValueError("Swap requires both inputMint and outputMint.")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError("Swap amount must be a positive integer.")
        slippage_bps = self.default_slippage_bps if slippage_bps is None else slippage_bps

        self.logger.info(f"Swapping {amount} {input_mint} -> {output_mint} (slippage {slippage_bps} bps)")

        try:
            quote = await self.jupiter.get_quote(input_mint, output_mint, amount, slippage_bps)
        except Exception as e:
            raise SwapError(f"Swap failed: quote: {str(e)}") from e
        self.logger.info(f"Quote received: {quote.in_amount} -> {quote.out_amount}")

        try:
            serialized = await self.jupiter.build_swap_transaction(quote, str(self.sender.wallet.pubkey()))
        except Exception as e:
            raise SwapError(f"Swap failed: build: {str(e)}") from e

        try:
            signature = await self.sender.send_and_confirm(serialized)
        except Exception as e:
            raise SwapError(f"Swap failed: submit: {str(e)}") from e

        self.logger.info(f"Swap confirmed: {signature}")
        return signature

    async def buy(self, token_mint: str, amount: int) -> str:
        """Spend `amount` lamports of SOL on `token_mint`"""
        return await self.swap(SOL_MINT, token_mint, amount)

    async def sell(self, token_mint: str, amount: int) -> str:
        """Sell `amount` base units of `token_mint` for SOL"""
        return await self.swap(token_mint, SOL_MINT, amount)
