from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
from typing import Deque, Optional
import uuid

from tbb_ultimate.execution.constants import SOL_MINT
from tbb_ultimate.utils.logger import TradingLogger

@dataclass
class SimulatedTransaction:
    action: str  # 'SWAP' or 'PUMP_BUY' / 'PUMP_SELL'
    input_mint: str
    output_mint: str
    amount: int
    signature: str
    timestamp: datetime = field(default_factory=datetime.now)

class DryRunExecutor:
    """Stands in for the swap and pump.fun executors without touching the network"""

    def __init__(self, logger: Optional[TradingLogger] = None, max_transactions: int = 1000):
        self.logger = logger or TradingLogger("tbb_ultimate.dry_run")
        self.transactions: Deque[SimulatedTransaction] = deque(maxlen=max_transactions)

    def _record(self, action: str, input_mint: str, output_mint: str, amount: int) -> str:
        if not input_mint or not output_mint:
            raise ValueError("Swap requires both inputMint and outputMint.")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError("Swap amount must be a positive integer.")

        signature = f"dryrun-{uuid.uuid4().hex}"
        self.transactions.append(SimulatedTransaction(
            action=action,
            input_mint=input_mint,
            output_mint=output_mint,
            amount=amount,
            signature=signature,
        ))
        self.logger.info(f"Dry run - {action} {amount} {input_mint} -> {output_mint}: {signature}")
        return signature

    async def swap(self, input_mint: str, output_mint: str, amount: int, slippage_bps: Optional[int] = None) -> str:
        return self._record("SWAP", input_mint, output_mint, amount)

    async def buy(self, token_mint: str, amount: int) -> str:
        return await self.swap(SOL_MINT, token_mint, amount)

    async def sell(self, token_mint: str, amount: int) -> str:
        return await self.swap(token_mint, SOL_MINT, amount)

    async def trade(self, token_mint: str, action: str, amount: int) -> str:
        """Simulated pump.fun trade"""
        if action not in ("buy", "sell"):
            raise ValueError("Action must be 'buy' or 'sell'.")
        if action == "buy":
            return self._record("PUMP_BUY", SOL_MINT, token_mint, amount)
        return self._record("PUMP_SELL", token_mint, SOL_MINT, amount)
