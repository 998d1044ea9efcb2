from collections import deque
from typing import Deque, Optional

from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.risk.monitoring import BackgroundLoop
from tbb_ultimate.utils.logger import TradingLogger

ACTIONS = ("buy", "sell")

class AutoBuySellLoop(BackgroundLoop):
    """Buys or sells a fixed amount of one token every interval"""

    kind = "auto_buy_sell"

    def __init__(self, loop_id: str, token_mint: str, action: str, amount: int, swap_executor,
                 interval_sec: float = 60.0, logger: Optional[TradingLogger] = None,
                 history_size: int = 100):
        if not token_mint:
            raise StrategyValidationError("Token mint is required.")
        if action not in ACTIONS:
            raise StrategyValidationError("Action must be 'buy' or 'sell'.")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise StrategyValidationError("Amount must be a positive integer.")
        super().__init__(loop_id, interval_sec, logger, tick_immediately=True)
        self.token_mint = token_mint
        self.action = action
        self.amount = amount
        self.swap_executor = swap_executor
        self.signatures: Deque[str] = deque(maxlen=history_size)
        self.failures = 0

    async def tick(self) -> bool:
        try:
            if self.action == "buy":
                signature = await self.swap_executor.buy(self.token_mint, self.amount)
            else:
                signature = await self.swap_executor.sell(self.token_mint, self.amount)
            self.signatures.append(signature)
            self.logger.info(f"Auto {self.action} of {self.amount} {self.token_mint}: {signature}")
        except Exception as e:
            self.failures += 1
            self.logger.error(f"Auto {self.action} of {self.token_mint} failed: {str(e)}")
        return True
