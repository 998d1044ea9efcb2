from collections import deque
from datetime import datetime
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Union
import inspect

from tbb_ultimate.analysis.indicators import quick_signal, technical_snapshot
from tbb_ultimate.risk.monitoring import BackgroundLoop
from tbb_ultimate.utils.logger import TradingLogger

TickCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]

class PriceWatcher(BackgroundLoop):
    """
    Periodic price and indicator readout for one token.

    Each tick appends the latest USD price to a rolling history, computes
    RSI/MACD/Bollinger over it and derives a BUY/SELL/HOLD hint from RSI.
    Ticks without a price are skipped.
    """

    kind = "price_watcher"

    def __init__(self, watcher_id: str, token_mint: str, price_source, interval_sec: float = 10.0,
                 on_tick: Optional[TickCallback] = None, history_size: int = 100,
                 rsi_oversold: float = 30.0, rsi_overbought: float = 70.0,
                 logger: Optional[TradingLogger] = None):
        super().__init__(watcher_id, interval_sec, logger, tick_immediately=True)
        self.token_mint = token_mint
        self.price_source = price_source
        self.on_tick = on_tick
        self.rsi_oversold = rsi_oversold
        self.rsi_overbought = rsi_overbought
        self.history: Deque[float] = deque(maxlen=history_size)
        self.last_tick: Optional[Dict[str, Any]] = None

    async def tick(self) -> bool:
        data = await self.price_source.get_token_data(self.token_mint)
        price = data.get("priceUsd") if isinstance(data, dict) else None
        if price is None:
            self.logger.debug(f"No price for {self.token_mint}: {data.get('error') if isinstance(data, dict) else data}")
            return True

        self.history.append(float(price))
        indicators = technical_snapshot(list(self.history))
        tick = {
            "timestamp": datetime.now(),
            "token_mint": self.token_mint,
            "price": float(price),
            "indicators": indicators,
            "signal": quick_signal(indicators.get("rsi"), self.rsi_oversold, self.rsi_overbought),
        }
        self.last_tick = tick
        self.logger.info(f"{self.token_mint} price {price} signal {tick['signal']}")

        if self.on_tick is not None:
            result = self.on_tick(tick)
            if inspect.isawaitable(result):
                await result
        return True
