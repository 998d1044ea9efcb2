"""
Shared fixtures and in-memory fakes for the external collaborators:
price sources, swap executor, pump.fun trader, discovery feed and
sentiment. Nothing here touches the network.
"""

import asyncio
from typing import List, Optional

import pytest

from tbb_ultimate.core.types import DiscoveredToken, SentimentScore
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.utils.config import StrategyConfig
from tbb_ultimate.utils.logger import TradingLogger

TOKEN_MINT = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"

class FakeSwapExecutor:
    def __init__(self, fail: bool = False, block: Optional[asyncio.Event] = None):
        self.calls: List[tuple] = []
        self.fail = fail
        self.block = block

    async def swap(self, input_mint, output_mint, amount, slippage_bps=None):
        self.calls.append(("swap", input_mint, output_mint, amount))
        if self.block is not None:
            await self.block.wait()
        if self.fail:
            raise RuntimeError("Swap failed: submit: node unhealthy")
        return f"sig-{len(self.calls)}"

    async def buy(self, token_mint, amount):
        self.calls.append(("buy", token_mint, amount))
        if self.fail:
            raise RuntimeError("Swap failed: quote: no route")
        return f"sig-{len(self.calls)}"

    async def sell(self, token_mint, amount):
        self.calls.append(("sell", token_mint, amount))
        if self.fail:
            raise RuntimeError("Swap failed: quote: no route")
        return f"sig-{len(self.calls)}"

    @property
    def swaps(self):
        return [c for c in self.calls if c[0] == "swap"]

class FakePumpTrader:
    def __init__(self):
        self.calls: List[tuple] = []

    async def trade(self, token_mint, action, amount):
        self.calls.append((token_mint, action, amount))
        return f"pump-sig-{len(self.calls)}"

class FakePriceSource:
    """
    Dexscreener stand-in. Serves prices from a script; the last entry
    repeats. An entry may be None (no data) or an exception instance.
    """

    def __init__(self, prices):
        self.prices = list(prices)
        self.calls = 0

    def _next(self):
        index = min(self.calls, len(self.prices) - 1)
        self.calls += 1
        value = self.prices[index]
        if isinstance(value, Exception):
            raise value
        return value

    async def get_token_data(self, token_mint):
        value = self._next()
        if value is None:
            return {"error": f"No pairs found for {token_mint}"}
        return {"priceUsd": value}

    async def get_price_usd(self, token_mint):
        return self._next()

class FakeQuoteSource:
    def __init__(self, name, price=None, error: Optional[Exception] = None):
        self.name = name
        self.price = price
        self.error = error
        self.calls = 0

    async def get_price(self, input_mint, output_mint, amount):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.price

class FakeTokenFeed:
    def __init__(self, tokens=None):
        self.tokens = list(tokens or [])

    async def get_real_time_tokens(self):
        return list(self.tokens)

class FakeSentiment:
    def __init__(self, score: Optional[SentimentScore] = None):
        self.score = score or SentimentScore()
        self.calls = 0

    async def analyze(self, symbol):
        self.calls += 1
        return self.score

class ConfirmRecorder:
    def __init__(self, answer: bool = True):
        self.answer = answer
        self.messages: List[str] = []

    async def __call__(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer

async def wait_until(predicate, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)

@pytest.fixture
def logger():
    return TradingLogger("tbb_ultimate.tests")

@pytest.fixture
async def tracker(logger):
    tracker = PositionTracker(logger)
    yield tracker
    await tracker.stop_all()

@pytest.fixture
def strategy_config():
    return StrategyConfig(auto_trade_enabled=True, monitor_interval_sec=0.01)

@pytest.fixture
def swap_executor():
    return FakeSwapExecutor()

@pytest.fixture
def token():
    return DiscoveredToken(token_mint=TOKEN_MINT, name="Moon Dog", symbol="MDOG")
