from typing import Optional
import aiohttp

from tbb_ultimate.core.types import SentimentScore
from tbb_ultimate.data.http_source import HttpSource
from tbb_ultimate.utils.logger import TradingLogger

class SentimentClient(HttpSource):
    """Social sentiment endpoint returning bullish/bearish/neutral percentages"""

    name = "Sentiment"

    def __init__(self, base_url: str = "http://localhost:3000/plugin-twitter/sentiment",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None):
        super().__init__(base_url, session, logger)

    async def analyze(self, symbol: str) -> SentimentScore:
        """Sentiment for a symbol. Falls back to 50/25/25 on any failure."""
        try:
            data = await self._get_json(self.base_url, params={"symbol": symbol})
            return SentimentScore(
                bullish=float(data.get("bullish", 50)),
                bearish=float(data.get("bearish", 25)),
                neutral=float(data.get("neutral", 25)),
            )
        except Exception as e:
            self.logger.warning(f"Sentiment unavailable for {symbol}, using defaults: {str(e)}")
            return SentimentScore()
