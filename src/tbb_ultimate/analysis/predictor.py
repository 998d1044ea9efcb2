import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from tbb_ultimate.analysis.indicators import technical_snapshot
from tbb_ultimate.core.errors import PredictionError, StrategyValidationError
from tbb_ultimate.core.types import Prediction, PredictionResult
from tbb_ultimate.utils.config import PredictionConfig
from tbb_ultimate.utils.logger import TradingLogger

def _valid_price(data: Any) -> Optional[float]:
    if not isinstance(data, dict):
        return None
    price = data.get("priceUsd")
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return None
    return float(price)

class PredictionEvaluator:
    """
    Combines technical indicators and social sentiment into a
    LONG / SHORT / HOLD call with a confidence in (0, 1].

    Prices are sampled one request at a time with a fixed delay between
    requests. Failed samples are dropped; with too few left the result is
    HOLD with zero confidence and sentiment is never queried.
    """

    def __init__(self, price_source, sentiment_source, config: Optional[PredictionConfig] = None,
                 logger: Optional[TradingLogger] = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.price_source = price_source
        self.sentiment_source = sentiment_source
        self.config = config or PredictionConfig()
        self.logger = logger or TradingLogger("tbb_ultimate.predictor")
        self._sleep = sleep

    async def collect_prices(self, token_mint: str) -> List[float]:
        prices: List[float] = []
        for _ in range(self.config.sample_count):
            try:
                price = _valid_price(await self.price_source.get_token_data(token_mint))
                if price is not None:
                    prices.append(price)
            except Exception as e:
                self.logger.debug(f"Dropping price sample for {token_mint}: {str(e)}")

            await self._sleep(self.config.sample_delay_sec)
        return prices

    async def predict(self, token_mint: str, symbol: str) -> PredictionResult:
        if not token_mint:
            raise StrategyValidationError("Token mint is required for prediction.")
        if not symbol:
            raise StrategyValidationError("Symbol is required for prediction.")

        try:
            prices = await self.collect_prices(token_mint)

            if len(prices) < self.config.min_samples:
                self.logger.info(
                    f"Only {len(prices)} price samples for {symbol}, need {self.config.min_samples}. Holding."
                )
                return PredictionResult(
                    prediction=Prediction.HOLD,
                    confidence=0.0,
                    reason="Insufficient price data",
                )

            indicators = technical_snapshot(prices)
            sentiment = await self.sentiment_source.analyze(symbol)
            rsi = indicators.get("rsi")

            prediction = Prediction.HOLD
            confidence = 0.0
            if rsi is not None:
                if rsi < self.config.rsi_oversold and sentiment.bullish_ratio > 0.5:
                    prediction = Prediction.LONG
                    confidence = ((self.config.rsi_oversold - rsi) / self.config.rsi_oversold) * sentiment.bullish_ratio
                elif rsi > self.config.rsi_overbought and sentiment.bearish_ratio > 0.5:
                    prediction = Prediction.SHORT
                    confidence = ((rsi - self.config.rsi_overbought) / (100 - self.config.rsi_overbought)) * sentiment.bearish_ratio

            if confidence <= 0:
                confidence = self.config.min_confidence
            confidence = min(confidence, 1.0)

            self.logger.info(f"Prediction for {symbol}: {prediction.value} ({confidence:.2f}), RSI {rsi}")
            return PredictionResult(
                prediction=prediction,
                confidence=confidence,
                indicators=indicators,
                sentiment=sentiment.to_dict(),
            )
        except Exception as e:
            raise PredictionError(f"Failed to execute prediction: {str(e)}") from e
