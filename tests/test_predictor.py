import pytest

from tbb_ultimate.analysis.predictor import PredictionEvaluator
from tbb_ultimate.core.errors import PredictionError, StrategyValidationError
from tbb_ultimate.core.types import Prediction, SentimentScore
from tbb_ultimate.utils.config import PredictionConfig

from conftest import TOKEN_MINT, FakePriceSource, FakeSentiment

async def no_sleep(_):
    return None

def falling(n=30, start=10.0, step=0.2):
    return [start - i * step for i in range(n)]

def rising(n=30, start=1.0, step=0.2):
    return [start + i * step for i in range(n)]

def evaluator(prices, sentiment=None, **config):
    sentiment = sentiment or FakeSentiment()
    predictor = PredictionEvaluator(
        FakePriceSource(prices), sentiment, PredictionConfig(**config), sleep=no_sleep,
    )
    return predictor, sentiment

async def test_too_few_samples_hold_without_sentiment():
    prices = [1.0] * 14 + [None] * 16
    predictor, sentiment = evaluator(prices + [None])

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert result.prediction == Prediction.HOLD
    assert result.confidence == 0
    assert result.reason == "Insufficient price data"
    assert sentiment.calls == 0

async def test_failed_samples_are_skipped():
    prices = [RuntimeError("429")] * 10 + falling(20)
    predictor, sentiment = evaluator(prices, FakeSentiment(SentimentScore(80, 10, 10)))

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert sentiment.calls == 1
    assert result.prediction == Prediction.LONG

async def test_long_on_oversold_and_bullish():
    predictor, _ = evaluator(falling(), FakeSentiment(SentimentScore(70, 20, 10)))

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    # A strictly falling series has RSI 0
    assert result.indicators["rsi"] == 0
    assert result.prediction == Prediction.LONG
    assert result.confidence == pytest.approx(0.7)

async def test_short_on_overbought_and_bearish():
    predictor, _ = evaluator(rising(), FakeSentiment(SentimentScore(10, 60, 30)))

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert result.indicators["rsi"] == 100
    assert result.prediction == Prediction.SHORT
    assert result.confidence == pytest.approx(0.6)

async def test_no_signal_uses_confidence_floor():
    predictor, _ = evaluator(falling(), FakeSentiment(SentimentScore(20, 40, 40)), min_confidence=0.25)

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert result.prediction == Prediction.HOLD
    assert result.confidence == 0.25

@pytest.mark.parametrize("prices,score", [
    (falling(), SentimentScore(100, 0, 0)),
    (rising(), SentimentScore(0, 100, 0)),
    ([1.0, 1.1] * 15, SentimentScore()),
    (falling(16), SentimentScore(51, 49, 0)),
])
async def test_confidence_bounds(prices, score):
    predictor, _ = evaluator(prices, FakeSentiment(score))

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert 0 < result.confidence <= 1

async def test_short_history_reports_missing_indicators():
    predictor, _ = evaluator(falling(16))

    result = await predictor.predict(TOKEN_MINT, "MDOG")

    assert result.indicators["rsi"] is not None
    assert result.indicators["macd"] is None
    assert result.indicators["bb"] is None

@pytest.mark.parametrize("token_mint,symbol", [("", "MDOG"), (TOKEN_MINT, "")])
async def test_requires_token_and_symbol(token_mint, symbol):
    predictor, _ = evaluator([1.0])

    with pytest.raises(StrategyValidationError):
        await predictor.predict(token_mint, symbol)

async def test_unexpected_failure_is_wrapped():
    class BrokenSentiment:
        async def analyze(self, symbol):
            raise KeyError("bullish")

    predictor, _ = evaluator(falling(), BrokenSentiment())

    with pytest.raises(PredictionError, match="^Failed to execute prediction"):
        await predictor.predict(TOKEN_MINT, "MDOG")
