import asyncio

import pytest

from tbb_ultimate.analysis.predictor import PredictionEvaluator
from tbb_ultimate.analysis.scam_check import ScamCheckResult
from tbb_ultimate.core.aggregator import QuoteAggregator
from tbb_ultimate.core.errors import StrategyExecutionError, StrategyValidationError
from tbb_ultimate.core.types import (
    Direction, Prediction, PredictionResult, ResultStatus, StrategyRequest,
)
from tbb_ultimate.execution.constants import DAO_TOKEN_MINT, SOL_MINT, USDC_MINT
from tbb_ultimate.risk.monitoring import LoopStatus
from tbb_ultimate.strategies.arbitrage_strategy import ArbitrageStrategy
from tbb_ultimate.strategies.base_strategy import ENTRY_PRICE_ERROR
from tbb_ultimate.strategies.dao_strategy import DaoStrategy
from tbb_ultimate.strategies.degen_strategy import DegenStrategy
from tbb_ultimate.strategies.predictive_strategy import PredictiveStrategy
from tbb_ultimate.strategies.safe_strategy import SafeStrategy
from tbb_ultimate.utils.config import StrategyConfig

from conftest import (
    TOKEN_MINT, ConfirmRecorder, FakePriceSource, FakePumpTrader, FakeQuoteSource,
    FakeSwapExecutor, FakeTokenFeed, wait_until,
)

class FixedPredictor:
    def __init__(self, prediction: Prediction, confidence: float = 0.6):
        self.result = PredictionResult(prediction=prediction, confidence=confidence)
        self.calls = 0

    async def predict(self, token_mint, symbol):
        self.calls += 1
        return self.result

def arbitrage(swap_executor, tracker, config, prices=(1.00, 1.05, 1.06), price_source=None):
    sources = [FakeQuoteSource(name, price) for name, price in zip(("Jupiter", "Orca", "Raydium"), prices)]
    return ArbitrageStrategy(
        QuoteAggregator(sources, config.arbitrage_spread_threshold),
        swap_executor, price_source or FakePriceSource([1.0]), tracker, config,
    )

def build_strategies(swap_executor, tracker, config, token, prediction=Prediction.LONG):
    price_source = FakePriceSource([1.0])
    return {
        "arbitrage": (
            arbitrage(swap_executor, tracker, config, price_source=price_source),
            StrategyRequest(input_mint=SOL_MINT, output_mint=USDC_MINT, amount=5000,
                            stop_loss_percent=5, take_profit_percent=5),
        ),
        "dao": (
            DaoStrategy(swap_executor, price_source, tracker, config),
            StrategyRequest(amount=5000),
        ),
        "degen": (
            DegenStrategy(FakeTokenFeed([token]), FakePumpTrader(), swap_executor, price_source, tracker, config),
            StrategyRequest(amount=5000, stop_loss_percent=20, take_profit_percent=50),
        ),
        "safe": (
            SafeStrategy(swap_executor, price_source, tracker, config),
            StrategyRequest(token_mint=USDC_MINT, amount=5000, stop_loss_percent=5, take_profit_percent=10),
        ),
        "predictive": (
            PredictiveStrategy(FixedPredictor(prediction), swap_executor, price_source, tracker, config),
            StrategyRequest(token_mint=TOKEN_MINT, symbol="MDOG", amount=5000,
                            stop_loss_percent=5, take_profit_percent=10),
        ),
    }

STRATEGY_NAMES = ("arbitrage", "dao", "degen", "safe", "predictive")

@pytest.mark.parametrize("name", STRATEGY_NAMES)
async def test_declined_confirmation_executes_nothing(name, swap_executor, tracker, strategy_config, token):
    strategy, request = build_strategies(swap_executor, tracker, strategy_config, token)[name]
    confirm = ConfirmRecorder(answer=False)
    request.confirm = confirm

    result = await strategy.execute(request)

    assert result.status == ResultStatus.CANCELLED
    assert len(confirm.messages) == 1
    assert swap_executor.calls == []
    assert getattr(strategy, "pump_trader", FakePumpTrader()).calls == []
    assert tracker.list_ids() == []

@pytest.mark.parametrize("name", STRATEGY_NAMES)
async def test_confirmation_message_describes_trade(name, swap_executor, tracker, strategy_config, token):
    strategy, request = build_strategies(swap_executor, tracker, strategy_config, token)[name]
    confirm = ConfirmRecorder(answer=False)
    request.confirm = confirm

    await strategy.execute(request)

    message = confirm.messages[0]
    assert "5000" in message
    expected_token = {
        "arbitrage": SOL_MINT,
        "dao": DAO_TOKEN_MINT,
        "degen": token.token_mint,
        "safe": USDC_MINT,
        "predictive": TOKEN_MINT,
    }[name]
    assert expected_token in message

@pytest.mark.parametrize("name", STRATEGY_NAMES)
async def test_confirmed_strategy_executes_and_monitors(name, swap_executor, tracker, strategy_config, token):
    strategy, request = build_strategies(swap_executor, tracker, strategy_config, token)[name]
    request.confirm = ConfirmRecorder(answer=True)

    result = await strategy.execute(request)

    assert result.status == ResultStatus.EXECUTED
    assert result.signature is not None
    assert result.position_id is not None
    assert tracker.has(result.position_id)

async def test_sync_confirm_callback_is_supported(swap_executor, tracker, strategy_config):
    strategy = SafeStrategy(swap_executor, FakePriceSource([1.0]), tracker, strategy_config)
    asked = []

    def confirm(message):
        asked.append(message)
        return True

    result = await strategy.execute(StrategyRequest(
        confirm=confirm, token_mint=USDC_MINT, amount=10, stop_loss_percent=1, take_profit_percent=1,
    ))

    assert result.executed
    assert len(asked) == 1

@pytest.mark.parametrize("token_mint", [TOKEN_MINT, DAO_TOKEN_MINT, "not-a-mint"])
async def test_safe_rejects_other_tokens_before_confirm(token_mint, swap_executor, tracker, strategy_config):
    strategy = SafeStrategy(swap_executor, FakePriceSource([1.0]), tracker, strategy_config)
    confirm = ConfirmRecorder()

    with pytest.raises(StrategyValidationError) as exc_info:
        await strategy.execute(StrategyRequest(
            confirm=confirm, token_mint=token_mint, amount=10, stop_loss_percent=5, take_profit_percent=5,
        ))

    assert str(exc_info.value) == "Safe strategy supports SOL and USDC tokens only."
    assert confirm.messages == []

async def test_safe_buys_sol_with_usdc(swap_executor, tracker, strategy_config):
    strategy = SafeStrategy(swap_executor, FakePriceSource([150.0]), tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), token_mint=SOL_MINT, amount=10, stop_loss_percent=5, take_profit_percent=5,
    ))

    assert swap_executor.swaps == [("swap", USDC_MINT, SOL_MINT, 10)]
    position = tracker.get(result.position_id).position
    assert position.exit_target == USDC_MINT

@pytest.mark.parametrize("request_kwargs", [
    dict(amount=0, stop_loss_percent=5, take_profit_percent=5),
    dict(amount=-10, stop_loss_percent=5, take_profit_percent=5),
    dict(amount=1.5, stop_loss_percent=5, take_profit_percent=5),
    dict(amount=10, stop_loss_percent=-5, take_profit_percent=5),
    dict(amount=10, stop_loss_percent=5, take_profit_percent=None),
    dict(amount=10, stop_loss_percent=5, take_profit_percent=5, monitor_interval_sec=0),
    dict(amount=10, stop_loss_percent=5, take_profit_percent=5, exit_to="BONK"),
])
async def test_degen_validation_happens_before_any_io(request_kwargs, swap_executor, tracker, strategy_config, token):
    feed = FakeTokenFeed([token])
    feed.get_real_time_tokens = None  # any feed access would blow up
    strategy = DegenStrategy(feed, FakePumpTrader(), swap_executor, FakePriceSource([1.0]), tracker, strategy_config)

    with pytest.raises(StrategyValidationError):
        await strategy.execute(StrategyRequest(confirm=ConfirmRecorder(), **request_kwargs))

async def test_missing_confirm_is_rejected(swap_executor, tracker, strategy_config):
    strategy = DaoStrategy(swap_executor, FakePriceSource([1.0]), tracker, strategy_config)

    with pytest.raises(StrategyValidationError, match="confirm"):
        await strategy.execute(StrategyRequest(amount=10, confirm="yes"))

async def test_degen_end_to_end_stop_loss(swap_executor, tracker, strategy_config, token):
    price_source = FakePriceSource([1.0, 0.79])
    pump_trader = FakePumpTrader()
    strategy = DegenStrategy(FakeTokenFeed([token]), pump_trader, swap_executor, price_source, tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), amount=1000, stop_loss_percent=20, take_profit_percent=50, exit_to="USDC",
    ))
    monitor = tracker.get(result.position_id)
    await asyncio.wait_for(monitor.wait_closed(), timeout=2)
    polls = price_source.calls
    await asyncio.sleep(0.05)

    assert pump_trader.calls == [(token.token_mint, "buy", 1000)]
    assert swap_executor.swaps == [("swap", token.token_mint, USDC_MINT, 1000)]
    assert monitor.status == LoopStatus.EXITED
    assert monitor.ticks == 1
    assert price_source.calls == polls == 2
    assert not tracker.has(result.position_id)
    assert tracker.exit_events[0].percent_change == pytest.approx(-21.0)
    assert tracker.entry_events[0].price == 1.0
    assert tracker.entry_events[0].strategy == "degen"

async def test_degen_with_empty_feed(swap_executor, tracker, strategy_config):
    strategy = DegenStrategy(FakeTokenFeed([]), FakePumpTrader(), swap_executor, FakePriceSource([1.0]),
                             tracker, strategy_config)
    confirm = ConfirmRecorder()

    result = await strategy.execute(StrategyRequest(
        confirm=confirm, amount=1000, stop_loss_percent=20, take_profit_percent=50,
    ))

    assert result.status == ResultStatus.NO_TRADE
    assert result.message == "No new tokens to ape into at this time."
    assert confirm.messages == []

async def test_missing_entry_price_keeps_signature(swap_executor, tracker, strategy_config):
    strategy = SafeStrategy(swap_executor, FakePriceSource([None]), tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), token_mint=USDC_MINT, amount=10, stop_loss_percent=5, take_profit_percent=5,
    ))

    assert result.status == ResultStatus.EXECUTED
    assert result.signature == "sig-1"
    assert result.position_id is None
    assert result.monitor_error == ENTRY_PRICE_ERROR
    assert tracker.list_ids() == []

async def test_entry_failure_is_raised_with_strategy_name(tracker, strategy_config):
    strategy = SafeStrategy(FakeSwapExecutor(fail=True), FakePriceSource([1.0]), tracker, strategy_config)

    with pytest.raises(StrategyExecutionError, match="^Failed to execute safe strategy: Swap failed"):
        await strategy.execute(StrategyRequest(
            confirm=ConfirmRecorder(), token_mint=USDC_MINT, amount=10, stop_loss_percent=5, take_profit_percent=5,
        ))
    assert tracker.list_ids() == []

async def test_arbitrage_not_enough_data(swap_executor, tracker, strategy_config):
    strategy = arbitrage(swap_executor, tracker, strategy_config, prices=(1.0, None, None))
    confirm = ConfirmRecorder()

    result = await strategy.execute(StrategyRequest(confirm=confirm, input_mint=SOL_MINT, output_mint=USDC_MINT))

    assert result.status == ResultStatus.NO_TRADE
    assert result.message == "Not enough price data to evaluate arbitrage."
    assert confirm.messages == []

async def test_arbitrage_below_threshold(swap_executor, tracker, strategy_config):
    strategy = arbitrage(swap_executor, tracker, strategy_config, prices=(1.0, 1.005, 1.001))
    confirm = ConfirmRecorder()

    result = await strategy.execute(StrategyRequest(confirm=confirm, input_mint=SOL_MINT, output_mint=USDC_MINT))

    assert result.status == ResultStatus.NO_TRADE
    assert confirm.messages == []
    assert swap_executor.calls == []

async def test_arbitrage_without_auto_trade_reports_only(swap_executor, tracker, strategy_config):
    strategy_config.auto_trade_enabled = False
    strategy = arbitrage(swap_executor, tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), input_mint=SOL_MINT, output_mint=USDC_MINT,
    ))

    assert result.status == ResultStatus.NO_TRADE
    assert result.data["opportunity"]["buy_on"] == "Jupiter"
    assert result.data["opportunity"]["sell_on"] == "Raydium"
    assert result.data["opportunity"]["spread"] == pytest.approx(0.06)
    assert swap_executor.calls == []

async def test_arbitrage_round_trip_uses_default_amount(swap_executor, tracker, strategy_config):
    strategy = arbitrage(swap_executor, tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), input_mint=SOL_MINT, output_mint=USDC_MINT,
    ))

    assert result.executed
    assert swap_executor.swaps == [
        ("swap", SOL_MINT, USDC_MINT, 1_000_000),
        ("swap", USDC_MINT, SOL_MINT, 1_000_000),
    ]
    # No thresholds given, nothing to monitor
    assert result.position_id is None

async def test_predictive_hold_short_circuits(swap_executor, tracker, strategy_config):
    predictor = FixedPredictor(Prediction.HOLD, 0.3)
    strategy = PredictiveStrategy(predictor, swap_executor, FakePriceSource([1.0]), tracker, strategy_config)
    confirm = ConfirmRecorder()

    result = await strategy.execute(StrategyRequest(
        confirm=confirm, token_mint=TOKEN_MINT, symbol="MDOG", amount=10,
        stop_loss_percent=5, take_profit_percent=10,
    ))

    assert result.status == ResultStatus.NO_TRADE
    assert predictor.calls == 1
    assert confirm.messages == []
    assert swap_executor.calls == []

async def test_predictive_short_sells_and_monitors_inverted(swap_executor, tracker, strategy_config):
    price_source = FakePriceSource([1.0, 0.85])
    strategy = PredictiveStrategy(FixedPredictor(Prediction.SHORT), swap_executor, price_source, tracker,
                                  strategy_config)

    result = await strategy.execute(StrategyRequest(
        token_mint=TOKEN_MINT, symbol="MDOG", amount=10, stop_loss_percent=5, take_profit_percent=10,
        auto_trade=True, exit_to="SOL",
    ))
    monitor = tracker.get(result.position_id)
    assert monitor.position.direction == Direction.SHORT
    await asyncio.wait_for(monitor.wait_closed(), timeout=2)

    assert swap_executor.calls[0] == ("sell", TOKEN_MINT, 10)
    assert swap_executor.swaps == [("swap", TOKEN_MINT, SOL_MINT, 10)]
    assert monitor.exit_event.percent_change == pytest.approx(15.0)

async def test_predictive_auto_trade_skips_confirm(swap_executor, tracker, strategy_config):
    strategy = PredictiveStrategy(FixedPredictor(Prediction.LONG), swap_executor, FakePriceSource([1.0]), tracker,
                                  strategy_config)
    confirm = ConfirmRecorder(answer=False)

    result = await strategy.execute(StrategyRequest(
        confirm=confirm, token_mint=TOKEN_MINT, symbol="MDOG", amount=10,
        stop_loss_percent=5, take_profit_percent=10, auto_trade=True,
    ))

    assert result.executed
    assert confirm.messages == []
    assert swap_executor.calls[0] == ("buy", TOKEN_MINT, 10)

async def test_predictive_with_real_evaluator_degraded_data(swap_executor, tracker, strategy_config):
    async def no_sleep(_):
        return None

    predictor = PredictionEvaluator(FakePriceSource([None]), sentiment_source=None, sleep=no_sleep)
    strategy = PredictiveStrategy(predictor, swap_executor, FakePriceSource([1.0]), tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(
        confirm=ConfirmRecorder(), token_mint=TOKEN_MINT, symbol="MDOG", amount=10,
        stop_loss_percent=5, take_profit_percent=10,
    ))

    assert result.status == ResultStatus.NO_TRADE
    assert result.data["prediction"]["reason"] == "Insufficient price data"

async def test_dao_monitor_watches_without_thresholds(swap_executor, tracker, strategy_config):
    price_source = FakePriceSource([1.0, 0.01, 100.0])
    strategy = DaoStrategy(swap_executor, price_source, tracker, strategy_config)

    result = await strategy.execute(StrategyRequest(confirm=ConfirmRecorder(), amount=10))
    await wait_until(lambda: price_source.calls >= 4)

    assert swap_executor.swaps == [("swap", SOL_MINT, DAO_TOKEN_MINT, 10)]
    assert tracker.has(result.position_id)
    assert await tracker.stop(result.position_id)
    assert not tracker.has(result.position_id)

class StubScamChecker:
    def __init__(self, risk: str, reasons=("Low liquidity.",)):
        self.risk = risk
        self.reasons = list(reasons)
        self.calls = []

    async def check(self, token_mint):
        self.calls.append(token_mint)
        return ScamCheckResult(token_mint=token_mint, risk=self.risk, reasons=list(self.reasons))

def guarded_degen(checker, swap_executor, tracker, token, pump_trader, **config):
    config = StrategyConfig(auto_trade_enabled=True, monitor_interval_sec=0.01, **config)
    return DegenStrategy(FakeTokenFeed([token]), pump_trader, swap_executor, FakePriceSource([1.0]),
                         tracker, config, scam_checker=checker)

DEGEN_REQUEST = dict(amount=1000, stop_loss_percent=20, take_profit_percent=50)

@pytest.mark.parametrize("risk", ["high", "unknown"])
async def test_degen_scam_check_blocks_before_confirmation(risk, swap_executor, tracker, token):
    checker = StubScamChecker(risk)
    pump_trader = FakePumpTrader()
    strategy = guarded_degen(checker, swap_executor, tracker, token, pump_trader,
                             degen_scam_check=True, degen_max_risk="medium")
    confirm = ConfirmRecorder()

    result = await strategy.execute(StrategyRequest(confirm=confirm, **DEGEN_REQUEST))

    assert result.status == ResultStatus.NO_TRADE
    assert f"failed the scam check ({risk} risk)" in result.message
    assert "Low liquidity." in result.message
    assert result.data["scam_check"]["risk"] == risk
    assert checker.calls == [token.token_mint]
    assert confirm.messages == []
    assert pump_trader.calls == []

async def test_degen_scam_check_lets_acceptable_tokens_through(swap_executor, tracker, token):
    checker = StubScamChecker("medium", reasons=["Token is very new."])
    pump_trader = FakePumpTrader()
    strategy = guarded_degen(checker, swap_executor, tracker, token, pump_trader,
                             degen_scam_check=True, degen_max_risk="medium")

    result = await strategy.execute(StrategyRequest(confirm=ConfirmRecorder(), **DEGEN_REQUEST))

    assert result.status == ResultStatus.EXECUTED
    assert result.data["scam_check"]["reasons"] == ["Token is very new."]
    assert pump_trader.calls == [(token.token_mint, "buy", 1000)]

async def test_degen_scam_check_is_off_by_default(swap_executor, tracker, token):
    checker = StubScamChecker("high")
    strategy = guarded_degen(checker, swap_executor, tracker, token, FakePumpTrader())

    result = await strategy.execute(StrategyRequest(confirm=ConfirmRecorder(), **DEGEN_REQUEST))

    assert result.status == ResultStatus.EXECUTED
    assert checker.calls == []
    assert "scam_check" not in result.data
