import asyncio

import pytest

from tbb_ultimate.core.events import ExitReason
from tbb_ultimate.core.types import Direction
from tbb_ultimate.execution.constants import USDC_MINT
from tbb_ultimate.risk.monitoring import LoopStatus, PositionMonitor
from tbb_ultimate.risk.position import Position
from tbb_ultimate.risk.risk_manager import RiskManager

from conftest import TOKEN_MINT, FakePriceSource, FakeSwapExecutor, wait_until

def make_position(direction=Direction.LONG, stop_loss=20.0, take_profit=50.0, interval=0.01):
    return Position(
        token_mint=TOKEN_MINT,
        entry_price=1.0,
        direction=direction,
        amount=1000,
        stop_loss_percent=stop_loss,
        take_profit_percent=take_profit,
        exit_target=USDC_MINT,
        poll_interval_sec=interval,
    )

def make_monitor(position, prices, swap_executor=None, logger=None):
    source = FakePriceSource(prices)
    executor = swap_executor or FakeSwapExecutor()
    monitor = PositionMonitor(position, source.get_price_usd, executor, logger=logger)
    return monitor, source, executor

def test_percent_change_inverts_for_short():
    assert make_position().percent_change(1.1) == pytest.approx(10.0)
    assert make_position(Direction.SHORT).percent_change(1.1) == pytest.approx(-10.0)

@pytest.mark.parametrize("price,expected", [
    (0.79, ExitReason.STOP_LOSS),
    (0.80, ExitReason.STOP_LOSS),
    (0.81, None),
    (1.49, None),
    (1.50, ExitReason.TAKE_PROFIT),
])
def test_threshold_boundaries(price, expected):
    assert RiskManager().check_exit(make_position(), price) == expected

def test_short_position_thresholds():
    position = make_position(Direction.SHORT, stop_loss=10.0, take_profit=10.0)
    risk = RiskManager()

    assert risk.check_exit(position, 1.2) == ExitReason.STOP_LOSS
    assert risk.check_exit(position, 0.85) == ExitReason.TAKE_PROFIT

def test_none_threshold_never_fires():
    position = make_position(stop_loss=None, take_profit=None)
    assert RiskManager().check_exit(position, 0.01) is None
    assert RiskManager().check_exit(position, 100.0) is None

async def test_two_breaching_polls_exit_once(logger):
    monitor, _, executor = make_monitor(make_position(), [0.79, 0.70], logger=logger)

    first = await monitor.poll_once()
    second = await monitor.poll_once()

    assert first.reason == ExitReason.STOP_LOSS
    assert second is None
    assert executor.swaps == [("swap", TOKEN_MINT, USDC_MINT, 1000)]
    assert monitor.status == LoopStatus.EXITED

async def test_concurrent_polls_exit_once(logger):
    release = asyncio.Event()
    executor = FakeSwapExecutor(block=release)
    monitor, _, _ = make_monitor(make_position(), [1.6], executor, logger)

    polls = asyncio.gather(monitor.poll_once(), monitor.poll_once())
    await wait_until(lambda: executor.swaps)
    release.set()
    results = await polls

    assert len(executor.swaps) == 1
    assert [r is not None for r in results].count(True) == 1

async def test_fetch_failures_do_not_stop_the_loop(logger):
    prices = [RuntimeError("rate limited"), None, float("nan"), 1.0, 1.6]
    monitor, source, executor = make_monitor(make_position(), prices, logger=logger)

    monitor.start()
    await asyncio.wait_for(monitor.wait_closed(), timeout=2)

    assert source.calls == 5
    assert len(executor.swaps) == 1
    assert monitor.exit_event.reason == ExitReason.TAKE_PROFIT
    assert monitor.exit_event.exit_price == 1.6

async def test_stop_halts_without_exit(logger):
    monitor, source, executor = make_monitor(make_position(), [1.0], logger=logger)

    monitor.start()
    await wait_until(lambda: source.calls >= 2)
    monitor.stop()
    await asyncio.wait_for(monitor.wait_closed(), timeout=2)
    calls = source.calls
    await asyncio.sleep(0.05)

    assert not monitor.is_running
    assert monitor.status == LoopStatus.STOPPED
    assert not monitor.position.active
    assert source.calls == calls
    assert executor.swaps == []

async def test_failed_exit_swap_is_reported(logger):
    monitor, _, executor = make_monitor(make_position(), [0.5], FakeSwapExecutor(fail=True), logger)

    event = await monitor.poll_once()

    assert monitor.status == LoopStatus.EXIT_FAILED
    assert "node unhealthy" in event.error
    assert event.signature is None
    assert not monitor.position.active
    assert len(executor.swaps) == 1

def test_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        make_monitor(make_position(interval=0), [1.0])

@pytest.mark.parametrize("value", [-1, float("inf"), "5", True])
def test_validate_percent_rejects_bad_values(value):
    with pytest.raises(ValueError):
        RiskManager.validate_percent(value, "stopLossPercent")
