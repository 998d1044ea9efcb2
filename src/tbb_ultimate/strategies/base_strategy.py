from datetime import datetime
from typing import Optional, Tuple
import inspect
import math

from tbb_ultimate.core.events import EntryEvent
from tbb_ultimate.core.errors import StrategyExecutionError, StrategyValidationError
from tbb_ultimate.core.types import Direction, ResultStatus, StrategyRequest, StrategyResult
from tbb_ultimate.execution.constants import EXIT_TARGETS
from tbb_ultimate.risk.monitoring import PositionMonitor
from tbb_ultimate.risk.position import Position
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.utils.config import StrategyConfig
from tbb_ultimate.utils.logger import TradingLogger

ENTRY_PRICE_ERROR = "Could not fetch entry price from Dexscreener."

class BaseStrategy:
    """
    Base class for all trading strategies.

    Every strategy follows the same shape: validate the request, gather
    market data, ask for confirmation once, execute the entry trade and
    hand the resulting position to a monitor. Subclasses implement
    ``validate`` and ``run``; callers use ``execute``.
    """

    name = "base"

    def __init__(self, swap_executor, price_source, tracker: PositionTracker,
                 config: Optional[StrategyConfig] = None,
                 risk_manager: Optional[RiskManager] = None,
                 logger: Optional[TradingLogger] = None):
        self.swap_executor = swap_executor
        self.price_source = price_source
        self.tracker = tracker
        self.config = config or StrategyConfig()
        self.risk_manager = risk_manager or RiskManager()
        self.logger = logger or TradingLogger(f"tbb_ultimate.strategy.{self.name}")

    async def execute(self, request: StrategyRequest) -> StrategyResult:
        self.validate(request)
        self.logger.info(f"Running {self.name} strategy")
        try:
            return await self.run(request)
        except StrategyValidationError:
            raise
        except Exception as e:
            self.logger.error(f"{self.name} strategy failed: {str(e)}")
            raise StrategyExecutionError(f"Failed to execute {self.name} strategy: {str(e)}") from e

    def validate(self, request: StrategyRequest):
        raise NotImplementedError

    async def run(self, request: StrategyRequest) -> StrategyResult:
        raise NotImplementedError

    # Validation helpers

    def _require_confirm(self, request: StrategyRequest):
        if request.confirm is None or not callable(request.confirm):
            raise StrategyValidationError("A confirm callback is required.")

    def _require_amount(self, amount) -> int:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise StrategyValidationError("Amount must be a positive integer.")
        return amount

    def _require_risk(self, request: StrategyRequest, required: bool = True):
        RiskManager.validate_percent(request.stop_loss_percent, "stopLossPercent", required)
        RiskManager.validate_percent(request.take_profit_percent, "takeProfitPercent", required)

    def _require_interval(self, request: StrategyRequest):
        interval = request.monitor_interval_sec
        if isinstance(interval, bool) or not isinstance(interval, (int, float)) \
                or not math.isfinite(interval) or interval <= 0:
            raise StrategyValidationError("Monitor interval must be a positive number.")

    def _resolve_exit_target(self, exit_to: Optional[str]) -> str:
        """Map an exit asset name (or its mint) to a mint"""
        exit_to = exit_to or self.config.default_exit_to
        if exit_to in EXIT_TARGETS:
            return EXIT_TARGETS[exit_to]
        if exit_to in EXIT_TARGETS.values():
            return exit_to
        raise StrategyValidationError(
            f"exitTo must be one of {', '.join(EXIT_TARGETS)}, got {exit_to}."
        )

    def _exit_target_for(self, token_mint: str, exit_to: Optional[str]) -> str:
        """Exit mint for a position; never the position's own token"""
        target = self._resolve_exit_target(exit_to)
        if target == token_mint:
            target = next(mint for mint in EXIT_TARGETS.values() if mint != token_mint)
        return target

    # Execution helpers

    async def _request_confirmation(self, request: StrategyRequest, message: str) -> bool:
        """Ask the operator exactly once"""
        self.logger.info(f"Requesting confirmation: {message}")
        answer = request.confirm(message)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _cancelled(self, message: str, **data) -> StrategyResult:
        self.logger.info(f"{self.name} strategy cancelled by user")
        return StrategyResult(strategy=self.name, status=ResultStatus.CANCELLED, message=message, data=data)

    def _no_trade(self, message: str, **data) -> StrategyResult:
        self.logger.info(f"{self.name} strategy: {message}")
        return StrategyResult(strategy=self.name, status=ResultStatus.NO_TRADE, message=message, data=data)

    async def _fetch_entry_price(self, token_mint: str) -> Optional[float]:
        try:
            price = await self.price_source.get_price_usd(token_mint)
        except Exception as e:
            self.logger.warning(f"Entry price lookup for {token_mint} failed: {str(e)}")
            return None
        if price is None or not math.isfinite(price) or price <= 0:
            return None
        return float(price)

    async def _open_position(self, token_mint: str, amount: int, direction: Direction,
                             exit_target: str, interval_sec: float,
                             stop_loss_percent: Optional[float],
                             take_profit_percent: Optional[float]) -> Tuple[Optional[str], Optional[str]]:
        """
        Fetch the entry price and start a monitor.

        Returns ``(position_id, None)`` on success or ``(None, error)`` when
        no entry price is available; the entry trade is not undone then.
        """
        entry_price = await self._fetch_entry_price(token_mint)
        if entry_price is None:
            self.logger.error(f"{ENTRY_PRICE_ERROR} Position in {token_mint} is not monitored.")
            return None, ENTRY_PRICE_ERROR

        position = Position(
            token_mint=token_mint,
            entry_price=entry_price,
            direction=direction,
            amount=amount,
            stop_loss_percent=stop_loss_percent,
            take_profit_percent=take_profit_percent,
            exit_target=exit_target,
            poll_interval_sec=interval_sec,
            strategy=self.name,
        )
        monitor = PositionMonitor(
            position,
            price_fetcher=self.price_source.get_price_usd,
            swap_executor=self.swap_executor,
            risk_manager=self.risk_manager,
            logger=self.logger.child(f"monitor.{position.position_id}"),
        )
        self.tracker.add(monitor)
        self.tracker.entry_events.append(EntryEvent(
            timestamp=datetime.now(),
            position_id=position.position_id,
            token_mint=token_mint,
            price=entry_price,
            amount=amount,
            direction=direction.value,
            strategy=self.name,
        ))
        self.logger.info(
            f"Opened {direction.value} position {position.position_id} in {token_mint} at {entry_price} "
            f"(SL {stop_loss_percent}%, TP {take_profit_percent}%)"
        )
        return position.position_id, None

    def _executed(self, message: str, signatures, position_id: Optional[str],
                  monitor_error: Optional[str], **data) -> StrategyResult:
        if monitor_error:
            message = f"{message} Monitoring not started: {monitor_error}"
        return StrategyResult(
            strategy=self.name,
            status=ResultStatus.EXECUTED,
            message=message,
            signatures=list(signatures),
            position_id=position_id,
            monitor_error=monitor_error,
            data=data,
        )
