from typing import Optional

from tbb_ultimate.core.aggregator import QuoteAggregator
from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.core.types import Direction, StrategyRequest, StrategyResult
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.strategies.base_strategy import BaseStrategy
from tbb_ultimate.utils.config import StrategyConfig
from tbb_ultimate.utils.logger import TradingLogger

class ArbitrageStrategy(BaseStrategy):
    """
    Cross-DEX spread detection for one token pair.

    When automated trading is enabled a confirmed opportunity is traded as
    a round trip (A -> B, then B -> A) and, if risk thresholds were given,
    the resulting holding of token A is monitored.
    """

    name = "arbitrage"

    def __init__(self, aggregator: QuoteAggregator, swap_executor, price_source, tracker: PositionTracker,
                 config: Optional[StrategyConfig] = None,
                 risk_manager: Optional[RiskManager] = None,
                 logger: Optional[TradingLogger] = None):
        super().__init__(swap_executor, price_source, tracker, config, risk_manager, logger)
        self.aggregator = aggregator

    def validate(self, request: StrategyRequest):
        if not request.input_mint or not request.output_mint:
            raise StrategyValidationError("Arbitrage requires tokenMintA and tokenMintB.")
        if request.input_mint == request.output_mint:
            raise StrategyValidationError("tokenMintA and tokenMintB must differ.")
        if request.amount is not None:
            self._require_amount(request.amount)
        self._require_risk(request, required=False)
        self._require_interval(request)
        self._resolve_exit_target(request.exit_to)
        self._require_confirm(request)

    async def run(self, request: StrategyRequest) -> StrategyResult:
        amount = request.amount if request.amount is not None else self.config.arbitrage_trade_amount
        analysis = await self.aggregator.analyze(request.input_mint, request.output_mint, amount)

        if not analysis.has_enough_data:
            return self._no_trade("Not enough price data to evaluate arbitrage.")

        opportunity = analysis.opportunity
        if opportunity is None:
            return self._no_trade(
                f"No arbitrage opportunity: spread {analysis.spread * 100:.2f}% "
                f"is below the {analysis.threshold * 100:.2f}% threshold.",
                spread=analysis.spread,
            )

        message = (
            f"Arbitrage opportunity! Buy on {opportunity.buy_on} at {opportunity.buy_price:.6f}, "
            f"sell on {opportunity.sell_on} at {opportunity.sell_price:.6f} with spread "
            f"{opportunity.spread * 100:.2f}%. Trade {amount} of {request.input_mint} <-> "
            f"{request.output_mint} (stop loss {request.stop_loss_percent}%, "
            f"take profit {request.take_profit_percent}%). Proceed with automated trades?"
        )
        if not await self._request_confirmation(request, message):
            return self._cancelled("User cancelled arbitrage trades.", opportunity=opportunity.to_dict())

        if not self.config.auto_trade_enabled:
            return self._no_trade(
                f"Arbitrage opportunity found ({opportunity.spread * 100:.2f}%), automated trading is disabled.",
                opportunity=opportunity.to_dict(),
                auto_trade="disabled",
            )

        buy_sig = await self.swap_executor.swap(request.input_mint, request.output_mint, amount)
        sell_sig = await self.swap_executor.swap(request.output_mint, request.input_mint, amount)
        self.logger.info(f"Arbitrage round trip executed: {buy_sig}, {sell_sig}")

        position_id = monitor_error = None
        if request.stop_loss_percent is not None or request.take_profit_percent is not None:
            position_id, monitor_error = await self._open_position(
                request.input_mint,
                amount,
                Direction.LONG,
                self._exit_target_for(request.input_mint, request.exit_to),
                request.monitor_interval_sec,
                request.stop_loss_percent,
                request.take_profit_percent,
            )

        return self._executed(
            f"Arbitrage trades executed: buy on {opportunity.buy_on}, sell on {opportunity.sell_on}.",
            [buy_sig, sell_sig],
            position_id,
            monitor_error,
            opportunity=opportunity.to_dict(),
        )
