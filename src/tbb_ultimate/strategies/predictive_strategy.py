from typing import Optional

from tbb_ultimate.analysis.predictor import PredictionEvaluator
from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.core.types import Direction, Prediction, StrategyRequest, StrategyResult
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.strategies.base_strategy import BaseStrategy
from tbb_ultimate.utils.config import StrategyConfig
from tbb_ultimate.utils.logger import TradingLogger

class PredictiveStrategy(BaseStrategy):
    """
    Trades on the prediction evaluator's call.

    LONG buys the token, SHORT sells it; HOLD ends the call before any
    confirmation. With ``auto_trade`` set the confirmation step is skipped.
    The monitor measures short positions with inverted sign.
    """

    name = "predictive"

    def __init__(self, predictor: PredictionEvaluator, swap_executor, price_source, tracker: PositionTracker,
                 config: Optional[StrategyConfig] = None,
                 risk_manager: Optional[RiskManager] = None,
                 logger: Optional[TradingLogger] = None):
        super().__init__(swap_executor, price_source, tracker, config, risk_manager, logger)
        self.predictor = predictor

    def validate(self, request: StrategyRequest):
        if not request.token_mint:
            raise StrategyValidationError("Token mint is required for predictive strategy.")
        if not request.symbol:
            raise StrategyValidationError("Symbol is required for predictive strategy.")
        self._require_amount(request.amount)
        self._require_risk(request, required=True)
        self._require_interval(request)
        self._resolve_exit_target(request.exit_to)
        if not request.auto_trade:
            self._require_confirm(request)

    async def run(self, request: StrategyRequest) -> StrategyResult:
        result = await self.predictor.predict(request.token_mint, request.symbol)
        prediction = result.to_dict()

        if result.prediction == Prediction.HOLD:
            return self._no_trade("Prediction is HOLD. No trade executed.", prediction=prediction)

        verb = "Buy" if result.prediction == Prediction.LONG else "Sell"
        message = (
            f"AI predicts {result.prediction.value} ({result.confidence * 100:.1f}%). "
            f"{verb} {request.amount} of {request.symbol} ({request.token_mint})? "
            f"Stop loss: {request.stop_loss_percent}%, Take profit: {request.take_profit_percent}%, "
            f"Exit to: {request.exit_to}"
        )
        if not request.auto_trade and not await self._request_confirmation(request, message):
            return self._cancelled("User cancelled the trade.", prediction=prediction)

        if result.prediction == Prediction.LONG:
            direction = Direction.LONG
            signature = await self.swap_executor.buy(request.token_mint, request.amount)
        else:
            direction = Direction.SHORT
            signature = await self.swap_executor.sell(request.token_mint, request.amount)

        position_id, monitor_error = await self._open_position(
            request.token_mint,
            request.amount,
            direction,
            self._exit_target_for(request.token_mint, request.exit_to),
            request.monitor_interval_sec,
            request.stop_loss_percent,
            request.take_profit_percent,
        )
        return self._executed(
            f"Trade executed: {result.prediction.value}. Tx signature: {signature}",
            [signature],
            position_id,
            monitor_error,
            prediction=prediction,
        )
