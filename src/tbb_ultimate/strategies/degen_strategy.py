from typing import Optional

from tbb_ultimate.core.types import Direction, StrategyRequest, StrategyResult
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.strategies.base_strategy import BaseStrategy
from tbb_ultimate.utils.config import StrategyConfig
from tbb_ultimate.utils.logger import TradingLogger

class DegenStrategy(BaseStrategy):
    """
    Apes into the newest pump.fun token.

    The entry goes through the pump.fun trade endpoint; the exit goes
    through the regular swap executor into the configured exit asset.
    With ``degen_scam_check`` enabled the token must pass a scam check at
    or below ``degen_max_risk`` before the operator is asked.
    """

    name = "degen"

    def __init__(self, token_feed, pump_trader, swap_executor, price_source, tracker: PositionTracker,
                 config: Optional[StrategyConfig] = None,
                 risk_manager: Optional[RiskManager] = None,
                 logger: Optional[TradingLogger] = None,
                 scam_checker=None):
        super().__init__(swap_executor, price_source, tracker, config, risk_manager, logger)
        self.token_feed = token_feed
        self.pump_trader = pump_trader
        self.scam_checker = scam_checker

    def validate(self, request: StrategyRequest):
        self._require_amount(request.amount)
        self._require_risk(request, required=True)
        self._require_interval(request)
        self._resolve_exit_target(request.exit_to)
        self._require_confirm(request)

    async def run(self, request: StrategyRequest) -> StrategyResult:
        tokens = await self.token_feed.get_real_time_tokens()
        if not tokens:
            return self._no_trade("No new tokens to ape into at this time.")

        # Feed order decides what "newest" means
        token = tokens[0]
        token_mint = token.token_mint

        scam_data = {}
        if self.scam_checker is not None and self.config.degen_scam_check:
            scam = await self.scam_checker.check(token_mint)
            scam_data = {"scam_check": scam.to_dict()}
            if not scam.is_acceptable(self.config.degen_max_risk):
                return self._no_trade(
                    f"Token {token.symbol or token_mint} failed the scam check ({scam.risk} risk): "
                    f"{'; '.join(scam.reasons)}",
                    token_mint=token_mint, **scam_data,
                )

        message = (
            f"Ready to buy token {token.symbol or token_mint} ({token_mint}) with amount {request.amount}. "
            f"Stop loss: {request.stop_loss_percent}%, Take profit: {request.take_profit_percent}%. Proceed?"
        )
        if not await self._request_confirmation(request, message):
            return self._cancelled("User cancelled the trade.", token_mint=token_mint)

        signature = await self.pump_trader.trade(token_mint, "buy", request.amount)

        position_id, monitor_error = await self._open_position(
            token_mint,
            request.amount,
            Direction.LONG,
            self._exit_target_for(token_mint, request.exit_to),
            request.monitor_interval_sec,
            request.stop_loss_percent,
            request.take_profit_percent,
        )
        return self._executed(
            f"Degen trade executed. Tx signature: {signature}",
            [signature],
            position_id,
            monitor_error,
            token_mint=token_mint,
            name=token.name,
            symbol=token.symbol,
            **scam_data,
        )
