from tbb_ultimate.core.types import Direction, StrategyRequest, StrategyResult
from tbb_ultimate.execution.constants import DAO_TOKEN_MINT, SOL_MINT
from tbb_ultimate.strategies.base_strategy import BaseStrategy

class DaoStrategy(BaseStrategy):
    """
    Buys the DAO token with SOL.

    The position is always monitored. Without stop-loss/take-profit values
    the monitor only watches the price and never exits.
    """

    name = "dao"

    def validate(self, request: StrategyRequest):
        self._require_amount(request.amount)
        self._require_risk(request, required=False)
        self._require_interval(request)
        self._resolve_exit_target(request.exit_to)
        self._require_confirm(request)

    async def run(self, request: StrategyRequest) -> StrategyResult:
        message = (
            f"Ready to buy {request.amount} lamports worth of DAO token {DAO_TOKEN_MINT} using SOL "
            f"(stop loss {request.stop_loss_percent}%, take profit {request.take_profit_percent}%). Proceed?"
        )
        if not await self._request_confirmation(request, message):
            return self._cancelled("User cancelled DAO token purchase.")

        signature = await self.swap_executor.swap(SOL_MINT, DAO_TOKEN_MINT, request.amount)

        position_id, monitor_error = await self._open_position(
            DAO_TOKEN_MINT,
            request.amount,
            Direction.LONG,
            self._exit_target_for(DAO_TOKEN_MINT, request.exit_to),
            request.monitor_interval_sec,
            request.stop_loss_percent,
            request.take_profit_percent,
        )
        return self._executed(
            f"DAO token purchase executed. Tx signature: {signature}",
            [signature],
            position_id,
            monitor_error,
            token_mint=DAO_TOKEN_MINT,
        )
