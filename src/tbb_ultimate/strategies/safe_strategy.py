from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.core.types import Direction, StrategyRequest, StrategyResult
from tbb_ultimate.execution.constants import SAFE_TOKENS, SOL_MINT, USDC_MINT
from tbb_ultimate.strategies.base_strategy import BaseStrategy

SAFE_TOKENS_ERROR = "Safe strategy supports SOL and USDC tokens only."

class SafeStrategy(BaseStrategy):
    """Risk-limited trading restricted to SOL and USDC"""

    name = "safe"

    def validate(self, request: StrategyRequest):
        if not request.token_mint:
            raise StrategyValidationError("Token mint is required.")
        self._require_amount(request.amount)
        if request.token_mint not in SAFE_TOKENS:
            raise StrategyValidationError(SAFE_TOKENS_ERROR)
        self._require_risk(request, required=True)
        self._require_interval(request)
        self._resolve_exit_target(request.exit_to)
        self._require_confirm(request)

    async def run(self, request: StrategyRequest) -> StrategyResult:
        token_mint = request.token_mint
        # SOL is bought with USDC, everything else with SOL
        input_mint = USDC_MINT if token_mint == SOL_MINT else SOL_MINT

        message = (
            f"Ready to execute safe trade for {request.amount} units of {token_mint} "
            f"with stop loss {request.stop_loss_percent}% and take profit {request.take_profit_percent}%. Proceed?"
        )
        if not await self._request_confirmation(request, message):
            return self._cancelled("User cancelled the trade.", token_mint=token_mint)

        signature = await self.swap_executor.swap(input_mint, token_mint, request.amount)

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
            f"Safe trade completed. Tx signature: {signature}",
            [signature],
            position_id,
            monitor_error,
            token_mint=token_mint,
        )
