import math
from typing import Optional

from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.core.events import ExitReason
from tbb_ultimate.risk.position import Position

class RiskManager:
    def check_stop_loss(self, position: Position, current_price: float) -> bool:
        """Check if position has hit stop loss"""
        if position.stop_loss_percent is None:
            return False
        return position.percent_change(current_price) <= -abs(position.stop_loss_percent)

    def check_take_profit(self, position: Position, current_price: float) -> bool:
        """Check if position has hit take profit"""
        if position.take_profit_percent is None:
            return False
        return position.percent_change(current_price) >= abs(position.take_profit_percent)

    def check_exit(self, position: Position, current_price: float) -> Optional[ExitReason]:
        if self.check_stop_loss(position, current_price):
            return ExitReason.STOP_LOSS
        if self.check_take_profit(position, current_price):
            return ExitReason.TAKE_PROFIT
        return None

    @staticmethod
    def validate_percent(value: Optional[float], field_name: str, required: bool = False) -> Optional[float]:
        if value is None:
            if required:
                raise StrategyValidationError(f"{field_name} is required.")
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            raise StrategyValidationError(f"{field_name} must be a non-negative number.")
        return float(value)
