from datetime import datetime
from dataclasses import dataclass, field
from typing import Optional
import uuid

from tbb_ultimate.core.types import Direction

def new_position_id() -> str:
    return uuid.uuid4().hex[:12]

@dataclass
class Position:
    """Represents an open trade under active monitoring"""
    token_mint: str
    entry_price: float
    direction: Direction
    amount: int
    stop_loss_percent: Optional[float]
    take_profit_percent: Optional[float]
    exit_target: str  # mint the position is closed into
    poll_interval_sec: float
    strategy: str = ""
    position_id: str = field(default_factory=new_position_id)
    opened_at: datetime = field(default_factory=datetime.now)
    active: bool = True

    def percent_change(self, current_price: float) -> float:
        """Percent move from entry, sign inverted for shorts"""
        change = (current_price - self.entry_price) / self.entry_price * 100
        if self.direction == Direction.SHORT:
            change = -change
        return change
