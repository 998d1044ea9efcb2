from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

class ExitReason(str, Enum):
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"

@dataclass
class EntryEvent:
    timestamp: datetime
    position_id: str
    token_mint: str
    price: float
    amount: int
    direction: str  # "LONG" or "SHORT"
    strategy: str

@dataclass
class ExitEvent:
    timestamp: datetime
    position_id: str
    token_mint: str
    reason: ExitReason
    entry_price: float
    exit_price: float
    percent_change: float
    exit_target: str
    signature: Optional[str] = None
    error: Optional[str] = None
    hold_time_minutes: float = 0.0
