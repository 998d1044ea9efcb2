from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

ConfirmCallback = Callable[[str], Union[bool, Awaitable[bool]]]

class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

class Prediction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    HOLD = "HOLD"

class ResultStatus(str, Enum):
    EXECUTED = "executed"
    CANCELLED = "cancelled"
    NO_TRADE = "no_trade"

@dataclass
class PriceQuote:
    source: str
    price: Optional[float] = None

    @property
    def has_price(self) -> bool:
        return self.price is not None

@dataclass
class SwapQuote:
    """Route returned by the primary aggregator"""
    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    slippage_bps: int
    route: Dict[str, Any]

    @property
    def price(self) -> float:
        """Output units per input unit"""
        return self.out_amount / self.in_amount if self.in_amount else 0.0

@dataclass
class ArbitrageOpportunity:
    spread: float
    buy_on: str
    sell_on: str
    buy_price: float
    sell_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spread": self.spread,
            "buy_on": self.buy_on,
            "sell_on": self.sell_on,
            "buy_price": self.buy_price,
            "sell_price": self.sell_price,
        }

@dataclass
class DiscoveredToken:
    token_mint: str
    name: str = ""
    symbol: str = ""

@dataclass
class SentimentScore:
    bullish: float = 50.0
    bearish: float = 25.0
    neutral: float = 25.0

    @property
    def total(self) -> float:
        return self.bullish + self.bearish + self.neutral

    @property
    def bullish_ratio(self) -> float:
        return self.bullish / self.total if self.total > 0 else 0.0

    @property
    def bearish_ratio(self) -> float:
        return self.bearish / self.total if self.total > 0 else 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"bullish": self.bullish, "bearish": self.bearish, "neutral": self.neutral}

@dataclass
class PredictionResult:
    prediction: Prediction
    confidence: float
    indicators: Dict[str, Any] = field(default_factory=dict)
    sentiment: Dict[str, float] = field(default_factory=dict)
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "prediction": self.prediction.value,
            "confidence": self.confidence,
            "indicators": self.indicators,
            "sentiment": self.sentiment,
        }
        if self.reason:
            result["reason"] = self.reason
        return result

@dataclass
class TokenHolding:
    token_mint: str
    amount: float          # UI units
    decimals: int = 0
    price_usd: Optional[float] = None

    @property
    def value_usd(self) -> float:
        return self.amount * self.price_usd if self.price_usd else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.token_mint,
            "amount": self.amount,
            "price": self.price_usd or 0.0,
            "valueUsd": self.value_usd,
        }

@dataclass
class WalletBalance:
    owner: str
    lamports: int
    tokens: List[TokenHolding] = field(default_factory=list)

    @property
    def sol(self) -> float:
        return self.lamports / 1_000_000_000

@dataclass
class StrategyRequest:
    """Parameters of one strategy invocation"""
    confirm: Optional[ConfirmCallback] = None
    amount: Optional[int] = None
    token_mint: Optional[str] = None
    symbol: Optional[str] = None
    input_mint: Optional[str] = None
    output_mint: Optional[str] = None
    stop_loss_percent: Optional[float] = None
    take_profit_percent: Optional[float] = None
    exit_to: str = "USDC"
    monitor_interval_sec: float = 10.0
    auto_trade: bool = False

@dataclass
class StrategyResult:
    strategy: str
    status: ResultStatus
    message: str
    signatures: List[str] = field(default_factory=list)
    position_id: Optional[str] = None
    monitor_error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def executed(self) -> bool:
        return self.status == ResultStatus.EXECUTED

    @property
    def cancelled(self) -> bool:
        return self.status == ResultStatus.CANCELLED

    @property
    def signature(self) -> Optional[str]:
        return self.signatures[0] if self.signatures else None
