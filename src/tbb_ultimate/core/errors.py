class TradingError(Exception):
    """Base class for all trading errors"""
    pass

class StrategyValidationError(TradingError, ValueError):
    """Raised when strategy parameters are missing or invalid"""
    pass

class NetworkError(TradingError):
    """Raised when network-related operations fail"""
    pass

class QuoteError(TradingError):
    """Raised when no route or quote is available for a pair"""
    pass

class TransactionBuildError(TradingError):
    """Raised when a swap transaction cannot be built"""
    pass

class TransactionError(TradingError):
    """Raised when transaction submission or confirmation fails"""
    pass

class SwapError(TradingError):
    """Raised when any step of a swap fails"""
    pass

class StrategyExecutionError(TradingError):
    """Raised when a strategy's entry trade fails"""
    pass

class PredictionError(TradingError):
    """Raised when a prediction cannot be computed"""
    pass
