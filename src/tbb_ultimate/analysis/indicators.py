from typing import Dict, List, Optional, Sequence
import numpy as np
import pandas as pd

def _series(prices: Sequence[float]) -> pd.Series:
    return pd.Series(list(prices), dtype=float)

def simple_moving_average(prices: Sequence[float], period: int) -> List[float]:
    """SMA for every full window"""
    return _series(prices).rolling(window=period).mean().dropna().tolist()

def exponential_moving_average(prices: Sequence[float], period: int) -> List[float]:
    """EMA seeded with the SMA of the first window"""
    if len(prices) < period:
        return []
    values = np.asarray(prices, dtype=float)
    k = 2 / (period + 1)
    ema = [values[:period].mean()]
    for price in values[period:]:
        ema.append(price * k + ema[-1] * (1 - k))
    return ema

def calculate_rsi(prices: Sequence[float], period: int = 14) -> Optional[float]:
    """Latest RSI using Wilder's smoothing"""
    if len(prices) < period + 1:
        raise ValueError("Not enough price data for RSI.")

    deltas = np.diff(np.asarray(prices, dtype=float))
    gains = np.clip(deltas, 0, None)
    losses = np.clip(-deltas, 0, None)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        # Flat series has no direction
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return float(100 - 100 / (1 + rs))

def calculate_macd(prices: Sequence[float], fast_period: int = 12, slow_period: int = 26,
                   signal_period: int = 9) -> Optional[Dict[str, float]]:
    """Latest MACD line, signal and histogram; None until the signal line exists"""
    if len(prices) < slow_period:
        raise ValueError("Not enough price data for MACD.")
    if len(prices) < slow_period + signal_period - 1:
        return None

    series = _series(prices)
    fast = series.ewm(span=fast_period, adjust=False).mean()
    slow = series.ewm(span=slow_period, adjust=False).mean()
    macd_line = (fast - slow).iloc[slow_period - 1:]
    signal = macd_line.ewm(span=signal_period, adjust=False).mean()

    macd_value = float(macd_line.iloc[-1])
    signal_value = float(signal.iloc[-1])
    return {
        "MACD": macd_value,
        "signal": signal_value,
        "histogram": macd_value - signal_value,
    }

def calculate_bollinger_bands(prices: Sequence[float], period: int = 20,
                              std_dev: float = 2.0) -> Optional[Dict[str, float]]:
    """Latest Bollinger Bands (population standard deviation)"""
    if len(prices) < period:
        raise ValueError("Not enough price data for Bollinger Bands.")

    window = _series(prices).iloc[-period:]
    middle = float(window.mean())
    deviation = float(window.std(ddof=0))
    upper = middle + std_dev * deviation
    lower = middle - std_dev * deviation
    last = float(window.iloc[-1])
    return {
        "middle": middle,
        "upper": upper,
        "lower": lower,
        "pb": (last - lower) / (upper - lower) if upper != lower else 0.5,
    }

def technical_snapshot(prices: Sequence[float]) -> Dict[str, Optional[object]]:
    """
    RSI, MACD and Bollinger Bands for a price series.

    Indicators that need more history than is available are None.
    """
    snapshot: Dict[str, Optional[object]] = {}
    for key, func in (("rsi", calculate_rsi), ("macd", calculate_macd), ("bb", calculate_bollinger_bands)):
        try:
            snapshot[key] = func(prices)
        except ValueError:
            snapshot[key] = None
    return snapshot

def quick_signal(rsi: Optional[float], oversold: float = 30.0, overbought: float = 70.0) -> str:
    if rsi is None:
        return "HOLD"
    if rsi < oversold:
        return "BUY"
    if rsi > overbought:
        return "SELL"
    return "HOLD"
