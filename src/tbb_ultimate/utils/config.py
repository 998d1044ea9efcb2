from dataclasses import dataclass
from typing import Dict, Any, Optional
from dotenv import load_dotenv
import math
import yaml
import os

RISK_LEVELS = ("low", "medium", "high")

@dataclass
class StrategyConfig:
    arbitrage_spread_threshold: float = 0.01   # Minimum spread (fraction) to report an opportunity
    auto_trade_enabled: bool = False           # Execute arbitrage legs and auto buy/sell loops
    arbitrage_trade_amount: int = 1_000_000    # Default arbitrage leg size in smallest units
    default_slippage_bps: int = 50
    default_exit_to: str = "USDC"
    monitor_interval_sec: float = 10.0
    auto_buy_sell_interval_sec: float = 60.0
    dry_run: bool = False
    degen_scam_check: bool = False             # Scam-check the newest token before asking to buy it
    degen_max_risk: str = "medium"             # Highest scam-check risk the degen strategy accepts

    def __post_init__(self):
        self.validate()

    def validate(self):
        threshold = self.arbitrage_spread_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) \
                or not math.isfinite(threshold) or threshold < 0:
            raise ValueError(f"arbitrage_spread_threshold must be a non-negative number, got {threshold}")
        if self.degen_max_risk not in RISK_LEVELS:
            raise ValueError(f"degen_max_risk must be one of {', '.join(RISK_LEVELS)}, got {self.degen_max_risk}")

@dataclass
class PredictionConfig:
    sample_count: int = 30
    min_samples: int = 15
    sample_delay_sec: float = 0.3
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    min_confidence: float = 0.3    # Confidence reported when no signal fires

    def __post_init__(self):
        self.validate()

    def validate(self):
        floor = self.min_confidence
        if isinstance(floor, bool) or not isinstance(floor, (int, float)) \
                or not math.isfinite(floor) or not 0 < floor <= 1:
            raise ValueError(f"min_confidence must be in (0, 1], got {floor}")
        if self.min_samples < 1 or self.sample_count < self.min_samples:
            raise ValueError("sample_count must be at least min_samples, and min_samples at least 1")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")

@dataclass
class ApiConfig:
    rpc_url: str = "https://api.mainnet-beta.solana.com"
    jupiter_api_url: str = "https://quote-api.jup.ag/v6"
    orca_api_url: str = "https://api.orca.so/v1/quote"
    raydium_api_url: str = "https://api.raydium.io/v2/sdk/quote"
    dexscreener_api_url: str = "https://api.dexscreener.com/latest/dex"
    pump_portal_api_url: str = "https://pumpportal.fun/api"
    pump_portal_ws_url: str = "wss://pumpportal.fun/api/data"
    sentiment_api_url: str = "http://localhost:3000/plugin-twitter/sentiment"

class Config:
    def __init__(self, config_path: str = "config.yaml", use_env: bool = True):
        self.strategy = StrategyConfig()
        self.prediction = PredictionConfig()
        self.api = ApiConfig()
        self.private_key: Optional[str] = None

        if os.path.exists(config_path):
            self.load_config(config_path)

        if use_env:
            load_dotenv()
            self.apply_env(os.environ)

    def load_config(self, config_path: str):
        """Load configuration from YAML file"""
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        if 'strategy' in config_data:
            self.strategy = StrategyConfig(**config_data['strategy'])
        if 'prediction' in config_data:
            self.prediction = PredictionConfig(**config_data['prediction'])
        if 'api' in config_data:
            self.api = ApiConfig(**config_data['api'])

    def apply_env(self, env: Dict[str, Any]):
        """Override loaded values with environment variables"""
        if env.get('ARBITRAGE_SPREAD_THRESHOLD'):
            self.strategy.arbitrage_spread_threshold = float(env['ARBITRAGE_SPREAD_THRESHOLD'])
        if 'AUTO_TRADE_ENABLED' in env:
            self.strategy.auto_trade_enabled = env['AUTO_TRADE_ENABLED'] == 'true'
        if env.get('AUTO_BUY_SELL_INTERVAL_MS'):
            self.strategy.auto_buy_sell_interval_sec = int(env['AUTO_BUY_SELL_INTERVAL_MS']) / 1000
        if 'DRY_RUN' in env:
            self.strategy.dry_run = env['DRY_RUN'] == 'true'
        if env.get('MIN_PREDICTION_CONFIDENCE'):
            self.prediction.min_confidence = float(env['MIN_PREDICTION_CONFIDENCE'])
        if env.get('RPC_URL'):
            self.api.rpc_url = env['RPC_URL']
        if env.get('SENTIMENT_API_URL'):
            self.api.sentiment_api_url = env['SENTIMENT_API_URL']
        if env.get('PRIVATE_KEY'):
            self.private_key = env['PRIVATE_KEY']

        self.strategy.validate()
        self.prediction.validate()
