from typing import Any, Dict, List, Optional
import asyncio
import uuid

from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair

from tbb_ultimate.analysis.market_trends import MarketTrendAnalyzer
from tbb_ultimate.analysis.portfolio import PortfolioTracker
from tbb_ultimate.analysis.predictor import PredictionEvaluator
from tbb_ultimate.analysis.price_watcher import PriceWatcher, TickCallback
from tbb_ultimate.analysis.scam_check import ScamCheckResult, ScamChecker
from tbb_ultimate.core.aggregator import QuoteAggregator
from tbb_ultimate.core.errors import StrategyValidationError
from tbb_ultimate.core.types import ConfirmCallback, PredictionResult, StrategyRequest, StrategyResult, WalletBalance
from tbb_ultimate.data.dexscreener import DexscreenerClient
from tbb_ultimate.data.jupiter import JupiterClient
from tbb_ultimate.data.orca import OrcaClient
from tbb_ultimate.data.pump_data_feed import PumpDataFeed
from tbb_ultimate.data.raydium import RaydiumClient
from tbb_ultimate.data.sentiment import SentimentClient
from tbb_ultimate.data.solana_rpc import SolanaRpcClient
from tbb_ultimate.execution.dry_run_executor import DryRunExecutor
from tbb_ultimate.execution.pump_portal import PumpPortalExecutor
from tbb_ultimate.execution.swap_executor import SwapExecutor
from tbb_ultimate.execution.transaction_sender import TransactionSender
from tbb_ultimate.execution.wallet import WalletManager
from tbb_ultimate.risk.position import Position
from tbb_ultimate.risk.position_tracker import PositionTracker
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.strategies.arbitrage_strategy import ArbitrageStrategy
from tbb_ultimate.strategies.auto_buy_sell import AutoBuySellLoop
from tbb_ultimate.strategies.dao_strategy import DaoStrategy
from tbb_ultimate.strategies.degen_strategy import DegenStrategy
from tbb_ultimate.strategies.predictive_strategy import PredictiveStrategy
from tbb_ultimate.strategies.safe_strategy import SafeStrategy
from tbb_ultimate.utils.config import Config
from tbb_ultimate.utils.logger import TradingLogger

class TradingSystem:
    """
    Wires configuration, wallet, data sources, executors and strategies.

    Collaborators can be injected; anything not supplied is built from the
    configuration. With ``dry_run`` enabled every trade goes to a
    ``DryRunExecutor``.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 wallet: Optional[Keypair] = None,
                 swap_executor=None,
                 pump_trader=None,
                 price_source=None,
                 token_feed=None,
                 sentiment_source=None,
                 quote_sources: Optional[list] = None,
                 solana_rpc=None,
                 logger: Optional[TradingLogger] = None):

        # Initialize Trading System
        self.config = config or Config()
        self.logger = logger or TradingLogger("tbb_ultimate", console_output=False)
        self.is_running = False
        self.dry_run = self.config.strategy.dry_run
        api = self.config.api

        self._closeables = []
        self._feed_task: Optional[asyncio.Task] = None

        # Load wallet for transactions
        self.wallet = wallet or WalletManager(logger=self.logger.child("wallet")).load_wallet(self.config.private_key)

        self.rpc_client = AsyncClient(api.rpc_url)
        if solana_rpc is None:
            solana_rpc = SolanaRpcClient(self.rpc_client, self.logger.child("solana_rpc"))
        self.solana_rpc = solana_rpc
        self._closeables.append(self.rpc_client)

        self.jupiter = JupiterClient(api.jupiter_api_url, logger=self.logger.child("jupiter"))
        self._closeables.append(self.jupiter)

        if swap_executor is None or pump_trader is None:
            if self.dry_run:
                dry_run_executor = DryRunExecutor(self.logger.child("dry_run"))
                swap_executor = swap_executor or dry_run_executor
                pump_trader = pump_trader or dry_run_executor
            else:
                sender = TransactionSender(self.wallet, self.rpc_client, self.logger.child("sender"))
                if swap_executor is None:
                    swap_executor = SwapExecutor(
                        self.jupiter, sender, self.logger.child("swap"),
                        default_slippage_bps=self.config.strategy.default_slippage_bps,
                    )
                if pump_trader is None:
                    pump_trader = PumpPortalExecutor(sender, api.pump_portal_api_url, logger=self.logger.child("pump_portal"))
                    self._closeables.append(pump_trader)
        self.swap_executor = swap_executor
        self.pump_trader = pump_trader

        if price_source is None:
            price_source = DexscreenerClient(api.dexscreener_api_url, logger=self.logger.child("dexscreener"))
            self._closeables.append(price_source)
        self.price_source = price_source

        if sentiment_source is None:
            sentiment_source = SentimentClient(api.sentiment_api_url, logger=self.logger.child("sentiment"))
            self._closeables.append(sentiment_source)
        self.sentiment_source = sentiment_source

        self._owns_feed = token_feed is None
        self.token_feed = token_feed or PumpDataFeed(api.pump_portal_ws_url, logger=self.logger.child("pump_feed"))

        if quote_sources is None:
            orca = OrcaClient(api.orca_api_url, logger=self.logger.child("orca"))
            raydium = RaydiumClient(api.raydium_api_url, logger=self.logger.child("raydium"))
            self._closeables.extend([orca, raydium])
            quote_sources = [self.jupiter, orca, raydium]

        self.aggregator = QuoteAggregator(
            quote_sources,
            spread_threshold=self.config.strategy.arbitrage_spread_threshold,
            logger=self.logger.child("aggregator"),
        )
        self.predictor = PredictionEvaluator(
            self.price_source, self.sentiment_source, self.config.prediction, self.logger.child("predictor")
        )
        self.scam_checker = ScamChecker(self.price_source, self.solana_rpc, self.logger.child("scam_check"))
        self.portfolio = PortfolioTracker(self.solana_rpc, self.price_source, self.logger.child("portfolio"))
        self.market_trend_analyzer = MarketTrendAnalyzer(self.price_source, self.logger.child("market_trends"))
        self.risk_manager = RiskManager()
        self.position_tracker = PositionTracker(self.logger.child("tracker"))
        self.setup_strategies()

        # Log system initialization
        self.logger.info(f"Trading System Initializing: Dry Run={self.dry_run}, "
                         f"Auto Trade={self.config.strategy.auto_trade_enabled}, Wallet={self.wallet.pubkey()}")

    def setup_strategies(self):
        common = dict(
            price_source=self.price_source,
            tracker=self.position_tracker,
            config=self.config.strategy,
            risk_manager=self.risk_manager,
        )
        self.strategies = {
            "arbitrage": ArbitrageStrategy(self.aggregator, self.swap_executor,
                                           logger=self.logger.child("arbitrage"), **common),
            "dao": DaoStrategy(self.swap_executor, logger=self.logger.child("dao"), **common),
            "degen": DegenStrategy(self.token_feed, self.pump_trader, self.swap_executor,
                                   logger=self.logger.child("degen"), scam_checker=self.scam_checker, **common),
            "safe": SafeStrategy(self.swap_executor, logger=self.logger.child("safe"), **common),
            "predictive": PredictiveStrategy(self.predictor, self.swap_executor,
                                             logger=self.logger.child("predictive"), **common),
        }

    def _request(self, **kwargs) -> StrategyRequest:
        if kwargs.get("exit_to") is None:
            kwargs["exit_to"] = self.config.strategy.default_exit_to
        if kwargs.get("monitor_interval_sec") is None:
            kwargs["monitor_interval_sec"] = self.config.strategy.monitor_interval_sec
        return StrategyRequest(**kwargs)

    # Strategies

    async def arbitrage_strategy(self, token_mint_a: str, token_mint_b: str, confirm: ConfirmCallback,
                                 amount: Optional[int] = None,
                                 stop_loss_percent: Optional[float] = None,
                                 take_profit_percent: Optional[float] = None,
                                 exit_to: Optional[str] = None,
                                 monitor_interval_sec: Optional[float] = None) -> StrategyResult:
        return await self.strategies["arbitrage"].execute(self._request(
            confirm=confirm, input_mint=token_mint_a, output_mint=token_mint_b, amount=amount,
            stop_loss_percent=stop_loss_percent, take_profit_percent=take_profit_percent,
            exit_to=exit_to, monitor_interval_sec=monitor_interval_sec,
        ))

    async def dao_strategy(self, amount: int, confirm: ConfirmCallback,
                           stop_loss_percent: Optional[float] = None,
                           take_profit_percent: Optional[float] = None,
                           exit_to: Optional[str] = None,
                           monitor_interval_sec: Optional[float] = None) -> StrategyResult:
        return await self.strategies["dao"].execute(self._request(
            confirm=confirm, amount=amount,
            stop_loss_percent=stop_loss_percent, take_profit_percent=take_profit_percent,
            exit_to=exit_to, monitor_interval_sec=monitor_interval_sec,
        ))

    async def degen_strategy(self, amount: int, stop_loss_percent: float, take_profit_percent: float,
                             confirm: ConfirmCallback,
                             exit_to: Optional[str] = None,
                             monitor_interval_sec: Optional[float] = None) -> StrategyResult:
        return await self.strategies["degen"].execute(self._request(
            confirm=confirm, amount=amount,
            stop_loss_percent=stop_loss_percent, take_profit_percent=take_profit_percent,
            exit_to=exit_to, monitor_interval_sec=monitor_interval_sec,
        ))

    async def safe_strategy(self, token_mint: str, amount: int, stop_loss_percent: float,
                            take_profit_percent: float, confirm: ConfirmCallback,
                            exit_to: Optional[str] = None,
                            monitor_interval_sec: Optional[float] = None) -> StrategyResult:
        return await self.strategies["safe"].execute(self._request(
            confirm=confirm, token_mint=token_mint, amount=amount,
            stop_loss_percent=stop_loss_percent, take_profit_percent=take_profit_percent,
            exit_to=exit_to, monitor_interval_sec=monitor_interval_sec,
        ))

    async def predictive_strategy(self, token_mint: str, symbol: str, amount: int,
                                  stop_loss_percent: float, take_profit_percent: float,
                                  confirm: Optional[ConfirmCallback] = None,
                                  auto_trade: bool = False,
                                  exit_to: Optional[str] = None,
                                  monitor_interval_sec: Optional[float] = None) -> StrategyResult:
        return await self.strategies["predictive"].execute(self._request(
            confirm=confirm, token_mint=token_mint, symbol=symbol, amount=amount,
            stop_loss_percent=stop_loss_percent, take_profit_percent=take_profit_percent,
            auto_trade=auto_trade, exit_to=exit_to, monitor_interval_sec=monitor_interval_sec,
        ))

    async def predict(self, token_mint: str, symbol: str) -> PredictionResult:
        return await self.predictor.predict(token_mint, symbol)

    # Wallet and token analysis

    def _owner(self, owner: Optional[str]) -> str:
        return owner or str(self.wallet.pubkey())

    async def check_wallet_balance(self, owner: Optional[str] = None) -> WalletBalance:
        """SOL and SPL balances; defaults to the trading wallet"""
        return await self.portfolio.check_wallet_balance(self._owner(owner))

    async def track_portfolio(self, owner: Optional[str] = None) -> Dict[str, Any]:
        return await self.portfolio.track(self._owner(owner))

    async def scam_check(self, token_mint: str) -> ScamCheckResult:
        return await self.scam_checker.check(token_mint)

    async def market_trends(self, token_mint: str) -> Dict[str, Any]:
        if not token_mint:
            raise StrategyValidationError("Token mint is required for market trends.")
        return await self.market_trend_analyzer.analyze(token_mint)

    # Direct trading

    async def swap(self, input_mint: str, output_mint: str, amount: int, slippage_bps: Optional[int] = None) -> str:
        return await self.swap_executor.swap(input_mint, output_mint, amount, slippage_bps)

    async def buy(self, token_mint: str, amount: int) -> str:
        return await self.swap_executor.buy(token_mint, amount)

    async def sell(self, token_mint: str, amount: int) -> str:
        return await self.swap_executor.sell(token_mint, amount)

    # Background loops

    def start_price_watcher(self, token_mint: str, interval_sec: float = 10.0,
                            on_tick: Optional[TickCallback] = None) -> str:
        if not token_mint:
            raise StrategyValidationError("Token mint is required for price monitoring.")
        if isinstance(interval_sec, bool) or not isinstance(interval_sec, (int, float)) or interval_sec <= 0:
            raise StrategyValidationError("Interval must be a positive number.")
        watcher_id = f"watch-{uuid.uuid4().hex[:8]}"
        watcher = PriceWatcher(
            watcher_id, token_mint, self.price_source, interval_sec, on_tick,
            rsi_oversold=self.config.prediction.rsi_oversold,
            rsi_overbought=self.config.prediction.rsi_overbought,
            logger=self.logger.child(f"watcher.{watcher_id}"),
        )
        return self.position_tracker.add(watcher)

    def start_auto_buy_sell(self, token_mint: str, action: str, amount: int) -> Dict[str, object]:
        if not self.config.strategy.auto_trade_enabled:
            return {"started": False, "message": "Automated trading disabled"}
        loop_id = f"auto-{uuid.uuid4().hex[:8]}"
        loop = AutoBuySellLoop(
            loop_id, token_mint, action, amount, self.swap_executor,
            interval_sec=self.config.strategy.auto_buy_sell_interval_sec,
            logger=self.logger.child(f"auto.{loop_id}"),
        )
        self.position_tracker.add(loop)
        return {"started": True, "message": "Automated buy/sell started", "id": loop_id}

    async def stop_loop(self, loop_id: str) -> bool:
        """Stop a position monitor, price watcher or auto buy/sell loop by id"""
        return await self.position_tracker.stop(loop_id)

    def get_open_positions(self) -> Dict[str, Position]:
        return self.position_tracker.get_active_positions()

    def list_loops(self, kind: Optional[str] = None) -> List[str]:
        return self.position_tracker.list_ids(kind)

    # Lifecycle

    async def start(self):
        """Start the trading system"""
        try:
            self.is_running = True
            self.logger.critical("Trading System Starting")
            if self._owns_feed:
                self._feed_task = asyncio.create_task(self.token_feed.start())
        except Exception as e:
            self.logger.critical(f"Failed to start trading system: {str(e)}")
            self.is_running = False
            raise

    async def stop(self):
        """Stop all loops and release network resources"""
        self.logger.critical("Initiating trading system shutdown")
        self.is_running = False

        stopped = await self.position_tracker.stop_all()
        if stopped:
            self.logger.warning(f"Stopped {stopped} background loops, open positions are no longer monitored")

        if self._owns_feed:
            await self.token_feed.stop()
            if self._feed_task is not None:
                self._feed_task.cancel()
                await asyncio.gather(self._feed_task, return_exceptions=True)
                self._feed_task = None

        for closeable in self._closeables:
            try:
                await closeable.close()
            except Exception as e:
                self.logger.error(f"Error closing {type(closeable).__name__}: {str(e)}")

        self.logger.info("Trading system stopped successfully")
