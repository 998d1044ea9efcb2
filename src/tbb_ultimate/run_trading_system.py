import argparse
import asyncio
import json
import signal
import sys
from typing import List, Optional

from tbb_ultimate.core.errors import TradingError
from tbb_ultimate.core.trading_system import TradingSystem
from tbb_ultimate.core.types import StrategyResult
from tbb_ultimate.utils.config import Config
from tbb_ultimate.utils.logger import TradingLogger

STRATEGIES = ("arbitrage", "dao", "degen", "safe", "predictive")
TOOLS = ("balance", "portfolio", "scam-check", "trends")

async def terminal_confirm(message: str) -> bool:
    """Yes/no prompt on stdin without blocking the event loop"""
    answer = await asyncio.to_thread(input, f"{message} [y/N] ")
    return answer.strip().lower() in ("y", "yes")

async def auto_confirm(message: str) -> bool:
    return True

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tbb-ultimate", description="Run one Solana trading strategy or wallet tool")
    parser.add_argument("strategy", choices=STRATEGIES + TOOLS, metavar="command",
                        help=f"One of: {', '.join(STRATEGIES + TOOLS)}")
    parser.add_argument("--config", default="config.yaml", help="YAML configuration file")
    parser.add_argument("--token-mint", help="Token to trade (safe, predictive), to check (scam-check, trends) or tokenMintA (arbitrage)")
    parser.add_argument("--token-mint-b", help="tokenMintB (arbitrage)")
    parser.add_argument("--owner", help="Wallet address (balance, portfolio); defaults to the trading wallet")
    parser.add_argument("--symbol", help="Token symbol (predictive)")
    parser.add_argument("--amount", type=int, help="Trade amount in smallest units")
    parser.add_argument("--stop-loss", type=float, dest="stop_loss_percent")
    parser.add_argument("--take-profit", type=float, dest="take_profit_percent")
    parser.add_argument("--exit-to", choices=("USDC", "SOL"))
    parser.add_argument("--interval", type=float, dest="monitor_interval_sec", help="Monitor interval in seconds")
    parser.add_argument("--auto-trade", action="store_true", help="Predictive: trade without confirmation")
    parser.add_argument("--dry-run", action="store_true", help="Simulate trades")
    parser.add_argument("--yes", action="store_true", help="Approve every confirmation")
    parser.add_argument("--log-dir", help="Write a log file into this directory")
    return parser

class InitTradingSystem:
    def __init__(self, logger: TradingLogger = None):
        self.trading_bot: Optional[TradingSystem] = None
        self.logger = logger
        self._shutdown_event = asyncio.Event()

    def handle_shutdown(self, signum, frame=None):
        """Handle shutdown signals"""
        self.logger.info(f"Received signal {signum}. Starting graceful shutdown...")
        self._shutdown_event.set()

    async def run_strategy(self, system: TradingSystem, args: argparse.Namespace) -> StrategyResult:
        confirm = auto_confirm if args.yes else terminal_confirm
        common = dict(exit_to=args.exit_to, monitor_interval_sec=args.monitor_interval_sec)

        if args.strategy == "arbitrage":
            return await system.arbitrage_strategy(
                args.token_mint, args.token_mint_b, confirm, amount=args.amount,
                stop_loss_percent=args.stop_loss_percent, take_profit_percent=args.take_profit_percent, **common,
            )
        if args.strategy == "dao":
            return await system.dao_strategy(
                args.amount, confirm,
                stop_loss_percent=args.stop_loss_percent, take_profit_percent=args.take_profit_percent, **common,
            )
        if args.strategy == "degen":
            # Give the discovery feed a moment to receive tokens
            await asyncio.sleep(5)
            return await system.degen_strategy(
                args.amount, args.stop_loss_percent, args.take_profit_percent, confirm, **common,
            )
        if args.strategy == "safe":
            return await system.safe_strategy(
                args.token_mint, args.amount, args.stop_loss_percent, args.take_profit_percent, confirm, **common,
            )
        return await system.predictive_strategy(
            args.token_mint, args.symbol, args.amount, args.stop_loss_percent, args.take_profit_percent,
            confirm=confirm, auto_trade=args.auto_trade, **common,
        )

    async def run_tool(self, system: TradingSystem, args: argparse.Namespace) -> dict:
        if args.strategy == "balance":
            balance = await system.check_wallet_balance(args.owner)
            return {
                "message": "Wallet balances fetched successfully.",
                "owner": balance.owner,
                "solBalance": balance.lamports,
                "splTokens": [{"mint": t.token_mint, "amount": t.amount, "decimals": t.decimals} for t in balance.tokens],
            }
        if args.strategy == "portfolio":
            return await system.track_portfolio(args.owner)
        if args.strategy == "scam-check":
            return (await system.scam_check(args.token_mint)).to_dict()
        return await system.market_trends(args.token_mint)

    async def run_trading_system(self, args: argparse.Namespace) -> int:
        """Run one strategy, then keep running while its monitors are alive"""
        config = Config(args.config)
        if args.dry_run:
            config.strategy.dry_run = True

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.handle_shutdown, sig)
            except NotImplementedError:
                signal.signal(sig, self.handle_shutdown)

        self.trading_bot = TradingSystem(config=config, logger=self.logger)
        try:
            if args.strategy in TOOLS:
                print(json.dumps(await self.run_tool(self.trading_bot, args), indent=2))
                return 0

            await self.trading_bot.start()
            result = await self.run_strategy(self.trading_bot, args)
            print(f"[{result.status.value}] {result.message}")

            # Keep the system running until monitors finish or a shutdown signal
            while self.trading_bot.list_loops() and not self._shutdown_event.is_set():
                try:
                    await asyncio.wait_for(self._shutdown_event.wait(), timeout=1)
                except asyncio.TimeoutError:
                    continue
            return 0
        except TradingError as e:
            self.logger.error(f"Error in trading system: {e}")
            print(str(e), file=sys.stderr)
            return 1
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Gracefully shutdown the trading system"""
        if self.trading_bot is None:
            return
        shutdown_timeout = 10
        try:
            await asyncio.wait_for(self.trading_bot.stop(), timeout=shutdown_timeout)
        except asyncio.TimeoutError:
            self.logger.error(f"Shutdown timed out after {shutdown_timeout} seconds")
        finally:
            self.trading_bot = None

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Configure logging
    logger = TradingLogger("tbb_ultimate", log_dir=args.log_dir, console_output=True)

    runner = InitTradingSystem(logger)
    return asyncio.run(runner.run_trading_system(args))

if __name__ == "__main__":
    sys.exit(main())
