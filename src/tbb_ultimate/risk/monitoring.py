from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, List, Optional
import asyncio
import math

from tbb_ultimate.core.events import ExitEvent, ExitReason
from tbb_ultimate.risk.position import Position
from tbb_ultimate.risk.risk_manager import RiskManager
from tbb_ultimate.utils.logger import TradingLogger

PriceFetcher = Callable[[str], Awaitable[Optional[float]]]

class LoopStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXITED = "EXITED"
    STOPPED = "STOPPED"
    EXIT_FAILED = "EXIT_FAILED"

class BackgroundLoop:
    """
    A cancellable periodic task.

    The loop sleeps by waiting on its stop event, so ``stop()`` wakes it
    immediately instead of after the current interval.
    """

    kind = "loop"

    def __init__(self, loop_id: str, interval_sec: float, logger: Optional[TradingLogger] = None,
                 tick_immediately: bool = False):
        if interval_sec <= 0:
            raise ValueError("Interval must be a positive number.")
        self.loop_id = loop_id
        self.interval_sec = interval_sec
        self.tick_immediately = tick_immediately
        self.logger = logger or TradingLogger(f"tbb_ultimate.{self.kind}")

        self.status = LoopStatus.ACTIVE
        self.ticks = 0
        self.task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._done_callbacks: List[Callable[["BackgroundLoop"], None]] = []

    @property
    def is_running(self) -> bool:
        return self.task is not None and not self.task.done()

    def add_done_callback(self, callback: Callable[["BackgroundLoop"], None]):
        self._done_callbacks.append(callback)

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop"""
        if self.task is None:
            self.logger.info(f"Starting {self.kind} {self.loop_id} (every {self.interval_sec}s)")
            coro = self._run()
            try:
                self.task = asyncio.create_task(coro, name=f"{self.kind}-{self.loop_id}")
            except RuntimeError:
                coro.close()
                raise
        return self.task

    def stop(self):
        """Signal the loop to finish after the current tick"""
        if self.status == LoopStatus.ACTIVE:
            self.status = LoopStatus.STOPPED
        self._stop_event.set()

    async def wait_closed(self):
        if self.task is not None:
            await asyncio.shield(self.task)

    async def tick(self) -> bool:
        """One iteration. Return False to end the loop."""
        raise NotImplementedError

    async def _sleep(self) -> bool:
        """Wait one interval; True when stop was requested meanwhile"""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_sec)
            return True
        except asyncio.TimeoutError:
            return False

    async def _run(self):
        try:
            first = True
            while not self._stop_event.is_set():
                if not (first and self.tick_immediately):
                    if await self._sleep():
                        break
                first = False

                self.ticks += 1
                try:
                    keep_running = await self.tick()
                except Exception as e:
                    self.logger.error(f"{self.kind} {self.loop_id} tick failed: {str(e)}")
                    keep_running = True

                if not keep_running:
                    break
        finally:
            self.logger.info(f"{self.kind} {self.loop_id} finished with status {self.status.value}")
            for callback in self._done_callbacks:
                callback(self)

class PositionMonitor(BackgroundLoop):
    """Polls price for one open position and closes it on stop-loss or take-profit"""

    kind = "position_monitor"

    def __init__(self, position: Position, price_fetcher: PriceFetcher, swap_executor,
                 risk_manager: Optional[RiskManager] = None, logger: Optional[TradingLogger] = None):
        super().__init__(position.position_id, position.poll_interval_sec, logger)
        self.position = position
        self.price_fetcher = price_fetcher
        self.swap_executor = swap_executor
        self.risk_manager = risk_manager or RiskManager()
        self.last_price: Optional[float] = None
        self.exit_event: Optional[ExitEvent] = None

    def stop(self):
        # A stopped monitor must never issue an exit afterwards
        self.position.active = False
        super().stop()

    async def _fetch_price(self) -> Optional[float]:
        try:
            price = await self.price_fetcher(self.position.token_mint)
            price = float(price) if price is not None else None
        except Exception as e:
            self.logger.debug(f"Skipping cycle for {self.position.token_mint}: {str(e)}")
            return None
        if price is None or not math.isfinite(price) or price <= 0:
            self.logger.debug(f"Skipping cycle for {self.position.token_mint}: no usable price")
            return None
        return price

    async def poll_once(self) -> Optional[ExitEvent]:
        """Check the price once; exits the position when a threshold is crossed"""
        if not self.position.active:
            return None

        price = await self._fetch_price()
        if price is None or not self.position.active:
            return None
        self.last_price = price

        reason = self.risk_manager.check_exit(self.position, price)
        if reason is None:
            return None

        # Flip before awaiting the exit swap so no other poll can exit again
        self.position.active = False
        self.status = LoopStatus.EXITED

        change = self.position.percent_change(price)
        label = "Stop loss" if reason == ExitReason.STOP_LOSS else "Take profit"
        event = ExitEvent(
            timestamp=datetime.now(),
            position_id=self.position.position_id,
            token_mint=self.position.token_mint,
            reason=reason,
            entry_price=self.position.entry_price,
            exit_price=price,
            percent_change=change,
            exit_target=self.position.exit_target,
            hold_time_minutes=(datetime.now() - self.position.opened_at).total_seconds() / 60.0,
        )
        self.exit_event = event

        try:
            event.signature = await self.swap_executor.swap(
                self.position.token_mint,
                self.position.exit_target,
                self.position.amount,
            )
            self.logger.info(
                f"{label} triggered for {self.position.token_mint} at {price} ({change:.2f}%), "
                f"exited to {self.position.exit_target}: {event.signature}"
            )
        except Exception as e:
            self.status = LoopStatus.EXIT_FAILED
            event.error = str(e)
            self.logger.critical(
                f"{label} triggered for {self.position.token_mint} at {price} ({change:.2f}%) "
                f"but exit swap failed, position is unmanaged: {str(e)}"
            )
        return event

    async def tick(self) -> bool:
        await self.poll_once()
        return self.position.active
