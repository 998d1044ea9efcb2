from collections import deque
from typing import Deque, Dict, List, Optional
import asyncio

from tbb_ultimate.core.events import EntryEvent, ExitEvent
from tbb_ultimate.risk.monitoring import BackgroundLoop, PositionMonitor
from tbb_ultimate.risk.position import Position
from tbb_ultimate.utils.logger import TradingLogger

class PositionTracker:
    """Registry of running background loops keyed by id"""

    def __init__(self, logger: Optional[TradingLogger] = None, max_events: int = 1000):
        self.logger = logger or TradingLogger("tbb_ultimate.tracker")

        # Core state tracking
        self.loops: Dict[str, BackgroundLoop] = {}
        self.entry_events: Deque[EntryEvent] = deque(maxlen=max_events)
        self.exit_events: Deque[ExitEvent] = deque(maxlen=max_events)

    def add(self, loop: BackgroundLoop) -> str:
        """Start a loop and register it"""
        if loop.loop_id in self.loops:
            raise ValueError(f"A loop with id {loop.loop_id} is already running")
        loop.start()
        loop.add_done_callback(self._on_finished)
        self.loops[loop.loop_id] = loop
        self.logger.info(f"Registered {loop.kind} {loop.loop_id}")
        return loop.loop_id

    def _on_finished(self, loop: BackgroundLoop):
        self.loops.pop(loop.loop_id, None)
        if isinstance(loop, PositionMonitor) and loop.exit_event is not None:
            self.exit_events.append(loop.exit_event)

    def get(self, loop_id: str) -> Optional[BackgroundLoop]:
        return self.loops.get(loop_id)

    def has(self, loop_id: str) -> bool:
        return loop_id in self.loops

    def list_ids(self, kind: Optional[str] = None) -> List[str]:
        return [loop_id for loop_id, loop in self.loops.items() if kind is None or loop.kind == kind]

    def get_active_positions(self) -> Dict[str, Position]:
        """Open positions still under monitoring"""
        return {
            loop_id: loop.position
            for loop_id, loop in self.loops.items()
            if isinstance(loop, PositionMonitor) and loop.position.active
        }

    async def stop(self, loop_id: str) -> bool:
        """Stop one loop and wait for it to finish"""
        loop = self.loops.get(loop_id)
        if loop is None:
            return False
        loop.stop()
        await loop.wait_closed()
        self.logger.info(f"Stopped {loop.kind} {loop_id}")
        return True

    async def stop_all(self) -> int:
        loops = list(self.loops.values())
        for loop in loops:
            loop.stop()
        await asyncio.gather(*(loop.wait_closed() for loop in loops), return_exceptions=True)
        if loops:
            self.logger.info(f"Stopped {len(loops)} background loops")
        return len(loops)
