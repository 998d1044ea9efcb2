import json
import websockets
import asyncio
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List, Optional
import websockets.exceptions

from tbb_ultimate.core.types import DiscoveredToken
from tbb_ultimate.utils.logger import TradingLogger

class PumpDataFeed:
    """PumpPortal real-time feed of newly created pump.fun tokens"""

    def __init__(self, ws_url: str = "wss://pumpportal.fun/api/data",
                 logger: Optional[TradingLogger] = None,
                 max_tokens: int = 50,
                 reconnect_delay: float = 5.0):
        self.ws_url = ws_url
        self.callbacks: List[Callable] = []
        self.ws = None
        self.logger = logger or TradingLogger("tbb_ultimate.pump_feed")
        self.reconnect_delay = reconnect_delay
        self.is_running = False

        # Newest first
        self.tokens: Deque[DiscoveredToken] = deque(maxlen=max_tokens)

        # Simple metrics tracking
        self.connection_status = {
            'last_disconnect_time': None,
            'disconnect_code': None,
            'reconnect_success': False,
            'time_to_reconnect': 0.0
        }

        self.message_health = {
            'last_message_time': None,
            'messages_received': 0,
            'processing_errors': 0
        }

    async def connect(self):
        while self.is_running:
            try:
                connect_start = datetime.now()
                self.logger.info(f"Attempting to connect to WebSocket at {self.ws_url}")
                self.ws = await websockets.connect(self.ws_url)

                # Track successful connection
                self.connection_status['reconnect_success'] = True
                self.connection_status['time_to_reconnect'] = (datetime.now() - connect_start).total_seconds()

                await self.ws.send(json.dumps({"method": "subscribeNewToken"}))
                self.logger.info("New token subscription sent successfully")

                while self.is_running:
                    try:
                        msg = await self.ws.recv()
                        self.message_health['last_message_time'] = datetime.now()
                        self.message_health['messages_received'] += 1
                        await self.process_message(msg)

                    except websockets.exceptions.ConnectionClosed as e:
                        self.connection_status['last_disconnect_time'] = datetime.now()
                        code = e.rcvd.code if e.rcvd is not None else None
                        self.connection_status['disconnect_code'] = code
                        self.connection_status['reconnect_success'] = False

                        self.logger.error(
                            f"WebSocket disconnected. Code: {code}, "
                            f"Last message: {self.message_health['last_message_time']}"
                        )
                        break

            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.error(f"Connection error: {str(e)}")
            finally:
                await self._close_ws()

            # Back off before reconnecting, also after a server-side close
            if self.is_running:
                await asyncio.sleep(self.reconnect_delay)

    async def _close_ws(self):
        ws, self.ws = self.ws, None
        if ws is None:
            return
        try:
            await ws.close()
        except Exception as e:
            self.logger.debug(f"Error closing WebSocket: {str(e)}")

    def add_callback(self, callback: Callable):
        """Add a callback to receive newly discovered tokens"""
        self.callbacks.append(callback)

    async def start(self):
        """Start the data feed"""
        self.is_running = True
        await self.connect()

    async def stop(self):
        """Async method to stop the feed"""
        self.is_running = False
        await self._close_ws()

    async def get_real_time_tokens(self) -> List[DiscoveredToken]:
        """Most recently created tokens, newest first"""
        return list(self.tokens)

    async def process_message(self, msg: str):
        try:
            data = json.loads(msg)

            # Subscription acknowledgements carry a message but no mint
            if not isinstance(data, dict) or not data.get("mint"):
                return

            token = DiscoveredToken(
                token_mint=data["mint"],
                name=data.get("name", ""),
                symbol=data.get("symbol", ""),
            )
            self.tokens.appendleft(token)
            self.logger.debug(f"New token discovered: {token.symbol} ({token.token_mint})")

            for callback in self.callbacks:
                await callback(token)

        except Exception as e:
            self.message_health['processing_errors'] += 1
            self.logger.debug(f"Error processing feed message: {str(e)}")
