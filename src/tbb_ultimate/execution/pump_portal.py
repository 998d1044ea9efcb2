from typing import Optional
import aiohttp

from tbb_ultimate.core.errors import NetworkError, SwapError
from tbb_ultimate.execution.constants import LAMPORTS_PER_SOL, PUMP_TOKEN_DECIMALS
from tbb_ultimate.execution.transaction_sender import TransactionSender
from tbb_ultimate.utils.logger import TradingLogger

class PumpPortalExecutor:
    """Trades pump.fun tokens through PumpPortal's local transaction API"""

    def __init__(self, sender: TransactionSender,
                 base_url: str = "https://pumpportal.fun/api",
                 session: Optional[aiohttp.ClientSession] = None,
                 logger: Optional[TradingLogger] = None,
                 slippage_percent: float = 10.0,
                 priority_fee_sol: float = 0.00001):
        self.sender = sender
        self.base_url = base_url.rstrip("/")
        self.logger = logger or TradingLogger("tbb_ultimate.pump_portal")
        self.slippage_percent = slippage_percent
        self.priority_fee_sol = priority_fee_sol
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _fetch_transaction(self, payload: dict) -> bytes:
        session = await self._get_session()
        try:
            async with session.post(f"{self.base_url}/trade-local", data=payload) as response:
                if response.status != 200:
                    text = await response.text()
                    raise NetworkError(f"PumpPortal returned {response.status}: {text}")
                return await response.read()
        except aiohttp.ClientError as e:
            raise NetworkError(f"PumpPortal request failed: {str(e)}") from e

    async def trade(self, token_mint: str, action: str, amount: int) -> str:
        """
        Buy or sell a pump.fun token and return the confirmed signature.

        Buys are sized in lamports of SOL, sells in base units of the token.
        """
        if not token_mint:
            raise ValueError("Pump.fun trade requires a token mint.")
        if action not in ("buy", "sell"):
            raise ValueError("Action must be 'buy' or 'sell'.")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValueError("Trade amount must be a positive integer.")

        if action == "buy":
            ui_amount = amount / LAMPORTS_PER_SOL
        else:
            ui_amount = amount / 10 ** PUMP_TOKEN_DECIMALS

        payload = {
            "publicKey": str(self.sender.wallet.pubkey()),
            "action": action,
            "mint": token_mint,
            "amount": ui_amount,
            "denominatedInSol": "true" if action == "buy" else "false",
            "slippage": self.slippage_percent,
            "priorityFee": self.priority_fee_sol,
            "pool": "pump",
        }

        self.logger.info(f"Building pump.fun {action} for {token_mint}, amount {ui_amount}")
        try:
            raw_transaction = await self._fetch_transaction(payload)
            signature = await self.sender.send_and_confirm(raw_transaction)
        except Exception as e:
            raise SwapError(f"Pump.fun {action} failed: {str(e)}") from e

        self.logger.info(f"Pump.fun {action} for {token_mint} confirmed: {signature}")
        return signature

    async def close(self):
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
