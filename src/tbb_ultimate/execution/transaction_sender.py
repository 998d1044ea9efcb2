import base64
from typing import Optional, Union
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts

from tbb_ultimate.core.errors import TransactionError
from tbb_ultimate.utils.logger import TradingLogger

class TransactionSender:
    """Signs externally built transactions with the held keypair, submits and confirms them"""

    def __init__(self, wallet: Keypair, client: AsyncClient, logger: Optional[TradingLogger] = None):
        self.wallet = wallet
        self.client = client
        self.logger = logger or TradingLogger("tbb_ultimate.sender")

    def sign(self, serialized: Union[str, bytes]) -> VersionedTransaction:
        """Sign a base64 string or raw serialized versioned transaction"""
        raw = base64.b64decode(serialized) if isinstance(serialized, str) else serialized
        try:
            unsigned = VersionedTransaction.from_bytes(raw)
            return VersionedTransaction(unsigned.message, [self.wallet])
        except Exception as e:
            raise TransactionError(f"Failed to sign transaction: {str(e)}") from e

    async def send_and_confirm(self, serialized: Union[str, bytes]) -> str:
        """Sign, submit and wait for confirmation. Returns the signature."""
        transaction = self.sign(serialized)

        try:
            self.logger.info("Sending transaction")
            response = await self.client.send_raw_transaction(
                bytes(transaction),
                opts=TxOpts(skip_preflight=False, preflight_commitment=Confirmed)
            )
            signature = response.value
            self.logger.info(f"Transaction sent: {signature}")
        except Exception as e:
            raise TransactionError(f"Failed to send transaction: {str(e)}") from e

        try:
            self.logger.info(f"Waiting for confirmation of {signature}")
            confirmation = await self.client.confirm_transaction(signature, commitment=Confirmed)
        except Exception as e:
            raise TransactionError(f"Failed to confirm transaction {signature}: {str(e)}") from e

        statuses = getattr(confirmation, "value", None) or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise TransactionError(f"Transaction {signature} failed on chain: {status.err}")

        self.logger.info(f"Transaction {signature} confirmed")
        return str(signature)

    async def close(self):
        await self.client.close()
