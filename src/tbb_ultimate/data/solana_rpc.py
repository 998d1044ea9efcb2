from typing import Any, Dict, List, Optional
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TokenAccountOpts
from solders.pubkey import Pubkey

from tbb_ultimate.core.errors import NetworkError, StrategyValidationError
from tbb_ultimate.core.types import TokenHolding, WalletBalance
from tbb_ultimate.utils.logger import TradingLogger

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

def to_pubkey(address: str) -> Pubkey:
    if not address:
        raise StrategyValidationError("A Solana address is required.")
    try:
        return Pubkey.from_string(address)
    except ValueError as e:
        raise StrategyValidationError(f"Invalid Solana address: {address}") from e

class SolanaRpcClient:
    """Read-only chain queries: balances, token accounts, mint info and largest holders"""

    def __init__(self, client: AsyncClient, logger: Optional[TradingLogger] = None):
        self.client = client
        self.logger = logger or TradingLogger("tbb_ultimate.solana_rpc")

    async def get_sol_balance(self, owner: str) -> int:
        """Balance in lamports"""
        pubkey = to_pubkey(owner)
        try:
            response = await self.client.get_balance(pubkey, commitment=Confirmed)
        except Exception as e:
            raise NetworkError(f"Failed to fetch SOL balance: {str(e)}") from e
        return int(response.value)

    async def get_token_accounts(self, owner: str) -> List[TokenHolding]:
        """SPL token accounts of a wallet with a non-zero balance"""
        pubkey = to_pubkey(owner)
        try:
            response = await self.client.get_token_accounts_by_owner_json_parsed(
                pubkey,
                TokenAccountOpts(program_id=Pubkey.from_string(TOKEN_PROGRAM_ID)),
                Confirmed,
            )
        except Exception as e:
            raise NetworkError(f"Failed to fetch SPL token accounts: {str(e)}") from e

        holdings = []
        for account in response.value:
            info = account.account.data.parsed["info"]
            token_amount = info["tokenAmount"]
            amount = float(token_amount.get("uiAmount") or 0)
            if amount <= 0:
                continue
            holdings.append(TokenHolding(
                token_mint=info["mint"],
                amount=amount,
                decimals=int(token_amount.get("decimals", 0)),
            ))
        return holdings

    async def get_wallet_balance(self, owner: str) -> WalletBalance:
        lamports = await self.get_sol_balance(owner)
        tokens = await self.get_token_accounts(owner)
        self.logger.info(f"Wallet {owner}: {lamports} lamports, {len(tokens)} token accounts")
        return WalletBalance(owner=owner, lamports=lamports, tokens=tokens)

    async def get_mint_info(self, token_mint: str) -> Optional[Dict[str, Any]]:
        """
        Parsed mint account: ``mintAuthority``, ``freezeAuthority``,
        ``supply`` (raw units, as a string) and ``decimals``. None when the
        account does not exist or is not a mint.
        """
        pubkey = to_pubkey(token_mint)
        try:
            response = await self.client.get_account_info_json_parsed(pubkey, commitment=Confirmed)
        except Exception as e:
            raise NetworkError(f"Failed to fetch mint info: {str(e)}") from e

        account = response.value
        if account is None:
            return None
        parsed = getattr(account.data, "parsed", None)
        if not isinstance(parsed, dict) or parsed.get("type") != "mint":
            return None
        return parsed.get("info")

    async def get_largest_holders(self, token_mint: str) -> List[Dict[str, Any]]:
        """Largest token accounts, biggest first, as ``{address, amount}`` in UI units"""
        pubkey = to_pubkey(token_mint)
        try:
            response = await self.client.get_token_largest_accounts(pubkey, commitment=Confirmed)
        except Exception as e:
            raise NetworkError(f"Failed to fetch token holders: {str(e)}") from e

        return [
            {"address": str(holder.address), "amount": float(holder.amount.ui_amount or 0)}
            for holder in response.value
        ]
