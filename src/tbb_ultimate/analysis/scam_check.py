from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time

from tbb_ultimate.core.errors import NetworkError, StrategyValidationError
from tbb_ultimate.utils.config import RISK_LEVELS
from tbb_ultimate.utils.logger import TradingLogger

BURN_ADDRESS = "11111111111111111111111111111111"
LIQUIDITY_LOCKERS = (
    BURN_ADDRESS,
    "4ckmDgGz5qQh6vny1tRQAMf6Tx5Rk8QeYv1GZ6tMCp7y",
)

@dataclass
class ScamCheckResult:
    """Rug/scam risk of one token. ``risk`` is low, medium, high or unknown."""
    token_mint: str
    risk: str = "unknown"
    reasons: List[str] = field(default_factory=list)
    message: str = "Scam check completed."
    liquidity_usd: Optional[float] = None
    largest_holder_pct: Optional[float] = None
    mint_authority: Optional[str] = None

    def flag(self, level: str, reason: str):
        """Record a finding; the overall risk only goes up"""
        current = RISK_LEVELS.index(self.risk) if self.risk in RISK_LEVELS else -1
        if RISK_LEVELS.index(level) > current:
            self.risk = level
        self.reasons.append(reason)

    def is_acceptable(self, max_risk: str) -> bool:
        if self.risk not in RISK_LEVELS:
            return False
        return RISK_LEVELS.index(self.risk) <= RISK_LEVELS.index(max_risk)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "risk": self.risk,
            "reasons": list(self.reasons),
            "liquidityUsd": self.liquidity_usd,
            "largestHolderPct": self.largest_holder_pct,
            "mintAuthority": self.mint_authority,
        }

class ScamChecker:
    """
    Scores a token for scam and rug-pull risk.

    Market checks use the Dexscreener snapshot (verification, liquidity,
    24h trading activity, pair age). On-chain checks use the mint account
    (unrenounced mint authority) and the largest holders (supply
    concentration, locked liquidity). On-chain checks are skipped, and
    noted in the reasons, when no RPC client is configured or the node is
    unreachable.
    """

    def __init__(self, price_source, rpc=None, logger: Optional[TradingLogger] = None,
                 min_liquidity_usd: float = 1000.0,
                 min_txns_24h: int = 10,
                 min_age_days: float = 3.0,
                 holder_medium_pct: float = 10.0,
                 holder_high_pct: float = 30.0):
        self.price_source = price_source
        self.rpc = rpc
        self.logger = logger or TradingLogger("tbb_ultimate.scam_check")
        self.min_liquidity_usd = min_liquidity_usd
        self.min_txns_24h = min_txns_24h
        self.min_age_days = min_age_days
        self.holder_medium_pct = holder_medium_pct
        self.holder_high_pct = holder_high_pct

    async def check(self, token_mint: str) -> ScamCheckResult:
        if not token_mint:
            raise StrategyValidationError("Token mint is required for scam check.")

        result = ScamCheckResult(token_mint=token_mint)
        data = await self.price_source.get_token_data(token_mint)
        if "error" in data:
            result.message = f"Failed to get token info: {data['error']}"
            result.reasons.append(data["error"])
            self.logger.warning(f"Scam check for {token_mint} incomplete: {data['error']}")
            return result

        self._check_market(data, result)
        if self.rpc is not None:
            await self._check_chain(token_mint, result)
        else:
            result.reasons.append("On-chain checks skipped: no RPC client.")

        if result.risk == "unknown":
            result.risk = "low"
        self.logger.info(f"Scam check for {token_mint}: {result.risk} risk ({'; '.join(result.reasons)})")
        return result

    def _check_market(self, data: Dict[str, Any], result: ScamCheckResult):
        pair = data.get("raw") or {}
        if pair.get("verified") is False:
            result.flag("high", "Token is not verified on Dexscreener.")

        result.liquidity_usd = data.get("liquidityUsd") or 0.0
        if result.liquidity_usd < self.min_liquidity_usd:
            result.flag("high", "Low liquidity.")

        if self._txns_24h(data.get("txnsH24")) < self.min_txns_24h:
            result.flag("medium", "Low trading activity.")

        created_at = data.get("pairCreatedAt")
        if isinstance(created_at, (int, float)) and not isinstance(created_at, bool):
            age_days = (time.time() * 1000 - created_at) / 86_400_000
            if age_days < self.min_age_days:
                result.flag("medium", "Token is very new.")

    @staticmethod
    def _txns_24h(txns) -> int:
        # Dexscreener reports {"buys": n, "sells": m}
        if isinstance(txns, dict):
            txns = (txns.get("buys") or 0) + (txns.get("sells") or 0)
        try:
            return int(txns or 0)
        except (TypeError, ValueError):
            return 0

    async def _check_chain(self, token_mint: str, result: ScamCheckResult):
        try:
            mint_info = await self.rpc.get_mint_info(token_mint)
            holders = await self.rpc.get_largest_holders(token_mint)
        except (NetworkError, ValueError) as e:
            self.logger.warning(f"On-chain scam checks for {token_mint} failed: {str(e)}")
            result.reasons.append("On-chain checks unavailable.")
            return

        mint_info = mint_info or {}
        authority = mint_info.get("mintAuthority")
        if authority and authority != BURN_ADDRESS:
            result.mint_authority = authority
            result.flag("high", "Mint authority is not renounced (hidden mint authority risk).")

        if not holders:
            return
        largest = holders[0]
        try:
            supply = int(mint_info.get("supply") or 0) / 10 ** int(mint_info.get("decimals") or 0)
        except (TypeError, ValueError):
            supply = 0
        if supply > 0:
            result.largest_holder_pct = largest["amount"] / supply * 100
            if result.largest_holder_pct > self.holder_high_pct:
                result.flag("high", f"A single wallet holds more than {self.holder_high_pct:g}% of supply.")
            elif result.largest_holder_pct > self.holder_medium_pct:
                result.flag("medium", f"A single wallet holds more than {self.holder_medium_pct:g}% of supply.")

        if largest["address"] in LIQUIDITY_LOCKERS:
            result.reasons.append("Liquidity appears to be locked.")
        else:
            result.reasons.append("Liquidity may not be locked.")
