import base58
from solders.keypair import Keypair
from pathlib import Path
from typing import Optional
import json
import os

from tbb_ultimate.utils.logger import TradingLogger

def keypair_from_secret(secret: str) -> Keypair:
    """Parse a secret key given as a JSON byte array or a base58 string"""
    content = secret.strip()
    try:
        parsed = json.loads(content)
        if isinstance(parsed, list):
            return Keypair.from_bytes(bytes(parsed))
    except json.JSONDecodeError:
        pass
    return Keypair.from_bytes(base58.b58decode(content))

class WalletManager:
    def __init__(self, config_dir: str = "~/.config/solana", logger: Optional[TradingLogger] = None):
        self.config_dir = os.path.expanduser(config_dir)
        self.logger = logger or TradingLogger("tbb_ultimate.wallet")

    def load_wallet(self, private_key: Optional[str] = None) -> Keypair:
        """
        Load the process-wide signer.

        Uses the supplied secret (normally PRIVATE_KEY from the environment).
        Without one a throwaway keypair is generated so read-only features
        keep working; it holds no funds.
        """
        if private_key:
            wallet = keypair_from_secret(private_key)
            self.logger.info(f"Loaded wallet {wallet.pubkey()}")
            return wallet

        wallet = Keypair()
        self.logger.warning(
            f"PRIVATE_KEY not set, generated throwaway wallet {wallet.pubkey()}. "
            "Trades will fail until a funded key is configured."
        )
        return wallet

    def load_wallet_file(self, filename: str = "id.json") -> Keypair:
        """Load wallet from a Solana CLI keypair file"""
        path = Path(self.config_dir) / filename

        with open(path, 'r') as f:
            return keypair_from_secret(f.read())

    def save_wallet(self, keypair: Keypair, filename: str = "test-wallet.json") -> Path:
        """Save wallet to JSON file in Solana CLI format"""
        path = Path(self.config_dir) / filename
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(list(bytes(keypair)), f)

        self.logger.info(f"Wallet {keypair.pubkey()} saved to: {path}")
        return path
