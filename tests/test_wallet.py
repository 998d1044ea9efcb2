import json

import base58
import pytest
from solders.keypair import Keypair

from tbb_ultimate.execution.wallet import WalletManager, keypair_from_secret

def test_secret_as_base58():
    keypair = Keypair()
    loaded = keypair_from_secret(base58.b58encode(bytes(keypair)).decode())
    assert loaded.pubkey() == keypair.pubkey()

def test_secret_as_json_byte_array():
    keypair = Keypair()
    loaded = keypair_from_secret(json.dumps(list(bytes(keypair))))
    assert loaded.pubkey() == keypair.pubkey()

def test_missing_key_generates_throwaway_wallet(tmp_path, logger, caplog):
    manager = WalletManager(str(tmp_path), logger)

    with caplog.at_level("WARNING"):
        wallet = manager.load_wallet(None)

    assert isinstance(wallet, Keypair)
    assert "PRIVATE_KEY not set" in caplog.text

def test_save_and_load_wallet_file(tmp_path, logger):
    manager = WalletManager(str(tmp_path), logger)
    keypair = Keypair()

    path = manager.save_wallet(keypair, "id.json")

    assert json.loads(path.read_text()) == list(bytes(keypair))
    assert manager.load_wallet_file("id.json").pubkey() == keypair.pubkey()

def test_garbage_secret_is_rejected():
    with pytest.raises(ValueError):
        keypair_from_secret("0OIl")
