"""
Key, address and account tests.
"""

import pytest

from symbol_service.crypto import Account, Address, Ed25519PrivateKey, Ed25519PublicKey, PublicAccount
from symbol_service.crypto.ed25519 import Ed25519Error
from symbol_service.enums import NetworkType
from symbol_service.runtime.errors import ConfigurationError, ErrorCode, SigningError


@pytest.mark.unit
class TestEd25519:

    def test_seed_is_deterministic(self):
        a = Ed25519PrivateKey.from_seed("seed")
        b = Ed25519PrivateKey.from_seed(b"seed")
        assert a.to_hex() == b.to_hex()
        assert a.public_key() == b.public_key()

    def test_sign_and_verify(self):
        key = Ed25519PrivateKey.generate()
        signature = key.sign(b"message")
        assert len(signature) == 64
        assert key.public_key().verify(signature, b"message")
        assert not key.public_key().verify(signature, b"other message")
        assert not key.public_key().verify(signature[:63], b"message")

    def test_hex_is_uppercase(self):
        key = Ed25519PrivateKey.from_seed("seed")
        assert key.public_key().to_hex() == key.public_key().to_hex().upper()
        assert Ed25519PublicKey.from_hex(key.public_key().to_hex().lower()) == key.public_key()

    def test_invalid_key_length(self):
        with pytest.raises(Ed25519Error) as exc_info:
            Ed25519PrivateKey(b"\x00" * 31)
        assert isinstance(exc_info.value, SigningError)
        assert exc_info.value.code == ErrorCode.INVALID_KEY


@pytest.mark.unit
class TestAddress:

    def test_network_prefix(self):
        key = Ed25519PrivateKey.from_seed("seed").public_key()
        assert Address.from_public_key(key.to_bytes(), NetworkType.TESTNET).plain().startswith("T")
        assert Address.from_public_key(key.to_bytes(), NetworkType.MAINNET).plain().startswith("N")

    def test_plain_round_trip(self):
        address = Account.from_seed("seed", NetworkType.TESTNET).address
        plain = address.plain()
        assert len(plain) == 39
        assert Address.from_plain(plain) == address
        assert Address.from_plain(address.pretty()) == address
        assert Address.from_plain(plain).network_type == NetworkType.TESTNET
        assert address.is_valid()

    def test_checksum_mismatch(self):
        plain = Account.from_seed("seed", NetworkType.TESTNET).address.plain()
        tampered = plain[:10] + ("A" if plain[10] != "A" else "B") + plain[11:]
        with pytest.raises(ConfigurationError):
            Address.from_plain(tampered)

    def test_wrong_length(self):
        with pytest.raises(ConfigurationError):
            Address.from_plain("TABC")
        with pytest.raises(ConfigurationError):
            Address(b"\x00" * 23)


@pytest.mark.unit
class TestAccounts:

    def test_public_account_matches_account(self):
        account = Account.from_seed("seed", NetworkType.TESTNET)
        public = PublicAccount.create_from_public_key(account.public_key, NetworkType.TESTNET)
        assert public == account.public_account
        assert public.address == account.address
        assert len(public.public_key_bytes) == 32

    def test_account_signature_verifies(self):
        account = Account.from_seed("seed", NetworkType.TESTNET)
        signature = account.sign(b"data")
        assert account.public_account.verify(b"data", signature)
        assert not Account.from_seed("other", NetworkType.TESTNET).public_account.verify(b"data", signature)

    def test_private_key_round_trip(self):
        account = Account.generate(NetworkType.MAINNET)
        restored = Account.create_from_private_key(account.private_key, NetworkType.MAINNET)
        assert restored.public_key == account.public_key
        assert restored.network_type == NetworkType.MAINNET
