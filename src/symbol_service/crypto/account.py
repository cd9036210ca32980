"""
Accounts and addresses.

An address is ``network byte || ripemd160(sha3_256(public key)) || checksum``
(24 bytes), shown as 39 base32 characters.
"""

from __future__ import annotations
import base64
import hashlib
from typing import Union

from Crypto.Hash import RIPEMD160

from ..enums import NetworkType
from ..runtime.errors import ConfigurationError, ErrorCode
from .ed25519 import Ed25519PrivateKey, Ed25519PublicKey

ADDRESS_DECODED_SIZE = 24
ADDRESS_ENCODED_SIZE = 39


def _ripemd160(data: bytes) -> bytes:
    return RIPEMD160.new(data).digest()


class Address:
    """Decoded 24-byte account address."""

    def __init__(self, raw: bytes):
        if len(raw) != ADDRESS_DECODED_SIZE:
            raise ConfigurationError(
                f"Address must be {ADDRESS_DECODED_SIZE} bytes, got {len(raw)}",
                ErrorCode.INVALID_CONFIG,
            )
        self._raw = bytes(raw)

    @classmethod
    def from_public_key(cls, public_key: Union[bytes, str], network_type: NetworkType) -> Address:
        if isinstance(public_key, str):
            public_key = bytes.fromhex(public_key)
        versioned = bytes([int(network_type)]) + _ripemd160(hashlib.sha3_256(public_key).digest())
        checksum = hashlib.sha3_256(versioned).digest()[:3]
        return cls(versioned + checksum)

    @classmethod
    def from_plain(cls, plain: str) -> Address:
        """Parse a 39-character base32 address (dashes allowed)."""
        plain = plain.replace("-", "").strip().upper()
        if len(plain) != ADDRESS_ENCODED_SIZE:
            raise ConfigurationError(f"Invalid address: {plain}", ErrorCode.INVALID_CONFIG)
        try:
            raw = base64.b32decode(plain + "A")[:ADDRESS_DECODED_SIZE]
        except ValueError as e:
            raise ConfigurationError(f"Invalid address: {plain}", ErrorCode.INVALID_CONFIG, cause=e)
        address = cls(raw)
        if not address.is_valid():
            raise ConfigurationError(f"Address checksum mismatch: {plain}", ErrorCode.INVALID_CONFIG)
        return address

    @property
    def network_type(self) -> NetworkType:
        return NetworkType(self._raw[0])

    def is_valid(self) -> bool:
        return hashlib.sha3_256(self._raw[:21]).digest()[:3] == self._raw[21:]

    def to_bytes(self) -> bytes:
        return self._raw

    def plain(self) -> str:
        return base64.b32encode(self._raw + b"\x00").decode("ascii")[:ADDRESS_ENCODED_SIZE]

    def pretty(self) -> str:
        plain = self.plain()
        return "-".join(plain[i:i + 6] for i in range(0, len(plain), 6))

    def __eq__(self, other) -> bool:
        return isinstance(other, Address) and self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self.plain()

    def __repr__(self) -> str:
        return f"Address('{self.plain()}')"


class PublicAccount:
    """Public key bound to a network."""

    def __init__(self, public_key: Union[Ed25519PublicKey, str], network_type: NetworkType):
        if isinstance(public_key, str):
            public_key = Ed25519PublicKey.from_hex(public_key)
        self._public_key = public_key
        self.network_type = NetworkType(network_type)
        self.address = Address.from_public_key(public_key.to_bytes(), self.network_type)

    @classmethod
    def create_from_public_key(cls, public_key: str, network_type: NetworkType) -> PublicAccount:
        return cls(public_key, network_type)

    @property
    def public_key(self) -> str:
        return self._public_key.to_hex()

    @property
    def public_key_bytes(self) -> bytes:
        return self._public_key.to_bytes()

    def verify(self, data: bytes, signature: bytes) -> bool:
        return self._public_key.verify(signature, data)

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, PublicAccount)
            and self._public_key == other._public_key
            and self.network_type == other.network_type
        )

    def __hash__(self) -> int:
        return hash((self._public_key, self.network_type))

    def __repr__(self) -> str:
        return f"PublicAccount({self.public_key}, {self.network_type.name})"


class Account:
    """Signing account: private key plus its public account."""

    def __init__(self, private_key: Ed25519PrivateKey, network_type: NetworkType):
        self._private_key = private_key
        self.public_account = PublicAccount(private_key.public_key(), network_type)

    @classmethod
    def generate(cls, network_type: NetworkType) -> Account:
        return cls(Ed25519PrivateKey.generate(), network_type)

    @classmethod
    def create_from_private_key(cls, private_key: str, network_type: NetworkType) -> Account:
        return cls(Ed25519PrivateKey.from_hex(private_key), network_type)

    @classmethod
    def from_seed(cls, seed: Union[str, bytes], network_type: NetworkType) -> Account:
        """Deterministic account, for tests and fixtures."""
        return cls(Ed25519PrivateKey.from_seed(seed), network_type)

    @property
    def private_key(self) -> str:
        return self._private_key.to_hex()

    @property
    def public_key(self) -> str:
        return self.public_account.public_key

    @property
    def address(self) -> Address:
        return self.public_account.address

    @property
    def network_type(self) -> NetworkType:
        return self.public_account.network_type

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data)

    def __repr__(self) -> str:
        return f"Account({self.address.plain()})"
