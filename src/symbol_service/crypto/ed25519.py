"""
Ed25519 key handling on top of the ``cryptography`` package.

Keys are exchanged as uppercase hex strings, the way the node REST API
reports them.
"""

from __future__ import annotations
import hashlib
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey as CryptoEd25519PrivateKey,
    Ed25519PublicKey as CryptoEd25519PublicKey,
)

from ..runtime.errors import ErrorCode, SigningError


class Ed25519Error(SigningError):
    """Invalid Ed25519 key material."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message, ErrorCode.INVALID_KEY, cause=cause)


def _from_hex(hex_string: str) -> bytes:
    try:
        return bytes.fromhex(hex_string)
    except ValueError as e:
        raise Ed25519Error(f"Invalid hex string: {e}", e)


class Ed25519PublicKey:
    """Ed25519 public key."""

    def __init__(self, public_key_bytes: bytes):
        if len(public_key_bytes) != 32:
            raise Ed25519Error(f"Ed25519 public key must be 32 bytes, got {len(public_key_bytes)}")
        self._key_bytes = bytes(public_key_bytes)
        try:
            self._crypto_key = CryptoEd25519PublicKey.from_public_bytes(self._key_bytes)
        except ValueError as e:
            raise Ed25519Error(f"Invalid Ed25519 public key: {e}", e)

    @classmethod
    def from_hex(cls, hex_string: str) -> Ed25519PublicKey:
        return cls(_from_hex(hex_string))

    def to_bytes(self) -> bytes:
        return self._key_bytes

    def to_hex(self) -> str:
        return self._key_bytes.hex().upper()

    def verify(self, signature: bytes, message: bytes) -> bool:
        """
        Verify a signature against a message.

        Args:
            signature: 64-byte Ed25519 signature
            message: Message that was signed

        Returns:
            True if signature is valid
        """
        if len(signature) != 64:
            return False
        try:
            self._crypto_key.verify(signature, message)
        except InvalidSignature:
            return False
        return True

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ed25519PublicKey):
            return False
        return self._key_bytes == other._key_bytes

    def __hash__(self) -> int:
        return hash(self._key_bytes)

    def __repr__(self) -> str:
        return f"Ed25519PublicKey.from_hex('{self.to_hex()}')"


class Ed25519PrivateKey:
    """Ed25519 private key (32-byte seed)."""

    def __init__(self, private_key_bytes: bytes):
        if len(private_key_bytes) != 32:
            raise Ed25519Error(f"Ed25519 private key must be 32 bytes, got {len(private_key_bytes)}")
        self._key_bytes = bytes(private_key_bytes)
        self._crypto_key = CryptoEd25519PrivateKey.from_private_bytes(self._key_bytes)
        self._public_key = Ed25519PublicKey(
            self._crypto_key.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
        )

    @classmethod
    def generate(cls) -> Ed25519PrivateKey:
        """Generate a new random Ed25519 private key."""
        crypto_key = CryptoEd25519PrivateKey.generate()
        return cls(crypto_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        ))

    @classmethod
    def from_hex(cls, hex_string: str) -> Ed25519PrivateKey:
        return cls(_from_hex(hex_string))

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> Ed25519PrivateKey:
        """
        Derive a private key from an arbitrary seed using SHA-256.

        For deterministic test keys.
        """
        if isinstance(seed, str):
            seed = seed.encode('utf-8')
        return cls(hashlib.sha256(seed).digest())

    def to_bytes(self) -> bytes:
        return self._key_bytes

    def to_hex(self) -> str:
        return self._key_bytes.hex().upper()

    def public_key(self) -> Ed25519PublicKey:
        return self._public_key

    def sign(self, message: bytes) -> bytes:
        """Sign a message and return the 64-byte signature."""
        return self._crypto_key.sign(message)

    def __repr__(self) -> str:
        return f"Ed25519PrivateKey(public={self._public_key.to_hex()})"
