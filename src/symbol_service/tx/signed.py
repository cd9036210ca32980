"""
Signed transaction value types.
"""

from __future__ import annotations
from dataclasses import dataclass, replace

from ..enums import NetworkType

COSIGNATURE_SIZE = 104


@dataclass(frozen=True)
class SignedTransaction:
    """Announce-ready payload plus its identity."""

    payload: str
    hash: str
    signer_public_key: str
    type: int
    network_type: NetworkType

    @property
    def payload_bytes(self) -> bytes:
        return bytes.fromhex(self.payload)

    def with_payload(self, payload: str) -> SignedTransaction:
        return replace(self, payload=payload.upper())


@dataclass(frozen=True)
class CosignatureSignedTransaction:
    """Detached cosignature over a parent aggregate hash."""

    parent_hash: str
    signature: str
    signer_public_key: str
    version: int = 0

    def serialize(self) -> bytes:
        """``version u64 | signer 32 | signature 64`` as embedded in an aggregate."""
        return (
            self.version.to_bytes(8, "little")
            + bytes.fromhex(self.signer_public_key)
            + bytes.fromhex(self.signature)
        )

    @classmethod
    def from_bytes(cls, parent_hash: str, data: bytes) -> CosignatureSignedTransaction:
        return cls(
            parent_hash=parent_hash,
            signature=data[40:104].hex().upper(),
            signer_public_key=data[8:40].hex().upper(),
            version=int.from_bytes(data[:8], "little"),
        )
