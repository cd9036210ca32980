"""
Embedded (inner) transactions and the metadata operations built on them.

An inner transaction is carried inside an aggregate with the layout::

    size u32 | reserved u32 | signer 32 | reserved u32 |
    version u8 | network u8 | type u16 | body
"""

from __future__ import annotations
import hashlib
import struct
from dataclasses import dataclass
from typing import Optional, Union

from ..codec.hashes import sha3_256_bytes, sha3_256_hex
from ..codec.reader import BinaryReader
from ..codec.writer import BinaryWriter
from ..crypto.account import Address, PublicAccount
from ..enums import MetadataType, NetworkType, TransactionType
from ..runtime.errors import EncodingError

EMBEDDED_HEADER_SIZE = 48
METADATA_VERSION = 1


@dataclass(frozen=True)
class InnerTransaction:
    """One operation embedded in an aggregate. The body is opaque bytes."""

    signer_public_key: str
    type: int
    version: int
    network_type: NetworkType
    body: bytes = b""

    @property
    def size(self) -> int:
        return EMBEDDED_HEADER_SIZE + len(self.body)

    def serialize(self) -> bytes:
        writer = BinaryWriter()
        writer.u32le(self.size)
        writer.u32le(0)
        writer.fixed(bytes.fromhex(self.signer_public_key), 32)
        writer.u32le(0)
        writer.u8(self.version)
        writer.u8(int(self.network_type))
        writer.u16le(int(self.type))
        writer.bytes(self.body)
        return writer.to_bytes()

    def hash(self) -> bytes:
        """Leaf hash used for the aggregate's transactions hash."""
        return sha3_256_bytes(self.serialize())

    @classmethod
    def read(cls, reader: BinaryReader) -> InnerTransaction:
        """Read one embedded transaction (without its trailing padding)."""
        size = reader.u32le()
        if size < EMBEDDED_HEADER_SIZE:
            raise EncodingError(f"Embedded transaction size too small: {size}")
        reader.u32le()
        signer = reader.bytes(32).hex().upper()
        reader.u32le()
        version = reader.u8()
        network = reader.u8()
        tx_type = reader.u16le()
        body = reader.bytes(size - EMBEDDED_HEADER_SIZE)
        try:
            network_type = NetworkType(network)
        except ValueError as e:
            raise EncodingError(f"Unknown network type: {network}", cause=e)
        return cls(signer, tx_type, version, network_type, body)

    @classmethod
    def from_bytes(cls, data: bytes) -> InnerTransaction:
        return cls.read(BinaryReader(data))


@dataclass(frozen=True)
class MetadataOperation:
    """Decoded view of a metadata operation body."""

    metadata_type: MetadataType
    target_address: Address
    scoped_metadata_key: int
    target_id: int
    value_size_delta: int
    value: bytes

    @classmethod
    def parse(cls, tx: InnerTransaction) -> MetadataOperation:
        try:
            metadata_type = {
                TransactionType.ACCOUNT_METADATA: MetadataType.ACCOUNT,
                TransactionType.MOSAIC_METADATA: MetadataType.MOSAIC,
                TransactionType.NAMESPACE_METADATA: MetadataType.NAMESPACE,
            }[TransactionType(tx.type)]
        except (KeyError, ValueError) as e:
            raise EncodingError(f"Not a metadata transaction: 0x{tx.type:04X}", cause=e)

        reader = BinaryReader(tx.body)
        target_address = Address(reader.bytes(24))
        key = reader.u64le()
        target_id = reader.u64le() if metadata_type != MetadataType.ACCOUNT else 0
        delta = reader.i16le()
        value_size = reader.u16le()
        value = reader.bytes(value_size)
        return cls(metadata_type, target_address, key, target_id, delta, value)


def generate_key(seed: str) -> int:
    """
    Derive a 64-bit metadata key from a string.

    First 8 bytes of SHA3-256, little-endian, with the high bit set.
    """
    digest = hashlib.sha3_256(seed.encode("utf-8")).digest()
    return struct.unpack("<Q", digest[:8])[0] | 0x8000000000000000


def create_metadata_tx(
    source: PublicAccount,
    target: Union[PublicAccount, Address],
    key: Union[str, int],
    value: Union[str, bytes],
    metadata_type: MetadataType = MetadataType.ACCOUNT,
    target_id: int = 0,
    size_delta: Optional[int] = None,
) -> InnerTransaction:
    """
    Build a metadata operation signed by ``source``.

    Args:
        source: Account that signs the embedded operation
        target: Account (or address) the entry is attached to
        key: 64-bit key, or a string hashed with ``generate_key``
        value: Entry value (strings are UTF-8 encoded)
        metadata_type: Account, mosaic or namespace entry
        target_id: Mosaic or namespace id for non-account entries
        size_delta: Value size change, defaults to the full value length

    Returns:
        InnerTransaction carrying the metadata body
    """
    value_bytes = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    actual_key = generate_key(key) if isinstance(key, str) else int(key)
    actual_delta = len(value_bytes) if size_delta is None else size_delta
    target_address = target.address if isinstance(target, PublicAccount) else target

    writer = BinaryWriter()
    writer.fixed(target_address.to_bytes(), 24)
    writer.u64le(actual_key)
    if metadata_type != MetadataType.ACCOUNT:
        writer.u64le(target_id)
    writer.i16le(actual_delta)
    writer.u16le(len(value_bytes))
    writer.bytes(value_bytes)

    return InnerTransaction(
        signer_public_key=source.public_key,
        type=int(metadata_type.transaction_type),
        version=METADATA_VERSION,
        network_type=source.network_type,
        body=writer.to_bytes(),
    )


def calculate_metadata_hash(
    metadata_type: MetadataType,
    source_address: Address,
    target_address: Address,
    key: Union[str, int],
    target_id: int = 0,
) -> str:
    """
    Composite hash identifying a metadata entry on the node.

    Returns:
        Uppercase hex SHA3-256 of source, target, key, target id and type
    """
    actual_key = generate_key(key) if isinstance(key, str) else int(key)
    writer = BinaryWriter()
    writer.fixed(source_address.to_bytes(), 24)
    writer.fixed(target_address.to_bytes(), 24)
    writer.u64le(actual_key)
    writer.u64le(target_id)
    writer.u8(int(metadata_type))
    return sha3_256_hex(writer.to_bytes())
