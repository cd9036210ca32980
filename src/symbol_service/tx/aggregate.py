"""
Aggregate transaction model and wire codec.

Layout::

    size u32 | reserved u32 | signature 64 | signer 32 | reserved u32 |
    version u8 | network u8 | type u16 | max_fee u64 | deadline u64 |
    transactions_hash 32 | payload_size u32 | reserved u32 |
    inner transactions (each padded to 8 bytes) | cosignatures (104 each)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple, Union

from ..codec.hashes import merkle_root, signing_data
from ..codec.reader import BinaryReader
from ..codec.writer import BinaryWriter, padding_size
from ..enums import NetworkType, TransactionType
from ..runtime.errors import EncodingError
from .deadline import Deadline
from .fees import calculate_max_fee
from .inner import InnerTransaction
from .signed import COSIGNATURE_SIZE, CosignatureSignedTransaction

AGGREGATE_VERSION = 2
AGGREGATE_HEADER_SIZE = 168

_ZERO_SIGNATURE = b"\x00" * 64
_ZERO_KEY = b"\x00" * 32


@dataclass(frozen=True)
class AggregateTransaction:
    """
    Aggregate transaction.

    Instances are immutable; the ``with_*`` helpers return modified copies.
    ``signature`` and ``signer_public_key`` are uppercase hex, or None while
    unsigned.
    """

    network_type: NetworkType
    type: TransactionType
    version: int
    deadline: Deadline
    max_fee: int
    inner_transactions: Tuple[InnerTransaction, ...]
    cosignatures: Tuple[CosignatureSignedTransaction, ...] = field(default=())
    signature: Optional[str] = None
    signer_public_key: Optional[str] = None

    @classmethod
    def create_complete(
        cls,
        deadline: Deadline,
        inner_transactions: Iterable[InnerTransaction],
        network_type: NetworkType,
        cosignatures: Iterable[CosignatureSignedTransaction] = (),
        max_fee: int = 0,
    ) -> AggregateTransaction:
        return cls(
            network_type=NetworkType(network_type),
            type=TransactionType.AGGREGATE_COMPLETE,
            version=AGGREGATE_VERSION,
            deadline=deadline,
            max_fee=max_fee,
            inner_transactions=tuple(inner_transactions),
            cosignatures=tuple(cosignatures),
        )

    @property
    def payload_size(self) -> int:
        return sum(tx.size + padding_size(tx.size) for tx in self.inner_transactions)

    @property
    def size(self) -> int:
        return AGGREGATE_HEADER_SIZE + self.payload_size + COSIGNATURE_SIZE * len(self.cosignatures)

    def transactions_hash(self) -> bytes:
        return merkle_root([tx.hash() for tx in self.inner_transactions])

    def with_max_fee_for_aggregate(self, fee_multiplier: float,
                                   required_cosignatures: int) -> AggregateTransaction:
        """Max fee covering the current size plus the cosignatures still to come."""
        return replace(self, max_fee=calculate_max_fee(self.size, fee_multiplier, required_cosignatures))

    def with_deadline(self, deadline: Deadline) -> AggregateTransaction:
        return replace(self, deadline=deadline)

    def with_signature(self, signature: str, signer_public_key: str) -> AggregateTransaction:
        return replace(self, signature=signature.upper(), signer_public_key=signer_public_key.upper())

    def without_signature(self) -> AggregateTransaction:
        return replace(self, signature=None, signer_public_key=None, cosignatures=())

    def signing_bytes(self, generation_hash: Union[str, bytes]) -> bytes:
        if isinstance(generation_hash, str):
            generation_hash = bytes.fromhex(generation_hash)
        return signing_data(self.serialize(), generation_hash)

    def serialize(self) -> bytes:
        writer = BinaryWriter()
        writer.u32le(self.size)
        writer.u32le(0)
        writer.fixed(bytes.fromhex(self.signature) if self.signature else _ZERO_SIGNATURE, 64)
        writer.fixed(bytes.fromhex(self.signer_public_key) if self.signer_public_key else _ZERO_KEY, 32)
        writer.u32le(0)
        writer.u8(self.version)
        writer.u8(int(self.network_type))
        writer.u16le(int(self.type))
        writer.u64le(self.max_fee)
        writer.u64le(self.deadline.adjusted_value)
        writer.fixed(self.transactions_hash(), 32)
        writer.u32le(self.payload_size)
        writer.u32le(0)
        for tx in self.inner_transactions:
            writer.bytes(tx.serialize())
            writer.pad(8)
        for cosignature in self.cosignatures:
            writer.bytes(cosignature.serialize())
        return writer.to_bytes()

    def serialize_hex(self) -> str:
        return self.serialize().hex().upper()

    @classmethod
    def from_payload(cls, payload: Union[str, bytes], parent_hash: str = "") -> AggregateTransaction:
        """
        Parse a serialized aggregate.

        Args:
            payload: Hex string or raw bytes
            parent_hash: Hash recorded on the parsed cosignatures

        Raises:
            EncodingError: If the payload is malformed
        """
        try:
            data = bytes.fromhex(payload) if isinstance(payload, str) else bytes(payload)
            return cls._read(BinaryReader(data), len(data), parent_hash)
        except (IndexError, ValueError) as e:
            raise EncodingError(f"Malformed aggregate payload: {e}", cause=e)

    @classmethod
    def _read(cls, reader: BinaryReader, length: int, parent_hash: str) -> AggregateTransaction:
        size = reader.u32le()
        if size != length:
            raise EncodingError(f"Size header {size} does not match payload length {length}")
        reader.u32le()
        signature = reader.bytes(64)
        signer = reader.bytes(32)
        reader.u32le()
        version = reader.u8()
        network = reader.u8()
        tx_type = TransactionType(reader.u16le())
        if tx_type not in (TransactionType.AGGREGATE_COMPLETE, TransactionType.AGGREGATE_BONDED):
            raise EncodingError(f"Not an aggregate transaction: 0x{int(tx_type):04X}")
        max_fee = reader.u64le()
        deadline = Deadline(reader.u64le())
        transactions_hash = reader.bytes(32)
        payload_size = reader.u32le()
        reader.u32le()

        end = reader.offset + payload_size
        inner = []
        while reader.offset < end:
            tx = InnerTransaction.read(reader)
            reader.skip_padding(tx.size)
            inner.append(tx)
        if reader.offset != end:
            raise EncodingError("Inner transactions overrun the declared payload size")

        if reader.remaining % COSIGNATURE_SIZE:
            raise EncodingError(f"Trailing bytes are not whole cosignatures: {reader.remaining}")
        cosignatures = []
        while not reader.eof:
            cosignatures.append(CosignatureSignedTransaction.from_bytes(parent_hash, reader.bytes(COSIGNATURE_SIZE)))

        tx = cls(
            network_type=NetworkType(network),
            type=tx_type,
            version=version,
            deadline=deadline,
            max_fee=max_fee,
            inner_transactions=tuple(inner),
            cosignatures=tuple(cosignatures),
            signature=None if signature == _ZERO_SIGNATURE else signature.hex().upper(),
            signer_public_key=None if signer == _ZERO_KEY else signer.hex().upper(),
        )
        if tx.transactions_hash() != transactions_hash:
            raise EncodingError("Transactions hash does not match inner transactions")
        return tx
