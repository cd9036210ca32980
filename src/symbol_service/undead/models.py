"""
Undead transaction model and its persisted record.

An undead transaction is one shared operation set (the template) plus an
ordered list of lives. Each life overrides only the deadline and carries
the signature, hash and cosignatures that go with that deadline.
"""

from __future__ import annotations
import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Sequence, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..enums import NetworkType, TransactionType
from ..runtime.errors import ConfigurationError, EncodingError, ErrorCode
from ..tx.aggregate import AggregateTransaction
from ..tx.deadline import Deadline
from ..tx.inner import InnerTransaction, MetadataOperation
from ..tx.signed import CosignatureSignedTransaction

RECORD_VERSION = "1.0"


@dataclass(frozen=True)
class UndeadSignature:
    """One life: deadline (adjusted ms), hash, signer signature, cosignatures."""

    deadline: int
    hash: str
    signature: str
    cosignatures: Tuple[CosignatureSignedTransaction, ...] = field(default=())

    def with_cosignatures(self, extra: Iterable[CosignatureSignedTransaction]) -> UndeadSignature:
        return replace(self, cosignatures=self.cosignatures + tuple(extra))


@dataclass(frozen=True)
class UndeadTemplate:
    """Operation set shared by every life. The lock operation is last."""

    network_type: NetworkType
    type: TransactionType
    version: int
    max_fee: int
    inner_transactions: Tuple[InnerTransaction, ...]

    @classmethod
    def from_aggregate(cls, tx: AggregateTransaction) -> UndeadTemplate:
        return cls(tx.network_type, tx.type, tx.version, tx.max_fee, tx.inner_transactions)

    @property
    def operations(self) -> Tuple[InnerTransaction, ...]:
        """Caller operations, without the lock."""
        return self.inner_transactions[:-1]

    @property
    def lock_operation(self) -> MetadataOperation:
        return MetadataOperation.parse(self.inner_transactions[-1])

    def at(self, deadline: int) -> AggregateTransaction:
        """Unsigned aggregate for one life."""
        return AggregateTransaction(
            network_type=self.network_type,
            type=self.type,
            version=self.version,
            deadline=Deadline(deadline),
            max_fee=self.max_fee,
            inner_transactions=self.inner_transactions,
        )


@dataclass(frozen=True)
class AggregateUndeadTransaction:
    """
    Deadline-sharded aggregate.

    Immutable: extending with cosignatures returns a new instance.
    """

    public_key: str
    template: UndeadTemplate
    signatures: Tuple[UndeadSignature, ...]

    @property
    def max_fee(self) -> int:
        return self.template.max_fee

    @property
    def lock_key(self) -> int:
        return self.template.lock_operation.scoped_metadata_key

    @property
    def network_type(self) -> NetworkType:
        return self.template.network_type

    def life(self, signature: UndeadSignature) -> AggregateTransaction:
        """The signed aggregate of one life (without cosignatures)."""
        return self.template.at(signature.deadline).with_signature(signature.signature, self.public_key)

    def with_signatures(self, signatures: Sequence[UndeadSignature]) -> AggregateUndeadTransaction:
        return replace(self, signatures=tuple(signatures))

    def to_record(self) -> UndeadTransactionRecord:
        first_deadline = self.signatures[0].deadline if self.signatures else 0
        return UndeadTransactionRecord(
            version=RECORD_VERSION,
            signer_public_key=self.public_key,
            representative_aggregate_payload=self.template.at(first_deadline).serialize_hex(),
            lives=[LifeRecord.from_signature(s) for s in self.signatures],
        )

    @classmethod
    def from_record(cls, record: UndeadTransactionRecord) -> AggregateUndeadTransaction:
        """
        Raises:
            ConfigurationError: On a version mismatch
            EncodingError: If the representative payload is malformed
        """
        if record.version != RECORD_VERSION:
            raise ConfigurationError(
                f"Version mismatched: {record.version}", ErrorCode.VERSION_MISMATCH,
                {"expected": RECORD_VERSION},
            )
        aggregate = AggregateTransaction.from_payload(record.representative_aggregate_payload)
        if not aggregate.inner_transactions:
            raise EncodingError("Undead transaction has no lock operation")
        return cls(
            public_key=record.signer_public_key.upper(),
            template=UndeadTemplate.from_aggregate(aggregate),
            signatures=tuple(life.to_signature() for life in record.lives),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.to_record().model_dump(by_alias=True)

    def to_json(self) -> str:
        return self.to_record().model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: Union[str, bytes, Dict[str, Any]]) -> AggregateUndeadTransaction:
        """
        Restore from ``to_json()`` output (string or already decoded dict).

        Raises:
            ConfigurationError: On a version mismatch
            EncodingError: If the record is malformed
        """
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                raise EncodingError(f"Invalid undead transaction JSON: {e}", cause=e)
        if not isinstance(data, dict):
            raise EncodingError(f"Undead transaction record must be an object, got {type(data).__name__}")
        if data.get("version") != RECORD_VERSION:
            raise ConfigurationError(
                f"Version mismatched: {data.get('version')}", ErrorCode.VERSION_MISMATCH,
                {"expected": RECORD_VERSION},
            )
        try:
            record = UndeadTransactionRecord.model_validate(data)
        except ValidationError as e:
            raise EncodingError(f"Invalid undead transaction record: {e}", cause=e)
        return cls.from_record(record)


class CosignatureRecord(BaseModel):
    """Persisted cosignature."""
    parent_hash: str = Field(alias="parentHash")
    signature_hex: str = Field(alias="signatureHex")
    signer_public_key: str = Field(alias="signerPublicKey")
    version: int = Field(default=0, ge=0)

    model_config = {"populate_by_name": True}

    @field_validator("version", mode="before")
    @classmethod
    def parse_version(cls, v: Any) -> Any:
        # Older records store u64 values as [lower, higher] 32-bit words
        if isinstance(v, (list, tuple)) and len(v) == 2:
            return int(v[0]) | (int(v[1]) << 32)
        return v

    @classmethod
    def from_cosignature(cls, cosignature: CosignatureSignedTransaction) -> CosignatureRecord:
        return cls(
            parent_hash=cosignature.parent_hash,
            signature_hex=cosignature.signature,
            signer_public_key=cosignature.signer_public_key,
            version=cosignature.version,
        )

    def to_cosignature(self) -> CosignatureSignedTransaction:
        return CosignatureSignedTransaction(
            parent_hash=self.parent_hash.upper(),
            signature=self.signature_hex.upper(),
            signer_public_key=self.signer_public_key.upper(),
            version=self.version,
        )


class LifeRecord(BaseModel):
    """Persisted life."""
    deadline: int = Field(ge=0)
    hash: str
    signature_hex: str = Field(alias="signatureHex")
    cosignatures: List[CosignatureRecord] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_signature(cls, signature: UndeadSignature) -> LifeRecord:
        return cls(
            deadline=signature.deadline,
            hash=signature.hash,
            signature_hex=signature.signature,
            cosignatures=[CosignatureRecord.from_cosignature(c) for c in signature.cosignatures],
        )

    def to_signature(self) -> UndeadSignature:
        return UndeadSignature(
            deadline=self.deadline,
            hash=self.hash.upper(),
            signature=self.signature_hex.upper(),
            cosignatures=tuple(c.to_cosignature() for c in self.cosignatures),
        )


class UndeadTransactionRecord(BaseModel):
    """
    Persisted undead transaction.

    ``representativeAggregatePayload`` is the unsigned aggregate of the first
    life; only its operations, fee and network are read back.
    """
    version: str
    signer_public_key: str = Field(alias="signerPublicKey")
    representative_aggregate_payload: str = Field(alias="representativeAggregatePayload")
    lives: List[LifeRecord]

    model_config = {"populate_by_name": True}
