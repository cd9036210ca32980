"""
Protocol enumerations: network identifiers, transaction types, metadata
kinds and transaction groups.
"""

from enum import Enum, IntEnum


class NetworkType(IntEnum):
    """Network identifier byte carried by addresses and transactions."""
    MAINNET = 104
    TESTNET = 152

    @classmethod
    def from_name(cls, name: str) -> 'NetworkType':
        """Parse the ``network.identifier`` value reported by a node."""
        normalized = name.strip().lower()
        if normalized in ("mainnet", "public"):
            return cls.MAINNET
        if normalized in ("testnet", "public-test"):
            return cls.TESTNET
        raise ValueError(f"Unknown network identifier: {name}")


class TransactionType(IntEnum):
    """Transaction type codes."""
    TRANSFER = 0x4154
    AGGREGATE_COMPLETE = 0x4141
    AGGREGATE_BONDED = 0x4241
    ACCOUNT_METADATA = 0x4144
    MOSAIC_METADATA = 0x4244
    NAMESPACE_METADATA = 0x4344


class MetadataType(IntEnum):
    """Metadata entry kind, as used in composite hashes."""
    ACCOUNT = 0
    MOSAIC = 1
    NAMESPACE = 2

    @property
    def transaction_type(self) -> TransactionType:
        return {
            MetadataType.ACCOUNT: TransactionType.ACCOUNT_METADATA,
            MetadataType.MOSAIC: TransactionType.MOSAIC_METADATA,
            MetadataType.NAMESPACE: TransactionType.NAMESPACE_METADATA,
        }[self]


class TransactionGroup(str, Enum):
    """Which ledger state counts as success when waiting for transactions."""
    CONFIRMED = "confirmed"
    PARTIAL = "partial"
    ALL = "all"

    @property
    def accepts_confirmed(self) -> bool:
        return self in (TransactionGroup.CONFIRMED, TransactionGroup.ALL)

    @property
    def accepts_partial(self) -> bool:
        return self in (TransactionGroup.PARTIAL, TransactionGroup.ALL)
