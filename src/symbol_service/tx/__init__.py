"""
Transaction models and wire encoding.

The composer lives in ``symbol_service.tx.composer`` and is imported from
there; it depends on the network context.
"""

from .aggregate import AggregateTransaction
from .deadline import Deadline
from .fees import TransactionFees, calculate_max_fee
from .inner import (
    InnerTransaction, MetadataOperation, calculate_metadata_hash, create_metadata_tx, generate_key,
)
from .signed import CosignatureSignedTransaction, SignedTransaction

__all__ = [
    "AggregateTransaction",
    "CosignatureSignedTransaction",
    "Deadline",
    "InnerTransaction",
    "MetadataOperation",
    "SignedTransaction",
    "TransactionFees",
    "calculate_max_fee",
    "calculate_metadata_hash",
    "create_metadata_tx",
    "generate_key",
]
