"""Undead (deadline-sharded) aggregate transactions"""

from .models import (
    AggregateUndeadTransaction, CosignatureRecord, LifeRecord, RECORD_VERSION,
    UndeadSignature, UndeadTemplate, UndeadTransactionRecord,
)
from .service import NecromancyService, SignedUndeadAggregateTx

__all__ = [
    "AggregateUndeadTransaction",
    "CosignatureRecord",
    "LifeRecord",
    "NecromancyService",
    "RECORD_VERSION",
    "SignedUndeadAggregateTx",
    "UndeadSignature",
    "UndeadTemplate",
    "UndeadTransactionRecord",
]
