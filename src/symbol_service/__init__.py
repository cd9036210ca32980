"""
Symbol Service

Aggregate transaction toolkit for Symbol/NEM nodes: compose, sign and
cosign aggregate complete transactions, dispatch them in parallel batches
and track their confirmation. Undead transactions pre-sign one aggregate
for several consecutive deadline windows so it can be cast long after it
was built.
"""

# Runtime
from .runtime import *
from .config import NecromancyServiceConfig, SymbolServiceConfig
from .enums import MetadataType, NetworkType, TransactionGroup, TransactionType

# Keys and transactions
from .crypto import *
from .tx import *
from .tx.composer import AggregateComposer
from .signers import *

# Network and transport
from .network import NetworkContext, NetworkContextCache
from .transport import *
from .client import ConfirmationTracker, TxResult
from .performance import BatchDispatcher, SignedAggregateTx

# Services
from .facade import SymbolService
from .undead import *
from .utils import to_micro_xym, to_xym

__version__ = "1.0.0"
