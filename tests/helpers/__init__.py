from .fakes import (
    EPOCH_ADJUSTMENT, GENERATION_HASH, TRANSACTION_FEES,
    FakeNode, MockWebSocketConnection, metadata_operations, network_properties,
)

__all__ = [
    "EPOCH_ADJUSTMENT",
    "GENERATION_HASH",
    "TRANSACTION_FEES",
    "FakeNode",
    "MockWebSocketConnection",
    "metadata_operations",
    "network_properties",
]
