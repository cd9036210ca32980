"""Parallel batch dispatch"""

from .dispatcher import BatchDispatcher, SignedAggregateTx

__all__ = [
    "BatchDispatcher",
    "SignedAggregateTx",
]
