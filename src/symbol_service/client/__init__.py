"""Confirmation tracking client"""

from .tracker import ConfirmationTracker, TxResult

__all__ = [
    "ConfirmationTracker",
    "TxResult",
]
