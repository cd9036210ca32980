"""Signing and cosignature assembly"""

from .assembler import (
    SignResult,
    calculate_transaction_hash,
    convert_to_signed_tx,
    cosign_transaction_hash,
    create_signed_tx_with_cosignatures,
    sign_transaction,
    verify_cosignature,
    verify_signed_transaction,
)

__all__ = [
    "SignResult",
    "calculate_transaction_hash",
    "convert_to_signed_tx",
    "cosign_transaction_hash",
    "create_signed_tx_with_cosignatures",
    "sign_transaction",
    "verify_cosignature",
    "verify_signed_transaction",
]
