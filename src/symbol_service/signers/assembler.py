"""
Signing and wire assembly for aggregate transactions.

Signing covers ``generation_hash || header[108:160)``. Cosignatures sign the
parent hash and are appended to the payload as
``version u64 | signer 32 | signature 64``; the transaction hash never
covers them.
"""

from __future__ import annotations
import logging
import struct
from dataclasses import dataclass
from typing import Iterable, Union

from ..codec.hashes import signing_data, transaction_hash
from ..crypto.account import Account
from ..crypto.ed25519 import Ed25519PublicKey
from ..runtime.errors import EncodingError, ErrorCode, SigningError
from ..tx.aggregate import AggregateTransaction
from ..tx.signed import CosignatureSignedTransaction, SignedTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignResult:
    """Outcome of signing: raw signature, hash and announce-ready payload."""

    signature: bytes
    hash: str
    payload: str
    signed_tx: SignedTransaction


def _generation_hash_bytes(generation_hash: Union[str, bytes]) -> bytes:
    if isinstance(generation_hash, str):
        generation_hash = bytes.fromhex(generation_hash)
    if len(generation_hash) != 32:
        raise SigningError(f"Generation hash must be 32 bytes, got {len(generation_hash)}")
    return generation_hash


def calculate_transaction_hash(payload: Union[str, bytes], generation_hash: Union[str, bytes]) -> str:
    """Entity hash of a serialized aggregate, uppercase hex."""
    if isinstance(payload, str):
        payload = bytes.fromhex(payload)
    return transaction_hash(payload, _generation_hash_bytes(generation_hash)).hex().upper()


def _to_signed(tx: AggregateTransaction, payload: bytes, generation_hash: bytes) -> SignedTransaction:
    return SignedTransaction(
        payload=payload.hex().upper(),
        hash=transaction_hash(payload, generation_hash).hex().upper(),
        signer_public_key=tx.signer_public_key,
        type=int(tx.type),
        network_type=tx.network_type,
    )


def sign_transaction(account: Account, tx: AggregateTransaction,
                     generation_hash: Union[str, bytes]) -> SignResult:
    """
    Sign an aggregate with ``account``.

    Args:
        account: Signer
        tx: Unsigned aggregate
        generation_hash: Network generation hash seed

    Returns:
        SignResult whose hash is computed from the final payload
    """
    gen = _generation_hash_bytes(generation_hash)
    signature = account.sign(tx.signing_bytes(gen))
    signed = tx.with_signature(signature.hex(), account.public_key)
    signed_tx = _to_signed(signed, signed.serialize(), gen)
    return SignResult(signature, signed_tx.hash, signed_tx.payload, signed_tx)


def convert_to_signed_tx(tx: AggregateTransaction, generation_hash: Union[str, bytes]) -> SignedTransaction:
    """
    Wrap an aggregate that already carries its signature, without re-signing.

    Raises:
        SigningError: If the signature or the signer is missing
    """
    if not tx.signature or not tx.signer_public_key:
        raise SigningError("Transaction has no signature to convert", ErrorCode.MISSING_SIGNATURE)
    return _to_signed(tx, tx.serialize(), _generation_hash_bytes(generation_hash))


def cosign_transaction_hash(account: Account, tx_hash: str) -> CosignatureSignedTransaction:
    """Detached cosignature of ``account`` over ``tx_hash``."""
    signature = account.sign(bytes.fromhex(tx_hash))
    return CosignatureSignedTransaction(
        parent_hash=tx_hash.upper(),
        signature=signature.hex().upper(),
        signer_public_key=account.public_key,
        version=0,
    )


def create_signed_tx_with_cosignatures(
    signed_tx: SignedTransaction,
    cosignatures: Iterable[CosignatureSignedTransaction],
) -> SignedTransaction:
    """
    Append cosignatures to a signed payload.

    The size header at offset 0 is rewritten; hash, signer, type and network
    are carried over unchanged. ``signed_tx`` is not modified.
    """
    payload = bytearray(signed_tx.payload_bytes)
    for cosignature in cosignatures:
        payload += cosignature.serialize()
    payload[0:4] = struct.pack("<I", len(payload))
    return signed_tx.with_payload(bytes(payload).hex())


def verify_cosignature(cosignature: CosignatureSignedTransaction) -> bool:
    """Check a cosignature against its parent hash."""
    key = Ed25519PublicKey.from_hex(cosignature.signer_public_key)
    return key.verify(bytes.fromhex(cosignature.signature), bytes.fromhex(cosignature.parent_hash))


def verify_signed_transaction(signed_tx: SignedTransaction, generation_hash: Union[str, bytes]) -> bool:
    """
    Verify a signed aggregate payload.

    Checks that the hash matches the payload, that the signer signed it and
    that every embedded cosignature signs the hash.
    """
    gen = _generation_hash_bytes(generation_hash)
    payload = signed_tx.payload_bytes
    try:
        tx = AggregateTransaction.from_payload(payload, signed_tx.hash)
    except EncodingError as e:
        logger.debug(f"Cannot verify malformed payload: {e}")
        return False

    if transaction_hash(payload, gen).hex().upper() != signed_tx.hash.upper():
        return False
    if not tx.signature or not tx.signer_public_key:
        return False
    signer = Ed25519PublicKey.from_hex(tx.signer_public_key)
    if not signer.verify(bytes.fromhex(tx.signature), signing_data(payload, gen)):
        return False
    return all(verify_cosignature(c) for c in tx.cosignatures)
