"""
Hash Functions

SHA3-256 helpers and the transaction hashing rules of the ledger.
"""

import hashlib
from typing import Sequence

# Offsets inside a serialized transaction
SIGNATURE_OFFSET = 8
SIGNER_OFFSET = 72
HEADER_OFFSET = 108
# Aggregates only sign the header up to and including the transactions hash
AGGREGATE_HEADER_END = 160


def sha3_256_bytes(input_bytes: bytes) -> bytes:
    """
    Compute SHA3-256 hash of input bytes.

    Args:
        input_bytes: Input bytes to hash

    Returns:
        SHA3-256 hash as bytes (32 bytes)
    """
    return hashlib.sha3_256(input_bytes).digest()


def sha3_256_hex(input_bytes: bytes) -> str:
    """SHA3-256 as uppercase hex."""
    return sha3_256_bytes(input_bytes).hex().upper()


def merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Compute the Merkle root used as an aggregate's transactions hash.

    Odd levels duplicate their last node. An empty list hashes to 32 zero bytes.
    """
    if not leaves:
        return b"\x00" * 32

    level = list(leaves)
    while len(level) > 1:
        if len(level) % 2:
            level.append(level[-1])
        level = [sha3_256_bytes(level[i] + level[i + 1]) for i in range(0, len(level), 2)]
    return level[0]


def signing_data(payload: bytes, generation_hash: bytes, aggregate: bool = True) -> bytes:
    """
    Bytes covered by the signer's signature.

    Args:
        payload: Serialized transaction
        generation_hash: Network generation hash seed (32 bytes)
        aggregate: Whether the payload is an aggregate transaction

    Returns:
        generation hash followed by the verifiable header bytes
    """
    end = AGGREGATE_HEADER_END if aggregate else len(payload)
    return generation_hash + payload[HEADER_OFFSET:end]


def transaction_hash(payload: bytes, generation_hash: bytes, aggregate: bool = True) -> bytes:
    """
    Compute the entity hash of a serialized transaction.

    Cosignatures appended to an aggregate are outside the hashed range, so
    adding them never changes the hash.
    """
    hasher = hashlib.sha3_256()
    hasher.update(payload[SIGNATURE_OFFSET:SIGNATURE_OFFSET + 32])
    hasher.update(payload[SIGNER_OFFSET:SIGNER_OFFSET + 32])
    hasher.update(signing_data(payload, generation_hash, aggregate))
    return hasher.digest()
