"""
Binary Codec Module

- writer.py: little-endian binary writer
- reader.py: little-endian binary reader
- hashes.py: SHA3-256, Merkle root and transaction hashing
"""

from .hashes import merkle_root, sha3_256_bytes, sha3_256_hex, signing_data, transaction_hash
from .reader import BinaryReader
from .writer import BinaryWriter

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "merkle_root",
    "sha3_256_bytes",
    "sha3_256_hex",
    "signing_data",
    "transaction_hash",
]
