"""Key material, accounts and addresses"""

from .account import Account, Address, PublicAccount
from .ed25519 import Ed25519Error, Ed25519PrivateKey, Ed25519PublicKey

__all__ = [
    "Account",
    "Address",
    "PublicAccount",
    "Ed25519Error",
    "Ed25519PrivateKey",
    "Ed25519PublicKey",
]
