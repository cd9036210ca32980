"""
Network context cache.

Network properties are fetched from the node on first use and memoized
until explicitly invalidated.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .enums import NetworkType
from .runtime.errors import ConfigurationError, ErrorCode
from .tx.fees import TransactionFees

logger = logging.getLogger(__name__)

DEFAULT_MAX_TRANSACTIONS_PER_AGGREGATE = 100
DEFAULT_MAX_COSIGNATURES_PER_AGGREGATE = 25


@dataclass(frozen=True)
class NetworkContext:
    """Immutable snapshot of the parameters the service needs from the node."""

    network_type: NetworkType
    epoch_adjustment: int
    generation_hash: str
    currency_mosaic_id: str
    transaction_fees: TransactionFees
    max_transactions_per_aggregate: int = DEFAULT_MAX_TRANSACTIONS_PER_AGGREGATE
    max_cosignatures_per_aggregate: int = DEFAULT_MAX_COSIGNATURES_PER_AGGREGATE
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)
    updated_at: float = field(default_factory=time.time, compare=False)

    @property
    def generation_hash_bytes(self) -> bytes:
        return bytes.fromhex(self.generation_hash)

    @classmethod
    def from_dto(cls, properties: Dict[str, Any], fees: Dict[str, Any]) -> NetworkContext:
        """
        Build a context from ``/network/properties`` and ``/network/fees/transaction``.

        Raises:
            ConfigurationError: If a required property is missing or malformed
        """
        network = properties.get("network", {})
        chain = properties.get("chain", {})
        aggregate = properties.get("plugins", {}).get("aggregate", {})

        try:
            return cls(
                network_type=NetworkType.from_name(network["identifier"]),
                epoch_adjustment=parse_seconds(network["epochAdjustment"]),
                generation_hash=network["generationHashSeed"].upper(),
                currency_mosaic_id=parse_hex_id(chain["currencyMosaicId"]),
                transaction_fees=TransactionFees.from_dto(fees),
                max_transactions_per_aggregate=parse_int(
                    aggregate.get("maxTransactionsPerAggregate"), DEFAULT_MAX_TRANSACTIONS_PER_AGGREGATE),
                max_cosignatures_per_aggregate=parse_int(
                    aggregate.get("maxCosignaturesPerAggregate"), DEFAULT_MAX_COSIGNATURES_PER_AGGREGATE),
                properties=properties,
            )
        except (KeyError, ValueError, AttributeError) as e:
            raise ConfigurationError(
                f"Malformed network properties: {e}", ErrorCode.INVALID_CONFIG, cause=e
            )


def parse_seconds(value: Any) -> int:
    """``"1615853185s"`` -> 1615853185"""
    return int(str(value).strip().rstrip("s"))


def parse_hex_id(value: Any) -> str:
    """``"0x6BED'913F'A202'23F8"`` -> ``"6BED913FA20223F8"``"""
    text = str(value).replace("'", "")
    if text.lower().startswith("0x"):
        text = text[2:]
    int(text, 16)
    return text.upper()


def parse_int(value: Any, default: int) -> int:
    """Node numbers may carry ``'`` digit separators."""
    if value is None:
        return default
    return int(str(value).replace("'", ""))


class NetworkContextCache:
    """
    Lazily fetched, memoized network context.

    Concurrent first callers share a single fetch. Nothing expires on its
    own; call ``invalidate()`` to force a refetch.
    """

    def __init__(self, rest_client):
        self.rest_client = rest_client
        self._context: Optional[NetworkContext] = None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Optional[NetworkContext]:
        return self._context

    async def get(self) -> NetworkContext:
        if self._context is not None:
            return self._context
        async with self._lock:
            if self._context is None:
                properties, fees = await asyncio.gather(
                    self.rest_client.get_network_properties(),
                    self.rest_client.get_transaction_fees(),
                )
                self._context = NetworkContext.from_dto(properties, fees)
                logger.info(
                    f"Network context loaded: {self._context.network_type.name}, "
                    f"epoch {self._context.epoch_adjustment}"
                )
            return self._context

    def invalidate(self) -> None:
        self._context = None

    async def refresh(self) -> NetworkContext:
        self.invalidate()
        return await self.get()
