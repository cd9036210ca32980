"""
Aggregate composer.

Turns operation lists into ledger-legal aggregate transactions and splits
long lists into batches the network accepts.
"""

from __future__ import annotations
import logging
from typing import List, Sequence, TypeVar

from ..network import NetworkContext
from ..runtime.errors import ConfigurationError, ErrorCode
from .aggregate import AggregateTransaction
from .deadline import Deadline
from .inner import InnerTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AggregateComposer:
    """Composes unsigned aggregate complete transactions for one network."""

    def __init__(self, network: NetworkContext):
        self.network = network

    @property
    def max_batch_size(self) -> int:
        return self.network.max_transactions_per_aggregate

    def fee_multiplier(self, ratio: float = 0.0) -> float:
        return self.network.transaction_fees.fee_multiplier(ratio)

    def compose(
        self,
        fee_multiplier: float,
        required_cosignatures: int,
        operations: Sequence[InnerTransaction],
        deadline: Deadline,
    ) -> AggregateTransaction:
        """
        Compose an unsigned aggregate complete transaction.

        Args:
            fee_multiplier: Fee per byte
            required_cosignatures: Cosignatures the fee must cover
            operations: Inner transactions, in order
            deadline: Deadline of the aggregate

        Returns:
            Unsigned aggregate with its max fee set

        Raises:
            ConfigurationError: If the operation count is 0 or above the network ceiling
        """
        if not operations:
            raise ConfigurationError("Empty inner transactions.", ErrorCode.INVALID_OPERATIONS)
        if len(operations) > self.max_batch_size:
            raise ConfigurationError(
                f"Number of inner transactions must be {self.max_batch_size} or less.",
                ErrorCode.INVALID_OPERATIONS,
                {"count": len(operations)},
            )
        return AggregateTransaction.create_complete(
            deadline, operations, self.network.network_type,
        ).with_max_fee_for_aggregate(fee_multiplier, required_cosignatures)

    def chunk(self, operations: Sequence[T], batch_size: int) -> List[List[T]]:
        """
        Split operations into consecutive batches of at most ``batch_size``.

        Raises:
            ConfigurationError: If ``batch_size`` is below 1 or above the network ceiling
        """
        return chunk(operations, batch_size, self.max_batch_size)


def chunk(operations: Sequence[T], batch_size: int, limit: int) -> List[List[T]]:
    """Order-preserving split into ``ceil(len / batch_size)`` lists."""
    if batch_size > limit:
        raise ConfigurationError(
            f"Batch size must be {limit} or less.", ErrorCode.INVALID_BATCH_SIZE,
            {"batch_size": batch_size},
        )
    if batch_size < 1:
        raise ConfigurationError(
            "Batch size must be 1 or more.", ErrorCode.INVALID_BATCH_SIZE,
            {"batch_size": batch_size},
        )
    batches = [list(operations[i:i + batch_size]) for i in range(0, len(operations), batch_size)]
    logger.debug(f"Split {len(operations)} operations into {len(batches)} batches of {batch_size}")
    return batches
