"""
Transaction fee multipliers.

The node reports fee multipliers (micro units per byte). A caller picks a
point between the minimum and the average with a ratio.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict

from .signed import COSIGNATURE_SIZE


@dataclass(frozen=True)
class TransactionFees:
    """Fee multipliers reported by ``/network/fees/transaction``."""

    average_fee_multiplier: int = 0
    median_fee_multiplier: int = 0
    highest_fee_multiplier: int = 0
    lowest_fee_multiplier: int = 0
    min_fee_multiplier: int = 0

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> TransactionFees:
        return cls(
            average_fee_multiplier=int(dto.get("averageFeeMultiplier", 0)),
            median_fee_multiplier=int(dto.get("medianFeeMultiplier", 0)),
            highest_fee_multiplier=int(dto.get("highestFeeMultiplier", 0)),
            lowest_fee_multiplier=int(dto.get("lowestFeeMultiplier", 0)),
            min_fee_multiplier=int(dto.get("minFeeMultiplier", 0)),
        )

    def fee_multiplier(self, ratio: float = 0.0) -> float:
        """``min + average * ratio``."""
        return self.min_fee_multiplier + self.average_fee_multiplier * ratio


def calculate_max_fee(size: int, fee_multiplier: float, required_cosignatures: int = 0) -> int:
    """
    Max fee for an aggregate of ``size`` bytes.

    Args:
        size: Serialized size in bytes, including cosignatures already attached
        fee_multiplier: Fee per byte
        required_cosignatures: Cosignatures still to be attached

    Returns:
        Truncated integer fee
    """
    return int((size + COSIGNATURE_SIZE * required_cosignatures) * fee_multiplier)
