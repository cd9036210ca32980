"""
Necromancy service: build, extend, pick and cast undead transactions.

Every life embeds the same lock operation (a metadata entry keyed by a
random 64-bit key on the signer's own account), so at most one life can
ever be confirmed.
"""

from __future__ import annotations
import asyncio
import logging
import math
import uuid
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..crypto.account import Account, PublicAccount
from ..enums import MetadataType, TransactionType
from ..config import NecromancyServiceConfig
from ..performance.dispatcher import SignedAggregateTx
from ..runtime.errors import CastError, ConfigurationError, ErrorCode, SigningError
from ..signers import assembler
from ..tx import deadline as deadlines
from ..tx.aggregate import AGGREGATE_VERSION, AggregateTransaction
from ..tx.composer import chunk
from ..tx.deadline import MS_PER_HOUR, Deadline
from ..tx.inner import InnerTransaction, calculate_metadata_hash, create_metadata_tx, generate_key
from .models import AggregateUndeadTransaction, UndeadSignature, UndeadTemplate

logger = logging.getLogger(__name__)

LOCK_VALUE = "1"


@dataclass(frozen=True)
class SignedUndeadAggregateTx(SignedAggregateTx):
    """A cast life, ready for the batch dispatcher."""

    signature: Optional[UndeadSignature] = None


class NecromancyService:
    """Undead transaction protocol on top of a ``SymbolService``."""

    def __init__(self, symbol_service, config: Optional[NecromancyServiceConfig] = None, **overrides: Any):
        self.symbol_service = symbol_service
        self.config = NecromancyServiceConfig.build(config, **overrides)

    async def _operation_limit(self) -> int:
        network = await self.symbol_service.get_network()
        # One slot is reserved for the lock operation
        return network.max_transactions_per_aggregate - 1

    @staticmethod
    def _lock_operation(signer: PublicAccount, lock_key: int) -> InnerTransaction:
        return create_metadata_tx(signer, signer, lock_key, LOCK_VALUE, MetadataType.ACCOUNT)

    async def create_tx(
        self,
        deadline_hours: float,
        operations: Sequence[InnerTransaction],
        signer: Account,
        cosigners: Sequence[Account] = (),
        fee_ratio: Optional[float] = None,
        required_cosignatures: int = 1,
        lock_key: Optional[int] = None,
        time_shift_secs: float = 0,
    ) -> AggregateUndeadTransaction:
        """
        Build an undead transaction covering ``deadline_hours``.

        Life ``i`` expires ``min(unit * (i + 1), deadline_hours)`` hours after
        the build instant, which is ``time_shift_secs`` before now.

        Args:
            deadline_hours: Total validity window
            operations: Caller operations (1 to ceiling - 1)
            signer: Aggregate signer, also owner of the lock entry
            cosigners: Accounts cosigning every life
            fee_ratio: Fee ratio, defaults to the service config
            required_cosignatures: Cosignatures the fee must cover
            lock_key: Lock metadata key, random when omitted
            time_shift_secs: Seconds to set the clock back (negative moves it forward)

        Raises:
            ConfigurationError: If the operation list is empty or too long
        """
        operations = list(operations)
        limit = await self._operation_limit()
        if not operations:
            raise ConfigurationError("Empty inner transactions.", ErrorCode.INVALID_OPERATIONS)
        if len(operations) > limit:
            raise ConfigurationError(
                f"Number of inner transactions must be {limit} or less.",
                ErrorCode.INVALID_OPERATIONS, {"count": len(operations)},
            )
        if deadline_hours <= 0:
            raise ConfigurationError("deadline_hours must be positive.", ErrorCode.INVALID_CONFIG)

        network = await self.symbol_service.get_network()
        fee_multiplier = await self.symbol_service.get_fee_multiplier(fee_ratio)
        if lock_key is None:
            lock_key = generate_key(str(uuid.uuid4()))

        now = deadlines.now_seconds() - time_shift_secs
        unit = self.config.deadline_unit_hours
        num_lives = math.ceil(deadline_hours / unit)

        template = UndeadTemplate.from_aggregate(
            AggregateTransaction.create_complete(
                Deadline.create(network.epoch_adjustment, 0, now),
                [*operations, self._lock_operation(signer.public_account, lock_key)],
                network.network_type,
            ).with_max_fee_for_aggregate(fee_multiplier, required_cosignatures)
        )

        signatures = []
        for i in range(num_lives):
            deadline = Deadline.create(network.epoch_adjustment, min(unit * (i + 1), deadline_hours), now)
            result = assembler.sign_transaction(signer, template.at(deadline.adjusted_value), network.generation_hash)
            signatures.append(UndeadSignature(
                deadline=deadline.adjusted_value,
                hash=result.hash,
                signature=result.signature.hex().upper(),
                cosignatures=tuple(assembler.cosign_transaction_hash(c, result.hash) for c in cosigners),
            ))

        logger.debug(f"Created undead transaction with {num_lives} lives over {deadline_hours}h")
        return AggregateUndeadTransaction(signer.public_key, template, tuple(signatures))

    async def retrieve_tx(
        self,
        operations: Sequence[InnerTransaction],
        signer: PublicAccount,
        signatures: Sequence[UndeadSignature],
        max_fee: int,
        lock_key: int,
    ) -> AggregateUndeadTransaction:
        """
        Rebuild an undead transaction from its parts.

        Raises:
            SigningError: If a life's signature does not match the rebuilt operations
        """
        network = await self.symbol_service.get_network()
        template = UndeadTemplate(
            network_type=network.network_type,
            type=TransactionType.AGGREGATE_COMPLETE,
            version=AGGREGATE_VERSION,
            max_fee=max_fee,
            inner_transactions=(*operations, self._lock_operation(signer, lock_key)),
        )
        undead_tx = AggregateUndeadTransaction(signer.public_key, template, tuple(signatures))
        for signature in undead_tx.signatures:
            if not signer.verify(undead_tx.life(signature).signing_bytes(network.generation_hash),
                                 bytes.fromhex(signature.signature)):
                raise SigningError(
                    f"Life {signature.hash} does not match the supplied operations",
                    ErrorCode.HASH_MISMATCH,
                )
        return undead_tx

    def cosign_tx(self, undead_tx: AggregateUndeadTransaction,
                  cosigners: Sequence[Account]) -> AggregateUndeadTransaction:
        """Every life gains one cosignature per cosigner. The input is unchanged."""
        return undead_tx.with_signatures([
            signature.with_cosignatures(
                assembler.cosign_transaction_hash(cosigner, signature.hash) for cosigner in cosigners
            )
            for signature in undead_tx.signatures
        ])

    @staticmethod
    def pick(
        signatures: Sequence[UndeadSignature],
        now: int,
        deadline_unit_hours: float,
        deadline_margin_hours: float,
    ) -> Optional[UndeadSignature]:
        """
        Choose the life to cast at ``now`` (adjusted ms).

        The latest life whose deadline minus the margin falls within one unit
        from now. Past every deadline this is the last life; None if even
        the first life is too far in the future.
        """
        reference = now + int(round(deadline_unit_hours * MS_PER_HOUR))
        margin = int(round(deadline_margin_hours * MS_PER_HOUR))

        picked = None
        for signature in signatures:
            if signature.deadline - margin > reference:
                break
            picked = signature
        return picked

    async def pick_signature(self, undead_tx: AggregateUndeadTransaction,
                             time_shift_secs: float = 0) -> Optional[UndeadSignature]:
        network = await self.symbol_service.get_network()
        now = deadlines.to_adjusted_ms(deadlines.now_seconds() - time_shift_secs, network.epoch_adjustment)
        return self.pick(undead_tx.signatures, now, self.config.deadline_unit_hours,
                         self.config.deadline_margin_hours)

    async def cast_tx(
        self,
        undead_tx: AggregateUndeadTransaction,
        signature: UndeadSignature,
        cosigners: Sequence[Account] = (),
    ) -> SignedUndeadAggregateTx:
        """
        Materialize one life as an announce-ready batch. Nothing is re-signed by the signer.

        Raises:
            SigningError: If the rebuilt payload does not hash to the life's hash
        """
        signed_tx = await self.symbol_service.convert_to_signed_tx(undead_tx.life(signature))
        if signed_tx.hash != signature.hash.upper():
            raise SigningError(
                f"Rebuilt life hashes to {signed_tx.hash}, expected {signature.hash}",
                ErrorCode.HASH_MISMATCH,
            )
        extra = tuple(assembler.cosign_transaction_hash(c, signature.hash) for c in cosigners)
        return SignedUndeadAggregateTx(
            signed_tx=signed_tx,
            cosignatures=signature.cosignatures + extra,
            max_fee=undead_tx.max_fee,
            signature=signature,
        )

    async def pick_and_cast_tx(
        self,
        undead_tx: AggregateUndeadTransaction,
        cosigners: Sequence[Account] = (),
        time_shift_secs: float = 0,
    ) -> Optional[SignedUndeadAggregateTx]:
        """Cast the life picked for now minus ``time_shift_secs``, or None if no life is eligible."""
        signature = await self.pick_signature(undead_tx, time_shift_secs)
        if signature is None:
            logger.warning("No castable life: every deadline is too far in the future")
            return None
        return await self.cast_tx(undead_tx, signature, cosigners)

    async def build_tx_batches(
        self,
        deadline_hours: float,
        operations: Sequence[InnerTransaction],
        signer: Account,
        cosigners: Sequence[Account] = (),
        fee_ratio: Optional[float] = None,
        batch_size: Optional[int] = None,
        required_cosignatures: int = 1,
        time_shift_secs: float = 0,
    ) -> List[AggregateUndeadTransaction]:
        """
        One undead transaction per chunk of ``operations``, each with its own lock.

        Raises:
            ConfigurationError: If ``batch_size`` exceeds ceiling - 1 or nothing is given
        """
        limit = await self._operation_limit()
        if batch_size is None:
            batch_size = max(1, min(self.symbol_service.config.batch_size - 1, limit))
        if not operations:
            raise ConfigurationError("Empty inner transactions.", ErrorCode.INVALID_OPERATIONS)

        return [
            await self.create_tx(
                deadline_hours, batch, signer, cosigners, fee_ratio,
                required_cosignatures, None, time_shift_secs,
            )
            for batch in chunk(operations, batch_size, limit)
        ]

    async def pick_and_cast_tx_batches(
        self,
        undead_batches: Sequence[AggregateUndeadTransaction],
        cosigners: Sequence[Account] = (),
        time_shift_secs: float = 0,
    ) -> List[SignedUndeadAggregateTx]:
        """
        Raises:
            CastError: If any batch has no eligible life
        """
        results = await asyncio.gather(*(
            self.pick_and_cast_tx(undead_tx, cosigners, time_shift_secs) for undead_tx in undead_batches
        ))
        if any(result is None for result in results):
            raise CastError()
        return list(results)

    def lock_metadata_hash(self, undead_tx: AggregateUndeadTransaction) -> str:
        signer = PublicAccount(undead_tx.public_key, undead_tx.network_type)
        return calculate_metadata_hash(MetadataType.ACCOUNT, signer.address, signer.address, undead_tx.lock_key)

    async def is_cast(self, undead_tx: AggregateUndeadTransaction) -> bool:
        """True once one of the lives has been confirmed (its lock entry exists)."""
        return await self.symbol_service.get_metadata_by_hash(self.lock_metadata_hash(undead_tx)) is not None
