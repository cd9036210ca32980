"""
Parallel batch dispatch.

Workers drain a shared FIFO of signed batches: announce, wait for
confirmation, move on. A worker stops at its first failed batch; the
others keep going.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..client.tracker import ConfirmationTracker, TxResult
from ..crypto.account import Address
from ..enums import TransactionGroup
from ..runtime.errors import ConfigurationError, ErrorCode
from ..signers.assembler import create_signed_tx_with_cosignatures
from ..transport.ws import Listener
from ..tx.signed import CosignatureSignedTransaction, SignedTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedAggregateTx:
    """One dispatchable batch: signed aggregate plus detached cosignatures."""

    signed_tx: SignedTransaction
    cosignatures: Tuple[CosignatureSignedTransaction, ...] = field(default=())
    max_fee: int = 0

    def to_announce(self) -> SignedTransaction:
        return create_signed_tx_with_cosignatures(self.signed_tx, self.cosignatures)


class BatchDispatcher:
    """Announces batches with bounded parallelism and tracks each to confirmation."""

    def __init__(self, rest_client, tracker: ConfirmationTracker):
        self.rest_client = rest_client
        self.tracker = tracker

    async def announce(self, batch: SignedAggregateTx) -> SignedTransaction:
        signed_tx = batch.to_announce()
        await self.rest_client.announce(signed_tx.payload)
        logger.debug(f"Announced {signed_tx.hash} with {len(batch.cosignatures)} cosignatures")
        return signed_tx

    async def run(
        self,
        listener: Listener,
        batches: Sequence[SignedAggregateTx],
        address: Address,
        max_parallel: int,
    ) -> Optional[List[TxResult]]:
        """
        Announce and confirm ``batches``.

        Args:
            listener: Open event stream shared by all workers
            batches: Batches, popped in order
            address: Account whose channels report the batches
            max_parallel: Number of workers

        Returns:
            None when every batch confirmed, otherwise the failures

        Raises:
            ConfigurationError: If ``max_parallel`` is below 1
            NetworkError: On transport failures; remaining workers are cancelled
        """
        if max_parallel < 1:
            raise ConfigurationError(
                "max_parallel must be 1 or more.", ErrorCode.INVALID_CONFIG,
                {"max_parallel": max_parallel},
            )

        queue: asyncio.Queue = asyncio.Queue()
        for batch in batches:
            queue.put_nowait(batch)

        logger.info(f"Dispatching {len(batches)} batches with {max_parallel} workers")
        workers = [
            asyncio.ensure_future(self._worker(f"worker-{i}", queue, listener, address))
            for i in range(max_parallel)
        ]
        try:
            results = await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        errors = [error for worker_errors in results for error in worker_errors]
        logger.info(f"Dispatch finished: {len(errors)} failed batches")
        return errors or None

    async def _worker(self, worker_id: str, queue: asyncio.Queue, listener: Listener,
                      address: Address) -> List[TxResult]:
        logger.debug(f"Dispatch worker {worker_id} started")
        while True:
            try:
                batch = queue.get_nowait()
            except asyncio.QueueEmpty:
                break

            signed_tx = await self.announce(batch)
            results = await self.tracker.listen(
                listener, address, [signed_tx.hash], TransactionGroup.CONFIRMED,
            )
            errors = [result for result in results if not result.ok]
            if errors:
                logger.debug(f"Dispatch worker {worker_id} stopping: {errors[0].error}")
                return errors

        logger.debug(f"Dispatch worker {worker_id} stopped")
        return []
