"""
Confirmation tracking.

For every hash the tracker races the event stream (failure status,
confirmed, partial) against a one-shot REST poll. The first terminal
observation wins and every watcher and subscription for that hash is torn
down on the way out.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ..crypto.account import Address
from ..enums import TransactionGroup
from ..runtime.errors import ListenerError, NetworkError
from ..transport.ws import Listener, Subscription

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TxResult:
    """Outcome for one transaction hash. ``error`` is None on success."""

    hash: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def status_error(code: str) -> str:
    return f"Received error status: {code}"


class ConfirmationTracker:
    """Waits for transactions to reach a group, reporting failures as data."""

    def __init__(self, rest_client):
        self.rest_client = rest_client

    async def listen(
        self,
        listener: Listener,
        address: Address,
        hashes: Sequence[str],
        group: Union[TransactionGroup, str] = TransactionGroup.CONFIRMED,
    ) -> List[TxResult]:
        """
        Wait until every hash is confirmed (or partial) or has failed.

        Args:
            listener: Open event stream shared by all hashes
            address: Account whose channels carry the transactions
            hashes: Transaction hashes
            group: Which state counts as success

        Returns:
            One TxResult per hash, in input order

        Raises:
            ListenerError: If the event stream fails; the other waits are cancelled
        """
        group = TransactionGroup(group)
        tasks = [
            asyncio.ensure_future(self._wait_one(listener, address, tx_hash.upper(), group))
            for tx_hash in hashes
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _wait_one(self, listener: Listener, address: Address, tx_hash: str,
                        group: TransactionGroup) -> TxResult:
        subscriptions: List[Subscription] = []
        watchers: List[asyncio.Task] = []
        try:
            # Subscribe before polling so nothing falls between the two
            subscription = await listener.status(address, tx_hash)
            subscriptions.append(subscription)
            watchers.append(asyncio.ensure_future(self._watch_status(subscription, tx_hash)))
            if group.accepts_confirmed:
                subscription = await listener.confirmed(address, tx_hash)
                subscriptions.append(subscription)
                watchers.append(asyncio.ensure_future(self._watch_success(subscription, tx_hash)))
            if group.accepts_partial:
                subscription = await listener.partial_added(address, tx_hash)
                subscriptions.append(subscription)
                watchers.append(asyncio.ensure_future(self._watch_success(subscription, tx_hash)))
            watchers.append(asyncio.ensure_future(self.poll(tx_hash, group)))

            pending = set(watchers)
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    result = task.result()
                    if result is not None:
                        return result
            raise ListenerError(f"Event stream ended before {tx_hash} settled")
        finally:
            for task in watchers:
                task.cancel()
            await asyncio.gather(*watchers, return_exceptions=True)
            for subscription in subscriptions:
                try:
                    await subscription.unsubscribe()
                except ListenerError as e:
                    logger.warning(f"Unsubscribe from {subscription.channel} failed: {e}")

    async def _watch_status(self, subscription: Subscription, tx_hash: str) -> TxResult:
        while True:
            event = await subscription.next()
            code = str(event.get("code", ""))
            if code and code != "Success":
                error = status_error(code)
                logger.debug(error)
                return TxResult(tx_hash, error)

    async def _watch_success(self, subscription: Subscription, tx_hash: str) -> TxResult:
        await subscription.next()
        return TxResult(tx_hash)

    async def poll(self, tx_hash: str, group: Union[TransactionGroup, str]) -> Optional[TxResult]:
        """
        One-shot REST check.

        Returns:
            TxResult if the transaction has already failed or reached ``group``,
            None if the answer is not known yet
        """
        group = TransactionGroup(group)
        try:
            status = await self.rest_client.get_transaction_status(tx_hash)
            code = str((status or {}).get("code", ""))
            if code.startswith("Failure"):
                error = status_error(code)
                logger.debug(error)
                return TxResult(tx_hash, error)
            if group.accepts_confirmed and await self.rest_client.get_transaction(tx_hash, "confirmed"):
                return TxResult(tx_hash)
            if group.accepts_partial and await self.rest_client.get_transaction(tx_hash, "partial"):
                return TxResult(tx_hash)
        except NetworkError as e:
            logger.warning(f"Poll for {tx_hash} inconclusive: {e}")
        return None
