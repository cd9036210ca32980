"""
SymbolService facade.

Single entry point over the network cache, composer, assembler, tracker and
dispatcher. Everything network-dependent resolves the cached network
context first.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from .client.tracker import ConfirmationTracker, TxResult
from .config import SymbolServiceConfig
from .crypto.account import Account, Address, PublicAccount
from .enums import MetadataType, TransactionGroup
from .network import NetworkContext, NetworkContextCache
from .performance.dispatcher import BatchDispatcher, SignedAggregateTx
from .runtime.errors import ConfigurationError, ErrorCode
from .signers import assembler
from .transport.http import SymbolRestClient
from .transport.ws import Listener
from .tx.aggregate import AggregateTransaction
from .tx.composer import AggregateComposer
from .tx.deadline import Deadline
from .tx.inner import InnerTransaction, calculate_metadata_hash, create_metadata_tx, generate_key
from .tx.signed import CosignatureSignedTransaction, SignedTransaction
from .utils.units import to_micro_xym, to_xym

logger = logging.getLogger(__name__)

AccountLike = Union[Account, PublicAccount, Address]


def _address_of(account: AccountLike) -> Address:
    return account if isinstance(account, Address) else account.address


class SymbolService:
    """
    Aggregate transaction service for one node.

    Usage::

        async with SymbolService(SymbolServiceConfig(node_url="http://localhost:3000")) as service:
            batches = await service.build_signed_aggregate_complete_tx_batches(txs, signer)
            errors = await service.execute_batches(batches, signer)
    """

    generate_key = staticmethod(generate_key)
    calculate_metadata_hash = staticmethod(calculate_metadata_hash)
    create_signed_tx_with_cosignatures = staticmethod(assembler.create_signed_tx_with_cosignatures)
    to_xym = staticmethod(to_xym)
    to_micro_xym = staticmethod(to_micro_xym)

    def __init__(self, config: Optional[SymbolServiceConfig] = None,
                 rest_client: Optional[SymbolRestClient] = None, **overrides: Any):
        self.config = config = SymbolServiceConfig.build(config, **overrides)
        self.rest_client = rest_client or SymbolRestClient(config.node_url, config.request_timeout)
        self.network_cache = NetworkContextCache(self.rest_client)
        self.tracker = ConfirmationTracker(self.rest_client)
        self.dispatcher = BatchDispatcher(self.rest_client, self.tracker)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        await self.rest_client.close()

    # Network

    async def get_network(self) -> NetworkContext:
        return await self.network_cache.get()

    def invalidate_network(self) -> None:
        self.network_cache.invalidate()

    async def get_fee_multiplier(self, ratio: Optional[float] = None) -> float:
        network = await self.get_network()
        return network.transaction_fees.fee_multiplier(self.config.fee_ratio if ratio is None else ratio)

    async def get_composer(self) -> AggregateComposer:
        return AggregateComposer(await self.get_network())

    async def create_deadline(self, hours: Optional[float] = None) -> Deadline:
        """Deadline ``hours`` from now, ``deadline_hours`` by default."""
        network = await self.get_network()
        return Deadline.create(network.epoch_adjustment, self.config.deadline_hours if hours is None else hours)

    # Composition and signing

    async def compose_aggregate_complete_tx(
        self,
        fee_multiplier: float,
        num_cosigners: int,
        txs: Sequence[InnerTransaction],
        deadline: Optional[Deadline] = None,
    ) -> AggregateTransaction:
        composer = await self.get_composer()
        if deadline is None:
            deadline = await self.create_deadline()
        return composer.compose(fee_multiplier, num_cosigners, txs, deadline)

    async def sign_tx(self, signer: Account, tx: AggregateTransaction) -> assembler.SignResult:
        network = await self.get_network()
        return assembler.sign_transaction(signer, tx, network.generation_hash)

    async def convert_to_signed_tx(self, tx_with_signature: AggregateTransaction) -> SignedTransaction:
        network = await self.get_network()
        return assembler.convert_to_signed_tx(tx_with_signature, network.generation_hash)

    @staticmethod
    def cosign_tx_hash(cosigner: Account, tx_hash: str) -> CosignatureSignedTransaction:
        return assembler.cosign_transaction_hash(cosigner, tx_hash)

    async def create_metadata_tx(
        self,
        source: PublicAccount,
        target: Union[PublicAccount, Address],
        key: Union[str, int],
        value: Union[str, bytes],
        metadata_type: MetadataType = MetadataType.ACCOUNT,
        target_id: int = 0,
        size_delta: Optional[int] = None,
    ) -> InnerTransaction:
        """Metadata operation signed by ``source``; see ``tx.inner.create_metadata_tx``."""
        return create_metadata_tx(source, target, key, value, metadata_type, target_id, size_delta)

    # Announce and lookups

    async def announce_tx(self, signed_tx: SignedTransaction) -> Dict[str, Any]:
        logger.debug(f"Announcing TX: {signed_tx.hash}")
        return await self.rest_client.announce(signed_tx.payload)

    async def announce_tx_with_cosignatures(
        self,
        signed_tx: SignedTransaction,
        cosignatures: Sequence[CosignatureSignedTransaction],
    ) -> Optional[str]:
        """Announce ``signed_tx`` with cosignatures appended. ``signed_tx`` is not modified."""
        complete = assembler.create_signed_tx_with_cosignatures(signed_tx, cosignatures)
        response = await self.announce_tx(complete)
        return (response or {}).get("message")

    async def get_confirmed_tx(self, tx_hash: str) -> Optional[str]:
        """Hash of the confirmed transaction, or None if not found."""
        return self._info_hash(await self.rest_client.get_transaction(tx_hash, "confirmed"))

    async def get_partial_tx(self, tx_hash: str) -> Optional[str]:
        """Hash of the partial transaction, or None if not found."""
        return self._info_hash(await self.rest_client.get_transaction(tx_hash, "partial"))

    @staticmethod
    def _info_hash(dto: Optional[Dict[str, Any]]) -> Optional[str]:
        if not dto:
            return None
        return (dto.get("meta") or {}).get("hash")

    async def get_metadata_by_hash(self, composite_hash: str) -> Optional[Dict[str, Any]]:
        return await self.rest_client.get_metadata(composite_hash)

    async def search_metadata(
        self,
        metadata_type: MetadataType,
        target: Optional[AccountLike] = None,
        source: Optional[AccountLike] = None,
        key: Union[str, int, None] = None,
        target_id: Optional[int] = None,
        page_size: int = 100,
    ) -> List[Dict[str, Any]]:
        """All metadata entries matching the criteria, following pagination."""
        if isinstance(key, str):
            key = generate_key(key)
        criteria = {
            "metadataType": int(metadata_type),
            "targetAddress": _address_of(target).plain() if target is not None else None,
            "sourceAddress": _address_of(source).plain() if source is not None else None,
            "scopedMetadataKey": f"{key:016X}" if key is not None else None,
            "targetId": f"{target_id:016X}" if target_id is not None else None,
        }
        entries: List[Dict[str, Any]] = []
        page_number = 1
        while True:
            page = await self.rest_client.search_metadata(page_number, page_size, **criteria)
            batch = page.get("data", [])
            entries.extend(batch)
            if len(batch) < page_size:
                return entries
            page_number += 1

    # Listening

    def create_listener(self) -> Listener:
        if not self.config.ws_url:
            raise ConfigurationError("No event stream URL configured", ErrorCode.INVALID_CONFIG)
        return Listener(self.config.ws_url, self.config.request_timeout)

    async def wait_txs_for(
        self,
        account: AccountLike,
        tx_hashes: Union[str, Sequence[str], None] = None,
        group: Union[TransactionGroup, str] = TransactionGroup.CONFIRMED,
    ) -> List[TxResult]:
        """Wait on a fresh listener, closed on every exit path."""
        if isinstance(tx_hashes, str):
            tx_hashes = [tx_hashes]
        async with self.create_listener() as listener:
            return await self.tracker.listen(listener, _address_of(account), list(tx_hashes or []), group)

    # Batches

    async def build_signed_aggregate_complete_tx_batches(
        self,
        txs: Sequence[InnerTransaction],
        signer: Account,
        cosigners: Sequence[Account] = (),
        fee_ratio: Optional[float] = None,
        batch_size: Optional[int] = None,
    ) -> List[SignedAggregateTx]:
        """
        Chunk, compose, sign and cosign ``txs``.

        Raises:
            ConfigurationError: If the batch size exceeds the network ceiling
        """
        network = await self.get_network()
        composer = AggregateComposer(network)
        fee_multiplier = await self.get_fee_multiplier(fee_ratio)
        chunks = composer.chunk(txs, self.config.batch_size if batch_size is None else batch_size)

        batches = []
        for inner_txs in chunks:
            aggregate_tx = composer.compose(fee_multiplier, len(cosigners), inner_txs, await self.create_deadline())
            signed = assembler.sign_transaction(signer, aggregate_tx, network.generation_hash)
            cosignatures = tuple(
                assembler.cosign_transaction_hash(cosigner, signed.hash) for cosigner in cosigners
            )
            batches.append(SignedAggregateTx(signed.signed_tx, cosignatures, aggregate_tx.max_fee))
        return batches

    async def execute_batches(
        self,
        batches: Sequence[SignedAggregateTx],
        account: AccountLike,
        max_parallel: Optional[int] = None,
    ) -> Optional[List[TxResult]]:
        """
        Announce and confirm batches over one shared listener.

        Returns:
            None if every batch confirmed, otherwise the failures
        """
        async with self.create_listener() as listener:
            return await self.dispatcher.run(
                listener, batches, _address_of(account),
                self.config.max_parallels if max_parallel is None else max_parallel,
            )
