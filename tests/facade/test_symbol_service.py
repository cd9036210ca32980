"""
SymbolService facade tests against the fake node.
"""

import pytest

from helpers.fakes import EPOCH_ADJUSTMENT, GENERATION_HASH, metadata_operations

from symbol_service.client.tracker import TxResult
from symbol_service.config import SymbolServiceConfig
from symbol_service.enums import MetadataType, TransactionGroup
from symbol_service.facade import SymbolService
from symbol_service.runtime.errors import ConfigurationError
from symbol_service.signers import verify_cosignature, verify_signed_transaction
from symbol_service.tx import Deadline, MetadataOperation
from symbol_service.tx.deadline import MS_PER_HOUR


@pytest.mark.unit
class TestConstruction:

    def test_overrides_rebuild_config(self, node):
        base = SymbolServiceConfig(node_url="http://localhost:3000", batch_size=50)
        service = SymbolService(base, rest_client=node, node_url="https://other:3001")
        assert service.config.node_url == "https://other:3001"
        assert service.config.ws_url == "wss://other:3001/ws"
        assert service.config.batch_size == 50

    def test_keyword_config(self, node):
        service = SymbolService(rest_client=node, node_url="http://localhost:3000", fee_ratio=0.35)
        assert service.config.fee_ratio == 0.35
        assert service.rest_client is node

    @pytest.mark.parametrize("overrides", [{"node_url": "node:3000"}, {"batch_size": 0}])
    def test_invalid_settings(self, node, overrides):
        with pytest.raises(ConfigurationError):
            SymbolService(rest_client=node, **overrides)

    def test_listener_requires_ws_url(self, node):
        with pytest.raises(ConfigurationError):
            SymbolService(rest_client=node).create_listener()

    def test_static_helpers(self, signer):
        assert SymbolService.generate_key("key") >> 63 == 1
        composite = SymbolService.calculate_metadata_hash(
            MetadataType.ACCOUNT, signer.address, signer.address, "key",
        )
        assert len(composite) == 64
        assert verify_cosignature(SymbolService.cosign_tx_hash(signer, "AB" * 32))


@pytest.mark.unit
class TestNetworkAccess:

    @pytest.mark.asyncio
    async def test_network_is_cached(self, service, node):
        network = await service.get_network()
        assert network.generation_hash == GENERATION_HASH
        assert await service.get_network() is network
        service.invalidate_network()
        await service.get_network()
        assert node.property_calls == 2

    @pytest.mark.asyncio
    async def test_fee_multiplier(self, node, clock):
        service = SymbolService(rest_client=node, node_url="http://localhost:3000", fee_ratio=0.5)
        assert await service.get_fee_multiplier() == 600
        assert await service.get_fee_multiplier(0) == 100

    @pytest.mark.asyncio
    async def test_create_deadline(self, service, clock):
        now_ms = int(round((clock.now - EPOCH_ADJUSTMENT) * 1000))
        assert (await service.create_deadline()).adjusted_value == now_ms + 2 * MS_PER_HOUR
        assert (await service.create_deadline(hours=1)).adjusted_value == now_ms + MS_PER_HOUR


@pytest.mark.unit
class TestComposeAndSign:

    @pytest.mark.asyncio
    async def test_compose_sign_convert(self, service, signer):
        operations = metadata_operations(signer, 2)
        tx = await service.compose_aggregate_complete_tx(100, 0, operations)
        assert tx.max_fee == tx.size * 100

        result = await service.sign_tx(signer, tx)
        assert verify_signed_transaction(result.signed_tx, GENERATION_HASH)
        converted = await service.convert_to_signed_tx(tx.with_signature(result.signature.hex(), signer.public_key))
        assert converted.hash == result.hash

    @pytest.mark.asyncio
    async def test_compose_with_explicit_deadline(self, service, signer):
        tx = await service.compose_aggregate_complete_tx(
            100, 1, metadata_operations(signer, 1), Deadline(42),
        )
        assert tx.deadline == Deadline(42)

    @pytest.mark.asyncio
    async def test_create_metadata_tx(self, service, signer, cosigner):
        tx = await service.create_metadata_tx(signer.public_account, cosigner.address, "key", "value")
        operation = MetadataOperation.parse(tx)
        assert tx.signer_public_key == signer.public_key
        assert operation.target_address == cosigner.address
        assert operation.value == b"value"


@pytest.mark.unit
class TestBatchBuilding:

    @pytest.mark.asyncio
    async def test_batches_follow_batch_size(self, service, signer):
        batches = await service.build_signed_aggregate_complete_tx_batches(
            metadata_operations(signer, 7), signer, batch_size=3,
        )
        assert len(batches) == 3
        for batch in batches:
            assert verify_signed_transaction(batch.signed_tx, GENERATION_HASH)
            assert batch.cosignatures == ()
            assert batch.max_fee > 0

    @pytest.mark.asyncio
    async def test_cosigners_cosign_every_batch(self, service, signer, cosigner, other_cosigner):
        batches = await service.build_signed_aggregate_complete_tx_batches(
            metadata_operations(signer, 4), signer, [cosigner, other_cosigner], batch_size=2,
        )
        for batch in batches:
            assert [c.signer_public_key for c in batch.cosignatures] == [
                cosigner.public_key, other_cosigner.public_key,
            ]
            assert all(c.parent_hash == batch.signed_tx.hash for c in batch.cosignatures)
            assert verify_signed_transaction(batch.to_announce(), GENERATION_HASH)

    @pytest.mark.asyncio
    async def test_fee_covers_cosigners(self, service, signer, cosigner):
        operations = metadata_operations(signer, 2)
        plain = await service.build_signed_aggregate_complete_tx_batches(operations, signer)
        cosigned = await service.build_signed_aggregate_complete_tx_batches(operations, signer, [cosigner])
        assert cosigned[0].max_fee - plain[0].max_fee == 104 * 100

    @pytest.mark.asyncio
    async def test_empty_input(self, service, signer):
        assert await service.build_signed_aggregate_complete_tx_batches([], signer) == []

    @pytest.mark.asyncio
    async def test_batch_size_above_ceiling(self, service, signer):
        with pytest.raises(ConfigurationError):
            await service.build_signed_aggregate_complete_tx_batches(
                metadata_operations(signer, 2), signer, batch_size=101,
            )


@pytest.mark.unit
class TestAnnounceAndLookup:

    @pytest.mark.asyncio
    async def test_announce_with_cosignatures(self, service, node, signer, cosigner):
        operations = metadata_operations(signer, 1) + metadata_operations(cosigner, 1, prefix="co")
        tx = await service.compose_aggregate_complete_tx(100, 1, operations)
        result = await service.sign_tx(signer, tx)

        message = await service.announce_tx_with_cosignatures(
            result.signed_tx, [service.cosign_tx_hash(cosigner, result.hash)],
        )
        assert message == "packet 9 was pushed to the network via /transactions"
        assert len(node.announced[-1]) == len(result.payload) + 208
        assert await service.get_confirmed_tx(result.hash) == result.hash
        assert await service.get_partial_tx(result.hash) is None

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, service):
        assert await service.get_confirmed_tx("00" * 32) is None

    @pytest.mark.asyncio
    async def test_metadata_lookups(self, service, node, signer, cosigner):
        batches = await service.build_signed_aggregate_complete_tx_batches(metadata_operations(signer, 5), signer)
        await service.announce_tx(batches[0].signed_tx)

        composite = service.calculate_metadata_hash(MetadataType.ACCOUNT, signer.address, signer.address, "key-3")
        entry = await service.get_metadata_by_hash(composite)
        assert entry["metadataEntry"]["value"] == b"value-3".hex().upper()

        everything = await service.search_metadata(MetadataType.ACCOUNT, target=signer, page_size=2)
        assert len(everything) == 5
        by_key = await service.search_metadata(MetadataType.ACCOUNT, source=signer.public_account, key="key-3")
        assert [e["metadataEntry"]["compositeHash"] for e in by_key] == [composite]
        assert await service.search_metadata(MetadataType.ACCOUNT, target=cosigner.address) == []


@pytest.mark.streaming
class TestWaiting:

    @pytest.mark.asyncio
    async def test_wait_txs_for(self, service, node, ws_connections, signer):
        batches = await service.build_signed_aggregate_complete_tx_batches(metadata_operations(signer, 2), signer)
        await service.announce_tx(batches[0].signed_tx)

        results = await service.wait_txs_for(signer, batches[0].signed_tx.hash)
        assert results == [TxResult(batches[0].signed_tx.hash)]
        assert ws_connections[0].closed

    @pytest.mark.asyncio
    async def test_wait_partial_group(self, service, node, ws_connections, signer):
        node.partial["AB" * 32] = {"meta": {"hash": "AB" * 32}}
        results = await service.wait_txs_for(signer.address, ["AB" * 32], TransactionGroup.PARTIAL)
        assert results == [TxResult("AB" * 32)]
