"""
Undead transaction persistence tests.
"""

import json

import pytest

from symbol_service.runtime.errors import ConfigurationError, EncodingError, ErrorCode
from symbol_service.tx import AggregateTransaction
from symbol_service.undead import (
    RECORD_VERSION, AggregateUndeadTransaction, CosignatureRecord, UndeadTransactionRecord,
)


async def _undead(necromancy, signer, cosigners, operations):
    return await necromancy.create_tx(12, operations, signer, cosigners)


@pytest.mark.unit
class TestUndeadRecord:

    @pytest.mark.asyncio
    async def test_json_round_trip(self, necromancy, signer, cosigner, operations):
        undead_tx = await _undead(necromancy, signer, [cosigner], operations)
        restored = AggregateUndeadTransaction.from_json(undead_tx.to_json())
        assert restored == undead_tx
        assert restored.to_json() == undead_tx.to_json()
        assert AggregateUndeadTransaction.from_json(undead_tx.to_dict()) == undead_tx

    @pytest.mark.asyncio
    async def test_record_layout(self, necromancy, signer, cosigner, operations):
        undead_tx = await _undead(necromancy, signer, [cosigner], operations)
        data = json.loads(undead_tx.to_json())

        assert data["version"] == RECORD_VERSION
        assert data["signerPublicKey"] == signer.public_key
        assert len(data["lives"]) == 3
        life = data["lives"][0]
        assert set(life) == {"deadline", "hash", "signatureHex", "cosignatures"}
        assert life["deadline"] == undead_tx.signatures[0].deadline
        assert set(life["cosignatures"][0]) == {"parentHash", "signatureHex", "signerPublicKey", "version"}

    @pytest.mark.asyncio
    async def test_representative_payload(self, necromancy, signer, operations):
        undead_tx = await _undead(necromancy, signer, [], operations)
        record = undead_tx.to_record()
        aggregate = AggregateTransaction.from_payload(record.representative_aggregate_payload)
        assert aggregate.deadline.adjusted_value == undead_tx.signatures[0].deadline
        assert aggregate.inner_transactions == undead_tx.template.inner_transactions
        assert aggregate.max_fee == undead_tx.max_fee
        assert aggregate.signature is None

    @pytest.mark.asyncio
    async def test_version_mismatch(self, necromancy, signer, operations):
        undead_tx = await _undead(necromancy, signer, [], operations)
        data = undead_tx.to_dict()
        data["version"] = "0.9"
        with pytest.raises(ConfigurationError) as exc_info:
            AggregateUndeadTransaction.from_json(json.dumps(data))
        assert exc_info.value.code == ErrorCode.VERSION_MISMATCH

        record = undead_tx.to_record().model_copy(update={"version": "2.0"})
        with pytest.raises(ConfigurationError):
            AggregateUndeadTransaction.from_record(record)

    @pytest.mark.asyncio
    async def test_malformed_payload(self, necromancy, signer, operations):
        data = (await _undead(necromancy, signer, [], operations)).to_dict()
        data["representativeAggregatePayload"] = data["representativeAggregatePayload"][:-16]
        with pytest.raises(EncodingError):
            AggregateUndeadTransaction.from_json(data)

    @pytest.mark.parametrize("text", [
        "{not json",
        "[]",
        json.dumps({"version": RECORD_VERSION, "signerPublicKey": "AB"}),
        json.dumps({"version": RECORD_VERSION, "signerPublicKey": "AB",
                    "representativeAggregatePayload": "", "lives": [{"deadline": -1}]}),
    ])
    def test_malformed_records(self, text):
        with pytest.raises(EncodingError):
            AggregateUndeadTransaction.from_json(text)

    def test_cosignature_version_words(self):
        record = CosignatureRecord.model_validate({
            "parentHash": "ab" * 32,
            "signatureHex": "cd" * 64,
            "signerPublicKey": "ef" * 32,
            "version": [1, 2],
        })
        assert record.version == 1 | (2 << 32)
        cosignature = record.to_cosignature()
        assert cosignature.parent_hash == "AB" * 32
        assert cosignature.version == 1 | (2 << 32)

    def test_record_accepts_field_names(self):
        record = UndeadTransactionRecord(
            version=RECORD_VERSION, signer_public_key="AB", representative_aggregate_payload="", lives=[],
        )
        assert record.model_dump(by_alias=True)["signerPublicKey"] == "AB"
