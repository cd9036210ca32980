"""
Binary codec tests: little-endian primitives, padding and hashing rules.
"""

import pytest

from symbol_service.codec import BinaryReader, BinaryWriter, merkle_root, sha3_256_bytes, sha3_256_hex
from symbol_service.codec.hashes import signing_data, transaction_hash
from symbol_service.codec.writer import padding_size


@pytest.mark.unit
class TestBinaryWriter:

    def test_little_endian_integers(self):
        writer = BinaryWriter()
        writer.u8(0x01)
        writer.u16le(0x0203)
        writer.u32le(0x04050607)
        writer.u64le(0x08090A0B0C0D0E0F)
        assert writer.to_bytes() == bytes.fromhex("01" "0302" "07060504" "0F0E0D0C0B0A0908")
        assert len(writer) == 15

    def test_i16_range(self):
        writer = BinaryWriter()
        writer.i16le(-1)
        writer.i16le(0x7FFF)
        assert writer.to_bytes() == bytes.fromhex("FFFF" "FF7F")
        with pytest.raises(ValueError):
            writer.i16le(0x8000)
        with pytest.raises(ValueError):
            writer.i16le(-0x8001)

    def test_fixed_requires_exact_size(self):
        writer = BinaryWriter()
        writer.fixed(b"\x00" * 32, 32)
        with pytest.raises(ValueError):
            writer.fixed(b"\x00" * 31, 32)

    def test_pad_to_alignment(self):
        writer = BinaryWriter()
        writer.bytes(b"\x01\x02\x03")
        writer.pad(8)
        assert writer.to_bytes() == b"\x01\x02\x03" + b"\x00" * 5
        writer.pad(8)
        assert len(writer) == 8

    @pytest.mark.parametrize("size,expected", [(0, 0), (1, 7), (7, 1), (8, 0), (57, 7), (64, 0)])
    def test_padding_size(self, size, expected):
        assert padding_size(size) == expected


@pytest.mark.unit
class TestBinaryReader:

    def test_reads_what_writer_wrote(self):
        writer = BinaryWriter()
        writer.u8(7)
        writer.u16le(513)
        writer.i16le(-300)
        writer.u32le(70000)
        writer.u64le(2 ** 63 + 5)
        writer.bytes(b"tail")

        reader = BinaryReader(writer.to_bytes())
        assert reader.u8() == 7
        assert reader.u16le() == 513
        assert reader.i16le() == -300
        assert reader.u32le() == 70000
        assert reader.u64le() == 2 ** 63 + 5
        assert reader.remaining == 4
        assert reader.rest() == b"tail"
        assert reader.eof

    def test_read_past_end(self):
        reader = BinaryReader(b"\x01\x02")
        with pytest.raises(IndexError):
            reader.u32le()

    def test_skip_padding(self):
        reader = BinaryReader(b"\xAA\xBB\xCC" + b"\x00" * 5 + b"\x01")
        reader.bytes(3)
        reader.skip_padding(3)
        assert reader.offset == 8
        assert reader.u8() == 1


@pytest.mark.unit
class TestHashes:

    def test_sha3_256_empty(self):
        assert sha3_256_bytes(b"").hex() == "a7ffc6f8bf1ed76651c14756a061d662f580ff4de43b49fa82d80a4b80f8434a"
        assert sha3_256_hex(b"") == sha3_256_bytes(b"").hex().upper()

    def test_merkle_root_empty_is_zero(self):
        assert merkle_root([]) == b"\x00" * 32

    def test_merkle_root_single_leaf(self):
        leaf = sha3_256_bytes(b"leaf")
        assert merkle_root([leaf]) == leaf

    def test_merkle_root_odd_level_duplicates_last(self):
        a, b, c = (sha3_256_bytes(x) for x in (b"a", b"b", b"c"))
        ab = sha3_256_bytes(a + b)
        cc = sha3_256_bytes(c + c)
        assert merkle_root([a, b, c]) == sha3_256_bytes(ab + cc)

    def test_signing_data_covers_aggregate_header(self):
        payload = bytes(range(200))
        gen = b"\x11" * 32
        assert signing_data(payload, gen) == gen + payload[108:160]
        assert signing_data(payload, gen, aggregate=False) == gen + payload[108:]

    def test_transaction_hash_ignores_trailing_bytes(self):
        payload = bytes(range(200))
        gen = b"\x22" * 32
        expected = sha3_256_bytes(payload[8:40] + payload[72:104] + gen + payload[108:160])
        assert transaction_hash(payload, gen) == expected
        assert transaction_hash(payload + b"\xFF" * 104, gen) == expected
