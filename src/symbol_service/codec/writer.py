"""
Binary Writer

Little-endian primitive encoding used by the transaction serializers.
"""

import struct
from typing import List


class BinaryWriter:
    """
    Append-only little-endian byte buffer.

    All integer writers mask their input to the target width, so callers
    pass plain Python ints.
    """

    def __init__(self):
        self._bb: List[int] = []

    def __len__(self) -> int:
        return len(self._bb)

    def u8(self, v: int) -> None:
        """Write unsigned 8-bit integer."""
        self._bb.append(v & 0xFF)

    def u16le(self, v: int) -> None:
        """Write unsigned 16-bit integer in little-endian format."""
        self._bb.extend(struct.pack('<H', v & 0xFFFF))

    def i16le(self, v: int) -> None:
        """
        Write signed 16-bit integer in little-endian format.

        Args:
            v: Integer value in [-32768, 32767]

        Raises:
            ValueError: If the value does not fit in 16 bits
        """
        if not -0x8000 <= v <= 0x7FFF:
            raise ValueError(f"Value out of range for i16: {v}")
        self._bb.extend(struct.pack('<h', v))

    def u32le(self, v: int) -> None:
        """Write unsigned 32-bit integer in little-endian format."""
        self._bb.extend(struct.pack('<I', v & 0xFFFFFFFF))

    def u64le(self, v: int) -> None:
        """Write unsigned 64-bit integer in little-endian format."""
        self._bb.extend(struct.pack('<Q', v & 0xFFFFFFFFFFFFFFFF))

    def bytes(self, v: bytes) -> None:
        """Write raw bytes without length prefix."""
        self._bb.extend(v)

    def fixed(self, v: bytes, size: int) -> None:
        """
        Write a fixed-width field.

        Raises:
            ValueError: If ``v`` is not exactly ``size`` bytes
        """
        if len(v) != size:
            raise ValueError(f"Expected {size} bytes, got {len(v)}")
        self._bb.extend(v)

    def pad(self, alignment: int = 8) -> None:
        """Zero-pad the buffer up to the next multiple of ``alignment``."""
        self._bb.extend(b"\x00" * padding_size(len(self._bb), alignment))

    def to_bytes(self) -> bytes:
        """Return accumulated bytes as immutable bytes object."""
        return bytes(self._bb)


def padding_size(size: int, alignment: int = 8) -> int:
    """Number of zero bytes needed to align ``size`` to ``alignment``."""
    return (alignment - size % alignment) % alignment
