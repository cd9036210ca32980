"""
Binary Reader

Little-endian primitive decoding matching ``BinaryWriter``. Reads past the
end of the buffer raise ``IndexError``.
"""

import builtins
import struct

from .writer import padding_size


class BinaryReader:
    """Sequential little-endian reader over an immutable buffer."""

    def __init__(self, buf: builtins.bytes):
        self._buf = buf
        self._off = 0

    @property
    def eof(self) -> bool:
        """True if at end of buffer."""
        return self._off >= len(self._buf)

    @property
    def offset(self) -> int:
        return self._off

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._off

    def _take(self, n: int) -> builtins.bytes:
        if self._off + n > len(self._buf):
            raise IndexError(
                f"Buffer overflow: attempting to read {n} bytes at offset {self._off} "
                f"of {len(self._buf)}"
            )
        val = self._buf[self._off:self._off + n]
        self._off += n
        return val

    def u8(self) -> int:
        """Read unsigned 8-bit integer."""
        return self._take(1)[0]

    def u16le(self) -> int:
        """Read unsigned 16-bit integer in little-endian format."""
        return struct.unpack("<H", self._take(2))[0]

    def i16le(self) -> int:
        """Read signed 16-bit integer in little-endian format."""
        return struct.unpack("<h", self._take(2))[0]

    def u32le(self) -> int:
        """Read unsigned 32-bit integer in little-endian format."""
        return struct.unpack("<I", self._take(4))[0]

    def u64le(self) -> int:
        """Read unsigned 64-bit integer in little-endian format."""
        return struct.unpack("<Q", self._take(8))[0]

    def bytes(self, n: int) -> builtins.bytes:
        """Read exactly ``n`` raw bytes."""
        return self._take(n)

    def skip_padding(self, size: int, alignment: int = 8) -> None:
        """Skip the zero padding that follows a ``size``-byte entity."""
        self._take(padding_size(size, alignment))

    def rest(self) -> builtins.bytes:
        """Read everything left in the buffer."""
        return self._take(self.remaining)
