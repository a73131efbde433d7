from __future__ import annotations
import struct

from binlayout.exceptions import BoundsError


class ByteView:
    """
    Random-access reads over an in-memory buffer. Holds no position of its own.
    The buffer must not change while a view over it is in use.
    """

    __slots__ = ("buf", "_raw")

    def __init__(self, data: bytes | bytearray | memoryview | "ByteView"):
        if isinstance(data, ByteView):
            data = data.buf
        self.buf = memoryview(data).cast("B")
        self._raw: bytes | None = None

    def __len__(self) -> int: return len(self.buf)

    def remaining(self, offset: int) -> int: return max(len(self.buf) - offset, 0)

    def _check(self, offset: int, n: int) -> None:
        if offset < 0 or offset + n > len(self.buf):
            raise BoundsError(offset, n, len(self.buf))

    def take(self, offset: int, n: int) -> bytes:
        self._check(offset, n)
        return self.buf[offset:offset + n].tobytes()

    def unpack(self, fmt: str, offset: int, n: int):
        self._check(offset, n)
        return struct.unpack_from(fmt, self.buf, offset)[0]

    def u8(self, offset: int) -> int:    return self.unpack("<B", offset, 1)
    def u32le(self, offset: int) -> int: return self.unpack("<I", offset, 4)

    def find(self, byte: int, offset: int) -> int:
        """Absolute index of the first `byte` at or after `offset`, or -1."""
        self._check(offset, 0)
        if self._raw is None:
            self._raw = self.buf.tobytes()
        return self._raw.find(bytes([byte]), offset)

