# filename: bit_stream.py

import io
from typing import BinaryIO, Optional, Protocol, Union

# Returned by read_bits when fewer than `width` bits are left
NO_MORE_BITS = -1

_CHUNK_SIZE = 64 * 1024


class BitReader(Protocol):
    def read_bits(self, width: int) -> int:
        ...


class RewindableBitReader(BitReader, Protocol):
    """A reader that can be restarted; compression reads its source twice."""

    def reset(self) -> None:
        ...


class BitWriter(Protocol):
    def write_bits(self, width: int, value: int) -> None:
        ...

    def close(self) -> None:
        ...


class BitInputStream:
    """Reads MSB-first bit fields from bytes or a binary file object."""

    def __init__(self, source: Union[bytes, bytearray, BinaryIO]):
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))
        self.source = source
        self.bits_read = 0
        self._chunk = b""
        self._pos = 0
        self._buffer = 0
        self._bit_count = 0

    def _fill(self) -> bool:
        if self._pos >= len(self._chunk):
            self._chunk = self.source.read(_CHUNK_SIZE)
            self._pos = 0
            if not self._chunk:
                return False
        self._buffer = (self._buffer << 8) | self._chunk[self._pos]
        self._pos += 1
        self._bit_count += 8
        return True

    def read_bits(self, width: int) -> int:
        if width < 0:
            raise ValueError(f"negative bit width: {width}")
        while self._bit_count < width:
            if not self._fill():
                return NO_MORE_BITS
        self._bit_count -= width
        value = (self._buffer >> self._bit_count) & ((1 << width) - 1)
        self._buffer &= (1 << self._bit_count) - 1
        self.bits_read += width
        return value

    def reset(self) -> None:
        if not self.source.seekable():
            raise io.UnsupportedOperation("source cannot be rewound")
        self.source.seek(0)
        self._chunk = b""
        self._pos = 0
        self._buffer = 0
        self._bit_count = 0
        self.bits_read = 0

    def close(self) -> None:
        self.source.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class BitOutputStream:
    """Packs MSB-first bit fields into a binary sink (in memory by default)."""

    def __init__(self, sink: Optional[BinaryIO] = None):
        self.sink = sink if sink is not None else io.BytesIO()
        self.bits_written = 0
        self._buffer = 0
        self._bit_count = 0
        self._pending = bytearray()
        self._closed = False

    def write_bits(self, width: int, value: int) -> None:
        if width < 0:
            raise ValueError(f"negative bit width: {width}")
        if value < 0 or value >> width:
            raise ValueError(f"value {value} does not fit in {width} bits")
        if self._closed:
            raise ValueError("write to closed bit stream")
        self._buffer = (self._buffer << width) | value
        self._bit_count += width
        self.bits_written += width
        while self._bit_count >= 8:
            self._bit_count -= 8
            self._pending.append((self._buffer >> self._bit_count) & 0xFF)
        self._buffer &= (1 << self._bit_count) - 1
        if len(self._pending) >= _CHUNK_SIZE:
            self.flush()

    def flush(self) -> None:
        if self._pending:
            self.sink.write(bytes(self._pending))
            self._pending.clear()

    def getvalue(self) -> bytes:
        # Only meaningful for the in-memory sink, after close()
        return self.sink.getvalue()

    def close(self) -> None:
        """Write out the last partial byte, zero padded, and flush.

        An in-memory sink stays open so getvalue() still works; a file
        sink is closed.
        """
        if self._closed:
            return
        if self._bit_count:
            self._pending.append((self._buffer << (8 - self._bit_count)) & 0xFF)
            self._buffer = 0
            self._bit_count = 0
        self.flush()
        self._closed = True
        if not isinstance(self.sink, io.BytesIO):
            self.sink.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
