#!/usr/bin/env python3
import io
from typing import BinaryIO, Optional


EOF = -1
MAX_BITS = 32


class BitWriter:
    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.acc = 0
        self.bits = 0
        self.bits_written = 0
        self.closed = False
        self._value: Optional[bytes] = None

    @classmethod
    def to_memory(cls) -> "BitWriter":
        return cls(io.BytesIO())

    def write(self, value: int, num_bits: int) -> None:
        if num_bits < 0 or num_bits > MAX_BITS:
            raise ValueError(f"Cannot write {num_bits} bits at once.")
        if num_bits == 0:
            return
        if value < 0 or value >> num_bits:
            raise ValueError(f"Value {value} does not fit in {num_bits} bits.")
        self.acc = (self.acc << num_bits) | value
        self.bits += num_bits
        self.bits_written += num_bits
        if self.bits >= 8:
            whole = self.bits // 8
            self.bits -= whole * 8
            self.stream.write((self.acc >> self.bits).to_bytes(whole, "big"))
            self.acc &= (1 << self.bits) - 1

    def flush(self) -> None:
        if self.bits > 0:
            self.stream.write(bytes([(self.acc << (8 - self.bits)) & 0xFF]))
            self.acc = 0
            self.bits = 0
        self.stream.flush()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self.flush()
            if isinstance(self.stream, io.BytesIO):
                self._value = self.stream.getvalue()
        finally:
            self.closed = True
            self.stream.close()

    def getvalue(self) -> bytes:
        if self._value is not None:
            return self._value
        if not isinstance(self.stream, io.BytesIO):
            raise ValueError("getvalue() needs a writer built with BitWriter.to_memory().")
        return self.stream.getvalue()


class BitReader:
    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.start = stream.tell() if stream.seekable() else 0
        self.acc = 0
        self.bits = 0
        self.bits_read = 0

    @classmethod
    def from_bytes(cls, data: bytes) -> "BitReader":
        return cls(io.BytesIO(data))

    def read(self, num_bits: int) -> int:
        if num_bits < 1 or num_bits > MAX_BITS:
            raise ValueError(f"Cannot read {num_bits} bits at once.")
        while self.bits < num_bits:
            chunk = self.stream.read(1)
            if not chunk:
                return EOF
            self.acc = (self.acc << 8) | chunk[0]
            self.bits += 8
        self.bits -= num_bits
        value = self.acc >> self.bits
        self.acc &= (1 << self.bits) - 1
        self.bits_read += num_bits
        return value

    def reset(self) -> None:
        self.stream.seek(self.start)
        self.acc = 0
        self.bits = 0
