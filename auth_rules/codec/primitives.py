"""
Primitive field codec.

Fixed-width little-endian integers, fixed-size byte arrays, NUL-padded
identifier blocks and u32-length-prefixed blobs. Everything else in the
codec is written in terms of these.
"""

import struct
from typing import Union

from auth_rules.shared.errors import (
    IdentifierTooLong, InvalidRule, MalformedPayload, TruncatedInput
)


FIELD_WIDTH = 32
PUBKEY_LENGTH = 32
HASH_LENGTH = 32
HEADER_LENGTH = 8

U32_MAX = 0xFFFFFFFF
U64_MAX = 0xFFFFFFFFFFFFFFFF

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

BytesLike = Union[bytes, bytearray, memoryview]


def encode_identifier(identifier: str, width: int = FIELD_WIDTH) -> bytes:
    """Encode an identifier as UTF-8 right-padded with NUL bytes to width."""
    raw = identifier.encode("utf-8")
    if len(raw) > width:
        raise IdentifierTooLong(identifier, width)
    if b"\x00" in raw:
        raise InvalidRule(
            "Identifier must not contain NUL bytes",
            {"identifier": identifier}
        )
    return raw.ljust(width, b"\x00")


def decode_identifier(block: bytes) -> str:
    """Decode a NUL-padded identifier block back to text."""
    end = block.find(b"\x00")
    if end == -1:
        end = len(block)
    elif block[end:].strip(b"\x00"):
        raise MalformedPayload(
            "Identifier padding contains non-NUL bytes",
            {"block": block.hex()}
        )
    try:
        return block[:end].decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPayload(
            "Identifier is not valid UTF-8",
            {"block": block.hex(), "error": str(e)}
        ) from e


class ByteWriter:
    """Append-only buffer for building encodings."""

    def __init__(self):
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def write_u32(self, value: int) -> "ByteWriter":
        if not 0 <= value <= U32_MAX:
            raise InvalidRule("Value out of u32 range", {"value": value})
        self._buffer += _U32.pack(value)
        return self

    def write_u64(self, value: int) -> "ByteWriter":
        if not 0 <= value <= U64_MAX:
            raise InvalidRule("Value out of u64 range", {"value": value})
        self._buffer += _U64.pack(value)
        return self

    def write_fixed_bytes(self, value: BytesLike, length: int) -> "ByteWriter":
        if len(value) != length:
            raise InvalidRule(
                f"Expected exactly {length} bytes",
                {"length": len(value), "expected": length}
            )
        self._buffer += value
        return self

    def write_nul_padded_string(self, value: str, width: int = FIELD_WIDTH) -> "ByteWriter":
        self._buffer += encode_identifier(value, width)
        return self

    def write_var_bytes(self, value: BytesLike) -> "ByteWriter":
        self.write_u32(len(value))
        self._buffer += value
        return self

    def write_raw(self, value: BytesLike) -> "ByteWriter":
        self._buffer += value
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class ByteReader:
    """Forward-only cursor over an immutable byte buffer.

    Reads never go past ``end``; a reader built for a payload slice cannot
    see the bytes of its siblings.
    """

    def __init__(self, data: BytesLike, offset: int = 0, end: int = None):
        self._data = bytes(data)
        self._end = len(self._data) if end is None else end
        if not 0 <= offset <= self._end <= len(self._data):
            raise TruncatedInput(
                "Reader bounds outside input",
                {"offset": offset, "end": self._end, "size": len(self._data)}
            )
        self.offset = offset

    @property
    def remaining(self) -> int:
        return self._end - self.offset

    @property
    def end(self) -> int:
        return self._end

    def read(self, length: int) -> bytes:
        if length > self.remaining:
            raise TruncatedInput(
                f"Needed {length} bytes, {self.remaining} available",
                {"offset": self.offset, "needed": length, "available": self.remaining}
            )
        start = self.offset
        self.offset += length
        return self._data[start:self.offset]

    def read_u32(self) -> int:
        return _U32.unpack(self.read(4))[0]

    def read_u64(self) -> int:
        return _U64.unpack(self.read(8))[0]

    def read_fixed_bytes(self, length: int) -> bytes:
        return self.read(length)

    def read_nul_padded_string(self, width: int = FIELD_WIDTH) -> str:
        return decode_identifier(self.read(width))

    def read_var_bytes(self) -> bytes:
        length = self.read_u32()
        return self.read(length)

    def sub_reader(self, length: int) -> "ByteReader":
        """Split off the next ``length`` bytes as their own bounded reader."""
        if length > self.remaining:
            raise TruncatedInput(
                f"Declared length {length} exceeds {self.remaining} available bytes",
                {"offset": self.offset, "declared": length, "available": self.remaining}
            )
        reader = ByteReader(self._data, self.offset, self.offset + length)
        self.offset += length
        return reader
