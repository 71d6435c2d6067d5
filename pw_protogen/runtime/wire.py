# Copyright 2026 The Pigweed Authors
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may not
# use this file except in compliance with the License. You may obtain a copy of
# the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations under
# the License.
"""Primitives for the protobuf binary wire format.

These functions have no knowledge of messages or schemas. Encoders return
bytes; decoders consume bytes from a binary stream (anything with a read()
method, usually io.BytesIO) and raise DecodeError subclasses on bad input.
"""

import enum
import struct
from typing import BinaryIO

from pw_protogen.runtime.errors import (
    DecodeError,
    InvalidLengthDelimiterError,
    StreamError,
    TruncatedInputError,
    VarintTooLongError,
    WireTypeMismatchError,
)

VARINT_MAX_BYTES = 10

# protoc rejects field numbers above this; 19000-19999 are reserved but valid
# on the wire.
FIELD_NUMBER_MAX = 2**29 - 1

# Length-delimited values are limited to 2 GiB by every protobuf runtime.
LENGTH_DELIMITED_MAX = 2**31 - 1

_UINT64_MASK = (1 << 64) - 1
_INT64_MIN = -(2**63)

_FIXED32 = struct.Struct('<I')
_FIXED64 = struct.Struct('<Q')
_SFIXED32 = struct.Struct('<i')
_SFIXED64 = struct.Struct('<q')
_FLOAT = struct.Struct('<f')
_DOUBLE = struct.Struct('<d')


class WireType(enum.IntEnum):
    """The 3-bit framing code stored in the low bits of every tag."""

    VARINT = 0
    FIXED64 = 1
    LENGTH_DELIMITED = 2
    FIXED32 = 5


def write(stream: BinaryIO, data: bytes) -> None:
    """Writes data to stream, reporting unusable streams as StreamError."""
    try:
        stream.write(data)
    except (OSError, ValueError) as err:
        raise StreamError(f'Failed to write {len(data)} B: {err}') from err


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """Reads exactly size bytes or raises TruncatedInputError."""
    if size == 0:
        return b''

    try:
        data = stream.read(size)
    except (OSError, ValueError) as err:
        raise StreamError(f'Failed to read {size} B: {err}') from err

    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise TruncatedInputError(
            f'Expected {size} B of input, but only {got} B remain'
        )
    return data


def encode_varint(value: int) -> bytes:
    """Encodes an integer as an unsigned LEB128 varint.

    Negative values are encoded as their 64-bit two's complement, which always
    takes 10 bytes.
    """
    if value < _INT64_MIN or value > _UINT64_MASK:
        raise ValueError(f'{value} does not fit in a 64-bit varint')

    value &= _UINT64_MASK
    data = bytearray()

    while True:
        # Grab 7 bits; the eighth bit is set to 1 to indicate more data coming.
        byte = value & 0x7F
        value >>= 7

        if not value:
            data.append(byte)
            return bytes(data)

        data.append(byte | 0x80)


def _continue_varint(stream: BinaryIO, first: int) -> int:
    result = first & 0x7F
    byte = first

    for index in range(1, VARINT_MAX_BYTES):
        if not byte & 0x80:
            return result & _UINT64_MASK

        byte = read_exact(stream, 1)[0]
        result |= (byte & 0x7F) << (7 * index)

    if byte & 0x80:
        raise VarintTooLongError(
            f'Varint did not terminate within {VARINT_MAX_BYTES} bytes'
        )

    return result & _UINT64_MASK


def decode_varint(stream: BinaryIO) -> int:
    """Reads an unsigned varint; the result is truncated to 64 bits."""
    return _continue_varint(stream, read_exact(stream, 1)[0])


def encode_zigzag(value: int) -> int:
    """Maps signed integers to unsigned so small magnitudes stay small."""
    return ((value << 1) ^ (value >> 63)) & _UINT64_MASK


def decode_zigzag(value: int) -> int:
    return (value >> 1) ^ -(value & 1)


def encode_fixed32(value: int) -> bytes:
    return _FIXED32.pack(value)


def decode_fixed32(stream: BinaryIO) -> int:
    return _FIXED32.unpack(read_exact(stream, 4))[0]


def encode_fixed64(value: int) -> bytes:
    return _FIXED64.pack(value)


def decode_fixed64(stream: BinaryIO) -> int:
    return _FIXED64.unpack(read_exact(stream, 8))[0]


def encode_sfixed32(value: int) -> bytes:
    return _SFIXED32.pack(value)


def decode_sfixed32(stream: BinaryIO) -> int:
    return _SFIXED32.unpack(read_exact(stream, 4))[0]


def encode_sfixed64(value: int) -> bytes:
    return _SFIXED64.pack(value)


def decode_sfixed64(stream: BinaryIO) -> int:
    return _SFIXED64.unpack(read_exact(stream, 8))[0]


def encode_float(value: float) -> bytes:
    return _FLOAT.pack(value)


def decode_float(stream: BinaryIO) -> float:
    return _FLOAT.unpack(read_exact(stream, 4))[0]


def encode_double(value: float) -> bytes:
    return _DOUBLE.pack(value)


def decode_double(stream: BinaryIO) -> float:
    return _DOUBLE.unpack(read_exact(stream, 8))[0]


def encode_length_delimited(data: bytes) -> bytes:
    """Prefixes data with its length as a varint."""
    if len(data) > LENGTH_DELIMITED_MAX:
        raise ValueError(
            f'{len(data)} B exceeds the {LENGTH_DELIMITED_MAX} B limit for '
            'length-delimited values'
        )
    return encode_varint(len(data)) + bytes(data)


def decode_length(stream: BinaryIO) -> int:
    """Reads the varint length prefix of a length-delimited value."""
    length = decode_varint(stream)
    if length > LENGTH_DELIMITED_MAX:
        raise InvalidLengthDelimiterError(
            f'Length prefix {length} exceeds {LENGTH_DELIMITED_MAX}'
        )
    return length


def decode_length_delimited(stream: BinaryIO) -> bytes:
    """Reads a length prefix and exactly that many bytes."""
    return read_exact(stream, decode_length(stream))


def make_tag(field_number: int, wire_type: int) -> int:
    if not 1 <= field_number <= FIELD_NUMBER_MAX:
        raise ValueError(f'Invalid field number {field_number}')
    return (field_number << 3) | wire_type


def split_tag(tag: int) -> tuple[int, int]:
    """Splits a tag into (field_number, wire_type)."""
    return tag >> 3, tag & 0x7


def encode_tag(field_number: int, wire_type: int) -> bytes:
    return encode_varint(make_tag(field_number, wire_type))


def decode_tag(stream: BinaryIO) -> tuple[int, int] | None:
    """Reads a tag, returning None if the stream is cleanly exhausted."""
    try:
        first = stream.read(1)
    except (OSError, ValueError) as err:
        raise StreamError(f'Failed to read tag: {err}') from err

    if not first:
        return None

    field_number, wire_type = split_tag(_continue_varint(stream, first[0]))
    if not 1 <= field_number <= FIELD_NUMBER_MAX:
        raise DecodeError(f'Invalid field number {field_number} in tag')

    return field_number, wire_type


def skip_field(stream: BinaryIO, field_number: int, wire_type: int) -> None:
    """Consumes the value of a field that is not part of the schema."""
    if wire_type == WireType.VARINT:
        decode_varint(stream)
    elif wire_type == WireType.FIXED64:
        read_exact(stream, 8)
    elif wire_type == WireType.LENGTH_DELIMITED:
        read_exact(stream, decode_length(stream))
    elif wire_type == WireType.FIXED32:
        read_exact(stream, 4)
    else:
        raise WireTypeMismatchError(
            f'Cannot skip field {field_number} with wire type {wire_type}',
            field_number,
            wire_type,
        )
