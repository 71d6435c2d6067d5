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
"""Per-type encoding rules for protobuf field values."""

import enum
import operator
import struct
from typing import Any, BinaryIO, Callable, NamedTuple

from pw_protogen.runtime import wire
from pw_protogen.runtime.errors import DecodeError
from pw_protogen.runtime.wire import WireType

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
UINT32_MAX = 2**32 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

_UINT32_MASK = UINT32_MAX
_FLOAT = struct.Struct('<f')
_DOUBLE = struct.Struct('<d')


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _integer(low: int, high: int) -> Callable[[Any], int]:
    def validate(value: Any) -> int:
        value = operator.index(value)
        if not low <= value <= high:
            raise ValueError(f'{value} is out of range [{low}, {high}]')
        return int(value)

    return validate


def _validate_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f'Expected bool, got {type(value).__name__}')
    return value


def _validate_double(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f'Expected float, got {type(value).__name__}')
    return float(value)


def _validate_float(value: Any) -> float:
    # Round to single precision so the stored value survives a round trip.
    value = _validate_double(value)
    try:
        return _FLOAT.unpack(_FLOAT.pack(value))[0]
    except OverflowError as err:
        raise ValueError(f'{value} does not fit in a 32-bit float') from err


def _validate_string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f'Expected str, got {type(value).__name__}')
    return value


def _validate_bytes(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f'Expected bytes, got {type(value).__name__}')
    return bytes(value)


def _decode_string(stream: BinaryIO) -> str:
    data = wire.decode_length_delimited(stream)
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as err:
        raise DecodeError(f'String field is not valid UTF-8: {err}') from err


class _KindInfo(NamedTuple):
    wire_type: WireType
    default: Any
    validate: Callable[[Any], Any]
    encode: Callable[[Any], bytes]
    decode: Callable[[BinaryIO], Any]


class FieldKind(enum.Enum):
    """The value type of a field, as declared in the .proto file.

    Each kind determines the wire type, the zero value and the encoding of a
    single element. MESSAGE values are framed by the message codec; ENUM
    values are encoded like int32 and wrapped in the enum's class on decode.
    """

    DOUBLE = 'double'
    FLOAT = 'float'
    INT64 = 'int64'
    UINT64 = 'uint64'
    INT32 = 'int32'
    FIXED64 = 'fixed64'
    FIXED32 = 'fixed32'
    BOOL = 'bool'
    STRING = 'string'
    BYTES = 'bytes'
    UINT32 = 'uint32'
    SFIXED32 = 'sfixed32'
    SFIXED64 = 'sfixed64'
    SINT32 = 'sint32'
    SINT64 = 'sint64'
    ENUM = 'enum'
    MESSAGE = 'message'

    @property
    def wire_type(self) -> WireType:
        return _KINDS[self].wire_type

    @property
    def default(self) -> Any:
        """The zero value of the kind; None for messages."""
        return _KINDS[self].default

    def is_packable(self) -> bool:
        """True if repeated fields of this kind use packed encoding."""
        return self.wire_type is not WireType.LENGTH_DELIMITED

    def is_floating_point(self) -> bool:
        return self in (FieldKind.FLOAT, FieldKind.DOUBLE)

    def validate(self, value: Any) -> Any:
        """Checks and normalizes a value assigned to a field of this kind.

        Raises:
          TypeError: The value has the wrong Python type.
          ValueError: The value is out of range for the kind.
        """
        return _KINDS[self].validate(value)

    def encode_value(self, value: Any) -> bytes:
        """Encodes one value without a tag."""
        return _KINDS[self].encode(value)

    def decode_value(self, stream: BinaryIO) -> Any:
        """Decodes one value whose tag has already been consumed."""
        return _KINDS[self].decode(stream)

    def same_value(self, value: Any, other: Any) -> bool:
        """True if the two values are indistinguishable on the wire.

        Floating point values are compared by bit pattern, so NaN equals itself
        and -0.0 differs from 0.0.
        """
        if self is FieldKind.FLOAT:
            return _FLOAT.pack(value) == _FLOAT.pack(other)
        if self is FieldKind.DOUBLE:
            return _DOUBLE.pack(value) == _DOUBLE.pack(other)
        return value == other

    def is_default(self, value: Any, default: Any) -> bool:
        """True if value is not written because it equals the default."""
        return self.same_value(value, default)


def _not_encodable(_: Any) -> bytes:
    raise TypeError('Message values are encoded by their message codec')


def _not_decodable(_: BinaryIO) -> Any:
    raise TypeError('Message values are decoded by their message codec')


_validate_int32 = _integer(INT32_MIN, INT32_MAX)

# yapf: disable
_KINDS: dict[FieldKind, _KindInfo] = {
    FieldKind.DOUBLE: _KindInfo(
        WireType.FIXED64, 0.0, _validate_double,
        wire.encode_double, wire.decode_double),
    FieldKind.FLOAT: _KindInfo(
        WireType.FIXED32, 0.0, _validate_float,
        wire.encode_float, wire.decode_float),
    FieldKind.INT64: _KindInfo(
        WireType.VARINT, 0, _integer(INT64_MIN, INT64_MAX),
        wire.encode_varint,
        lambda stream: _to_signed(wire.decode_varint(stream), 64)),
    FieldKind.UINT64: _KindInfo(
        WireType.VARINT, 0, _integer(0, UINT64_MAX),
        wire.encode_varint, wire.decode_varint),
    FieldKind.INT32: _KindInfo(
        WireType.VARINT, 0, _validate_int32,
        wire.encode_varint,
        lambda stream: _to_signed(wire.decode_varint(stream), 32)),
    FieldKind.FIXED64: _KindInfo(
        WireType.FIXED64, 0, _integer(0, UINT64_MAX),
        wire.encode_fixed64, wire.decode_fixed64),
    FieldKind.FIXED32: _KindInfo(
        WireType.FIXED32, 0, _integer(0, UINT32_MAX),
        wire.encode_fixed32, wire.decode_fixed32),
    FieldKind.BOOL: _KindInfo(
        WireType.VARINT, False, _validate_bool,
        lambda value: wire.encode_varint(int(value)),
        lambda stream: wire.decode_varint(stream) != 0),
    FieldKind.STRING: _KindInfo(
        WireType.LENGTH_DELIMITED, '', _validate_string,
        lambda value: wire.encode_length_delimited(value.encode('utf-8')),
        _decode_string),
    FieldKind.BYTES: _KindInfo(
        WireType.LENGTH_DELIMITED, b'', _validate_bytes,
        wire.encode_length_delimited, wire.decode_length_delimited),
    FieldKind.UINT32: _KindInfo(
        WireType.VARINT, 0, _integer(0, UINT32_MAX),
        wire.encode_varint,
        lambda stream: wire.decode_varint(stream) & _UINT32_MASK),
    FieldKind.SFIXED32: _KindInfo(
        WireType.FIXED32, 0, _validate_int32,
        wire.encode_sfixed32, wire.decode_sfixed32),
    FieldKind.SFIXED64: _KindInfo(
        WireType.FIXED64, 0, _integer(INT64_MIN, INT64_MAX),
        wire.encode_sfixed64, wire.decode_sfixed64),
    FieldKind.SINT32: _KindInfo(
        WireType.VARINT, 0, _validate_int32,
        lambda value: wire.encode_varint(wire.encode_zigzag(value)),
        lambda stream: wire.decode_zigzag(
            wire.decode_varint(stream) & _UINT32_MASK)),
    FieldKind.SINT64: _KindInfo(
        WireType.VARINT, 0, _integer(INT64_MIN, INT64_MAX),
        lambda value: wire.encode_varint(wire.encode_zigzag(value)),
        lambda stream: wire.decode_zigzag(wire.decode_varint(stream))),
    FieldKind.ENUM: _KindInfo(
        WireType.VARINT, 0, _validate_int32,
        lambda value: wire.encode_varint(int(value)),
        lambda stream: _to_signed(wire.decode_varint(stream), 32)),
    FieldKind.MESSAGE: _KindInfo(
        WireType.LENGTH_DELIMITED, None, lambda value: value,
        _not_encodable, _not_decodable),
}
# yapf: enable
