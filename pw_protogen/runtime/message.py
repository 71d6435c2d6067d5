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
"""The behavior shared by all generated message classes.

Generated classes do not inherit from a common base. Each one implements the
ProtoMessage protocol by delegating to a MessageCodec built from its table of
FieldSpecs. The codec stores each field's value in a slot named after the
field with a leading underscore.

Ownership: a message exclusively owns each of its nested message values. A
message assigned to a field, or added to a repeated message field, is copied,
so changing the original afterwards does not affect the field. Assigning,
clearing or decoding over a singular message field drops the old value before
the new one is stored, and clear() replaces repeated lists rather than
emptying them in place.

Messages may nest at most MAX_NESTING_DEPTH levels below the outermost one.
Decoding deeper input raises RecursionLimitError; encoding, copying or
comparing a deeper message raises ValueError.
"""

from dataclasses import dataclass
import io
import logging
from typing import Any, BinaryIO, Iterable, Protocol, SupportsIndex, TypeVar

from pw_protogen.runtime import wire
from pw_protogen.runtime.enums import ProtoEnum
from pw_protogen.runtime.errors import (
    InvalidLengthDelimiterError,
    RecursionLimitError,
    TruncatedInputError,
    WireTypeMismatchError,
)
from pw_protogen.runtime.kinds import FieldKind
from pw_protogen.runtime.wire import WireType

_LOG = logging.getLogger(__name__)

T = TypeVar('T')  # pylint: disable=invalid-name
M = TypeVar('M', bound='ProtoMessage')  # pylint: disable=invalid-name

# The nesting limit google.protobuf's parsers apply by default.
MAX_NESTING_DEPTH = 100


class ProtoMessage(Protocol):
    """The contract every generated message class satisfies."""

    @classmethod
    def create(cls: type[M]) -> M:
        """Returns a new instance with every field absent."""

    def clear(self) -> None:
        """Makes every field absent; equivalent to a new instance."""

    def encode(self, stream: BinaryIO) -> None:
        """Writes the present fields in the protobuf binary format."""

    def decode(self, stream: BinaryIO) -> None:
        """Merges fields read from the stream until it is exhausted."""


def _check_type(value: Any, message_type: type) -> None:
    if not isinstance(value, message_type):
        raise TypeError(
            f'Expected {message_type.__name__}, got {type(value).__name__}'
        )


def _check_depth(depth: int, message_type: type, action: str) -> None:
    if depth >= MAX_NESTING_DEPTH:
        raise ValueError(
            f'Cannot {action} {message_type.__name__}: messages are nested '
            f'more than {MAX_NESTING_DEPTH} levels deep'
        )


def _adopt(value: Any, message_type: type[T]) -> T:
    """Validates a message stored into a field and returns the copy to keep."""
    _check_type(value, message_type)
    # pylint: disable-next=protected-access
    return value._codec.copy(value)


class MessageList(list):
    """The list held by a repeated message field.

    Messages added to the list are copied, as for singular message fields, so
    that no two messages share a nested message.
    """

    __slots__ = ('_message_type',)

    def __init__(self, message_type: type, values: Iterable[Any] = ()):
        super().__init__()
        self._message_type = message_type
        self.extend(values)

    @property
    def message_type(self) -> type:
        return self._message_type

    def append(self, value: Any) -> None:
        super().append(_adopt(value, self._message_type))

    def insert(self, index: SupportsIndex, value: Any) -> None:
        super().insert(index, _adopt(value, self._message_type))

    def extend(self, values: Iterable[Any]) -> None:
        super().extend([_adopt(value, self._message_type) for value in values])

    def __iadd__(  # type: ignore[override, misc]
        self, values: Iterable[Any]
    ) -> 'MessageList':
        self.extend(values)
        return self

    def __imul__(  # type: ignore[override, misc]
        self, count: SupportsIndex
    ) -> 'MessageList':
        values = list(self)
        if int(count) <= 0:
            self.clear()
        for _ in range(int(count) - 1):
            self.extend(values)
        return self

    def __setitem__(self, index, value) -> None:  # type: ignore[override]
        if isinstance(index, slice):
            value = [_adopt(element, self._message_type) for element in value]
        else:
            value = _adopt(value, self._message_type)
        super().__setitem__(index, value)

    def copy(self) -> 'MessageList':  # type: ignore[override]
        return MessageList(self._message_type, self)


@dataclass(frozen=True)
class FieldSpec:
    """One row of a generated message's field table.

    Attributes:
      number: The field number from the .proto file.
      name: The Python attribute name of the field.
      kind: The field's value type.
      repeated: True for repeated fields.
      message_type: The generated class of a MESSAGE field.
      enum_type: The generated class of an ENUM field.
      default: A proto2 default value; None uses the kind's zero value, or the
          enum's default constant.
      packed: Whether a repeated scalar is written packed. None selects packed
          encoding for every packable kind.
    """

    number: int
    name: str
    kind: FieldKind
    repeated: bool = False
    message_type: type | None = None
    enum_type: type[ProtoEnum] | None = None
    default: Any = None
    packed: bool | None = None

    @property
    def slot(self) -> str:
        return '_' + self.name

    def is_packed(self) -> bool:
        if not self.repeated or not self.kind.is_packable():
            return False
        return self.packed is not False

    def default_value(self) -> Any:
        """A fresh default value for a slot of this field."""
        if self.repeated:
            if self.kind is FieldKind.MESSAGE:
                assert self.message_type is not None
                return MessageList(self.message_type)
            return []
        if self.kind is FieldKind.ENUM:
            assert self.enum_type is not None
            if self.default is None:
                return self.enum_type()
            return self.enum_type(self.default)
        if self.default is not None:
            return self.default
        return self.kind.default


def check_message(value: T | None, message_type: type[T]) -> T | None:
    """Validates a value assigned to a message field.

    Returns:
      None, or a copy of the message for the field to own.
    """
    if value is None:
        return None
    if not isinstance(value, message_type):
        raise TypeError(
            f'Expected {message_type.__name__} or None, '
            f'got {type(value).__name__}'
        )
    return _adopt(value, message_type)


def check_messages(
    values: Iterable[Any], message_type: type[T]
) -> MessageList:
    """Validates the elements assigned to a repeated message field.

    Returns:
      A MessageList holding copies of the elements.
    """
    return MessageList(message_type, values)


class MessageCodec:
    """Implements clear, encode, decode, copy, == and repr from a field table.

    The depth arguments count the levels of message nesting above the message
    being processed. Generated code calls these methods with the default of 0.
    """

    def __init__(self, message_type: type, fields: Iterable[FieldSpec]):
        self._message_type = message_type
        self._fields: tuple[FieldSpec, ...] = tuple(fields)
        self._by_number: dict[int, FieldSpec] = {}

        for field in self._fields:
            if field.number in self._by_number:
                raise ValueError(
                    f'{message_type.__name__} declares field number '
                    f'{field.number} more than once'
                )
            self._by_number[field.number] = field

    def fields(self) -> tuple[FieldSpec, ...]:
        return self._fields

    def field(self, number: int) -> FieldSpec | None:
        return self._by_number.get(number)

    def clear(self, message: Any) -> None:
        for field in self._fields:
            setattr(message, field.slot, field.default_value())

    def is_present(self, message: Any, field: FieldSpec) -> bool:
        """Implicit presence: a field is present if it would be encoded."""
        value = getattr(message, field.slot)
        if field.repeated:
            return bool(value)
        if field.kind is FieldKind.MESSAGE:
            return value is not None
        return not field.kind.is_default(value, field.default_value())

    def to_bytes(self, message: Any, depth: int = 0) -> bytes:
        """Encodes the present fields of a message, in declaration order."""
        data = bytearray()

        for field in self._fields:
            if not self.is_present(message, field):
                continue

            value = getattr(message, field.slot)
            if field.is_packed():
                packed = b''.join(
                    field.kind.encode_value(field.kind.validate(element))
                    for element in value
                )
                data += wire.encode_tag(
                    field.number, WireType.LENGTH_DELIMITED
                )
                data += wire.encode_length_delimited(packed)
            elif field.repeated:
                for element in value:
                    data += self._encode_single(field, element, depth)
            else:
                data += self._encode_single(field, value, depth)

        return bytes(data)

    def _encode_single(self, field: FieldSpec, value: Any, depth: int) -> bytes:
        tag = wire.encode_tag(field.number, field.kind.wire_type)

        if field.kind is FieldKind.MESSAGE:
            assert field.message_type is not None
            _check_type(value, field.message_type)
            _check_depth(depth, self._message_type, 'encode')
            # pylint: disable-next=protected-access
            encoded = value._codec.to_bytes(value, depth + 1)
            return tag + wire.encode_length_delimited(encoded)

        return tag + field.kind.encode_value(field.kind.validate(value))

    def encode(self, message: Any, stream: BinaryIO) -> None:
        wire.write(stream, self.to_bytes(message))

    def decode(self, message: Any, stream: BinaryIO, depth: int = 0) -> None:
        """Merges tag/value pairs from the stream into the message."""
        while (tag := wire.decode_tag(stream)) is not None:
            number, wire_type = tag
            field = self._by_number.get(number)

            if field is None:
                _LOG.debug(
                    '%s: skipping unknown field %d (wire type %d)',
                    self._message_type.__name__,
                    number,
                    wire_type,
                )
                wire.skip_field(stream, number, wire_type)
                continue

            self._decode_field(message, field, wire_type, stream, depth)

    def _decode_field(
        self,
        message: Any,
        field: FieldSpec,
        wire_type: int,
        stream: BinaryIO,
        depth: int,
    ) -> None:
        if (
            field.repeated
            and field.kind.is_packable()
            and wire_type == WireType.LENGTH_DELIMITED
        ):
            getattr(message, field.slot).extend(
                self._decode_packed(field, stream)
            )
            return

        if wire_type != field.kind.wire_type:
            raise WireTypeMismatchError(
                f'Field {field.number} ({field.name}) of '
                f'{self._message_type.__name__} expects wire type '
                f'{int(field.kind.wire_type)}, got {wire_type}',
                field.number,
                wire_type,
            )

        value = self._decode_value(field, stream, depth)
        if field.repeated:
            # The decoded message is new, so it is stored without a copy.
            list.append(getattr(message, field.slot), value)
        else:
            setattr(message, field.slot, value)

    def _decode_value(
        self, field: FieldSpec, stream: BinaryIO, depth: int = 0
    ) -> Any:
        if field.kind is FieldKind.MESSAGE:
            assert field.message_type is not None
            data = wire.decode_length_delimited(stream)
            if depth >= MAX_NESTING_DEPTH:
                raise RecursionLimitError(
                    f'Field {field.number} ({field.name}) of '
                    f'{self._message_type.__name__} is nested more than '
                    f'{MAX_NESTING_DEPTH} levels deep'
                )
            nested = field.message_type()
            # pylint: disable-next=protected-access
            nested._codec.decode(nested, io.BytesIO(data), depth + 1)
            return nested

        value = field.kind.decode_value(stream)
        if field.kind is FieldKind.ENUM:
            assert field.enum_type is not None
            return field.enum_type(value)
        return value

    def _decode_packed(self, field: FieldSpec, stream: BinaryIO) -> list:
        data = wire.decode_length_delimited(stream)
        block = io.BytesIO(data)
        values = []

        try:
            while block.tell() < len(data):
                values.append(self._decode_value(field, block))
        except TruncatedInputError as err:
            raise InvalidLengthDelimiterError(
                f'Packed field {field.number} ({field.name}) of '
                f'{self._message_type.__name__}: {len(data)} B does not hold '
                'a whole number of elements'
            ) from err

        return values

    def copy(self, message: Any, depth: int = 0) -> Any:
        """Returns a copy of the message that shares no nested messages."""
        duplicate = self._message_type()

        for field in self._fields:
            value = getattr(message, field.slot)
            if field.kind is FieldKind.MESSAGE and value is not None:
                assert field.message_type is not None
                _check_depth(depth, self._message_type, 'copy')
                # pylint: disable=protected-access
                if field.repeated:
                    copies = MessageList(field.message_type)
                    for element in value:
                        list.append(
                            copies, element._codec.copy(element, depth + 1)
                        )
                    value = copies
                else:
                    value = value._codec.copy(value, depth + 1)
                # pylint: enable=protected-access
            elif field.repeated:
                value = list(value)
            setattr(duplicate, field.slot, value)

        return duplicate

    def equals(self, message: Any, other: object, depth: int = 0) -> object:
        """Structural equality; floating point fields compare by bit pattern."""
        if type(message) is not type(other):
            return NotImplemented

        for field in self._fields:
            value = getattr(message, field.slot)
            other_value = getattr(other, field.slot)

            if not field.repeated:
                value, other_value = [value], [other_value]
            elif len(value) != len(other_value):
                return False

            for element, other_element in zip(value, other_value):
                if not self._elements_equal(
                    field, element, other_element, depth
                ):
                    return False

        return True

    def _elements_equal(
        self, field: FieldSpec, value: Any, other: Any, depth: int
    ) -> bool:
        if field.kind is not FieldKind.MESSAGE:
            return field.kind.same_value(value, other)
        if value is None or other is None:
            return value is other

        _check_depth(depth, self._message_type, 'compare')
        # pylint: disable-next=protected-access
        return value._codec.equals(value, other, depth + 1) is True

    def repr(self, message: Any) -> str:
        present = ', '.join(
            f'{field.name}={getattr(message, field.slot)!r}'
            for field in self._fields
            if self.is_present(message, field)
        )
        return f'{type(message).__name__}({present})'


def serialize(message: Any) -> bytes:
    """Encodes a generated message to bytes."""
    stream = io.BytesIO()
    message.encode(stream)
    return stream.getvalue()


def merge_from_bytes(message: Any, data: bytes) -> None:
    """Decodes data into an existing message with merge semantics."""
    message.decode(io.BytesIO(data))


def parse(message_type: type[T], data: bytes) -> T:
    """Creates a message of the given class and decodes data into it."""
    message = message_type()
    merge_from_bytes(message, data)
    return message
