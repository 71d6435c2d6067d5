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
"""Maps protobuf field types to runtime field kinds and Python types."""

from dataclasses import dataclass
from typing import Any

from google.protobuf import descriptor_pb2

from pw_protogen.proto_tree import ProtoEnum, ProtoMessageField, ProtoNode
from pw_protogen.runtime.kinds import FieldKind
from pw_protogen.runtime.wire import WireType

_FieldType = descriptor_pb2.FieldDescriptorProto

PROTO_FIELD_KINDS: dict[int, FieldKind] = {
    _FieldType.TYPE_DOUBLE: FieldKind.DOUBLE,
    _FieldType.TYPE_FLOAT: FieldKind.FLOAT,
    _FieldType.TYPE_INT64: FieldKind.INT64,
    _FieldType.TYPE_UINT64: FieldKind.UINT64,
    _FieldType.TYPE_INT32: FieldKind.INT32,
    _FieldType.TYPE_FIXED64: FieldKind.FIXED64,
    _FieldType.TYPE_FIXED32: FieldKind.FIXED32,
    _FieldType.TYPE_BOOL: FieldKind.BOOL,
    _FieldType.TYPE_STRING: FieldKind.STRING,
    _FieldType.TYPE_MESSAGE: FieldKind.MESSAGE,
    _FieldType.TYPE_BYTES: FieldKind.BYTES,
    _FieldType.TYPE_UINT32: FieldKind.UINT32,
    _FieldType.TYPE_ENUM: FieldKind.ENUM,
    _FieldType.TYPE_SFIXED32: FieldKind.SFIXED32,
    _FieldType.TYPE_SFIXED64: FieldKind.SFIXED64,
    _FieldType.TYPE_SINT32: FieldKind.SINT32,
    _FieldType.TYPE_SINT64: FieldKind.SINT64,
}

_PYTHON_TYPES: dict[FieldKind, str] = {
    FieldKind.DOUBLE: 'float',
    FieldKind.FLOAT: 'float',
    FieldKind.BOOL: 'bool',
    FieldKind.STRING: 'str',
    FieldKind.BYTES: 'bytes',
}


@dataclass(frozen=True)
class FieldMapping:
    """How a field is stored in Python and framed on the wire.

    Attributes:
      kind: The runtime kind that encodes the field's values.
      wire_type: The wire type the field is written with; LENGTH_DELIMITED
          for packed fields.
      packed: True if the repeated field is written as one packed block.
      python_type: Annotation of a single element for scalar kinds; None for
          messages and enums, whose class names are resolved by the generator.
      default: The proto2 default value as a Python value, or None.
    """

    kind: FieldKind
    wire_type: WireType
    packed: bool
    python_type: str | None
    default: Any = None


def _parse_default(
    kind: FieldKind, text: str, type_node: ProtoNode | None
) -> Any:
    """Converts a descriptor's default_value text to a Python value."""
    if kind is FieldKind.MESSAGE:
        raise ValueError('message fields cannot have a default value')

    if kind is FieldKind.ENUM:
        assert isinstance(type_node, ProtoEnum)
        for name, number in type_node.values():
            if name == text:
                return number
        raise ValueError(
            f'default {text!r} is not a constant of {type_node.proto_path()}'
        )

    if kind is FieldKind.STRING:
        return text

    if kind is FieldKind.BYTES:
        # protoc C-escapes bytes defaults.
        return text.encode('latin-1').decode('unicode_escape').encode('latin-1')

    if kind is FieldKind.BOOL:
        if text not in ('true', 'false'):
            raise ValueError(f'malformed bool default {text!r}')
        return text == 'true'

    if kind.is_floating_point():
        return kind.validate(float(text))

    return kind.validate(int(text))


def python_type(kind: FieldKind) -> str | None:
    """The annotation for a scalar kind."""
    if kind in (FieldKind.MESSAGE, FieldKind.ENUM):
        return None
    return _PYTHON_TYPES.get(kind, 'int')


def map_field(field: ProtoMessageField) -> FieldMapping:
    """Maps a field to its FieldMapping.

    Raises:
      ValueError: The field's type cannot be represented (e.g. groups), its
          referenced type was not found, or its default value is malformed.
    """
    kind = PROTO_FIELD_KINDS.get(field.type())
    if kind is None:
        raise ValueError(
            f'unsupported field type {_FieldType.Type.Name(field.type())}'
        )

    if kind in (FieldKind.MESSAGE, FieldKind.ENUM):
        expected = (
            ProtoNode.Type.MESSAGE
            if kind is FieldKind.MESSAGE
            else ProtoNode.Type.ENUM
        )
        type_node = field.type_node()
        if type_node is None or type_node.type() != expected:
            raise ValueError(f'cannot resolve type {field.type_name()!r}')

    packed = (
        field.is_repeated() and kind.is_packable() and field.packed() is True
    )

    default = None
    if field.default_value() is not None:
        if field.is_repeated():
            raise ValueError('repeated fields cannot have a default value')
        default = _parse_default(
            kind, field.default_value(), field.type_node()  # type: ignore
        )

    return FieldMapping(
        kind=kind,
        wire_type=(
            WireType.LENGTH_DELIMITED if packed else kind.wire_type
        ),
        packed=packed,
        python_type=python_type(kind),
        default=default,
    )
