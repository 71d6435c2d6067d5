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
"""Builds the model of a generated Python module from a proto tree.

The model records every decision about the generated code (class and attribute
names, field tables, accessor kinds, imports) so that the emitter only has to
render it. All schema problems that prevent generating correct code are
detected here and raised as GenerationError.
"""

from dataclasses import dataclass, field
import enum
import logging
from typing import Any, Iterable
from typing import cast

from pw_protogen import naming
from pw_protogen import type_mapper
from pw_protogen.options import GeneratorOptions
from pw_protogen.proto_tree import ProtoEnum, ProtoMessage, ProtoMessageField
from pw_protogen.proto_tree import ProtoNode
from pw_protogen.proto_tree import file_nodes
from pw_protogen.runtime.kinds import FieldKind
from pw_protogen.runtime.wire import FIELD_NUMBER_MAX

_LOG = logging.getLogger(__name__)

PLUGIN_NAME = 'pw_protogen'
PLUGIN_VERSION = '0.1.0'


class GenerationError(Exception):
    """A schema construct that cannot be represented in generated code."""

    def __init__(
        self,
        error_message: str,
        node: ProtoNode,
        field: ProtoMessageField | None = None,
    ):
        super().__init__(f'pwpg codegen error: {error_message}')
        self.error_message = error_message
        self.node = node
        self.field = field

    def formatted_message(self) -> str:
        lines = [
            f'pwpg codegen error: {self.error_message}',
            f'    at {self.node.proto_path()}',
        ]

        if self.node.proto_file():
            lines.append(f'    in file {self.node.proto_file()}')

        if self.field is not None:
            lines.append(f'    in field {self.field.name()}')

        return '\n'.join(lines)


class Accessor(enum.Enum):
    """How a generated property reads and writes a field."""

    SCALAR = 1
    ENUM = 2
    MESSAGE = 3
    REPEATED_SCALAR = 4
    REPEATED_ENUM = 5
    REPEATED_MESSAGE = 6

    @classmethod
    def for_field(cls, kind: FieldKind, repeated: bool) -> 'Accessor':
        if kind is FieldKind.MESSAGE:
            return cls.REPEATED_MESSAGE if repeated else cls.MESSAGE
        if kind is FieldKind.ENUM:
            return cls.REPEATED_ENUM if repeated else cls.ENUM
        return cls.REPEATED_SCALAR if repeated else cls.SCALAR

    def is_repeated(self) -> bool:
        return self in (
            Accessor.REPEATED_SCALAR,
            Accessor.REPEATED_ENUM,
            Accessor.REPEATED_MESSAGE,
        )


@dataclass
class GeneratedEnumValue:
    proto_name: str
    python_name: str
    number: int
    comment: str = ''


@dataclass
class GeneratedEnum:
    """A ProtoEnum subclass with explicit name<->number tables."""

    proto_path: str
    python_name: str
    values: list[GeneratedEnumValue]
    default_name: str
    comment: str = ''

    def default_number(self) -> int:
        """The number of the constant an absent field of this type holds."""
        return next(
            value.number
            for value in self.values
            if value.proto_name == self.default_name
        )

    def names_by_value(self) -> dict[int, list[str]]:
        """Numbers to .proto names, aliases in declaration order."""
        table: dict[int, list[str]] = {}
        for value in self.values:
            table.setdefault(value.number, []).append(value.proto_name)
        return table


@dataclass
class GeneratedField:
    """One storage slot of a generated message and its accessors.

    Attributes:
      type_ref: Python expression naming the field's message or enum class.
      element_type: Annotation of a single value of the field.
    """

    number: int
    proto_name: str
    python_name: str
    kind: FieldKind
    accessor: Accessor
    packed: bool
    element_type: str
    type_ref: str | None = None
    default: Any = None
    comment: str = ''

    def slot(self) -> str:
        return '_' + self.python_name


@dataclass
class GeneratedMessage:
    """A message class implementing the runtime message contract.

    Attributes:
      nested: (attribute, class name) pairs for nested types that are also
          reachable as attributes of this class, e.g. Outer.Inner.
    """

    proto_path: str
    python_name: str
    fields: list[GeneratedField]
    nested: list[tuple[str, str]] = field(default_factory=list)
    comment: str = ''


@dataclass
class GeneratedUnit:
    """Everything needed to emit the Python module for one .proto file."""

    proto_file: str
    file_name: str
    module_name: str
    runtime_module: str
    emit_docs: bool
    imports: dict[str, str] = field(default_factory=dict)
    enums: list[GeneratedEnum] = field(default_factory=list)
    messages: list[GeneratedMessage] = field(default_factory=list)


class _TypeResolver:
    """Resolves referenced types to Python expressions, tracking imports."""

    def __init__(self, proto_file: str, options: GeneratorOptions):
        self._proto_file = proto_file
        self._options = options
        self.imports: dict[str, str] = {}

    def reference(self, node: ProtoNode) -> str:
        class_name = naming.type_name(node.scope_chain())
        if node.proto_file() == self._proto_file:
            return class_name

        module = naming.module_name(
            node.proto_file(), self._options.module_suffix
        )
        alias = naming.module_alias(module)
        self.imports[module] = alias
        return f'{alias}.{class_name}'


def _check_unique(
    names: Iterable[tuple[str, str]], what: str, node: ProtoNode
) -> None:
    """Raises if two .proto names map to the same Python identifier."""
    seen: dict[str, str] = {}
    for proto_name, python_name in names:
        if python_name in seen:
            raise GenerationError(
                f'{what} {proto_name!r} and {seen[python_name]!r} both map to '
                f'the Python name {python_name!r}',
                node,
            )
        seen[python_name] = proto_name


def _enum_default(proto_enum: ProtoEnum) -> tuple[str, int] | None:
    """The constant a field of this enum type holds when absent.

    This is the first zero-valued constant. proto2 enums may lack one, in which
    case the first declared constant is used.
    """
    name = proto_enum.default_value_name()
    if name is not None:
        return name, 0
    values = proto_enum.values()
    return values[0] if values else None


def _generate_enum(proto_enum: ProtoEnum, syntax: str) -> GeneratedEnum:
    default = _enum_default(proto_enum)
    if default is None or (default[1] != 0 and syntax not in ('proto2', '')):
        raise GenerationError(
            'enum has no constant with the value 0 to use as its default',
            proto_enum,
        )
    default_name = default[0]

    values = [
        GeneratedEnumValue(
            name,
            naming.enum_value_name(name),
            number,
            proto_enum.value_comment(name),
        )
        for name, number in proto_enum.values()
    ]
    _check_unique(
        ((value.proto_name, value.python_name) for value in values),
        'enum constants',
        proto_enum,
    )

    return GeneratedEnum(
        proto_path=proto_enum.proto_path(),
        python_name=naming.type_name(proto_enum.scope_chain()),
        values=values,
        default_name=default_name,
        comment=proto_enum.comment(),
    )


def _generate_field(
    message: ProtoMessage,
    proto_field: ProtoMessageField,
    resolver: _TypeResolver,
) -> GeneratedField:
    if not 1 <= proto_field.number() <= FIELD_NUMBER_MAX:
        raise GenerationError(
            f'field number {proto_field.number()} is out of range',
            message,
            proto_field,
        )

    try:
        mapping = type_mapper.map_field(proto_field)
    except ValueError as err:
        raise GenerationError(str(err), message, proto_field) from err

    type_ref = None
    if mapping.python_type is None:
        type_ref = resolver.reference(cast(ProtoNode, proto_field.type_node()))
        element_type = type_ref
    else:
        element_type = mapping.python_type

    default = mapping.default
    if (
        default is None
        and mapping.kind is FieldKind.ENUM
        and not proto_field.is_repeated()
    ):
        enum_default = _enum_default(cast(ProtoEnum, proto_field.type_node()))
        if enum_default is not None and enum_default[1] != 0:
            default = enum_default[1]

    return GeneratedField(
        number=proto_field.number(),
        proto_name=proto_field.name(),
        python_name=naming.field_name(proto_field.name()),
        kind=mapping.kind,
        accessor=Accessor.for_field(mapping.kind, proto_field.is_repeated()),
        packed=mapping.packed,
        element_type=element_type,
        type_ref=type_ref,
        default=default,
        comment=proto_field.comment(),
    )


def _generate_message(
    message: ProtoMessage, resolver: _TypeResolver
) -> GeneratedMessage:
    fields = [
        _generate_field(message, proto_field, resolver)
        for proto_field in message.fields()
    ]

    numbers: dict[int, GeneratedField] = {}
    for generated in fields:
        if generated.number in numbers:
            raise GenerationError(
                f'fields {generated.proto_name!r} and '
                f'{numbers[generated.number].proto_name!r} share the field '
                f'number {generated.number}',
                message,
            )
        numbers[generated.number] = generated

    _check_unique(
        ((f.proto_name, f.python_name) for f in fields), 'fields', message
    )

    # Nested types are also exposed as class attributes unless that would
    # hide a field, a contract method, a slot or another private member.
    taken = {f.python_name for f in fields} | naming.RESERVED_FIELD_NAMES
    nested = []
    for child in message.children():
        if (
            child.name() in taken
            or not child.name().isidentifier()
            or child.name().startswith('_')
            or naming.is_reserved_word(child.name())
        ):
            _LOG.debug(
                '%s: not aliasing nested type %s as an attribute',
                message.proto_path(),
                child.name(),
            )
            continue
        nested.append(
            (child.name(), naming.type_name(child.scope_chain()))
        )

    return GeneratedMessage(
        proto_path=message.proto_path(),
        python_name=naming.type_name(message.scope_chain()),
        fields=fields,
        nested=nested,
        comment=message.comment(),
    )


def generate_unit(
    proto_file, root: ProtoNode, options: GeneratorOptions
) -> GeneratedUnit:
    """Builds the generated module model for one .proto file.

    Args:
      proto_file: The FileDescriptorProto to generate code for.
      root: The proto tree of the whole compilation, from build_node_tree().
      options: Generator options.

    Raises:
      GenerationError: A construct in the file cannot be generated.
    """
    unit = GeneratedUnit(
        proto_file=proto_file.name,
        file_name=naming.module_file_name(
            proto_file.name, options.module_suffix
        ),
        module_name=naming.module_name(proto_file.name, options.module_suffix),
        runtime_module=options.runtime_module,
        emit_docs=options.emit_docs,
    )
    resolver = _TypeResolver(proto_file.name, options)

    for top_level in file_nodes(root, proto_file.name):
        for node in top_level:
            if node.type() == ProtoNode.Type.ENUM:
                unit.enums.append(
                    _generate_enum(cast(ProtoEnum, node), proto_file.syntax)
                )
            elif node.type() == ProtoNode.Type.MESSAGE:
                unit.messages.append(
                    _generate_message(cast(ProtoMessage, node), resolver)
                )

    _check_unique(
        (
            (declaration.proto_path, declaration.python_name)
            for declaration in [*unit.enums, *unit.messages]
        ),
        'types',
        root.find(proto_file.package) if proto_file.package else root,
    )

    unit.imports = dict(sorted(resolver.imports.items()))
    _LOG.debug(
        'Generated model for %s: %d enums, %d messages',
        proto_file.name,
        len(unit.enums),
        len(unit.messages),
    )
    return unit
