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
"""Renders a GeneratedUnit as Python source.

A generated module contains, in order:

* the enum classes, each followed by its named constants,
* the message classes, with one property per field,
* attribute aliases for nested types (Outer.Inner = Outer_Inner),
* the field table of every message.

Field tables are bound last so that messages may refer to types declared later
in the file, including themselves.
"""

import keyword
import math
from typing import Any

from pw_protogen.codegen import (
    PLUGIN_NAME,
    PLUGIN_VERSION,
    Accessor,
    GeneratedEnum,
    GeneratedField,
    GeneratedMessage,
    GeneratedUnit,
)
from pw_protogen.output_file import OutputFile

_RUNTIME = '_runtime'


def _identifier(name: str) -> str:
    assert name.isidentifier() and not keyword.iskeyword(name), name
    return name


def _literal(value: Any) -> str:
    """A Python expression for a default value."""
    if isinstance(value, float) and not math.isfinite(value):
        return f"float('{value}')"
    return repr(value)


def _docstring(output: OutputFile, text: str) -> None:
    text = text.replace('\\', '\\\\').replace('"""', '\\"\\"\\"')
    lines = text.split('\n')
    if lines[-1].endswith('"'):
        lines[-1] += ' '

    if len(lines) == 1:
        output.write_line(f'"""{lines[0]}"""')
        return

    output.write_line(f'"""{lines[0]}')
    output.write_lines(lines[1:])
    output.write_line('"""')


def _comment(output: OutputFile, text: str) -> None:
    for line in text.split('\n'):
        output.write_line(f'# {line}'.rstrip())


def _kind(field: GeneratedField) -> str:
    return f'{_RUNTIME}.FieldKind.{field.kind.name}'


def _field_spec(field: GeneratedField) -> str:
    args = [
        str(field.number),
        repr(field.python_name),
        _kind(field),
    ]
    if field.accessor.is_repeated():
        args.append('repeated=True')
    if field.accessor in (Accessor.MESSAGE, Accessor.REPEATED_MESSAGE):
        args.append(f'message_type={field.type_ref}')
    if field.accessor in (Accessor.ENUM, Accessor.REPEATED_ENUM):
        args.append(f'enum_type={field.type_ref}')
    if field.default is not None:
        args.append(f'default={_literal(field.default)}')
    if field.accessor.is_repeated() and field.kind.is_packable():
        args.append(f'packed={field.packed}')
    return f'{_RUNTIME}.FieldSpec({", ".join(args)}),'


def _generate_header(unit: GeneratedUnit, output: OutputFile) -> None:
    output.write_line(
        f'# Automatically generated by {PLUGIN_NAME} {PLUGIN_VERSION} from '
        f'{unit.proto_file}.'
    )
    output.write_line('# DO NOT EDIT!')
    output.write_line('# pylint: skip-file')
    _docstring(output, f'Protobuf messages and enums from {unit.proto_file}.')
    output.write_line()
    output.write_line('from __future__ import annotations')
    output.write_line()
    output.write_line('from typing import BinaryIO, ClassVar, Iterable')
    output.write_line()
    output.write_line(f'import {unit.runtime_module} as {_RUNTIME}')

    for module, alias in unit.imports.items():
        output.write_line(f'import {module} as {_identifier(alias)}')


def _generate_enum(
    unit: GeneratedUnit, enum: GeneratedEnum, output: OutputFile
) -> None:
    name = _identifier(enum.python_name)

    output.write_line()
    output.write_line()
    output.write_line(f'class {name}({_RUNTIME}.ProtoEnum):')
    with output.indent():
        if unit.emit_docs and enum.comment:
            _docstring(output, enum.comment)
        else:
            _docstring(
                output,
                f'Corresponds to the protobuf enum {enum.proto_path}.',
            )
        output.write_line()
        output.write_line('__slots__ = ()')
        output.write_line()

        output.write_line('_VALUES_BY_NAME: ClassVar[dict[str, int]] = {')
        with output.indent():
            for value in enum.values:
                output.write_line(f'{value.proto_name!r}: {value.number},')
        output.write_line('}')

        output.write_line(
            '_NAMES_BY_VALUE: ClassVar[dict[int, tuple[str, ...]]] = {'
        )
        with output.indent():
            for number, names in enum.names_by_value().items():
                listed = ''.join(f'{proto_name!r}, ' for proto_name in names)
                output.write_line(f'{number}: ({listed.rstrip()}),')
        output.write_line('}')

        output.write_line(
            f'_DEFAULT: ClassVar[int] = {enum.default_number()}'
        )

    output.write_line()
    output.write_line()
    for value in enum.values:
        if unit.emit_docs and value.comment:
            _comment(output, value.comment)
        output.write_line(
            f'{name}.{_identifier(value.python_name)} = {name}({value.number})'
        )


def _generate_contract(message: GeneratedMessage, output: OutputFile) -> None:
    """Writes the methods that delegate to the message's codec."""
    output.write_line(f'_codec: ClassVar[{_RUNTIME}.MessageCodec]')
    output.write_line()
    output.write_line('def __init__(self) -> None:')
    with output.indent():
        output.write_line('self.clear()')
    output.write_line()
    output.write_line('@classmethod')
    output.write_line(f'def create(cls) -> {message.python_name}:')
    with output.indent():
        output.write_line('return cls()')
    output.write_line()
    output.write_line('def clear(self) -> None:')
    with output.indent():
        output.write_line('self._codec.clear(self)')
    output.write_line()
    output.write_line('def encode(self, stream: BinaryIO) -> None:')
    with output.indent():
        output.write_line('self._codec.encode(self, stream)')
    output.write_line()
    output.write_line('def decode(self, stream: BinaryIO) -> None:')
    with output.indent():
        output.write_line('self._codec.decode(self, stream)')
    output.write_line()
    output.write_line('def __eq__(self, other: object) -> bool:')
    with output.indent():
        output.write_line('return self._codec.equals(self, other)')
    output.write_line()
    output.write_line('__hash__ = None  # type: ignore[assignment]')
    output.write_line()
    output.write_line('def __repr__(self) -> str:')
    with output.indent():
        output.write_line('return self._codec.repr(self)')


def _setter_expression(field: GeneratedField) -> str:
    """The expression that validates a value assigned to the field."""
    if field.accessor is Accessor.SCALAR:
        return f'{_kind(field)}.validate(value)'
    if field.accessor is Accessor.ENUM:
        return f'{field.type_ref}(value)'
    if field.accessor is Accessor.MESSAGE:
        return f'{_RUNTIME}.check_message(value, {field.type_ref})'
    if field.accessor is Accessor.REPEATED_SCALAR:
        return f'[{_kind(field)}.validate(value) for value in values]'
    if field.accessor is Accessor.REPEATED_ENUM:
        return f'[{field.type_ref}(value) for value in values]'
    return f'{_RUNTIME}.check_messages(values, {field.type_ref})'


def _generate_property(
    unit: GeneratedUnit, field: GeneratedField, output: OutputFile
) -> None:
    name = _identifier(field.python_name)

    if field.accessor.is_repeated():
        getter_type = f'list[{field.element_type}]'
        setter_arg = f'values: Iterable[{field.element_type}]'
    elif field.accessor is Accessor.MESSAGE:
        getter_type = f'{field.element_type} | None'
        setter_arg = f'value: {field.element_type} | None'
    elif field.accessor is Accessor.ENUM:
        getter_type = field.element_type
        setter_arg = 'value: int'
    else:
        getter_type = field.element_type
        setter_arg = f'value: {field.element_type}'

    output.write_line()
    output.write_line('@property')
    output.write_line(f'def {name}(self) -> {getter_type}:')
    with output.indent():
        if unit.emit_docs and field.comment:
            _docstring(output, field.comment)
        output.write_line(f'return self.{field.slot()}')

    output.write_line()
    output.write_line(f'@{name}.setter')
    output.write_line(f'def {name}(self, {setter_arg}) -> None:')
    with output.indent():
        output.write_line(f'self.{field.slot()} = {_setter_expression(field)}')

    if field.accessor is Accessor.MESSAGE:
        output.write_line()
        output.write_line(f'@{name}.deleter')
        output.write_line(f'def {name}(self) -> None:')
        with output.indent():
            output.write_line(f'self.{field.slot()} = None')


def _generate_message(
    unit: GeneratedUnit, message: GeneratedMessage, output: OutputFile
) -> None:
    output.write_line()
    output.write_line()
    output.write_line(f'class {_identifier(message.python_name)}:')
    with output.indent():
        if unit.emit_docs and message.comment:
            _docstring(output, message.comment)
        else:
            _docstring(
                output,
                f'Corresponds to the protobuf message {message.proto_path}.',
            )
        output.write_line()

        slots = [repr(field.slot()) for field in message.fields]
        slots.append(repr('__weakref__'))
        output.write_line(f'__slots__ = ({", ".join(slots)},)')
        output.write_line()

        _generate_contract(message, output)

        for field in message.fields:
            _generate_property(unit, field, output)


def _generate_codec(message: GeneratedMessage, output: OutputFile) -> None:
    name = message.python_name
    output.write_line()
    output.write_line(f'{name}._codec = {_RUNTIME}.MessageCodec(')
    with output.indent():
        output.write_line(f'{name},')
        output.write_line('(')
        with output.indent():
            for field in message.fields:
                output.write_line(_field_spec(field))
        output.write_line('),')
    output.write_line(')')


def emit_unit(unit: GeneratedUnit) -> OutputFile:
    """Renders the Python module for a generated unit."""
    output = OutputFile(unit.file_name)

    _generate_header(unit, output)

    for enum in unit.enums:
        _generate_enum(unit, enum, output)

    for message in unit.messages:
        _generate_message(unit, message, output)

    aliases = [
        (message.python_name, attribute, class_name)
        for message in unit.messages
        for attribute, class_name in message.nested
    ]
    if aliases:
        output.write_line()
        output.write_line()
        for owner, attribute, class_name in aliases:
            output.write_line(
                f'{owner}.{_identifier(attribute)} = {class_name}'
            )

    if unit.messages:
        output.write_line()
    for message in unit.messages:
        _generate_codec(message, output)

    return output
