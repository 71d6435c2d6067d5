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
"""Python identifiers for protobuf names.

The rules are:

* A nested type is named by its enclosing message chain joined with '_', so
  message Inner in message Outer becomes the module-level class Outer_Inner.
* Any identifier that is a Python keyword or soft keyword, or that would shadow
  a name the generated code or the runtime relies on, gets a trailing '_'.
* An identifier with a leading '_' gets a leading 'x', since generated code
  stores fields in '_'-prefixed slots and Python mangles '__' names in classes.

The generator reports an error if two declarations in the same scope still map
to the same identifier after these rules are applied.
"""

import keyword
import os

NESTED_TYPE_SEPARATOR = '_'
ESCAPE_SUFFIX = '_'
ESCAPE_PREFIX = 'x'

# Members of every generated message class. A field named codec would store its
# value in the class's _codec attribute.
RESERVED_FIELD_NAMES = frozenset(
    (
        'create',
        'clear',
        'encode',
        'decode',
        'codec',
    )
)

# Attributes of ProtoEnum and int that enum constants must not shadow.
RESERVED_ENUM_VALUE_NAMES = frozenset(
    (
        'from_name',
        'members',
        'name',
        'names',
        'is_known',
        'as_integer_ratio',
        'bit_count',
        'bit_length',
        'conjugate',
        'denominator',
        'from_bytes',
        'imag',
        'is_integer',
        'numerator',
        'real',
        'to_bytes',
    )
)

# Module-level and builtin names used by generated code.
RESERVED_TYPE_NAMES = frozenset(
    (
        'BinaryIO',
        'ClassVar',
        'Iterable',
        'annotations',
        'bool',
        'bytes',
        'dict',
        'float',
        'int',
        'list',
        'object',
        'str',
        'tuple',
    )
)


# keyword.softkwlist varies between Python versions; generated names must not.
SOFT_KEYWORDS = frozenset(('_', 'case', 'match'))


def is_reserved_word(name: str) -> bool:
    return keyword.iskeyword(name) or name in SOFT_KEYWORDS


def escape(name: str, reserved: frozenset[str] = frozenset()) -> str:
    """Applies the escaping rules above to a single identifier."""
    if name.startswith('_'):
        name = ESCAPE_PREFIX + name
    if is_reserved_word(name) or name in reserved:
        return name + ESCAPE_SUFFIX
    return name


def type_name(scope_chain: list[str]) -> str:
    """The module-level class name of a message or enum."""
    return escape(NESTED_TYPE_SEPARATOR.join(scope_chain), RESERVED_TYPE_NAMES)


def field_name(name: str) -> str:
    return escape(name, RESERVED_FIELD_NAMES)


def enum_value_name(name: str) -> str:
    return escape(name, RESERVED_ENUM_VALUE_NAMES)


def module_name(proto_file: str, suffix: str) -> str:
    """The dotted Python module generated for a .proto file.

    foo/bar-baz.proto with suffix '_pb' becomes foo.bar_baz_pb.
    """
    path = os.path.splitext(proto_file)[0]
    parts = [
        escape(part.replace('-', '_').replace('.', '_'))
        for part in path.split('/')
    ]
    return '.'.join(parts) + suffix


def module_file_name(proto_file: str, suffix: str) -> str:
    """The output file path generated for a .proto file."""
    return module_name(proto_file, suffix).replace('.', '/') + '.py'


def module_alias(module: str) -> str:
    """A private identifier under which a dependency module is imported."""
    return '_' + module.replace('_', '__').replace('.', '_dot_')
