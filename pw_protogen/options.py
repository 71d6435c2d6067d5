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
"""Generator options passed through protoc."""

from argparse import ArgumentParser
from dataclasses import dataclass
from shlex import shlex

DEFAULT_RUNTIME_MODULE = 'pw_protogen.runtime'
DEFAULT_MODULE_SUFFIX = '_pb'


@dataclass
class GeneratorOptions:
    """Settings that apply to every file in a generator invocation.

    Attributes:
      runtime_module: The module generated code imports its runtime support
          from. Any module exporting the same names as pw_protogen.runtime may
          be substituted without regenerating the wire format logic.
      module_suffix: Appended to the .proto file's base name to form the
          generated module's name.
      emit_docs: Whether comments from the .proto file become docstrings.
      verbose: Log debug messages from the generator.
    """

    runtime_module: str = DEFAULT_RUNTIME_MODULE
    module_suffix: str = DEFAULT_MODULE_SUFFIX
    emit_docs: bool = True
    verbose: bool = False


def _module_path(value: str) -> str:
    if not all(part.isidentifier() for part in value.split('.')):
        raise ValueError(f'{value!r} is not a Python module path')
    return value


def _module_suffix(value: str) -> str:
    if not ('x' + value).isidentifier():
        raise ValueError(f'{value!r} cannot end a Python module name')
    return value


def _parser() -> ArgumentParser:
    parser = ArgumentParser(prog='protoc-gen-pwpg')
    parser.add_argument(
        '--runtime-module',
        dest='runtime_module',
        metavar='MODULE',
        default=DEFAULT_RUNTIME_MODULE,
        type=_module_path,
        help='Python module that generated code imports its runtime from',
    )
    parser.add_argument(
        '--suffix',
        dest='module_suffix',
        metavar='SUFFIX',
        default=DEFAULT_MODULE_SUFFIX,
        type=_module_suffix,
        help='Suffix appended to generated module names',
    )
    parser.add_argument(
        '--no-docs',
        dest='emit_docs',
        action='store_false',
        help='Do not turn .proto comments into docstrings',
    )
    parser.add_argument(
        '--verbose',
        '-v',
        dest='verbose',
        action='store_true',
        help='Log debug messages to stderr',
    )
    return parser


def parse_parameter_options(parameter: str) -> GeneratorOptions:
    """Parses parameters passed through from protoc.

    These parameters come in via passing `--${NAME}_opt` parameters to protoc,
    where protoc-gen-${NAME} is the supplied name of the plugin, for example
    `--pwpg_opt=--runtime-module=my_project.proto_runtime`.
    """
    # protoc passes the custom arguments in shell quoted form, separated by
    # commas. Use shlex to split them, correctly handling quoted sections, with
    # equivalent options to IFS=","
    lex = shlex(parameter)
    lex.whitespace_split = True
    lex.whitespace = ','
    lex.commenters = ''
    args = list(lex)

    parsed = _parser().parse_args(args)
    return GeneratorOptions(
        runtime_module=parsed.runtime_module,
        module_suffix=parsed.module_suffix,
        emit_docs=parsed.emit_docs,
        verbose=parsed.verbose,
    )
