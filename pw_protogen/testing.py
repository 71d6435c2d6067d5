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
"""Helpers for testing generated code without invoking protoc.

Schemas are written as FileDescriptorProto text, the same structure protoc
passes to the plugin. For example:

    files = [testing.file_descriptor('''
        name: "demo.proto"
        syntax: "proto3"
        message_type { name: "Demo" field { name: "id" number: 1
            label: LABEL_OPTIONAL type: TYPE_INT32 } }
    ''')]

    with testing.GeneratedModules(files) as modules:
        demo = modules.module('demo.proto').Demo()
"""

import importlib
from pathlib import Path
import sys
import tempfile
from types import ModuleType
from typing import Iterable

from google.protobuf import descriptor_pb2
from google.protobuf import descriptor_pool
from google.protobuf import message_factory
from google.protobuf import text_format
from google.protobuf.compiler import plugin_pb2

from pw_protogen import naming
from pw_protogen.options import GeneratorOptions
from pw_protogen.plugin import process_proto_request


def file_descriptor(text: str) -> descriptor_pb2.FileDescriptorProto:
    """Parses a FileDescriptorProto from protobuf text format."""
    return text_format.Parse(text, descriptor_pb2.FileDescriptorProto())


def code_generator_request(
    files: Iterable[descriptor_pb2.FileDescriptorProto],
    file_to_generate: Iterable[str] | None = None,
    parameter: str = '',
) -> plugin_pb2.CodeGeneratorRequest:
    """Builds the request protoc would send for the given files.

    Files must be listed with dependencies first. By default every file is
    generated.
    """
    files = list(files)
    request = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
    request.proto_file.extend(files)
    if file_to_generate is None:
        file_to_generate = [proto_file.name for proto_file in files]
    request.file_to_generate.extend(file_to_generate)
    return request


def generate(
    files: Iterable[descriptor_pb2.FileDescriptorProto],
    options: GeneratorOptions | None = None,
    file_to_generate: Iterable[str] | None = None,
) -> tuple[bool, plugin_pb2.CodeGeneratorResponse]:
    """Runs the plugin on the files, as protoc would."""
    response = plugin_pb2.CodeGeneratorResponse()
    success = process_proto_request(
        code_generator_request(files, file_to_generate),
        response,
        options if options is not None else GeneratorOptions(),
    )
    return success, response


def reference_message_class(
    files: Iterable[descriptor_pb2.FileDescriptorProto], full_name: str
) -> type:
    """Builds the google.protobuf message class for a message in the files."""
    pool = descriptor_pool.DescriptorPool()
    for proto_file in files:
        pool.AddSerializedFile(proto_file.SerializeToString())
    return message_factory.GetMessageClass(
        pool.FindMessageTypeByName(full_name)
    )


class GeneratedModules:
    """Generates modules into a temporary directory and makes them importable.

    Use as a context manager. On exit, the generated modules are removed from
    sys.modules and the directory is deleted.
    """

    def __init__(
        self,
        files: Iterable[descriptor_pb2.FileDescriptorProto],
        options: GeneratorOptions | None = None,
    ):
        self._files = list(files)
        self._options = options if options is not None else GeneratorOptions()
        self._tempdir: tempfile.TemporaryDirectory | None = None
        self._modules_before: set[str] = set()

    def __enter__(self) -> 'GeneratedModules':
        success, response = generate(self._files, self._options)
        if not success:
            raise ValueError(f'Code generation failed: {response.error}')

        self._tempdir = tempfile.TemporaryDirectory()
        for output in response.file:
            path = Path(self._tempdir.name, output.name)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(output.content)

        self._modules_before = set(sys.modules)
        sys.path.insert(0, self._tempdir.name)
        importlib.invalidate_caches()
        return self

    def __exit__(self, typ, value, traceback) -> None:
        assert self._tempdir is not None

        # Namespace package paths are recomputed from sys.path, so find the
        # generated modules before removing the directory from it.
        for name in set(sys.modules) - self._modules_before:
            if self._is_generated(sys.modules[name]):
                del sys.modules[name]

        sys.path.remove(self._tempdir.name)
        self._tempdir.cleanup()
        self._tempdir = None

    def _is_generated(self, module: ModuleType) -> bool:
        assert self._tempdir is not None
        locations = [getattr(module, '__file__', None) or '']
        locations.extend(str(path) for path in getattr(module, '__path__', []))
        return any(
            location.startswith(self._tempdir.name) for location in locations
        )

    def module(self, proto_file: str) -> ModuleType:
        """Imports the generated module for a .proto file."""
        return importlib.import_module(
            naming.module_name(proto_file, self._options.module_suffix)
        )
