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
"""pw_protogen compiler plugin.

This file implements a protobuf compiler plugin which generates Python modules
for protobuf messages and enums, backed by the pw_protogen runtime.
"""

import logging
import sys

from google.protobuf.compiler import plugin_pb2

from pw_protogen import codegen, emitter, log
from pw_protogen.options import GeneratorOptions, parse_parameter_options
from pw_protogen.output_file import OutputFile
from pw_protogen.proto_tree import build_node_tree

_LOG = logging.getLogger(__name__)


def process_proto_file(
    proto_file, root, options: GeneratorOptions
) -> OutputFile | None:
    """Generates the Python module for a single .proto file.

    Returns:
      The generated file, or None if the file could not be generated. The
      reason is logged.
    """
    try:
        unit = codegen.generate_unit(proto_file, root, options)
    except codegen.GenerationError as err:
        _LOG.error('%s', err.formatted_message())
        return None

    return emitter.emit_unit(unit)


def process_proto_request(
    req: plugin_pb2.CodeGeneratorRequest,
    res: plugin_pb2.CodeGeneratorResponse,
    options: GeneratorOptions | None = None,
) -> bool:
    """Handles a protoc CodeGeneratorRequest message.

    Generates code for the files in the request and writes the output to the
    specified CodeGeneratorResponse message. A file that fails to generate is
    left out of the response; the remaining files are still generated.

    Args:
      req: A CodeGeneratorRequest for a proto compilation.
      res: A CodeGeneratorResponse to populate with the plugin's output.
      options: Generator options; parsed from req.parameter if not given.

    Returns:
      True if every requested file was generated.
    """
    if options is None:
        options = parse_parameter_options(req.parameter)

    # Every file in the request, including dependencies that are not being
    # generated, is needed to resolve referenced types.
    root = build_node_tree(req.proto_file)
    files = {proto_file.name: proto_file for proto_file in req.proto_file}

    failed = []
    for name in req.file_to_generate:
        proto_file = files.get(name)
        if proto_file is None:
            _LOG.error('%s is not among the request\'s proto files', name)
            failed.append(name)
            continue

        output_file = process_proto_file(proto_file, root, options)
        if output_file is None:
            failed.append(name)
            continue

        _LOG.debug('Generated %s from %s', output_file.name(), name)
        fd = res.file.add()
        fd.name = output_file.name()
        fd.content = output_file.content()

    if failed:
        res.error = 'pwpg failed to generate code for ' + ', '.join(failed)

    return not failed


def main() -> int:
    """Protobuf compiler plugin entrypoint.

    Reads a CodeGeneratorRequest proto from stdin and writes a
    CodeGeneratorResponse to stdout.
    """
    data = sys.stdin.buffer.read()
    request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    response = plugin_pb2.CodeGeneratorResponse()

    options = parse_parameter_options(request.parameter)
    log.install(logging.DEBUG if options.verbose else logging.INFO)

    # Declare that this plugin supports optional fields in proto3.
    response.supported_features |= (  # type: ignore[attr-defined]
        response.FEATURE_PROTO3_OPTIONAL
    )  # type: ignore[attr-defined]

    success = process_proto_request(request, response, options)
    sys.stdout.buffer.write(response.SerializeToString())

    if not success:
        _LOG.error('pwpg failed to generate protobuf code')
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
