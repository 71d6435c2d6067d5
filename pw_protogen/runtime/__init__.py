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
"""Runtime support for Python code generated by pw_protogen.

Generated modules import this package (or an alternative selected with the
--runtime-module generator option) and use only the names exported here.
"""

from pw_protogen.runtime.enums import ProtoEnum
from pw_protogen.runtime.errors import (
    DecodeError,
    InvalidLengthDelimiterError,
    RecursionLimitError,
    StreamError,
    TruncatedInputError,
    VarintTooLongError,
    WireTypeMismatchError,
)
from pw_protogen.runtime.kinds import FieldKind
from pw_protogen.runtime.message import (
    MAX_NESTING_DEPTH,
    FieldSpec,
    MessageCodec,
    MessageList,
    ProtoMessage,
    check_message,
    check_messages,
    merge_from_bytes,
    parse,
    serialize,
)
from pw_protogen.runtime.wire import WireType

__all__ = [
    'MAX_NESTING_DEPTH',
    'DecodeError',
    'FieldKind',
    'FieldSpec',
    'InvalidLengthDelimiterError',
    'MessageCodec',
    'MessageList',
    'ProtoEnum',
    'ProtoMessage',
    'RecursionLimitError',
    'StreamError',
    'TruncatedInputError',
    'VarintTooLongError',
    'WireType',
    'WireTypeMismatchError',
    'check_message',
    'check_messages',
    'merge_from_bytes',
    'parse',
    'serialize',
]
