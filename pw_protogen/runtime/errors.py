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
"""Exceptions raised by the pw_protogen runtime."""


class DecodeError(Exception):
    """Malformed or truncated protobuf wire data.

    A message whose decode() raised this must be discarded: the fields decoded
    before the error remain merged into it and are not rolled back.
    """


class TruncatedInputError(DecodeError):
    """The input ended in the middle of a tag, value or length-delimited run."""


class VarintTooLongError(DecodeError):
    """A varint did not terminate within 10 bytes."""


class InvalidLengthDelimiterError(DecodeError):
    """A length prefix is out of range or does not frame whole elements."""


class RecursionLimitError(DecodeError):
    """Messages are nested deeper than the decoder allows."""


class WireTypeMismatchError(DecodeError):
    """A wire type cannot be skipped or does not match the field's type."""

    def __init__(self, message: str, field_number: int, wire_type: int):
        super().__init__(message)
        self.field_number = field_number
        self.wire_type = wire_type


class StreamError(IOError):
    """The stream passed to encode() or decode() could not be used.

    This is a caller contract violation (e.g. a read-only stream passed to
    encode()) and is never raised for malformed wire data.
    """
