#!/usr/bin/env python3
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
"""Tests generated modules end to end, including against google.protobuf."""

import gc
import io
import unittest
import weakref

from parameterized import parameterized  # type: ignore

from pw_protogen import testing
from pw_protogen.runtime import (
    MAX_NESTING_DEPTH,
    DecodeError,
    ProtoEnum,
    RecursionLimitError,
    StreamError,
    TruncatedInputError,
    WireTypeMismatchError,
    merge_from_bytes,
    parse,
    serialize,
    wire,
)

COMMON_PROTO = testing.file_descriptor(
    """
    name: "pwpg_demo/common.proto"
    package: "pwpg_demo.common"
    syntax: "proto3"
    enum_type {
      name: "EnumY"
      value { name: "NONE" number: 0 }
      value { name: "VALUE_Y" number: 3 }
      value { name: "ALSO_Y" number: 3 }
      options { allow_alias: true }
    }
    message_type {
      name: "Point"
      field { name: "x" number: 1 label: LABEL_OPTIONAL type: TYPE_SINT32 }
      field { name: "y" number: 2 label: LABEL_OPTIONAL type: TYPE_SINT32 }
    }
    """
)

SAMPLE_PROTO = testing.file_descriptor(
    """
    name: "pwpg_demo/sample.proto"
    package: "pwpg_demo"
    dependency: "pwpg_demo/common.proto"
    syntax: "proto3"
    message_type {
      name: "Counter"
      field { name: "value" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32 }
    }
    message_type {
      name: "Choice"
      field {
        name: "choice" number: 1 label: LABEL_OPTIONAL type: TYPE_ENUM
        type_name: ".pwpg_demo.common.EnumY"
      }
    }
    message_type {
      name: "Everything"
      field {
        name: "f_double" number: 1 label: LABEL_OPTIONAL type: TYPE_DOUBLE
      }
      field {
        name: "f_float" number: 2 label: LABEL_OPTIONAL type: TYPE_FLOAT
      }
      field {
        name: "f_int64" number: 3 label: LABEL_OPTIONAL type: TYPE_INT64
      }
      field {
        name: "f_uint64" number: 4 label: LABEL_OPTIONAL type: TYPE_UINT64
      }
      field {
        name: "f_int32" number: 5 label: LABEL_OPTIONAL type: TYPE_INT32
      }
      field {
        name: "f_fixed64" number: 6 label: LABEL_OPTIONAL type: TYPE_FIXED64
      }
      field {
        name: "f_fixed32" number: 7 label: LABEL_OPTIONAL type: TYPE_FIXED32
      }
      field {
        name: "f_bool" number: 8 label: LABEL_OPTIONAL type: TYPE_BOOL
      }
      field {
        name: "f_string" number: 9 label: LABEL_OPTIONAL type: TYPE_STRING
      }
      field {
        name: "f_bytes" number: 10 label: LABEL_OPTIONAL type: TYPE_BYTES
      }
      field {
        name: "f_uint32" number: 11 label: LABEL_OPTIONAL type: TYPE_UINT32
      }
      field {
        name: "f_sfixed32" number: 12 label: LABEL_OPTIONAL
        type: TYPE_SFIXED32
      }
      field {
        name: "f_sfixed64" number: 13 label: LABEL_OPTIONAL
        type: TYPE_SFIXED64
      }
      field {
        name: "f_sint32" number: 14 label: LABEL_OPTIONAL type: TYPE_SINT32
      }
      field {
        name: "f_sint64" number: 15 label: LABEL_OPTIONAL type: TYPE_SINT64
      }
      field {
        name: "f_enum" number: 16 label: LABEL_OPTIONAL type: TYPE_ENUM
        type_name: ".pwpg_demo.common.EnumY"
      }
      field {
        name: "f_point" number: 17 label: LABEL_OPTIONAL type: TYPE_MESSAGE
        type_name: ".pwpg_demo.common.Point"
      }
      field {
        name: "r_int32" number: 18 label: LABEL_REPEATED type: TYPE_INT32
      }
      field {
        name: "r_string" number: 19 label: LABEL_REPEATED type: TYPE_STRING
      }
      field {
        name: "r_point" number: 20 label: LABEL_REPEATED type: TYPE_MESSAGE
        type_name: ".pwpg_demo.common.Point"
      }
      field {
        name: "r_enum" number: 21 label: LABEL_REPEATED type: TYPE_ENUM
        type_name: ".pwpg_demo.common.EnumY"
      }
      field {
        name: "r_double" number: 22 label: LABEL_REPEATED type: TYPE_DOUBLE
      }
      field {
        name: "f_inner" number: 23 label: LABEL_OPTIONAL type: TYPE_MESSAGE
        type_name: ".pwpg_demo.Everything.Inner"
      }
      field {
        name: "class" number: 24 label: LABEL_OPTIONAL type: TYPE_INT32
      }
      nested_type {
        name: "Inner"
        field {
          name: "note" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING
        }
      }
    }
    message_type {
      name: "Tree"
      field {
        name: "label" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING
      }
      field {
        name: "children" number: 2 label: LABEL_REPEATED type: TYPE_MESSAGE
        type_name: ".pwpg_demo.Tree"
      }
    }
    message_type {
      name: "Holder"
      field {
        name: "codec" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING
      }
    }
    message_type {
      name: "Outer"
      field {
        name: "Inner" number: 1 label: LABEL_OPTIONAL type: TYPE_INT32
      }
      field {
        name: "hidden" number: 2 label: LABEL_OPTIONAL type: TYPE_MESSAGE
        type_name: ".pwpg_demo.Outer._Inner"
      }
      nested_type {
        name: "_Inner"
        field {
          name: "note" number: 1 label: LABEL_OPTIONAL type: TYPE_STRING
        }
      }
      nested_type { name: "__init__" }
      nested_type { name: "class" }
    }
    """
)

LEGACY_PROTO = testing.file_descriptor(
    """
    name: "pwpg_demo/legacy.proto"
    package: "pwpg_demo.legacy"
    syntax: "proto2"
    enum_type {
      name: "Level"
      value { name: "LOW" number: 1 }
      value { name: "HIGH" number: 2 }
    }
    message_type {
      name: "Settings"
      field {
        name: "retries" number: 1 label: LABEL_OPTIONAL type: TYPE_UINT32
        default_value: "3"
      }
      field {
        name: "level" number: 2 label: LABEL_OPTIONAL type: TYPE_ENUM
        type_name: ".pwpg_demo.legacy.Level"
      }
      field {
        name: "samples" number: 3 label: LABEL_REPEATED type: TYPE_INT32
      }
      field {
        name: "packed_samples" number: 4 label: LABEL_REPEATED
        type: TYPE_INT32 options { packed: true }
      }
      field {
        name: "name" number: 5 label: LABEL_OPTIONAL type: TYPE_STRING
        default_value: "anon"
      }
    }
    """
)

FILES = [COMMON_PROTO, SAMPLE_PROTO, LEGACY_PROTO]


class _GeneratedTestCase(unittest.TestCase):
    """Generates and imports the test schema once per test case class."""

    modules: testing.GeneratedModules

    @classmethod
    def setUpClass(cls):
        cls.modules = testing.GeneratedModules(FILES)
        cls.modules.__enter__()  # pylint: disable=unnecessary-dunder-call
        cls.common = cls.modules.module('pwpg_demo/common.proto')
        cls.sample = cls.modules.module('pwpg_demo/sample.proto')
        cls.legacy = cls.modules.module('pwpg_demo/legacy.proto')

    @classmethod
    def tearDownClass(cls):
        cls.modules.__exit__(None, None, None)

    def _everything(self):
        msg = self.sample.Everything()
        msg.f_double = -2.25
        msg.f_float = 1.5
        msg.f_int64 = -(2**40)
        msg.f_uint64 = 2**64 - 1
        msg.f_int32 = -5
        msg.f_fixed64 = 2**63
        msg.f_fixed32 = 7
        msg.f_bool = True
        msg.f_string = 'héllo'
        msg.f_bytes = b'\x00\xff'
        msg.f_uint32 = 2**32 - 1
        msg.f_sfixed32 = -2
        msg.f_sfixed64 = -3
        msg.f_sint32 = -4
        msg.f_sint64 = 2**62
        msg.f_enum = self.common.EnumY.VALUE_Y
        msg.f_point = self.common.Point()
        msg.f_point.x = 10
        msg.r_int32 = [1, -1, 300]
        msg.r_string = ['a', '']
        msg.r_point = [self.common.Point(), self.common.Point()]
        msg.r_point[1].y = -7
        msg.r_enum = [0, 3, 9]
        msg.r_double = [0.5, -0.0]
        msg.f_inner = self.sample.Everything.Inner()
        msg.f_inner.note = 'inner'
        msg.class_ = 24
        return msg


class ScenarioTest(_GeneratedTestCase):
    """Byte-exact encodings of simple messages."""

    def test_int32_300(self):
        counter = self.sample.Counter()
        counter.value = 300
        self.assertEqual(serialize(counter), b'\x08\xac\x02')
        self.assertEqual(parse(self.sample.Counter, b'\x08\xac\x02'), counter)

    def test_negative_int32_uses_ten_bytes(self):
        counter = self.sample.Counter.create()
        counter.value = -1
        self.assertEqual(serialize(counter), b'\x08' + b'\xff' * 9 + b'\x01')
        self.assertEqual(parse(self.sample.Counter, serialize(counter)).value, -1)

    def test_default_is_not_encoded(self):
        counter = self.sample.Counter()
        counter.value = 0
        self.assertEqual(serialize(counter), b'')

    def test_enum_value(self):
        choice = self.sample.Choice()
        choice.choice = self.common.EnumY.VALUE_Y
        self.assertEqual(serialize(choice), b'\x08\x03')

    def test_enum_default(self):
        choice = self.sample.Choice()
        self.assertEqual(choice.choice, self.common.EnumY.NONE)
        self.assertEqual(serialize(choice), b'')

    def test_unknown_enum_value_is_preserved(self):
        choice = parse(self.sample.Choice, b'\x08\x07')
        self.assertEqual(choice.choice, 7)
        self.assertIsInstance(choice.choice, self.common.EnumY)
        self.assertFalse(choice.choice.is_known())
        self.assertEqual(serialize(choice), b'\x08\x07')

    def test_enum_alias(self):
        enum_y = self.common.EnumY
        self.assertEqual(enum_y.ALSO_Y, enum_y.VALUE_Y)
        self.assertEqual(enum_y.from_name('ALSO_Y'), enum_y.VALUE_Y)
        self.assertEqual(enum_y(3).names, ('VALUE_Y', 'ALSO_Y'))
        self.assertEqual(repr(enum_y.ALSO_Y), 'EnumY.VALUE_Y')

        choice = self.sample.Choice()
        choice.choice = enum_y.ALSO_Y
        self.assertEqual(serialize(choice), b'\x08\x03')


class GeneratedMessageTest(_GeneratedTestCase):
    """Tests the accessors and codec behavior of generated classes."""

    def test_new_message_is_empty(self):
        msg = self.sample.Everything()
        self.assertEqual(serialize(msg), b'')
        self.assertEqual(msg.f_string, '')
        self.assertEqual(msg.f_bytes, b'')
        self.assertIsNone(msg.f_point)
        self.assertEqual(msg.r_int32, [])

    def test_round_trip(self):
        msg = self._everything()
        decoded = parse(self.sample.Everything, serialize(msg))
        self.assertEqual(decoded, msg)
        self.assertEqual(decoded.r_enum, [0, 3, 9])
        self.assertEqual(decoded.f_inner.note, 'inner')

    def test_clear(self):
        msg = self._everything()
        msg.clear()
        self.assertEqual(msg, self.sample.Everything())
        msg.clear()
        self.assertEqual(serialize(msg), b'')

    def test_replace_is_clear_then_decode(self):
        msg = self._everything()
        msg.clear()
        merge_from_bytes(msg, b'\x28\x01')
        self.assertEqual(msg.f_int32, 1)
        self.assertEqual(msg.r_int32, [])

    def test_merge_appends_repeated(self):
        msg = parse(self.sample.Everything, b'\x92\x01\x02\x01\x02')
        merge_from_bytes(msg, b'\x90\x01\x03')
        self.assertEqual(msg.r_int32, [1, 2, 3])

    def test_repeated_scalars_are_packed(self):
        msg = self.sample.Everything()
        msg.r_int32 = [1, 2]
        self.assertEqual(serialize(msg), b'\x92\x01\x02\x01\x02')

    def test_repeated_strings_are_not_packed(self):
        msg = self.sample.Everything()
        msg.r_string = ['a', 'b']
        self.assertEqual(serialize(msg), b'\x9a\x01\x01a\x9a\x01\x01b')

    def test_unknown_fields_are_skipped(self):
        counter = parse(
            self.sample.Counter, b'\x10\x05\x1a\x03abc\x08\x02\x25\x00\x00\x00\x00'
        )
        self.assertEqual(counter.value, 2)

    def test_keyword_field_name(self):
        msg = self.sample.Everything()
        msg.class_ = 5
        self.assertEqual(serialize(msg), b'\xc0\x01\x05')

    def test_nested_alias(self):
        self.assertIs(self.sample.Everything.Inner, self.sample.Everything_Inner)

    def test_recursive_message(self):
        tree = self.sample.Tree()
        tree.label = 'root'
        tree.children = [self.sample.Tree(), self.sample.Tree()]
        tree.children[0].children = [self.sample.Tree()]
        tree.children[0].children[0].label = 'leaf'

        decoded = parse(self.sample.Tree, serialize(tree))
        self.assertEqual(decoded.children[0].children[0].label, 'leaf')
        self.assertEqual(decoded, tree)

    def test_repr(self):
        counter = self.sample.Counter()
        counter.value = 3
        self.assertEqual(repr(counter), 'Counter(value=3)')

    def test_nan_equals_its_round_trip(self):
        msg = self.sample.Everything()
        msg.f_double = float('nan')
        msg.f_float = float('nan')
        msg.r_double = [float('nan')]
        self.assertEqual(msg, msg)
        self.assertEqual(parse(self.sample.Everything, serialize(msg)), msg)

    def test_negative_zero_differs_from_zero(self):
        msg = self.sample.Everything()
        msg.f_double = -0.0
        self.assertNotEqual(msg, self.sample.Everything())

    def test_unhashable(self):
        with self.assertRaises(TypeError):
            hash(self.sample.Counter())

    def test_slots(self):
        with self.assertRaises(AttributeError):
            self.sample.Counter().valeu = 3  # type: ignore[attr-defined]

    @parameterized.expand(
        [
            ('int32 overflow', 'f_int32', 2**31, ValueError),
            ('uint32 negative', 'f_uint32', -1, ValueError),
            ('string from bytes', 'f_string', b'x', TypeError),
            ('bool from int', 'f_bool', 1, TypeError),
            ('enum from str', 'f_enum', 'VALUE_Y', TypeError),
            ('message of wrong type', 'f_point', 'x', TypeError),
            ('repeated element', 'r_int32', [1, 'x'], TypeError),
            ('repeated message element', 'r_point', [None], TypeError),
        ]
    )
    def test_setter_validation(self, _, name, value, error):
        with self.assertRaises(error):
            setattr(self.sample.Everything(), name, value)

    def test_enum_setter_accepts_unknown_numbers(self):
        msg = self.sample.Everything()
        msg.f_enum = 9
        self.assertIsInstance(msg.f_enum, self.common.EnumY)
        self.assertEqual(serialize(msg), b'\x80\x01\x09')

    def test_repeated_setter_copies(self):
        values = [1, 2]
        msg = self.sample.Everything()
        msg.r_int32 = values
        values.append(3)
        self.assertEqual(msg.r_int32, [1, 2])

    def test_message_deleter(self):
        msg = self.sample.Everything()
        msg.f_point = self.common.Point()
        del msg.f_point
        self.assertIsNone(msg.f_point)
        self.assertEqual(serialize(msg), b'')

    def test_replaced_message_is_released(self):
        msg = self.sample.Everything()
        msg.f_point = self.common.Point()
        released = weakref.ref(msg.f_point)

        msg.f_point = self.common.Point()
        gc.collect()
        self.assertIsNone(released())

    def test_decoded_message_replaces_previous(self):
        msg = self.sample.Everything()
        msg.f_point = self.common.Point()
        msg.f_point.y = 1
        released = weakref.ref(msg.f_point)

        merge_from_bytes(msg, b'\x8a\x01\x02\x08\x02')
        gc.collect()
        self.assertIsNone(released())
        self.assertEqual(msg.f_point.x, 1)
        self.assertEqual(msg.f_point.y, 0)

    def test_cleared_message_is_released(self):
        msg = self.sample.Everything()
        msg.r_point = [self.common.Point()]
        released = weakref.ref(msg.r_point[0])
        msg.clear()
        gc.collect()
        self.assertIsNone(released())

    @parameterized.expand(
        [
            ('truncated varint', b'\x28\x80', TruncatedInputError),
            ('truncated string', b'\x4a\x05ab', TruncatedInputError),
            ('wrong wire type', b'\x0d\x00\x00\x00\x00', WireTypeMismatchError),
            ('unskippable wire type', b'\xfb\x01', WireTypeMismatchError),
            ('field number zero', b'\x00\x00', DecodeError),
            ('invalid utf-8', b'\x4a\x01\xff', DecodeError),
        ]
    )
    def test_decode_errors(self, _, data, error):
        with self.assertRaises(error):
            parse(self.sample.Everything, data)

    def test_encode_to_unwritable_stream(self):
        stream = io.BytesIO()
        stream.close()
        msg = self._everything()
        with self.assertRaises(StreamError):
            msg.encode(stream)

    def test_stream_error_is_not_decode_error(self):
        self.assertFalse(issubclass(StreamError, DecodeError))


class ReservedNameTest(_GeneratedTestCase):
    """Tests .proto names that clash with generated class members."""

    def test_codec_field(self):
        holder = self.sample.Holder()
        self.assertEqual(holder.codec_, '')
        holder.codec_ = 'zip'
        self.assertEqual(serialize(holder), b'\x0a\x03zip')
        self.assertEqual(parse(self.sample.Holder, b'\x0a\x03zip'), holder)

    def test_private_nested_names_are_not_aliased(self):
        outer_class = self.sample.Outer
        self.assertIsNot(
            getattr(outer_class, '_Inner'), self.sample.Outer__Inner
        )
        self.assertIsNot(outer_class.__init__, self.sample.Outer___init__)
        self.assertFalse(hasattr(outer_class, 'class'))

        outer = outer_class()
        outer.Inner = 5
        outer.hidden = self.sample.Outer__Inner()
        outer.hidden.note = 'n'
        self.assertEqual(parse(outer_class, serialize(outer)), outer)
        self.assertIsInstance(
            self.sample.Outer___init__(), self.sample.Outer___init__
        )


class OwnershipTest(_GeneratedTestCase):
    """Tests that a message never shares its nested messages."""

    def test_assigned_message_is_copied(self):
        first = self.sample.Everything()
        first.f_point = self.common.Point()
        second = self.sample.Everything()
        second.f_point = first.f_point

        first.f_point.x = 7
        self.assertEqual(second.f_point.x, 0)
        self.assertIsNot(second.f_point, first.f_point)

    def test_assigned_message_keeps_nested_messages_separate(self):
        child = self.sample.Tree()
        child.children.append(self.sample.Tree())
        tree = self.sample.Tree()
        tree.children = [child]

        child.children[0].label = 'changed'
        self.assertEqual(tree.children[0].children[0].label, '')

    def test_repeated_message_elements_are_copied(self):
        point = self.common.Point()
        msg = self.sample.Everything()
        msg.r_point = [point]
        msg.r_point.append(point)
        msg.r_point += [point]
        point.x = 3

        self.assertEqual(msg.r_point, [self.common.Point()] * 3)
        msg.r_point[0] = msg.r_point[1]
        self.assertIsNot(msg.r_point[0], msg.r_point[1])

    def test_message_added_to_itself_is_a_snapshot(self):
        tree = self.sample.Tree()
        tree.label = 'root'
        tree.children.append(tree)

        self.assertEqual(len(tree.children), 1)
        self.assertEqual(tree.children[0].children, [])
        self.assertEqual(
            parse(self.sample.Tree, serialize(tree)).children[0].label, 'root'
        )

    def test_repeated_message_rejects_other_types(self):
        msg = self.sample.Everything()
        with self.assertRaises(TypeError):
            msg.r_point.append(self.sample.Counter())


class NestingDepthTest(_GeneratedTestCase):
    """Tests the limit on how deeply messages may nest."""

    def _encoded_tree(self, levels):
        data = b''
        for _ in range(levels):
            data = b'\x12' + wire.encode_length_delimited(data)
        return data

    def _tree(self, levels):
        root = node = self.sample.Tree()
        for _ in range(levels):
            node.children.append(self.sample.Tree())
            node = node.children[0]
        return root

    def test_decode_at_limit(self):
        tree = parse(self.sample.Tree, self._encoded_tree(MAX_NESTING_DEPTH))
        self.assertEqual(tree, self._tree(MAX_NESTING_DEPTH))
        self.assertEqual(serialize(tree), self._encoded_tree(MAX_NESTING_DEPTH))

    def test_decode_beyond_limit(self):
        data = self._encoded_tree(MAX_NESTING_DEPTH + 1)
        with self.assertRaises(RecursionLimitError):
            parse(self.sample.Tree, data)
        self.assertTrue(issubclass(RecursionLimitError, DecodeError))

    def test_deeply_nested_input_is_rejected(self):
        with self.assertRaises(RecursionLimitError):
            parse(self.sample.Tree, self._encoded_tree(1000))

    def test_encode_beyond_limit(self):
        with self.assertRaises(ValueError):
            serialize(self._tree(MAX_NESTING_DEPTH + 1))


class Proto2Test(_GeneratedTestCase):
    """Tests proto2 defaults and packing."""

    def test_declared_defaults(self):
        settings = self.legacy.Settings()
        self.assertEqual(settings.retries, 3)
        self.assertEqual(settings.name, 'anon')
        self.assertEqual(serialize(settings), b'')

    def test_enum_without_zero_defaults_to_first_value(self):
        settings = self.legacy.Settings()
        self.assertEqual(settings.level, self.legacy.Level.LOW)

    def test_enum_class_default_is_first_value(self):
        self.assertEqual(self.legacy.Level(), self.legacy.Level.LOW)
        self.assertEqual(self.legacy.Level().name, 'LOW')
        self.assertEqual(self.common.EnumY(), self.common.EnumY.NONE)

    def test_zero_differs_from_declared_default(self):
        settings = self.legacy.Settings()
        settings.retries = 0
        self.assertEqual(serialize(settings), b'\x08\x00')

    def test_repeated_unpacked_by_default(self):
        settings = self.legacy.Settings()
        settings.samples = [1, 2]
        settings.packed_samples = [1, 2]
        self.assertEqual(
            serialize(settings), b'\x18\x01\x18\x02' + b'\x22\x02\x01\x02'
        )

    def test_both_encodings_accepted(self):
        settings = parse(
            self.legacy.Settings, b'\x1a\x02\x01\x02\x18\x03\x20\x04'
        )
        self.assertEqual(settings.samples, [1, 2, 3])
        self.assertEqual(settings.packed_samples, [4])


class GeneratedEnumTest(_GeneratedTestCase):
    """Tests generated enum classes."""

    def test_is_proto_enum(self):
        self.assertTrue(issubclass(self.common.EnumY, ProtoEnum))

    def test_constants(self):
        self.assertEqual(self.common.EnumY.NONE, 0)
        self.assertEqual(self.common.EnumY.VALUE_Y, 3)
        self.assertEqual(self.common.EnumY.VALUE_Y.name, 'VALUE_Y')

    def test_members(self):
        self.assertEqual(
            [name for name, _ in self.common.EnumY.members()],
            ['NONE', 'VALUE_Y', 'ALSO_Y'],
        )


class InteropTest(_GeneratedTestCase):
    """Compares generated classes with the google.protobuf implementation."""

    def _reference(self, full_name):
        return testing.reference_message_class(FILES, full_name)

    def test_reference_parses_generated_bytes(self):
        data = serialize(self._everything())
        reference = self._reference('pwpg_demo.Everything').FromString(data)

        self.assertEqual(reference.f_double, -2.25)
        self.assertEqual(reference.f_uint64, 2**64 - 1)
        self.assertEqual(reference.f_int32, -5)
        self.assertEqual(reference.f_sint32, -4)
        self.assertEqual(reference.f_string, 'héllo')
        self.assertEqual(reference.f_enum, 3)
        self.assertEqual(reference.f_point.x, 10)
        self.assertEqual(list(reference.r_int32), [1, -1, 300])
        self.assertEqual(list(reference.r_enum), [0, 3, 9])
        self.assertEqual(reference.r_point[1].y, -7)
        self.assertEqual(reference.f_inner.note, 'inner')
        self.assertEqual(getattr(reference, 'class'), 24)

    def test_generated_parses_reference_bytes(self):
        reference = self._reference('pwpg_demo.Everything')()
        reference.f_sfixed64 = -3
        reference.f_fixed32 = 7
        reference.f_bytes = b'\x01'
        reference.r_double.extend([0.5, 1.5])
        reference.r_string.extend(['x', 'y'])
        reference.f_point.y = -1
        reference.r_point.add().x = 2

        msg = parse(self.sample.Everything, reference.SerializeToString())
        self.assertEqual(msg.f_sfixed64, -3)
        self.assertEqual(msg.f_fixed32, 7)
        self.assertEqual(msg.f_bytes, b'\x01')
        self.assertEqual(msg.r_double, [0.5, 1.5])
        self.assertEqual(msg.r_string, ['x', 'y'])
        self.assertEqual(msg.f_point.y, -1)
        self.assertEqual(msg.r_point[0].x, 2)

    def test_identical_bytes(self):
        reference = self._reference('pwpg_demo.Everything')()
        reference.f_int64 = -(2**40)
        reference.f_bool = True
        reference.f_sint64 = 2**62
        reference.r_int32.extend([5, -6])
        reference.f_enum = 3

        msg = self.sample.Everything()
        msg.f_int64 = -(2**40)
        msg.f_bool = True
        msg.f_sint64 = 2**62
        msg.r_int32 = [5, -6]
        msg.f_enum = 3

        self.assertEqual(serialize(msg), reference.SerializeToString())

    def test_proto2_unpacked_matches_reference(self):
        reference = self._reference('pwpg_demo.legacy.Settings')()
        reference.samples.extend([1, 2])
        reference.packed_samples.extend([3])

        settings = self.legacy.Settings()
        settings.samples = [1, 2]
        settings.packed_samples = [3]

        self.assertEqual(serialize(settings), reference.SerializeToString())


if __name__ == '__main__':
    unittest.main()
