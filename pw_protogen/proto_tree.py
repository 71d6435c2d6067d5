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
"""This module defines data structures for protobuf entities."""

import abc
import collections
import enum
from typing import Callable, Iterable, Iterator, TypeVar
from typing import cast

from google.protobuf import descriptor_pb2

T = TypeVar('T')  # pylint: disable=invalid-name

# Field numbers of the repeated fields that source_code_info paths walk
# through, from descriptor.proto.
_FILE_MESSAGE_TYPE = 4
_FILE_ENUM_TYPE = 5
_MESSAGE_FIELD = 2
_MESSAGE_NESTED_TYPE = 3
_MESSAGE_ENUM_TYPE = 4
_ENUM_VALUE = 2

_Comments = dict[tuple[int, ...], str]


class ProtoNode(abc.ABC):
    """A ProtoNode represents an entity in a .proto file.

    Nodes form a tree beginning at a top-level (global) scope, descending into a
    hierarchy of .proto packages and the messages and enums defined within them.
    A single tree holds the entities of every file in a compilation, so types
    imported from other files can be resolved.
    """

    class Type(enum.Enum):
        """The type of a ProtoNode.

        PACKAGE maps to nothing in generated code; it only scopes names.
        MESSAGE maps to a generated message class.
        ENUM maps to a generated ProtoEnum subclass.
        """

        PACKAGE = 1
        MESSAGE = 2
        ENUM = 3

    def __init__(self, name: str, proto_file: str = '', comment: str = ''):
        self._name: str = name
        self._proto_file: str = proto_file
        self._comment: str = comment
        self._children: dict[str, 'ProtoNode'] = collections.OrderedDict()
        self._parent: 'ProtoNode | None' = None

    @abc.abstractmethod
    def type(self) -> 'ProtoNode.Type':
        """The type of the node."""

    def children(self) -> list['ProtoNode']:
        return list(self._children.values())

    def name(self) -> str:
        return self._name

    def proto_file(self) -> str:
        """The .proto file that defines this node; empty for packages."""
        return self._proto_file

    def comment(self) -> str:
        """The leading comment of the declaration in the .proto file."""
        return self._comment

    def proto_path(self) -> str:
        """Fully-qualified package path of the node."""
        path = '.'.join(self._attr_hierarchy(lambda node: node.name(), None))
        return path.lstrip('.')

    def scope_chain(self) -> list[str]:
        """Names from the outermost enclosing message down to this node.

        Package levels are not included, so for a message Inner nested in
        Outer in package foo.bar, this returns ['Outer', 'Inner'].
        """
        chain = []
        node: ProtoNode | None = self
        while node is not None and node.type() != ProtoNode.Type.PACKAGE:
            chain.append(node.name())
            node = node.parent()
        return list(reversed(chain))

    def package(self) -> 'ProtoNode':
        """The package node this entity is declared in."""
        node: ProtoNode = self
        while node.type() != ProtoNode.Type.PACKAGE:
            parent = node.parent()
            assert parent is not None
            node = parent
        return node

    def depth(self) -> int:
        """Returns the depth of this node from the root."""
        depth = 0
        node = self._parent
        while node:
            depth += 1
            node = node.parent()
        return depth

    def add_child(self, child: 'ProtoNode') -> None:
        """Inserts a new node into the tree as a child of this node.

        Args:
          child: The node to insert.

        Raises:
          ValueError: This node does not allow nesting the given type of child.
        """
        if not self._supports_child(child):
            raise ValueError(
                'Invalid child %s for node of type %s'
                % (child.type(), self.type())
            )

        # pylint: disable=protected-access
        if child._parent is not None:
            del child._parent._children[child.name()]

        child._parent = self
        self._children[child.name()] = child
        # pylint: enable=protected-access

    def find(self, path: str) -> 'ProtoNode | None':
        """Finds a node within this node's subtree."""
        node = self

        # pylint: disable=protected-access
        for section in path.split('.'):
            child = node._children.get(section)
            if child is None:
                return None
            node = child
        # pylint: enable=protected-access

        return node

    def parent(self) -> 'ProtoNode | None':
        return self._parent

    def __iter__(self) -> Iterator['ProtoNode']:
        """Iterates depth-first through all nodes in this node's subtree."""
        yield self
        for child_iterator in self._children.values():
            for child in child_iterator:
                yield child

    def _attr_hierarchy(
        self,
        attr_accessor: Callable[['ProtoNode'], T],
        root: 'ProtoNode | None',
    ) -> Iterator[T]:
        """Fetches node attributes at each level of the tree from the root.

        Args:
          attr_accessor: Function which extracts attributes from a ProtoNode.
          root: The node at which to terminate.

        Returns:
          An iterator to a list of the selected attributes from the root to the
          current node.
        """
        hierarchy = []
        node: ProtoNode | None = self
        while node is not None and node != root:
            hierarchy.append(attr_accessor(node))
            node = node.parent()
        return reversed(hierarchy)

    @abc.abstractmethod
    def _supports_child(self, child: 'ProtoNode') -> bool:
        """Returns True if child is a valid child type for the current node."""


class ProtoPackage(ProtoNode):
    """A protobuf package."""

    def type(self) -> ProtoNode.Type:
        return ProtoNode.Type.PACKAGE

    def _supports_child(self, child: ProtoNode) -> bool:
        return True


class ProtoEnum(ProtoNode):
    """Representation of an enum in a .proto file."""

    def __init__(self, name: str, proto_file: str = '', comment: str = ''):
        super().__init__(name, proto_file, comment)
        self._values: list[tuple[str, int]] = []
        self._value_comments: dict[str, str] = {}

    def type(self) -> ProtoNode.Type:
        return ProtoNode.Type.ENUM

    def values(self) -> list[tuple[str, int]]:
        """Every (name, number) pair in declaration order, aliases included."""
        return list(self._values)

    def value_comment(self, name: str) -> str:
        return self._value_comments.get(name, '')

    def add_value(self, name: str, value: int, comment: str = '') -> None:
        self._values.append((name, value))
        if comment:
            self._value_comments[name] = comment

    def default_value_name(self) -> str | None:
        """The first constant whose number is zero, if there is one."""
        for name, value in self._values:
            if value == 0:
                return name
        return None

    def _supports_child(self, child: ProtoNode) -> bool:
        # Enums cannot have nested children.
        return False


class ProtoMessage(ProtoNode):
    """Representation of a message in a .proto file."""

    def __init__(self, name: str, proto_file: str = '', comment: str = ''):
        super().__init__(name, proto_file, comment)
        self._fields: list['ProtoMessageField'] = []

    def type(self) -> ProtoNode.Type:
        return ProtoNode.Type.MESSAGE

    def fields(self) -> list['ProtoMessageField']:
        return list(self._fields)

    def add_field(self, field: 'ProtoMessageField') -> None:
        self._fields.append(field)

    def _supports_child(self, child: ProtoNode) -> bool:
        return (
            child.type() == self.Type.ENUM or child.type() == self.Type.MESSAGE
        )


# This class is not a node and does not appear in the proto tree.
# Fields belong to proto messages and are processed separately.
class ProtoMessageField:
    """Representation of a field within a protobuf message."""

    def __init__(
        self,
        field_name: str,
        field_number: int,
        field_type: int,
        type_name: str = '',
        type_node: ProtoNode | None = None,
        repeated: bool = False,
        packed: bool | None = None,
        default_value: str | None = None,
        comment: str = '',
    ):
        self._field_name = field_name
        self._number: int = field_number
        self._type: int = field_type
        self._type_name: str = type_name
        self._type_node: ProtoNode | None = type_node
        self._repeated: bool = repeated
        self._packed: bool | None = packed
        self._default_value: str | None = default_value
        self._comment: str = comment

    def name(self) -> str:
        return self._field_name

    def number(self) -> int:
        return self._number

    def type(self) -> int:
        """The descriptor_pb2.FieldDescriptorProto.Type of the field."""
        return self._type

    def type_name(self) -> str:
        """The referenced type's name as written by protoc, if any."""
        return self._type_name

    def type_node(self) -> ProtoNode | None:
        """The message or enum node of the field's type, if it was found."""
        return self._type_node

    def is_repeated(self) -> bool:
        return self._repeated

    def packed(self) -> bool | None:
        """Whether the .proto file asks for packed encoding, if it says."""
        return self._packed

    def default_value(self) -> str | None:
        """The proto2 [default = ...] literal, as text."""
        return self._default_value

    def comment(self) -> str:
        return self._comment


def _clean_comment(comment: str) -> str:
    lines = [line.rstrip() for line in comment.strip('\n').split('\n')]
    # Comments keep the single space that follows '//' on every line.
    if all(not line or line.startswith(' ') for line in lines):
        lines = [line[1:] for line in lines]
    return '\n'.join(lines).strip()


def _collect_comments(proto_file) -> _Comments:
    """Maps source_code_info paths to leading (or trailing) comments."""
    comments: _Comments = {}
    for location in proto_file.source_code_info.location:
        text = location.leading_comments or location.trailing_comments
        if text:
            comments[tuple(location.path)] = _clean_comment(text)
    return comments


def _packed_option(proto_file, field) -> bool | None:
    if field.label != descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED:
        return None
    if field.options.HasField('packed'):
        return field.options.packed
    # Repeated scalars are packed by default from proto3 on.
    return proto_file.syntax != 'proto2' and proto_file.syntax != ''


def _find_node(
    global_root: ProtoNode, package_root: ProtoNode, path: str
) -> ProtoNode | None:
    """Searches the proto tree for a node by path."""
    if path.startswith('.'):
        # Fully qualified path.
        return global_root.find(path[1:])

    # Relative paths are resolved from the package outwards.
    scope: ProtoNode | None = package_root
    while scope is not None:
        node = scope.find(path)
        if node is not None:
            return node
        scope = scope.parent()
    return None


def _add_enum_values(
    enum_node: ProtoNode, proto_enum, path: tuple[int, ...], comments: _Comments
) -> None:
    """Adds values from a protobuf enum descriptor to an enum node."""
    assert enum_node.type() == ProtoNode.Type.ENUM
    enum_node = cast(ProtoEnum, enum_node)

    for index, value in enumerate(proto_enum.value):
        enum_node.add_value(
            value.name,
            value.number,
            comments.get(path + (_ENUM_VALUE, index), ''),
        )


def _add_message_fields(
    global_root: ProtoNode,
    package_root: ProtoNode,
    message: ProtoNode,
    proto_file,
    proto_message,
    path: tuple[int, ...],
    comments: _Comments,
) -> None:
    """Adds fields from a protobuf message descriptor to a message node."""
    assert message.type() == ProtoNode.Type.MESSAGE
    message = cast(ProtoMessage, message)

    type_node: ProtoNode | None

    for index, field in enumerate(proto_message.field):
        if field.type_name:
            # The "type_name" member contains the global .proto path of the
            # field's type object, for example ".pw.protobuf.test.KeyValuePair".
            type_node = _find_node(global_root, package_root, field.type_name)
        else:
            type_node = None

        message.add_field(
            ProtoMessageField(
                field.name,
                field.number,
                field.type,
                field.type_name,
                type_node,
                field.label
                == descriptor_pb2.FieldDescriptorProto.LABEL_REPEATED,
                _packed_option(proto_file, field),
                (
                    field.default_value
                    if field.HasField('default_value')
                    else None
                ),
                comments.get(path + (_MESSAGE_FIELD, index), ''),
            )
        )


def _package_node(root: ProtoNode, package: str) -> ProtoNode:
    """Finds or creates the nodes of a dotted package name."""
    node = root
    if not package:
        return node

    for part in package.split('.'):
        child = node.find(part)
        if child is None:
            child = ProtoPackage(part)
            node.add_child(child)
        node = child
    return node


def _build_hierarchy(root: ProtoNode, proto_file) -> ProtoNode:
    """Adds the message/enum nodes of a file to the tree."""
    comments = _collect_comments(proto_file)
    package_root = _package_node(root, proto_file.package)

    def build_message_subtree(proto_message, path):
        node = ProtoMessage(
            proto_message.name, proto_file.name, comments.get(path, '')
        )
        for index, proto_enum in enumerate(proto_message.enum_type):
            enum_path = path + (_MESSAGE_ENUM_TYPE, index)
            node.add_child(
                ProtoEnum(
                    proto_enum.name,
                    proto_file.name,
                    comments.get(enum_path, ''),
                )
            )
        for index, submessage in enumerate(proto_message.nested_type):
            node.add_child(
                build_message_subtree(
                    submessage, path + (_MESSAGE_NESTED_TYPE, index)
                )
            )

        return node

    for index, proto_enum in enumerate(proto_file.enum_type):
        package_root.add_child(
            ProtoEnum(
                proto_enum.name,
                proto_file.name,
                comments.get((_FILE_ENUM_TYPE, index), ''),
            )
        )

    for index, message in enumerate(proto_file.message_type):
        package_root.add_child(
            build_message_subtree(message, (_FILE_MESSAGE_TYPE, index))
        )

    return package_root


def _populate_fields(
    proto_file, global_root: ProtoNode, package_root: ProtoNode
) -> None:
    """Traverses a proto file, adding all message and enum fields to a tree."""
    comments = _collect_comments(proto_file)

    def populate_message(node, message, path):
        """Recursively populates nested messages and enums."""
        _add_message_fields(
            global_root,
            package_root,
            node,
            proto_file,
            message,
            path,
            comments,
        )

        for index, proto_enum in enumerate(message.enum_type):
            _add_enum_values(
                node.find(proto_enum.name),
                proto_enum,
                path + (_MESSAGE_ENUM_TYPE, index),
                comments,
            )
        for index, msg in enumerate(message.nested_type):
            populate_message(
                node.find(msg.name), msg, path + (_MESSAGE_NESTED_TYPE, index)
            )

    # Iterate through the proto file, populating top-level objects.
    for index, proto_enum in enumerate(proto_file.enum_type):
        enum_node = package_root.find(proto_enum.name)
        assert enum_node is not None
        _add_enum_values(
            enum_node, proto_enum, (_FILE_ENUM_TYPE, index), comments
        )

    for index, message in enumerate(proto_file.message_type):
        populate_message(
            package_root.find(message.name),
            message,
            (_FILE_MESSAGE_TYPE, index),
        )


def build_node_tree(file_descriptor_protos: Iterable) -> ProtoNode:
    """Constructs a tree of proto nodes from a set of file descriptors.

    Two passes are made through the files. The first builds the tree of all
    message/enum nodes, then the second creates the fields in each. This is
    done as non-primitive fields need references to their types, which may be
    declared later or in another file.

    Returns the root node of the entire proto package tree.
    """
    files = list(file_descriptor_protos)
    global_root = ProtoPackage('')

    package_roots = [_build_hierarchy(global_root, file) for file in files]
    for proto_file, package_root in zip(files, package_roots):
        _populate_fields(proto_file, global_root, package_root)

    return global_root


def file_nodes(root: ProtoNode, proto_file: str) -> list[ProtoNode]:
    """The top-level messages and enums declared in the given file."""
    return [
        node
        for node in root
        if node.proto_file() == proto_file
        and node.parent() is not None
        and node.parent().type() == ProtoNode.Type.PACKAGE  # type: ignore
    ]
