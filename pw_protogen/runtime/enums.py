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
"""Open, integer-backed enum values for generated protobuf enums.

Python's enum.IntEnum cannot hold values that have no declared name, but
protobuf enums are open: a decoder must keep an unrecognized number so that it
can be re-encoded unchanged. Generated enums therefore subclass ProtoEnum, an
int subclass with explicit name<->value tables supplied by the generator.
Aliases (several names for one number) are listed in declaration order.
"""

from typing import Any, ClassVar, Iterator

from pw_protogen.runtime.kinds import FieldKind

_NO_VALUE = object()


class ProtoEnum(int):
    """An int that knows the protobuf enum constant names for its value.

    Subclasses define _VALUES_BY_NAME, _NAMES_BY_VALUE and _DEFAULT, the number
    of the constant a field holds when it is absent. Calling the class with no
    argument returns that constant. Two values compare equal if their numbers
    are equal, regardless of which alias created them.
    """

    __slots__ = ()

    _VALUES_BY_NAME: ClassVar[dict[str, int]] = {}
    _NAMES_BY_VALUE: ClassVar[dict[int, tuple[str, ...]]] = {}
    _DEFAULT: ClassVar[int] = 0

    def __new__(cls, value: Any = _NO_VALUE) -> 'ProtoEnum':
        if value is _NO_VALUE:
            value = cls._DEFAULT
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            raise TypeError(
                f'Use {cls.__name__}.from_name() to look up a constant by name'
            )
        return super().__new__(cls, FieldKind.ENUM.validate(value))

    @classmethod
    def from_name(cls, name: str) -> 'ProtoEnum':
        """Looks up a value by its .proto constant name."""
        try:
            return cls(cls._VALUES_BY_NAME[name])
        except KeyError:
            raise ValueError(
                f'{cls.__name__} has no constant named {name!r}'
            ) from None

    @classmethod
    def members(cls) -> Iterator[tuple[str, 'ProtoEnum']]:
        """Yields (name, value) for every constant, aliases included."""
        for name, value in cls._VALUES_BY_NAME.items():
            yield name, cls(value)

    @property
    def name(self) -> str | None:
        """The first declared constant name for this value, if any."""
        names = self._NAMES_BY_VALUE.get(int(self))
        return names[0] if names else None

    @property
    def names(self) -> tuple[str, ...]:
        """All constant names for this value, in declaration order."""
        return self._NAMES_BY_VALUE.get(int(self), ())

    def is_known(self) -> bool:
        """False for numbers decoded from the wire that have no name."""
        return int(self) in self._NAMES_BY_VALUE

    def __repr__(self) -> str:
        if self.name is None:
            return f'{type(self).__name__}({int(self)})'
        return f'{type(self).__name__}.{self.name}'

    __str__ = __repr__
