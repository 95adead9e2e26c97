"""Runtime layout descriptors for plain-old-data types.

These dataclasses describe the byte layout of a type: its shape, its
fields and their offsets, and its total size. They are immutable values
compared structurally.
"""

import ctypes
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any


class ShapeKind(StrEnum):
    """Classification of descriptor shapes."""

    SCALAR = auto()
    ARRAY = auto()
    TUPLE = auto()
    COMPOUND = auto()


class ScalarKind(StrEnum):
    """Built-in scalar kinds."""

    INT8 = auto()
    INT16 = auto()
    INT32 = auto()
    INT64 = auto()
    ISIZE = auto()  # pointer-sized
    UINT8 = auto()
    UINT16 = auto()
    UINT32 = auto()
    UINT64 = auto()
    USIZE = auto()  # pointer-sized
    FLOAT32 = auto()
    FLOAT64 = auto()
    BOOL = auto()
    CHAR = auto()  # platform wide character


# Scalar sizes in bytes
SCALAR_SIZES: dict[ScalarKind, int] = {
    ScalarKind.INT8: 1,
    ScalarKind.UINT8: 1,
    ScalarKind.BOOL: 1,
    ScalarKind.INT16: 2,
    ScalarKind.UINT16: 2,
    ScalarKind.INT32: 4,
    ScalarKind.UINT32: 4,
    ScalarKind.FLOAT32: 4,
    ScalarKind.INT64: 8,
    ScalarKind.UINT64: 8,
    ScalarKind.FLOAT64: 8,
    ScalarKind.ISIZE: ctypes.sizeof(ctypes.c_ssize_t),
    ScalarKind.USIZE: ctypes.sizeof(ctypes.c_size_t),
    ScalarKind.CHAR: ctypes.sizeof(ctypes.c_wchar),
}


def _check_non_negative(what: str, value: int) -> None:
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")


class Descriptor:
    """Base class for layout descriptors."""

    __slots__ = ()

    def size(self) -> int:
        """Total size of a value of the described type in bytes."""
        raise NotImplementedError

    def shape_kind(self) -> ShapeKind:
        raise NotImplementedError

    def is_scalar(self) -> bool:
        return self.shape_kind() == ShapeKind.SCALAR

    def is_array(self) -> bool:
        return self.shape_kind() == ShapeKind.ARRAY

    def is_tuple(self) -> bool:
        return self.shape_kind() == ShapeKind.TUPLE

    def is_compound(self) -> bool:
        return self.shape_kind() == ShapeKind.COMPOUND

    def to_dict(self) -> dict[str, Any]:
        """Render the descriptor as a JSON-ready dictionary."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Scalar(Descriptor):
    """A fixed-width scalar."""

    kind: ScalarKind

    def size(self) -> int:
        return SCALAR_SIZES[self.kind]

    def shape_kind(self) -> ShapeKind:
        return ShapeKind.SCALAR

    def to_dict(self) -> dict[str, Any]:
        return {"shape": ShapeKind.SCALAR.value, "kind": self.kind.value, "size": self.size()}

    def __str__(self) -> str:
        return self.kind.value


@dataclass(frozen=True, slots=True)
class Array(Descriptor):
    """A fixed-length homogeneous sequence."""

    element: Descriptor
    length: int

    def __post_init__(self) -> None:
        _check_non_negative("array length", self.length)

    def size(self) -> int:
        return self.element.size() * self.length

    def shape_kind(self) -> ShapeKind:
        return ShapeKind.ARRAY

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": ShapeKind.ARRAY.value,
            "element": self.element.to_dict(),
            "length": self.length,
            "size": self.size(),
        }

    def __str__(self) -> str:
        return f"{self.element}[{self.length}]"


@dataclass(frozen=True, slots=True)
class PositionalField:
    """An unnamed field of a tuple: its type and offset from the start."""

    type: Descriptor
    offset: int

    def __post_init__(self) -> None:
        _check_non_negative("field offset", self.offset)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.to_dict(), "offset": self.offset}


@dataclass(frozen=True, slots=True)
class Field:
    """A named field of a compound: its type, name and offset from the start."""

    type: Descriptor
    name: str
    offset: int

    def __post_init__(self) -> None:
        _check_non_negative("field offset", self.offset)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type.to_dict(), "offset": self.offset}


@dataclass(frozen=True, slots=True)
class Tuple(Descriptor):
    """A record with positional fields.

    total_size is the platform's size of the record, which may exceed the
    sum of the field sizes when padding is present.
    """

    fields: tuple[PositionalField, ...]
    total_size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        _check_non_negative("total size", self.total_size)

    def size(self) -> int:
        return self.total_size

    def shape_kind(self) -> ShapeKind:
        return ShapeKind.TUPLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": ShapeKind.TUPLE.value,
            "fields": [f.to_dict() for f in self.fields],
            "size": self.total_size,
        }

    def __str__(self) -> str:
        return "(" + ", ".join(str(f.type) for f in self.fields) + ")"


@dataclass(frozen=True, slots=True)
class Compound(Descriptor):
    """A record with named fields, in declaration order.

    total_size is the platform's size of the record, which may exceed the
    sum of the field sizes when padding is present.
    """

    fields: tuple[Field, ...]
    total_size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        _check_non_negative("total size", self.total_size)

    def size(self) -> int:
        return self.total_size

    def shape_kind(self) -> ShapeKind:
        return ShapeKind.COMPOUND

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> Field:
        """Look up a field by name.

        Raises:
            KeyError: If no field has that name.
        """
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "shape": ShapeKind.COMPOUND.value,
            "fields": [f.to_dict() for f in self.fields],
            "size": self.total_size,
        }

    def __str__(self) -> str:
        return "{" + ", ".join(f"{f.name}: {f.type}" for f in self.fields) + "}"


def compound(fields: Iterable[tuple[Descriptor, str, int]], total_size: int) -> Compound:
    """Build a Compound from (type, name, offset) triples."""
    return Compound(tuple(Field(t, name, offset) for t, name, offset in fields), total_size)


INT8 = Scalar(ScalarKind.INT8)
INT16 = Scalar(ScalarKind.INT16)
INT32 = Scalar(ScalarKind.INT32)
INT64 = Scalar(ScalarKind.INT64)
ISIZE = Scalar(ScalarKind.ISIZE)
UINT8 = Scalar(ScalarKind.UINT8)
UINT16 = Scalar(ScalarKind.UINT16)
UINT32 = Scalar(ScalarKind.UINT32)
UINT64 = Scalar(ScalarKind.UINT64)
USIZE = Scalar(ScalarKind.USIZE)
FLOAT32 = Scalar(ScalarKind.FLOAT32)
FLOAT64 = Scalar(ScalarKind.FLOAT64)
BOOL = Scalar(ScalarKind.BOOL)
CHAR = Scalar(ScalarKind.CHAR)
