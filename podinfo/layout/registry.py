"""Describability capability and the record derivation algorithm.

A type is describable when describe() can produce its layout descriptor
without an instance. Scalar and record types answer for themselves; ctypes
arrays, foreign ctypes structures and plain ctypes scalars are handled here.
"""

import ctypes
import inspect
from collections.abc import Iterator
from typing import Any, Protocol, runtime_checkable

from .types import (
    Array,
    Compound,
    Descriptor,
    Field,
    PositionalField,
    Scalar,
    ScalarKind,
    Tuple,
)


class NotDescribableError(TypeError):
    """Raised when a type has no fixed plain-old-data layout."""


@runtime_checkable
class Describable(Protocol):
    """A type that can describe its own layout."""

    @classmethod
    def describe(cls) -> Descriptor: ...


def _describes_itself(tp: type) -> bool:
    # An instance method named describe on a foreign structure does not count
    if not isinstance(tp, Describable):
        return False
    method = tp.describe
    return inspect.ismethod(method) and method.__self__ is tp


_SIGNED_CODES = frozenset("bhilq")
_UNSIGNED_CODES = frozenset("BHILQ")

_INT_KINDS: dict[tuple[bool, int], ScalarKind] = {
    (True, 1): ScalarKind.INT8,
    (True, 2): ScalarKind.INT16,
    (True, 4): ScalarKind.INT32,
    (True, 8): ScalarKind.INT64,
    (False, 1): ScalarKind.UINT8,
    (False, 2): ScalarKind.UINT16,
    (False, 4): ScalarKind.UINT32,
    (False, 8): ScalarKind.UINT64,
}

# Map ctypes format codes with a fixed meaning to scalar kinds
_CODE_KINDS: dict[str, ScalarKind] = {
    "f": ScalarKind.FLOAT32,
    "d": ScalarKind.FLOAT64,
    "?": ScalarKind.BOOL,
    "u": ScalarKind.CHAR,
    "c": ScalarKind.INT8,
}


def _scalar_kind(ctype: type) -> ScalarKind:
    """Map a plain ctypes simple type to a scalar kind."""
    code = getattr(ctype, "_type_", None)
    if not isinstance(code, str):
        raise NotDescribableError(f"{ctype.__name__} is not a scalar type")

    if code in _CODE_KINDS:
        return _CODE_KINDS[code]

    if code in _SIGNED_CODES or code in _UNSIGNED_CODES:
        key = (code in _SIGNED_CODES, ctypes.sizeof(ctype))
        if key in _INT_KINDS:
            return _INT_KINDS[key]

    # Pointers (P, z, Z), object references (O), long double (g)
    raise NotDescribableError(f"{ctype.__name__} has no fixed plain-old-data layout")


def _layout_members(cls: type[ctypes.Structure]) -> Iterator[tuple[str, Any, int]]:
    """Yield (name, declared type, offset) for every field, base classes first.

    Offsets come from the ctypes field descriptors, never from summing sizes.
    """
    for klass in reversed(cls.__mro__):
        namespace = vars(klass)
        if "_fields_" not in namespace:
            continue

        declared = dict(namespace.get("_declared_", ()))
        for entry in namespace["_fields_"]:
            name, storage = entry[0], entry[1]
            if len(entry) > 2:
                raise NotDescribableError(
                    f"{cls.__name__}.{name} is a bit field and has no byte offset"
                )
            yield name, declared.get(name, storage), namespace[name].offset


def derive(cls: type[ctypes.Structure]) -> Tuple | Compound:
    """Derive the descriptor of a ctypes structure from its declared fields.

    The total size is the platform's size of the structure, and each offset
    is the platform's offset of that field, so padding and packing are
    reflected exactly as laid out. Field types are described eagerly.

    Positional records (those with a true _positional_ attribute) derive to
    a Tuple, all other structures to a Compound.
    """
    if not (isinstance(cls, type) and issubclass(cls, ctypes.Structure)):
        raise NotDescribableError(f"{cls!r} is not a structure type")

    members = [(name, describe(t), offset) for name, t, offset in _layout_members(cls)]
    total_size = ctypes.sizeof(cls)

    if getattr(cls, "_positional_", False):
        return Tuple(tuple(PositionalField(t, offset) for _, t, offset in members), total_size)
    return Compound(tuple(Field(t, name, offset) for name, t, offset in members), total_size)


def describe(tp: Any) -> Descriptor:
    """Return the layout descriptor of a type.

    Args:
        tp: A describable type: a scalar or record type from this package,
            a ctypes array, structure or fixed-width simple type.

    Returns:
        A freshly built descriptor tree.

    Raises:
        NotDescribableError: If the type has no fixed plain-old-data layout.
    """
    if not isinstance(tp, type):
        raise NotDescribableError(f"{tp!r} is not a type")

    if _describes_itself(tp):
        return tp.describe()

    if issubclass(tp, ctypes.Array):
        return Array(describe(tp._type_), tp._length_)

    if issubclass(tp, ctypes.Structure):
        return derive(tp)

    if issubclass(tp, ctypes._SimpleCData):
        return Scalar(_scalar_kind(tp))

    raise NotDescribableError(f"{tp.__name__} has no fixed plain-old-data layout")


def is_describable(tp: Any) -> bool:
    """Check if describe() would succeed for a type."""
    try:
        describe(tp)
    except NotDescribableError:
        return False
    return True
