"""Describable scalar types.

Each class is a ctypes simple type, so it can be used directly as a record
field or array element, and answers describe() with its scalar descriptor.
"""

import ctypes
from typing import ClassVar

from .registry import NotDescribableError
from .types import Scalar, ScalarKind


class ScalarType:
    """Mixin wiring a ctypes simple type to a scalar kind."""

    __slots__ = ()

    _kind_: ClassVar[ScalarKind]

    @classmethod
    def describe(cls) -> Scalar:
        kind = getattr(cls, "_kind_", None)
        if kind is None:
            raise NotDescribableError(f"{cls.__name__} has no scalar kind")
        return Scalar(kind)

    @classmethod
    def storage_type(cls) -> type:
        """The plain ctypes type values are stored as."""
        return next(base for base in cls.__mro__ if not issubclass(base, ScalarType))


class Int8(ScalarType, ctypes.c_int8):
    _kind_ = ScalarKind.INT8


class Int16(ScalarType, ctypes.c_int16):
    _kind_ = ScalarKind.INT16


class Int32(ScalarType, ctypes.c_int32):
    _kind_ = ScalarKind.INT32


class Int64(ScalarType, ctypes.c_int64):
    _kind_ = ScalarKind.INT64


class ISize(ScalarType, ctypes.c_ssize_t):
    _kind_ = ScalarKind.ISIZE


class UInt8(ScalarType, ctypes.c_uint8):
    _kind_ = ScalarKind.UINT8


class UInt16(ScalarType, ctypes.c_uint16):
    _kind_ = ScalarKind.UINT16


class UInt32(ScalarType, ctypes.c_uint32):
    _kind_ = ScalarKind.UINT32


class UInt64(ScalarType, ctypes.c_uint64):
    _kind_ = ScalarKind.UINT64


class USize(ScalarType, ctypes.c_size_t):
    _kind_ = ScalarKind.USIZE


class Float32(ScalarType, ctypes.c_float):
    _kind_ = ScalarKind.FLOAT32


class Float64(ScalarType, ctypes.c_double):
    _kind_ = ScalarKind.FLOAT64


class Bool(ScalarType, ctypes.c_bool):
    _kind_ = ScalarKind.BOOL


class Char(ScalarType, ctypes.c_wchar):
    _kind_ = ScalarKind.CHAR


SCALAR_TYPES: dict[ScalarKind, type[ScalarType]] = {
    t._kind_: t
    for t in (
        Int8,
        Int16,
        Int32,
        Int64,
        ISize,
        UInt8,
        UInt16,
        UInt32,
        UInt64,
        USize,
        Float32,
        Float64,
        Bool,
        Char,
    )
}
