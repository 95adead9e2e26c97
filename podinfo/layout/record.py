"""Record declaration: named and positional plain-old-data structures.

Declaring a subclass of Record or TupleRecord registers its layout with
ctypes and validates that every field type is describable, so describe()
cannot fail once the class statement has run.

Example:
    class Sample(Record):
        tag: UInt8
        value: Float64

    class Header(Record, packed=True):
        magic: UInt8 * 4
        length: UInt64

    class Pair(TupleRecord):
        _members_ = (Int32, Float64)
"""

import ctypes
import inspect
import logging
from collections.abc import Iterable
from typing import Any, ClassVar, get_origin

from .registry import derive, is_describable
from .scalars import ScalarType
from .types import Compound, Tuple

logger = logging.getLogger(__name__)

_RESERVED_NAMES = frozenset(["describe"])


class DeclarationError(TypeError):
    """Raised when a record declaration cannot be registered."""


def is_reserved_name(name: str) -> bool:
    """Check if a field name clashes with record or ctypes machinery.

    Sunder and dunder names (_fields_, _pack_, __len__, ...) belong to
    ctypes and the record metaclass.
    """
    if name in _RESERVED_NAMES:
        return True
    return len(name) > 1 and name.startswith("_") and name.endswith("_")


def _storage_type(tp: Any) -> Any:
    """Map a declared field type to the plain ctypes type it is stored as."""
    if isinstance(tp, type) and issubclass(tp, ScalarType):
        return tp.storage_type()
    if isinstance(tp, type) and issubclass(tp, ctypes.Array):
        return _storage_type(tp._type_) * tp._length_
    return tp


def _field_names(classes: Iterable[type]) -> list[str]:
    return [entry[0] for klass in classes for entry in vars(klass).get("_fields_", ())]


def _resolve_pack(name: str, packed: bool, pack: int | None) -> int | None:
    if pack is None:
        return 1 if packed else None
    if packed and pack != 1:
        raise DeclarationError(f"{name}: packed=True conflicts with pack={pack}")
    if not isinstance(pack, int) or pack < 1 or pack & (pack - 1):
        raise DeclarationError(f"{name}: pack must be a positive power of two, got {pack!r}")
    return pack


def _is_class_var(annotation: Any) -> bool:
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _is_declared_record(bases: tuple[type, ...]) -> bool:
    return any(isinstance(base, RecordType) for base in bases)


class RecordType(type(ctypes.Structure)):
    """Metaclass turning record declarations into ctypes structures."""

    def __new__(
        mcls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        *,
        packed: bool = False,
        pack: int | None = None,
    ):
        if not _is_declared_record(bases):
            return super().__new__(mcls, name, bases, namespace)

        if "_fields_" in namespace:
            raise DeclarationError(
                f"{name}: declare fields with annotations or _members_, not _fields_"
            )

        pack = _resolve_pack(name, packed, pack)
        if pack is not None:
            namespace["_pack_"] = pack
            namespace["_layout_"] = "ms"

        return super().__new__(mcls, name, bases, namespace)

    def __init__(
        cls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        **kwargs: Any,
    ):
        super().__init__(name, bases, namespace)
        if not _is_declared_record(bases):
            return

        members = cls._declared_members(namespace)
        cls._validate_members(members, namespace)

        cls._declared_ = tuple(members)
        cls._fields_ = [(field_name, _storage_type(tp)) for field_name, tp in members]

        logger.debug(
            "Registered %s with %d field(s), %d bytes", name, len(members), ctypes.sizeof(cls)
        )

    def _annotations(cls) -> dict[str, Any]:
        try:
            annotations = inspect.get_annotations(cls, eval_str=True)
        except NameError as exc:
            raise DeclarationError(f"{cls.__name__}: cannot resolve annotation: {exc}") from exc
        return {name: tp for name, tp in annotations.items() if not _is_class_var(tp)}

    def _declared_members(cls, namespace: dict[str, Any]) -> list[tuple[str, Any]]:
        annotations = cls._annotations()
        declared = namespace.get("_members_")

        if getattr(cls, "_positional_", False):
            if annotations:
                raise DeclarationError(
                    f"{cls.__name__}: tuple records declare members positionally in _members_"
                )
            start = len(_field_names(cls.__mro__[1:]))
            return [(f"_{start + i}", tp) for i, tp in enumerate(declared or ())]

        if declared is None:
            return list(annotations.items())

        if annotations:
            raise DeclarationError(
                f"{cls.__name__}: declare fields with annotations or _members_, not both"
            )
        try:
            return [(field_name, tp) for field_name, tp in declared]
        except (TypeError, ValueError) as exc:
            raise DeclarationError(f"{cls.__name__}: _members_ must hold (name, type) pairs") from exc

    def _validate_members(cls, members: list[tuple[str, Any]], namespace: dict[str, Any]) -> None:
        seen = set(_field_names(cls.__mro__[1:]))

        for field_name, tp in members:
            if not isinstance(field_name, str) or not field_name.isidentifier():
                raise DeclarationError(f"{cls.__name__}: invalid field name {field_name!r}")

            qualified = f"{cls.__name__}.{field_name}"
            if is_reserved_name(field_name):
                raise DeclarationError(f"{qualified}: the name is reserved")
            if field_name in seen:
                raise DeclarationError(f"{qualified}: duplicate field name")
            if field_name in namespace:
                raise DeclarationError(f"{qualified}: field defaults are not supported")
            if not is_describable(tp):
                raise DeclarationError(f"{qualified}: {tp!r} is not a describable type")
            seen.add(field_name)


class Record(ctypes.Structure, metaclass=RecordType):
    """Base class for records with named fields.

    Subclasses declare fields with annotations in layout order, or with a
    _members_ sequence of (name, type) pairs. Pass packed=True or pack=N as
    class keywords to change the representation.
    """

    _declared_: ClassVar[tuple[tuple[str, Any], ...]] = ()

    @classmethod
    def describe(cls) -> Compound:
        return derive(cls)

    def __repr__(self) -> str:
        names = _field_names(reversed(type(self).__mro__))
        values = ", ".join(f"{name}={getattr(self, name)!r}" for name in names)
        return f"{type(self).__name__}({values})"


class TupleRecord(ctypes.Structure, metaclass=RecordType):
    """Base class for records with positional fields.

    Subclasses list their field types in _members_. Fields are stored as
    _0, _1, ... and can be read by index.
    """

    _positional_: ClassVar[bool] = True
    _declared_: ClassVar[tuple[tuple[str, Any], ...]] = ()

    @classmethod
    def describe(cls) -> Tuple:
        return derive(cls)

    def __len__(self) -> int:
        return len(_field_names(type(self).__mro__))

    def __getitem__(self, index: int) -> Any:
        length = len(self)
        if not -length <= index < length:
            raise IndexError(f"{type(self).__name__} index out of range")
        return getattr(self, f"_{index % length}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(repr(v) for v in self)})"
