"""Layout definition parser using Lark."""

import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark
from lark.visitors import Transformer

from podinfo.layout.record import is_reserved_name

from .types import (
    AnnotationDef,
    MemberDef,
    RecordDef,
    RecordKind,
    TypeRef,
    is_scalar,
    scalar_names,
)

_g_parser: Lark | None = None

ANNOTATIONS = frozenset(["packed", "pack"])


class ValidationError(RuntimeError):
    """Raised when layout definition validation fails."""


@dataclass
class _Array:
    value: int


@dataclass
class _Name:
    value: str


@dataclass
class _Number:
    value: int


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")

    if hasattr(filtered[0], "value"):
        return filtered[0].value
    return filtered[0]


class TreeTransformer(Transformer):
    """Transform parse tree into layout definitions."""

    def start(self, args: list[Any]) -> list[RecordDef]:
        return _filter(args, RecordDef)

    def annotation(self, args: list[Any]) -> AnnotationDef:
        return AnnotationDef(name=_find_one(args, _Name), argument=_find_one(args, _Number))

    def array(self, args: list[Any]) -> _Array:
        return _Array(value=int(args[0]))

    def member(self, args: list[Any]) -> MemberDef:
        return MemberDef(name=_find_one(args, _Name), type=_find_one(args, TypeRef))

    def name(self, args: list[Any]) -> _Name:
        return _Name(value=str(args[0]))

    def number(self, args: list[Any]) -> _Number:
        return _Number(value=int(args[0]))

    def struct(self, args: list[Any]) -> RecordDef:
        return RecordDef(
            name=_find_one(args, _Name),
            kind=RecordKind.STRUCT,
            members=_filter(args, MemberDef),
            annotations=_filter(args, AnnotationDef),
        )

    def tuple(self, args: list[Any]) -> RecordDef:
        return RecordDef(
            name=_find_one(args, _Name),
            kind=RecordKind.TUPLE,
            members=[MemberDef(name=None, type=t) for t in _filter(args, TypeRef)],
            annotations=_filter(args, AnnotationDef),
        )

    def type(self, args: list[Any]) -> TypeRef:
        return TypeRef(
            name=_find_one(args, _Name),
            dims=[a.value for a in _filter(args, _Array)],
        )


def _validate_annotations(record: RecordDef) -> None:
    names = [a.name for a in record.annotations]
    for annotation in record.annotations:
        if annotation.name not in ANNOTATIONS:
            raise ValidationError(f"{record.name}: unknown annotation @{annotation.name}")

    if len(names) != len(set(names)) or {"packed", "pack"} <= set(names):
        raise ValidationError(f"{record.name}: conflicting packing annotations")

    for annotation in record.annotations:
        if annotation.name == "packed" and annotation.argument is not None:
            raise ValidationError(f"{record.name}: @packed takes no argument, use @pack(N)")
        if annotation.name == "pack":
            pack = annotation.argument
            if pack is None or pack < 1 or pack & (pack - 1):
                raise ValidationError(
                    f"{record.name}: @pack needs a power of two argument, got {pack}"
                )


def validate(records: list[RecordDef]) -> None:
    """Validate parsed layout definitions.

    Records may only refer to scalars and to records declared before them,
    which also rules out self-referential records.
    """
    declared: set[str] = set()

    for record in records:
        if record.name in declared:
            raise ValidationError(f"{record.name} is declared more than once")
        if is_scalar(TypeRef(record.name, [])):
            raise ValidationError(f"{record.name} shadows a scalar type")

        _validate_annotations(record)

        member_names: set[str] = set()
        for member in record.members:
            if member.name is not None:
                if is_reserved_name(member.name):
                    raise ValidationError(f"{record.name}.{member.name} uses a reserved name")
                if member.name in member_names:
                    raise ValidationError(f"{record.name}.{member.name} is declared more than once")
                member_names.add(member.name)

            t = member.type
            if not is_scalar(t) and t.name not in declared:
                known = ", ".join(scalar_names())
                raise ValidationError(
                    f"{record.name}: unknown type {t.name} "
                    f"(use a scalar [{known}] or a record declared earlier)"
                )

        declared.add(record.name)


def parse(text: str) -> list[RecordDef]:
    """Parse a layout definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/layoutdef.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar)

    tree = _g_parser.parse(text)
    records = TreeTransformer().transform(tree)

    validate(records)

    return records
