"""Type definitions for layout definition files."""

from dataclasses import dataclass
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from podinfo.layout.types import ScalarKind


class RecordKind(StrEnum):
    """Declaration shape of a record."""

    STRUCT = auto()
    TUPLE = auto()


@dataclass
class TypeRef(DataClassJsonMixin):
    """Reference to a scalar or previously declared record type.

    Each entry in dims wraps the type so far in a fixed-size array, so
    int8[2][3] has dims [2, 3] and means three arrays of two int8.
    """

    name: str
    dims: list[int]

    def __str__(self) -> str:
        return self.name + "".join(f"[{n}]" for n in self.dims)


@dataclass
class AnnotationDef(DataClassJsonMixin):
    """Represents an annotation on a record, such as @packed or @pack(2)."""

    name: str
    argument: int | None


@dataclass
class MemberDef(DataClassJsonMixin):
    """Represents a member of a record. Tuple members have no name."""

    name: str | None
    type: TypeRef


@dataclass
class RecordDef(DataClassJsonMixin):
    """Represents a struct or tuple definition."""

    name: str
    kind: RecordKind
    members: list[MemberDef]
    annotations: list[AnnotationDef]

    @property
    def pack(self) -> int | None:
        """Packing requested by annotations, or None for the default layout."""
        for annotation in self.annotations:
            if annotation.name == "packed":
                return 1
            if annotation.name == "pack":
                return annotation.argument
        return None


SCALAR_NAMES = frozenset(kind.value for kind in ScalarKind)


def scalar_names() -> list[str]:
    """Return a list of scalar type names."""
    return sorted(SCALAR_NAMES)


def is_scalar(t: TypeRef) -> bool:
    """Check if a type reference names a scalar type."""
    return t.name in SCALAR_NAMES
