"""Register parsed layout definitions as record types."""

import logging

from podinfo.layout.record import Record, RecordType, TupleRecord
from podinfo.layout.scalars import SCALAR_TYPES
from podinfo.layout.types import ScalarKind

from .types import RecordDef, RecordKind, TypeRef, is_scalar

logger = logging.getLogger(__name__)


class RecordBuilder:
    """Build Record and TupleRecord classes from layout definitions.

    Records are built in declaration order; a record may only refer to
    records built before it.
    """

    def __init__(self, module: str = __name__):
        self.module = module
        self.records: dict[str, type] = {}

    def resolve_type(self, t: TypeRef) -> type:
        """Resolve a type reference to a describable ctypes type."""
        if is_scalar(t):
            resolved: type = SCALAR_TYPES[ScalarKind(t.name)]
        else:
            resolved = self.records[t.name]

        for length in t.dims:
            resolved = resolved * length
        return resolved

    def build_record(self, record: RecordDef) -> type:
        """Build and remember the class for one definition."""
        namespace: dict = {"__module__": self.module, "__qualname__": record.name}

        if record.kind == RecordKind.TUPLE:
            base: type = TupleRecord
            namespace["_members_"] = tuple(self.resolve_type(m.type) for m in record.members)
        else:
            base = Record
            namespace["_members_"] = tuple(
                (m.name, self.resolve_type(m.type)) for m in record.members
            )

        cls = RecordType(record.name, (base,), namespace, pack=record.pack)
        logger.debug("Built %s %s from definition", record.kind, record.name)

        self.records[record.name] = cls
        return cls

    def build(self, records: list[RecordDef]) -> dict[str, type]:
        for record in records:
            self.build_record(record)
        return dict(self.records)


def build_records(records: list[RecordDef]) -> dict[str, type]:
    """Build record classes for parsed definitions, keyed by name."""
    return RecordBuilder().build(records)
