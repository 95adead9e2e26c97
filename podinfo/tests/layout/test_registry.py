"""Tests for the describe() registry."""

import ctypes

import pytest

from podinfo.layout import scalars
from podinfo.layout.registry import (
    Describable,
    NotDescribableError,
    derive,
    describe,
    is_describable,
)
from podinfo.layout.types import (
    FLOAT32,
    FLOAT64,
    INT8,
    INT16,
    INT32,
    UINT8,
    UINT16,
    UINT32,
    UINT64,
    Array,
    Compound,
    Scalar,
    ScalarKind,
    compound,
)


class MessageMeta(ctypes.Structure):
    _fields_ = [
        ("message_id", ctypes.c_uint64),
        ("timestamp_ns", ctypes.c_uint64),
        ("channel_id", ctypes.c_uint32),
        ("message_type", ctypes.c_uint32),
        ("sender_pid", ctypes.c_uint32),
        ("sender_runtime", ctypes.c_uint16),
        ("flags", ctypes.c_uint16),
        ("payload_len", ctypes.c_uint32),
    ]


class Flags(ctypes.Structure):
    _fields_ = [("ready", ctypes.c_uint8, 1), ("error", ctypes.c_uint8, 1)]


class Either(ctypes.Union):
    _fields_ = [("i", ctypes.c_int32), ("f", ctypes.c_float)]


def describe_scalar_types():
    def round_trips_every_kind(expect):
        for kind, tp in scalars.SCALAR_TYPES.items():
            ty = describe(tp)
            expect(ty) == Scalar(kind)
            expect(ty.size()) == ctypes.sizeof(tp)
            expect(ty.is_scalar()) == True
            expect(ty.is_array() or ty.is_tuple() or ty.is_compound()) == False

    def answers_without_instance(expect):
        expect(scalars.UInt16.describe()) == UINT16
        expect(isinstance(scalars.UInt16, Describable)) == True

    def keeps_pointer_sized_kinds_distinct(expect):
        expect(describe(scalars.USize).kind) == ScalarKind.USIZE
        expect(describe(scalars.ISize).kind) == ScalarKind.ISIZE

    def stores_as_plain_ctypes(expect):
        expect(scalars.Int32.storage_type()) == ctypes.c_int32
        expect(scalars.Char.storage_type()) == ctypes.c_wchar


def describe_plain_ctypes():
    def maps_fixed_width_types(expect):
        expect(describe(ctypes.c_int8)) == INT8
        expect(describe(ctypes.c_int16)) == INT16
        expect(describe(ctypes.c_int32)) == INT32
        expect(describe(ctypes.c_uint8)) == UINT8
        expect(describe(ctypes.c_uint64)) == UINT64
        expect(describe(ctypes.c_float)) == FLOAT32
        expect(describe(ctypes.c_double)) == FLOAT64
        expect(describe(ctypes.c_bool).kind) == ScalarKind.BOOL
        expect(describe(ctypes.c_wchar).kind) == ScalarKind.CHAR

    def maps_c_names_by_width(expect):
        for ctype in (ctypes.c_short, ctypes.c_int, ctypes.c_long, ctypes.c_longlong):
            expect(describe(ctype).size()) == ctypes.sizeof(ctype)
            expect(describe(ctype).kind.startswith("int")) == True
        for ctype in (ctypes.c_ushort, ctypes.c_uint, ctypes.c_ulong, ctypes.c_size_t):
            expect(describe(ctype).size()) == ctypes.sizeof(ctype)
            expect(describe(ctype).kind.startswith("uint")) == True

    def treats_c_char_as_int8(expect):
        expect(describe(ctypes.c_char)) == INT8


def describe_arrays():
    def wraps_element(expect):
        ty = describe(scalars.UInt16 * 42)
        expect(ty) == Array(UINT16, 42)
        expect(ty.size()) == 2 * 42
        expect(ty.is_array()) == True

    def nests(expect):
        ty = describe((scalars.Int8 * 2) * 3)
        expect(ty) == Array(Array(INT8, 2), 3)
        expect(ty.size()) == 1 * 2 * 3

    def allows_zero_length(expect):
        ty = describe(scalars.Int32 * 0)
        expect(ty) == Array(INT32, 0)
        expect(ty.size()) == 0

    def supports_long_arrays(expect):
        ty = describe(ctypes.c_uint8 * 4096)
        expect(ty.length) == 4096
        expect(ty.size()) == ctypes.sizeof(ctypes.c_uint8 * 4096)


def describe_foreign_structures():
    def derives_platform_layout(expect):
        ty = describe(MessageMeta)
        expect(ty.size()) == ctypes.sizeof(MessageMeta)
        expect(ty.field_names()) == [
            "message_id",
            "timestamp_ns",
            "channel_id",
            "message_type",
            "sender_pid",
            "sender_runtime",
            "flags",
            "payload_len",
        ]
        expect([f.offset for f in ty.fields]) == [0, 8, 16, 20, 24, 28, 30, 32]
        expect(ty.field("channel_id").type) == UINT32
        expect(ty.field("sender_runtime").type) == UINT16

    def resolves_nested_structures(expect):
        class SlotHeader(ctypes.Structure):
            _fields_ = [("meta", MessageMeta), ("slots", MessageMeta * 2)]

        ty = derive(SlotHeader)
        meta = describe(MessageMeta)
        expect(ty) == compound(
            [(meta, "meta", 0), (Array(meta, 2), "slots", ctypes.sizeof(MessageMeta))],
            ctypes.sizeof(SlotHeader),
        )

    def returns_fresh_equal_descriptors(expect):
        first = describe(MessageMeta)
        second = describe(MessageMeta)
        expect(first == second) == True
        expect(first is second) == False

    def derives_unit_structures(expect):
        class Nothing(ctypes.Structure):
            _fields_ = []

        expect(describe(Nothing)) == Compound((), ctypes.sizeof(Nothing))

    def ignores_instance_describe_methods(expect):
        class Report(ctypes.Structure):
            _fields_ = [("code", ctypes.c_int16)]

            def describe(self):
                return f"code {self.code}"

        expect(describe(Report)) == compound([(INT16, "code", 0)], 2)
        expect(is_describable(Report)) == True


def describe_rejections():
    @pytest.mark.parametrize(
        "tp",
        [
            ctypes.c_char_p,
            ctypes.c_void_p,
            ctypes.c_wchar_p,
            ctypes.POINTER(ctypes.c_int32),
            Either,
            int,
            float,
        ],
    )
    def rejects_non_pod_types(tp):
        with pytest.raises(NotDescribableError):
            describe(tp)

    def rejects_non_types():
        with pytest.raises(NotDescribableError):
            describe(ctypes.c_int32(5))

    def rejects_bit_fields(expect):
        with pytest.raises(NotDescribableError) as exinfo:
            describe(Flags)
        expect("bit field" in str(exinfo.value)) == True

    def rejects_arrays_of_pointers():
        with pytest.raises(NotDescribableError):
            describe(ctypes.c_char_p * 4)

    def derive_requires_structure():
        with pytest.raises(NotDescribableError):
            derive(ctypes.c_int32)

    def rejects_scalar_mixin_without_kind(expect):
        with pytest.raises(NotDescribableError):
            describe(scalars.ScalarType)
        expect(is_describable(scalars.ScalarType)) == False

    def is_a_type_error(expect):
        expect(issubclass(NotDescribableError, TypeError)) == True


def describe_is_describable():
    def checks_without_raising(expect):
        expect(is_describable(MessageMeta)) == True
        expect(is_describable(scalars.Float32 * 3)) == True
        expect(is_describable(ctypes.c_void_p)) == False
        expect(is_describable("int32")) == False
