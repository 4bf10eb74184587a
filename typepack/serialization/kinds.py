"""Wire kinds for typepack serialization."""

from enum import IntEnum
from typing import Dict


class WireKind(IntEnum):
    """Encoding categories. The value is the kind byte used in type literals."""

    INT8 = 0x01
    UINT8 = 0x02
    INT16 = 0x03
    UINT16 = 0x04
    INT32 = 0x05
    UINT32 = 0x06
    INT64 = 0x07
    UINT64 = 0x08
    BOOL = 0x09
    CHAR = 0x0A
    FLOAT32 = 0x0B
    FLOAT64 = 0x0C
    MONOSTATE = 0x0D
    STRING = 0x10
    ARRAY = 0x11
    MAP = 0x12
    SET = 0x13
    CONTAINER = 0x14
    OPTIONAL = 0x15
    VARIANT = 0x16
    RECORD = 0x17
    RECORD_END = 0xFF


# struct format characters, always used with "<".
SCALAR_FORMATS: Dict[WireKind, str] = {
    WireKind.INT8: "b",
    WireKind.UINT8: "B",
    WireKind.INT16: "h",
    WireKind.UINT16: "H",
    WireKind.INT32: "i",
    WireKind.UINT32: "I",
    WireKind.INT64: "q",
    WireKind.UINT64: "Q",
    WireKind.BOOL: "?",
    WireKind.CHAR: "c",
    WireKind.FLOAT32: "f",
    WireKind.FLOAT64: "d",
}

SCALAR_SIZES: Dict[WireKind, int] = {
    WireKind.INT8: 1,
    WireKind.UINT8: 1,
    WireKind.INT16: 2,
    WireKind.UINT16: 2,
    WireKind.INT32: 4,
    WireKind.UINT32: 4,
    WireKind.INT64: 8,
    WireKind.UINT64: 8,
    WireKind.BOOL: 1,
    WireKind.CHAR: 1,
    WireKind.FLOAT32: 4,
    WireKind.FLOAT64: 8,
}

INTEGER_KINDS = frozenset({
    WireKind.INT8,
    WireKind.UINT8,
    WireKind.INT16,
    WireKind.UINT16,
    WireKind.INT32,
    WireKind.UINT32,
    WireKind.INT64,
    WireKind.UINT64,
})

FLOAT_KINDS = frozenset({WireKind.FLOAT32, WireKind.FLOAT64})

# Scalars that can be written with a single repeated struct format.
BULK_KINDS = INTEGER_KINDS | FLOAT_KINDS | {WireKind.BOOL}

SIZE_PREFIX_FORMAT = "<I"
SIZE_PREFIX_SIZE = 4
TYPE_CODE_FORMAT = "<I"
TYPE_CODE_SIZE = 4
TOTAL_LENGTH_FORMAT = "<Q"
TOTAL_LENGTH_SIZE = 8
PRESENCE_SIZE = 1
MAX_SIZE = 0xFFFFFFFF

# Element count limit for containers of zero-byte elements such as Monostate.
MAX_EMPTY_ELEMENTS = 1 << 16

# Variants with up to this many alternatives use a one-byte index.
SMALL_VARIANT_LIMIT = 256


def variant_index_size(alternative_count: int) -> int:
    """Get the width of the active-index tag for a variant."""
    return 1 if alternative_count <= SMALL_VARIANT_LIMIT else 4


def is_scalar(kind: WireKind) -> bool:
    return kind in SCALAR_FORMATS
