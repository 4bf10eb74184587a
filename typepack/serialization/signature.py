"""Type signatures and type codes.

A type literal is a deterministic byte rendering of a wire type tree. The
type code written at the front of every message is a 32-bit MD5-derived
hash of the concatenated literals of the call's argument types. Its low
bit flags that a ``Compatible[T]`` field is present somewhere in the
arguments, in which case an 8-byte total length follows the code.
"""

import hashlib
import struct
from typing import Sequence

from typepack.exceptions import CompatiblePlacementException
from typepack.serialization.classifier import WireType
from typepack.serialization.kinds import WireKind

COMPATIBLE_FLAG = 0x1

SCAN_NONE = 0
SCAN_COMPATIBLE = 1
SCAN_DISALLOWED = -1


def hash32(data: bytes) -> int:
    """Hash bytes to 32 bits: the first four MD5 digest bytes, big-endian."""
    return int.from_bytes(hashlib.md5(data).digest()[:4], "big")


def type_literal(wire_type: WireType) -> bytes:
    """Render the structural signature of a wire type.

    Args:
        wire_type: The resolved type.

    Returns:
        The type literal bytes.
    """
    out = bytearray()
    _write_literal(out, wire_type)
    return bytes(out)


def _write_literal(out: bytearray, wire_type: WireType) -> None:
    kind = wire_type.kind
    out.append(kind)
    if kind in (WireKind.OPTIONAL, WireKind.STRING, WireKind.SET, WireKind.CONTAINER):
        _write_literal(out, wire_type.element)
    elif kind is WireKind.MAP:
        _write_literal(out, wire_type.children[0])
        _write_literal(out, wire_type.children[1])
    elif kind is WireKind.ARRAY:
        _write_literal(out, wire_type.element)
        out += struct.pack(">Q", wire_type.length)
    elif kind is WireKind.VARIANT:
        for alternative in wire_type.children:
            _write_literal(out, alternative)
        out.append(WireKind.RECORD_END)
    elif kind is WireKind.RECORD:
        for field_type in wire_type.children:
            # Compatible fields may be added or dropped without changing the code.
            if not field_type.compatible:
                _write_literal(out, field_type)
        out.append(WireKind.RECORD_END)


def scan_compatible(wire_types: Sequence[WireType]) -> int:
    """Check where compatible fields occur in a call's argument types.

    Returns:
        ``SCAN_NONE`` if there are none, ``SCAN_COMPATIBLE`` if all of them
        are at permitted positions, ``SCAN_DISALLOWED`` otherwise.
    """
    found = False
    last = len(wire_types) - 1
    for i, wire_type in enumerate(wire_types):
        if wire_type.compatible:
            return SCAN_DISALLOWED
        result = _scan(wire_type, i == last)
        if result == SCAN_DISALLOWED:
            return SCAN_DISALLOWED
        found = found or result == SCAN_COMPATIBLE
    return SCAN_COMPATIBLE if found else SCAN_NONE


def _scan(wire_type: WireType, trailing: bool) -> int:
    if wire_type.kind is not WireKind.RECORD:
        for child in wire_type.children:
            if child.compatible or _scan(child, False) != SCAN_NONE:
                return SCAN_DISALLOWED
        return SCAN_NONE

    result = SCAN_NONE
    seen = False
    last = len(wire_type.children) - 1
    for i, child in enumerate(wire_type.children):
        if child.compatible:
            if i == 0 or not trailing:
                return SCAN_DISALLOWED
            if _scan(child.element, False) != SCAN_NONE or child.element.compatible:
                return SCAN_DISALLOWED
            seen = True
            result = SCAN_COMPATIBLE
            continue
        if seen:
            # Only compatible fields may follow a compatible field.
            return SCAN_DISALLOWED
        nested = _scan(child, trailing and i == last)
        if nested == SCAN_DISALLOWED:
            return SCAN_DISALLOWED
        if nested == SCAN_COMPATIBLE:
            result = SCAN_COMPATIBLE
    return result


def type_code(wire_types: Sequence[WireType]) -> int:
    """Compute the 32-bit type code of a call's argument types.

    Raises:
        CompatiblePlacementException: If a compatible field is placed where
            readers could not skip it.
    """
    scan = scan_compatible(wire_types)
    if scan == SCAN_DISALLOWED:
        names = ", ".join(w.describe() for w in wire_types)
        raise CompatiblePlacementException(
            f"Compatible fields must be trailing fields of the last record argument: {names}"
        )
    literal = b"".join(type_literal(w) for w in wire_types)
    return (hash32(literal) & ~COMPATIBLE_FLAG & 0xFFFFFFFF) | scan


def has_compatible_flag(code: int) -> bool:
    return bool(code & COMPATIBLE_FLAG)


def is_schema_compatible(code1: int, code2: int) -> bool:
    """Check whether two type codes describe compatible schemas.

    Codes are compatible when they are equal ignoring the compatibility bit.
    """
    return (code1 >> 1) == (code2 >> 1)
