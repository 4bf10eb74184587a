"""Packer: writes values into a caller-supplied buffer region."""

import struct
from typing import Any, Optional, Sequence

from typepack.exceptions import IllegalArgumentException, IllegalStateException
from typepack.serialization.api import PackOutput
from typepack.serialization.classifier import WireType, select_alternative
from typepack.serialization.kinds import (
    WireKind,
    BULK_KINDS,
    SCALAR_SIZES,
    SIZE_PREFIX_FORMAT,
    SIZE_PREFIX_SIZE,
    TOTAL_LENGTH_FORMAT,
    TOTAL_LENGTH_SIZE,
    TYPE_CODE_FORMAT,
    TYPE_CODE_SIZE,
    is_scalar,
)
from typepack.serialization.signature import has_compatible_flag
from typepack.serialization.size import SizeCalculator, encoded_string


def bulk_code(element: WireType) -> Optional[str]:
    """Get the struct code for bulk copies of an element type, if allowed."""
    if element.kind in BULK_KINDS and element.factory is None:
        return element.fmt
    return None


class Packer(PackOutput):
    """Serializes values into a borrowed, fixed-capacity buffer region.

    The packer never grows the buffer. The full message size is computed
    before the first byte is written, and a message that does not fit is
    rejected without touching the buffer.

    Args:
        buffer: A writable bytes-like object.
        offset: Start of the region inside the buffer.
        capacity: Size of the region. Defaults to the rest of the buffer.
        size_calculator: Calculator enforcing the container size limit.
    """

    def __init__(
        self,
        buffer: Any,
        offset: int = 0,
        capacity: Optional[int] = None,
        size_calculator: Optional[SizeCalculator] = None,
    ):
        view = memoryview(buffer)
        if view.readonly:
            view.release()
            raise IllegalArgumentException("Cannot serialize into a read-only buffer")
        self._view = view.cast("B") if view.format != "B" or view.ndim != 1 else view
        available = self._view.nbytes - offset
        if offset < 0 or available < 0:
            self.close()
            raise IllegalArgumentException(f"Offset {offset} is outside the buffer")
        if capacity is None:
            capacity = available
        elif capacity < 0 or capacity > available:
            self.close()
            raise IllegalArgumentException(
                f"Capacity {capacity} exceeds the {available} bytes available after offset {offset}"
            )
        self._offset = offset
        self._capacity = capacity
        self._pos = 0
        self._sizes = size_calculator or SizeCalculator()

    def __enter__(self) -> "Packer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the buffer view."""
        self._view.release()

    @property
    def capacity(self) -> int:
        return self._capacity

    def position(self) -> int:
        return self._pos

    def serialize(self, wire_types: Sequence[WireType], values: Sequence[Any], type_code: int) -> int:
        """Write one message: header followed by the values.

        Args:
            wire_types: Resolved argument types.
            values: Argument values, one per type.
            type_code: The type code of ``wire_types``.

        Returns:
            The number of bytes written, or 0 if the region is too small.

        Raises:
            IllegalArgumentException: If a value does not fit its type.
            IllegalStateException: If a variant is valueless or a container
                is too large.
        """
        compatible = has_compatible_flag(type_code)
        needed = self._sizes.needed_size(wire_types, values, compatible)
        if self._pos + needed > self._capacity:
            return 0
        start = self._pos
        self.write_scalar(TYPE_CODE_FORMAT, TYPE_CODE_SIZE, type_code)
        if compatible:
            self.write_scalar(TOTAL_LENGTH_FORMAT, TOTAL_LENGTH_SIZE, needed)
        for wire_type, value in zip(wire_types, values):
            self.serialize_one(wire_type, value)
        written = self._pos - start
        if written != needed:
            raise IllegalStateException(f"Wrote {written} bytes, expected {needed}")
        return written

    def serialize_one(self, wire_type: WireType, value: Any) -> None:
        """Write a single value of a resolved type."""
        kind = wire_type.kind

        if is_scalar(kind):
            if kind is WireKind.CHAR:
                value = self._char_byte(value)
            self.write_scalar("<" + wire_type.fmt, SCALAR_SIZES[kind], value)
        elif kind is WireKind.MONOSTATE:
            return
        elif kind is WireKind.STRING:
            data = encoded_string(wire_type, value)
            self.write_scalar(SIZE_PREFIX_FORMAT, SIZE_PREFIX_SIZE, len(data))
            self.write_bytes(data)
        elif kind is WireKind.ARRAY:
            if len(value) != wire_type.length:
                raise IllegalArgumentException(
                    f"{wire_type.describe()} needs exactly {wire_type.length} "
                    f"elements, got {len(value)}"
                )
            self._write_elements(wire_type.element, value)
        elif kind in (WireKind.CONTAINER, WireKind.SET):
            self._sizes.check_count(len(value), wire_type)
            self.write_scalar(SIZE_PREFIX_FORMAT, SIZE_PREFIX_SIZE, len(value))
            self._write_elements(wire_type.element, value)
        elif kind is WireKind.MAP:
            self._sizes.check_count(len(value), wire_type)
            key, mapped = wire_type.children
            self.write_scalar(SIZE_PREFIX_FORMAT, SIZE_PREFIX_SIZE, len(value))
            for k, v in value.items():
                self.serialize_one(key, k)
                self.serialize_one(mapped, v)
        elif kind is WireKind.OPTIONAL:
            if value is None:
                self.write_scalar("<B", 1, 0)
            else:
                self.write_scalar("<B", 1, 1)
                self.serialize_one(wire_type.element, value)
        elif kind is WireKind.VARIANT:
            index = select_alternative(wire_type, value)
            if index < 0:
                raise IllegalStateException(
                    f"Value {value!r} matches no alternative of {wire_type.describe()}"
                )
            index_format = "<B" if wire_type.index_size == 1 else "<I"
            self.write_scalar(index_format, wire_type.index_size, index)
            self.serialize_one(wire_type.children[index], value)
        elif kind is WireKind.RECORD:
            for field_type, field_value in zip(wire_type.children, wire_type.record.values(value)):
                self.serialize_one(field_type, field_value)
        else:
            raise IllegalStateException(f"Cannot serialize wire kind {kind.name}")

    def _write_elements(self, element: WireType, items: Any) -> None:
        code = bulk_code(element)
        if code is not None:
            items = items if isinstance(items, (list, tuple)) else list(items)
            self.write_bulk(code, SCALAR_SIZES[element.kind], items)
            return
        for item in items:
            self.serialize_one(element, item)

    @staticmethod
    def _char_byte(value: Any) -> bytes:
        if isinstance(value, (bytes, bytearray)) and len(value) == 1:
            return bytes(value)
        if isinstance(value, str) and len(value) == 1:
            try:
                return value.encode("latin-1")
            except UnicodeEncodeError as e:
                raise IllegalArgumentException(f"Char {value!r} does not fit in one byte", cause=e)
        raise IllegalArgumentException(f"Expected a single character, got {value!r}")

    def write_scalar(self, fmt: str, size: int, value: Any) -> None:
        try:
            struct.pack_into(fmt, self._view, self._offset + self._pos, value)
        except struct.error as e:
            raise IllegalArgumentException(f"Cannot pack {value!r} as {fmt!r}: {e}", cause=e)
        self._pos += size

    def write_bulk(self, code: str, size: int, values: Sequence[Any]) -> None:
        if not values:
            return
        try:
            struct.pack_into(f"<{len(values)}{code}", self._view, self._offset + self._pos, *values)
        except struct.error as e:
            raise IllegalArgumentException(f"Cannot pack values as {code!r}: {e}", cause=e)
        self._pos += size * len(values)

    def write_bytes(self, data: bytes) -> None:
        start = self._offset + self._pos
        self._view[start:start + len(data)] = data
        self._pos += len(data)
