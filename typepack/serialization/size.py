"""Size calculation.

Computes the exact number of bytes a set of values occupies once packed.
The packer checks this size against the buffer capacity before writing
anything, so every fatal write-path condition is detected here first.
"""

from typing import Any, Sequence

from typepack.exceptions import IllegalArgumentException, IllegalStateException
from typepack.serialization.classifier import WireType, select_alternative
from typepack.serialization.kinds import (
    WireKind,
    MAX_EMPTY_ELEMENTS,
    MAX_SIZE,
    PRESENCE_SIZE,
    SIZE_PREFIX_SIZE,
    TOTAL_LENGTH_SIZE,
    TYPE_CODE_SIZE,
)


def encoded_string(wire_type: WireType, value: Any) -> bytes:
    """Get the bytes written for a string-like value."""
    if isinstance(value, str):
        if wire_type.element.kind is not WireKind.CHAR:
            raise IllegalArgumentException(f"Expected bytes, got str {value!r}")
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        if wire_type.element.kind is WireKind.CHAR:
            raise IllegalArgumentException(f"Expected str, got {type(value).__name__}")
        return bytes(value)
    raise IllegalArgumentException(
        f"Expected a string-like value, got {type(value).__name__}"
    )


def is_fixed(wire_type: WireType) -> bool:
    """Check whether every value of a type encodes to the same, already known size."""
    return wire_type.fixed_size is not None and not wire_type.has_array


class SizeCalculator:
    """Recursive size calculator.

    Args:
        max_container_size: Largest element count a string, container, set
            or map may have.
    """

    def __init__(self, max_container_size: int = MAX_SIZE):
        self._max_container_size = max_container_size

    def check_count(self, count: int, wire_type: WireType) -> None:
        limit = self._max_container_size
        if sum(c.min_size for c in wire_type.children) == 0:
            limit = min(limit, MAX_EMPTY_ELEMENTS)
        if count > limit:
            raise IllegalStateException(
                f"{wire_type.describe()} holds {count} elements, more than the limit of {limit}"
            )

    def needed_size(self, wire_types: Sequence[WireType], values: Sequence[Any], compatible: bool) -> int:
        """Get the full message size including the header.

        Args:
            wire_types: Argument types.
            values: Argument values.
            compatible: Whether the message carries the total length field.
        """
        header = TYPE_CODE_SIZE + (TOTAL_LENGTH_SIZE if compatible else 0)
        return header + self.calculate_needed_size(wire_types, values)

    def calculate_needed_size(self, wire_types: Sequence[WireType], values: Sequence[Any]) -> int:
        """Get the payload size of a set of values."""
        return sum(self.calculate_one_size(w, v) for w, v in zip(wire_types, values))

    def calculate_one_size(self, wire_type: WireType, value: Any) -> int:
        """Get the encoded size of one value."""
        kind = wire_type.kind
        if is_fixed(wire_type):
            return wire_type.fixed_size

        if kind is WireKind.STRING:
            length = len(encoded_string(wire_type, value))
            self.check_count(length, wire_type)
            return SIZE_PREFIX_SIZE + length

        if kind is WireKind.ARRAY:
            if len(value) != wire_type.length:
                raise IllegalArgumentException(
                    f"{wire_type.describe()} needs exactly {wire_type.length} "
                    f"elements, got {len(value)}"
                )
            if is_fixed(wire_type.element):
                return wire_type.fixed_size
            return sum(self.calculate_one_size(wire_type.element, item) for item in value)

        if kind in (WireKind.CONTAINER, WireKind.SET):
            self.check_count(len(value), wire_type)
            element = wire_type.element
            if is_fixed(element):
                return SIZE_PREFIX_SIZE + element.fixed_size * len(value)
            return SIZE_PREFIX_SIZE + sum(self.calculate_one_size(element, item) for item in value)

        if kind is WireKind.MAP:
            self.check_count(len(value), wire_type)
            key, mapped = wire_type.children
            if is_fixed(key) and is_fixed(mapped):
                return SIZE_PREFIX_SIZE + (key.fixed_size + mapped.fixed_size) * len(value)
            total = SIZE_PREFIX_SIZE
            for k, v in value.items():
                total += self.calculate_one_size(key, k) + self.calculate_one_size(mapped, v)
            return total

        if kind is WireKind.OPTIONAL:
            if value is None:
                return PRESENCE_SIZE
            return PRESENCE_SIZE + self.calculate_one_size(wire_type.element, value)

        if kind is WireKind.VARIANT:
            index = select_alternative(wire_type, value)
            if index < 0:
                raise IllegalStateException(
                    f"Value {value!r} matches no alternative of {wire_type.describe()}"
                )
            return wire_type.index_size + self.calculate_one_size(wire_type.children[index], value)

        if kind is WireKind.RECORD:
            values = wire_type.record.values(value)
            return self.calculate_needed_size(wire_type.children, values)

        raise IllegalStateException(f"Cannot size wire kind {kind.name}")
