"""Unpacker: reads values back from a buffer region.

All failures caused by the buffer contents are raised as
:class:`~typepack.exceptions.DecodeException` subclasses. The public API
converts them into an :class:`~typepack.exceptions.ErrorKind`.
"""

import struct
from typing import Any, List, Optional, Sequence

from typepack.exceptions import (
    IllegalArgumentException,
    IllegalStateException,
    InvalidDataException,
    NoBufferSpaceException,
    SchemaMismatchException,
)
from typepack.serialization.api import PackInput
from typepack.serialization.classifier import WireType
from typepack.serialization.kinds import (
    WireKind,
    MAX_EMPTY_ELEMENTS,
    MAX_SIZE,
    PRESENCE_SIZE,
    SCALAR_SIZES,
    SIZE_PREFIX_FORMAT,
    SIZE_PREFIX_SIZE,
    TOTAL_LENGTH_FORMAT,
    TOTAL_LENGTH_SIZE,
    TYPE_CODE_FORMAT,
    TYPE_CODE_SIZE,
    is_scalar,
)
from typepack.serialization.packer import bulk_code
from typepack.serialization.signature import has_compatible_flag, is_schema_compatible

HEADER_WITH_LENGTH_SIZE = TYPE_CODE_SIZE + TOTAL_LENGTH_SIZE


class Unpacker(PackInput):
    """Deserializes one message from a borrowed buffer region.

    Args:
        data: A bytes-like object.
        offset: Start of the message inside ``data``.
        size: Number of readable bytes from ``offset``. Defaults to the
            rest of the buffer.
        max_container_size: Largest element count accepted for strings,
            containers, sets and maps.
    """

    def __init__(
        self,
        data: Any,
        offset: int = 0,
        size: Optional[int] = None,
        max_container_size: int = MAX_SIZE,
    ):
        view = memoryview(data)
        self._view = view.cast("B") if view.format != "B" or view.ndim != 1 else view
        available = self._view.nbytes - offset
        if offset < 0 or available < 0:
            self.close()
            raise IllegalArgumentException(f"Offset {offset} is outside the buffer")
        if size is not None:
            if size < 0:
                self.close()
                raise IllegalArgumentException(f"Size must not be negative, got {size}")
            available = min(size, available)
        self._start = offset
        self._pos = offset
        self._end = offset + available
        self._has_length = False
        self._max_container_size = max_container_size

    def __enter__(self) -> "Unpacker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the buffer view."""
        self._view.release()

    @property
    def consumed(self) -> int:
        """Get the number of bytes consumed from the start of the message."""
        return self._pos - self._start

    def position(self) -> int:
        return self._pos - self._start

    def remaining(self) -> int:
        return self._end - self._pos

    def read_header(self, expected_code: int) -> int:
        """Read and validate the type code and optional total length.

        Args:
            expected_code: The reader's type code.

        Returns:
            The stored type code.

        Raises:
            SchemaMismatchException: If the stored code is incompatible.
            NoBufferSpaceException: If the buffer is shorter than the header
                or the stated total length.
        """
        stored = self.read_scalar(TYPE_CODE_FORMAT, TYPE_CODE_SIZE)
        if not is_schema_compatible(stored, expected_code):
            raise SchemaMismatchException(
                f"Type code mismatch: stored 0x{stored:08x}, expected 0x{expected_code:08x}",
                stored_code=stored,
                expected_code=expected_code,
            )
        if has_compatible_flag(stored):
            total = self.read_scalar(TOTAL_LENGTH_FORMAT, TOTAL_LENGTH_SIZE)
            if total < HEADER_WITH_LENGTH_SIZE:
                raise InvalidDataException(f"Total length {total} is shorter than the header")
            if total > self._end - self._start:
                raise NoBufferSpaceException(
                    f"Total length {total} exceeds the {self._end - self._start} bytes available"
                )
            # Reads are bounded by the message; trailing fields unknown to
            # this reader are skipped by finish().
            self._end = self._start + total
            self._has_length = True
        return stored

    def finish(self) -> None:
        if self._has_length:
            self._pos = self._end

    def deserialize(self, wire_types: Sequence[WireType], expected_code: int) -> List[Any]:
        """Read one message.

        Args:
            wire_types: The reader's argument types.
            expected_code: The type code of ``wire_types``.

        Returns:
            The decoded values, one per type.
        """
        self.read_header(expected_code)
        values = [self.deserialize_one(w) for w in wire_types]
        self.finish()
        return values

    def read_field(self, wire_type: WireType, index: int, expected_code: int) -> Any:
        """Read one field of a record message, skipping the fields before it.

        Args:
            wire_type: The reader's record type.
            index: The field index in declaration order.
            expected_code: The type code of ``wire_type``.

        Returns:
            The decoded field value.
        """
        if wire_type.kind is not WireKind.RECORD:
            raise IllegalArgumentException(f"{wire_type.describe()} is not a record")
        if not 0 <= index < len(wire_type.children):
            raise IllegalArgumentException(
                f"Field index {index} is out of range for {wire_type.describe()}"
            )
        self.read_header(expected_code)
        for field_type in wire_type.children[:index]:
            self.skip(field_type)
        value = self.deserialize_one(wire_type.children[index])
        self.finish()
        return value

    def deserialize_one(self, wire_type: WireType) -> Any:
        """Decode a single value of a resolved type."""
        kind = wire_type.kind

        if is_scalar(kind):
            value = self.read_scalar("<" + wire_type.fmt, SCALAR_SIZES[kind])
            if wire_type.factory is not None:
                try:
                    return wire_type.factory(value)
                except ValueError as e:
                    raise InvalidDataException(
                        f"Invalid {wire_type.describe()} value {value!r}", cause=e
                    )
            return value

        if kind is WireKind.MONOSTATE:
            return None

        if kind is WireKind.STRING:
            length = self._read_count(1)
            raw = self.read_bytes(length)
            try:
                return wire_type.factory(raw)
            except UnicodeDecodeError as e:
                raise InvalidDataException("String is not valid UTF-8", cause=e)

        if kind is WireKind.ARRAY:
            return list(self._read_elements(wire_type.element, wire_type.length))

        if kind in (WireKind.CONTAINER, WireKind.SET):
            element = wire_type.element
            count = self._read_count(element.min_size)
            items = self._read_elements(element, count)
            try:
                return wire_type.factory(items)
            except TypeError as e:
                raise InvalidDataException(
                    f"Cannot build {wire_type.describe()} from decoded elements", cause=e
                )

        if kind is WireKind.MAP:
            key, mapped = wire_type.children
            count = self._read_count(key.min_size + mapped.min_size)
            result = wire_type.factory()
            for _ in range(count):
                k = self.deserialize_one(key)
                v = self.deserialize_one(mapped)
                try:
                    result[k] = v
                except TypeError as e:
                    raise InvalidDataException(f"Decoded map key {k!r} is not hashable", cause=e)
            return result

        if kind is WireKind.OPTIONAL:
            if not self._read_presence(wire_type):
                return None
            return self.deserialize_one(wire_type.element)

        if kind is WireKind.VARIANT:
            index = self._read_variant_index(wire_type)
            return self.deserialize_one(wire_type.children[index])

        if kind is WireKind.RECORD:
            values = [self.deserialize_one(c) for c in wire_type.children]
            try:
                return wire_type.record.build(values)
            except (TypeError, ValueError) as e:
                raise InvalidDataException(
                    f"Cannot build {wire_type.record.type_name} from decoded fields: {e}", cause=e
                )

        raise IllegalStateException(f"Cannot deserialize wire kind {kind.name}")

    def skip(self, wire_type: WireType) -> None:
        """Consume one value of a resolved type without building it.

        Consumes exactly as many bytes as :meth:`deserialize_one`.
        """
        kind = wire_type.kind
        if wire_type.fixed_size is not None:
            self.skip_bytes(wire_type.fixed_size)
        elif kind is WireKind.STRING:
            self.skip_bytes(self._read_count(1))
        elif kind is WireKind.ARRAY:
            for _ in range(wire_type.length):
                self.skip(wire_type.element)
        elif kind in (WireKind.CONTAINER, WireKind.SET):
            element = wire_type.element
            count = self._read_count(element.min_size)
            if element.fixed_size is not None:
                self.skip_bytes(element.fixed_size * count)
            else:
                for _ in range(count):
                    self.skip(element)
        elif kind is WireKind.MAP:
            key, mapped = wire_type.children
            count = self._read_count(key.min_size + mapped.min_size)
            if key.fixed_size is not None and mapped.fixed_size is not None:
                self.skip_bytes((key.fixed_size + mapped.fixed_size) * count)
            else:
                for _ in range(count):
                    self.skip(key)
                    self.skip(mapped)
        elif kind is WireKind.OPTIONAL:
            if self._read_presence(wire_type):
                self.skip(wire_type.element)
        elif kind is WireKind.VARIANT:
            self.skip(wire_type.children[self._read_variant_index(wire_type)])
        elif kind is WireKind.RECORD:
            for field_type in wire_type.children:
                self.skip(field_type)
        else:
            raise IllegalStateException(f"Cannot skip wire kind {kind.name}")

    def _read_elements(self, element: WireType, count: int) -> Sequence[Any]:
        code = bulk_code(element)
        if code is not None:
            return self.read_bulk(code, SCALAR_SIZES[element.kind], count)
        return [self.deserialize_one(element) for _ in range(count)]

    def _read_count(self, element_min_size: int) -> int:
        count = self.read_scalar(SIZE_PREFIX_FORMAT, SIZE_PREFIX_SIZE)
        if count > self._max_container_size:
            raise InvalidDataException(
                f"Element count {count} exceeds the limit of {self._max_container_size}"
            )
        if not element_min_size and count > MAX_EMPTY_ELEMENTS:
            raise InvalidDataException(
                f"Element count {count} of zero-size elements exceeds the limit of {MAX_EMPTY_ELEMENTS}"
            )
        if element_min_size and count * element_min_size > self.remaining():
            raise NoBufferSpaceException(
                f"{count} elements need at least {count * element_min_size} bytes, "
                f"{self.remaining()} available"
            )
        return count

    def _read_presence(self, wire_type: WireType) -> bool:
        # A compatible field newer than the writer's schema is simply absent.
        if wire_type.compatible and self._pos >= self._end:
            return False
        flag = self.read_scalar("<B", PRESENCE_SIZE)
        if flag > 1:
            raise InvalidDataException(f"Invalid presence flag {flag}")
        return flag == 1

    def _read_variant_index(self, wire_type: WireType) -> int:
        index_format = "<B" if wire_type.index_size == 1 else "<I"
        index = self.read_scalar(index_format, wire_type.index_size)
        if index >= len(wire_type.children):
            raise InvalidDataException(
                f"Variant index {index} is out of range for {wire_type.describe()}"
            )
        return index

    def _require(self, length: int) -> None:
        if length > self._end - self._pos:
            raise NoBufferSpaceException(
                f"Need {length} bytes at position {self._pos - self._start}, "
                f"{self._end - self._pos} available"
            )

    def read_scalar(self, fmt: str, size: int) -> Any:
        self._require(size)
        value = struct.unpack_from(fmt, self._view, self._pos)[0]
        self._pos += size
        return value

    def read_bulk(self, code: str, size: int, count: int) -> tuple:
        self._require(size * count)
        values = struct.unpack_from(f"<{count}{code}", self._view, self._pos)
        self._pos += size * count
        return values

    def read_bytes(self, length: int) -> bytes:
        self._require(length)
        data = bytes(self._view[self._pos:self._pos + length])
        self._pos += length
        return data

    def skip_bytes(self, length: int) -> None:
        self._require(length)
        self._pos += length
