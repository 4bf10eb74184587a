"""Pack service implementation."""

import threading
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional, Sequence, Tuple

from typepack.config import PackConfig
from typepack.exceptions import DecodeException, ErrorKind, IllegalArgumentException
from typepack.logging import get_logger
from typepack.serialization.classifier import TypeClassifier, WireType
from typepack.serialization.fields import describe_record
from typepack.serialization.kinds import WireKind
from typepack.serialization.packer import Packer
from typepack.serialization.signature import (
    has_compatible_flag,
    is_schema_compatible,
    type_code,
    type_literal,
)
from typepack.serialization.size import SizeCalculator
from typepack.serialization.unpacker import Unpacker

_logger = get_logger("service")

NoneType = type(None)

_INFERRED_TYPES = (bool, int, float, str, bytes, bytearray)


class DeserializeResult(NamedTuple):
    """Outcome of a read: an error kind and, on success, the decoded value."""

    error: ErrorKind
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.error is ErrorKind.OK


def infer_type(value: Any) -> Any:
    """Get the annotation used for a value passed without explicit types.

    Raises:
        IllegalArgumentException: If the type cannot be inferred.
    """
    if value is None:
        return NoneType
    if isinstance(value, Enum):
        return type(value)
    for tp in _INFERRED_TYPES:
        if type(value) is tp:
            return tp
    if describe_record(type(value)) is not None:
        return type(value)
    raise IllegalArgumentException(
        f"Cannot infer the wire type of {type(value).__name__}; pass types= explicitly"
    )


class PackService:
    """Serializes and deserializes values against their annotations.

    A service owns a type classifier bound to its configuration and caches
    resolved wire types and type codes. Two services exchanging messages
    must be configured identically.

    Args:
        config: The pack configuration. Defaults to ``PackConfig()``.
    """

    def __init__(self, config: Optional[PackConfig] = None):
        self._config = config or PackConfig()
        self._classifier = TypeClassifier(
            self._config.default_integer_type,
            self._config.default_float_type,
        )
        self._sizes = SizeCalculator(self._config.max_container_size)
        self._codes: Dict[Tuple[Any, ...], int] = {}
        self._lock = threading.RLock()

    @property
    def config(self) -> PackConfig:
        return self._config

    def resolve(self, annotation: Any) -> WireType:
        """Resolve an annotation into its wire type tree."""
        return self._classifier.resolve(annotation)

    def get_type_literal(self, annotation: Any) -> bytes:
        return type_literal(self.resolve(annotation))

    def get_type_code(self, *annotations: Any) -> int:
        """Get the type code of a call with the given argument annotations.

        Raises:
            UnsupportedTypeException: If an annotation cannot be serialized.
            CompatiblePlacementException: If a compatible field is misplaced.
        """
        wire_types = tuple(self.resolve(a) for a in annotations)
        return self._type_code(annotations, wire_types)

    @staticmethod
    def is_schema_compatible(code1: int, code2: int) -> bool:
        return is_schema_compatible(code1, code2)

    def _type_code(self, annotations: Tuple[Any, ...], wire_types: Sequence[WireType]) -> int:
        code = self._codes.get(annotations)
        if code is not None:
            return code
        with self._lock:
            code = self._codes.get(annotations)
            if code is None:
                code = type_code(wire_types)
                self._codes[annotations] = code
                _logger.debug(
                    "Type code 0x%08x for (%s)",
                    code,
                    ", ".join(w.describe() for w in wire_types),
                )
            return code

    def _prepare(self, args: Sequence[Any], types: Optional[Sequence[Any]]) -> Tuple[Tuple[WireType, ...], int]:
        if types is None:
            annotations = tuple(infer_type(arg) for arg in args)
        else:
            annotations = tuple(types)
            if len(annotations) != len(args):
                raise IllegalArgumentException(
                    f"Got {len(args)} values but {len(annotations)} types"
                )
        wire_types = tuple(self.resolve(a) for a in annotations)
        return wire_types, self._type_code(annotations, wire_types)

    # Write path

    def get_needed_size(self, *args: Any, types: Optional[Sequence[Any]] = None) -> int:
        """Get the exact size of the message ``serialize_to`` would write.

        Raises:
            IllegalArgumentException: If a value does not fit its type.
            IllegalStateException: If a variant is valueless or a container
                exceeds the size limit.
        """
        wire_types, code = self._prepare(args, types)
        return self._sizes.needed_size(wire_types, args, has_compatible_flag(code))

    def serialize_to(
        self,
        buffer: Any,
        *args: Any,
        types: Optional[Sequence[Any]] = None,
        offset: int = 0,
        capacity: Optional[int] = None,
    ) -> int:
        """Serialize values into a fixed-capacity region of a buffer.

        Args:
            buffer: A writable bytes-like object.
            *args: The values to write.
            types: Annotations of the values. Inferred when omitted.
            offset: Start of the region inside ``buffer``.
            capacity: Size of the region. Defaults to the rest of the buffer.

        Returns:
            The number of bytes written, or 0 if the region is too small, in
            which case the buffer is left untouched.
        """
        wire_types, code = self._prepare(args, types)
        with Packer(buffer, offset, capacity, self._sizes) as packer:
            written = packer.serialize(wire_types, args, code)
            if written == 0:
                _logger.debug(
                    "Rejected write of type code 0x%08x: region of %d bytes is too small",
                    code,
                    packer.capacity,
                )
        return written

    def serialize_append(
        self,
        buffer: bytearray,
        *args: Any,
        types: Optional[Sequence[Any]] = None,
    ) -> int:
        """Serialize values onto the end of a growable buffer.

        The buffer is grown by exactly the message size. If packing fails,
        the buffer is truncated back to its original length before the
        exception propagates.

        Returns:
            The number of bytes appended.
        """
        if not isinstance(buffer, bytearray):
            raise IllegalArgumentException(
                f"serialize_append needs a bytearray, got {type(buffer).__name__}"
            )
        wire_types, code = self._prepare(args, types)
        needed = self._sizes.needed_size(wire_types, args, has_compatible_flag(code))
        start = len(buffer)
        buffer.extend(bytes(needed))
        try:
            with Packer(buffer, start, needed, self._sizes) as packer:
                written = packer.serialize(wire_types, args, code)
        except Exception:
            del buffer[start:]
            raise
        return written

    def serialize(self, *args: Any, types: Optional[Sequence[Any]] = None) -> bytes:
        """Serialize values into a new bytes object."""
        buffer = bytearray()
        self.serialize_append(buffer, *args, types=types)
        return bytes(buffer)

    # Read path

    def _read(self, data: Any, offset: int, action: Callable[[Unpacker], Any]) -> Tuple[ErrorKind, Any, int]:
        try:
            with Unpacker(data, offset, max_container_size=self._config.max_container_size) as unpacker:
                value = action(unpacker)
                return ErrorKind.OK, value, unpacker.consumed
        except DecodeException as e:
            _logger.debug("Decode failed with %s: %s", e.error_kind.name, e)
            return e.error_kind, None, 0

    def deserialize(self, annotation: Any, data: Any, *, offset: int = 0) -> DeserializeResult:
        """Decode one value.

        Args:
            annotation: The reader's annotation for the value.
            data: A bytes-like object holding the message.
            offset: Start of the message inside ``data``.

        Returns:
            The error kind and, on success, the value.
        """
        wire_type = self.resolve(annotation)
        code = self._type_code((annotation,), (wire_type,))
        error, value, _ = self._read(data, offset, lambda u: u.deserialize((wire_type,), code)[0])
        return DeserializeResult(error, value)

    def deserialize_args(self, annotations: Sequence[Any], data: Any, *, offset: int = 0) -> DeserializeResult:
        """Decode a message written from several arguments.

        Returns:
            The error kind and, on success, a tuple of the values.
        """
        annotations = tuple(annotations)
        wire_types = tuple(self.resolve(a) for a in annotations)
        code = self._type_code(annotations, wire_types)
        error, values, _ = self._read(data, offset, lambda u: tuple(u.deserialize(wire_types, code)))
        return DeserializeResult(error, values)

    def deserialize_to_with_length(
        self,
        out: Any,
        data: Any,
        *,
        offset: int = 0,
        annotation: Any = None,
    ) -> Tuple[ErrorKind, int]:
        """Decode a message into an existing object.

        ``out`` is populated only when decoding succeeds.

        Args:
            out: A mutable record instance, or a ``list``, ``dict``, ``set``
                or ``bytearray``.
            data: A bytes-like object holding the message.
            offset: Start of the message inside ``data``.
            annotation: The reader's annotation. Defaults to ``type(out)``
                for records and is required for builtin containers.

        Returns:
            The error kind and the number of bytes consumed (0 on error).

        Raises:
            IllegalArgumentException: If ``out`` cannot be populated in place.
        """
        if annotation is None:
            annotation = self._target_annotation(out)
        wire_type = self.resolve(annotation)
        self._check_target(out, wire_type)
        code = self._type_code((annotation,), (wire_type,))
        error, value, consumed = self._read(
            data, offset, lambda u: u.deserialize((wire_type,), code)[0]
        )
        if error is ErrorKind.OK:
            self._populate(out, wire_type, value)
        return error, consumed

    def deserialize_to(self, out: Any, data: Any, *, offset: int = 0, annotation: Any = None) -> ErrorKind:
        """Decode a message into an existing object. See :meth:`deserialize_to_with_length`."""
        error, _ = self.deserialize_to_with_length(out, data, offset=offset, annotation=annotation)
        return error

    def get_field(self, annotation: Any, index: int, data: Any, *, offset: int = 0) -> DeserializeResult:
        """Decode a single field of a record message without building the record.

        Args:
            annotation: The reader's record annotation.
            index: The field index in declaration order.
            data: A bytes-like object holding the message.
            offset: Start of the message inside ``data``.

        Raises:
            IllegalArgumentException: If ``annotation`` is not a record or
                ``index`` is out of range.
        """
        wire_type = self.resolve(annotation)
        code = self._type_code((annotation,), (wire_type,))
        error, value, _ = self._read(data, offset, lambda u: u.read_field(wire_type, index, code))
        return DeserializeResult(error, value)

    @staticmethod
    def _target_annotation(out: Any) -> Any:
        if isinstance(out, (list, dict, set, bytearray)):
            raise IllegalArgumentException(
                f"Populating a {type(out).__name__} needs an explicit annotation"
            )
        if describe_record(type(out)) is None:
            raise IllegalArgumentException(
                f"{type(out).__name__} is not a record and cannot be populated in place"
            )
        return type(out)

    @staticmethod
    def _check_target(out: Any, wire_type: WireType) -> None:
        kind = wire_type.kind
        if kind is WireKind.RECORD:
            if not wire_type.record.is_instance(out):
                raise IllegalArgumentException(
                    f"{type(out).__name__} is not an instance of {wire_type.record.type_name}"
                )
            wire_type.record.check_assignable()
            return
        expected = None
        if kind in (WireKind.CONTAINER, WireKind.ARRAY):
            expected = list
        elif kind is WireKind.MAP:
            expected = dict
        elif kind is WireKind.SET:
            expected = set
        elif kind is WireKind.STRING and wire_type.element.kind is WireKind.UINT8:
            expected = bytearray
        if expected is None or not isinstance(out, expected):
            raise IllegalArgumentException(
                f"A {type(out).__name__} cannot be populated from {wire_type.describe()}"
            )

    @staticmethod
    def _populate(out: Any, wire_type: WireType, value: Any) -> None:
        kind = wire_type.kind
        if kind is WireKind.RECORD:
            wire_type.record.assign(out, wire_type.record.values(value))
        elif kind in (WireKind.MAP, WireKind.SET):
            out.clear()
            out.update(value)
        else:
            out[:] = value
