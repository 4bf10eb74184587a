"""Module-level pack API.

Every function delegates to a process-wide :class:`PackService`. Call
:func:`configure` once at startup to change the integer and float
defaults or the container size limit.

Example:
    Round trip of a dataclass::

        @dataclass
        class MyData:
            id: int
            message: str
            values: List[float]

        data = serialize(MyData(42, "hi", [1.0, 2.0]))
        result = deserialize(MyData, data)
        assert result.error is ErrorKind.OK
"""

import threading
from typing import Any, Optional, Sequence, Tuple

from typepack.config import PackConfig
from typepack.exceptions import ErrorKind
from typepack.serialization.service import DeserializeResult, PackService

_service_lock = threading.Lock()
_service = PackService()


def configure(config: Optional[PackConfig] = None) -> PackService:
    """Replace the default service with one built from ``config``.

    Returns:
        The new default service.
    """
    global _service
    with _service_lock:
        _service = PackService(config)
        return _service


def get_service() -> PackService:
    return _service


def get_needed_size(*args: Any, types: Optional[Sequence[Any]] = None) -> int:
    return _service.get_needed_size(*args, types=types)


def serialize_to(
    buffer: Any,
    *args: Any,
    types: Optional[Sequence[Any]] = None,
    offset: int = 0,
    capacity: Optional[int] = None,
) -> int:
    return _service.serialize_to(buffer, *args, types=types, offset=offset, capacity=capacity)


def serialize_append(buffer: bytearray, *args: Any, types: Optional[Sequence[Any]] = None) -> int:
    return _service.serialize_append(buffer, *args, types=types)


def serialize(*args: Any, types: Optional[Sequence[Any]] = None) -> bytes:
    return _service.serialize(*args, types=types)


def deserialize(annotation: Any, data: Any, *, offset: int = 0) -> DeserializeResult:
    return _service.deserialize(annotation, data, offset=offset)


def deserialize_args(annotations: Sequence[Any], data: Any, *, offset: int = 0) -> DeserializeResult:
    return _service.deserialize_args(annotations, data, offset=offset)


def deserialize_to(out: Any, data: Any, *, offset: int = 0, annotation: Any = None) -> ErrorKind:
    return _service.deserialize_to(out, data, offset=offset, annotation=annotation)


def deserialize_to_with_length(
    out: Any,
    data: Any,
    *,
    offset: int = 0,
    annotation: Any = None,
) -> Tuple[ErrorKind, int]:
    return _service.deserialize_to_with_length(out, data, offset=offset, annotation=annotation)


def get_field(annotation: Any, index: int, data: Any, *, offset: int = 0) -> DeserializeResult:
    return _service.get_field(annotation, index, data, offset=offset)


def get_type_code(*annotations: Any) -> int:
    return _service.get_type_code(*annotations)


def get_type_literal(annotation: Any) -> bytes:
    return _service.get_type_literal(annotation)


def is_schema_compatible(code1: int, code2: int) -> bool:
    return PackService.is_schema_compatible(code1, code2)
