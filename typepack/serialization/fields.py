"""Field enumeration for records.

A record is any annotation whose wire form is the concatenation of its
fields. Four shapes are recognized:

- dataclasses, in field declaration order
- ``NamedTuple`` classes, in ``_fields`` order
- fixed-length tuples such as ``Tuple[int, str]``
- plain classes listing attribute names in ``__pack_fields__``::

    class Point:
        __pack_fields__ = ("x", "y")
        x: Int32
        y: Int32

The descriptor produced here is the field table used by the classifier,
packer and unpacker.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, get_args, get_origin, get_type_hints

from typepack.exceptions import IllegalArgumentException, UnsupportedTypeException


class RecordStyle(Enum):
    """How a record stores and rebuilds its fields."""

    DATACLASS = "dataclass"
    NAMED_TUPLE = "named_tuple"
    TUPLE = "tuple"
    DECLARED = "declared"


@dataclass(frozen=True)
class FieldDescriptor:
    """Describes one field of a record."""

    name: str
    index: int
    annotation: Any
    init: bool = True


@dataclass(frozen=True)
class RecordDescriptor:
    """Ordered field table of a record type."""

    clazz: type
    style: RecordStyle
    fields: Tuple[FieldDescriptor, ...]

    @property
    def field_count(self) -> int:
        return len(self.fields)

    @property
    def type_name(self) -> str:
        return getattr(self.clazz, "__qualname__", repr(self.clazz))

    def get_field(self, name: str) -> Optional[FieldDescriptor]:
        """Get a field descriptor by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def is_instance(self, value: Any) -> bool:
        """Check whether a value can be written as this record."""
        if self.style is RecordStyle.TUPLE:
            return isinstance(value, (tuple, list)) and len(value) == len(self.fields)
        return isinstance(value, self.clazz)

    def values(self, obj: Any) -> List[Any]:
        """Get the field values of a record instance in declaration order."""
        if self.style is RecordStyle.TUPLE:
            if len(obj) != len(self.fields):
                raise IllegalArgumentException(
                    f"Expected a tuple of {len(self.fields)} items, got {len(obj)}"
                )
            return list(obj)
        try:
            return [getattr(obj, f.name) for f in self.fields]
        except AttributeError as e:
            raise IllegalArgumentException(
                f"{type(obj).__name__} is not a valid {self.type_name} record: {e}", cause=e
            )

    def build(self, values: Sequence[Any]) -> Any:
        """Create a record instance from field values in declaration order."""
        if self.style is RecordStyle.TUPLE:
            return tuple(values)
        if self.style is RecordStyle.NAMED_TUPLE:
            return self.clazz(*values)
        if self.style is RecordStyle.DATACLASS:
            kwargs = {}
            late = []
            for f, value in zip(self.fields, values):
                if f.init:
                    kwargs[f.name] = value
                else:
                    late.append((f.name, value))
            obj = self.clazz(**kwargs)
            for name, value in late:
                object.__setattr__(obj, name, value)
            return obj
        obj = object.__new__(self.clazz)
        for f, value in zip(self.fields, values):
            setattr(obj, f.name, value)
        return obj

    def check_assignable(self) -> None:
        """Raise if instances of this record cannot be populated in place."""
        if self.style in (RecordStyle.TUPLE, RecordStyle.NAMED_TUPLE):
            raise IllegalArgumentException(
                f"{self.type_name} is immutable and cannot be populated in place"
            )
        params = getattr(self.clazz, "__dataclass_params__", None)
        if params is not None and params.frozen:
            raise IllegalArgumentException(
                f"{self.type_name} is a frozen dataclass and cannot be populated in place"
            )

    def assign(self, obj: Any, values: Sequence[Any]) -> None:
        """Overwrite the fields of an existing instance."""
        self.check_assignable()
        for f, value in zip(self.fields, values):
            setattr(obj, f.name, value)


def _is_named_tuple(tp: Any) -> bool:
    return (
        isinstance(tp, type)
        and issubclass(tp, tuple)
        and hasattr(tp, "_fields")
        and hasattr(tp, "__annotations__")
    )


def _type_hints(clazz: type) -> dict:
    try:
        return get_type_hints(clazz, include_extras=True)
    except (NameError, TypeError) as e:
        raise UnsupportedTypeException(
            f"Cannot resolve field annotations of {clazz.__qualname__}: {e}", cause=e
        )


def is_fixed_tuple(tp: Any) -> bool:
    """Check for ``Tuple[A, B, ...]`` without a trailing ellipsis."""
    if get_origin(tp) is not tuple:
        return False
    args = get_args(tp)
    return not (len(args) == 2 and args[1] is Ellipsis)


def describe_record(tp: Any) -> Optional[RecordDescriptor]:
    """Build the field table for a record annotation.

    Args:
        tp: The annotation to inspect.

    Returns:
        The record descriptor, or None if the annotation is not a record.

    Raises:
        UnsupportedTypeException: If the record's annotations cannot be resolved.
    """
    if is_fixed_tuple(tp):
        args = get_args(tp)
        # Tuple[()] is the empty record.
        if args == ((),):
            args = ()
        fields = tuple(FieldDescriptor(f"_{i}", i, arg) for i, arg in enumerate(args))
        return RecordDescriptor(tuple, RecordStyle.TUPLE, fields)

    if not isinstance(tp, type):
        return None

    if dataclasses.is_dataclass(tp):
        hints = _type_hints(tp)
        fields = tuple(
            FieldDescriptor(f.name, i, hints.get(f.name, f.type), f.init)
            for i, f in enumerate(dataclasses.fields(tp))
        )
        return RecordDescriptor(tp, RecordStyle.DATACLASS, fields)

    if _is_named_tuple(tp):
        hints = _type_hints(tp)
        missing = [name for name in tp._fields if name not in hints]
        if missing:
            raise UnsupportedTypeException(
                f"NamedTuple {tp.__qualname__} has unannotated fields: {missing}"
            )
        fields = tuple(FieldDescriptor(name, i, hints[name]) for i, name in enumerate(tp._fields))
        return RecordDescriptor(tp, RecordStyle.NAMED_TUPLE, fields)

    declared = tp.__dict__.get("__pack_fields__")
    if declared is not None:
        if isinstance(declared, str):
            declared = (declared,)
        hints = _type_hints(tp)
        fields = []
        for i, name in enumerate(declared):
            if name not in hints:
                raise UnsupportedTypeException(
                    f"Field {name!r} of {tp.__qualname__} has no annotation"
                )
            fields.append(FieldDescriptor(name, i, hints[name]))
        return RecordDescriptor(tp, RecordStyle.DECLARED, tuple(fields))

    return None
