"""Type classifier.

Maps annotations to wire kinds and resolves them into immutable
:class:`WireType` trees. Every recursive operation of the engine (type
literal, size, pack, unpack, skip) dispatches on ``WireType.kind``.

Classification order matters because categories overlap: ``str`` is
iterable and ``Optional[T]`` is a ``Union``. Checks run in this order:

    monostate, enum, scalar, optional, variant, string, array, map, set,
    container, record
"""

import collections
import collections.abc
import threading
import types
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import Annotated, Any, Callable, Dict, Optional, Tuple, Union, get_args, get_origin

from typepack.exceptions import UnsupportedTypeException
from typepack.serialization.fields import RecordDescriptor, describe_record
from typepack.serialization.kinds import (
    WireKind,
    SCALAR_FORMATS,
    SCALAR_SIZES,
    INTEGER_KINDS,
    FLOAT_KINDS,
    PRESENCE_SIZE,
    SIZE_PREFIX_SIZE,
    variant_index_size,
)
from typepack.serialization.types import ArraySpec, CompatibleSpec, ScalarSpec, VariantSpec

NoneType = type(None)

_MAP_ORIGINS = frozenset({
    dict,
    collections.OrderedDict,
    collections.abc.Mapping,
    collections.abc.MutableMapping,
})
_SET_ORIGINS = frozenset({
    set,
    frozenset,
    collections.abc.Set,
    collections.abc.MutableSet,
})
_CONTAINER_ORIGINS = frozenset({
    list,
    collections.deque,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
})


@dataclass(frozen=True, eq=False)
class WireType:
    """Resolved encoding of one annotation.

    Attributes:
        kind: The wire kind.
        annotation: The annotation this node was resolved from.
        children: Element types. Optional, string, set, container and array
            hold one element; map holds key and value; variant holds its
            alternatives; record holds its fields.
        length: Element count of a fixed array.
        record: Field table of a record.
        compatible: True for a ``Compatible[T]`` field (kind OPTIONAL).
        factory: Builds the decoded Python value for containers, strings,
            enums and chars.
        fixed_size: Encoded size when independent of the value, else None.
        min_size: Smallest possible encoded size.
        has_array: True when the type holds a fixed array whose length must
            be checked against the value.
    """

    kind: WireKind
    annotation: Any
    children: Tuple["WireType", ...] = ()
    length: int = 0
    record: Optional[RecordDescriptor] = None
    compatible: bool = False
    factory: Optional[Callable[[Any], Any]] = None
    fixed_size: Optional[int] = None
    min_size: int = 0
    has_array: bool = False

    @property
    def element(self) -> "WireType":
        return self.children[0]

    @property
    def fmt(self) -> str:
        return SCALAR_FORMATS[self.kind]

    @property
    def index_size(self) -> int:
        return variant_index_size(len(self.children))

    def describe(self) -> str:
        """Render a short human-readable form, e.g. ``CONTAINER<FLOAT64>``."""
        if not self.children:
            return self.kind.name
        inner = ", ".join(c.describe() for c in self.children)
        if self.kind is WireKind.ARRAY:
            inner = f"{inner}, {self.length}"
        name = "COMPATIBLE" if self.compatible else self.kind.name
        if self.record is not None and self.record.clazz is not tuple:
            name = f"{name} {self.record.type_name}"
        return f"{name}<{inner}>"


def _bytes_factory(raw) -> bytes:
    return bytes(raw)


def _str_factory(raw) -> str:
    return bytes(raw).decode("utf-8")


def _char_factory(raw) -> str:
    return raw.decode("latin-1")


def _strip_annotated(tp: Any) -> Tuple[Any, Optional[object]]:
    """Split an Annotated type into its base and the outermost typepack marker."""
    if get_origin(tp) is not Annotated:
        return tp, None
    base, *metadata = get_args(tp)
    marker = None
    for item in metadata:
        if isinstance(item, (ScalarSpec, ArraySpec, VariantSpec, CompatibleSpec)):
            marker = item
    return base, marker


def _is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    if origin is Union:
        return True
    # PEP 604 unions (int | None) on Python 3.10+.
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and origin is union_type


def _is_enum(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, (IntEnum, IntFlag))


class TypeClassifier:
    """Resolves annotations into wire types.

    Resolution results are cached per classifier. A classifier is bound to
    the integer and float kinds used for plain ``int``, enums and
    ``float``.

    Args:
        default_integer_kind: Wire kind for ``int`` and ``IntEnum``.
        default_float_kind: Wire kind for ``float``.
    """

    def __init__(
        self,
        default_integer_kind: WireKind = WireKind.INT32,
        default_float_kind: WireKind = WireKind.FLOAT64,
    ):
        if default_integer_kind not in INTEGER_KINDS:
            raise ValueError(f"{default_integer_kind!r} is not an integer kind")
        if default_float_kind not in FLOAT_KINDS:
            raise ValueError(f"{default_float_kind!r} is not a float kind")
        self._default_integer_kind = default_integer_kind
        self._default_float_kind = default_float_kind
        self._cache: Dict[Any, WireType] = {}
        self._resolving: set = set()
        self._lock = threading.RLock()

    @property
    def default_integer_kind(self) -> WireKind:
        return self._default_integer_kind

    @property
    def default_float_kind(self) -> WireKind:
        return self._default_float_kind

    def classify(self, tp: Any) -> WireKind:
        """Get the wire kind of an annotation without resolving its children."""
        if tp is None or tp is NoneType:
            return WireKind.MONOSTATE
        base, marker = _strip_annotated(tp)
        # Structural markers wrap a base type that must not be read as a scalar.
        structural = isinstance(marker, (CompatibleSpec, VariantSpec, ArraySpec))
        if not structural:
            if base is NoneType:
                return WireKind.MONOSTATE
            if _is_enum(base):
                if isinstance(marker, ScalarSpec) and marker.kind in INTEGER_KINDS:
                    return marker.kind
                return self._default_integer_kind
            if isinstance(marker, ScalarSpec):
                return marker.kind
            if base is bool:
                return WireKind.BOOL
            if base is int:
                return self._default_integer_kind
            if base is float:
                return self._default_float_kind
        if isinstance(marker, CompatibleSpec):
            return WireKind.OPTIONAL
        if isinstance(marker, VariantSpec):
            return WireKind.VARIANT
        if _is_union(base):
            args = get_args(base)
            if len(args) == 2 and NoneType in args:
                return WireKind.OPTIONAL
            return WireKind.VARIANT
        if not structural and base in (str, bytes, bytearray):
            return WireKind.STRING
        if isinstance(marker, ArraySpec):
            return WireKind.ARRAY
        origin = get_origin(base)
        if origin in _MAP_ORIGINS:
            return WireKind.MAP
        if origin in _SET_ORIGINS:
            return WireKind.SET
        if origin in _CONTAINER_ORIGINS:
            return WireKind.CONTAINER
        if origin is tuple:
            args = get_args(base)
            if len(args) == 2 and args[1] is Ellipsis:
                return WireKind.CONTAINER
            return WireKind.RECORD
        if describe_record(base) is not None:
            return WireKind.RECORD
        raise UnsupportedTypeException(f"Type {tp!r} is not supported for serialization")

    def resolve(self, tp: Any) -> WireType:
        """Resolve an annotation into its wire type tree.

        Args:
            tp: The annotation to resolve.

        Returns:
            The cached wire type.

        Raises:
            UnsupportedTypeException: If the annotation or any nested type
                cannot be serialized.
        """
        try:
            cached = self._cache.get(tp)
        except TypeError:
            raise UnsupportedTypeException(f"Type {tp!r} is not hashable")
        if cached is not None:
            return cached
        with self._lock:
            cached = self._cache.get(tp)
            if cached is None:
                cached = self._resolve(tp)
                self._cache[tp] = cached
            return cached

    def _resolve(self, tp: Any) -> WireType:
        kind = self.classify(tp)
        base, marker = _strip_annotated(tp)

        if kind is WireKind.MONOSTATE:
            return WireType(kind, tp, fixed_size=0, min_size=0)

        if kind in SCALAR_FORMATS:
            size = SCALAR_SIZES[kind]
            factory = None
            if _is_enum(base):
                factory = base
            elif kind is WireKind.CHAR:
                factory = _char_factory
            return WireType(kind, tp, factory=factory, fixed_size=size, min_size=size)

        if kind is WireKind.OPTIONAL:
            inner = base
            if isinstance(marker, CompatibleSpec) and not _is_union(inner):
                payload = inner
            else:
                remaining = tuple(a for a in get_args(inner) if a is not NoneType)
                payload = remaining[0] if len(remaining) == 1 else Union[remaining]
            child = self.resolve(payload)
            return WireType(
                kind,
                tp,
                children=(child,),
                compatible=isinstance(marker, CompatibleSpec),
                min_size=PRESENCE_SIZE,
            )

        if kind is WireKind.VARIANT:
            if isinstance(marker, VariantSpec):
                alternatives = marker.alternatives
            else:
                alternatives = get_args(base)
            children = tuple(self.resolve(alt) for alt in alternatives)
            index_size = variant_index_size(len(children))
            return WireType(
                kind,
                tp,
                children=children,
                min_size=index_size + min(c.min_size for c in children),
            )

        if kind is WireKind.STRING:
            if base is str:
                element = self.resolve(Annotated[str, ScalarSpec(WireKind.CHAR)])
                factory = _str_factory
            else:
                element = self.resolve(Annotated[int, ScalarSpec(WireKind.UINT8)])
                factory = bytearray if base is bytearray else _bytes_factory
            return WireType(kind, tp, children=(element,), factory=factory, min_size=SIZE_PREFIX_SIZE)

        if kind is WireKind.ARRAY:
            (element_tp,) = get_args(base)
            element = self.resolve(element_tp)
            length = marker.length
            fixed = None if element.fixed_size is None else element.fixed_size * length
            return WireType(
                kind,
                tp,
                children=(element,),
                length=length,
                factory=list,
                fixed_size=fixed,
                min_size=element.min_size * length,
                has_array=True,
            )

        origin = get_origin(base)
        args = get_args(base)

        if kind is WireKind.MAP:
            if len(args) != 2:
                raise UnsupportedTypeException(f"Map type {tp!r} needs key and value types")
            key = self.resolve(args[0])
            value = self.resolve(args[1])
            factory = collections.OrderedDict if origin is collections.OrderedDict else dict
            return WireType(kind, tp, children=(key, value), factory=factory, min_size=SIZE_PREFIX_SIZE)

        if kind is WireKind.SET:
            if len(args) != 1:
                raise UnsupportedTypeException(f"Set type {tp!r} needs an element type")
            element = self.resolve(args[0])
            factory = frozenset if origin is frozenset else set
            return WireType(kind, tp, children=(element,), factory=factory, min_size=SIZE_PREFIX_SIZE)

        if kind is WireKind.CONTAINER:
            if not args:
                raise UnsupportedTypeException(f"Container type {tp!r} needs an element type")
            element = self.resolve(args[0])
            if origin is tuple:
                factory = tuple
            elif origin is collections.deque:
                factory = collections.deque
            else:
                factory = list
            return WireType(kind, tp, children=(element,), factory=factory, min_size=SIZE_PREFIX_SIZE)

        return self._resolve_record(tp, base)

    def _resolve_record(self, tp: Any, base: Any) -> WireType:
        record = describe_record(base)
        if record is None:
            raise UnsupportedTypeException(f"Type {tp!r} is not supported for serialization")
        guard = record.clazz if record.clazz is not tuple else base
        if guard in self._resolving:
            raise UnsupportedTypeException(
                f"Record {record.type_name} contains itself and cannot be serialized"
            )
        self._resolving.add(guard)
        try:
            children = tuple(self.resolve(f.annotation) for f in record.fields)
        finally:
            self._resolving.discard(guard)
        sizes = [c.fixed_size for c in children]
        fixed = None if any(s is None for s in sizes) else sum(sizes)
        return WireType(
            WireKind.RECORD,
            tp,
            children=children,
            record=record,
            fixed_size=fixed,
            min_size=sum(c.min_size for c in children),
            has_array=any(c.has_array for c in children),
        )


def matches(wire_type: WireType, value: Any) -> bool:
    """Check whether a Python value has the shape of a wire type.

    Used to pick the active alternative of a variant, so the check is
    strict: ``True`` does not match an integer kind and ``1`` does not
    match a float kind.
    """
    kind = wire_type.kind
    if kind is WireKind.MONOSTATE:
        return value is None
    if kind in INTEGER_KINDS:
        if wire_type.factory is not None:
            return isinstance(value, wire_type.factory)
        return isinstance(value, int) and not isinstance(value, bool)
    if kind in FLOAT_KINDS:
        return isinstance(value, float)
    if kind is WireKind.BOOL:
        return isinstance(value, bool)
    if kind is WireKind.CHAR:
        return isinstance(value, str) and len(value) == 1
    if kind is WireKind.STRING:
        if wire_type.factory is _str_factory:
            return isinstance(value, str)
        return isinstance(value, (bytes, bytearray, memoryview))
    if kind is WireKind.OPTIONAL:
        return value is None or matches(wire_type.element, value)
    if kind is WireKind.VARIANT:
        return any(matches(alt, value) for alt in wire_type.children)
    if kind is WireKind.ARRAY:
        return isinstance(value, (list, tuple)) and len(value) == wire_type.length
    if kind is WireKind.CONTAINER:
        return isinstance(value, (list, tuple, collections.deque))
    if kind is WireKind.SET:
        return isinstance(value, (set, frozenset))
    if kind is WireKind.MAP:
        return isinstance(value, collections.abc.Mapping)
    if kind is WireKind.RECORD:
        return wire_type.record.is_instance(value)
    return False


def select_alternative(wire_type: WireType, value: Any) -> int:
    """Get the index of the first variant alternative matching a value.

    Returns:
        The alternative index, or -1 if the variant is valueless.
    """
    for index, alternative in enumerate(wire_type.children):
        if matches(alternative, value):
            return index
    return -1


_default_classifier = TypeClassifier()


def classify(tp: Any) -> WireKind:
    """Classify an annotation with the default integer and float kinds."""
    return _default_classifier.classify(tp)


def resolve(tp: Any) -> WireType:
    """Resolve an annotation with the default integer and float kinds."""
    return _default_classifier.resolve(tp)
