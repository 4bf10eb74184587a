"""Schema marker types.

Plain Python annotations do not say how wide an integer is or how long
an array must be. The aliases and generic markers in this module carry
that information inside ``typing.Annotated`` metadata, so they can be
used anywhere an annotation is expected::

    @dataclass
    class Reading:
        sensor: UInt16
        samples: Array[Float32, 4]
        label: Optional[str] = None
        note: Compatible[str] = None
"""

from dataclasses import dataclass
from typing import Annotated, Any, List, Optional, Tuple, Union

from typepack.serialization.kinds import WireKind, SCALAR_FORMATS


@dataclass(frozen=True)
class ScalarSpec:
    """Fixed-width scalar marker."""

    kind: WireKind

    def __post_init__(self):
        if self.kind not in SCALAR_FORMATS:
            raise ValueError(f"{self.kind!r} is not a scalar kind")


@dataclass(frozen=True)
class ArraySpec:
    """Fixed-length array marker."""

    length: int


@dataclass(frozen=True)
class VariantSpec:
    """Variant marker keeping alternatives in declaration order."""

    alternatives: Tuple[Any, ...]


@dataclass(frozen=True)
class CompatibleSpec:
    """Forward-compatible field marker."""


COMPATIBLE = CompatibleSpec()

Int8 = Annotated[int, ScalarSpec(WireKind.INT8)]
UInt8 = Annotated[int, ScalarSpec(WireKind.UINT8)]
Int16 = Annotated[int, ScalarSpec(WireKind.INT16)]
UInt16 = Annotated[int, ScalarSpec(WireKind.UINT16)]
Int32 = Annotated[int, ScalarSpec(WireKind.INT32)]
UInt32 = Annotated[int, ScalarSpec(WireKind.UINT32)]
Int64 = Annotated[int, ScalarSpec(WireKind.INT64)]
UInt64 = Annotated[int, ScalarSpec(WireKind.UINT64)]
Float32 = Annotated[float, ScalarSpec(WireKind.FLOAT32)]
Float64 = Annotated[float, ScalarSpec(WireKind.FLOAT64)]
Bool = Annotated[bool, ScalarSpec(WireKind.BOOL)]
# A single character, one byte on the wire (latin-1).
Char = Annotated[str, ScalarSpec(WireKind.CHAR)]

# The empty alternative of a variant. Its only value is None.
Monostate = type(None)


class Array:
    """Fixed-length array: ``Array[Float64, 3]``.

    Values are lists (or tuples) of exactly the declared length. No count
    prefix is written.
    """

    def __class_getitem__(cls, params):
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError("Array[...] takes an element type and a length")
        element, length = params
        if isinstance(length, bool) or not isinstance(length, int) or length < 0:
            raise TypeError(f"Array length must be a non-negative int, got {length!r}")
        return Annotated[List[element], ArraySpec(length)]


class Variant:
    """Tagged union: ``Variant[int, float, str]``.

    Unlike ``Union``, alternatives keep their declaration order and
    duplicates. A bare ``Union[...]`` is also accepted as a variant.
    """

    def __class_getitem__(cls, params):
        if not isinstance(params, tuple):
            params = (params,)
        if not params:
            raise TypeError("Variant[...] needs at least one alternative")
        alternatives = tuple(type(None) if p is None else p for p in params)
        return Annotated[Union[alternatives], VariantSpec(alternatives)]


class Compatible:
    """Field that may be appended to a record without breaking old readers.

    ``Compatible[T]`` behaves like ``Optional[T]``: ``None`` means absent.
    """

    def __class_getitem__(cls, item):
        return Annotated[Optional[item], COMPATIBLE]
