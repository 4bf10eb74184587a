"""typepack serialization package."""

from typepack.serialization.kinds import WireKind
from typepack.serialization.types import (
    Int8,
    UInt8,
    Int16,
    UInt16,
    Int32,
    UInt32,
    Int64,
    UInt64,
    Float32,
    Float64,
    Bool,
    Char,
    Monostate,
    Array,
    Variant,
    Compatible,
)
from typepack.serialization.classifier import TypeClassifier, WireType
from typepack.serialization.packer import Packer
from typepack.serialization.unpacker import Unpacker
from typepack.serialization.service import PackService, DeserializeResult

__all__ = [
    "WireKind",
    "Int8",
    "UInt8",
    "Int16",
    "UInt16",
    "Int32",
    "UInt32",
    "Int64",
    "UInt64",
    "Float32",
    "Float64",
    "Bool",
    "Char",
    "Monostate",
    "Array",
    "Variant",
    "Compatible",
    "TypeClassifier",
    "WireType",
    "Packer",
    "Unpacker",
    "PackService",
    "DeserializeResult",
]
