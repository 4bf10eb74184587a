"""typepack - schema-checked binary serialization driven by type annotations."""

from typepack.exceptions import (
    ErrorKind,
    TypePackException,
    IllegalStateException,
    IllegalArgumentException,
    ConfigurationException,
    UnsupportedTypeException,
    CompatiblePlacementException,
    DecodeException,
    NoBufferSpaceException,
    SchemaMismatchException,
    InvalidDataException,
)
from typepack.serialization import (
    WireKind,
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
    PackService,
    DeserializeResult,
)
from typepack.config import PackConfig
from typepack.pack import (
    configure,
    get_service,
    get_needed_size,
    serialize_to,
    serialize_append,
    serialize,
    deserialize,
    deserialize_args,
    deserialize_to,
    deserialize_to_with_length,
    get_field,
    get_type_code,
    get_type_literal,
    is_schema_compatible,
)

__version__ = "0.1.0"

__all__ = [
    "PackConfig",
    "ErrorKind",
    "TypePackException",
    "IllegalStateException",
    "IllegalArgumentException",
    "ConfigurationException",
    "UnsupportedTypeException",
    "CompatiblePlacementException",
    "DecodeException",
    "NoBufferSpaceException",
    "SchemaMismatchException",
    "InvalidDataException",
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
    "PackService",
    "DeserializeResult",
    "configure",
    "get_service",
    "get_needed_size",
    "serialize_to",
    "serialize_append",
    "serialize",
    "deserialize",
    "deserialize_args",
    "deserialize_to",
    "deserialize_to_with_length",
    "get_field",
    "get_type_code",
    "get_type_literal",
    "is_schema_compatible",
]
