"""typepack exceptions.

This module defines the exception hierarchy for typepack. All exceptions
inherit from :class:`TypePackException`.

Write-path problems are raised. Read-path problems are raised internally
as :class:`DecodeException` subclasses and converted into an
:class:`ErrorKind` by the public deserialization functions.

Example:
    Handling schema definition errors::

        from typepack.exceptions import UnsupportedTypeException

        try:
            data = typepack.serialize(value, types=[object])
        except UnsupportedTypeException as e:
            print(f"Cannot serialize: {e}")
"""

from enum import Enum


class ErrorKind(Enum):
    """Outcome of a deserialization call."""

    OK = "ok"
    NO_BUFFER_SPACE = "no_buffer_space"
    INVALID_ARGUMENT = "invalid_argument"

    def __bool__(self) -> bool:
        # Truthy on failure, like a non-zero error code.
        return self is not ErrorKind.OK


class TypePackException(Exception):
    """Base class for all typepack exceptions.

    Args:
        message: The error message describing the exception.
        cause: The underlying exception that caused this error, if any.

    Attributes:
        cause: The underlying cause of this exception, if any.
    """

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class IllegalStateException(TypePackException):
    """Raised when the data handed to the packer is in a corrupted state.

    These conditions indicate a bug upstream of serialization and are
    never converted into an error code.

    Example:
        - A variant value that matches none of its alternatives
        - A container holding more elements than the wire can count
    """
    pass


class IllegalArgumentException(TypePackException):
    """Raised when an illegal or inappropriate argument is passed.

    Example:
        - An integer outside the range of its declared width
        - A fixed array value with the wrong number of elements
        - A field index past the end of a record
    """
    pass


class ConfigurationException(TypePackException):
    """Raised when the configuration is invalid or cannot be loaded."""
    pass


class UnsupportedTypeException(TypePackException):
    """Raised when an annotation cannot be mapped to a wire kind.

    Resolution happens before any byte is written or read, so this plays
    the part of a compile-time error.
    """
    pass


class CompatiblePlacementException(UnsupportedTypeException):
    """Raised when a ``Compatible[T]`` field sits where it cannot be skipped.

    Compatible fields must be trailing direct fields of a record in
    trailing position.
    """
    pass


class DecodeException(TypePackException):
    """Base class for recoverable read-path failures.

    Attributes:
        error_kind: The :class:`ErrorKind` reported to the caller.
    """

    error_kind = ErrorKind.INVALID_ARGUMENT


class NoBufferSpaceException(DecodeException):
    """Raised when the buffer ends before a required field is complete."""

    error_kind = ErrorKind.NO_BUFFER_SPACE


class SchemaMismatchException(DecodeException):
    """Raised when the stored type code does not match the reader's schema.

    Args:
        message: The error message.
        stored_code: The type code found in the buffer.
        expected_code: The type code computed from the reader's types.
    """

    error_kind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str, stored_code: int = 0, expected_code: int = 0):
        super().__init__(message)
        self._stored_code = stored_code
        self._expected_code = expected_code

    @property
    def stored_code(self) -> int:
        """Get the type code read from the buffer."""
        return self._stored_code

    @property
    def expected_code(self) -> int:
        """Get the type code the reader expected."""
        return self._expected_code


class InvalidDataException(DecodeException):
    """Raised when buffer contents cannot be valid for the reader's schema.

    Example:
        - A variant index past the last alternative
        - An optional presence byte other than 0 or 1
        - A string that is not valid UTF-8
    """

    error_kind = ErrorKind.INVALID_ARGUMENT
