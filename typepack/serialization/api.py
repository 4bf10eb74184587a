"""Serialization stream interfaces.

This module defines the cursor-based interfaces the packer and unpacker
implement. They describe primitive access to a borrowed buffer; all type
dispatch happens in :mod:`typepack.serialization.packer` and
:mod:`typepack.serialization.unpacker`.

Example:
    Writing primitives directly::

        buffer = bytearray(8)
        packer = Packer(buffer)
        packer.write_scalar("<i", 4, 42)
        packer.write_scalar("<f", 4, 1.5)
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence


class PackOutput(ABC):
    """Interface for writing into a fixed-capacity buffer region."""

    @abstractmethod
    def write_scalar(self, fmt: str, size: int, value: Any) -> None:
        """Write one value with a struct format.

        Args:
            fmt: The struct format, including the byte order prefix.
            size: The encoded size of the format.
            value: The value to write.
        """
        pass

    @abstractmethod
    def write_bulk(self, code: str, size: int, values: Sequence[Any]) -> None:
        """Write a run of scalars of one format in a single call.

        Args:
            code: The struct format character of one element.
            size: The encoded size of one element.
            values: The values to write.
        """
        pass

    @abstractmethod
    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes.

        Args:
            data: The bytes to write.
        """
        pass

    @abstractmethod
    def position(self) -> int:
        """Get the number of bytes written so far."""
        pass


class PackInput(ABC):
    """Interface for reading from a bounded buffer region.

    Every read checks the region bounds first and fails with
    :class:`~typepack.exceptions.NoBufferSpaceException` instead of reading
    past the end.
    """

    @abstractmethod
    def read_scalar(self, fmt: str, size: int) -> Any:
        """Read one value with a struct format.

        Args:
            fmt: The struct format, including the byte order prefix.
            size: The encoded size of the format.

        Returns:
            The decoded value.
        """
        pass

    @abstractmethod
    def read_bulk(self, code: str, size: int, count: int) -> tuple:
        """Read a run of scalars of one format.

        Args:
            code: The struct format character of one element.
            size: The encoded size of one element.
            count: The number of elements.

        Returns:
            The decoded values.
        """
        pass

    @abstractmethod
    def read_bytes(self, length: int) -> bytes:
        """Read raw bytes.

        Args:
            length: The number of bytes to read.
        """
        pass

    @abstractmethod
    def skip_bytes(self, length: int) -> None:
        """Advance the cursor without reading.

        Args:
            length: The number of bytes to skip.
        """
        pass

    @abstractmethod
    def position(self) -> int:
        """Get the number of bytes consumed so far."""
        pass

    @abstractmethod
    def remaining(self) -> int:
        """Get the number of bytes left in the region."""
        pass
