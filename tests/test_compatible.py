"""Tests for forward and backward compatible record evolution."""

import struct
from dataclasses import dataclass
from typing import List

import pytest

from typepack.exceptions import CompatiblePlacementException, ErrorKind
from typepack.serialization.types import Compatible


@dataclass
class EndpointV1:
    name: str
    port: int


@dataclass
class EndpointV2:
    name: str
    port: int
    timeout: Compatible[float] = None
    tags: Compatible[List[str]] = None


@dataclass
class ServiceV1:
    id: int
    endpoint: EndpointV1


@dataclass
class ServiceV2:
    id: int
    endpoint: EndpointV2


@dataclass
class Misplaced:
    extra: Compatible[int] = None
    port: int = 0


class TestTypeCodes:
    """Tests for type codes of evolving records."""

    def test_versions_are_schema_compatible(self, service):
        v1 = service.get_type_code(EndpointV1)
        v2 = service.get_type_code(EndpointV2)
        assert v1 != v2
        assert v2 & 1 == 1
        assert v1 & 1 == 0
        assert service.is_schema_compatible(v1, v2)

    def test_nested_versions(self, service):
        assert service.is_schema_compatible(
            service.get_type_code(ServiceV1),
            service.get_type_code(ServiceV2),
        )

    def test_misplaced_field(self, service):
        with pytest.raises(CompatiblePlacementException):
            service.serialize(Misplaced(1, 2))

    def test_not_last_argument(self, service):
        with pytest.raises(CompatiblePlacementException):
            service.serialize(EndpointV2("a", 1), 5)


class TestWireFormat:
    """Tests for the total length header."""

    def test_total_length_header(self, service):
        data = service.serialize(EndpointV2("api", 80, 1.5))
        assert struct.unpack_from("<Q", data, 4)[0] == len(data)

    def test_absent_fields_written_as_flags(self, service):
        data = service.serialize(EndpointV2("api", 80))
        assert len(data) == 12 + 7 + 4 + 1 + 1
        assert data[-2:] == b"\x00\x00"


class TestNewWriterOldReader:
    """An old reader skips the fields it does not know."""

    def test_read_newer_record(self, service):
        data = service.serialize(EndpointV2("api", 80, 1.5, ["a", "b"]))
        result = service.deserialize(EndpointV1, data)
        assert result.error is ErrorKind.OK
        assert result.value == EndpointV1("api", 80)

    def test_consumes_whole_message(self, service):
        buffer = bytearray()
        first = service.serialize_append(buffer, EndpointV2("api", 80, 1.5))
        service.serialize_append(buffer, 7)

        out = EndpointV1("", 0)
        error, consumed = service.deserialize_to_with_length(out, buffer)
        assert error is ErrorKind.OK
        assert consumed == first
        assert out == EndpointV1("api", 80)
        assert service.deserialize(int, buffer, offset=consumed).value == 7

    def test_nested_newer_record(self, service):
        data = service.serialize(ServiceV2(9, EndpointV2("api", 80, tags=["x"])))
        assert service.deserialize(ServiceV1, data).value == ServiceV1(9, EndpointV1("api", 80))


class TestOldWriterNewReader:
    """A new reader sees fields missing from old messages as absent."""

    def test_read_older_record(self, service):
        data = service.serialize(EndpointV1("api", 80))
        result = service.deserialize(EndpointV2, data)
        assert result.error is ErrorKind.OK
        assert result.value == EndpointV2("api", 80, None, None)

    def test_get_missing_field(self, service):
        data = service.serialize(EndpointV1("api", 80))
        assert service.get_field(EndpointV2, 2, data).value is None
        assert service.get_field(EndpointV2, 1, data).value == 80

    def test_nested_older_record(self, service):
        data = service.serialize(ServiceV1(9, EndpointV1("api", 80)))
        assert service.deserialize(ServiceV2, data).value == ServiceV2(9, EndpointV2("api", 80))


class TestSameVersion:
    """Round trips between identical schemas."""

    @pytest.mark.parametrize(
        "value",
        [
            EndpointV2("api", 80),
            EndpointV2("api", 80, 2.5),
            EndpointV2("api", 80, None, ["a"]),
            EndpointV2("api", 80, 0.0, []),
        ],
    )
    def test_round_trip(self, service, value):
        data = service.serialize(value)
        assert service.get_needed_size(value) == len(data)
        assert service.deserialize(EndpointV2, data).value == value

    def test_truncated_message(self, service):
        data = service.serialize(EndpointV2("api", 80, 2.5))
        assert service.deserialize(EndpointV2, data[:-1]).error is ErrorKind.NO_BUFFER_SPACE
