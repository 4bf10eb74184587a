"""Tests for the size calculator."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import pytest

from typepack.exceptions import IllegalArgumentException, IllegalStateException
from typepack.serialization.classifier import TypeClassifier
from typepack.serialization.size import SizeCalculator, encoded_string
from typepack.serialization.kinds import MAX_EMPTY_ELEMENTS
from typepack.serialization.types import Array, Compatible, Float64, Int8, Int16, Monostate, Variant


@dataclass
class Sample:
    id: int
    name: str
    note: Compatible[str] = None


@dataclass
class Pair:
    xs: Array[Float64, 2]


@pytest.fixture
def resolve():
    return TypeClassifier().resolve


@pytest.fixture
def sizes():
    return SizeCalculator()


class TestCalculateOneSize:
    """Tests for per-value sizes."""

    @pytest.mark.parametrize(
        "annotation, value, size",
        [
            (Int8, 1, 1),
            (int, 1, 4),
            (float, 1.0, 8),
            (bool, True, 1),
            (None, None, 0),
            (str, "", 4),
            (str, "hi", 6),
            (str, "é", 6),
            (bytes, b"\x00\x01\x02", 7),
            (List[float], [1.0, 2.0], 20),
            (List[str], ["a", "bc"], 4 + 5 + 6),
            (Set[Int16], {1, 2, 3}, 10),
            (Dict[int, int], {1: 2}, 12),
            (Dict[str, int], {"ab": 1}, 4 + 6 + 4),
            (Optional[int], None, 1),
            (Optional[int], 7, 5),
            (Variant[int, float, str], 3.14, 9),
            (Variant[int, None], None, 1),
            (Array[Int16, 3], [1, 2, 3], 6),
            (Array[str, 2], ["a", ""], 9),
        ],
    )
    def test_sizes(self, resolve, sizes, annotation, value, size):
        assert sizes.calculate_one_size(resolve(annotation), value) == size

    def test_record_size(self, resolve, sizes, my_data, my_data_type):
        assert sizes.calculate_one_size(resolve(my_data_type), my_data) == 30

    def test_array_length_checked(self, resolve, sizes):
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(resolve(Array[Int16, 3]), [1, 2])

    def test_array_in_fixed_record_checked(self, resolve, sizes):
        wire_type = resolve(Pair)
        assert wire_type.fixed_size == 16
        assert sizes.calculate_one_size(wire_type, Pair([1.0, 2.0])) == 16
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(wire_type, Pair([1.0, 2.0, 3.0]))

    def test_array_in_container_element_checked(self, resolve, sizes):
        wire_type = resolve(List[Array[Float64, 2]])
        assert sizes.calculate_one_size(wire_type, [[1.0, 2.0]] * 3) == 52
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(wire_type, [[1.0]])

    def test_zero_size_element_limit(self, resolve, sizes):
        wire_type = resolve(List[Monostate])
        assert sizes.calculate_one_size(wire_type, [None] * MAX_EMPTY_ELEMENTS) == 4
        with pytest.raises(IllegalStateException):
            sizes.calculate_one_size(wire_type, [None] * (MAX_EMPTY_ELEMENTS + 1))

    def test_valueless_variant(self, resolve, sizes):
        with pytest.raises(IllegalStateException):
            sizes.calculate_one_size(resolve(Variant[int, str]), 1.5)

    def test_container_limit(self, resolve):
        sizes = SizeCalculator(max_container_size=2)
        with pytest.raises(IllegalStateException):
            sizes.calculate_one_size(resolve(List[int]), [1, 2, 3])
        with pytest.raises(IllegalStateException):
            sizes.calculate_one_size(resolve(str), "abc")
        assert sizes.calculate_one_size(resolve(List[int]), [1, 2]) == 12

    def test_string_type_checked(self, resolve, sizes):
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(resolve(str), b"bytes")
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(resolve(bytes), "text")
        with pytest.raises(IllegalArgumentException):
            sizes.calculate_one_size(resolve(str), 5)


class TestNeededSize:
    """Tests for full message sizes."""

    def test_header_only(self, sizes):
        assert sizes.needed_size([], [], compatible=False) == 4

    def test_reference_record(self, resolve, sizes, my_data, my_data_type):
        assert sizes.needed_size([resolve(my_data_type)], [my_data], compatible=False) == 34

    def test_compatible_header(self, resolve, sizes):
        size = sizes.needed_size([resolve(Sample)], [Sample(1, "a")], compatible=True)
        assert size == 12 + 4 + 5 + 1

    def test_variant_message(self, resolve, sizes):
        assert sizes.needed_size([resolve(Variant[int, float, str])], [3.14], compatible=False) == 13


class TestEncodedString:
    """Tests for string encoding."""

    def test_utf8(self, resolve):
        assert encoded_string(resolve(str), "hé") == b"h\xc3\xa9"

    def test_bytearray(self, resolve):
        assert encoded_string(resolve(bytes), bytearray(b"ab")) == b"ab"
