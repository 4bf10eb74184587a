"""Tests for record field enumeration."""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Tuple

import pytest

from typepack.exceptions import IllegalArgumentException, UnsupportedTypeException
from typepack.serialization.fields import (
    RecordStyle,
    describe_record,
    is_fixed_tuple,
)
from typepack.serialization.types import Int16, UInt8


@dataclass
class Person:
    name: str
    age: UInt8
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FrozenPoint:
    x: int
    y: int


@dataclass
class WithDerived:
    base: int
    doubled: int = field(init=False, default=0)


class Pair(NamedTuple):
    left: int
    right: str


class Declared:
    __pack_fields__ = ("x", "y")

    x: Int16
    y: Int16
    label: str


class Undeclared:
    __pack_fields__ = ("x", "missing")

    x: int


class TestDescribeRecord:
    """Tests for describe_record."""

    def test_dataclass(self):
        record = describe_record(Person)
        assert record.style is RecordStyle.DATACLASS
        assert [f.name for f in record.fields] == ["name", "age", "tags"]
        assert [f.index for f in record.fields] == [0, 1, 2]
        assert record.fields[1].annotation == UInt8
        assert record.type_name == "Person"

    def test_named_tuple(self):
        record = describe_record(Pair)
        assert record.style is RecordStyle.NAMED_TUPLE
        assert [f.name for f in record.fields] == ["left", "right"]

    def test_fixed_tuple(self):
        record = describe_record(Tuple[int, str])
        assert record.style is RecordStyle.TUPLE
        assert record.field_count == 2
        assert record.fields[1].annotation is str

    def test_empty_tuple(self):
        record = describe_record(Tuple[()])
        assert record.field_count == 0

    def test_declared_fields(self):
        record = describe_record(Declared)
        assert record.style is RecordStyle.DECLARED
        assert [f.name for f in record.fields] == ["x", "y"]

    def test_declared_field_without_annotation(self):
        with pytest.raises(UnsupportedTypeException):
            describe_record(Undeclared)

    @pytest.mark.parametrize("annotation", [int, str, object, List[int], Tuple[int, ...]])
    def test_not_a_record(self, annotation):
        assert describe_record(annotation) is None

    def test_is_fixed_tuple(self):
        assert is_fixed_tuple(Tuple[int, int])
        assert not is_fixed_tuple(Tuple[int, ...])
        assert not is_fixed_tuple(List[int])

    def test_get_field(self):
        record = describe_record(Person)
        assert record.get_field("age").index == 1
        assert record.get_field("missing") is None


class TestRecordValues:
    """Tests for reading and rebuilding record values."""

    def test_values_and_build_dataclass(self):
        record = describe_record(Person)
        person = Person("ada", 36, ["x"])
        values = record.values(person)
        assert values == ["ada", 36, ["x"]]
        assert record.build(values) == person

    def test_build_named_tuple(self):
        record = describe_record(Pair)
        assert record.build([1, "a"]) == Pair(1, "a")

    def test_build_tuple(self):
        record = describe_record(Tuple[int, str])
        assert record.build([1, "a"]) == (1, "a")

    def test_tuple_length_checked(self):
        record = describe_record(Tuple[int, str])
        with pytest.raises(IllegalArgumentException):
            record.values((1,))

    def test_build_declared(self):
        record = describe_record(Declared)
        obj = record.build([3, 4])
        assert isinstance(obj, Declared)
        assert (obj.x, obj.y) == (3, 4)

    def test_build_with_non_init_field(self):
        record = describe_record(WithDerived)
        obj = record.build([2, 4])
        assert obj.base == 2
        assert obj.doubled == 4

    def test_values_of_wrong_object(self):
        record = describe_record(Person)
        with pytest.raises(IllegalArgumentException):
            record.values(object())

    def test_is_instance(self):
        assert describe_record(Person).is_instance(Person("a", 1))
        assert not describe_record(Person).is_instance(Pair(1, "a"))
        assert describe_record(Tuple[int, str]).is_instance([1, "a"])


class TestAssign:
    """Tests for in-place population."""

    def test_assign_dataclass(self):
        record = describe_record(Person)
        person = Person("old", 1)
        record.assign(person, ["new", 2, ["t"]])
        assert person == Person("new", 2, ["t"])

    def test_assign_declared(self):
        record = describe_record(Declared)
        obj = Declared()
        record.assign(obj, [5, 6])
        assert (obj.x, obj.y) == (5, 6)

    @pytest.mark.parametrize("annotation", [FrozenPoint, Pair, Tuple[int, int]])
    def test_assign_immutable(self, annotation):
        record = describe_record(annotation)
        with pytest.raises(IllegalArgumentException):
            record.check_assignable()
