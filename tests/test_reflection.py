"""
Tests for the reflection module: descriptors, records and the reflection functions.
"""
import pytest
from pydantic import ValidationError

from clonekit.basetypes import Sym
from clonekit.reflection import (
    PropertyDescriptor, Record, own_keys, enumerable_own_keys, get_own_property_descriptor,
    define_property, put, get_prototype_of, set_prototype_of, is_extensible, prevent_extensions,
)
from test_utils import Point


@pytest.fixture
def locked_record() -> Record:
    record = Record(a=1)
    define_property(record, "ro", PropertyDescriptor(value=2, writable=False))
    define_property(record, "hidden", PropertyDescriptor(value=3, enumerable=False))
    define_property(record, "fixed", PropertyDescriptor(value=4, configurable=False))
    return record


class TestPropertyDescriptor:
    def test_defaults_are_plain(self) -> None:
        descriptor = PropertyDescriptor(value=1)
        assert descriptor.is_plain
        assert not descriptor.is_accessor

    def test_accessor(self) -> None:
        descriptor = PropertyDescriptor(fget=lambda self: 1)
        assert descriptor.is_accessor
        assert not descriptor.is_plain

    def test_accessor_with_value_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PropertyDescriptor(value=1, fget=lambda self: 1)
        with pytest.raises(ValidationError):
            PropertyDescriptor(writable=False, fset=lambda self, v: None)

    def test_frozen(self) -> None:
        descriptor = PropertyDescriptor(value=1)
        with pytest.raises(ValidationError):
            descriptor.value = 2


class TestRecord:
    def test_init_and_access(self) -> None:
        record = Record({"a": 1}, b=2)
        assert record.a == 1
        assert record["b"] == 2
        assert list(record) == ["a", "b"]
        assert len(record) == 2
        assert "a" in record

    def test_missing_property(self) -> None:
        record = Record()
        with pytest.raises(AttributeError):
            record.nothing
        with pytest.raises(KeyError):
            record["nothing"]

    def test_assignment_adds_plain_properties(self) -> None:
        record = Record()
        record.x = 5
        record[Sym("s")] = 6
        assert get_own_property_descriptor(record, "x").is_plain
        assert len(own_keys(record)) == 2

    def test_read_only(self, locked_record) -> None:
        with pytest.raises(TypeError, match="read-only"):
            locked_record.ro = 20
        assert locked_record.ro == 2

    def test_non_enumerable_is_hidden(self, locked_record) -> None:
        assert "hidden" not in list(locked_record)
        assert "hidden" in locked_record
        assert locked_record.hidden == 3
        assert "hidden" not in repr(locked_record)

    def test_non_configurable_cannot_be_deleted(self, locked_record) -> None:
        with pytest.raises(TypeError, match="non-configurable"):
            del locked_record.fixed
        del locked_record.a
        assert "a" not in locked_record

    def test_accessors(self) -> None:
        record = Record(_celsius=0)
        define_property(record, "fahrenheit", PropertyDescriptor(
            fget=lambda self: self["_celsius"] * 9 / 5 + 32,
            fset=lambda self, value: self.__setitem__("_celsius", (value - 32) * 5 / 9),
        ))
        assert record.fahrenheit == 32
        record.fahrenheit = 212
        assert record["_celsius"] == 100
        assert "fahrenheit=<accessor>" in repr(record)

    def test_getter_only_accessor(self) -> None:
        record = Record()
        define_property(record, "answer", PropertyDescriptor(fget=lambda self: 42))
        with pytest.raises(TypeError, match="no setter"):
            record.answer = 1

    def test_prevent_extensions(self) -> None:
        record = prevent_extensions(Record(a=1))
        assert not is_extensible(record)
        record.a = 2  # existing properties stay writable
        with pytest.raises(TypeError, match="not extensible"):
            record.b = 3
        with pytest.raises(TypeError, match="not extensible"):
            define_property(record, "b", PropertyDescriptor(value=3))

    def test_repr(self) -> None:
        assert repr(Record(a=1, b="x")) == "Record(a=1, b='x')"

    def test_subclass_methods(self) -> None:
        class Named(Record):
            def greet(self) -> str:
                return f"hi {self.name}"
        assert Named(name="Jenny").greet() == "hi Jenny"


class TestOwnKeys:
    def test_record_keys_in_order(self) -> None:
        s = Sym("s")
        record = Record(b=1, a=2)
        record[s] = 3
        assert own_keys(record) == ["b", "a", s]
        assert own_keys(record, symbols=False) == ["b", "a"]

    def test_list_indices_then_attributes(self, list_123) -> None:
        assert own_keys(list_123) == [0, 1, 2]

    def test_object_attributes(self, point_12) -> None:
        assert own_keys(point_12) == ["x", "y"]

    def test_set_slots_only(self, slotted) -> None:
        assert own_keys(slotted) == ["a"]

    def test_maps_have_no_own_keys(self, dict_a1b2) -> None:
        assert own_keys(dict_a1b2) == []

    def test_enumerable_own_keys(self, locked_record) -> None:
        locked_record[Sym()] = 0
        assert enumerable_own_keys(locked_record) == ["a", "ro", "fixed"]

    def test_primitive_rejected(self) -> None:
        with pytest.raises(TypeError):
            own_keys("abc")


class TestDescriptors:
    def test_generic_objects_report_plain_descriptors(self, point_12, list_123, slotted) -> None:
        assert get_own_property_descriptor(point_12, "x") == PropertyDescriptor(value=1)
        assert get_own_property_descriptor(list_123, 2).value == 3
        assert get_own_property_descriptor(slotted, "a").value == [1]
        assert get_own_property_descriptor(slotted, "b") is None
        assert get_own_property_descriptor(list_123, 9) is None

    def test_define_on_generic_objects(self, point_12, slotted) -> None:
        define_property(point_12, "z", PropertyDescriptor(value=3))
        assert point_12.z == 3
        define_property(slotted, "b", PropertyDescriptor(value="set"))
        assert slotted.b == "set"

    def test_generic_objects_reject_attributes(self, point_12) -> None:
        with pytest.raises(TypeError, match="plain data properties"):
            define_property(point_12, "z", PropertyDescriptor(value=3, writable=False))
        with pytest.raises(TypeError):
            define_property(point_12, "z", PropertyDescriptor(fget=lambda self: 1))

    def test_redefine_non_configurable(self, locked_record) -> None:
        # rewriting the value keeps being possible while it is writable
        define_property(locked_record, "fixed", PropertyDescriptor(value=40, configurable=False))
        assert locked_record.fixed == 40
        with pytest.raises(TypeError, match="redefine"):
            define_property(locked_record, "fixed", PropertyDescriptor(value=5))

    def test_put_respects_setters_and_flags(self, locked_record, point_12, list_123) -> None:
        put(point_12, "x", 10)
        put(list_123, 0, "zero")
        assert (point_12.x, list_123[0]) == (10, "zero")
        with pytest.raises(TypeError):
            put(locked_record, "ro", 0)


class TestPrototypesAndExtensibility:
    def test_prototype_is_class(self, point_12) -> None:
        assert get_prototype_of(point_12) is Point

    def test_set_prototype(self, point_12) -> None:
        class Point3(Point):
            pass
        assert type(set_prototype_of(point_12, Point3)) is Point3

    def test_extensibility_of_generic_objects(self, point_12, slotted, list_123) -> None:
        assert is_extensible(point_12)
        assert not is_extensible(slotted)
        assert not is_extensible(list_123)
        assert prevent_extensions(slotted) is slotted
        with pytest.raises(TypeError, match="cannot be made non-extensible"):
            prevent_extensions(point_12)
