"""
Test configuration and fixtures.
"""

# tests/conftest.py
import datetime
import re

import pytest
from typing import TypeVar, Callable, Any

from clonekit.reflection import Record
from test_utils import Point, Slotted

T = TypeVar('T')
TestFn = Callable[[Any], bool]

def fixture(obj_factory: Callable[[], T]) -> Callable[[], T]:
    @pytest.fixture
    def _fixture() -> T:
        # fresh objects per test, since clone tests inspect identities
        return obj_factory()
    return _fixture

# Common test objects that will be available to all tests
test_objects = {
    "dict_a1b2": lambda: {"a": 1, "b": 2},
    "list_123": lambda: [1, 2, 3],
    "empty_list": lambda: [],
    "point_12": lambda: Point(1, 2),
    "slotted": lambda: Slotted([1]),
    "record_ab": lambda: Record(a=1, b=[2, 3]),
    "date_2020": lambda: datetime.datetime(2020, 5, 17, 12, 30),
    "pattern_abc": lambda: re.compile(r"ab+c", re.IGNORECASE),
    "str_hello": lambda: "hello",
    "int_100": lambda: 100,
}

# Register fixtures globally
globals().update({
    name: fixture(obj)
    for name, obj in test_objects.items()
})
