"""
Provides the type vocabulary shared by this package's other modules: aliases, classification predicates and expectations

Defines types:
    Type variables
        T, X, Y  # these are generic type variables
        KT, VT   # for dictionaries
    Type aliases
        Func                Callable[..., Any]
        Decorator           Callable[[F], F]
        Object              dict[str, Any]
        Options             Object | None
        PropertyKey         str | int | Sym
        Expectation         Callable[[Any], None]

    class Sym
    class Kind(Enum)

    is_primitive, is_non_primitive  (arg: Any) -> bool
    is_function, is_type            (arg: Any) -> bool
    is_array, is_tuple              (arg: Any) -> bool
    is_map, is_set, is_frozenset    (arg: Any) -> bool
    is_weak_map, is_weak_set        (arg: Any) -> bool
    is_date, is_regexp, is_error    (arg: Any) -> bool
    is_typed_array                  (arg: Any) -> bool
    is_boxed_primitive              (arg: Any) -> bool
    is_property_key                 (arg: Any) -> bool
    kind_of                         (arg: Any) -> Kind
    make_expectation                (predicate: Callable[[Any], bool], description: str) -> Expectation
    expect_non_primitive, expect_function, expect_property_key, expect_boolean
"""
from __future__ import annotations

import array
import collections
import datetime
import decimal
import enum
import fractions
import functools
import inspect
import re
import types
import weakref

from typing import TypeVar, TypeAlias, Any

from collections.abc import Hashable, Callable

T, X, Y = TypeVar('T'), TypeVar('X'), TypeVar('Y')
KT, VT = TypeVar('KT', bound=Hashable), TypeVar('VT')
Func = Callable[..., Any]
Decorator = Callable[[Func], Func]

Object = dict[str, Any]
Options = Object | None
Expectation: TypeAlias = Callable[[Any], None]


class Sym:
    """
    A unique property key, distinct from every string key and from every other Sym.
    Sym keys let a Record carry properties that ordinary attribute access and
    name-only reflection never see. Two Syms with the same description are still different keys.
    """
    __slots__ = ('description',)

    def __init__(self, description: str = '') -> None:
        self.description = description

    def __repr__(self) -> str:
        return f"Sym({self.description!r})"


PropertyKey: TypeAlias = str | int | Sym

# exact types only: instances of subclasses are boxed primitives
PRIMITIVE_TYPES: tuple[type, ...] = (
    type(None), bool, int, float, complex, str, bytes,
    type(...), type(NotImplemented),
    decimal.Decimal, fractions.Fraction, range, slice,
    datetime.timezone, Sym,
)
BOXABLE_TYPES: tuple[type, ...] = (bool, int, float, complex, str, bytes)


class Kind(enum.Enum):
    """
    The structural category of a value, used to pick how an empty copy of it is built.
    Sealed kinds (TUPLE, FROZENSET) can only be built once their items are known;
    shared kinds (FUNCTION, TYPE) are never duplicated.
    """
    ARRAY = 'Array'
    TUPLE = 'Tuple'
    DATE = 'Date'
    REGEXP = 'RegExp'
    MAP = 'Map'
    SET = 'Set'
    FROZENSET = 'FrozenSet'
    WEAK_MAP = 'WeakMap'
    WEAK_SET = 'WeakSet'
    BOXED_PRIMITIVE = 'BoxedPrimitive'
    TYPED_ARRAY = 'TypedArray'
    ERROR = 'Error'
    FUNCTION = 'Function'
    TYPE = 'Type'
    PLAIN_OBJECT = 'Object'

    @property
    def sealed(self) -> bool:
        return self in (Kind.TUPLE, Kind.FROZENSET)

    @property
    def shared(self) -> bool:
        return self in (Kind.FUNCTION, Kind.TYPE)


def is_primitive(arg: Any) -> bool:
    """
    Checks whether 'arg' is a primitive: a value of one of the immutable scalar types, compared by exact type.
    An instance of a subclass of int, str etc. is not primitive; it is a boxed primitive.
    :param arg: The value to examine.
    :return: True if 'arg' is primitive.
    """
    return type(arg) in PRIMITIVE_TYPES

def is_non_primitive(arg: Any) -> bool:
    return not is_primitive(arg)

def is_function(arg: Any) -> bool:
    """
    Checks whether 'arg' is a function: a routine (function, method, builtin), a functools.partial,
    or a callable wrapper built by functools.update_wrapper (such as a Memoized wrapper).
    Classes and arbitrary callable instances are not functions.
    :param arg: The value to examine.
    :return: True if 'arg' is function-like.
    """
    if inspect.isroutine(arg) or isinstance(arg, functools.partial):
        return True
    return callable(arg) and not isinstance(arg, type) and hasattr(arg, '__wrapped__')

def is_type(arg: Any) -> bool:
    """Classes, modules and enum members: namespaces that are shared rather than copied."""
    return isinstance(arg, (type, types.ModuleType, enum.Enum))

def is_array(arg: Any) -> bool:
    return isinstance(arg, (list, collections.deque))

def is_tuple(arg: Any) -> bool:
    return isinstance(arg, tuple)

def is_map(arg: Any) -> bool:
    return isinstance(arg, dict)

def is_set(arg: Any) -> bool:
    return isinstance(arg, set)

def is_frozenset(arg: Any) -> bool:
    return isinstance(arg, frozenset)

def is_weak_map(arg: Any) -> bool:
    return isinstance(arg, (weakref.WeakKeyDictionary, weakref.WeakValueDictionary))

def is_weak_set(arg: Any) -> bool:
    return isinstance(arg, weakref.WeakSet)

def is_date(arg: Any) -> bool:
    return isinstance(arg, (datetime.date, datetime.time, datetime.timedelta))

def is_regexp(arg: Any) -> bool:
    return isinstance(arg, re.Pattern)

def is_error(arg: Any) -> bool:
    return isinstance(arg, BaseException)

def is_typed_array(arg: Any) -> bool:
    return isinstance(arg, (array.array, bytearray))

def is_boxed_primitive(arg: Any) -> bool:
    return isinstance(arg, BOXABLE_TYPES) and not is_primitive(arg)

def is_property_key(arg: Any) -> bool:
    return type(arg) in (str, int, Sym)

def is_boolean(arg: Any) -> bool:
    return isinstance(arg, bool)


# checked in order: enum members are boxed ints too, exceptions may subclass anything
_kind_predicates: list[tuple[Kind, Callable[[Any], bool]]] = [
    (Kind.FUNCTION, is_function),
    (Kind.TYPE, is_type),
    (Kind.ERROR, is_error),
    (Kind.BOXED_PRIMITIVE, is_boxed_primitive),
    (Kind.ARRAY, is_array),
    (Kind.TUPLE, is_tuple),
    (Kind.MAP, is_map),
    (Kind.SET, is_set),
    (Kind.FROZENSET, is_frozenset),
    (Kind.WEAK_MAP, is_weak_map),
    (Kind.WEAK_SET, is_weak_set),
    (Kind.DATE, is_date),
    (Kind.REGEXP, is_regexp),
    (Kind.TYPED_ARRAY, is_typed_array),
]

def kind_of(arg: Any) -> Kind:
    """
    Look up the kind tag of a non-primitive value.
    The tag selects the strategy used to build an empty value of the same kind; anything not
    recognized (instances of user classes, Records) is a PLAIN_OBJECT.
    :param arg: A non-primitive value.
    :return: The Kind of 'arg'.
    """
    expect_non_primitive(arg)
    for kind, predicate in _kind_predicates:
        if predicate(arg):
            return kind
    return Kind.PLAIN_OBJECT


def make_expectation(predicate: Callable[[Any], bool], description: str) -> Expectation:
    """
    Turns a predicate into an expectation: a function that returns None when the predicate
    holds for its argument and raises TypeError("expected <description>.") otherwise.
    :param predicate: The predicate to check.
    :param description: A readable description of the expected type, e.g. "a non-primitive value".
    :return: The expectation function.
    """
    if not isinstance(description, str) or not description:
        raise TypeError("expected a non-empty type description.")

    def expectation(arg: Any) -> None:
        if not predicate(arg):
            msg = f"expected {description}."
            raise TypeError(msg)
    expectation.__name__ = f"expect_{predicate.__name__.removeprefix('is_')}"
    expectation.__doc__ = f"Raises TypeError unless the argument is {description}."
    return expectation

expect_non_primitive = make_expectation(is_non_primitive, "a non-primitive value")
expect_function = make_expectation(callable, "a function")
expect_property_key = make_expectation(is_property_key, "a property key")
expect_boolean = make_expectation(is_boolean, "a boolean")
