"""
Deep cloning, shallow copying, assignment and structural comparison of arbitrary object graphs.

A 'copy' is shallow; a 'clone' is deep. Neither duplicates functions (closures cannot be cloned),
classes or modules: those are shared by reference.

Contains:
    class ClonePolicy(BaseModel)
    class CopyPolicy(BaseModel)
    class CloneError(TypeError)
    factories_by_kind           dict[Kind, Callable[[Any], Any]]
    clone                       (value: Any, policy: ClonePolicy | Mapping | None, **options) -> Any
    copy                        (value: Any, policy: CopyPolicy | Mapping | None, **options) -> Any
    copy_assign                 (value: Any, *sources: Any) -> Any
    assign                      (target: Any, *sources: Any) -> Any
    deep_equals                 (value1: Any, value2: Any) -> bool
"""
from __future__ import annotations

from clonekit.basetypes import *
from clonekit.reflection import *

import array
import collections
import itertools
import logging
import re

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class CopyPolicy(BaseModel):
    """
    Options shared by copy() and clone(). All default to False, the strict behaviour.
    :param ignore_attributes: Define every copied property as a plain writable, enumerable, configurable one.
    :param ignore_extensibility: Do not make the result non-extensible when the source is.
    :param ignore_symbols: Skip Sym-keyed properties.
    """
    model_config = ConfigDict(frozen=True, strict=True, extra='forbid', alias_generator=to_camel, validate_by_name=True)

    ignore_attributes: bool = False
    ignore_extensibility: bool = False
    ignore_symbols: bool = False

    @classmethod
    def coerce(cls, policy: CopyPolicy | Mapping[str, Any] | None = None, **options: Any) -> CopyPolicy:
        """
        Build a policy from an existing policy, a mapping of options and/or keyword options
        (later ones win). Raises TypeError on unknown options or non-boolean values.
        """
        if isinstance(policy, cls) and not options:
            return policy
        if isinstance(policy, BaseModel):
            policy = policy.model_dump()
        if policy is not None and not isinstance(policy, Mapping):
            msg = f"expected a {cls.__name__} or a mapping of options, got {type(policy).__name__}"
            raise TypeError(msg)
        try:
            return cls.model_validate({**(policy or {}), **options})
        except ValidationError as e:
            msg = f"Invalid {cls.__name__}: {e!s}"
            raise TypeError(msg) from e


class ClonePolicy(CopyPolicy):
    """
    Options of clone().
    :param allow_functions: Let functions through by reference instead of failing.
    :param allow_accessors: Copy accessor properties by reference (getter and setter shared) instead of failing.
    """
    allow_functions: bool = False
    allow_accessors: bool = False


class CloneError(TypeError):
    """
    Raised when a value graph contains something that cannot be cloned.
    'path' lists the keys leading from the root to the offending value.
    """
    def __init__(self, message: str, path: list[PropertyKey]) -> None:
        # path travels in args so that pickling and copying rebuild the error
        super().__init__(message, list(path))
        self.path = list(path)

    def __str__(self) -> str:
        return f"{self.args[0]} (at path {self.path!r})"


def _new_instance(cls: type) -> Any:
    """An instance of 'cls' with no state, made without calling __init__."""
    if cls.__new__ is not object.__new__:
        try:
            return cls.__new__(cls)
        except TypeError:
            # a custom __new__ that wants arguments; object.__new__ raises if it cannot stand in
            logger.debug(f"{cls.__name__}.__new__ needs arguments, using object.__new__")
    return object.__new__(cls)

def _new_array(node: Any) -> Any:
    shell = _new_instance(type(node))
    if isinstance(node, collections.deque):
        collections.deque.__init__(shell, (), node.maxlen)
    shell.extend(itertools.repeat(None, len(node)))
    return shell

def _new_map(node: dict) -> dict:
    shell = _new_instance(type(node))
    if isinstance(node, collections.defaultdict):
        shell.default_factory = node.default_factory
    return shell

def _new_date(node: Any) -> Any:
    # date, time, datetime and timedelta reduce to (type(node), constructor arguments)
    cls, args = node.__reduce__()[:2]
    return cls(*args)

def _new_boxed(node: Any) -> Any:
    base = next(t for t in BOXABLE_TYPES if isinstance(node, t))
    # the pickling hook reads the stored value, whatever __str__, __float__ etc. return
    return type(node).__new__(type(node), *base.__getnewargs__(node))

def _new_typed_array(node: Any) -> Any:
    if isinstance(node, array.array):
        return array.array.__new__(type(node), node.typecode, node)
    shell = _new_instance(type(node))
    shell.extend(node)
    return shell

def _new_error(node: BaseException) -> BaseException:
    return type(node).__new__(type(node), *node.args)

def _same(node: Any) -> Any:
    return node

factories_by_kind: dict[Kind, Callable[[Any], Any]] = {
    Kind.ARRAY: _new_array,
    Kind.DATE: _new_date,
    Kind.REGEXP: lambda node: re.compile(node.pattern, node.flags),
    Kind.MAP: _new_map,
    Kind.SET: lambda node: _new_instance(type(node)),
    # weak collections are rebuilt empty, their entries are never walked
    Kind.WEAK_MAP: lambda node: type(node)(),
    Kind.WEAK_SET: lambda node: type(node)(),
    Kind.BOXED_PRIMITIVE: _new_boxed,
    Kind.TYPED_ARRAY: _new_typed_array,
    Kind.ERROR: _new_error,
    Kind.FUNCTION: _same,
    Kind.TYPE: _same,
    Kind.PLAIN_OBJECT: lambda node: _new_instance(type(node)),
}

# sealed kinds are built from their (already processed) items
sealed_factories_by_kind: dict[Kind, Callable[[Any, list[Any]], Any]] = {
    Kind.TUPLE: lambda node, items: tuple.__new__(type(node), items),
    Kind.FROZENSET: lambda node, items: frozenset.__new__(type(node), items),
}

_opaque_kinds = (Kind.WEAK_MAP, Kind.WEAK_SET)


def _make_shell(node: Any, kind: Kind, path: list[PropertyKey]) -> Any:
    try:
        shell = factories_by_kind.get(kind, factories_by_kind[Kind.PLAIN_OBJECT])(node)
    except TypeError as e:
        logger.debug(f"No empty {type(node).__name__} can be built at {path!r}")
        msg = f"cannot create an empty {type(node).__name__} object"
        raise CloneError(msg, path) from e
    proto = get_prototype_of(node)
    if get_prototype_of(shell) is not proto:
        try:
            set_prototype_of(shell, proto)
        except TypeError as e:
            msg = f"cannot give a {type(shell).__name__} object the class {proto.__name__}"
            raise CloneError(msg, path) from e
    return shell

def _contents(node: Any, kind: Kind) -> list[tuple[Any, Any]]:
    """(path key, value) pairs of the contents that are not own properties."""
    if kind is Kind.MAP:
        return list(node.items())
    if kind in (Kind.SET, Kind.FROZENSET):
        return [(item, item) for item in node]
    if kind is Kind.TUPLE:
        return list(enumerate(node))
    return []

def _add_content(shell: Any, kind: Kind, key: Any, value: Any) -> None:
    if kind is Kind.MAP:
        shell[key] = value
    elif kind is Kind.SET:
        shell.add(value)

def _finish(shell: Any, node: Any, policy: CopyPolicy) -> Any:
    if not policy.ignore_extensibility and not is_extensible(node):
        prevent_extensions(shell)
    return shell


def clone(value: Any, policy: ClonePolicy | Mapping[str, Any] | None = None, **options: Any) -> Any:
    """
    Create a deep clone of the non-primitive 'value'.

    - Each distinct object is cloned once: shared sub-objects stay shared and cycles are reproduced.
    - The result has the same classes as the source; classes, modules and enum members are shared.
    - Functions raise CloneError unless 'allow_functions' is set, in which case they are shared.
    - Accessor properties raise CloneError unless 'allow_accessors' is set, in which case they are copied as-is.
    - Property attributes, extensibility and Sym-keyed properties are preserved unless ignored by the policy.
    - Weak collections are cloned without contents.
    - Dates, compiled patterns, typed arrays, boxed primitives and exceptions are rebuilt from their value.
      Exceptions keep their args but lose traceback, cause and context.

    :param value: The root of the graph to clone; must not be primitive.
    :param policy: A ClonePolicy or a mapping of its options (snake_case or camelCase).
    :param options: Policy options overriding those in 'policy'.
    :return: The clone of 'value'.
    """
    expect_non_primitive(value)
    policy = ClonePolicy.coerce(policy, **options)
    clones_by_id: dict[int, tuple[Any, Any]] = {}
    visited_prototypes: dict[int, type] = {}
    path: list[PropertyKey] = []
    logger.debug(f"Cloning a {type(value).__name__} with {policy!r}")

    def visit(key: Any, item: Any) -> Any:
        path.append(key)
        try:
            return main(item)
        finally:
            path.pop()

    def main(node: Any) -> Any:
        if is_primitive(node):
            return node
        if is_function(node):
            if policy.allow_functions:
                return node
            logger.debug(f"Rejected function {node!r} at {path!r}")
            raise CloneError("cannot clone a function", path)
        if id(node) in clones_by_id:
            return clones_by_id[id(node)][1]
        if id(node) in visited_prototypes:
            return node

        proto = get_prototype_of(node)
        visited_prototypes[id(proto)] = proto
        kind = kind_of(node)
        if kind.shared:
            return node

        if kind.sealed:
            items = [visit(key, item) for key, item in _contents(node, kind)]
            # a cycle through a mutable item may already have produced this clone
            if id(node) in clones_by_id:
                return clones_by_id[id(node)][1]
            shell = sealed_factories_by_kind[kind](node, items)
        else:
            shell = _make_shell(node, kind, path)
        clones_by_id[id(node)] = (node, shell)
        if kind in _opaque_kinds:
            return _finish(shell, node, policy)

        for key in own_keys(node, symbols=not policy.ignore_symbols):
            path.append(key)
            descriptor = get_own_property_descriptor(node, key)
            if descriptor is None:
                path.pop()
                continue
            if not descriptor.is_accessor:
                cloned = main(descriptor.value)
                if policy.ignore_attributes:
                    define_property(shell, key, PropertyDescriptor(value=cloned))
                else:
                    define_property(shell, key, descriptor.model_copy(update={'value': cloned}))
            elif policy.allow_accessors:
                define_property(shell, key, descriptor)
            else:
                logger.debug(f"Rejected accessor property at {path!r}")
                raise CloneError("cannot clone property accessors", path)
            path.pop()

        if not kind.sealed:
            for key, item in _contents(node, kind):
                _add_content(shell, kind, key, visit(key, item))
        return _finish(shell, node, policy)

    return main(value)


def copy(value: Any, policy: CopyPolicy | Mapping[str, Any] | None = None, **options: Any) -> Any:
    """
    Create a shallow copy of the non-primitive 'value'.
    The copy is built like a clone (same class, rebuilt internal value) but its own properties hold the
    very same values as the source's, accessors included, and map entries, set elements and tuple items are shared.
    Functions, classes and modules are returned as they are.
    :param value: The value to copy; must not be primitive.
    :param policy: A CopyPolicy or a mapping of its options.
    :param options: Policy options overriding those in 'policy'.
    :return: The copy of 'value'.
    """
    expect_non_primitive(value)
    policy = CopyPolicy.coerce(policy, **options)
    kind = kind_of(value)
    logger.debug(f"Copying a {type(value).__name__} with {policy!r}")
    if kind.shared:
        return value
    contents = _contents(value, kind)
    if kind.sealed:
        shell = sealed_factories_by_kind[kind](value, [item for _, item in contents])
    else:
        shell = _make_shell(value, kind, [])
    if kind in _opaque_kinds:
        return _finish(shell, value, policy)

    for key in own_keys(value, symbols=not policy.ignore_symbols):
        descriptor = get_own_property_descriptor(value, key)
        if descriptor is None:
            continue
        if policy.ignore_attributes and not descriptor.is_accessor:
            descriptor = PropertyDescriptor(value=descriptor.value)
        define_property(shell, key, descriptor)
    if not kind.sealed:
        for key, item in contents:
            _add_content(shell, kind, key, item)
    return _finish(shell, value, policy)


def assign(target: Any, *sources: Any) -> Any:
    """
    Copy the enumerable own properties of each source onto 'target' by ordinary assignment,
    so read-only properties, setters and extensibility of the target are respected.
    Mapping sources contribute their items; None sources are skipped.
    :param target: The non-primitive object to update.
    :param sources: Objects or mappings whose properties are copied, later ones winning.
    :return: 'target'.
    """
    expect_non_primitive(target)
    for source in sources:
        if source is None:
            continue
        expect_non_primitive(source)
        if isinstance(source, Mapping):
            pairs = list(source.items())
        else:
            pairs = [(key, get_own_property_descriptor(source, key)) for key in enumerable_own_keys(source)]
            pairs = [(key, source[key] if isinstance(source, Record) else d.value) for key, d in pairs if d is not None]
        for key, item in pairs:
            put(target, key, item)
    return target

def copy_assign(value: Any, *sources: Any) -> Any:
    """Shallow-copy 'value', then assign the properties of 'sources' onto the copy."""
    return assign(copy(value), *sources)


def deep_equals(value1: Any, value2: Any) -> bool:
    """
    Compare two values structurally.
    - Values of different classes are never equal; primitives compare with ==, functions by identity.
    - Sequences compare item by item, maps key by key, sets by matching each element to a deep-equal one.
    - Other objects compare the values of their enumerable own properties, and dates, patterns,
      typed arrays, boxed primitives and exceptions also compare their intrinsic value.
    - Cyclic graphs are supported: a pair that is already being compared is assumed equal.
    :param value1: The first value.
    :param value2: The second value.
    :return: True if the two values are structurally equal.
    """
    in_progress: set[tuple[int, int]] = set()

    def equals(a: Any, b: Any) -> bool:
        if a is b:
            return True
        if type(a) is not type(b):
            return False
        if is_primitive(a):
            return a == b
        kind = kind_of(a)
        if kind.shared:
            return False
        if kind in _opaque_kinds:
            return True
        pair = (id(a), id(b))
        if pair in in_progress:
            return True
        in_progress.add(pair)
        try:
            return intrinsic_equals(a, b, kind) and properties_equal(a, b)
        finally:
            in_progress.discard(pair)

    def intrinsic_equals(a: Any, b: Any, kind: Kind) -> bool:
        if kind in (Kind.ARRAY, Kind.TUPLE):
            return len(a) == len(b) and all(equals(x, y) for x, y in zip(a, b))
        if kind is Kind.MAP:
            return a.keys() == b.keys() and all(equals(a[k], b[k]) for k in a)
        if kind in (Kind.SET, Kind.FROZENSET):
            unmatched = list(b)
            for x in a:
                match = next((i for i, y in enumerate(unmatched) if equals(x, y)), None)
                if match is None:
                    return False
                unmatched.pop(match)
            return not unmatched
        if kind is Kind.ERROR:
            return equals(a.args, b.args)
        if kind in (Kind.DATE, Kind.REGEXP, Kind.TYPED_ARRAY, Kind.BOXED_PRIMITIVE):
            return a == b
        return True

    def property_keys(obj: Any) -> list[PropertyKey]:
        # list elements were compared as items
        return [k for k in enumerable_own_keys(obj) if not (is_array(obj) and isinstance(k, int))]

    def properties_equal(a: Any, b: Any) -> bool:
        keys = property_keys(a)
        if set(keys) != set(property_keys(b)):
            return False
        for key in keys:
            da, db = get_own_property_descriptor(a, key), get_own_property_descriptor(b, key)
            if da.is_accessor or db.is_accessor:
                if (da.fget, da.fset) != (db.fget, db.fset):
                    return False
            elif not equals(da.value, db.value):
                return False
        return True

    return equals(value1, value2)
