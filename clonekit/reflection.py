"""
Property reflection over Python objects, plus a record type whose properties carry full descriptors.

Ordinary attributes have no per-property flags, so they are reported as plain data descriptors
(writable, enumerable and configurable). A Record keeps an explicit descriptor for each property, which
makes read-only, hidden and locked properties, getter/setter pairs, Sym keys and non-extensible records possible.

Contains:
    class PropertyDescriptor(BaseModel)
        is_accessor, is_plain     (self) -> bool
    class Record
        (mapping | None, **props)
    own_keys                      (obj: Any, symbols: bool = True) -> list[PropertyKey]
    enumerable_own_keys           (obj: Any) -> list[PropertyKey]
    get_own_property_descriptor   (obj: Any, key: PropertyKey) -> PropertyDescriptor | None
    define_property               (obj: Any, key: PropertyKey, descriptor: PropertyDescriptor) -> Any
    put                           (obj: Any, key: PropertyKey, value: Any) -> None
    get_prototype_of              (obj: Any) -> type
    set_prototype_of              (obj: Any, proto: type) -> Any
    is_extensible                 (obj: Any) -> bool
    prevent_extensions            (obj: T) -> T
"""
from __future__ import annotations

from clonekit.basetypes import *

from collections.abc import Iterator, Mapping

from pydantic import BaseModel, ConfigDict, model_validator


class PropertyDescriptor(BaseModel):
    """
    Describes one property: either a data property holding 'value', or an accessor property
    computed by 'fget' and assigned through 'fset'. Flags default to True, the state of an ordinary attribute.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = None
    fget: Func | None = None
    fset: Func | None = None
    writable: bool = True
    enumerable: bool = True
    configurable: bool = True

    @model_validator(mode='after')
    def check_kind(self) -> PropertyDescriptor:
        if self.is_accessor and self.model_fields_set & {'value', 'writable'}:
            raise ValueError("an accessor descriptor cannot also specify 'value' or 'writable'")
        return self

    @property
    def is_accessor(self) -> bool:
        return self.fget is not None or self.fset is not None

    @property
    def is_plain(self) -> bool:
        """True for a data descriptor with every flag set."""
        return not self.is_accessor and self.writable and self.enumerable and self.configurable


class Record:
    """
    A plain record: an object whose own properties live in an ordered descriptor table.

    Properties are reached as attributes (string keys) or items (string or Sym keys):
        r = Record(name="Jenny", height=63)
        r.name, r["height"]          # -> 'Jenny', 63
        r.blood = "O"                # adds a property while the record is extensible
    Use define_property() for read-only, non-enumerable or accessor properties and
    prevent_extensions() to forbid new ones. Class attributes take precedence over own properties
    on attribute access; item access only ever sees own properties.
    """
    __slots__ = ('_properties', '_extensible')

    def __new__(cls, *args, **kwargs) -> Record:
        self = super().__new__(cls)
        object.__setattr__(self, '_properties', {})
        object.__setattr__(self, '_extensible', True)
        return self

    def __init__(self, items: Mapping[PropertyKey, Any] | None = None, /, **props: Any) -> None:
        for key, value in {**(items or {}), **props}.items():
            self[key] = value

    def __getitem__(self, key: PropertyKey) -> Any:
        try:
            descriptor = self._properties[key]
        except KeyError:
            raise KeyError(key) from None
        if descriptor.is_accessor:
            if descriptor.fget is None:
                msg = f"property {key!r} has no getter"
                raise AttributeError(msg)
            return descriptor.fget(self)
        return descriptor.value

    def __setitem__(self, key: PropertyKey, value: Any) -> None:
        expect_property_key(key)
        descriptor = self._properties.get(key)
        if descriptor is None:
            if not self._extensible:
                msg = f"cannot add property {key!r}: record is not extensible"
                raise TypeError(msg)
            self._properties[key] = PropertyDescriptor(value=value)
        elif descriptor.is_accessor:
            if descriptor.fset is None:
                msg = f"cannot set property {key!r}: it has a getter but no setter"
                raise TypeError(msg)
            descriptor.fset(self, value)
        elif not descriptor.writable:
            msg = f"cannot assign to read-only property {key!r}"
            raise TypeError(msg)
        else:
            self._properties[key] = descriptor.model_copy(update={'value': value})

    def __delitem__(self, key: PropertyKey) -> None:
        descriptor = self._properties.get(key)
        if descriptor is None:
            raise KeyError(key)
        if not descriptor.configurable:
            msg = f"cannot delete non-configurable property {key!r}"
            raise TypeError(msg)
        del self._properties[key]

    def __getattr__(self, name: str) -> Any:
        # only reached when normal lookup fails, i.e. for own properties
        if name.startswith('__'):
            raise AttributeError(name)
        try:
            return self[name]
        except KeyError:
            msg = f"{type(self).__name__!r} object has no property {name!r}"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name) from None

    def __contains__(self, key: object) -> bool:
        return key in self._properties

    def __iter__(self) -> Iterator[str]:
        return iter(enumerable_own_keys(self))

    def __len__(self) -> int:
        return len(enumerable_own_keys(self))

    def __repr__(self) -> str:
        shown = []
        for key in enumerable_own_keys(self):
            descriptor = self._properties[key]
            shown.append(f"{key}=<accessor>" if descriptor.is_accessor else f"{key}={descriptor.value!r}")
        return f"{type(self).__name__}({', '.join(shown)})"


def _slot_names(cls: type) -> list[str]:
    names = []
    for klass in cls.__mro__:
        slots = klass.__dict__.get('__slots__', ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name in ('__dict__', '__weakref__') or name in names:
                continue
            # private slots are stored under their mangled name
            if name.startswith('__') and not name.endswith('__'):
                name = f"_{klass.__name__.lstrip('_')}{name}"
            names.append(name)
    return names

def _set_slot_names(obj: Any) -> list[str]:
    if isinstance(obj, Record):
        return []
    missing = object()
    return [name for name in _slot_names(type(obj)) if getattr(obj, name, missing) is not missing]


def own_keys(obj: Any, symbols: bool = True) -> list[PropertyKey]:
    """
    List the own property keys of 'obj'.
    For a Record these are the keys of its descriptor table (Sym keys are dropped when 'symbols' is False).
    For a list or deque, the element indices come first; for any object, then come the keys of
    its __dict__ and the names of its set __slots__ members.
    :param obj: A non-primitive value.
    :param symbols: Whether to include Sym keys.
    :return: The own keys, in definition order.
    """
    expect_non_primitive(obj)
    if isinstance(obj, Record):
        keys = list(obj._properties)
    else:
        keys = list(range(len(obj))) if is_array(obj) else []
        keys += list(getattr(obj, '__dict__', {}))
        keys += _set_slot_names(obj)
    if not symbols:
        keys = [key for key in keys if not isinstance(key, Sym)]
    return keys

def enumerable_own_keys(obj: Any) -> list[PropertyKey]:
    """Own keys of enumerable properties, Sym keys excluded."""
    if isinstance(obj, Record):
        return [k for k, d in obj._properties.items() if d.enumerable and not isinstance(k, Sym)]
    return own_keys(obj, symbols=False)


def get_own_property_descriptor(obj: Any, key: PropertyKey) -> PropertyDescriptor | None:
    """
    Describe the own property 'key' of 'obj', or return None if there is no such property.
    Properties of objects other than Records are always plain data descriptors.
    :param obj: A non-primitive value.
    :param key: The property key.
    :return: The descriptor, or None.
    """
    expect_non_primitive(obj)
    expect_property_key(key)
    if isinstance(obj, Record):
        return obj._properties.get(key)
    if isinstance(key, int):
        if is_array(obj) and 0 <= key < len(obj):
            return PropertyDescriptor(value=obj[key])
        return None
    if isinstance(key, str):
        attrs = getattr(obj, '__dict__', {})
        if key in attrs:
            return PropertyDescriptor(value=attrs[key])
        if key in _set_slot_names(obj):
            return PropertyDescriptor(value=getattr(obj, key))
    return None


def define_property(obj: Any, key: PropertyKey, descriptor: PropertyDescriptor) -> Any:
    """
    Create or redefine the own property 'key' of 'obj' according to 'descriptor', bypassing setters.

    On a Record the usual descriptor rules apply: a new key needs an extensible record, and a
    non-configurable property can only have its value rewritten, and only while it is writable.
    Other objects have no property flags, so only plain data descriptors are accepted there; list
    indices are assigned, slot members are set and anything else goes straight into __dict__.
    :param obj: A non-primitive value.
    :param key: The property key.
    :param descriptor: The property descriptor to apply.
    :return: 'obj'.
    """
    expect_non_primitive(obj)
    expect_property_key(key)
    if isinstance(obj, Record):
        current = obj._properties.get(key)
        if current is None and not obj._extensible:
            msg = f"cannot define property {key!r}: record is not extensible"
            raise TypeError(msg)
        if current is not None and not current.configurable:
            rewrite_only = (
                not current.is_accessor and not descriptor.is_accessor and current.writable
                and (current.enumerable, current.configurable) == (descriptor.enumerable, descriptor.configurable)
            )
            if not rewrite_only:
                msg = f"cannot redefine non-configurable property {key!r}"
                raise TypeError(msg)
        obj._properties[key] = descriptor
        return obj

    if not descriptor.is_plain:
        msg = f"{type(obj).__name__} objects only support plain data properties"
        raise TypeError(msg)
    if isinstance(key, int):
        if not is_array(obj):
            msg = f"cannot define index {key} on a {type(obj).__name__} object"
            raise TypeError(msg)
        obj[key] = descriptor.value
    elif key in _slot_names(type(obj)):
        object.__setattr__(obj, key, descriptor.value)
    elif hasattr(obj, '__dict__'):
        obj.__dict__[key] = descriptor.value
    else:
        msg = f"cannot define property {key!r} on a {type(obj).__name__} object"
        raise TypeError(msg)
    return obj


def put(obj: Any, key: PropertyKey, value: Any) -> None:
    """
    Assign a property the ordinary way, so that read-only properties, setters and extensibility apply.
    :param obj: A non-primitive value.
    :param key: The property key.
    :param value: The value to store.
    """
    expect_non_primitive(obj)
    if isinstance(obj, Record) or (isinstance(key, int) and is_array(obj)):
        obj[key] = value
    elif isinstance(key, str):
        setattr(obj, key, value)
    else:
        msg = f"cannot assign key {key!r} on a {type(obj).__name__} object"
        raise TypeError(msg)


def get_prototype_of(obj: Any) -> type:
    return type(obj)

def set_prototype_of(obj: Any, proto: type) -> Any:
    """Reassign the class of 'obj'; raises TypeError when the layouts are incompatible."""
    if type(obj) is not proto:
        obj.__class__ = proto
    return obj


def is_extensible(obj: Any) -> bool:
    """
    Check whether new properties can be added to 'obj'.
    Records are extensible until prevent_extensions() is called on them; other objects are extensible
    exactly when they have a __dict__.
    """
    expect_non_primitive(obj)
    if isinstance(obj, Record):
        return obj._extensible
    return hasattr(obj, '__dict__')

def prevent_extensions(obj: T) -> T:
    """
    Forbid new properties on 'obj'. Objects that are already non-extensible are left alone; for
    ordinary objects with a __dict__ this is impossible and raises TypeError.
    :param obj: A non-primitive value.
    :return: 'obj'.
    """
    if isinstance(obj, Record):
        object.__setattr__(obj, '_extensible', False)
    elif is_extensible(obj):
        msg = f"{type(obj).__name__} objects cannot be made non-extensible"
        raise TypeError(msg)
    return obj
